"""Tests for launcher data types."""

import pytest

from openlauncher.errors import TransportError
from openlauncher.types import (
    LaunchMode,
    LaunchParameters,
    Result,
    SessionState,
    SessionSummary,
    ShotRecord,
)


class TestLaunchMode:
    """Tests for training modes."""

    def test_wire_values(self):
        """Mode values are the strings the firmware expects."""
        assert LaunchMode.FOREHAND_BACKHAND.value == "FOREHAND_BACKHAND"
        assert LaunchMode("HARDCORE") is LaunchMode.HARDCORE

    def test_only_manual_uses_angles(self):
        """Direction and vertical angle only apply to MANUAL."""
        assert LaunchMode.MANUAL.uses_manual_angles
        assert not any(m.uses_manual_angles for m in LaunchMode if m is not LaunchMode.MANUAL)

    def test_speed_control(self):
        """HARDCORE and RANDOM choose their own speed."""
        assert not LaunchMode.HARDCORE.uses_speed_control
        assert not LaunchMode.RANDOM.uses_speed_control
        assert LaunchMode.FOREHAND.uses_speed_control


class TestLaunchParameters:
    """Tests for launch parameter validation and serialization."""

    def test_defaults(self):
        """Defaults are valid for every mode."""
        for mode in LaunchMode:
            params = LaunchParameters(mode=mode)
            assert params.speed == 50
            assert params.direction == 90
            assert params.vertical_angle == 90
            assert params.ball_count == 20
            assert params.throw_interval == 3.0

    def test_range_limits_accepted(self):
        """Boundary values are inside the valid ranges."""
        LaunchParameters(mode=LaunchMode.MANUAL, speed=0, direction=72, vertical_angle=25)
        LaunchParameters(mode=LaunchMode.MANUAL, speed=100, direction=180, vertical_angle=140)

    @pytest.mark.parametrize("kwargs", [
        {"speed": 101},
        {"speed": -1},
        {"direction": 71},
        {"direction": 181},
        {"vertical_angle": 24},
        {"vertical_angle": 141},
        {"ball_count": 0},
        {"throw_interval": 0},
        {"throw_interval": -0.5},
        {"throw_interval": float("nan")},
        {"throw_interval": float("inf")},
    ])
    def test_out_of_range_rejected(self, kwargs):
        """Out-of-range values raise ValueError."""
        with pytest.raises(ValueError):
            LaunchParameters(mode=LaunchMode.MANUAL, **kwargs)

    def test_mode_string_coerced(self):
        """A mode given as its wire string becomes the enum."""
        params = LaunchParameters(mode="BACKHAND")
        assert params.mode is LaunchMode.BACKHAND

    def test_payload(self):
        """Start payload uses the firmware's field names and omits the interval."""
        params = LaunchParameters(
            mode=LaunchMode.MANUAL, speed=70, direction=120, vertical_angle=60,
            ball_count=15, throw_interval=1.5,
        )
        assert params.to_payload() == {
            "mode": "MANUAL",
            "speed": 70,
            "direction": 120,
            "verticalAngle": 60,
            "ballCount": 15,
        }
        assert params.to_dict()["throwInterval"] == 1.5

    def test_from_dict_text_input(self):
        """UI text fields are parsed as numbers."""
        params = LaunchParameters.from_dict({
            "mode": "forehand",
            "speed": "65",
            "ballCount": "12",
            "throwInterval": "0.5",
        })
        assert params.mode is LaunchMode.FOREHAND
        assert params.speed == 65
        assert params.ball_count == 12
        assert params.throw_interval == 0.5

    def test_from_dict_unparsable_text_falls_back(self):
        """Unparsable ball count and interval use the defaults."""
        params = LaunchParameters.from_dict({
            "mode": "RANDOM",
            "ballCount": "lots",
            "throwInterval": "soon",
        })
        assert params.ball_count == 20
        assert params.throw_interval == 3.0

    def test_from_dict_snake_case(self):
        """Snake_case keys are accepted too."""
        params = LaunchParameters.from_dict({
            "mode": "MANUAL",
            "vertical_angle": 100,
            "ball_count": 8,
            "throw_interval": 2,
        })
        assert params.vertical_angle == 100
        assert params.ball_count == 8
        assert params.throw_interval == 2.0

    @pytest.mark.parametrize("text", ["nan", "inf", "-inf"])
    def test_from_dict_non_finite_interval(self, text):
        """Interval text that parses to a non-finite float is rejected."""
        with pytest.raises(ValueError):
            LaunchParameters.from_dict({"mode": "MANUAL", "throwInterval": text})

    def test_from_dict_unknown_mode(self):
        """Unknown or missing mode is rejected."""
        with pytest.raises(ValueError):
            LaunchParameters.from_dict({"mode": "LOB"})
        with pytest.raises(ValueError):
            LaunchParameters.from_dict({})


class TestSessionState:
    """Tests for SessionState snapshots."""

    def test_defaults_idle(self):
        """A fresh state is idle and empty."""
        state = SessionState()
        assert not state.active
        assert state.balls_remaining == 0
        assert state.current_shot == 0
        assert state.session_time == 0

    def test_immutable(self):
        """Snapshots cannot be modified."""
        state = SessionState(active=True, balls_remaining=3)
        with pytest.raises(AttributeError):
            state.balls_remaining = 2

    def test_to_dict_uses_device_names(self):
        """Serialized names match the /status fields."""
        state = SessionState(active=True, balls_remaining=5, current_shot=3, session_time=12)
        assert state.to_dict() == {
            "sessionActive": True,
            "ballsRemaining": 5,
            "currentShot": 3,
            "sessionTime": 12,
        }


class TestSessionSummary:
    """Tests for SessionSummary serialization."""

    def test_to_dict(self):
        """Summary serializes shots in order with rounded rate."""
        shots = (
            ShotRecord(1, 120, 90, 50, 1000),
            ShotRecord(2, 130, 85, 55, 4000),
        )
        summary = SessionSummary(
            mode=LaunchMode.FOREHAND,
            total_balls=2,
            session_duration=7,
            average_speed=52,
            balls_per_minute=2 * 60 / 7,
            shots=shots,
        )
        data = summary.to_dict()
        assert data["mode"] == "FOREHAND"
        assert data["ballsPerMinute"] == 17.1
        assert [s["shotNumber"] for s in data["shots"]] == [1, 2]


class TestResult:
    """Tests for the Result outcome type."""

    def test_success(self):
        result = Result.success("body")
        assert result.ok
        assert result.value == "body"
        assert result.error is None
        assert result.unwrap() == "body"

    def test_success_without_value(self):
        assert Result.success().ok

    def test_failure(self):
        error = TransportError("timeout")
        result = Result.failure(error)
        assert not result.ok
        assert result.error is error
        with pytest.raises(TransportError):
            result.unwrap()
