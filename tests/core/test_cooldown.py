"""Tests for the polling cooldown state machine."""

import pytest

from core.cooldown import (
    ClockTick,
    CooldownConfig,
    CooldownState,
    FetchFailed,
    FetchSucceeded,
    FocusChanged,
    PollingCooldownController,
    transition,
)
from core.types import PollingPhase


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def config() -> CooldownConfig:
    """Threshold 3, 600s cooldown, 30s interval."""
    return CooldownConfig(
        error_threshold=3, cooldown_seconds=600, poll_interval_seconds=30
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def controller(config, clock) -> PollingCooldownController:
    return PollingCooldownController(config, clock=clock)


class TestCooldownConfig:
    """Test configuration validation."""

    def test_defaults(self):
        """Test default parameters."""
        config = CooldownConfig()
        assert config.error_threshold == 3
        assert config.cooldown_seconds == 600
        assert config.poll_interval_seconds == 30

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"error_threshold": 0},
            {"cooldown_seconds": 0},
            {"poll_interval_seconds": -1},
        ],
    )
    def test_invalid(self, kwargs):
        """Test invalid parameters are rejected."""
        with pytest.raises(ValueError):
            CooldownConfig(**kwargs)


class TestTransition:
    """Test the pure transition function."""

    def test_failures_below_threshold_stay_active(self, config):
        """Test failures count up without entering cooldown."""
        state = CooldownState()
        state = transition(state, FetchFailed(at=1.0), config)
        state = transition(state, FetchFailed(at=2.0), config)

        assert state.consecutive_error_count == 2
        assert state.cooldown_started_at is None
        assert state.phase == PollingPhase.ACTIVE
        assert state.is_polling is True

    def test_threshold_enters_cooldown_on_third_failure(self, config):
        """Test the cooldown starts exactly when the threshold is reached."""
        state = CooldownState()
        for at in (1.0, 2.0):
            state = transition(state, FetchFailed(at=at), config)
            assert state.cooldown_started_at is None

        state = transition(state, FetchFailed(at=3.0), config)

        assert state.cooldown_started_at == 3.0
        assert state.phase == PollingPhase.COOLDOWN
        assert state.is_polling is False

    def test_success_resets_before_threshold(self, config):
        """Test one success resets the counter."""
        state = CooldownState()
        state = transition(state, FetchFailed(at=1.0), config)
        state = transition(state, FetchFailed(at=2.0), config)
        state = transition(state, FetchSucceeded(at=3.0), config)
        state = transition(state, FetchFailed(at=4.0), config)

        assert state.consecutive_error_count == 1
        assert state.phase == PollingPhase.ACTIVE

    def test_success_ends_cooldown(self, config):
        """Test a success during cooldown clears it immediately."""
        state = CooldownState(consecutive_error_count=3, cooldown_started_at=5.0)
        state = transition(state, FetchSucceeded(at=6.0), config)

        assert state == CooldownState()

    def test_failure_during_cooldown_keeps_start(self, config):
        """Test further failures do not restart the cooldown window."""
        state = CooldownState(
            consecutive_error_count=3, cooldown_started_at=5.0, is_polling=False
        )
        state = transition(state, FetchFailed(at=50.0), config)

        assert state.consecutive_error_count == 4
        assert state.cooldown_started_at == 5.0

    def test_tick_before_expiry_is_noop(self, config):
        """Test ticks inside the window change nothing."""
        state = CooldownState(
            consecutive_error_count=3, cooldown_started_at=0.0, is_polling=False
        )
        assert transition(state, ClockTick(at=599.9), config) is state

    def test_tick_after_expiry_resumes(self, config):
        """Test the cooldown ends after its duration and resets the counter."""
        state = CooldownState(
            consecutive_error_count=3, cooldown_started_at=0.0, is_polling=False
        )
        state = transition(state, ClockTick(at=600.0), config)

        assert state.phase == PollingPhase.ACTIVE
        assert state.consecutive_error_count == 0
        assert state.is_polling is True

    def test_unfocus_stops_polling(self, config):
        """Test losing focus pauses the timer."""
        state = transition(CooldownState(), FocusChanged(focused=False, at=1.0), config)

        assert state.is_focused is False
        assert state.is_polling is False

    def test_refocus_in_cooldown_keeps_polling_off(self, config):
        """Test regaining focus during cooldown does not resume polling."""
        state = CooldownState(
            consecutive_error_count=3,
            cooldown_started_at=0.0,
            is_polling=False,
            is_focused=False,
        )
        state = transition(state, FocusChanged(focused=True, at=1.0), config)

        assert state.is_focused is True
        assert state.is_polling is False

    def test_states_are_immutable(self):
        """Test the state cannot be mutated in place."""
        state = CooldownState()
        with pytest.raises(Exception):
            state.consecutive_error_count = 5


class TestPollingCooldownController:
    """Test the controller wrapping the state machine."""

    def test_initial_state(self, controller):
        """Test the controller starts active and polling."""
        assert controller.phase == PollingPhase.ACTIVE
        assert controller.should_poll() is True
        assert controller.next_delay() == 30
        assert controller.cooldown_remaining() == 0

    def test_enters_cooldown_after_threshold(self, controller, clock):
        """Test three failures suspend polling."""
        controller.record_failure()
        controller.record_failure()
        assert controller.state.cooldown_started_at is None

        controller.record_failure()

        assert controller.phase == PollingPhase.COOLDOWN
        assert controller.state.cooldown_started_at == clock.now
        assert controller.should_poll() is False
        assert controller.next_delay() == 600

    def test_cooldown_remaining_counts_down(self, controller, clock):
        """Test the remaining time follows the clock."""
        for _ in range(3):
            controller.record_failure()

        clock.advance(250)

        assert controller.cooldown_remaining() == 350
        assert controller.next_delay() == 350

    def test_cooldown_expiry(self, controller, clock):
        """Test polling resumes once the cooldown elapses."""
        for _ in range(3):
            controller.record_failure()

        clock.advance(599)
        assert controller.check_cooldown_expiry() is False

        clock.advance(1)
        assert controller.check_cooldown_expiry() is True
        assert controller.phase == PollingPhase.ACTIVE
        assert controller.consecutive_error_count == 0
        assert controller.should_poll() is True

    def test_success_during_cooldown(self, controller):
        """Test a success ends the cooldown without waiting."""
        for _ in range(3):
            controller.record_failure()

        controller.record_success()

        assert controller.phase == PollingPhase.ACTIVE
        assert controller.consecutive_error_count == 0

    def test_unfocused_has_no_delay(self, controller):
        """Test the timer is disarmed while unfocused."""
        controller.set_focused(False)

        assert controller.next_delay() is None
        assert controller.should_poll() is False

    def test_refocus_resumes(self, controller):
        """Test regaining focus re-arms the timer."""
        controller.set_focused(False)
        controller.set_focused(True)

        assert controller.should_poll() is True
        assert controller.next_delay() == 30
