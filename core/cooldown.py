"""Polling cooldown state machine.

The state is an immutable value. Every change goes through ``transition``,
a pure function of (state, event, config). ``PollingCooldownController``
owns the single live state instance and is the only writer.

Phases:
    Active: polling on the normal interval while focused.
    Cooldown: polling suspended after ``error_threshold`` consecutive
        failures; ends when ``cooldown_seconds`` elapse or a fetch succeeds.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict

from .constants import (
    COOLDOWN_DURATION_SECONDS,
    DEFAULT_ERROR_THRESHOLD,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
)
from .log import get_logger
from .types import PollingPhase

logger = get_logger(__name__)


@dataclass(frozen=True)
class CooldownConfig:
    """Parameters supplied by the consumer of the controller."""

    error_threshold: int = DEFAULT_ERROR_THRESHOLD
    cooldown_seconds: float = COOLDOWN_DURATION_SECONDS
    poll_interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS

    def __post_init__(self) -> None:
        if self.error_threshold < 1:
            raise ValueError("error_threshold must be at least 1")
        if self.cooldown_seconds <= 0:
            raise ValueError("cooldown_seconds must be positive")
        if self.poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be positive")


class CooldownState(BaseModel):
    """Snapshot of the polling state machine."""

    model_config = ConfigDict(frozen=True)

    consecutive_error_count: int = 0
    cooldown_started_at: float | None = None
    is_polling: bool = True
    is_focused: bool = True

    @property
    def phase(self) -> PollingPhase:
        if self.cooldown_started_at is None:
            return PollingPhase.ACTIVE
        return PollingPhase.COOLDOWN


class FetchFailed(BaseModel):
    """A polling cycle failed."""

    model_config = ConfigDict(frozen=True)

    at: float


class FetchSucceeded(BaseModel):
    """A polling cycle succeeded."""

    model_config = ConfigDict(frozen=True)

    at: float


class ClockTick(BaseModel):
    """Time has passed; used to detect the end of a cooldown."""

    model_config = ConfigDict(frozen=True)

    at: float


class FocusChanged(BaseModel):
    """The display gained or lost focus."""

    model_config = ConfigDict(frozen=True)

    focused: bool
    at: float


CooldownEvent = FetchFailed | FetchSucceeded | ClockTick | FocusChanged


def transition(
    state: CooldownState, event: CooldownEvent, config: CooldownConfig
) -> CooldownState:
    """Compute the next state for an event.

    Args:
        state: Current state
        event: Event to apply
        config: Threshold and duration parameters

    Returns:
        The next state (the same object when nothing changes)
    """
    if isinstance(event, FetchFailed):
        count = state.consecutive_error_count + 1
        started_at = state.cooldown_started_at
        if started_at is None and count >= config.error_threshold:
            started_at = event.at
        return state.model_copy(
            update={
                "consecutive_error_count": count,
                "cooldown_started_at": started_at,
                "is_polling": started_at is None and state.is_focused,
            }
        )

    if isinstance(event, FetchSucceeded):
        return state.model_copy(
            update={
                "consecutive_error_count": 0,
                "cooldown_started_at": None,
                "is_polling": state.is_focused,
            }
        )

    if isinstance(event, ClockTick):
        if state.cooldown_started_at is None:
            return state
        if event.at - state.cooldown_started_at < config.cooldown_seconds:
            return state
        return state.model_copy(
            update={
                "consecutive_error_count": 0,
                "cooldown_started_at": None,
                "is_polling": state.is_focused,
            }
        )

    if isinstance(event, FocusChanged):
        return state.model_copy(
            update={
                "is_focused": event.focused,
                "is_polling": event.focused and state.cooldown_started_at is None,
            }
        )

    raise TypeError(f"Unknown cooldown event: {event!r}")


class PollingCooldownController:
    """Single source of truth for whether and when to poll."""

    def __init__(
        self,
        config: CooldownConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the controller.

        Args:
            config: Threshold, cooldown duration and poll interval
            clock: Monotonic clock in seconds
        """
        self.config = config or CooldownConfig()
        self._clock = clock
        self._state = CooldownState()

    @property
    def state(self) -> CooldownState:
        return self._state

    @property
    def phase(self) -> PollingPhase:
        return self._state.phase

    @property
    def consecutive_error_count(self) -> int:
        return self._state.consecutive_error_count

    @property
    def is_focused(self) -> bool:
        return self._state.is_focused

    def record_failure(self) -> CooldownState:
        """Report a failed polling cycle."""
        previous = self._state
        self._apply(FetchFailed(at=self._clock()))
        if previous.phase == PollingPhase.ACTIVE and self.phase == PollingPhase.COOLDOWN:
            logger.warning(
                f"{self.consecutive_error_count} consecutive failures, "
                f"suspending polling for {self.config.cooldown_seconds:.0f}s"
            )
        else:
            logger.info(
                f"Consecutive failures: {self.consecutive_error_count}/"
                f"{self.config.error_threshold}"
            )
        return self._state

    def record_success(self) -> CooldownState:
        """Report a successful polling cycle."""
        previous = self._state
        self._apply(FetchSucceeded(at=self._clock()))
        if previous.phase == PollingPhase.COOLDOWN:
            logger.info("Fetch succeeded during cooldown, resuming normal polling")
        return self._state

    def check_cooldown_expiry(self) -> bool:
        """End the cooldown if its duration has elapsed.

        Returns:
            True if the cooldown ended on this call
        """
        previous = self._state
        self._apply(ClockTick(at=self._clock()))
        expired = (
            previous.phase == PollingPhase.COOLDOWN
            and self.phase == PollingPhase.ACTIVE
        )
        if expired:
            logger.info("Cooldown elapsed, resuming normal polling")
        return expired

    def set_focused(self, focused: bool) -> CooldownState:
        """Report a focus or visibility change."""
        if focused != self._state.is_focused:
            logger.debug(f"Focus changed: focused={focused}")
        self._apply(FocusChanged(focused=focused, at=self._clock()))
        return self._state

    def cooldown_remaining(self) -> float:
        """Seconds left in the current cooldown, 0 outside cooldown."""
        started_at = self._state.cooldown_started_at
        if started_at is None:
            return 0.0
        elapsed = self._clock() - started_at
        return max(0.0, self.config.cooldown_seconds - elapsed)

    def should_poll(self) -> bool:
        """Whether a timer-driven cycle may run now."""
        return self._state.is_polling

    def next_delay(self) -> float | None:
        """Seconds until the driver should wake up again.

        Returns:
            None while unfocused, the cooldown remainder during cooldown,
            otherwise the normal poll interval
        """
        if not self._state.is_focused:
            return None
        if self.phase == PollingPhase.COOLDOWN:
            return self.cooldown_remaining()
        return float(self.config.poll_interval_seconds)

    def _apply(self, event: CooldownEvent) -> None:
        self._state = transition(self._state, event, self.config)
