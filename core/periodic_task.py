"""Periodic task manager driven by the polling cooldown controller."""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable

from core.constants import COUNTDOWN_UPDATE_INTERVAL_SECONDS
from core.cooldown import PollingCooldownController
from core.log import get_logger
from core.models.domain.task import TaskManagerStatus, TaskStats
from core.types import PollingPhase

logger = get_logger(__name__)


class TaskStatus(Enum):
    """Status of periodic task operations."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"
    ERROR = "error"


class PeriodicTask(ABC):
    """Abstract base class for periodic tasks."""

    @abstractmethod
    async def execute(self) -> None:
        """Execute one cycle of the task.

        Implementations report cycle outcomes to the cooldown controller
        themselves; exceptions escaping here are only logged.
        """
        pass

    @abstractmethod
    async def on_start(self) -> None:
        """Called when the task is starting.

        Use this for initialization logic.
        """
        pass

    @abstractmethod
    async def on_stop(self) -> None:
        """Called when the task is stopping.

        Use this for cleanup logic.
        """
        pass

    async def on_error(self, error: Exception) -> None:
        """Called when an exception escapes execute().

        Args:
            error: The exception that occurred
        """
        logger.error(f"Error in periodic task: {error}")

    async def on_cooldown_tick(self, remaining_seconds: float) -> None:
        """Called on every countdown tick while polling is suspended.

        Args:
            remaining_seconds: Seconds until polling resumes
        """
        pass


class PeriodicTaskManager:
    """Run a periodic task on the schedule chosen by a cooldown controller.

    At most one cycle runs at a time. Refresh and refocus requests that
    arrive while a cycle is in flight are folded into that cycle.
    """

    def __init__(
        self,
        task: PeriodicTask,
        controller: PollingCooldownController,
        countdown_interval_seconds: float = COUNTDOWN_UPDATE_INTERVAL_SECONDS,
        on_status_change: Callable[[TaskStatus], Awaitable[None]] | None = None,
        on_error: Callable[[Exception], Awaitable[None]] | None = None,
    ):
        """Initialize the periodic task manager.

        Args:
            task: The periodic task to execute
            controller: Decides when cycles may run
            countdown_interval_seconds: Interval between cooldown ticks
            on_status_change: Callback when status changes
            on_error: Callback when errors occur
        """
        self.task = task
        self.controller = controller
        self.countdown_interval_seconds = countdown_interval_seconds
        self.on_status_change = on_status_change
        self.on_error = on_error

        # State management
        self.status = TaskStatus.IDLE
        self._background_task: asyncio.Task[None] | None = None
        self._countdown_task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self._wake_event = asyncio.Event()
        self._cycle_lock = asyncio.Lock()
        self._refresh_requested = False

        # Statistics
        self.stats = TaskStats()

        logger.info(
            "PeriodicTaskManager initialized with "
            f"{controller.config.poll_interval_seconds}s interval"
        )

    async def __aenter__(self) -> "PeriodicTaskManager":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.stop()

    @property
    def cycle_in_flight(self) -> bool:
        return self._cycle_lock.locked()

    async def start(self) -> None:
        """Start the periodic task manager."""
        if self.status != TaskStatus.IDLE:
            logger.warning(f"Task manager already in {self.status} state")
            return

        try:
            await self.task.on_start()
            self._stop_event.clear()
            await self._set_status(TaskStatus.IDLE)
            self.stats.start_time = datetime.now()
            logger.info("Periodic task manager started")

        except Exception as e:
            await self._set_status(TaskStatus.ERROR)
            logger.error(f"Failed to start task manager: {e}")
            await self._handle_error(e)
            raise

    async def stop(self) -> None:
        """Stop the periodic task manager."""
        logger.info("Stopping periodic task manager...")

        # Signal background task to stop
        self._stop_event.set()
        self._wake_event.set()

        await self._cancel_countdown()

        if self._background_task and not self._background_task.done():
            self._background_task.cancel()
            try:
                await self._background_task
            except asyncio.CancelledError:
                pass

        # Call task cleanup
        try:
            await self.task.on_stop()
        except Exception as e:
            logger.error(f"Error during task cleanup: {e}")

        await self._set_status(TaskStatus.STOPPED)
        logger.info("Periodic task manager stopped")

    async def start_periodic(self) -> None:
        """Start the periodic execution loop."""
        if self.status == TaskStatus.RUNNING:
            logger.warning("Periodic loop already running")
            return

        if self._background_task and not self._background_task.done():
            logger.warning("Background task already exists")
            return

        self._stop_event.clear()
        await self._set_status(TaskStatus.RUNNING)
        self._background_task = asyncio.create_task(self._periodic_loop())
        logger.info("Periodic execution loop started")

    async def stop_periodic(self) -> None:
        """Stop the periodic execution loop."""
        if self.status != TaskStatus.RUNNING:
            logger.warning("Periodic loop not running")
            return

        await self._set_status(TaskStatus.PAUSED)
        self._stop_event.set()
        self._wake_event.set()
        await self._cancel_countdown()

        if self._background_task:
            try:
                await self._background_task
            except asyncio.CancelledError:
                pass

        logger.info("Periodic execution loop stopped")

    async def execute_once(self) -> bool:
        """Run one cycle now unless one is already in flight.

        Returns:
            True if a cycle ran, False if the request was coalesced
        """
        if self._cycle_lock.locked():
            self.stats.coalesced_requests += 1
            logger.info("Cycle already in flight, manual run coalesced")
            return False

        logger.info("Executing task manually")
        await self._run_cycle()
        self._sync_countdown()
        return True

    def request_refresh(self) -> bool:
        """Ask the periodic loop for an immediate cycle.

        The cycle runs even during cooldown.

        Returns:
            False if the request was folded into an in-flight cycle
        """
        if self._cycle_lock.locked():
            self.stats.coalesced_requests += 1
            logger.debug("Refresh requested during in-flight cycle, coalesced")
            return False

        self._refresh_requested = True
        self._wake_event.set()
        return True

    def set_focused(self, focused: bool) -> None:
        """Handle a focus or visibility change.

        Losing focus stops the poll timer and the countdown. Regaining it
        polls immediately when active, or resumes the countdown in cooldown.
        """
        was_focused = self.controller.is_focused
        self.controller.set_focused(focused)

        if focused and not was_focused:
            logger.info("Display focused")
            if self.controller.phase == PollingPhase.ACTIVE:
                self.request_refresh()
        elif not focused and was_focused:
            logger.info("Display unfocused, pausing polling")

        self._sync_countdown()
        self._wake_event.set()

    def get_status(self) -> TaskManagerStatus:
        """Get current status and statistics.

        Returns:
            TaskManagerStatus with status information
        """
        return TaskManagerStatus(
            status=self.status.value,
            phase=self.controller.phase.value,
            periodic_running=(
                self._background_task is not None and not self._background_task.done()
            ),
            cycle_in_flight=self.cycle_in_flight,
            is_focused=self.controller.is_focused,
            consecutive_error_count=self.controller.consecutive_error_count,
            cooldown_remaining_seconds=self.controller.cooldown_remaining(),
            stats=self.stats,
            config={
                "interval_seconds": self.controller.config.poll_interval_seconds,
                "error_threshold": self.controller.config.error_threshold,
                "cooldown_seconds": self.controller.config.cooldown_seconds,
                "countdown_interval_seconds": self.countdown_interval_seconds,
            },
        )

    async def _periodic_loop(self) -> None:
        """Background loop for periodic task execution."""
        logger.info("Periodic loop started")
        due = True

        while not self._stop_event.is_set():
            try:
                self._wake_event.clear()
                if self.controller.check_cooldown_expiry():
                    due = True

                if self._refresh_requested or (due and self.controller.should_poll()):
                    self._refresh_requested = False
                    await self._run_cycle()

                self._sync_countdown()
                due = await self._wait(self.controller.next_delay())

            except asyncio.CancelledError:
                logger.info("Periodic loop cancelled")
                break

        logger.info("Periodic loop stopped")

    async def _wait(self, delay: float | None) -> bool:
        """Wait for the next iteration, a wake-up request or stop signal.

        Returns:
            True if the delay elapsed, False if woken early
        """
        try:
            await asyncio.wait_for(self._wake_event.wait(), timeout=delay)
            return False
        except asyncio.TimeoutError:
            return True

    async def _run_cycle(self) -> None:
        """Run one cycle of the task, never letting errors escape."""
        async with self._cycle_lock:
            logger.debug("Running cycle")
            try:
                await self.task.execute()
                self.stats.executions += 1
                self.stats.last_execution_time = datetime.now()

            except Exception as e:
                self.stats.errors += 1
                self.stats.last_error_time = datetime.now()
                logger.error(f"Unhandled error in cycle: {e}")
                await self._handle_error(e)

    def _sync_countdown(self) -> None:
        """Start or stop the countdown to match the controller state."""
        should_count = (
            self.controller.phase == PollingPhase.COOLDOWN
            and self.controller.is_focused
            and not self._stop_event.is_set()
        )
        running = self._countdown_task is not None and not self._countdown_task.done()

        if should_count and not running:
            logger.debug("Starting cooldown countdown")
            self._countdown_task = asyncio.create_task(self._countdown_loop())
        elif not should_count and running:
            logger.debug("Stopping cooldown countdown")
            assert self._countdown_task is not None
            self._countdown_task.cancel()

    async def _countdown_loop(self) -> None:
        """Report the remaining cooldown until polling resumes."""
        while (
            self.controller.phase == PollingPhase.COOLDOWN
            and self.controller.is_focused
        ):
            remaining = self.controller.cooldown_remaining()
            try:
                await self.task.on_cooldown_tick(remaining)
            except Exception as e:
                logger.error(f"Error in cooldown tick: {e}")

            if remaining <= 0:
                self._wake_event.set()
                break
            await asyncio.sleep(min(self.countdown_interval_seconds, remaining))

    async def _cancel_countdown(self) -> None:
        if self._countdown_task and not self._countdown_task.done():
            self._countdown_task.cancel()
            try:
                await self._countdown_task
            except asyncio.CancelledError:
                pass
        self._countdown_task = None

    async def _set_status(self, status: TaskStatus) -> None:
        """Set the task status and notify callbacks.

        Args:
            status: New status to set
        """
        old_status = self.status
        self.status = status

        if old_status != status:
            logger.debug(f"Status changed: {old_status.value} -> {status.value}")
            if self.on_status_change:
                try:
                    await self.on_status_change(status)
                except Exception as e:
                    logger.error(f"Error in status change callback: {e}")

    async def _handle_error(self, error: Exception) -> None:
        """Handle errors escaping task execution.

        Args:
            error: The exception that occurred
        """
        # Call task error handler
        try:
            await self.task.on_error(error)
        except Exception as e:
            logger.error(f"Error in task error handler: {e}")

        # Call external error callback
        if self.on_error:
            try:
                await self.on_error(error)
            except Exception as e:
                logger.error(f"Error in external error callback: {e}")
