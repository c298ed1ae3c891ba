"""Tracking of model names the billing parser could not resolve."""

from collections.abc import Awaitable, Callable, Iterable

from core.constants import GENERIC_USAGE_KEYWORDS
from core.log import get_logger

logger = get_logger(__name__)

UnknownModelNotifier = Callable[[list[str]], Awaitable[None]]


async def log_unknown_models(fragments: list[str]) -> None:
    """Default notifier: log the detected names once."""
    logger.warning(f"Unknown models detected in billing data: {', '.join(fragments)}")


class UnknownModelTracker:
    """Accumulate unknown model fragments and notify about them once.

    Two fragments are duplicates when either contains the other, ignoring
    case. Generic billing words are never recorded.
    """

    def __init__(self, notifier: UnknownModelNotifier = log_unknown_models):
        self._notifier = notifier
        self._fragments: list[str] = []
        self._notified = False

    @property
    def fragments(self) -> tuple[str, ...]:
        return tuple(self._fragments)

    @property
    def notified(self) -> bool:
        return self._notified

    def record(self, fragment: str) -> bool:
        """Record one fragment.

        Returns:
            True if the fragment was new
        """
        candidate = fragment.strip()
        lowered = candidate.lower()
        if len(candidate) <= 1 or lowered in GENERIC_USAGE_KEYWORDS:
            return False

        for seen in self._fragments:
            seen_lowered = seen.lower()
            if seen_lowered in lowered or lowered in seen_lowered:
                return False

        logger.info(f"Detected unknown model: {candidate}")
        self._fragments.append(candidate)
        return True

    def record_many(self, fragments: Iterable[str]) -> int:
        """Record several fragments, returning how many were new."""
        return sum(1 for fragment in fragments if self.record(fragment))

    async def flush(self) -> bool:
        """Notify about everything recorded so far, at most once.

        Returns:
            True if the notifier was called
        """
        if self._notified or not self._fragments:
            return False

        self._notified = True
        try:
            await self._notifier(list(self._fragments))
        except Exception as e:
            logger.error(f"Error notifying unknown models: {e}")
        return True
