"""Display sinks for computed stats."""

from typing import Protocol

from core.log import get_logger
from core.models.domain.stats import StatsBundle

logger = get_logger(__name__)


class DisplaySink(Protocol):
    """Receiver of computed stats bundles."""

    async def render(self, bundle: StatsBundle) -> None: ...


class LatestStatsStore:
    """Keep the most recently rendered bundle for readers such as the API."""

    def __init__(self) -> None:
        self.latest: StatsBundle | None = None
        self.render_count = 0

    async def render(self, bundle: StatsBundle) -> None:
        self.latest = bundle
        self.render_count += 1
        logger.debug(f"Rendered {bundle.state.value} bundle #{self.render_count}")
