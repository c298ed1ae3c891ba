"""Service that runs one stats refresh per polling cycle."""

import asyncio
from collections.abc import Callable
from datetime import date
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from billing.aggregator import MonthlyUsageAggregator
from billing.exceptions import BillingAuthError, BillingError
from billing.periods import BillingPeriod, billing_periods
from core.constants import DEFAULT_BILLING_CYCLE_DAY, DEFAULT_MAX_PERCENT_DECIMALS
from core.cooldown import PollingCooldownController
from core.log import get_logger
from core.models.domain.stats import StatsBundle
from core.models.domain.usage import (
    MonthlyInvoice,
    MonthlyUsage,
    PremiumRequestUsage,
    UsageBasedStatus,
)
from core.percentages import (
    format_percentage,
    premium_utilization,
    remaining_percent,
    usage_based_utilization,
)
from core.periodic_task import PeriodicTask
from core.services.credentials import TokenProvider
from core.services.display import DisplaySink
from core.services.unknown_models import UnknownModelTracker
from core.types import PollingPhase, StatsState

logger = get_logger(__name__)


class BillingDataSource(Protocol):
    """Remote billing data used by a refresh cycle."""

    async def open(self) -> None: ...

    async def close(self) -> None: ...

    async def fetch_monthly_invoice(
        self, token: str, month: int, year: int
    ) -> MonthlyInvoice: ...

    async def fetch_premium_quota(self, token: str) -> PremiumRequestUsage: ...

    async def fetch_usage_based_status(self, token: str) -> UsageBasedStatus: ...


class UsageSnapshot(BaseModel):
    """Everything fetched during one cycle."""

    model_config = ConfigDict(frozen=True)

    premium: PremiumRequestUsage
    usage_based: UsageBasedStatus
    current_period: BillingPeriod
    current_usage: MonthlyUsage
    last_period: BillingPeriod
    last_usage: MonthlyUsage


class StatsService(PeriodicTask):
    """Fetch, aggregate and render usage stats once per cycle.

    Errors never escape ``execute``: every outcome is reported to the
    cooldown controller and rendered as a bundle.
    """

    def __init__(
        self,
        source: BillingDataSource,
        token_provider: TokenProvider,
        controller: PollingCooldownController,
        display: DisplaySink,
        unknown_models: UnknownModelTracker | None = None,
        aggregator: MonthlyUsageAggregator | None = None,
        billing_cycle_day: int = DEFAULT_BILLING_CYCLE_DAY,
        max_percent_decimals: int = DEFAULT_MAX_PERCENT_DECIMALS,
        today: Callable[[], date] = date.today,
    ):
        """Initialize the stats service.

        Args:
            source: Billing data client
            token_provider: Session token source
            controller: Cooldown controller receiving cycle outcomes
            display: Sink for computed bundles
            unknown_models: Tracker for unresolved model names
            aggregator: Monthly usage aggregator
            billing_cycle_day: Day of month on which periods start
            max_percent_decimals: Precision limit for formatted percentages
            today: Date provider used to pick billing periods
        """
        self.source = source
        self.token_provider = token_provider
        self.controller = controller
        self.display = display
        self.unknown_models = unknown_models or UnknownModelTracker()
        self.aggregator = aggregator or MonthlyUsageAggregator()
        self.billing_cycle_day = billing_cycle_day
        self.max_percent_decimals = max_percent_decimals
        self._today = today

    async def on_start(self) -> None:
        await self.source.open()
        logger.info("Stats service started")

    async def on_stop(self) -> None:
        await self.source.close()
        logger.info("Stats service stopped")

    async def on_cooldown_tick(self, remaining_seconds: float) -> None:
        await self._render(
            StatsBundle.suspended(
                retry_in_seconds=remaining_seconds,
                consecutive_error_count=self.controller.consecutive_error_count,
            )
        )

    async def execute(self) -> None:
        """Run one refresh cycle."""
        logger.info("Refreshing usage stats")

        token = await self._get_token()
        if not token:
            await self._render(StatsBundle.no_token())
            return

        try:
            snapshot = await self._fetch_with_auth_retry(token)
            bundle = self.build_bundle(snapshot)
        except Exception as e:
            await self._handle_failure(e)
            return

        self.controller.record_success()
        await self._report_unknown_models(bundle)
        await self._render(bundle)
        logger.info("Usage stats refreshed")

    def build_bundle(self, snapshot: UsageSnapshot) -> StatsBundle:
        """Compute percentages and pick the period to show.

        The current period is shown when it has items, otherwise the last one.
        """
        if snapshot.current_usage.items:
            active_period, active_usage = snapshot.current_period, snapshot.current_usage
            is_fallback = False
        else:
            logger.info(
                f"No usage items for {snapshot.current_period}, "
                f"showing {snapshot.last_period}"
            )
            active_period, active_usage = snapshot.last_period, snapshot.last_usage
            is_fallback = True

        premium = snapshot.premium
        usage_based = snapshot.usage_based
        usage_percent = usage_based_utilization(
            active_usage.actual_total_cost_cents,
            usage_based.limit,
            enabled=usage_based.is_enabled,
        )

        return StatsBundle(
            state=StatsState.OK,
            premium=premium,
            premium_percent=premium_utilization(premium.current, premium.limit),
            premium_remaining_percent=remaining_percent(
                premium.current, premium.limit, self.max_percent_decimals
            ),
            usage_based=usage_based,
            active_period=active_period,
            is_fallback_period=is_fallback,
            active_usage=active_usage,
            usage_based_percent=usage_percent,
            usage_based_percent_display=format_percentage(
                usage_percent, self.max_percent_decimals
            ),
        )

    async def fetch_snapshot(self, token: str) -> UsageSnapshot:
        """Fetch quota, status and both periods concurrently.

        All fetches finish before the first error is raised. An auth error
        takes precedence so the caller can retry with a fresh token.
        """
        current, last = billing_periods(self._today(), self.billing_cycle_day)
        results = await asyncio.gather(
            self.source.fetch_premium_quota(token),
            self._fetch_usage_based_status(token),
            self.aggregator.fetch_and_aggregate(
                self.source, token, current.month, current.year
            ),
            self.aggregator.fetch_and_aggregate(
                self.source, token, last.month, last.year
            ),
            return_exceptions=True,
        )

        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            auth_errors = [e for e in errors if isinstance(e, BillingAuthError)]
            raise (auth_errors or errors)[0]

        premium, usage_based, current_usage, last_usage = results
        return UsageSnapshot(
            premium=premium,
            usage_based=usage_based,
            current_period=current,
            current_usage=current_usage,
            last_period=last,
            last_usage=last_usage,
        )

    async def _fetch_with_auth_retry(self, token: str) -> UsageSnapshot:
        try:
            return await self.fetch_snapshot(token)
        except BillingAuthError as e:
            logger.warning(f"Authentication failed ({e}), retrying with a fresh token")
            fresh_token = await self._get_token()
            if not fresh_token:
                raise
            return await self.fetch_snapshot(fresh_token)

    async def _fetch_usage_based_status(self, token: str) -> UsageBasedStatus:
        """Fetch usage-based status, treating non-auth failures as disabled."""
        try:
            return await self.source.fetch_usage_based_status(token)
        except BillingAuthError:
            raise
        except BillingError as e:
            logger.warning(f"Could not fetch usage-based status, assuming off: {e}")
            return UsageBasedStatus(is_enabled=False)

    async def _get_token(self) -> str | None:
        try:
            return await self.token_provider.get_token()
        except Exception as e:
            logger.error(f"Error reading session token: {e}")
            return None

    async def _handle_failure(self, error: Exception) -> None:
        state = self.controller.record_failure()
        logger.error(f"Error refreshing stats: {error}")

        if self.controller.phase == PollingPhase.COOLDOWN:
            bundle = StatsBundle.suspended(
                retry_in_seconds=self.controller.cooldown_remaining(),
                consecutive_error_count=state.consecutive_error_count,
            )
        else:
            bundle = StatsBundle.failed(
                message=str(error) or type(error).__name__,
                consecutive_error_count=state.consecutive_error_count,
            )
        await self._render(bundle)

    async def _report_unknown_models(self, bundle: StatsBundle) -> None:
        """Report names the parser could not resolve in the period shown."""
        if bundle.active_usage is not None:
            self.unknown_models.record_many(bundle.active_usage.unknown_model_fragments)
        await self.unknown_models.flush()

    async def _render(self, bundle: StatsBundle) -> None:
        try:
            await self.display.render(bundle)
        except Exception as e:
            logger.error(f"Error rendering {bundle.state.value} stats: {e}")
