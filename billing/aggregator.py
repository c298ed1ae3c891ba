"""Monthly usage aggregation over parsed billing lines."""

from collections.abc import Iterable
from typing import Protocol

from core.log import get_logger
from core.models.domain.usage import (
    CreditLine,
    MonthlyInvoice,
    MonthlyUsage,
    ParsedLine,
    RawBillingItem,
    UsageLineItem,
)

from .parser import BillingItemParser

logger = get_logger(__name__)


class InvoiceSource(Protocol):
    """Anything that can fetch the raw invoice for a month."""

    async def fetch_monthly_invoice(
        self, token: str, month: int, year: int
    ) -> MonthlyInvoice: ...


class MonthlyUsageAggregator:
    """Build MonthlyUsage summaries from raw billing lines."""

    def __init__(self, parser: BillingItemParser | None = None):
        self.parser = parser or BillingItemParser()

    def aggregate(
        self,
        raw_items: Iterable[RawBillingItem],
        has_unpaid_mid_month_invoice: bool,
        month: int,
        year: int,
    ) -> MonthlyUsage:
        """Aggregate raw billing lines for one month.

        Items keep provider order. Credit lines are summed into the mid-month
        payment and never become items.

        Args:
            raw_items: Raw lines in provider order
            has_unpaid_mid_month_invoice: Provider flag passed through
            month: Billing month (1-12)
            year: Billing year

        Returns:
            Immutable MonthlyUsage summary
        """
        items: list[UsageLineItem] = []
        unknown_fragments: list[str] = []
        mid_month_payment_cents = 0.0

        for raw in raw_items:
            result = self.parser.parse(raw.description, raw.cents)
            if isinstance(result, CreditLine):
                mid_month_payment_cents += result.amount_cents
            elif isinstance(result, ParsedLine):
                items.append(result.item)
                if result.unknown_fragment:
                    unknown_fragments.append(result.unknown_fragment)

        usage = MonthlyUsage(
            month=month,
            year=year,
            items=tuple(items),
            mid_month_payment_cents=mid_month_payment_cents,
            has_unpaid_mid_month_invoice=has_unpaid_mid_month_invoice,
            unknown_model_fragments=tuple(unknown_fragments),
        )
        logger.debug(
            f"Aggregated {len(items)} items for {month:02d}/{year}: "
            f"total={usage.actual_total_cost_cents}c "
            f"mid_month_paid={mid_month_payment_cents}c"
        )
        return usage

    async def fetch_and_aggregate(
        self, source: InvoiceSource, token: str, month: int, year: int
    ) -> MonthlyUsage:
        """Fetch one month's invoice and aggregate it.

        Fetch errors propagate unchanged; retrying is the caller's decision.
        """
        invoice = await source.fetch_monthly_invoice(token, month, year)
        return self.aggregate(
            invoice.items, invoice.has_unpaid_mid_month_invoice, month, year
        )
