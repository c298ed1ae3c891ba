"""Demo script for billing line parsing and percentage formatting."""

from billing import BillingItemParser, MonthlyUsageAggregator
from core import setup_logging
from core.models.domain.usage import ParsedLine, RawBillingItem
from core.percentages import premium_utilization, remaining_percent

SAMPLE_LINES = [
    RawBillingItem(
        description="12 discounted claude-3.5-sonnet requests beyond limit",
        cents=1200,
    ),
    RawBillingItem(
        description="40 token-based usage calls to claude-4-sonnet-thinking, "
        "totalling: $1.85",
        cents=185,
    ),
    RawBillingItem(description="7 extra fast premium requests (Haiku)", cents=28),
    RawBillingItem(description="3 tool calls beyond limit", cents=12),
    RawBillingItem(description="5 shiny-new-model requests", cents=20),
    RawBillingItem(description="Mid-month usage paid for June", cents=-1000),
    RawBillingItem(description="Pro subscription", cents=None),
]


def demo_billing_parser() -> None:
    """Demonstrate parsing, aggregation and percentages."""
    setup_logging()

    print("🚀 Billing Parser Demo")
    print("=" * 50)

    parser = BillingItemParser()
    for raw in SAMPLE_LINES:
        result = parser.parse(raw.description, raw.cents)
        if isinstance(result, ParsedLine):
            item = result.item
            print(
                f"✅ {item.model_name:<28} {item.request_count:>4} req "
                f"@ {item.unit_cost_cents:.3f}c"
                f"{' (discounted)' if item.is_discounted else ''}"
            )
        else:
            print(f"➖ {type(result).__name__}: {raw.description}")

    usage = MonthlyUsageAggregator(parser).aggregate(
        SAMPLE_LINES, has_unpaid_mid_month_invoice=False, month=6, year=2025
    )
    print(f"\n💰 Total: {usage.actual_total_cost_cents}c")
    print(f"💳 Mid-month paid: {usage.mid_month_payment_cents}c")
    print(f"🧾 Unpaid: {usage.unpaid_cents}c")
    print(f"❓ Unknown models: {', '.join(usage.unknown_model_fragments) or '-'}")

    print(f"\n📊 Premium 67/201: {premium_utilization(67, 201)}% used, "
          f"{remaining_percent(67, 201)}% left")


if __name__ == "__main__":
    demo_billing_parser()
