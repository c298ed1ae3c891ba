"""Global pytest configuration and fixtures."""

import json
from collections.abc import Callable
from datetime import date
from logging import Logger
from typing import Any

import pytest
from pytest_httpserver import HTTPServer
from werkzeug.wrappers import Request, Response

from billing.client import CursorBillingClient
from billing.exceptions import BillingAuthError
from core import setup_test_logging
from core.models.domain.usage import (
    MonthlyInvoice,
    PremiumRequestUsage,
    RawBillingItem,
    UsageBasedStatus,
)

VALID_TOKEN = "user_01ABC%3A%3Asecret-session"

USAGE_RESPONSE: dict[str, Any] = {
    "gpt-4": {"numRequests": 150, "maxRequestUsage": 500, "numTokens": 123456},
    "gpt-3.5-turbo": {"numRequests": 3, "maxRequestUsage": None},
    "startOfMonth": "2025-06-03T10:00:00.000Z",
}

INVOICE_RESPONSES: dict[tuple[int, int], dict[str, Any]] = {
    (6, 2025): {
        "items": [
            {
                "description": "12 discounted claude-3.5-sonnet requests beyond limit",
                "cents": 1200,
            },
            {
                "description": "40 token-based usage calls to claude-4-sonnet-thinking, "
                "totalling: $1.85",
                "cents": 185,
            },
            {"description": "Mid-month usage paid for June", "cents": -500},
            {"description": "Pro subscription"},
        ],
        "hasUnpaidMidMonthInvoice": True,
    },
    (5, 2025): {
        "items": [{"description": "20 gpt-4 requests beyond limit", "cents": 800}],
        "hasUnpaidMidMonthInvoice": False,
    },
}


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Setup test logging for all tests."""
    setup_test_logging()


@pytest.fixture(scope="function")
def logger() -> Logger:
    """Provide a logger instance for tests."""
    from core import get_logger

    return get_logger("test")


@pytest.fixture
def mock_billing_server(httpserver: HTTPServer) -> HTTPServer:
    """Set up a mock billing dashboard that accepts VALID_TOKEN only."""

    def is_authorized(request: Request) -> bool:
        return request.headers.get("Cookie") == (
            f"WorkosCursorSessionToken={VALID_TOKEN}"
        )

    def unauthorized() -> Response:
        return Response(
            json.dumps({"error": "unauthorized"}),
            status=401,
            headers={"Content-Type": "application/json"},
        )

    def json_response(data: Any) -> Response:
        return Response(
            json.dumps(data),
            status=200,
            headers={"Content-Type": "application/json"},
        )

    def usage_handler(request: Request) -> Response:
        if not is_authorized(request):
            return unauthorized()
        return json_response(USAGE_RESPONSE)

    def invoice_handler(request: Request) -> Response:
        if not is_authorized(request):
            return unauthorized()
        body = json.loads(request.data.decode("utf-8"))
        data = INVOICE_RESPONSES.get((body["month"], body["year"]), {})
        return json_response(data)

    def usage_based_handler(request: Request) -> Response:
        if not is_authorized(request):
            return unauthorized()
        return json_response({"usageBasedPremiumRequests": True})

    def hard_limit_handler(request: Request) -> Response:
        if not is_authorized(request):
            return unauthorized()
        return json_response({"hardLimit": 50, "noUsageBasedAllowed": False})

    httpserver.expect_request("/api/usage", method="GET").respond_with_handler(
        usage_handler
    )
    httpserver.expect_request(
        "/api/dashboard/get-monthly-invoice", method="POST"
    ).respond_with_handler(invoice_handler)
    httpserver.expect_request(
        "/api/dashboard/get-usage-based-premium-requests", method="POST"
    ).respond_with_handler(usage_based_handler)
    httpserver.expect_request(
        "/api/dashboard/get-hard-limit", method="POST"
    ).respond_with_handler(hard_limit_handler)

    return httpserver


@pytest.fixture
def billing_base_url(mock_billing_server: HTTPServer) -> str:
    """Base URL of the mock billing dashboard."""
    return f"http://{mock_billing_server.host}:{mock_billing_server.port}/api"


@pytest.fixture
def billing_client(billing_base_url: str) -> CursorBillingClient:
    """Provide an unopened billing client pointed at the mock server."""
    return CursorBillingClient(base_url=billing_base_url, timeout=5.0)


class FakeBillingSource:
    """In-memory billing data source with scriptable failures."""

    def __init__(
        self,
        invoices: dict[tuple[int, int], MonthlyInvoice] | None = None,
        premium: PremiumRequestUsage | None = None,
        usage_based: UsageBasedStatus | None = None,
    ):
        self.invoices = invoices or {}
        self.premium = premium or PremiumRequestUsage(current=150, limit=500)
        self.usage_based = usage_based or UsageBasedStatus(is_enabled=True, limit=50)
        self.errors: list[Exception] = []
        self.rejected_tokens: set[str] = set()
        self.usage_based_error: Exception | None = None
        self.tokens_seen: list[str] = []
        self.opened = False
        self.closed = False

    async def open(self) -> None:
        self.opened = True

    async def close(self) -> None:
        self.closed = True

    def _maybe_fail(self, token: str) -> None:
        self.tokens_seen.append(token)
        if token in self.rejected_tokens:
            raise BillingAuthError("Authentication failed", status_code=401)
        if self.errors:
            raise self.errors[0]

    async def fetch_monthly_invoice(
        self, token: str, month: int, year: int
    ) -> MonthlyInvoice:
        self._maybe_fail(token)
        return self.invoices.get((month, year), MonthlyInvoice())

    async def fetch_premium_quota(self, token: str) -> PremiumRequestUsage:
        self._maybe_fail(token)
        return self.premium

    async def fetch_usage_based_status(self, token: str) -> UsageBasedStatus:
        self._maybe_fail(token)
        if self.usage_based_error:
            raise self.usage_based_error
        return self.usage_based


@pytest.fixture
def fake_source() -> FakeBillingSource:
    """Billing source with June and May 2025 invoices."""
    return FakeBillingSource(
        invoices={
            (6, 2025): MonthlyInvoice(
                items=[
                    RawBillingItem(
                        description="10 claude-3.7-sonnet requests beyond limit",
                        cents=400,
                    ),
                    RawBillingItem(description="5 mystery-model requests", cents=100),
                ]
            ),
            (5, 2025): MonthlyInvoice(
                items=[
                    RawBillingItem(description="20 gpt-4 requests", cents=800),
                ]
            ),
        }
    )


@pytest.fixture
def june_15() -> Callable[[], date]:
    """Date provider fixed inside the June 2025 billing period."""
    return lambda: date(2025, 6, 15)
