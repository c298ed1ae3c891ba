"""Billing dashboard API client."""

from datetime import datetime
from typing import Any

import httpx
from pydantic import ValidationError

from core.log import get_logger
from core.models.domain.usage import (
    MonthlyInvoice,
    PremiumRequestUsage,
    RawBillingItem,
    UsageBasedStatus,
)
from .constants import (
    AUTH_ERROR_STATUSES,
    BASE_HEADERS,
    BILLING_API_BASE_URL,
    DEFAULT_TIMEOUT,
    HARD_LIMIT_PATH,
    MONTHLY_INVOICE_PATH,
    PREMIUM_MODEL_KEY,
    SESSION_COOKIE_NAME,
    TOKEN_USER_SEPARATOR,
    USAGE_BASED_STATUS_PATH,
    USAGE_PATH,
)
from .exceptions import (
    BillingAPIError,
    BillingAuthError,
    BillingResponseError,
    BillingTimeoutError,
)

logger = get_logger(__name__)


def user_id_from_token(token: str) -> str:
    """Extract the user id prefix from a session token."""
    return token.split(TOKEN_USER_SEPARATOR)[0]


class CursorBillingClient:
    """Client for the usage and invoice endpoints of the billing dashboard."""

    def __init__(
        self,
        base_url: str = BILLING_API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize billing client.

        Args:
            base_url: Base URL of the dashboard API
            timeout: Request timeout in seconds
            transport: Optional custom transport for the HTTP client
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "CursorBillingClient":
        """Async context manager entry."""
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def open(self) -> None:
        """Create the underlying HTTP client if needed."""
        if self.client is None:
            self.client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                headers=BASE_HEADERS,
                transport=self.transport,
            )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None

    async def fetch_monthly_invoice(
        self, token: str, month: int, year: int
    ) -> MonthlyInvoice:
        """Fetch the raw invoice lines for one billing month.

        Args:
            token: Dashboard session token
            month: Billing month (1-12)
            year: Billing year

        Returns:
            MonthlyInvoice with raw lines in provider order

        Raises:
            BillingAuthError: If the token is rejected
            BillingAPIError: If the request fails
            BillingTimeoutError: If the request times out
            BillingResponseError: If the response has an unexpected shape
        """
        logger.info(f"Fetching invoice for {month:02d}/{year}")
        data = await self._request(
            "POST",
            MONTHLY_INVOICE_PATH,
            token,
            json={"month": month, "year": year, "includeUsageEvents": False},
        )
        body = self._expect_object(data, MONTHLY_INVOICE_PATH)

        raw_items = body.get("items") or []
        if not isinstance(raw_items, list):
            raise BillingResponseError("Invoice items is not a list")

        items: list[RawBillingItem] = []
        for entry in raw_items:
            item = self._parse_invoice_item(entry)
            if item is not None:
                items.append(item)

        return MonthlyInvoice(
            items=items,
            has_unpaid_mid_month_invoice=bool(body.get("hasUnpaidMidMonthInvoice")),
        )

    async def fetch_premium_quota(self, token: str) -> PremiumRequestUsage:
        """Fetch the premium request quota snapshot.

        Args:
            token: Dashboard session token

        Returns:
            PremiumRequestUsage with limit 0 when the dashboard reports none

        Raises:
            BillingResponseError: If the quota entry is missing
        """
        data = await self._request(
            "GET",
            USAGE_PATH,
            token,
            params={"user": user_id_from_token(token)},
        )
        body = self._expect_object(data, USAGE_PATH)

        quota = body.get(PREMIUM_MODEL_KEY)
        if not isinstance(quota, dict) or "numRequests" not in quota:
            raise BillingResponseError(
                f"Usage response has no {PREMIUM_MODEL_KEY} quota entry"
            )

        try:
            return PremiumRequestUsage(
                current=quota.get("numRequests") or 0,
                limit=quota.get("maxRequestUsage") or 0,
                period_start=self._parse_timestamp(body.get("startOfMonth")),
            )
        except ValidationError as e:
            raise BillingResponseError(f"Malformed quota entry: {e}")

    async def fetch_usage_based_status(self, token: str) -> UsageBasedStatus:
        """Fetch whether usage-based pricing is enabled and its hard limit.

        Args:
            token: Dashboard session token

        Returns:
            UsageBasedStatus with the limit in dollars when one is set
        """
        status_data = self._expect_object(
            await self._request("POST", USAGE_BASED_STATUS_PATH, token, json={}),
            USAGE_BASED_STATUS_PATH,
        )
        limit_data = self._expect_object(
            await self._request("POST", HARD_LIMIT_PATH, token, json={}),
            HARD_LIMIT_PATH,
        )

        is_enabled = status_data.get("usageBasedPremiumRequests") is True
        hard_limit = limit_data.get("hardLimit")
        if hard_limit is not None and not isinstance(hard_limit, (int, float)):
            raise BillingResponseError(f"Invalid hard limit: {hard_limit!r}")

        logger.debug(
            f"Usage-based pricing {'enabled' if is_enabled else 'disabled'}, "
            f"limit={hard_limit}"
        )
        return UsageBasedStatus(is_enabled=is_enabled, limit=hard_limit)

    async def _request(
        self,
        method: str,
        path: str,
        token: str,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Send an authenticated request and decode the JSON body."""
        if not self.client:
            raise RuntimeError("Client not initialized. Use async context manager.")

        headers = {"Cookie": f"{SESSION_COOKIE_NAME}={token}"}
        if json is not None:
            headers["Content-Type"] = "application/json"

        try:
            response = await self.client.request(
                method, path, json=json, params=params, headers=headers
            )
            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            if status_code in AUTH_ERROR_STATUSES:
                logger.warning(f"Session token rejected by {path} ({status_code})")
                raise BillingAuthError(
                    f"HTTP {status_code}: authentication failed", status_code
                )
            logger.error(f"HTTP error from {path}: {e}")
            raise BillingAPIError(f"HTTP {status_code}: {e}", status_code)

        except httpx.TimeoutException:
            logger.error(f"Timeout requesting {path}")
            raise BillingTimeoutError(f"Timeout requesting {path}")

        except httpx.RequestError as e:
            logger.error(f"Request error for {path}: {e}")
            raise BillingAPIError(f"Request failed: {e}")

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from {path}: {e}")
            raise BillingResponseError(f"Invalid JSON from {path}")

    @staticmethod
    def _parse_invoice_item(entry: Any) -> RawBillingItem | None:
        """Decode one invoice line, skipping it when malformed."""
        if not isinstance(entry, dict):
            logger.warning(f"Skipping malformed invoice item: {entry!r}")
            return None
        try:
            return RawBillingItem(
                description=str(entry.get("description") or ""),
                cents=entry.get("cents"),
            )
        except ValidationError as e:
            logger.warning(f"Skipping invoice item with invalid cents: {entry!r} ({e})")
            return None

    @staticmethod
    def _expect_object(data: Any, path: str) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise BillingResponseError(f"Expected a JSON object from {path}")
        return data

    @staticmethod
    def _parse_timestamp(value: Any) -> datetime | None:
        if not isinstance(value, str) or not value:
            return None
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Unparseable period start: {value}")
            return None
