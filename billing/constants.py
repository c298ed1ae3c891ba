"""Constants for the billing dashboard client."""

from typing import Final

# Dashboard API
BILLING_API_BASE_URL: Final[str] = "https://cursor.com/api"
USAGE_PATH: Final[str] = "/usage"
MONTHLY_INVOICE_PATH: Final[str] = "/dashboard/get-monthly-invoice"
USAGE_BASED_STATUS_PATH: Final[str] = "/dashboard/get-usage-based-premium-requests"
HARD_LIMIT_PATH: Final[str] = "/dashboard/get-hard-limit"

# Premium quota entry in the usage response
PREMIUM_MODEL_KEY: Final[str] = "gpt-4"

# Session token handling
SESSION_COOKIE_NAME: Final[str] = "WorkosCursorSessionToken"
TOKEN_USER_SEPARATOR: Final[str] = "%3A%3A"

# HTTP constants
DEFAULT_TIMEOUT = 30.0
AUTH_ERROR_STATUSES: Final[frozenset[int]] = frozenset({401, 403})
DEFAULT_USER_AGENT: Final[str] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
BASE_HEADERS: Final[dict[str, str]] = {
    "Accept": "application/json, text/plain, */*",
    "Origin": "https://cursor.com",
    "Referer": "https://cursor.com/",
    "User-Agent": DEFAULT_USER_AGENT,
}
