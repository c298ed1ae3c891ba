"""Custom exceptions for the billing client."""


class BillingError(Exception):
    """Base exception for billing fetch failures."""

    pass


class BillingAPIError(BillingError):
    """Raised when the dashboard API request fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class BillingAuthError(BillingAPIError):
    """Raised when the session token is rejected (401/403)."""

    pass


class BillingTimeoutError(BillingError):
    """Raised when a dashboard API request times out."""

    pass


class BillingResponseError(BillingError):
    """Raised when a response is not JSON or lacks expected fields."""

    pass
