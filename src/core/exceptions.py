"""
Exceptions raised by vendor integrations.

Integration failures are caught per integration by the callers and reported
in the response; none of these should surface as a 500 on their own.
"""


class IntegrationError(Exception):
    """Base class for failures talking to an external service."""


class AuthenticationError(IntegrationError):
    """Missing OAuth credentials or a rejected token exchange."""


class VendorAPIError(IntegrationError):
    """Non-2xx or unreadable response from a vendor API."""

    def __init__(self, vendor: str, status_code: int | None, message: str):
        self.vendor = vendor
        self.status_code = status_code
        super().__init__(message)


class GoalNotFoundError(IntegrationError):
    """No campaign goal matches the requested call name and integration."""


class GoalDiscoveryTimeout(IntegrationError):
    """Goal discovery did not finish within its time budget."""


class WebhookSignatureError(Exception):
    """Raised when webhook signature verification fails."""
