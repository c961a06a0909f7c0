"""Shared exception definitions used across the PixelShelf backend."""


class BillingProviderError(RuntimeError):
    """Raised when the billing provider rejects a request or cannot be reached."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class WebhookSignatureError(ValueError):
    """Raised when a billing webhook payload fails signature verification."""
