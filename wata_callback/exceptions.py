"""
Error taxonomy for the callback pipeline.

Validation failures are raised inside the validator and converted into a
rejected CallbackState at its boundary; nothing from the crypto or HTTP
libraries is allowed past that point.
"""
from typing import Optional


class WebhookError(Exception):
    """Base class for all service errors."""


class ConfigurationError(WebhookError):
    """A required credential or setting is missing."""


class NetworkError(WebhookError):
    """An outbound call to the gateway failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(WebhookError):
    """A callback failed one of the validation steps."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class IntegrityError(ValidationError):
    """Signature missing or mismatched. May indicate a forged callback."""
