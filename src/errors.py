"""Error taxonomy shared by the inbound and outbound Telegram pipelines."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.gateway.transport import HTTPTrace


class GatewayError(Exception):
    """Base class for every error raised by the gateway core."""

    pass


class IgnoredNoMessage(GatewayError):
    """Raised when a webhook update carries no message. Not a failure."""

    def __init__(self, reason: str = "Ignoring request, no message") -> None:
        super().__init__(reason)
        self.reason = reason


class ValidationError(GatewayError):
    """Raised when a webhook payload is malformed or misses required fields."""

    pass


class AuthError(GatewayError):
    """Raised when a channel has no usable auth token configured."""

    pass


class ProviderError(GatewayError):
    """Raised when the provider answers without the expected success marker or field."""

    def __init__(self, message: str, body: str = "") -> None:
        super().__init__(message)
        self.body = body


class TransportError(GatewayError):
    """Raised on network failures or non-2xx answers from the provider.

    ``trace`` holds whatever part of the exchange was captured so callers
    can still log the attempt.
    """

    def __init__(self, message: str, trace: HTTPTrace | None = None) -> None:
        super().__init__(message)
        self.trace = trace


class UnsupportedMediaType(GatewayError):
    """Raised for outbound attachments whose media type has no send method."""

    def __init__(self, media_type: str) -> None:
        super().__init__(f"unknown media type: {media_type}")
        self.media_type = media_type


class MediaResolutionError(GatewayError):
    """Raised when an inbound file handle could not be resolved to a URL."""

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"error retrieving media: {cause}")
        self.cause = cause


class ChannelNotFoundError(GatewayError):
    """Raised when no channel is registered under the requested uuid."""

    pass
