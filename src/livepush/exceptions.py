"""Custom exceptions for livepush."""

from __future__ import annotations


class LivePushError(Exception):
    """Base exception for all livepush errors."""


class UpstreamError(LivePushError):
    """Base for failures talking to the results provider."""


class UpstreamConnectionError(UpstreamError):
    """Raised when the provider cannot be reached."""


class UpstreamTimeoutError(UpstreamError):
    """Raised when a request to the provider times out."""


class UpstreamAPIError(UpstreamError):
    """Raised when the provider returns an error response (4xx/5xx)."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}")


class UpstreamDecodeError(UpstreamError):
    """Raised when a response body cannot be parsed or validated."""


class InvalidQueryError(LivePushError):
    """Raised for an unsupported query kind or missing query parameters."""


class UnknownStatusError(LivePushError, ValueError):
    """Raised when the provider reports a runner status code we do not know."""

    def __init__(self, code: object) -> None:
        self.code = code
        super().__init__(f"Unknown runner status code: {code!r}")


class StoreError(LivePushError):
    """Raised by a cache or subscription store when storage is unavailable."""


class DeliveryError(LivePushError):
    """Raised by a push gateway when a notification could not be delivered."""

    def __init__(self, token: str, message: str) -> None:
        self.token = token
        self.message = message
        super().__init__(f"Delivery to {token[:10]}... failed: {message}")


class InvalidTokenError(DeliveryError):
    """Raised when the gateway reports the device token as expired or unknown."""
