"""
Custom exceptions for message actions.

Validation errors are raised before any network call. Transport, server
and deserialization errors come from the request executor and propagate
unchanged through the pagination loop.
"""

from typing import Any


class MessageActionsError(Exception):
    """Base exception for all message action errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(MessageActionsError):
    """Raised when a required field is missing or malformed."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Validation failed for {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value


class KeysetNotFoundError(ValidationError):
    """Raised when no keyset is registered under a name and there is no default."""

    def __init__(self, name: str | None = None):
        if name is None:
            super().__init__("keyset", "no default keyset configured")
        else:
            super().__init__("keyset", f"no keyset named {name!r}", value=name)
        self.name = name


class TransportError(MessageActionsError):
    """Raised when the request never produced a response (network, timeout)."""

    def __init__(self, endpoint: str, cause: Exception | None = None):
        details = {"endpoint": endpoint}
        if cause:
            details["cause"] = str(cause) or type(cause).__name__
        super().__init__(f"Request failed for {endpoint}", details)
        self.endpoint = endpoint
        self.cause = cause


class ServerError(MessageActionsError):
    """Raised when the service answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str | None = None, body: Any = None):
        details: dict[str, Any] = {"status_code": status_code}
        if message:
            details["server_message"] = message
        super().__init__(
            f"Server returned {status_code}" + (f": {message}" if message else ""),
            details,
        )
        self.status_code = status_code
        self.server_message = message
        self.body = body


class AuthorizationError(ServerError):
    """The keyset is not permitted to perform the request (HTTP 403)."""


class RateLimitError(ServerError):
    """The service throttled the request (HTTP 429)."""


class DeserializationError(MessageActionsError):
    """Raised when a response body cannot be turned into a result."""

    def __init__(self, reason: str, body: Any = None):
        super().__init__(f"Malformed response: {reason}", {"reason": reason})
        self.reason = reason
        self.body = body


class PaginationLimitError(MessageActionsError):
    """Raised when a fetch still has more pages after max_pages round trips."""

    def __init__(self, channel: str, max_pages: int):
        super().__init__(
            f"Fetching actions for {channel} did not finish within {max_pages} pages",
            {"channel": channel, "max_pages": max_pages},
        )
        self.channel = channel
        self.max_pages = max_pages
