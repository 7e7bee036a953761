"""Error taxonomy surfaced by the Consul client.

Every failure a caller can observe is a ConsulError subclass. Errors are
raised into the awaiting caller unmodified; nothing here retries.
"""

from __future__ import annotations


class ConsulError(Exception):
    """Base class for all client errors."""


class NotFound(ConsulError):
    """The requested resource does not exist (HTTP 404)."""

    def __init__(self, message: str = "not found") -> None:
        super().__init__(message)


class ClientError(ConsulError):
    """Consul returned a 4xx response other than 404."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ServerError(ConsulError):
    """Consul returned a 5xx response."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TransportFailure(ConsulError):
    """The underlying transport raised instead of producing a response."""

    def __init__(self, inner: BaseException) -> None:
        super().__init__(f"transport failed: {inner!r}")
        self.inner = inner


class UriError(ConsulError):
    """Scheme, authority and path could not be composed into a valid URI."""


class DecodeError(ConsulError):
    """A successful response body did not match the expected shape."""


class EncodingError(ConsulError):
    """An error response body was not valid UTF-8."""


class SpawnFailed(ConsulError):
    """The multiplexer's dispatch loop could not be started or is gone."""
