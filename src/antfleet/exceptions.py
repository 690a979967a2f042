"""Custom exception hierarchy for antfleet."""

from __future__ import annotations


class AntError(Exception):
    """Base exception for all antfleet errors."""


class AntConfigError(AntError):
    """Invalid or missing configuration."""


class AntNotConnectedError(AntError):
    """An API call was attempted before a session was established."""


class AntNetworkError(AntError):
    """Transport-level failure (connection refused, DNS, timeout)."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class AntServerError(AntError):
    """The server answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class AntAuthenticationError(AntServerError):
    """Login rejected or token no longer accepted (HTTP 401)."""


class AntParseError(AntError):
    """Response body was not JSON or did not have the expected shape."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class AntStorageError(AntError):
    """Local route file could not be read or written."""

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)
