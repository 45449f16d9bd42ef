"""Errors that cross the chat client boundary.

Fragment-level parse failures in streaming mode are not errors: they are
reported as ``Incomplete`` line results and recovered by the decoder.
"""

from __future__ import annotations


class ChatError(Exception):
    """Base class for all chat client failures."""


class ConfigurationError(ChatError):
    """Settings are missing or invalid.  Raised before any request."""


class TransportError(ChatError):
    """The upstream call failed at the HTTP level."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason

    @classmethod
    def from_status(cls, status_code: int, reason: str) -> TransportError:
        return cls(
            f"HTTP error with the status: {status_code} {reason}".rstrip(),
            status_code=status_code,
            reason=reason,
        )


class ChatTimeoutError(ChatError):
    """The call did not complete within its deadline."""


class DecodeError(ChatError):
    """A buffered response body was not the expected JSON shape."""
