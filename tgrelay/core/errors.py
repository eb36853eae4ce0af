"""Exception taxonomy for tgrelay.

Every error raised by the relay derives from ``RelayError`` so the top-level
update handler can contain failures with a single ``except`` clause.

How each kind is treated
------------------------
``ValidationError``
    Malformed input to a public operation.  Rejected synchronously, never
    retried.
``SignatureMismatch``
    An identity tag is present but its signature does not verify.  Raised
    only inside the tag codec, which turns it into an "unresolvable" result.
``ApiTimeout`` / ``ApiRejected`` / ``ApiMalformedResponse``
    Remote call failures.  Timeouts and transient rejections are retried by
    the API client; the final failure is surfaced.
``StorageCorrupt``
    A persisted blob is not JSON of the expected shape.  Store reads degrade
    to an empty collection.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for every tgrelay error."""


class ConfigurationError(RelayError):
    """Raised when required configuration is missing or malformed."""


class ValidationError(RelayError, ValueError):
    """Raised when a public operation receives malformed input."""


class SignatureMismatch(RelayError):
    """Raised when an embedded identity signature fails verification.

    Indicates tampering or a secret rotation, not a bug.
    """

    def __init__(self, user_id: int, signature: str) -> None:
        super().__init__(f"Signature mismatch for user {user_id}")
        self.user_id = user_id
        self.signature = signature


class ApiError(RelayError):
    """Base class for remote API failures."""

    def __init__(self, method: str, message: str) -> None:
        super().__init__(message)
        self.method = method


class ApiTimeout(ApiError):
    """Raised when a remote call exceeds its time budget."""

    def __init__(self, method: str, timeout_seconds: float) -> None:
        super().__init__(
            method, f"Telegram API timeout for {method} after {timeout_seconds}s"
        )
        self.timeout_seconds = timeout_seconds


class ApiRejected(ApiError):
    """Raised when the remote API answers with a non-success HTTP status."""

    def __init__(
        self,
        method: str,
        status_code: int,
        description: str = "",
        *,
        retryable: bool = False,
    ) -> None:
        super().__init__(
            method,
            f"Telegram API error: {status_code} on {method}"
            + (f" - {description}" if description else ""),
        )
        self.status_code = status_code
        self.description = description
        self.retryable = retryable


class ApiMalformedResponse(ApiError):
    """Raised when a response body lacks the expected top-level ``ok`` field."""


class StorageCorrupt(RelayError):
    """Raised when a stored blob is not valid JSON of the expected shape."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Corrupt data under {key!r}: {reason}")
        self.key = key
        self.reason = reason

