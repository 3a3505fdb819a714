"""
Failure taxonomy for umbramol.

Per-row failures (parse, malformed buffer, serialization) are isolated to
the row that produced them; catalog failures are fatal at import time.
"""
from enum import Enum
from typing import Any, NamedTuple, Optional


class UmbramolError(Exception):
    """Base class for all umbramol failures."""


class ParseError(UmbramolError, ValueError):
    """Input text does not describe a valid molecule."""

    def __init__(self, text: str, reason: Optional[str] = None):
        self.text = text
        self.reason = reason
        msg = f"Could not convert {text!r} to mol"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class MalformedBufferError(UmbramolError, ValueError):
    """A buffer claimed to be prefixed is shorter than the fingerprint header."""

    def __init__(self, size: int, expected: int = 8):
        self.size = size
        self.expected = expected
        super().__init__(
            f"Prefixed buffer needs at least {expected} bytes, got {size}")


class SerializationError(UmbramolError, ValueError):
    """A molecule could not be serialized, or a payload could not be deserialized."""


class CatalogError(UmbramolError, RuntimeError):
    """The fragment catalog is inconsistent with the fingerprint bit layout."""


class FailureKind(Enum):
    PARSE = 'parse'
    MALFORMED_BUFFER = 'malformed_buffer'
    SERIALIZATION = 'serialization'


_KIND_BY_ERROR = (
    (ParseError, FailureKind.PARSE),
    (MalformedBufferError, FailureKind.MALFORMED_BUFFER),
    (SerializationError, FailureKind.SERIALIZATION),
)


def failure_kind(exc: BaseException) -> Optional[FailureKind]:
    """Map a row-level exception to its FailureKind (None if it is not one)."""
    for error_cls, kind in _KIND_BY_ERROR:
        if isinstance(exc, error_cls):
            return kind
    return None


class Result(NamedTuple):
    """
    Outcome of one row: either a value, or a failure kind plus the error.

    Example:
        >>> r = Result.ok(42)
        >>> r.is_ok
        True
    """
    value: Any = None
    failure: Optional[FailureKind] = None
    error: Optional[UmbramolError] = None

    @property
    def is_ok(self) -> bool:
        return self.failure is None

    @property
    def message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None

    @classmethod
    def ok(cls, value: Any) -> 'Result':
        return cls(value=value)

    @classmethod
    def fail(cls, exc: UmbramolError) -> 'Result':
        return cls(failure=failure_kind(exc), error=exc)

    def unwrap(self) -> Any:
        """Return the value, re-raising the row's error if it failed."""
        if self.error is not None:
            raise self.error
        return self.value
