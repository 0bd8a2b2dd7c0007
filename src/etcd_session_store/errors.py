"""Exception taxonomy for the session store.

Every exception raised by the store or by a backend derives from
``SessionStoreError`` so callers can catch the whole family at once.

Classes
-------
- SessionStoreError          — common base
- ValidationError            — bad caller input, raised before any backend call
- NotFoundError              — a backend key does not exist
- BackendError               — network fault or malformed backend response
- CorruptRecordError         — a stored value fails to deserialize
- CorruptListingError        — one or more corrupt entries in a prefix listing
- UnsupportedOperationError  — the backend lacks a required capability
"""
from __future__ import annotations


class SessionStoreError(Exception):
    """Base class for all session store errors."""


class ValidationError(SessionStoreError, ValueError):
    """Raised when caller input is rejected before contacting the backend."""


class NotFoundError(SessionStoreError, KeyError):
    """Raised by a backend when the requested key does not exist."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Key {key!r} not found.")

    def __str__(self) -> str:
        return str(self.args[0])


class BackendError(SessionStoreError):
    """Raised when a backend call fails or returns an unusable response.

    Parameters
    ----------
    message:
        Human-readable description.
    key:
        The backend key involved, when there is one.
    """

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class CorruptRecordError(SessionStoreError, ValueError):
    """Raised when a stored value cannot be turned back into a record."""

    def __init__(self, reason: str, key: str | None = None) -> None:
        self.key = key
        self.reason = reason
        location = f" at {key!r}" if key is not None else ""
        super().__init__(f"Corrupt session record{location}: {reason}")


class CorruptListingError(CorruptRecordError):
    """Raised when a prefix listing contains corrupt entries.

    Every child of the listing has finished decoding before this is raised,
    so ``failures`` holds the complete set of bad entries in listing order.
    """

    def __init__(self, failures: list[CorruptRecordError]) -> None:
        self.failures = failures
        keys = ", ".join(repr(f.key) for f in failures)
        SessionStoreError.__init__(
            self, f"{len(failures)} corrupt session record(s) in listing: {keys}"
        )
        self.key = None
        self.reason = "corrupt entries in listing"

    @property
    def keys(self) -> list[str | None]:
        return [f.key for f in self.failures]


class UnsupportedOperationError(SessionStoreError, NotImplementedError):
    """Raised when the configured backend cannot perform an operation."""
