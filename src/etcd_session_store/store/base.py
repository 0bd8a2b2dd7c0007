"""Abstract base class for session stores.

This is the contract an HTTP session middleware calls into.  Every method
is a coroutine; records are plain mappings.

Classes
-------
- AsyncSessionStore  — the seven-operation session store contract
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

SessionRecord = dict[str, Any]


class AsyncSessionStore(ABC):
    """Protocol for persisting session records.

    Implementations hold no session data of their own; the backing store
    is the only source of truth.
    """

    @abstractmethod
    async def get(self, session_id: str) -> SessionRecord | None:
        """Return the record for ``session_id``, or ``None`` if absent."""

    @abstractmethod
    async def set(self, session_id: str, record: SessionRecord) -> None:
        """Create or overwrite the record for ``session_id``."""

    @abstractmethod
    async def destroy(self, session_id: str) -> None:
        """Remove the record for ``session_id``.  Absent records are fine."""

    @abstractmethod
    async def touch(self, session_id: str, record: SessionRecord) -> None:
        """Refresh the record for ``session_id`` by rewriting it in full."""

    @abstractmethod
    async def all(self) -> list[SessionRecord]:
        """Return every stored record, in backend listing order."""

    @abstractmethod
    async def length(self) -> int:
        """Return the number of stored records."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every stored record, on a best-effort basis."""

    async def close(self) -> None:
        """Release any backend resources."""

    async def __aenter__(self) -> AsyncSessionStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


__all__ = ["AsyncSessionStore", "SessionRecord"]
