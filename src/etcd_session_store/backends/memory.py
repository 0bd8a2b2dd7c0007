"""Async in-memory key-value backend.

Stores keys in a plain Python dict guarded by ``asyncio.Lock`` and emulates
directories by key prefix.  All data is lost when the process exits.  This
backend is primarily useful for tests and local prototyping.

Classes
-------
- AsyncInMemoryBackend  — dict-backed ephemeral async backend
"""
from __future__ import annotations

import asyncio

from etcd_session_store.backends.base import (
    AsyncKeyValueBackend,
    BackendNode,
    directory_node,
)
from etcd_session_store.errors import NotFoundError


class AsyncInMemoryBackend(AsyncKeyValueBackend):
    """Ephemeral async in-process backend backed by a Python dict.

    Directory listings preserve insertion order, like an etcd directory
    read without sorting.

    Parameters
    ----------
    initial_data:
        Optional pre-populated mapping of keys to raw values.  A shallow
        copy is taken so the caller's dict is not mutated.
    """

    supports_tree_delete = True

    def __init__(self, initial_data: dict[str, str] | None = None) -> None:
        self._store: dict[str, str] = dict(initial_data or {})
        self._lock: asyncio.Lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # AsyncKeyValueBackend interface
    # ------------------------------------------------------------------

    async def get(self, key: str) -> BackendNode:
        """Return the leaf at ``key`` or the directory rooted there."""
        async with self._lock:
            if key in self._store:
                return BackendNode(key=key, value=self._store[key])
            node = directory_node(key, self._store.items())
        if node is None:
            raise NotFoundError(key)
        return node

    async def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, overwriting if present."""
        async with self._lock:
            self._store[key] = value

    async def delete(self, key: str) -> None:
        """Remove ``key`` from the store.

        Raises
        ------
        NotFoundError
            If ``key`` is not in the store.
        """
        async with self._lock:
            if key not in self._store:
                raise NotFoundError(key)
            del self._store[key]

    async def delete_tree(self, key: str) -> None:
        """Remove ``key`` and every key below it."""
        prefix = key if key.endswith("/") else f"{key}/"
        async with self._lock:
            doomed = [k for k in self._store if k == key or k.startswith(prefix)]
            if not doomed:
                raise NotFoundError(key)
            for k in doomed:
                del self._store[k]

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __repr__(self) -> str:
        return f"AsyncInMemoryBackend(keys={len(self._store)})"


__all__ = ["AsyncInMemoryBackend"]
