"""Async Redis key-value backend — requires redis[asyncio] (guarded import).

Redis has a flat key space, so directories are emulated: a key ending in a
path separator is treated as a directory whose children are all keys that
start with it.  Children are listed in lexicographic key order because
SCAN order is undefined.

Classes
-------
- AsyncRedisBackend  — redis.asyncio-backed key-value backend
"""
from __future__ import annotations

import logging
from typing import Any

from etcd_session_store.backends.base import (
    AsyncKeyValueBackend,
    BackendNode,
    directory_node,
)
from etcd_session_store.errors import BackendError, NotFoundError

logger = logging.getLogger(__name__)

# SCAN MATCH treats these as glob syntax.
_GLOB_SPECIAL = str.maketrans({c: f"\\{c}" for c in "\\*?[]"})

_REDIS_IMPORT_ERROR = (
    "AsyncRedisBackend requires the 'redis' package with asyncio support. "
    "Install it with: pip install redis  or  "
    "pip install 'etcd-session-store[redis]'"
)


class AsyncRedisBackend(AsyncKeyValueBackend):
    """Stores keys in a Redis instance using ``redis.asyncio``.

    Parameters
    ----------
    url:
        Redis connection URL.  Defaults to ``"redis://localhost:6379/0"``.
    scan_count:
        ``COUNT`` hint passed to every SCAN call.
    client:
        A pre-built ``redis.asyncio.Redis`` client.  When given, ``url``
        is ignored.  The client must decode responses to ``str``.
    """

    supports_tree_delete = True

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        scan_count: int = 100,
        client: Any | None = None,
    ) -> None:
        try:
            from redis import asyncio as redis_asyncio  # noqa: PLC0415
            from redis.exceptions import RedisError  # noqa: PLC0415
        except ImportError as exc:
            raise ImportError(_REDIS_IMPORT_ERROR) from exc

        self._redis_error: type[Exception] = RedisError
        self._url = url
        self._scan_count = scan_count
        if client is not None:
            self._client = client
        else:
            self._client = redis_asyncio.Redis.from_url(url, decode_responses=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _fail(self, key: str, exc: Exception) -> BackendError:
        logger.debug("redis call on %r failed: %s", key, exc)
        return BackendError(f"redis request for {key!r} failed: {exc}", key=key)

    async def _scan(self, prefix: str) -> list[str]:
        """Return every key starting with ``prefix``, sorted."""
        keys: list[str] = []
        pattern = f"{prefix.translate(_GLOB_SPECIAL)}*"
        cursor: int = 0
        while True:
            cursor, batch = await self._client.scan(
                cursor=cursor, match=pattern, count=self._scan_count
            )
            keys.extend(str(k) for k in batch)
            if cursor == 0:
                break
        return sorted(set(keys))

    # ------------------------------------------------------------------
    # AsyncKeyValueBackend interface
    # ------------------------------------------------------------------

    async def get(self, key: str) -> BackendNode:
        """Return the leaf at ``key`` or the emulated directory rooted there."""
        try:
            value = await self._client.get(key)
            if value is not None:
                return BackendNode(key=key, value=str(value))
            prefix = key if key.endswith("/") else f"{key}/"
            keys = await self._scan(prefix)
            values = await self._client.mget(keys) if keys else []
        except self._redis_error as exc:
            raise self._fail(key, exc) from exc

        # Keys deleted between SCAN and MGET come back as None.
        entries = [(k, str(v)) for k, v in zip(keys, values) if v is not None]
        node = directory_node(key, entries)
        if node is None:
            raise NotFoundError(key)
        return node

    async def set(self, key: str, value: str) -> None:
        """Write ``value`` to ``key``."""
        try:
            await self._client.set(key, value)
        except self._redis_error as exc:
            raise self._fail(key, exc) from exc

    async def delete(self, key: str) -> None:
        """Delete ``key``.

        Raises
        ------
        NotFoundError
            If the key did not exist.
        """
        try:
            deleted: int = await self._client.delete(key)
        except self._redis_error as exc:
            raise self._fail(key, exc) from exc
        if deleted == 0:
            raise NotFoundError(key)

    async def delete_tree(self, key: str) -> None:
        """Delete ``key`` and every key under it, in one DEL call."""
        prefix = key if key.endswith("/") else f"{key}/"
        try:
            keys = await self._scan(prefix)
            if not keys:
                raise NotFoundError(key)
            await self._client.delete(*keys)
        except self._redis_error as exc:
            raise self._fail(key, exc) from exc

    async def close(self) -> None:
        """Close the client's connection pool."""
        await self._client.aclose()

    def __repr__(self) -> str:
        return f"AsyncRedisBackend(url={self._url!r})"


__all__ = ["AsyncRedisBackend"]
