"""Session store backed by a hierarchical key-value backend.

Provides ``EtcdSessionStore``, which maps every session onto one leaf key
under a fixed prefix and implements the session store contract on top of
an ``AsyncKeyValueBackend`` (etcd by default).

Classes
-------
- EtcdSessionStore  — the session store adapter
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Literal, Sequence

from etcd_session_store.backends.base import AsyncKeyValueBackend, BackendNode
from etcd_session_store.errors import (
    BackendError,
    CorruptListingError,
    CorruptRecordError,
    NotFoundError,
    UnsupportedOperationError,
    ValidationError,
)
from etcd_session_store.namespace import DEFAULT_KEY_PREFIX, KeyNamespace
from etcd_session_store.serializer import RecordSerializer, SerializationFormat
from etcd_session_store.store.base import AsyncSessionStore, SessionRecord

if TYPE_CHECKING:
    from etcd_session_store.config import StoreConfig

logger = logging.getLogger(__name__)

CorruptPolicy = Literal["raise", "skip"]

_CORRUPT_POLICIES: frozenset[str] = frozenset({"raise", "skip"})


class EtcdSessionStore(AsyncSessionStore):
    """Persist session records as serialized leaves under a key prefix.

    Parameters
    ----------
    hosts:
        etcd endpoints, used to build an ``EtcdBackend`` when ``backend``
        is not supplied.
    key_prefix:
        Root key for all sessions.  Defaults to ``"/sessions/"``.
    backend:
        A ready-made backend.  Takes precedence over ``hosts``.
    serializer:
        Optional custom serializer.  Defaults to a ``RecordSerializer`` in
        ``format``.
    format:
        Serialization format when no ``serializer`` is given.
    corrupt_policy:
        What listings do with entries that fail to deserialize:
        ``"raise"`` (default) fails the listing with
        ``CorruptListingError`` once every entry has been decoded;
        ``"skip"`` leaves the entry out and logs a warning.
    listing_concurrency:
        Maximum number of entries decoded in parallel during a listing.
    """

    def __init__(
        self,
        hosts: Sequence[Any] | None = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        *,
        backend: AsyncKeyValueBackend | None = None,
        serializer: RecordSerializer | None = None,
        format: SerializationFormat = "json",
        corrupt_policy: CorruptPolicy = "raise",
        listing_concurrency: int = 8,
    ) -> None:
        if corrupt_policy not in _CORRUPT_POLICIES:
            raise ValueError(f"Unknown corrupt_policy {corrupt_policy!r}.")
        if listing_concurrency < 1:
            raise ValueError("listing_concurrency must be at least 1.")

        logger.debug("EtcdSessionStore: hosts=%r key_prefix=%r", hosts, key_prefix)
        self._namespace = KeyNamespace(key_prefix)
        if backend is None:
            from etcd_session_store.backends.etcd import EtcdBackend  # noqa: PLC0415

            backend = EtcdBackend(hosts=hosts)
        self._backend = backend
        self._serializer = serializer or RecordSerializer(format)
        self._corrupt_policy: CorruptPolicy = corrupt_policy
        self._listing_concurrency = listing_concurrency

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    def from_config(cls, config: StoreConfig) -> EtcdSessionStore:
        """Build a store and its backend from a ``StoreConfig``."""
        from etcd_session_store.config import build_backend  # noqa: PLC0415

        return cls(
            key_prefix=config.key_prefix,
            backend=build_backend(config),
            format=config.format,
            corrupt_policy=config.corrupt_policy,
            listing_concurrency=config.listing_concurrency,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def namespace(self) -> KeyNamespace:
        return self._namespace

    @property
    def backend(self) -> AsyncKeyValueBackend:
        return self._backend

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _key(self, session_id: str) -> str:
        """Validate ``session_id`` and return its backend key."""
        if not isinstance(session_id, str) or not session_id:
            raise ValidationError(
                f"Session id must be a non-empty string, got {session_id!r}."
            )
        return self._namespace.key_for(session_id)

    def _decode(self, key: str, raw: str | None) -> SessionRecord:
        if raw is None:
            raise BackendError(f"Backend returned no value for {key!r}.", key=key)
        try:
            return self._serializer.loads(raw)
        except CorruptRecordError as exc:
            raise CorruptRecordError(exc.reason, key=key) from exc

    async def _list(self) -> tuple[BackendNode, ...]:
        """Return the leaf nodes under the prefix, in backend order."""
        prefix = self._namespace.prefix
        try:
            node = await self._backend.get(prefix)
        except NotFoundError:
            logger.debug("EtcdSessionStore: prefix %r does not exist yet", prefix)
            return ()
        if not node.dir:
            raise BackendError(f"Session prefix {prefix!r} is not a directory.", key=prefix)
        return node.leaves

    async def _decode_leaves(
        self, leaves: tuple[BackendNode, ...]
    ) -> list[tuple[str, SessionRecord]]:
        """Decode every leaf concurrently and apply the corruption policy."""
        semaphore = asyncio.Semaphore(self._listing_concurrency)

        async def decode(node: BackendNode) -> SessionRecord:
            async with semaphore:
                return await asyncio.to_thread(self._decode, node.key, node.value)

        results = await asyncio.gather(
            *(decode(node) for node in leaves), return_exceptions=True
        )

        decoded: list[tuple[str, SessionRecord]] = []
        failures: list[CorruptRecordError] = []
        for node, result in zip(leaves, results):
            if isinstance(result, CorruptRecordError):
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                decoded.append((node.key, result))

        if failures:
            if self._corrupt_policy == "raise":
                raise CorruptListingError(failures)
            for failure in failures:
                logger.warning(
                    "EtcdSessionStore: skipping corrupt session %r: %s",
                    failure.key,
                    failure.reason,
                )
        return decoded

    # ------------------------------------------------------------------
    # AsyncSessionStore interface
    # ------------------------------------------------------------------

    async def get(self, session_id: str) -> SessionRecord | None:
        """Fetch and deserialize the record for ``session_id``.

        Returns
        -------
        SessionRecord | None
            The record, or ``None`` if no session is stored.

        Raises
        ------
        ValidationError
            If ``session_id`` is empty.  The backend is not contacted.
        BackendError
            If the backend call fails or the key is not a leaf.
        CorruptRecordError
            If the stored value does not deserialize.
        """
        key = self._key(session_id)
        logger.debug("EtcdSessionStore: get %r", key)
        try:
            node = await self._backend.get(key)
        except NotFoundError:
            logger.debug("EtcdSessionStore: no session at %r", key)
            return None
        if node.dir:
            raise BackendError(f"Session key {key!r} is a directory.", key=key)
        return self._decode(key, node.value)

    async def set(self, session_id: str, record: SessionRecord) -> None:
        """Serialize ``record`` and write it under ``session_id``.

        Raises
        ------
        ValidationError
            If ``session_id`` is empty or ``record`` is not serializable.
        BackendError
            If the backend write fails.
        """
        key = self._key(session_id)
        raw = self._serializer.dumps(record)
        logger.debug("EtcdSessionStore: set %r (%d chars)", key, len(raw))
        await self._backend.set(key, raw)

    async def touch(self, session_id: str, record: SessionRecord) -> None:
        """Rewrite the record for ``session_id`` in full; same contract as ``set``."""
        logger.debug("EtcdSessionStore: touch %r", session_id)
        await self.set(session_id, record)

    async def destroy(self, session_id: str) -> None:
        """Delete the record for ``session_id``.  Deleting nothing succeeds."""
        key = self._key(session_id)
        logger.debug("EtcdSessionStore: destroy %r", key)
        try:
            await self._backend.delete(key)
        except NotFoundError:
            logger.debug("EtcdSessionStore: destroy of absent key %r", key)

    async def all(self) -> list[SessionRecord]:
        """Return every stored record, positionally matching the backend listing."""
        logger.debug("EtcdSessionStore: all")
        leaves = await self._list()
        return [record for _, record in await self._decode_leaves(leaves)]

    async def items(self) -> list[tuple[str, SessionRecord]]:
        """Return ``(session_id, record)`` pairs in backend listing order."""
        leaves = await self._list()
        return [
            (self._namespace.session_id_for(key), record)
            for key, record in await self._decode_leaves(leaves)
        ]

    async def ids(self) -> list[str]:
        """Return every stored session id without deserializing payloads."""
        return [self._namespace.session_id_for(node.key) for node in await self._list()]

    async def length(self) -> int:
        """Count stored sessions from listing metadata alone."""
        count = len(await self._list())
        logger.debug("EtcdSessionStore: length -> %d", count)
        return count

    async def clear(self) -> None:
        """Recursively delete the session prefix.

        The delete is not atomic: a ``set`` racing with ``clear`` can
        leave a session behind.

        Raises
        ------
        UnsupportedOperationError
            If the backend cannot delete recursively.
        BackendError
            If the backend call fails.
        """
        prefix = self._namespace.prefix
        if not self._backend.supports_tree_delete:
            raise UnsupportedOperationError(
                f"{type(self._backend).__name__} cannot clear {prefix!r}: "
                "recursive delete is not supported."
            )
        logger.debug("EtcdSessionStore: clear %r (not atomic)", prefix)
        try:
            await self._backend.delete_tree(prefix)
        except NotFoundError:
            logger.debug("EtcdSessionStore: prefix %r already empty", prefix)

    async def close(self) -> None:
        """Close the backend connection."""
        await self._backend.close()

    def __repr__(self) -> str:
        return (
            f"EtcdSessionStore(key_prefix={self._namespace.prefix!r}, "
            f"backend={self._backend!r}, corrupt_policy={self._corrupt_policy!r})"
        )


__all__ = ["CorruptPolicy", "EtcdSessionStore"]
