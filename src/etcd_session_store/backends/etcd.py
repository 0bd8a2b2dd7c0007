"""etcd key-value backend.

Import-guarded: ``python-etcd`` is an optional dependency.  Attempting to
instantiate ``EtcdBackend`` without it installed will raise ``ImportError``
with a helpful message.

The client library is blocking, so every call is dispatched to a worker
thread with ``asyncio.to_thread``.  Timeouts and connection pooling are
left to the client.

Classes
-------
- EtcdBackend  — etcd v2 keyspace access through python-etcd
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Sequence, TypeVar, Union

from etcd_session_store.backends.base import AsyncKeyValueBackend, BackendNode
from etcd_session_store.errors import BackendError, NotFoundError

logger = logging.getLogger(__name__)

_ETCD_IMPORT_ERROR = (
    "The 'python-etcd' package is required for EtcdBackend. "
    "Install it with: pip install python-etcd  or  "
    "pip install 'etcd-session-store[etcd]'"
)

DEFAULT_PORT: int = 2379

HostSpec = Union[str, tuple[str, int]]

_T = TypeVar("_T")


def parse_hosts(hosts: Sequence[HostSpec]) -> tuple[tuple[tuple[str, int], ...], str]:
    """Turn endpoint specs into python-etcd ``(host, port)`` pairs.

    Accepts ``"host"``, ``"host:port"``, ``"http://host:port"``,
    ``"https://host:port"`` and ready-made ``(host, port)`` tuples.

    Returns
    -------
    tuple
        The endpoint pairs and the protocol shared by all of them.

    Raises
    ------
    ValueError
        If ``hosts`` is empty, an entry is malformed, or endpoints mix
        protocols.
    """
    if not hosts:
        raise ValueError("At least one etcd host is required.")

    pairs: list[tuple[str, int]] = []
    protocols: set[str] = set()
    for spec in hosts:
        if isinstance(spec, tuple):
            host, port = spec
            pairs.append((str(host), int(port)))
            continue
        protocol = "http"
        address = spec.strip()
        if "://" in address:
            protocol, _, address = address.partition("://")
        protocols.add(protocol)
        address = address.rstrip("/")
        host, sep, port_text = address.rpartition(":")
        if not sep:
            host, port_text = address, str(DEFAULT_PORT)
        if not host or not port_text.isdigit():
            raise ValueError(f"Malformed etcd host {spec!r}.")
        pairs.append((host, int(port_text)))

    if len(protocols) > 1:
        raise ValueError(f"etcd hosts mix protocols: {sorted(protocols)}")
    return tuple(pairs), protocols.pop() if protocols else "http"


def _node_from_raw(raw: dict[str, Any]) -> BackendNode:
    children = tuple(_node_from_raw(child) for child in raw.get("nodes") or ())
    return BackendNode(
        key=str(raw.get("key", "")),
        value=raw.get("value"),
        dir=bool(raw.get("dir", False)),
        nodes=children,
    )


class EtcdBackend(AsyncKeyValueBackend):
    """Reads and writes keys in an etcd cluster through python-etcd.

    Parameters
    ----------
    hosts:
        Cluster endpoints (see ``parse_hosts``).  Defaults to
        ``["127.0.0.1:2379"]``.
    read_timeout:
        Per-request timeout in seconds, enforced by the client.
    username:
        Optional authentication user.
    password:
        Optional authentication password.
    client:
        A pre-built ``etcd.Client``.  When given, ``hosts`` and the other
        connection options are ignored.
    """

    supports_tree_delete = True

    def __init__(
        self,
        hosts: Sequence[HostSpec] | None = None,
        read_timeout: float = 60,
        username: str | None = None,
        password: str | None = None,
        client: Any | None = None,
    ) -> None:
        try:
            import etcd as etcd_module  # noqa: PLC0415
        except ImportError as exc:
            raise ImportError(_ETCD_IMPORT_ERROR) from exc

        self._etcd = etcd_module
        self._hosts = list(hosts or [f"127.0.0.1:{DEFAULT_PORT}"])
        if client is not None:
            self._client = client
        else:
            pairs, protocol = parse_hosts(self._hosts)
            self._client = etcd_module.Client(
                host=pairs if len(pairs) > 1 else pairs[0][0],
                port=pairs[0][1],
                protocol=protocol,
                read_timeout=read_timeout,
                allow_reconnect=len(pairs) > 1,
                username=username,
                password=password,
            )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _call(self, key: str, func: Callable[..., _T], *args: Any, **kwargs: Any) -> _T:
        """Run a blocking client call in a thread and translate its errors."""
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except self._etcd.EtcdKeyNotFound as exc:
            raise NotFoundError(key) from exc
        except self._etcd.EtcdException as exc:
            logger.debug("etcd call on %r failed: %s", key, exc)
            raise BackendError(f"etcd request for {key!r} failed: {exc}", key=key) from exc

    # ------------------------------------------------------------------
    # AsyncKeyValueBackend interface
    # ------------------------------------------------------------------

    async def get(self, key: str) -> BackendNode:
        """Read ``key``; directories come back with their direct children."""
        result = await self._call(key, self._client.read, key)
        # python-etcd only exposes the raw child dicts of a directory here.
        raw_children = getattr(result, "_children", None) or []
        return BackendNode(
            key=str(result.key),
            value=None if result.dir else result.value,
            dir=bool(result.dir),
            nodes=tuple(_node_from_raw(child) for child in raw_children),
        )

    async def set(self, key: str, value: str) -> None:
        """Write ``value`` to ``key``."""
        await self._call(key, self._client.write, key, value)

    async def delete(self, key: str) -> None:
        """Delete the leaf at ``key``."""
        await self._call(key, self._client.delete, key)

    async def delete_tree(self, key: str) -> None:
        """Recursively delete the directory at ``key``."""
        await self._call(key, self._client.delete, key, recursive=True, dir=True)

    def __repr__(self) -> str:
        return f"EtcdBackend(hosts={self._hosts!r})"


__all__ = ["EtcdBackend", "parse_hosts"]
