"""Abstract base class for async key-value backends.

A backend exposes a hierarchical key space: leaf nodes hold a raw UTF-8
string, directory nodes hold child nodes.  The session store only ever
exchanges raw strings with a backend; serialization happens above this
layer.

Classes
-------
- BackendNode           — one entry returned by ``get``
- AsyncKeyValueBackend  — abstract base for all backends

Functions
---------
- directory_node  — build a directory node from a flat key/value listing
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, Iterable

from etcd_session_store.errors import UnsupportedOperationError


@dataclass(frozen=True)
class BackendNode:
    """A single backend entry.

    Attributes
    ----------
    key:
        Fully-qualified key of this node.
    value:
        Raw stored string for a leaf, ``None`` for a directory.
    dir:
        True if this node is a directory.
    nodes:
        Direct children of a directory, in backend order.
    """

    key: str
    value: str | None = None
    dir: bool = False
    nodes: tuple[BackendNode, ...] = ()

    @property
    def leaves(self) -> tuple[BackendNode, ...]:
        """Direct children that are leaves."""
        return tuple(node for node in self.nodes if not node.dir)


class AsyncKeyValueBackend(ABC):
    """Protocol for async access to a hierarchical key-value store.

    Implementations translate client-library failures into
    ``BackendError`` and signal absent keys with ``NotFoundError``.
    """

    supports_tree_delete: ClassVar[bool] = False

    @abstractmethod
    async def get(self, key: str) -> BackendNode:
        """Return the node stored at ``key``.

        For a directory, the returned node carries its direct children
        with their raw values.

        Raises
        ------
        NotFoundError
            If nothing exists at ``key``.
        BackendError
            On any network or backend failure.
        """

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store ``value`` at ``key``, overwriting any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the leaf at ``key``.

        Raises
        ------
        NotFoundError
            If nothing exists at ``key``.
        """

    async def delete_tree(self, key: str) -> None:
        """Recursively remove ``key`` and everything below it.

        Only available when ``supports_tree_delete`` is True.

        Raises
        ------
        NotFoundError
            If nothing exists at ``key``.
        UnsupportedOperationError
            If the backend has no recursive delete.
        """
        raise UnsupportedOperationError(
            f"{type(self).__name__} does not support recursive delete."
        )

    async def close(self) -> None:
        """Release the connection to the backend."""


def _directory_prefix(key: str) -> str:
    return key if key.endswith("/") else f"{key}/"


def directory_node(key: str, entries: Iterable[tuple[str, str]]) -> BackendNode | None:
    """Build the directory node for ``key`` out of a flat listing.

    Used by backends with a flat key space.  Entries directly under
    ``key`` become leaves; deeper entries are grouped into one child
    directory per intermediate segment.  Children keep the order of
    ``entries``.

    Parameters
    ----------
    key:
        Directory key.
    entries:
        ``(key, value)`` pairs; pairs outside the directory are ignored.

    Returns
    -------
    BackendNode | None
        The directory node, or ``None`` if no entry lies below ``key``.
    """
    prefix = _directory_prefix(key)
    children: list[BackendNode] = []
    seen_dirs: set[str] = set()
    for entry_key, value in entries:
        if not entry_key.startswith(prefix) or entry_key == prefix:
            continue
        head, sep, _ = entry_key[len(prefix):].partition("/")
        if not sep:
            children.append(BackendNode(key=entry_key, value=value))
        elif head not in seen_dirs:
            seen_dirs.add(head)
            children.append(BackendNode(key=f"{prefix}{head}", dir=True))
    if not children:
        return None
    return BackendNode(key=key, dir=True, nodes=tuple(children))
