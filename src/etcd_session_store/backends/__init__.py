"""Key-value backend subpackage.

All backends implement the ``AsyncKeyValueBackend`` ABC.  Optional
backends guard their third-party imports so that the package remains
installable without those extras.

Public surface
--------------
- AsyncKeyValueBackend  — abstract base class
- BackendNode           — leaf or directory entry returned by ``get``
- AsyncInMemoryBackend  — in-process dict (useful for testing)
- EtcdBackend           — etcd backend (requires ``python-etcd``)
- AsyncRedisBackend     — Redis backend (requires ``redis>=5``)
"""
from __future__ import annotations

from etcd_session_store.backends.base import AsyncKeyValueBackend, BackendNode
from etcd_session_store.backends.etcd import EtcdBackend
from etcd_session_store.backends.memory import AsyncInMemoryBackend
from etcd_session_store.backends.redis import AsyncRedisBackend

__all__ = [
    "AsyncInMemoryBackend",
    "AsyncKeyValueBackend",
    "AsyncRedisBackend",
    "BackendNode",
    "EtcdBackend",
]
