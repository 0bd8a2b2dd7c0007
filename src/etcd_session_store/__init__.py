"""etcd-session-store — HTTP session persistence in etcd.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import etcd_session_store
>>> etcd_session_store.__version__
'0.1.0'
"""
from __future__ import annotations

# Session store
from etcd_session_store.store.base import AsyncSessionStore, SessionRecord
from etcd_session_store.store.etcd import EtcdSessionStore

# Building blocks
from etcd_session_store.namespace import DEFAULT_KEY_PREFIX, KeyNamespace
from etcd_session_store.serializer import RecordSerializer
from etcd_session_store.config import StoreConfig, build_backend

# Backends
from etcd_session_store.backends.base import AsyncKeyValueBackend, BackendNode
from etcd_session_store.backends.memory import AsyncInMemoryBackend

# Errors
from etcd_session_store.errors import (
    BackendError,
    CorruptListingError,
    CorruptRecordError,
    NotFoundError,
    SessionStoreError,
    UnsupportedOperationError,
    ValidationError,
)

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Session store
    "AsyncSessionStore",
    "EtcdSessionStore",
    "SessionRecord",
    # Building blocks
    "DEFAULT_KEY_PREFIX",
    "KeyNamespace",
    "RecordSerializer",
    "StoreConfig",
    "build_backend",
    # Backends
    "AsyncInMemoryBackend",
    "AsyncKeyValueBackend",
    "BackendNode",
    # Errors
    "BackendError",
    "CorruptListingError",
    "CorruptRecordError",
    "NotFoundError",
    "SessionStoreError",
    "UnsupportedOperationError",
    "ValidationError",
]
