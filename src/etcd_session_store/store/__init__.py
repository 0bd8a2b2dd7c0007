"""Session store subpackage.

Public surface
--------------
- AsyncSessionStore  — abstract session store contract
- EtcdSessionStore   — store over a hierarchical key-value backend
"""
from __future__ import annotations

from etcd_session_store.store.base import AsyncSessionStore, SessionRecord
from etcd_session_store.store.etcd import CorruptPolicy, EtcdSessionStore

__all__ = [
    "AsyncSessionStore",
    "CorruptPolicy",
    "EtcdSessionStore",
    "SessionRecord",
]
