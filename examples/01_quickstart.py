#!/usr/bin/env python3
"""Example: Session store quickstart

Stores, reads, lists and destroys sessions.  Runs against the in-memory
backend by default; pass an etcd endpoint to use a real cluster.

Usage:
    python examples/01_quickstart.py
    python examples/01_quickstart.py 127.0.0.1:2379

Requirements:
    pip install etcd-session-store            # in-memory demo
    pip install 'etcd-session-store[etcd]'    # real etcd
"""
from __future__ import annotations

import asyncio
import sys

import etcd_session_store
from etcd_session_store import AsyncInMemoryBackend, EtcdSessionStore


async def main(hosts: list[str]) -> None:
    print(f"etcd-session-store version: {etcd_session_store.__version__}")

    if hosts:
        store = EtcdSessionStore(hosts=hosts, key_prefix="/quickstart/sessions/")
    else:
        store = EtcdSessionStore(backend=AsyncInMemoryBackend())

    async with store:
        await store.set("abc123", {"userId": 42, "flags": ["a", "b"]})
        await store.set("def456", {"userId": 7, "flags": []})
        print(f"  get abc123 -> {await store.get('abc123')}")
        print(f"  length     -> {await store.length()}")

        for session_id, record in await store.items():
            print(f"  {session_id}: {record}")

        await store.destroy("abc123")
        print(f"  after destroy, get abc123 -> {await store.get('abc123')}")
        await store.clear()
        print(f"  after clear, length -> {await store.length()}")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
