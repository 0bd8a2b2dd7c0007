"""Benchmark: prefix listing latency — all() and length() p50/p99.

Measures how long EtcdSessionStore.all() and length() take over an
in-memory backend as the number of stored sessions grows, isolating the
adapter's decode fan-out from network cost.
"""
from __future__ import annotations

import asyncio
import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from etcd_session_store.backends.memory import AsyncInMemoryBackend
from etcd_session_store.store.etcd import EtcdSessionStore

_SIZES: tuple[int, ...] = (10, 100, 1_000)
_ITERATIONS: int = 50


async def _measure(size: int) -> dict[str, object]:
    store = EtcdSessionStore(backend=AsyncInMemoryBackend())
    for i in range(size):
        await store.set(f"session-{i}", {"userId": i, "flags": ["a", "b"], "cart": {"n": i}})

    all_ms: list[float] = []
    length_ms: list[float] = []
    for _ in range(_ITERATIONS):
        t0 = time.perf_counter()
        await store.all()
        all_ms.append((time.perf_counter() - t0) * 1000)
        t0 = time.perf_counter()
        await store.length()
        length_ms.append((time.perf_counter() - t0) * 1000)

    all_ms.sort()
    length_ms.sort()
    n = len(all_ms)
    return {
        "sessions": size,
        "all_p50_ms": round(all_ms[n // 2], 4),
        "all_p99_ms": round(all_ms[min(int(n * 0.99), n - 1)], 4),
        "length_p50_ms": round(length_ms[n // 2], 4),
        "length_p99_ms": round(length_ms[min(int(n * 0.99), n - 1)], 4),
    }


def run_benchmark() -> dict[str, object]:
    """Entry point returning the benchmark result dict."""
    rows = [asyncio.run(_measure(size)) for size in _SIZES]
    for row in rows:
        print(
            f"[bench_listing_latency] n={row['sessions']}: "
            f"all p50={row['all_p50_ms']:.4f}ms  "
            f"length p50={row['length_p50_ms']:.4f}ms"
        )
    return {"operation": "listing_latency", "iterations": _ITERATIONS, "results": rows}


if __name__ == "__main__":
    result = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "listing_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
