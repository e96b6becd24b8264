from __future__ import annotations

from contextlib import contextmanager

import redis


@contextmanager
def save_lock(*, r: redis.Redis, slot: str, ttl_ms: int = 5_000):
    """Best-effort per-slot lock so a save and a load never interleave on one slot.

    Single holder only: the key is deleted on release without checking ownership.
    """

    key = f"toggleable-bindings:lock:save:{slot}"
    acquired = r.set(key, "1", nx=True, px=ttl_ms)
    if not acquired:
        raise ValueError("Save slot is busy")
    try:
        yield
    finally:
        r.delete(key)
