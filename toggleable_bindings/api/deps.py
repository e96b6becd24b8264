from __future__ import annotations

import os
from collections.abc import Generator

import redis

from toggleable_bindings.registry import BindingManager, get_manager


DEFAULT_REDIS_URL = "redis://localhost:6379/0"


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", DEFAULT_REDIS_URL)


def get_redis() -> Generator[redis.Redis, None, None]:
    # decode_responses=True => save files and stream fields come back as str
    client = redis.Redis.from_url(get_redis_url(), decode_responses=True)
    try:
        yield client
    finally:
        client.close()


def get_binding_manager() -> BindingManager:
    return get_manager()
