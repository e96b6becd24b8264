from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass(slots=True)
class HostEnvironment:
    """Signals and shared state owned by the host game.

    `near_bench` is the read-only signal behind the default apply/restore checks.
    `restrictions` and `equipped_charms` are the shared state the bundled bindings touch.
    """

    near_bench: bool = False
    restrictions: set[str] = field(default_factory=set)
    equipped_charms: list[int] = field(default_factory=list)


_ENVIRONMENT: HostEnvironment | None = None


def _near_bench_from_env() -> bool:
    return os.getenv("TOGGLEABLE_BINDINGS_NEAR_BENCH", "").strip().lower() in {"1", "true", "yes"}


def init_environment(env: HostEnvironment | None = None) -> HostEnvironment:
    """Install the host environment once.

    Safe to call multiple times; subsequent calls return the already installed instance.
    """

    global _ENVIRONMENT
    if _ENVIRONMENT is None:
        _ENVIRONMENT = env if env is not None else HostEnvironment(near_bench=_near_bench_from_env())
    return _ENVIRONMENT


def reset_environment_for_tests() -> None:
    global _ENVIRONMENT
    _ENVIRONMENT = None


def get_environment() -> HostEnvironment | None:
    return _ENVIRONMENT


def require_environment() -> HostEnvironment:
    if _ENVIRONMENT is None:
        raise RuntimeError("Host environment not initialized. Call init_environment() at startup.")
    return _ENVIRONMENT


def is_near_bench() -> bool:
    # No host attached means nobody is standing at a bench.
    env = _ENVIRONMENT
    return env.near_bench if env is not None else False
