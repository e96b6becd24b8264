from __future__ import annotations

from toggleable_bindings.environment import init_environment
from toggleable_bindings.registry import BindingManager, init_manager
from toggleable_bindings.vanilla import register_vanilla_bindings


def init_bindings_for_app() -> BindingManager:
    init_environment()
    manager = init_manager()
    # Startup may run more than once per process (e.g. several TestClient contexts).
    if len(manager) == 0:
        register_vanilla_bindings(manager)
    return manager
