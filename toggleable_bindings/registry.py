from __future__ import annotations

import logging
from collections.abc import Iterator

from toggleable_bindings.core.binding import Binding, CheckResult
from toggleable_bindings.core.events import BindingEvent


logger = logging.getLogger(__name__)

MANAGER_SUBSCRIBER = "binding-manager"


class BindingManager:
    """Owns every registered binding, keyed by id in registration order.

    Contract:
      - one binding per id; registering a second instance of a kind is an error.
      - `apply`/`restore` honour the advisory checks unless `force=True`.
      - every real transition is recorded in an outbox drained with `drain_events()`.
    """

    def __init__(self) -> None:
        self._bindings: dict[str, Binding] = {}
        self._outbox: list[BindingEvent] = []

    def register(self, binding: Binding) -> Binding:
        if binding.id in self._bindings:
            raise ValueError(f"Binding already registered: {binding.id}")
        self._bindings[binding.id] = binding
        binding.applied.subscribe(MANAGER_SUBSCRIBER, self._record_applied)
        binding.restored.subscribe(MANAGER_SUBSCRIBER, self._record_restored)
        logger.info("Registered binding %s (%s)", binding.id, binding.name)
        return binding

    def get(self, binding_id: str) -> Binding | None:
        return self._bindings.get(binding_id)

    def require(self, binding_id: str) -> Binding:
        binding = self.get(binding_id)
        if binding is None:
            raise ValueError(f"Binding not found: {binding_id}")
        return binding

    def __iter__(self) -> Iterator[Binding]:
        return iter(list(self._bindings.values()))

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, binding_id: object) -> bool:
        return binding_id in self._bindings

    def apply(self, binding_id: str, *, force: bool = False) -> CheckResult:
        binding = self.require(binding_id)
        if not force:
            check = binding.can_be_applied()
            if not check.allowed:
                return check
        binding.apply()
        return CheckResult(True, "")

    def restore(self, binding_id: str, *, force: bool = False) -> CheckResult:
        binding = self.require(binding_id)
        if not force:
            check = binding.can_be_restored()
            if not check.allowed:
                return check
        binding.restore()
        return CheckResult(True, "")

    def restore_all(self) -> None:
        for binding in self:
            binding.restore()

    def applied_ids(self) -> list[str]:
        return [b.id for b in self if b.is_applied]

    def drain_events(self) -> list[BindingEvent]:
        events, self._outbox = self._outbox, []
        return events

    def _record_applied(self, binding: Binding) -> None:
        self._outbox.append(BindingEvent.now(type="BINDING_APPLIED", binding_id=binding.id, payload={"name": binding.name}))

    def _record_restored(self, binding: Binding) -> None:
        self._outbox.append(BindingEvent.now(type="BINDING_RESTORED", binding_id=binding.id, payload={"name": binding.name}))


_MANAGER: BindingManager | None = None


def init_manager() -> BindingManager:
    """Create the process-wide manager once.

    Safe to call multiple times; subsequent calls return the already created instance.
    """

    global _MANAGER
    if _MANAGER is None:
        _MANAGER = BindingManager()
    return _MANAGER


def reset_manager_for_tests() -> None:
    global _MANAGER
    _MANAGER = None


def get_manager() -> BindingManager:
    if _MANAGER is None:
        raise RuntimeError("Binding manager not initialized. Call init_manager() at startup.")
    return _MANAGER
