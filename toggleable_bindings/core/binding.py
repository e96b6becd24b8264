from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar, NamedTuple

from pydantic import BaseModel, ConfigDict

from toggleable_bindings.core.events import EventChannel, ListenerFailure
from toggleable_bindings.core.predefined import binding_id_for, is_predefined_kind
from toggleable_bindings.environment import is_near_bench
from toggleable_bindings.fsm import BindingFSM, BindingPhase


logger = logging.getLogger(__name__)

MUST_BE_NEAR_BENCH = "Must be near a bench to {verb} this binding."


class CheckResult(NamedTuple):
    """Advisory answer to "may the player toggle this now?".

    `reason` is user-facing text explaining a `False` answer; it is empty when allowed.
    """

    allowed: bool
    reason: str


class ReentrantTransitionError(RuntimeError):
    pass


class BindingSaveData(BaseModel):
    """Fields of a binding that are written to a save.

    Persistence is opt-in: concrete kinds subclass this model to add fields and point
    `Binding.save_model` at the subclass. Attributes not declared here are never saved.
    """

    model_config = ConfigDict(extra="ignore")

    was_applied: bool = False


class Binding(ABC):
    """A modifier that is either applied (its effect active) or restored.

    Transitions are idempotent: `apply()` on an applied binding and `restore()` on a
    restored one do nothing and notify nobody. A real transition flips the state, runs
    the kind's hook, then notifies the matching channel.

    `apply()`/`restore()` may be called regardless of `can_be_applied()` /
    `can_be_restored()`; those checks are only hints for the player-facing layer.
    Bindings should be registered with a `BindingManager` before being toggled.
    """

    save_model: ClassVar[type[BindingSaveData]] = BindingSaveData

    def __init__(self, name: str) -> None:
        if name is None:
            raise ValueError("name is required")

        kind = type(self)
        self._id = binding_id_for(kind)
        self._name = name
        self._is_vanilla = is_predefined_kind(kind)
        self._fsm = BindingFSM()
        self._transitioning = False

        # Only meaningful inside a serialization (or load) window.
        self.was_applied = False

        self.applied = EventChannel("applied")
        self.restored = EventChannel("restored")

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_applied(self) -> bool:
        return self._fsm.phase == BindingPhase.applied

    @property
    def is_vanilla(self) -> bool:
        return self._is_vanilla

    @property
    @abstractmethod
    def default_sprite(self) -> str:
        """Asset reference for the binding button's default state."""

    @property
    @abstractmethod
    def selected_sprite(self) -> str:
        """Asset reference for the binding button's selected state."""

    def can_be_applied(self) -> CheckResult:
        if is_near_bench():
            return CheckResult(True, "")
        return CheckResult(False, MUST_BE_NEAR_BENCH.format(verb="apply"))

    def can_be_restored(self) -> CheckResult:
        if is_near_bench():
            return CheckResult(True, "")
        return CheckResult(False, MUST_BE_NEAR_BENCH.format(verb="restore"))

    def apply(self) -> list[ListenerFailure]:
        """Apply this binding, enabling its effects.

        Returns the `applied` listeners that raised; empty when nothing failed or the
        binding was already applied.
        """

        self._guard_reentry("apply")
        if self.is_applied:
            return []

        self._transitioning = True
        try:
            self._fsm.engage()
            logger.debug("Applying binding %s", self._id)
            self.on_applied()
            return self.applied.notify(self)
        finally:
            self._transitioning = False

    def restore(self) -> list[ListenerFailure]:
        """Restore this binding, disabling its effects. Returns the `restored` listeners that raised."""

        self._guard_reentry("restore")
        if not self.is_applied:
            return []

        self._transitioning = True
        try:
            self._fsm.disengage()
            logger.debug("Restoring binding %s", self._id)
            self.on_restored()
            return self.restored.notify(self)
        finally:
            self._transitioning = False

    @abstractmethod
    def on_applied(self) -> None:
        """Enable the effect. Runs only on a real transition, before `applied` listeners."""

    @abstractmethod
    def on_restored(self) -> None:
        """Disable the effect. Runs only on a real transition, before `restored` listeners.

        Must leave the binding exactly as it was right after construction; anything left
        behind leaks into the next application, including one made after loading a save.
        """

    def on_serializing(self) -> None:
        self.was_applied = self.is_applied

    def on_serialized(self) -> None:
        self.was_applied = False

    def collect_save_data(self) -> dict[str, Any]:
        """Values for every field of `save_model`. Called while `was_applied` is set."""

        return {name: getattr(self, name) for name in self.save_model.model_fields}

    def serialize(self) -> dict[str, Any]:
        self.on_serializing()
        try:
            data = self.save_model.model_validate(self.collect_save_data())
            # Fields a kind chose not to collect stay out of the save.
            return data.model_dump(mode="json", exclude_unset=True)
        finally:
            self.on_serialized()

    def populate(self, data: Mapping[str, Any]) -> None:
        """Load persisted fields. Fields missing from `data` keep their construction-time values."""

        loaded = self.save_model.model_validate(dict(data))
        for name in loaded.model_fields_set:
            setattr(self, name, getattr(loaded, name))

    def _guard_reentry(self, action: str) -> None:
        if self._transitioning:
            raise ReentrantTransitionError(f"Cannot {action} binding {self._id} while it is already transitioning")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r}, name={self._name!r}, is_applied={self.is_applied})"
