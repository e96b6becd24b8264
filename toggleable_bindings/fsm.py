from __future__ import annotations

from enum import StrEnum

from statemachine import State, StateMachine


class BindingPhase(StrEnum):
    restored = "restored"
    applied = "applied"


class BindingFSM(StateMachine):
    """Two-state machine behind every binding.

    The binding checks idempotency before sending an event, so the FSM only has to
    reject illegal transitions (e.g. `engage` while already applied).
    """

    restored = State(BindingPhase.restored.value, value=BindingPhase.restored.value, initial=True)
    applied = State(BindingPhase.applied.value, value=BindingPhase.applied.value)

    engage = restored.to(applied)
    disengage = applied.to(restored)

    @property
    def phase(self) -> BindingPhase:
        return BindingPhase(str(self.current_state.value))
