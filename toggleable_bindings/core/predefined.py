from __future__ import annotations

from typing import TypeVar


_T = TypeVar("_T", bound=type)

# Kind ids of the bindings that ship with the base game.
_PREDEFINED_KINDS: dict[str, bool] = {}


def binding_id_for(kind: type) -> str:
    """Stable identity of a binding kind: `<defining module>::<class name>`."""

    return f"{kind.__module__}::{kind.__name__}"


def vanilla_binding(kind: _T) -> _T:
    """Mark a binding kind as one of the base game's bindings.

    Only the decorated class is marked; subclasses must be decorated on their own.
    """

    _PREDEFINED_KINDS[binding_id_for(kind)] = True
    return kind


def is_predefined_kind(kind: type) -> bool:
    return _PREDEFINED_KINDS.get(binding_id_for(kind), False)
