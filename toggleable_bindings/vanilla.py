from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import Field

from toggleable_bindings.core.binding import Binding, BindingSaveData
from toggleable_bindings.core.predefined import vanilla_binding
from toggleable_bindings.environment import require_environment

if TYPE_CHECKING:
    from toggleable_bindings.registry import BindingManager


class _RestrictionBinding(Binding):
    """Base-game binding whose effect is a single restriction tag on the host."""

    restriction: ClassVar[str]
    sprite_stem: ClassVar[str]

    @property
    def default_sprite(self) -> str:
        return f"sprites/{self.sprite_stem}_default.png"

    @property
    def selected_sprite(self) -> str:
        return f"sprites/{self.sprite_stem}_selected.png"

    def on_applied(self) -> None:
        require_environment().restrictions.add(self.restriction)

    def on_restored(self) -> None:
        require_environment().restrictions.discard(self.restriction)


@vanilla_binding
class NailBinding(_RestrictionBinding):
    restriction = "nail_damage_capped"
    sprite_stem = "nail"

    def __init__(self) -> None:
        super().__init__("Nail")


@vanilla_binding
class ShellBinding(_RestrictionBinding):
    restriction = "max_health_capped"
    sprite_stem = "shell"

    def __init__(self) -> None:
        super().__init__("Shell")


@vanilla_binding
class SoulBinding(_RestrictionBinding):
    restriction = "soul_limited"
    sprite_stem = "soul"

    def __init__(self) -> None:
        super().__init__("Soul")


class CharmsSaveData(BindingSaveData):
    unequipped_charms: list[int] = Field(default_factory=list)


@vanilla_binding
class CharmsBinding(_RestrictionBinding):
    """Unequips every charm while applied and hands them back on restore.

    The stashed charms are saved only when the binding was applied at save time, so a
    reload can give them back after the player restores the binding.
    """

    restriction = "charms_disabled"
    sprite_stem = "charms"
    save_model = CharmsSaveData

    def __init__(self) -> None:
        super().__init__("Charms")
        self.unequipped_charms: list[int] = []

    def on_applied(self) -> None:
        env = require_environment()
        # Charms stashed by a loaded save stay stashed; anything equipped since joins them.
        stashed = list(self.unequipped_charms)
        stashed.extend(c for c in env.equipped_charms if c not in stashed)
        self.unequipped_charms = stashed
        env.equipped_charms.clear()
        super().on_applied()

    def on_restored(self) -> None:
        env = require_environment()
        for charm in self.unequipped_charms:
            if charm not in env.equipped_charms:
                env.equipped_charms.append(charm)
        self.unequipped_charms = []
        super().on_restored()

    def collect_save_data(self) -> dict[str, Any]:
        data = super().collect_save_data()
        if not self.was_applied:
            data.pop("unequipped_charms", None)
        return data


VANILLA_BINDINGS: tuple[type[Binding], ...] = (NailBinding, ShellBinding, CharmsBinding, SoulBinding)


def register_vanilla_bindings(manager: "BindingManager") -> list[Binding]:
    bindings = [kind() for kind in VANILLA_BINDINGS]
    for b in bindings:
        manager.register(b)
    return bindings
