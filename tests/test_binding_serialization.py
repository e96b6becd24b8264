from __future__ import annotations

from typing import Any, ClassVar

import pytest

from toggleable_bindings.core.binding import Binding, BindingSaveData
from toggleable_bindings.environment import HostEnvironment
from toggleable_bindings.vanilla import CharmsBinding, NailBinding


class TimerSaveData(BindingSaveData):
    seconds: int = 30


class TimerBinding(Binding):
    """Persists `seconds`; `scratch` is deliberately not part of the save."""

    default_sprite = "sprites/timer_default.png"
    selected_sprite = "sprites/timer_selected.png"
    save_model: ClassVar[type[BindingSaveData]] = TimerSaveData

    def __init__(self) -> None:
        super().__init__("Timer")
        self.seconds = 30
        self.scratch = "fresh"
        self.seen_during_save: list[bool] = []

    def on_applied(self) -> None:
        self.scratch = "dirty"

    def on_restored(self) -> None:
        self.scratch = "fresh"

    def collect_save_data(self) -> dict[str, Any]:
        self.seen_during_save.append(self.was_applied)
        return super().collect_save_data()


def test_serialize_applied_binding_records_applied(env: HostEnvironment) -> None:
    b = NailBinding()
    b.apply()

    payload = b.serialize()

    assert payload == {"was_applied": True}
    assert b.was_applied is False
    assert b.is_applied is True


def test_serialize_restored_binding_records_not_applied() -> None:
    b = TimerBinding()

    assert b.serialize()["was_applied"] is False
    assert b.was_applied is False


def test_snapshot_is_visible_only_during_serialization() -> None:
    b = TimerBinding()
    b.apply()

    b.serialize()
    b.restore()
    b.serialize()

    assert b.seen_during_save == [True, False]
    assert b.was_applied is False


def test_only_opted_in_fields_are_written() -> None:
    b = TimerBinding()
    b.seconds = 45
    b.apply()

    payload = b.serialize()

    assert payload == {"was_applied": True, "seconds": 45}
    assert "scratch" not in payload


def test_post_serialize_hook_runs_when_collection_fails() -> None:
    class Exploding(TimerBinding):
        def collect_save_data(self) -> dict[str, Any]:
            raise RuntimeError("disk on fire")

    b = Exploding()
    b.apply()

    with pytest.raises(RuntimeError):
        b.serialize()

    assert b.was_applied is False


def test_populate_sets_present_fields_and_keeps_defaults() -> None:
    b = TimerBinding()

    b.populate({"seconds": 90, "scratch": "ignored", "unknown": 1})

    assert b.seconds == 90
    assert b.scratch == "fresh"
    assert b.was_applied is False
    assert not hasattr(b, "unknown")

    other = TimerBinding()
    other.populate({})
    assert other.seconds == 30


def test_populate_validates_types() -> None:
    from pydantic import ValidationError

    b = TimerBinding()
    with pytest.raises(ValidationError):
        b.populate({"seconds": "not a number"})


def test_charms_persist_stash_only_while_applied(env: HostEnvironment) -> None:
    env.equipped_charms.extend([3, 7])
    b = CharmsBinding()

    assert b.serialize() == {"was_applied": False}

    b.apply()
    assert env.equipped_charms == []
    assert b.serialize() == {"was_applied": True, "unequipped_charms": [3, 7]}

    b.restore()
    assert env.equipped_charms == [3, 7]
    assert b.serialize() == {"was_applied": False}


def test_fields_left_out_of_collection_are_not_written() -> None:
    class ShyTimer(TimerBinding):
        def collect_save_data(self) -> dict[str, Any]:
            data = super().collect_save_data()
            if not self.was_applied:
                data.pop("seconds")
            return data

    b = ShyTimer()
    b.seconds = 45

    assert b.serialize() == {"was_applied": False}

    b.apply()
    assert b.serialize() == {"was_applied": True, "seconds": 45}
