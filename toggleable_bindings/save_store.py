from __future__ import annotations

import logging
import re
from datetime import UTC, datetime
from typing import Any

import redis
from pydantic import BaseModel, Field

from toggleable_bindings.lock import save_lock
from toggleable_bindings.registry import BindingManager


logger = logging.getLogger(__name__)

SAVES_SET_KEY = "toggleable-bindings:saves"
SAVE_KEY_PREFIX = "toggleable-bindings:save:"  # + {slot}

_SLOT_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class SaveFile(BaseModel):
    slot: str
    saved_at: datetime

    # Binding id -> opt-in fields of that binding, in registration order.
    bindings: dict[str, dict[str, Any]] = Field(default_factory=dict)


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _save_key(slot: str) -> str:
    return f"{SAVE_KEY_PREFIX}{slot}"


def validate_slot(slot: str) -> str:
    if not _SLOT_RE.match(slot):
        raise ValueError("Save slot must be 1-64 characters of letters, digits, '-' or '_'")
    return slot


def snapshot_bindings(manager: BindingManager) -> dict[str, dict[str, Any]]:
    """Serialize every binding. Each binding clears its `was_applied` snapshot right after."""

    return {b.id: b.serialize() for b in manager}


def save_bindings(*, r: redis.Redis, slot: str, manager: BindingManager) -> SaveFile:
    validate_slot(slot)
    with save_lock(r=r, slot=slot):
        save = SaveFile(slot=slot, saved_at=_now(), bindings=snapshot_bindings(manager))
        r.set(_save_key(slot), save.model_dump_json())
        r.sadd(SAVES_SET_KEY, slot)

    logger.info("Saved %d bindings to slot %s", len(save.bindings), slot)
    return save


def get_save(*, r: redis.Redis, slot: str) -> SaveFile | None:
    raw = r.get(_save_key(slot))
    if not raw:
        return None
    return SaveFile.model_validate_json(raw)


def require_save(*, r: redis.Redis, slot: str) -> SaveFile:
    save = get_save(r=r, slot=slot)
    if save is None:
        raise ValueError("Save not found")
    return save


def list_saves(*, r: redis.Redis) -> list[str]:
    return sorted(str(s) for s in r.smembers(SAVES_SET_KEY))


def load_bindings(*, r: redis.Redis, slot: str, manager: BindingManager) -> list[str]:
    """Bring the registered bindings to the state recorded in `slot`.

    Every binding is restored first so each one starts fresh. Bindings that were applied
    at save time are then applied again; during that `apply()` their `was_applied` is
    still set, so kinds can tell a reload apart from a first application.

    Returns the ids that are applied after the load.
    """

    validate_slot(slot)
    with save_lock(r=r, slot=slot):
        save = require_save(r=r, slot=slot)

        manager.restore_all()
        for binding_id, data in save.bindings.items():
            binding = manager.get(binding_id)
            if binding is None:
                logger.warning("Skipping unknown binding %s in save slot %s", binding_id, slot)
                continue

            # A binding that stays restored must stay fresh, so its saved fields are only
            # loaded when it is about to be applied again.
            if not binding.save_model.model_validate(data).was_applied:
                continue

            binding.populate(data)
            try:
                manager.apply(binding_id, force=True)
            finally:
                binding.was_applied = False

    applied = manager.applied_ids()
    logger.info("Loaded slot %s; applied bindings: %s", slot, ", ".join(applied) or "none")
    return applied
