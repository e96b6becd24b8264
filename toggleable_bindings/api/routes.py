from __future__ import annotations

import redis
from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status

from toggleable_bindings.api.deps import get_binding_manager, get_redis
from toggleable_bindings.api.models import (
    BindingChecksResponse,
    BindingListResponse,
    BindingView,
    CheckView,
    EnvironmentUpdateRequest,
    EnvironmentView,
    LoadResponse,
    SaveListResponse,
    ToggleResponse,
)
from toggleable_bindings.core.binding import Binding
from toggleable_bindings.environment import require_environment
from toggleable_bindings.registry import BindingManager
from toggleable_bindings.save_store import SaveFile, get_save, list_saves, load_bindings, save_bindings
from toggleable_bindings.streams import BINDING_EVENTS_STREAM, publish_binding_events
from toggleable_bindings.websocket_hub import hub

router = APIRouter()


def _require_binding(manager: BindingManager, binding_id: str) -> Binding:
    binding = manager.get(binding_id)
    if binding is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Binding not found")
    return binding


async def _flush_events(*, r: redis.Redis, manager: BindingManager) -> None:
    """Publish pending transitions to the event stream and connected UIs."""

    events = manager.drain_events()
    if not events:
        return

    publish_binding_events(r=r, events=events)
    for event in events:
        # State as of this event; a load emits restored then applied for one binding.
        await hub.broadcast(
            {
                "type": "binding_updated",
                "binding_id": event.binding_id,
                "is_applied": event.type == "BINDING_APPLIED",
            }
        )


@router.websocket("/ws/bindings")
async def binding_updates_ws(websocket: WebSocket) -> None:
    await hub.connect(websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(websocket)
    except Exception:
        await hub.disconnect(websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/bindings", response_model=BindingListResponse)
async def list_bindings_route(manager: BindingManager = Depends(get_binding_manager)) -> BindingListResponse:
    return BindingListResponse(bindings=[BindingView.from_binding(b) for b in manager])


@router.get("/bindings/{binding_id}", response_model=BindingView)
async def get_binding_route(binding_id: str, manager: BindingManager = Depends(get_binding_manager)) -> BindingView:
    return BindingView.from_binding(_require_binding(manager, binding_id))


@router.get("/bindings/{binding_id}/checks", response_model=BindingChecksResponse)
async def binding_checks_route(
    binding_id: str,
    manager: BindingManager = Depends(get_binding_manager),
) -> BindingChecksResponse:
    binding = _require_binding(manager, binding_id)
    return BindingChecksResponse(
        binding_id=binding.id,
        apply=CheckView.from_result(binding.can_be_applied()),
        restore=CheckView.from_result(binding.can_be_restored()),
    )


@router.post("/bindings/{binding_id}/apply", response_model=ToggleResponse)
async def apply_binding_route(
    binding_id: str,
    force: bool = False,
    manager: BindingManager = Depends(get_binding_manager),
    r: redis.Redis = Depends(get_redis),
) -> ToggleResponse:
    binding = _require_binding(manager, binding_id)
    was_applied = binding.is_applied

    check = manager.apply(binding_id, force=force)
    if not check.allowed:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=check.reason)

    await _flush_events(r=r, manager=manager)
    return ToggleResponse(binding=BindingView.from_binding(binding), changed=binding.is_applied != was_applied)


@router.post("/bindings/{binding_id}/restore", response_model=ToggleResponse)
async def restore_binding_route(
    binding_id: str,
    force: bool = False,
    manager: BindingManager = Depends(get_binding_manager),
    r: redis.Redis = Depends(get_redis),
) -> ToggleResponse:
    binding = _require_binding(manager, binding_id)
    was_applied = binding.is_applied

    check = manager.restore(binding_id, force=force)
    if not check.allowed:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=check.reason)

    await _flush_events(r=r, manager=manager)
    return ToggleResponse(binding=BindingView.from_binding(binding), changed=binding.is_applied != was_applied)


@router.get("/environment", response_model=EnvironmentView)
async def get_environment_route() -> EnvironmentView:
    env = require_environment()
    return EnvironmentView(
        near_bench=env.near_bench,
        restrictions=sorted(env.restrictions),
        equipped_charms=list(env.equipped_charms),
    )


@router.put("/environment", response_model=EnvironmentView)
async def update_environment_route(payload: EnvironmentUpdateRequest) -> EnvironmentView:
    """Dev endpoint: stand in for the host game's signals."""

    env = require_environment()
    if payload.near_bench is not None:
        env.near_bench = payload.near_bench
    if payload.equipped_charms is not None:
        env.equipped_charms[:] = payload.equipped_charms
    return await get_environment_route()


@router.get("/saves", response_model=SaveListResponse)
async def list_saves_route(r: redis.Redis = Depends(get_redis)) -> SaveListResponse:
    return SaveListResponse(slots=list_saves(r=r))


@router.post("/saves/{slot}", response_model=SaveFile, status_code=status.HTTP_201_CREATED)
async def save_route(
    slot: str,
    manager: BindingManager = Depends(get_binding_manager),
    r: redis.Redis = Depends(get_redis),
) -> SaveFile:
    try:
        return save_bindings(r=r, slot=slot, manager=manager)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e


@router.get("/saves/{slot}", response_model=SaveFile)
async def get_save_route(slot: str, r: redis.Redis = Depends(get_redis)) -> SaveFile:
    save = get_save(r=r, slot=slot)
    if save is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Save not found")
    return save


@router.post("/saves/{slot}/load", response_model=LoadResponse)
async def load_route(
    slot: str,
    manager: BindingManager = Depends(get_binding_manager),
    r: redis.Redis = Depends(get_redis),
) -> LoadResponse:
    if get_save(r=r, slot=slot) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Save not found")
    try:
        applied = load_bindings(r=r, slot=slot, manager=manager)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    await _flush_events(r=r, manager=manager)
    return LoadResponse(slot=slot, applied=applied)


@router.get("/events")
async def get_binding_events_route(
    count: int = 20,
    start: str = "-",
    end: str = "+",
    r: redis.Redis = Depends(get_redis),
) -> dict[str, object]:
    """Debug endpoint: read the binding transition stream.

    Intended for local/dev testing when redis-cli isn't available.
    """

    if count < 1 or count > 200:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 200")

    try:
        entries = r.xrange(BINDING_EVENTS_STREAM, min=start, max=end, count=count)
    except redis.RedisError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    messages = [{"id": mid, "fields": fields} for mid, fields in entries]
    return {"stream": BINDING_EVENTS_STREAM, "messages": messages}
