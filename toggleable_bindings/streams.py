from __future__ import annotations

from collections.abc import Sequence
from typing import cast

import redis

from toggleable_bindings.core.events import BindingEvent


BINDING_EVENTS_STREAM = "toggleable-bindings:events"


def event_fields(event: BindingEvent) -> dict[str, str]:
    fields = {str(k): str(v) for k, v in event.payload.items()}
    fields.update({"type": event.type, "binding_id": event.binding_id, "ts": event.ts.isoformat()})
    return fields


def publish_binding_events(*, r: redis.Redis, events: Sequence[BindingEvent]) -> list[str]:
    """Append one stream entry per binding transition, oldest first."""

    ids: list[str] = []
    for event in events:
        # redis-py stubs expect field/value unions; we only use string fields/values.
        stream_id = r.xadd(BINDING_EVENTS_STREAM, event_fields(event))  # type: ignore[arg-type]
        ids.append(cast(str, stream_id))
    return ids
