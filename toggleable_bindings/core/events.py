from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from toggleable_bindings.core.binding import Binding


logger = logging.getLogger(__name__)

EventType = Literal[
    "BINDING_APPLIED",
    "BINDING_RESTORED",
]

BindingListener = Callable[["Binding"], None]


@dataclass(frozen=True, slots=True)
class BindingEvent:
    type: EventType
    binding_id: str
    payload: dict[str, Any]
    ts: datetime

    @staticmethod
    def now(*, type: EventType, binding_id: str, payload: dict[str, Any] | None = None) -> "BindingEvent":
        return BindingEvent(type=type, binding_id=binding_id, payload=payload or {}, ts=datetime.now(timezone.utc))


@dataclass(frozen=True, slots=True)
class ListenerFailure:
    subscriber: Hashable
    error: Exception


class EventChannel:
    """Synchronous listener registry for one kind of binding notification.

    Contract:
      - listeners are keyed by subscriber identity; subscribing an identity twice
        replaces its callback but keeps its original position.
      - `notify` calls listeners in registration order.
      - an exception from one listener is logged and recorded; the rest still run.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: dict[Hashable, BindingListener] = {}

    def subscribe(self, subscriber: Hashable, callback: BindingListener) -> None:
        self._listeners[subscriber] = callback

    def unsubscribe(self, subscriber: Hashable) -> bool:
        return self._listeners.pop(subscriber, None) is not None

    def __len__(self) -> int:
        return len(self._listeners)

    def __contains__(self, subscriber: object) -> bool:
        return subscriber in self._listeners

    def notify(self, binding: "Binding") -> list[ListenerFailure]:
        failures: list[ListenerFailure] = []
        # Snapshot so listeners may (un)subscribe while being notified.
        for subscriber, callback in list(self._listeners.items()):
            try:
                callback(binding)
            except Exception as e:
                logger.exception("%s listener %r failed for %s", self.name, subscriber, binding.id)
                failures.append(ListenerFailure(subscriber=subscriber, error=e))
        return failures
