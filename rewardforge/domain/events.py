"""Post-commit domain events."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, DefaultDict, Iterable

logger = logging.getLogger(__name__)

DRAW_COMMITTED = "reward.draw.committed"
ACCRUAL_CREDITED = "reward.accrual.credited"
PURCHASE_COMMITTED = "reward.purchase.committed"
TICKETS_GRANTED = "admin.tickets.granted"

EventListener = Callable[[Any], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class DrawCommitted:
    student_id: str
    result: Any
    entries: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class AccrualCredited:
    student_id: str
    merit_point_delta: int
    credited_units: int
    accrual_progress: int


@dataclass(frozen=True, slots=True)
class PurchaseCommitted:
    student_id: str
    item_id: str
    price: int


class EventBus:
    """Async pub-sub for observers of committed reward operations.

    Events are only published after the unit of work has committed, so a
    failing listener cannot undo a draw. Listener errors are logged and the
    remaining listeners still run.
    """

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, list[EventListener]] = defaultdict(list)

    def subscribe(self, event_name: str, listener: EventListener) -> None:
        self._listeners[event_name].append(listener)

    def unsubscribe(self, event_name: str, listener: EventListener) -> None:
        listeners = self._listeners.get(event_name)
        if listeners and listener in listeners:
            listeners.remove(listener)

    async def publish(self, event_name: str, payload: Any) -> None:
        for listener in list(self._listeners.get(event_name, ())):
            try:
                await listener(payload)
            except Exception:
                logger.exception("Listener %r failed handling '%s'.", listener, event_name)

    def clear(self) -> None:
        self._listeners.clear()

    def listeners(self, event_name: str) -> Iterable[EventListener]:
        return tuple(self._listeners.get(event_name, ()))
