from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Union

from .logger import get_logger
from .models import Reservation

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReservationCreated:
    reservation: Reservation
    occurred_at: datetime


@dataclass(frozen=True)
class ReservationCancelled:
    reservation_id: str
    occurred_at: datetime


ReservationEvent = Union[ReservationCreated, ReservationCancelled]
EventHandler = Callable[[ReservationEvent], None]


class EventPublisher:
    """Synchronous fan-out of reservation events to subscribed callables."""

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    def publish(self, event: ReservationEvent) -> None:
        # The reservation is already committed; a failing subscriber must not undo it.
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler %r failed for %s", handler, type(event).__name__)
