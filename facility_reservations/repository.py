from __future__ import annotations

from typing import Protocol

from .interval import TimeInterval
from .models import Reservation, ReservationStatus


class ReservationRepository(Protocol):
    """Storage the engine and lifecycle depend on.

    ``create`` must refuse, with ``ReservationConflictError``, a reservation
    whose interval overlaps a CONFIRMED one on the same resource at the time
    it is written.
    """

    def create(self, reservation: Reservation) -> Reservation: ...

    def update_status(self, reservation_id: str, status: ReservationStatus) -> None: ...

    def find_by_id(self, reservation_id: str) -> Reservation | None: ...

    def find_overlapping(self, resource_id: str, interval: TimeInterval) -> list[Reservation]: ...

    def exists_confirmed_overlap(self, resource_id: str, interval: TimeInterval) -> bool: ...

    def find_all(self) -> list[Reservation]: ...
