from __future__ import annotations

from datetime import datetime
from typing import Callable

from .errors import Rejection, RejectionKind
from .events import EventPublisher, ReservationCancelled
from .interval import TimeInterval
from .locks import KeyedLocks
from .logger import get_logger
from .models import Reservation, ReservationStatus
from .repository import ReservationRepository

logger = get_logger(__name__)


class ReservationLifecycle:
    def __init__(
        self,
        repository: ReservationRepository,
        publisher: EventPublisher | None = None,
        now_provider: Callable[[], datetime] | None = None,
        locks: KeyedLocks | None = None,
    ) -> None:
        self.repository = repository
        self.publisher = publisher or EventPublisher()
        self._clock: Callable[[], datetime] = now_provider or datetime.now
        self._locks = locks if locks is not None else KeyedLocks()

    def cancel(self, reservation_id: str) -> Reservation | Rejection:
        """Move a CONFIRMED reservation to CANCELLED.

        Fees are left as they were. A missing reservation reports
        ``NotFound`` and a cancelled one ``AlreadyCancelled``; neither
        touches the repository.
        """
        with self._locks.hold(reservation_id):
            current = self.repository.find_by_id(reservation_id)
            if current is None:
                return Rejection(
                    kind=RejectionKind.NOT_FOUND,
                    message="Reservation not found.",
                    reservation_id=reservation_id,
                )
            if current.status is ReservationStatus.CANCELLED:
                return Rejection(
                    kind=RejectionKind.ALREADY_CANCELLED,
                    message="Reservation is already cancelled.",
                    resource_id=current.resource_id,
                    reservation_id=reservation_id,
                    interval=current.interval,
                )

            self.repository.update_status(reservation_id, ReservationStatus.CANCELLED)
            now = self._clock()
            cancelled = self.repository.find_by_id(reservation_id) or current.with_status(
                ReservationStatus.CANCELLED, updated_at=now
            )

        logger.info("Cancelled reservation %s on %s", reservation_id, current.resource_id)
        self.publisher.publish(ReservationCancelled(reservation_id=reservation_id, occurred_at=now))
        return cancelled

    def get(self, reservation_id: str) -> Reservation | None:
        return self.repository.find_by_id(reservation_id)

    def find_overlapping(self, resource_id: str, interval: TimeInterval) -> list[Reservation]:
        """All reservations of any status on ``resource_id`` meeting ``interval``, earliest first."""
        return sorted(self.repository.find_overlapping(resource_id, interval), key=lambda record: record.interval)

    def reservations_for(
        self,
        holder_id: str | None = None,
        assistant_id: str | None = None,
    ) -> list[Reservation]:
        records = self.repository.find_all()
        if holder_id is not None:
            records = [record for record in records if record.holder_id == holder_id]
        if assistant_id is not None:
            records = [record for record in records if record.assistant_id == assistant_id]
        return sorted(records, key=lambda record: record.interval.start, reverse=True)
