from __future__ import annotations

from datetime import datetime
from typing import Callable

from .catalog import ResourceCatalog
from .errors import Rejection, RejectionKind, ReservationConflictError
from .events import EventPublisher, ReservationCreated
from .fees import DEFAULT_FEE_SCHEDULE, FeeBreakdown, FeeSchedule
from .interval import TimeInterval, is_local_time
from .locks import KeyedLocks
from .logger import get_logger
from .models import Reservation, ReservationKind, ReservationRequest, ReservationStatus, Resource
from .repository import ReservationRepository

logger = get_logger(__name__)


class SchedulingEngine:
    """Validates reservation requests, prices them and commits them.

    ``reserve`` holds a per-resource lock from the conflict check until the
    repository has written the reservation, so two requests for the same
    facility never both pass the check. Requests for different facilities
    do not wait on each other.
    """

    def __init__(
        self,
        repository: ReservationRepository,
        catalog: ResourceCatalog,
        fee_schedule: FeeSchedule = DEFAULT_FEE_SCHEDULE,
        publisher: EventPublisher | None = None,
        now_provider: Callable[[], datetime] | None = None,
        locks: KeyedLocks | None = None,
    ) -> None:
        self.repository = repository
        self.catalog = catalog
        self.fee_schedule = fee_schedule
        self.publisher = publisher or EventPublisher()
        self._clock: Callable[[], datetime] = now_provider or datetime.now
        self._locks = locks if locks is not None else KeyedLocks()

    def reserve(self, request: ReservationRequest) -> Reservation | Rejection:
        interval = _requested_interval(request)
        if isinstance(interval, Rejection):
            logger.info("Rejected reservation on %s: %s", request.resource_id, interval.message)
            return interval

        resource = self._bookable_resource(request.resource_id)
        if isinstance(resource, Rejection):
            logger.info("Rejected reservation on %s: %s", request.resource_id, resource.message)
            return resource

        with self._locks.hold(resource.resource_id):
            if self.repository.exists_confirmed_overlap(resource.resource_id, interval):
                rejection = _conflict(resource.resource_id, interval)
                logger.info("Rejected reservation on %s: %s", resource.resource_id, rejection.message)
                return rejection

            assistant_id = _assistant_for(request)
            fees = self._price(request.kind, interval, resource, assistant_id)
            now = self._clock()
            candidate = Reservation(
                reservation_id=None,
                resource_id=resource.resource_id,
                holder_id=request.holder_id,
                assistant_id=assistant_id,
                interval=interval,
                kind=request.kind,
                status=ReservationStatus.CONFIRMED,
                resource_fee=fees.resource_fee,
                assistant_fee=fees.assistant_fee,
                total_fee=fees.total_fee,
                created_at=now,
                updated_at=now,
            )
            try:
                created = self.repository.create(candidate)
            except ReservationConflictError:
                rejection = _conflict(resource.resource_id, interval)
                logger.info("Conflict detected at commit on %s", resource.resource_id)
                return rejection

        logger.info(
            "Reserved %s for %s (%s, total %s)",
            created.resource_id,
            created.holder_id,
            created.kind.value,
            created.total_fee,
        )
        self.publisher.publish(ReservationCreated(reservation=created, occurred_at=now))
        return created

    def quote(self, request: ReservationRequest) -> FeeBreakdown | Rejection:
        """Price a request without checking conflicts or storing anything."""
        interval = _requested_interval(request)
        if isinstance(interval, Rejection):
            return interval

        resource = self._bookable_resource(request.resource_id)
        if isinstance(resource, Rejection):
            return resource

        return self._price(request.kind, interval, resource, _assistant_for(request))

    def _bookable_resource(self, resource_id: str) -> Resource | Rejection:
        resource = self.catalog.get_resource(resource_id)
        if resource is None:
            return Rejection(
                kind=RejectionKind.RESOURCE_UNAVAILABLE,
                message="Facility not found.",
                resource_id=resource_id,
            )
        if not resource.is_bookable:
            return Rejection(
                kind=RejectionKind.RESOURCE_UNAVAILABLE,
                message="Facility not available.",
                resource_id=resource_id,
            )
        return resource

    def _price(
        self,
        kind: ReservationKind,
        interval: TimeInterval,
        resource: Resource,
        assistant_id: str | None,
    ) -> FeeBreakdown:
        assistant_rate = self.catalog.get_assistant_rate(assistant_id) if assistant_id is not None else None
        return self.fee_schedule.compute(kind, interval, resource.hourly_rate, assistant_rate)


def _requested_interval(request: ReservationRequest) -> TimeInterval | Rejection:
    if request.start is None or request.end is None:
        return Rejection(
            kind=RejectionKind.INVALID_INTERVAL,
            message="Start and end required.",
            resource_id=request.resource_id,
        )
    if not (is_local_time(request.start) and is_local_time(request.end)):
        return Rejection(
            kind=RejectionKind.INVALID_INTERVAL,
            message="Start and end must be local times without a UTC offset.",
            resource_id=request.resource_id,
        )
    if not request.has_valid_window:
        return Rejection(
            kind=RejectionKind.INVALID_INTERVAL,
            message="End time must be after start time.",
            resource_id=request.resource_id,
        )
    return TimeInterval(request.start, request.end)


def _assistant_for(request: ReservationRequest) -> str | None:
    # Only coached sessions carry a coach.
    if request.kind is not ReservationKind.TRAINING:
        return None
    return request.assistant_id or None


def _conflict(resource_id: str, interval: TimeInterval) -> Rejection:
    return Rejection(
        kind=RejectionKind.SCHEDULING_CONFLICT,
        message="Overlapping booking exists for this facility and time range.",
        resource_id=resource_id,
        interval=interval,
    )
