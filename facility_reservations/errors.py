from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .interval import TimeInterval


class RejectionKind(str, Enum):
    INVALID_INTERVAL = "InvalidInterval"
    RESOURCE_UNAVAILABLE = "ResourceUnavailable"
    SCHEDULING_CONFLICT = "SchedulingConflict"
    ALREADY_CANCELLED = "AlreadyCancelled"
    NOT_FOUND = "NotFound"


@dataclass(frozen=True)
class Rejection:
    """Expected, caller-facing refusal of a reserve or cancel request."""

    kind: RejectionKind
    message: str
    resource_id: str | None = None
    reservation_id: str | None = None
    interval: TimeInterval | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "rejection": self.kind.value,
            "message": self.message,
        }
        if self.resource_id is not None:
            payload["resource_id"] = self.resource_id
        if self.reservation_id is not None:
            payload["reservation_id"] = self.reservation_id
        if self.interval is not None:
            payload["interval"] = self.interval.to_dict()
        return payload


class ReservationStorageError(RuntimeError):
    pass


class ReservationConflictError(ValueError):
    def __init__(self, resource_id: str, interval: TimeInterval) -> None:
        super().__init__(
            f"Reservation overlaps with an existing confirmed reservation on {resource_id} "
            f"({interval.start.isoformat(timespec='minutes')} - {interval.end.isoformat(timespec='minutes')})."
        )
        self.resource_id = resource_id
        self.interval = interval


class CatalogError(ValueError):
    pass
