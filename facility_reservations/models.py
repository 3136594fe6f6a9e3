from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

from .interval import TimeInterval, is_local_time

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


class ReservationKind(str, Enum):
    FACILITY = "FACILITY"
    TRAINING = "TRAINING"


class ReservationStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class FacilityStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    MAINTENANCE = "MAINTENANCE"
    CLOSED = "CLOSED"


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Round an amount to cents, half-up.

    Floats go through ``str`` first so 0.1-style binary noise never leaks
    into the rounded value.
    """
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError) as error:
        raise ValueError(f"Invalid money amount: {value!r}") from error
    if not amount.is_finite():
        raise ValueError(f"Invalid money amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Resource:
    resource_id: str
    hourly_rate: Decimal
    is_bookable: bool = True
    name: str | None = None

    def __post_init__(self) -> None:
        if not self.resource_id:
            raise ValueError("resource_id must not be empty")
        if self.hourly_rate < 0:
            raise ValueError("Hourly rate must be >= 0")

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource_id": self.resource_id,
            "name": self.name,
            "hourly_rate": str(self.hourly_rate),
            "is_bookable": self.is_bookable,
        }


@dataclass(frozen=True)
class ReservationRequest:
    resource_id: str
    holder_id: str
    start: datetime | None
    end: datetime | None
    kind: ReservationKind = ReservationKind.FACILITY
    assistant_id: str | None = None

    @property
    def has_valid_window(self) -> bool:
        if self.start is None or self.end is None:
            return False
        if not (is_local_time(self.start) and is_local_time(self.end)):
            return False
        return self.end > self.start


@dataclass(frozen=True)
class Reservation:
    reservation_id: str | None
    resource_id: str
    holder_id: str
    interval: TimeInterval
    kind: ReservationKind
    resource_fee: Decimal
    assistant_fee: Decimal
    total_fee: Decimal
    status: ReservationStatus = ReservationStatus.CONFIRMED
    assistant_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_confirmed(self) -> bool:
        return self.status is ReservationStatus.CONFIRMED

    def with_id(self, reservation_id: str) -> "Reservation":
        return replace(self, reservation_id=reservation_id)

    def with_status(self, status: ReservationStatus, updated_at: datetime | None = None) -> "Reservation":
        return replace(self, status=status, updated_at=updated_at or self.updated_at)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "reservation_id": self.reservation_id,
            "resource_id": self.resource_id,
            "holder_id": self.holder_id,
            "assistant_id": self.assistant_id,
            "kind": self.kind.value,
            "status": self.status.value,
            **self.interval.to_dict(),
            "resource_fee": str(self.resource_fee),
            "assistant_fee": str(self.assistant_fee),
            "total_fee": str(self.total_fee),
        }
        if self.created_at is not None:
            payload["created_at"] = self.created_at.isoformat(timespec="seconds")
        if self.updated_at is not None:
            payload["updated_at"] = self.updated_at.isoformat(timespec="seconds")
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Reservation":
        return Reservation(
            reservation_id=(str(data["reservation_id"]) if data.get("reservation_id") is not None else None),
            resource_id=str(data["resource_id"]),
            holder_id=str(data["holder_id"]),
            assistant_id=(str(data["assistant_id"]) if data.get("assistant_id") is not None else None),
            interval=TimeInterval.from_dict(data),
            kind=ReservationKind(str(data["kind"])),
            status=ReservationStatus(str(data.get("status", ReservationStatus.CONFIRMED.value))),
            resource_fee=to_money(str(data["resource_fee"])),
            assistant_fee=to_money(str(data["assistant_fee"])),
            total_fee=to_money(str(data["total_fee"])),
            created_at=(datetime.fromisoformat(str(data["created_at"])) if data.get("created_at") else None),
            updated_at=(datetime.fromisoformat(str(data["updated_at"])) if data.get("updated_at") else None),
        )
