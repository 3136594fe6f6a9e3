from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


def is_local_time(value: datetime) -> bool:
    """Reservations are kept in naive local wall-clock time."""
    return value.tzinfo is None


@dataclass(frozen=True, order=True)
class TimeInterval:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if not (is_local_time(self.start) and is_local_time(self.end)):
            raise ValueError("Interval times must not carry a UTC offset.")
        if self.start >= self.end:
            raise ValueError("Interval start time must be earlier than end time.")

    def overlaps(self, other: TimeInterval) -> bool:
        """Return True when the two half-open ranges share any instant.

        Touching boundaries (09:00-10:00 and 10:00-11:00) do not overlap.
        """
        return not (self.end <= other.start or self.start >= other.end)

    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def duration_hours(self) -> float:
        return self.duration_minutes() / 60

    def to_dict(self) -> dict[str, str]:
        return {
            "start": self.start.isoformat(timespec="minutes"),
            "end": self.end.isoformat(timespec="minutes"),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "TimeInterval":
        return TimeInterval(
            start=datetime.fromisoformat(str(data["start"])),
            end=datetime.fromisoformat(str(data["end"])),
        )
