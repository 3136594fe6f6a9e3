from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path
from threading import RLock
from typing import Any, Callable
from uuid import uuid4

import yaml

from .errors import ReservationConflictError, ReservationStorageError
from .interval import TimeInterval
from .logger import get_logger
from .models import Reservation, ReservationStatus

logger = get_logger(__name__)


class ReservationYamlRepository:
    """Reservation store backed by YAML files in ``base_dir``.

    Every reservation, whatever its status, lives in ``reservations.yaml``;
    storage events are appended to ``reservation_events.yaml``. All file
    access is serialized by one re-entrant lock, so ``create`` can re-check
    overlap and write as a single step within this process.
    """

    def __init__(
        self,
        base_dir: str | Path = "data",
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        self.base_dir = Path(base_dir)
        self.reservations_file = self.base_dir / "reservations.yaml"
        self.log_file = self.base_dir / "reservation_events.yaml"
        self._clock: Callable[[], datetime] = now_provider or datetime.now
        self._lock = RLock()
        self._ensure_files()

    def _ensure_files(self) -> None:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            for path in (self.reservations_file, self.log_file):
                if not path.exists():
                    path.write_text("[]\n", encoding="utf-8")
        except OSError as error:
            raise ReservationStorageError(f"Failed to prepare data directory: {self.base_dir}") from error

    def _read_yaml_list(self, path: Path) -> list[dict[str, Any]]:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            self._write_yaml_list(path, [])
            return []
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
            self._recover_corrupted_yaml(path, error)
            return []

        if payload is None:
            return []
        if not isinstance(payload, list):
            self._recover_corrupted_yaml(path, ValueError("top-level YAML is not a list"))
            return []

        sanitized: list[dict[str, Any]] = []
        for index, row in enumerate(payload):
            if isinstance(row, dict):
                sanitized.append(row)
            else:
                self._log_event(
                    "YAML_ROW_SKIPPED",
                    {
                        "file": str(path.name),
                        "index": index,
                        "reason": "row is not a mapping",
                    },
                )
        return sanitized

    def _write_yaml_list(self, path: Path, rows: list[dict[str, Any]]) -> None:
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as error:
            raise ReservationStorageError(f"Failed to write YAML file: {path}") from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def _recover_corrupted_yaml(self, path: Path, error: Exception) -> None:
        timestamp = self._clock().strftime("%Y%m%d%H%M%S")
        backup_path = path.with_name(f"{path.stem}.corrupt.{timestamp}{path.suffix}")
        try:
            if path.exists():
                shutil.copy2(path, backup_path)
        except OSError:
            logger.warning("Could not back up corrupted file %s", path)

        logger.warning("Resetting corrupted YAML file %s: %s", path.name, error)
        self._write_yaml_list(path, [])
        if path != self.log_file:
            self._log_event(
                "YAML_RECOVERED",
                {
                    "file": str(path.name),
                    "backup": str(backup_path.name),
                    "reason": str(error),
                },
            )

    def _log_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or self._clock()).isoformat(timespec="seconds")
        events = self._read_yaml_list(self.log_file)
        events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})
        self._write_yaml_list(self.log_file, events)

    def _load_reservations(self) -> list[Reservation]:
        records: list[Reservation] = []
        for index, row in enumerate(self._read_yaml_list(self.reservations_file)):
            try:
                records.append(Reservation.from_dict(row))
            except (KeyError, ValueError, TypeError) as error:
                self._log_event(
                    "YAML_ROW_SKIPPED",
                    {
                        "file": str(self.reservations_file.name),
                        "index": index,
                        "reason": str(error),
                    },
                )
        return records

    def create(self, reservation: Reservation) -> Reservation:
        with self._lock:
            existing = self._load_reservations()
            if reservation.is_confirmed and any(
                row.resource_id == reservation.resource_id
                and row.is_confirmed
                and row.interval.overlaps(reservation.interval)
                for row in existing
            ):
                raise ReservationConflictError(reservation.resource_id, reservation.interval)

            record = reservation.with_id(str(uuid4()))
            rows = [row.to_dict() for row in existing]
            rows.append(record.to_dict())
            self._write_yaml_list(self.reservations_file, rows)

            self._log_event(
                "RESERVATION_CREATED",
                {
                    "reservation_id": record.reservation_id,
                    "resource_id": record.resource_id,
                    "kind": record.kind.value,
                    **record.interval.to_dict(),
                    "total_fee": str(record.total_fee),
                },
            )
            return record

    def update_status(self, reservation_id: str, status: ReservationStatus) -> None:
        with self._lock:
            records = self._load_reservations()
            found_index = -1
            for index, record in enumerate(records):
                if record.reservation_id == reservation_id:
                    found_index = index
                    break

            if found_index < 0:
                raise ValueError("reservation_id not found")

            now = self._clock()
            records[found_index] = records[found_index].with_status(status, updated_at=now)
            self._write_yaml_list(self.reservations_file, [record.to_dict() for record in records])

            self._log_event(
                "RESERVATION_STATUS_UPDATED",
                {
                    "reservation_id": reservation_id,
                    "status": status.value,
                },
                now,
            )

    def find_by_id(self, reservation_id: str) -> Reservation | None:
        with self._lock:
            for record in self._load_reservations():
                if record.reservation_id == reservation_id:
                    return record
        return None

    def find_overlapping(self, resource_id: str, interval: TimeInterval) -> list[Reservation]:
        with self._lock:
            matches = [
                record
                for record in self._load_reservations()
                if record.resource_id == resource_id and record.interval.overlaps(interval)
            ]
        return sorted(matches, key=lambda record: record.interval)

    def exists_confirmed_overlap(self, resource_id: str, interval: TimeInterval) -> bool:
        with self._lock:
            return any(
                record.resource_id == resource_id and record.is_confirmed and record.interval.overlaps(interval)
                for record in self._load_reservations()
            )

    def find_all(self) -> list[Reservation]:
        with self._lock:
            records = self._load_reservations()
        return sorted(records, key=lambda record: record.interval.start, reverse=True)

    def read_events(self) -> list[dict[str, Any]]:
        with self._lock:
            return self._read_yaml_list(self.log_file)
