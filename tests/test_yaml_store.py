import tempfile
import unittest
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import yaml

from facility_reservations import (
    Reservation,
    ReservationConflictError,
    ReservationKind,
    ReservationStatus,
    ReservationStorageError,
    ReservationYamlRepository,
    TimeInterval,
)

NOW = datetime(2026, 3, 2, 8, 0)


def make_reservation(
    start: datetime,
    end: datetime,
    resource_id: str = "court-1",
    status: ReservationStatus = ReservationStatus.CONFIRMED,
) -> Reservation:
    return Reservation(
        reservation_id=None,
        resource_id=resource_id,
        holder_id="member-1",
        interval=TimeInterval(start, end),
        kind=ReservationKind.FACILITY,
        status=status,
        resource_fee=Decimal("20.00"),
        assistant_fee=Decimal("0.00"),
        total_fee=Decimal("20.00"),
        created_at=NOW,
        updated_at=NOW,
    )


class TestReservationYamlRepository(unittest.TestCase):
    def setUp(self) -> None:
        temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(temp_dir.cleanup)
        self.data_dir = Path(temp_dir.name) / "data"
        self.repo = ReservationYamlRepository(self.data_dir, now_provider=lambda: NOW)

    def test_create_assigns_identifier_and_persists(self) -> None:
        created = self.repo.create(make_reservation(datetime(2026, 3, 3, 9, 0), datetime(2026, 3, 3, 10, 0)))

        self.assertIsNotNone(created.reservation_id)
        reopened = ReservationYamlRepository(self.data_dir)
        self.assertEqual(reopened.find_by_id(created.reservation_id), created)

        rows = yaml.safe_load((self.data_dir / "reservations.yaml").read_text(encoding="utf-8"))
        self.assertEqual(rows[0]["total_fee"], "20.00")
        self.assertEqual(rows[0]["start"], "2026-03-03T09:00")
        self.assertEqual(rows[0]["status"], "CONFIRMED")

    def test_create_refuses_confirmed_overlap_at_commit(self) -> None:
        self.repo.create(make_reservation(datetime(2026, 3, 3, 9, 0), datetime(2026, 3, 3, 10, 0)))

        with self.assertRaises(ReservationConflictError):
            self.repo.create(make_reservation(datetime(2026, 3, 3, 9, 30), datetime(2026, 3, 3, 10, 30)))

        self.assertEqual(len(self.repo.find_all()), 1)

    def test_cancelled_rows_do_not_block_create(self) -> None:
        first = self.repo.create(make_reservation(datetime(2026, 3, 3, 9, 0), datetime(2026, 3, 3, 10, 0)))
        self.repo.update_status(first.reservation_id, ReservationStatus.CANCELLED)

        second = self.repo.create(make_reservation(datetime(2026, 3, 3, 9, 0), datetime(2026, 3, 3, 10, 0)))

        self.assertNotEqual(first.reservation_id, second.reservation_id)
        self.assertFalse(self.repo.exists_confirmed_overlap("court-1", TimeInterval(datetime(2026, 3, 3, 10, 0), datetime(2026, 3, 3, 11, 0))))
        self.assertTrue(self.repo.exists_confirmed_overlap("court-1", TimeInterval(datetime(2026, 3, 3, 9, 59), datetime(2026, 3, 3, 11, 0))))

    def test_update_status_keeps_fees_and_stamps_time(self) -> None:
        created = self.repo.create(make_reservation(datetime(2026, 3, 3, 9, 0), datetime(2026, 3, 3, 10, 0)))
        later = datetime(2026, 3, 2, 12, 30)
        repo = ReservationYamlRepository(self.data_dir, now_provider=lambda: later)

        repo.update_status(created.reservation_id, ReservationStatus.CANCELLED)

        stored = repo.find_by_id(created.reservation_id)
        self.assertEqual(stored.status, ReservationStatus.CANCELLED)
        self.assertEqual(stored.total_fee, Decimal("20.00"))
        self.assertEqual(stored.created_at, NOW)
        self.assertEqual(stored.updated_at, later)

    def test_update_status_of_unknown_id_raises(self) -> None:
        with self.assertRaises(ValueError):
            self.repo.update_status("missing-id", ReservationStatus.CANCELLED)

    def test_find_all_orders_newest_start_first(self) -> None:
        self.repo.create(make_reservation(datetime(2026, 3, 3, 9, 0), datetime(2026, 3, 3, 10, 0)))
        self.repo.create(make_reservation(datetime(2026, 3, 4, 9, 0), datetime(2026, 3, 4, 10, 0)))
        self.repo.create(make_reservation(datetime(2026, 3, 3, 9, 0), datetime(2026, 3, 3, 10, 0), resource_id="pool-1"))

        starts = [record.interval.start for record in self.repo.find_all()]

        self.assertEqual(starts[0], datetime(2026, 3, 4, 9, 0))
        self.assertEqual(len(starts), 3)

    def test_logs_create_and_status_events(self) -> None:
        created = self.repo.create(make_reservation(datetime(2026, 3, 3, 13, 0), datetime(2026, 3, 3, 14, 0)))
        self.repo.update_status(created.reservation_id, ReservationStatus.CANCELLED)

        event_types = [event["event_type"] for event in self.repo.read_events()]

        self.assertEqual(event_types, ["RESERVATION_CREATED", "RESERVATION_STATUS_UPDATED"])
        contents = (self.data_dir / "reservation_events.yaml").read_text(encoding="utf-8")
        self.assertIn(created.reservation_id, contents)

    def test_corrupted_file_is_backed_up_and_reset(self) -> None:
        (self.data_dir / "reservations.yaml").write_text("reservation_id: [unclosed\n", encoding="utf-8")

        self.assertEqual(self.repo.find_all(), [])

        backups = list(self.data_dir.glob("reservations.corrupt.*.yaml"))
        self.assertEqual(len(backups), 1)
        self.assertIn("YAML_RECOVERED", [event["event_type"] for event in self.repo.read_events()])

    def test_non_mapping_and_malformed_rows_are_skipped(self) -> None:
        good = make_reservation(datetime(2026, 3, 3, 9, 0), datetime(2026, 3, 3, 10, 0)).with_id("kept")
        rows = [good.to_dict(), "not a row", {"reservation_id": "broken"}]
        (self.data_dir / "reservations.yaml").write_text(yaml.safe_dump(rows), encoding="utf-8")

        records = self.repo.find_all()

        self.assertEqual([record.reservation_id for record in records], ["kept"])
        skipped = [event for event in self.repo.read_events() if event["event_type"] == "YAML_ROW_SKIPPED"]
        self.assertEqual(len(skipped), 2)

    def test_write_failure_raises_storage_error(self) -> None:
        reservations_file = self.data_dir / "reservations.yaml"
        reservations_file.unlink()
        reservations_file.mkdir()

        with self.assertRaises(ReservationStorageError):
            self.repo.create(make_reservation(datetime(2026, 3, 3, 9, 0), datetime(2026, 3, 3, 10, 0)))


if __name__ == "__main__":
    unittest.main()
