import unittest
from datetime import datetime
from decimal import Decimal

from facility_reservations import (
    DEFAULT_FEE_SCHEDULE,
    FeeBreakdown,
    FeeSchedule,
    ReservationKind,
    TimeInterval,
    facility_fee,
    to_money,
)


def window(start_hour: int, start_minute: int, end_hour: int, end_minute: int) -> TimeInterval:
    return TimeInterval(datetime(2026, 3, 3, start_hour, start_minute), datetime(2026, 3, 3, end_hour, end_minute))


class TestFacilityFee(unittest.TestCase):
    def test_one_hour_at_twenty(self) -> None:
        fees = DEFAULT_FEE_SCHEDULE.compute(ReservationKind.FACILITY, window(9, 0, 10, 0), Decimal("20.00"))

        self.assertEqual(fees, FeeBreakdown(Decimal("20.00"), Decimal("0.00"), Decimal("20.00")))

    def test_ignores_assistant_rate(self) -> None:
        fees = DEFAULT_FEE_SCHEDULE.compute(
            ReservationKind.FACILITY, window(9, 0, 10, 0), Decimal("20.00"), Decimal("99.00")
        )

        self.assertEqual(fees.assistant_fee, Decimal("0.00"))
        self.assertEqual(fees.total_fee, Decimal("20.00"))

    def test_partial_hour_rounds_half_up_on_cents(self) -> None:
        # 50 minutes at 0.03/h is 0.025
        fees = DEFAULT_FEE_SCHEDULE.compute(ReservationKind.FACILITY, window(9, 0, 9, 50), Decimal("0.03"))
        self.assertEqual(fees.resource_fee, Decimal("0.03"))

        fees = DEFAULT_FEE_SCHEDULE.compute(ReservationKind.FACILITY, window(9, 0, 9, 20), Decimal("15.00"))
        self.assertEqual(fees.resource_fee, Decimal("5.00"))

    def test_zero_rate_is_free(self) -> None:
        fees = DEFAULT_FEE_SCHEDULE.compute(ReservationKind.FACILITY, window(9, 0, 11, 0), Decimal("0"))
        self.assertEqual(fees.total_fee, Decimal("0.00"))


class TestTrainingFee(unittest.TestCase):
    def test_falls_back_to_quarter_of_facility_fee_without_assistant_rate(self) -> None:
        fees = DEFAULT_FEE_SCHEDULE.compute(ReservationKind.TRAINING, window(9, 0, 10, 0), Decimal("20.00"))

        self.assertEqual(fees, FeeBreakdown(Decimal("20.00"), Decimal("5.00"), Decimal("25.00")))

    def test_uses_assistant_hourly_rate_when_present(self) -> None:
        fees = DEFAULT_FEE_SCHEDULE.compute(
            ReservationKind.TRAINING, window(9, 0, 11, 0), Decimal("15.00"), Decimal("10.00")
        )

        self.assertEqual(fees, FeeBreakdown(Decimal("30.00"), Decimal("20.00"), Decimal("50.00")))

    def test_zero_assistant_rate_is_not_a_missing_rate(self) -> None:
        fees = DEFAULT_FEE_SCHEDULE.compute(
            ReservationKind.TRAINING, window(9, 0, 10, 0), Decimal("20.00"), Decimal("0.00")
        )

        self.assertEqual(fees.assistant_fee, Decimal("0.00"))
        self.assertEqual(fees.total_fee, Decimal("20.00"))

    def test_fallback_surcharge_rounds_half_up(self) -> None:
        # 0.10 * 0.25 = 0.025
        fees = DEFAULT_FEE_SCHEDULE.compute(ReservationKind.TRAINING, window(9, 0, 10, 0), Decimal("0.10"))

        self.assertEqual(fees.assistant_fee, Decimal("0.03"))
        self.assertEqual(fees.total_fee, Decimal("0.13"))

    def test_same_input_gives_same_fees(self) -> None:
        interval = window(13, 10, 14, 55)
        first = DEFAULT_FEE_SCHEDULE.compute(ReservationKind.TRAINING, interval, Decimal("17.35"), Decimal("8.10"))
        second = DEFAULT_FEE_SCHEDULE.compute(ReservationKind.TRAINING, interval, Decimal("17.35"), Decimal("8.10"))

        self.assertEqual(first, second)


class TestFeeSchedule(unittest.TestCase):
    def test_registering_existing_kind_requires_replace(self) -> None:
        schedule = DEFAULT_FEE_SCHEDULE.copy()
        with self.assertRaises(ValueError):
            schedule.register(ReservationKind.FACILITY, facility_fee)

        def flat_fee(interval: TimeInterval, hourly_rate: Decimal, assistant_rate: Decimal | None = None) -> FeeBreakdown:
            return FeeBreakdown(Decimal("1.00"), Decimal("0.00"), Decimal("1.00"))

        schedule.register(ReservationKind.FACILITY, flat_fee, replace=True)

        self.assertEqual(schedule.compute(ReservationKind.FACILITY, window(9, 0, 12, 0), Decimal("20")).total_fee, Decimal("1.00"))
        self.assertEqual(
            DEFAULT_FEE_SCHEDULE.compute(ReservationKind.FACILITY, window(9, 0, 12, 0), Decimal("20")).total_fee,
            Decimal("60.00"),
        )

    def test_unregistered_kind_raises(self) -> None:
        schedule = FeeSchedule({ReservationKind.FACILITY: facility_fee})

        with self.assertRaises(ValueError):
            schedule.compute(ReservationKind.TRAINING, window(9, 0, 10, 0), Decimal("20"))

    def test_default_schedule_covers_every_kind(self) -> None:
        self.assertEqual(set(DEFAULT_FEE_SCHEDULE.kinds()), set(ReservationKind))


class TestToMoney(unittest.TestCase):
    def test_rounds_half_up(self) -> None:
        self.assertEqual(to_money("2.675"), Decimal("2.68"))
        self.assertEqual(to_money(2.675), Decimal("2.68"))
        self.assertEqual(to_money("0.005"), Decimal("0.01"))

    def test_rejects_garbage(self) -> None:
        with self.assertRaises(ValueError):
            to_money("twenty")
        with self.assertRaises(ValueError):
            to_money("NaN")


if __name__ == "__main__":
    unittest.main()
