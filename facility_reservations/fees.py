from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable

from .interval import TimeInterval
from .models import ZERO, ReservationKind, to_money

TRAINING_ASSISTANT_FALLBACK_RATIO = Decimal("0.25")


@dataclass(frozen=True)
class FeeBreakdown:
    resource_fee: Decimal
    assistant_fee: Decimal
    total_fee: Decimal

    def to_dict(self) -> dict[str, str]:
        return {
            "resource_fee": str(self.resource_fee),
            "assistant_fee": str(self.assistant_fee),
            "total_fee": str(self.total_fee),
        }


FeeRule = Callable[[TimeInterval, Decimal, Decimal | None], FeeBreakdown]


class FeeSchedule:
    """Dispatch table from reservation kind to its fee rule."""

    def __init__(self, rules: dict[ReservationKind, FeeRule] | None = None) -> None:
        self._rules: dict[ReservationKind, FeeRule] = dict(rules or {})

    def register(self, kind: ReservationKind, rule: FeeRule, *, replace: bool = False) -> None:
        if kind in self._rules and not replace:
            raise ValueError(f"A fee rule is already registered for {kind.value}.")
        self._rules[kind] = rule

    def kinds(self) -> list[ReservationKind]:
        return list(self._rules)

    def compute(
        self,
        kind: ReservationKind,
        interval: TimeInterval,
        hourly_rate: Decimal,
        assistant_rate: Decimal | None = None,
    ) -> FeeBreakdown:
        try:
            rule = self._rules[kind]
        except KeyError as error:
            raise ValueError(f"No fee rule registered for {kind.value}.") from error
        return rule(interval, hourly_rate, assistant_rate)

    def copy(self) -> "FeeSchedule":
        return FeeSchedule(self._rules)


def charge_for(interval: TimeInterval, hourly_rate: Decimal) -> Decimal:
    # minutes * rate / 60 keeps whole-minute charges exact until rounding
    amount = Decimal(interval.duration_minutes()) * hourly_rate / Decimal(60)
    return max(ZERO, to_money(amount))


def facility_fee(interval: TimeInterval, hourly_rate: Decimal, assistant_rate: Decimal | None = None) -> FeeBreakdown:
    resource_fee = charge_for(interval, hourly_rate)
    return FeeBreakdown(resource_fee=resource_fee, assistant_fee=ZERO, total_fee=resource_fee)


def training_fee(interval: TimeInterval, hourly_rate: Decimal, assistant_rate: Decimal | None = None) -> FeeBreakdown:
    resource_fee = charge_for(interval, hourly_rate)
    if assistant_rate is not None:
        assistant_fee = charge_for(interval, assistant_rate)
    else:
        assistant_fee = max(ZERO, to_money(resource_fee * TRAINING_ASSISTANT_FALLBACK_RATIO))
    return FeeBreakdown(
        resource_fee=resource_fee,
        assistant_fee=assistant_fee,
        total_fee=to_money(resource_fee + assistant_fee),
    )


DEFAULT_FEE_SCHEDULE = FeeSchedule(
    {
        ReservationKind.FACILITY: facility_fee,
        ReservationKind.TRAINING: training_fee,
    }
)
