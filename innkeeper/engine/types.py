"""
Engine Data Types

Plain, immutable snapshots the engine computes over. The stores convert
their rows into these before any computation, so the engine never sees
an ORM object or a session.
"""

import enum
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import FrozenSet, Optional, Tuple

from ..exceptions import InvalidDateRange


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    CANCELLED = "cancelled"


# Statuses that hold a room for availability and conflict purposes
OCCUPYING_STATUSES = frozenset({
    ReservationStatus.PENDING,
    ReservationStatus.CONFIRMED,
    ReservationStatus.CHECKED_IN,
})


class OverrideStatus(str, enum.Enum):
    AVAILABLE = "available"
    DIRTY = "dirty"      # needs cleaning
    CLOSED = "closed"    # blocked by staff


class RuleType(str, enum.Enum):
    SEASONAL = "seasonal"
    WEEKDAY = "weekday"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"
    SPECIAL = "special"


class AdjustmentKind(str, enum.Enum):
    FIXED = "fixed"              # replaces the base price
    PERCENTAGE = "percentage"    # price *= 1 + value/100
    AMOUNT = "amount"            # price += value


@dataclass(frozen=True)
class Room:
    id: str
    name: str
    room_type: Optional[str] = None
    base_price: Decimal = Decimal("0")
    sort_order: int = 0  # calendar display order


@dataclass(frozen=True)
class Reservation:
    """
    A guest's stay in one room.

    check_out_date is exclusive: the guest occupies the nights from
    check_in_date up to, but not including, check_out_date.
    """
    id: str
    room_id: str
    guest_name: str
    guest_phone: Optional[str]
    check_in_date: date
    check_out_date: date
    status: ReservationStatus = ReservationStatus.CONFIRMED
    nightly_rate: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None

    def __post_init__(self):
        if self.check_out_date <= self.check_in_date:
            raise InvalidDateRange(
                self.check_in_date,
                self.check_out_date,
                f"Check-out {self.check_out_date} must be after check-in {self.check_in_date}",
            )
        # Accept raw strings from callers that skip the enum
        if not isinstance(self.status, ReservationStatus):
            object.__setattr__(self, "status", ReservationStatus(self.status))

    @property
    def occupies_room(self) -> bool:
        return self.status in OCCUPYING_STATUSES

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days

    def covers(self, day: date) -> bool:
        """True if the guest sleeps in the room on the night of `day`"""
        return self.check_in_date <= day < self.check_out_date


@dataclass(frozen=True)
class RoomStatusOverride:
    """Manual status for one (room, date). Absence means no override."""
    room_id: str
    date: date
    status: OverrideStatus
    note: Optional[str] = None
    price: Optional[Decimal] = None  # special price for the day

    def __post_init__(self):
        if not isinstance(self.status, OverrideStatus):
            object.__setattr__(self, "status", OverrideStatus(self.status))


@dataclass(frozen=True)
class PriceRule:
    """
    A prioritized, conditionally applicable price adjustment.

    Scope: room_id and room_type narrow the rule to one room or one room
    type; None on both means every room of the property.
    weekdays number Sunday=0 .. Saturday=6 (see pricing.day_number).
    """
    id: int
    priority: int
    rule_type: RuleType
    adjustment: AdjustmentKind
    value: Decimal
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    weekdays: Optional[FrozenSet[int]] = None
    min_stay: Optional[int] = None
    max_stay: Optional[int] = None
    room_id: Optional[str] = None
    room_type: Optional[str] = None
    name: str = ""
    is_active: bool = True

    def __post_init__(self):
        if not isinstance(self.rule_type, RuleType):
            object.__setattr__(self, "rule_type", RuleType(self.rule_type))
        if not isinstance(self.adjustment, AdjustmentKind):
            object.__setattr__(self, "adjustment", AdjustmentKind(self.adjustment))
        if not isinstance(self.value, Decimal):
            object.__setattr__(self, "value", Decimal(str(self.value)))
        if self.weekdays is not None and not isinstance(self.weekdays, frozenset):
            object.__setattr__(self, "weekdays", frozenset(self.weekdays))
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise InvalidDateRange(self.start_date, self.end_date)


@dataclass(frozen=True)
class CalendarDay:
    """Derived state of one (room, date). Never persisted."""
    room_id: str
    date: date
    price: Decimal
    available: bool
    reason: Optional[str] = None
    min_stay: Optional[int] = None
    max_stay: Optional[int] = None
    occupying_reservation_id: Optional[str] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ConflictResult:
    conflict: bool
    conflicting_reservation_id: Optional[str] = None
    conflicting_override: Optional[RoomStatusOverride] = None

    @classmethod
    def clear(cls) -> "ConflictResult":
        return cls(conflict=False)
