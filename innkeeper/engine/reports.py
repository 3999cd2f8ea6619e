"""
Reporting

Occupancy trend over a date range and monthly revenue. Both are pure
functions over a reservation snapshot, like daily_summary.
"""

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Sequence

from .dates import date_range, validate_query_range
from .pricing import DEFAULT_DECIMALS, quantize_price
from .types import Reservation, ReservationStatus, Room


@dataclass(frozen=True)
class OccupancyDay:
    date: date
    occupied_rooms: int
    total_rooms: int
    occupancy_rate: float  # percent, 0-100


@dataclass(frozen=True)
class RevenueSummary:
    year: int
    month: int
    total_revenue: Decimal
    total_reservations: int
    average_revenue: Decimal


def month_bounds(year: int, month: int):
    """First and last day of a calendar month"""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def occupancy_trend(
    start_date: date,
    end_date: date,
    rooms: Sequence[Room],
    reservations: Iterable[Reservation]
) -> List[OccupancyDay]:
    """
    Occupied rooms per night from start_date to end_date inclusive.

    A room counts as occupied on a night when a live reservation covers
    it. A room is counted once per night even with overlapping bad data.
    """
    validate_query_range(start_date, end_date)
    room_ids = {room.id for room in rooms}
    live = [r for r in reservations if r.occupies_room and r.room_id in room_ids]
    total = len(room_ids)

    trend = []
    for day in date_range(start_date, end_date):
        occupied = len({r.room_id for r in live if r.covers(day)})
        trend.append(OccupancyDay(
            date=day,
            occupied_rooms=occupied,
            total_rooms=total,
            occupancy_rate=round(occupied / total * 100, 2) if total else 0.0,
        ))
    return trend


def monthly_revenue(
    year: int,
    month: int,
    reservations: Iterable[Reservation],
    decimals: int = DEFAULT_DECIMALS
) -> RevenueSummary:
    """
    Booked revenue of the stays arriving in a month.

    Cancelled reservations are left out; a stay is credited in full to
    its arrival month.
    """
    first, last = month_bounds(year, month)
    counted = [
        r for r in reservations
        if r.status != ReservationStatus.CANCELLED and first <= r.check_in_date <= last
    ]
    total = sum((r.total_amount or Decimal("0") for r in counted), Decimal("0"))
    average = total / len(counted) if counted else Decimal("0")

    return RevenueSummary(
        year=year,
        month=month,
        total_revenue=quantize_price(total, decimals),
        total_reservations=len(counted),
        average_revenue=quantize_price(average, decimals),
    )
