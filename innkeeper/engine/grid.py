"""
Availability Grid Builder

Combines price rules, overrides and reservation occupancy into the
per-day calendar used by the calendar screens and booking validation.

Output indexing: grid[i][j] is rooms[i] on start + j days. Rooms keep
the order they were passed in, days run ascending from start to end
inclusive.

The builder is a pure function of its arguments. It reads no clock and
keeps no state between calls, so concurrent calls need no locking.
"""

from collections import defaultdict
from dataclasses import asdict
from datetime import date, timedelta
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence

from .dates import date_range, validate_query_range
from .overrides import index_overrides, resolve_availability
from .pricing import (
    DEFAULT_DECIMALS,
    DEFAULT_WEEKEND_DAYS,
    day_price,
    resolve_price_detail,
    rule_in_scope,
)
from .types import CalendarDay, PriceRule, Reservation, Room, RoomStatusOverride


def _occupancy_by_room(
    reservations: Iterable[Reservation],
    start: date,
    end: date
) -> Dict[str, Dict[date, Reservation]]:
    """
    Map room_id -> {night: reservation} for live reservations, clipped to
    [start, end]. Earlier check-in wins if bad data double-books a night.
    """
    live = sorted(
        (r for r in reservations if r.occupies_room),
        key=lambda r: (r.check_in_date, str(r.id)),
    )
    occupancy: Dict[str, Dict[date, Reservation]] = defaultdict(dict)
    for reservation in live:
        first = max(reservation.check_in_date, start)
        last = min(reservation.check_out_date - timedelta(days=1), end)
        nights = occupancy[reservation.room_id]
        for night in date_range(first, last):
            nights.setdefault(night, reservation)
    return occupancy


def build_calendar_day(
    room: Room,
    day: date,
    rules: Sequence[PriceRule],
    override_index,
    occupying: Optional[Reservation],
    weekend_days: FrozenSet[int] = DEFAULT_WEEKEND_DAYS,
    decimals: int = DEFAULT_DECIMALS
) -> CalendarDay:
    resolution = resolve_price_detail(room, day, rules, weekend_days, decimals)
    override = override_index.get((room.id, day))
    availability = resolve_availability(room.id, day, override_index, occupying)
    return CalendarDay(
        room_id=room.id,
        date=day,
        price=day_price(resolution, override, decimals),
        available=availability.available,
        reason=availability.reason,
        min_stay=resolution.min_stay,
        max_stay=resolution.max_stay,
        occupying_reservation_id=occupying.id if occupying is not None else None,
        warnings=tuple(c.describe() for c in resolution.conflicts),
    )


def build_grid(
    rooms: Sequence[Room],
    start_date: date,
    end_date: date,
    reservations: Iterable[Reservation],
    overrides: Iterable[RoomStatusOverride],
    rules: Iterable[PriceRule],
    weekend_days: FrozenSet[int] = DEFAULT_WEEKEND_DAYS,
    decimals: int = DEFAULT_DECIMALS
) -> List[List[CalendarDay]]:
    """
    Build the room x date calendar grid.

    Args:
        rooms: Rooms to include, in display order
        start_date: First day (inclusive)
        end_date: Last day (inclusive)
        reservations: Reservation snapshot (any status; only live ones occupy)
        overrides: Manual status overrides
        rules: Price rule snapshot, in creation order
        weekend_days: Weekdays treated as weekend by weekend/weekday rules
        decimals: Currency minor-unit precision

    Returns:
        grid[room_index][day_index] of CalendarDay

    Raises:
        InvalidDateRange: if end_date is before start_date
    """
    validate_query_range(start_date, end_date)

    days = list(date_range(start_date, end_date))
    rules = list(rules)
    occupancy = _occupancy_by_room(reservations, start_date, end_date)
    override_index = index_overrides(
        o for o in overrides if start_date <= o.date <= end_date
    )

    grid: List[List[CalendarDay]] = []
    for room in rooms:
        room_rules = [r for r in rules if rule_in_scope(r, room)]
        nights = occupancy.get(room.id, {})
        row = [
            build_calendar_day(
                room, day, room_rules, override_index, nights.get(day),
                weekend_days, decimals
            )
            for day in days
        ]
        grid.append(row)
    return grid


def grid_to_rows(grid: List[List[CalendarDay]]) -> List[dict]:
    """Flatten a grid to plain dicts, room by room."""
    return [asdict(day) for row in grid for day in row]
