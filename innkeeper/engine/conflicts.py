"""
Overlap / Conflict Detector

All stays are half-open ranges [check_in, check_out). Two ranges
overlap iff a1 < b2 and b1 < a2, so a check-out and a new check-in on
the same date (same-day turnover) never conflict.
"""

from datetime import date
from typing import Iterable, List, Optional

from .dates import validate_stay
from .types import (
    ConflictResult,
    OverrideStatus,
    Reservation,
    RoomStatusOverride,
)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return a_start < b_end and b_start < a_end


def _blocks_booking(override: RoomStatusOverride, dirty_blocks_booking: bool) -> bool:
    if override.status == OverrideStatus.CLOSED:
        return True
    if override.status == OverrideStatus.DIRTY:
        return dirty_blocks_booking
    return False


def iter_conflicts(
    room_id: str,
    check_in: date,
    check_out: date,
    reservations: Iterable[Reservation],
    overrides: Iterable[RoomStatusOverride] = (),
    exclude_reservation_id: Optional[str] = None,
    dirty_blocks_booking: bool = False
):
    """Yield a ConflictResult for every collision, reservations first."""
    validate_stay(check_in, check_out)

    for reservation in reservations:
        if reservation.room_id != room_id:
            continue
        if not reservation.occupies_room:
            continue
        if exclude_reservation_id is not None and reservation.id == exclude_reservation_id:
            continue
        if ranges_overlap(check_in, check_out, reservation.check_in_date, reservation.check_out_date):
            yield ConflictResult(conflict=True, conflicting_reservation_id=reservation.id)

    for override in overrides:
        if override.room_id != room_id:
            continue
        if not _blocks_booking(override, dirty_blocks_booking):
            continue
        # A single blocked day is the range [day, day + 1)
        if check_in <= override.date < check_out:
            yield ConflictResult(conflict=True, conflicting_override=override)


def find_conflicts(
    room_id: str,
    check_in: date,
    check_out: date,
    reservations: Iterable[Reservation],
    overrides: Iterable[RoomStatusOverride] = (),
    exclude_reservation_id: Optional[str] = None,
    dirty_blocks_booking: bool = False
) -> List[ConflictResult]:
    """Every reservation and blocked day the proposed stay collides with."""
    return list(iter_conflicts(
        room_id, check_in, check_out, reservations, overrides,
        exclude_reservation_id, dirty_blocks_booking
    ))


def check_conflict(
    room_id: str,
    check_in: date,
    check_out: date,
    reservations: Iterable[Reservation],
    overrides: Iterable[RoomStatusOverride] = (),
    exclude_reservation_id: Optional[str] = None,
    dirty_blocks_booking: bool = False
) -> ConflictResult:
    """First conflict found, or a clear result."""
    for result in iter_conflicts(
        room_id, check_in, check_out, reservations, overrides,
        exclude_reservation_id, dirty_blocks_booking
    ):
        return result
    return ConflictResult.clear()


def has_conflict(
    room_id: str,
    check_in: date,
    check_out: date,
    reservations: Iterable[Reservation],
    overrides: Iterable[RoomStatusOverride] = (),
    exclude_reservation_id: Optional[str] = None,
    dirty_blocks_booking: bool = False
) -> bool:
    return check_conflict(
        room_id, check_in, check_out, reservations, overrides,
        exclude_reservation_id, dirty_blocks_booking
    ).conflict
