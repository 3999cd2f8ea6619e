"""
Override Resolver

Applies manual room status (closed / dirty / available) on top of
reservation occupancy.

Precedence, strongest first:
- closed  -> unavailable, reason is the staff note or "closed"
- dirty   -> unavailable, reason "needs cleaning"
- occupied by a live reservation -> unavailable
- available override or no override -> available
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, Optional, Tuple

from .types import OverrideStatus, Reservation, RoomStatusOverride

REASON_CLOSED = "closed"
REASON_DIRTY = "needs cleaning"
REASON_OCCUPIED = "occupied"

OverrideIndex = Dict[Tuple[str, date], RoomStatusOverride]


@dataclass(frozen=True)
class Availability:
    available: bool
    reason: Optional[str] = None


def index_overrides(overrides: Iterable[RoomStatusOverride]) -> OverrideIndex:
    """Map (room_id, date) to its override. A later entry replaces an earlier one."""
    return {(o.room_id, o.date): o for o in overrides}


def _as_index(overrides) -> OverrideIndex:
    if isinstance(overrides, dict):
        return overrides
    return index_overrides(overrides)


def blocking_reason(override: Optional[RoomStatusOverride]) -> Optional[str]:
    """Reason a manual override makes a day unavailable, if it does."""
    if override is None:
        return None
    if override.status == OverrideStatus.CLOSED:
        return override.note or REASON_CLOSED
    if override.status == OverrideStatus.DIRTY:
        return REASON_DIRTY
    return None


def resolve_availability(
    room_id: str,
    day: date,
    overrides,
    occupying: Optional[Reservation] = None
) -> Availability:
    """
    Availability of one (room, day).

    Args:
        room_id: Room to check
        day: Calendar date
        overrides: Iterable of overrides, or an index from index_overrides()
        occupying: Live reservation covering the night, if any

    An `available` override never frees a night held by a reservation,
    and a reservation never lifts a closed or dirty override.
    """
    override = _as_index(overrides).get((room_id, day))

    reason = blocking_reason(override)
    if reason is not None:
        return Availability(available=False, reason=reason)

    if occupying is not None and occupying.occupies_room:
        return Availability(available=False, reason=REASON_OCCUPIED)

    return Availability(available=True)


def check_in_readiness(room_id: str, day: date, overrides) -> Availability:
    """
    Whether the front desk can hand over the room on the arrival day.

    Dirty and closed rooms are not ready. Unlike booking, a dirty room
    always blocks check-in.
    """
    override = _as_index(overrides).get((room_id, day))
    reason = blocking_reason(override)
    if reason is not None:
        return Availability(available=False, reason=reason)
    return Availability(available=True)
