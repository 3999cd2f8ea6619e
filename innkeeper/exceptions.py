"""
Domain Errors

Raised by the engine and the booking services. The HTTP layer maps
each class to a status code in main.py.
"""

from datetime import date
from typing import List, Optional


class InnkeeperError(Exception):
    """Base class for all domain errors"""
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidDateRange(InnkeeperError):
    """Check-out not after check-in, or a query range ending before it starts"""
    code = "invalid_date_range"

    def __init__(self, start: date, end: date, message: Optional[str] = None):
        self.start = start
        self.end = end
        super().__init__(message or f"Invalid date range: {start} -> {end}")


class InvalidStateTransition(InnkeeperError):
    """Reservation status change not allowed by the lifecycle table"""
    code = "invalid_state_transition"

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move reservation from '{current}' to '{target}'")


class BookingConflict(InnkeeperError):
    """
    Proposed stay collides with an existing reservation or a closed day.

    Carries the full conflict list so callers can show what collided.
    """
    code = "booking_conflict"

    def __init__(self, room_id: str, conflicts: List = None):
        self.room_id = room_id
        self.conflicts = conflicts or []
        super().__init__(f"Room {room_id} is not available for the requested dates")


class RoomNotReady(InnkeeperError):
    """Room is dirty or closed on the arrival day, check-in refused"""
    code = "room_not_ready"

    def __init__(self, room_id: str, day: date, reason: str):
        self.room_id = room_id
        self.day = day
        self.reason = reason
        super().__init__(f"Room {room_id} is not ready on {day}: {reason}")


class StayRuleViolation(InnkeeperError):
    """Stay length outside the min/max stay of the arrival night"""
    code = "stay_rule_violation"

    def __init__(self, violations: List[str]):
        self.violations = violations
        super().__init__("; ".join(violations))


class NotFound(InnkeeperError):
    code = "not_found"

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ResourceLocked(InnkeeperError):
    """Another transaction holds the row lock; the caller may retry"""
    code = "resource_locked"

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} is busy with another request, try again")


class AlreadyExists(InnkeeperError):
    code = "already_exists"

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} already exists")


class RoomInUse(InnkeeperError):
    """Room still has pending, confirmed or checked-in reservations"""
    code = "room_in_use"

    def __init__(self, room_id: str, live_reservations: int):
        self.room_id = room_id
        self.live_reservations = live_reservations
        super().__init__(
            f"Room {room_id} has {live_reservations} live reservation(s) and cannot be deleted"
        )
