"""
Reservation Status State Machine

    pending -> confirmed -> checked-in -> checked-out
    pending / confirmed -> cancelled

checked-out and cancelled are terminal. A checked-in guest can only be
checked out, never cancelled.
"""

import dataclasses
from typing import Dict, FrozenSet

from ..exceptions import InvalidStateTransition
from .types import Reservation, ReservationStatus

ALLOWED_TRANSITIONS: Dict[ReservationStatus, FrozenSet[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({
        ReservationStatus.CONFIRMED,
        ReservationStatus.CANCELLED,
    }),
    ReservationStatus.CONFIRMED: frozenset({
        ReservationStatus.CHECKED_IN,
        ReservationStatus.CANCELLED,
    }),
    ReservationStatus.CHECKED_IN: frozenset({
        ReservationStatus.CHECKED_OUT,
    }),
    ReservationStatus.CHECKED_OUT: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
}


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return ReservationStatus(target) in ALLOWED_TRANSITIONS[ReservationStatus(current)]


def transition(reservation: Reservation, target: ReservationStatus) -> Reservation:
    """
    Return a copy of the reservation in the target status.

    Raises:
        InvalidStateTransition: if the lifecycle does not allow the move.
            The given reservation is never modified.
    """
    target = ReservationStatus(target)
    if not can_transition(reservation.status, target):
        raise InvalidStateTransition(reservation.status.value, target.value)
    return dataclasses.replace(reservation, status=target)


def confirm(reservation: Reservation) -> Reservation:
    return transition(reservation, ReservationStatus.CONFIRMED)


def check_in(reservation: Reservation) -> Reservation:
    return transition(reservation, ReservationStatus.CHECKED_IN)


def check_out(reservation: Reservation) -> Reservation:
    return transition(reservation, ReservationStatus.CHECKED_OUT)


def cancel(reservation: Reservation) -> Reservation:
    return transition(reservation, ReservationStatus.CANCELLED)
