"""
Continuous-Stay Merger

Daily arrivals and departures for housekeeping dispatch and KPI
counts. A guest who checks out of a room and checks back into the same
room on the same day (a back-to-back extension) is one continuous stay:
neither the departure nor the re-arrival is counted.

Guests are matched by (room_id, phone). Names are free text and never
used for matching.

Availability and conflict detection do not use this module; they
always treat each reservation on its own.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from .types import Reservation, ReservationStatus, Room

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(phone: Optional[str]) -> str:
    """Digits only, so '138 0013-8000' and '13800138000' match."""
    if not phone:
        return ""
    return _NON_DIGITS.sub("", phone)


def _stay_key(reservation: Reservation) -> Optional[Tuple[str, str]]:
    phone = normalize_phone(reservation.guest_phone)
    if not phone:
        return None
    return (reservation.room_id, phone)


def _counted(reservation: Reservation) -> bool:
    return reservation.status != ReservationStatus.CANCELLED


def compute_daily_checkouts(day: date, reservations: Iterable[Reservation]) -> List[Reservation]:
    """
    Real departures on `day`.

    A reservation ending on `day` is excluded when another non-cancelled
    reservation for the same room and guest phone starts on `day`.
    """
    reservations = [r for r in reservations if _counted(r)]
    arriving: Set[Tuple[str, str]] = set()
    for r in reservations:
        key = _stay_key(r)
        if r.check_in_date == day and key is not None:
            arriving.add(key)

    return [
        r for r in reservations
        if r.check_out_date == day and _stay_key(r) not in arriving
    ]


def compute_daily_checkins(day: date, reservations: Iterable[Reservation]) -> List[Reservation]:
    """Real arrivals on `day`; the mirror of compute_daily_checkouts."""
    reservations = [r for r in reservations if _counted(r)]
    departing: Set[Tuple[str, str]] = set()
    for r in reservations:
        key = _stay_key(r)
        if r.check_out_date == day and key is not None:
            departing.add(key)

    return [
        r for r in reservations
        if r.check_in_date == day and _stay_key(r) not in departing
    ]


@dataclass(frozen=True)
class DailySummary:
    date: date
    total_rooms: int
    arrivals: int
    departures: int
    in_house: int
    occupancy_rate: float  # percent, 0-100

    @property
    def available_rooms(self) -> int:
        return max(self.total_rooms - self.in_house, 0)


def daily_summary(
    day: date,
    rooms: Sequence[Room],
    reservations: Iterable[Reservation]
) -> DailySummary:
    """
    Front-desk KPIs for a reference date.

    in_house counts rooms with a live reservation covering the night of
    `day`; a room is counted once even with overlapping bad data.
    """
    reservations = list(reservations)
    room_ids = {room.id for room in rooms}
    occupied_rooms = {
        r.room_id for r in reservations
        if r.occupies_room and r.covers(day) and r.room_id in room_ids
    }
    total = len(room_ids)
    rate = round(len(occupied_rooms) / total * 100, 2) if total else 0.0

    return DailySummary(
        date=day,
        total_rooms=total,
        arrivals=len(compute_daily_checkins(day, reservations)),
        departures=len(compute_daily_checkouts(day, reservations)),
        in_house=len(occupied_rooms),
        occupancy_rate=rate,
    )
