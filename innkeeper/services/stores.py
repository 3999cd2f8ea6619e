"""
Collaborator Stores

The engine reads rooms, reservations, overrides and price rules through
these interfaces. Two interchangeable backings exist:

- InMemoryStores (this module): tests, scripts and embedded use
- SqlStores (sql_stores.py): the SQLAlchemy database behind the API

Services only talk to PropertyStores, never to a backing directly.
"""

import dataclasses
import itertools
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterator, List, Optional, Protocol, Sequence, Tuple

from ..engine.conflicts import ranges_overlap
from ..engine.types import PriceRule, Reservation, Room, RoomStatusOverride
from ..exceptions import NotFound


class RoomStore(Protocol):
    def list_rooms(self, room_ids: Optional[Sequence[str]] = None) -> List[Room]: ...
    def get_room(self, room_id: str) -> Optional[Room]: ...
    def add_room(self, room: Room) -> Room: ...
    def save_room(self, room: Room) -> Room: ...
    def delete_room(self, room_id: str) -> None: ...


class ReservationStore(Protocol):
    def get(self, reservation_id: str) -> Optional[Reservation]: ...

    def list_overlapping(
        self, start: date, end: date, room_ids: Optional[Sequence[str]] = None
    ) -> List[Reservation]:
        """Reservations of any status whose stay overlaps [start, end)."""
        ...

    def add(self, reservation: Reservation) -> Reservation: ...
    def save(self, reservation: Reservation) -> Reservation: ...
    def delete(self, reservation_id: str) -> None: ...


class PriceRuleStore(Protocol):
    def list_rules(self) -> List[PriceRule]:
        """All rules in creation order."""
        ...

    def get_rule(self, rule_id: int) -> Optional[PriceRule]: ...

    def add_rule(self, rule: PriceRule) -> PriceRule:
        """Persist a rule; the store assigns the id."""
        ...

    def save_rule(self, rule: PriceRule) -> PriceRule: ...

    def delete_rule(self, rule_id: int) -> None: ...


class OverrideStore(Protocol):
    def list_overrides(
        self, start: date, end: date, room_ids: Optional[Sequence[str]] = None
    ) -> List[RoomStatusOverride]:
        """Overrides dated start..end inclusive."""
        ...

    def get_override(self, room_id: str, day: date) -> Optional[RoomStatusOverride]: ...
    def put(self, override: RoomStatusOverride) -> RoomStatusOverride: ...
    def clear(self, room_id: str, day: date) -> bool: ...


@dataclass(frozen=True)
class Snapshot:
    """Consistent read of everything the engine needs for one call."""
    rooms: List[Room]
    reservations: List[Reservation]
    overrides: List[RoomStatusOverride]
    rules: List[PriceRule] = field(default_factory=list)


class PropertyStores(ABC):
    """
    The four stores of one property plus its write discipline.

    lock_room() serialises writes per room: conflict check and insert
    run inside the same lock, so two concurrent bookings of the same
    room cannot both pass the check.
    """

    rooms: RoomStore
    reservations: ReservationStore
    rules: PriceRuleStore
    overrides: OverrideStore

    def snapshot(
        self,
        start: date,
        end: date,
        room_ids: Optional[Sequence[str]] = None
    ) -> Snapshot:
        """
        Read rooms, reservations and overrides for [start, end] and all rules.

        Reservations are fetched for the half-open window [start, end + 1)
        so a stay covering the last night is included.
        """
        rooms = self.rooms.list_rooms(room_ids)
        ids = [r.id for r in rooms]
        return Snapshot(
            rooms=rooms,
            reservations=self.reservations.list_overlapping(start, end + timedelta(days=1), ids),
            overrides=self.overrides.list_overrides(start, end, ids),
            rules=self.rules.list_rules(),
        )

    def require_room(self, room_id: str) -> Room:
        room = self.rooms.get_room(room_id)
        if room is None:
            raise NotFound("Room", room_id)
        return room

    def require_reservation(self, reservation_id: str) -> Reservation:
        reservation = self.reservations.get(reservation_id)
        if reservation is None:
            raise NotFound("Reservation", reservation_id)
        return reservation

    @abstractmethod
    def lock_rooms(self, *room_ids: str):
        """
        Context manager holding the write lock of every given room.

        Locks are taken in sorted id order. The SQL backing commits the
        block's writes together on clean exit and rolls them back on error;
        the in-memory backing applies each write immediately.
        """

    def lock_room(self, room_id: str):
        return self.lock_rooms(room_id)

    @abstractmethod
    def transaction(self):
        """Context manager for writes that need no room lock (rules, overrides)."""


# ==================
# In-memory backing
# ==================

class InMemoryRoomStore:
    def __init__(self):
        self._rooms: Dict[str, Room] = {}

    def list_rooms(self, room_ids: Optional[Sequence[str]] = None) -> List[Room]:
        if room_ids is None:
            return sorted(self._rooms.values(), key=lambda r: (r.sort_order, r.name))
        return [self._rooms[rid] for rid in room_ids if rid in self._rooms]

    def get_room(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def add_room(self, room: Room) -> Room:
        self._rooms[room.id] = room
        return room

    def save_room(self, room: Room) -> Room:
        if room.id not in self._rooms:
            raise NotFound("Room", room.id)
        self._rooms[room.id] = room
        return room

    def delete_room(self, room_id: str) -> None:
        self._rooms.pop(room_id, None)


class InMemoryReservationStore:
    def __init__(self):
        self._reservations: Dict[str, Reservation] = {}

    def get(self, reservation_id: str) -> Optional[Reservation]:
        return self._reservations.get(reservation_id)

    def list_overlapping(
        self, start: date, end: date, room_ids: Optional[Sequence[str]] = None
    ) -> List[Reservation]:
        wanted = set(room_ids) if room_ids is not None else None
        return [
            r for r in self._reservations.values()
            if (wanted is None or r.room_id in wanted)
            and ranges_overlap(r.check_in_date, r.check_out_date, start, end)
        ]

    def add(self, reservation: Reservation) -> Reservation:
        self._reservations[reservation.id] = reservation
        return reservation

    def save(self, reservation: Reservation) -> Reservation:
        if reservation.id not in self._reservations:
            raise NotFound("Reservation", reservation.id)
        self._reservations[reservation.id] = reservation
        return reservation

    def delete(self, reservation_id: str) -> None:
        self._reservations.pop(reservation_id, None)


class InMemoryPriceRuleStore:
    def __init__(self):
        self._rules: Dict[int, PriceRule] = {}
        self._ids = itertools.count(1)

    def list_rules(self) -> List[PriceRule]:
        return [self._rules[k] for k in sorted(self._rules)]

    def get_rule(self, rule_id: int) -> Optional[PriceRule]:
        return self._rules.get(rule_id)

    def add_rule(self, rule: PriceRule) -> PriceRule:
        stored = dataclasses.replace(rule, id=next(self._ids))
        self._rules[stored.id] = stored
        return stored

    def save_rule(self, rule: PriceRule) -> PriceRule:
        if rule.id not in self._rules:
            raise NotFound("PriceRule", rule.id)
        self._rules[rule.id] = rule
        return rule

    def delete_rule(self, rule_id: int) -> None:
        self._rules.pop(rule_id, None)


class InMemoryOverrideStore:
    def __init__(self):
        self._overrides: Dict[Tuple[str, date], RoomStatusOverride] = {}

    def list_overrides(
        self, start: date, end: date, room_ids: Optional[Sequence[str]] = None
    ) -> List[RoomStatusOverride]:
        wanted = set(room_ids) if room_ids is not None else None
        return sorted(
            (
                o for o in self._overrides.values()
                if start <= o.date <= end and (wanted is None or o.room_id in wanted)
            ),
            key=lambda o: (o.room_id, o.date),
        )

    def get_override(self, room_id: str, day: date) -> Optional[RoomStatusOverride]:
        return self._overrides.get((room_id, day))

    def put(self, override: RoomStatusOverride) -> RoomStatusOverride:
        self._overrides[(override.room_id, override.date)] = override
        return override

    def clear(self, room_id: str, day: date) -> bool:
        return self._overrides.pop((room_id, day), None) is not None


class InMemoryStores(PropertyStores):
    """All four stores in process memory, one thread lock per room."""

    def __init__(self):
        self.rooms = InMemoryRoomStore()
        self.reservations = InMemoryReservationStore()
        self.rules = InMemoryPriceRuleStore()
        self.overrides = InMemoryOverrideStore()
        self._room_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._registry_lock = threading.Lock()
        self._write_lock = threading.RLock()

    @contextmanager
    def lock_rooms(self, *room_ids: str) -> Iterator[None]:
        ordered = sorted(set(room_ids))
        for room_id in ordered:
            self.require_room(room_id)
        with self._registry_lock:
            locks = [self._room_locks[room_id] for room_id in ordered]
        with ExitStack() as stack:
            for lock in locks:
                stack.enter_context(lock)
            yield

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._write_lock:
            yield
