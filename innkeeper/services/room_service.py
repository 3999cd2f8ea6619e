"""
Room Service

Room inventory management:
- create / edit rooms
- delete a room with no live reservations
- reorder rooms on the calendar
"""

import dataclasses
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from ..engine.types import Room
from ..exceptions import AlreadyExists, RoomInUse
from ..utils.logging_config import get_logger
from .stores import PropertyStores

logger = get_logger(__name__)


@dataclass
class RoomChanges:
    """Fields to edit; None leaves a field unchanged."""
    name: Optional[str] = None
    room_type: Optional[str] = None
    base_price: Optional[Decimal] = None
    sort_order: Optional[int] = None


class RoomService:
    def __init__(self, stores: PropertyStores):
        self.stores = stores

    def create_room(
        self,
        name: str,
        room_type: Optional[str] = None,
        base_price: Decimal = Decimal("0"),
        sort_order: int = 0,
        room_id: Optional[str] = None
    ) -> Room:
        if room_id and self.stores.rooms.get_room(room_id):
            raise AlreadyExists("Room", room_id)

        room = Room(
            id=room_id or str(uuid.uuid4()),
            name=name,
            room_type=room_type,
            base_price=Decimal(str(base_price)),
            sort_order=sort_order,
        )
        with self.stores.transaction():
            saved = self.stores.rooms.add_room(room)

        logger.room_changed(saved.id, "created", name=saved.name)
        return saved

    def update_room(self, room_id: str, changes: RoomChanges) -> Room:
        current = self.stores.require_room(room_id)
        fields = {k: v for k, v in dataclasses.asdict(changes).items() if v is not None}
        if "base_price" in fields:
            fields["base_price"] = Decimal(str(fields["base_price"]))

        with self.stores.lock_room(room_id):
            saved = self.stores.rooms.save_room(dataclasses.replace(current, **fields))

        logger.room_changed(room_id, "updated", fields=sorted(fields))
        return saved

    def delete_room(self, room_id: str) -> None:
        """
        Remove a room with its closed reservation history, its overrides
        and the price rules scoped to it.

        Raises:
            NotFound: unknown room
            RoomInUse: the room still has pending, confirmed or checked-in stays
        """
        self.stores.require_room(room_id)
        with self.stores.lock_room(room_id):
            history = self.stores.reservations.list_overlapping(date.min, date.max, [room_id])
            live = [r for r in history if r.occupies_room]
            if live:
                raise RoomInUse(room_id, len(live))

            for reservation in history:
                self.stores.reservations.delete(reservation.id)
            for override in self.stores.overrides.list_overrides(date.min, date.max, [room_id]):
                self.stores.overrides.clear(room_id, override.date)
            for rule in self.stores.rules.list_rules():
                if rule.room_id == room_id:
                    self.stores.rules.delete_rule(rule.id)
            self.stores.rooms.delete_room(room_id)

        logger.room_changed(room_id, "deleted", reservations_removed=len(history))

    def reorder_rooms(self, sort_orders: Dict[str, int]) -> int:
        """
        Set the calendar position of several rooms at once.

        All rooms must exist; nothing is changed otherwise.
        Returns count of rooms updated.
        """
        rooms = [self.stores.require_room(room_id) for room_id in sort_orders]
        with self.stores.transaction():
            for room in rooms:
                self.stores.rooms.save_room(
                    dataclasses.replace(room, sort_order=sort_orders[room.id])
                )

        logger.info(f"Reordered {len(rooms)} rooms")
        return len(rooms)
