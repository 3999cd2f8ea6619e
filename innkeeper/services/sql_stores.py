"""
SQLAlchemy Store Backing

Implements the store interfaces over one database session. Rows are
converted to engine snapshots on the way out, so nothing above this
module holds an ORM object.

Transactions: lock_rooms() and transaction() commit on clean exit and
roll back on any exception. On PostgreSQL lock_rooms() takes
SELECT ... FOR UPDATE NOWAIT on the room rows, which serialises
conflict-check-then-insert per room across processes.
"""

import logging
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import and_
from sqlalchemy.orm import Session

from ..engine.types import (
    PriceRule,
    Reservation,
    Room,
    RoomStatusOverride,
)
from ..models.price_rule import PriceRule as PriceRuleModel
from ..models.reservation import Reservation as ReservationModel
from ..models.room import Room as RoomModel
from ..models.room_status_override import RoomStatusOverride as OverrideModel
from ..exceptions import NotFound
from ..utils.db_helpers import acquire_row_lock_or_fail
from .stores import PropertyStores

logger = logging.getLogger(__name__)


def _weekdays_to_text(weekdays) -> Optional[str]:
    if not weekdays:
        return None
    return ",".join(str(d) for d in sorted(weekdays))


class SqlRoomStore:
    def __init__(self, db: Session):
        self.db = db

    def list_rooms(self, room_ids: Optional[Sequence[str]] = None) -> List[Room]:
        query = self.db.query(RoomModel)
        if room_ids is not None:
            query = query.filter(RoomModel.id.in_(list(room_ids)))
        rows = query.order_by(RoomModel.sort_order, RoomModel.name).all()
        return [row.to_engine() for row in rows]

    def get_room(self, room_id: str) -> Optional[Room]:
        row = self.db.query(RoomModel).filter(RoomModel.id == room_id).first()
        return row.to_engine() if row else None

    def add_room(self, room: Room) -> Room:
        row = RoomModel(
            id=room.id,
            name=room.name,
            room_type=room.room_type,
            base_price=room.base_price,
            sort_order=room.sort_order,
        )
        self.db.add(row)
        self.db.flush()
        return row.to_engine()

    def save_room(self, room: Room) -> Room:
        row = self.db.query(RoomModel).filter(RoomModel.id == room.id).first()
        if row is None:
            raise NotFound("Room", room.id)
        row.name = room.name
        row.room_type = room.room_type
        row.base_price = room.base_price
        row.sort_order = room.sort_order
        self.db.flush()
        return row.to_engine()

    def delete_room(self, room_id: str) -> None:
        self.db.query(RoomModel).filter(
            RoomModel.id == room_id
        ).delete(synchronize_session=False)


class SqlReservationStore:
    def __init__(self, db: Session):
        self.db = db

    def _row(self, reservation_id: str) -> Optional[ReservationModel]:
        return self.db.query(ReservationModel).filter(
            ReservationModel.id == reservation_id
        ).first()

    def get(self, reservation_id: str) -> Optional[Reservation]:
        row = self._row(reservation_id)
        return row.to_engine() if row else None

    def list_overlapping(
        self, start: date, end: date, room_ids: Optional[Sequence[str]] = None
    ) -> List[Reservation]:
        query = self.db.query(ReservationModel).filter(
            and_(
                ReservationModel.check_in_date < end,
                ReservationModel.check_out_date > start,
            )
        )
        if room_ids is not None:
            query = query.filter(ReservationModel.room_id.in_(list(room_ids)))
        rows = query.order_by(ReservationModel.check_in_date, ReservationModel.id).all()
        return [row.to_engine() for row in rows]

    def _apply(self, row: ReservationModel, reservation: Reservation) -> None:
        row.room_id = reservation.room_id
        row.guest_name = reservation.guest_name
        row.guest_phone = reservation.guest_phone
        row.check_in_date = reservation.check_in_date
        row.check_out_date = reservation.check_out_date
        row.status = reservation.status.value
        row.nightly_rate = reservation.nightly_rate
        row.total_amount = reservation.total_amount if reservation.total_amount is not None else Decimal("0")

    def add(self, reservation: Reservation) -> Reservation:
        row = ReservationModel(id=reservation.id)
        self._apply(row, reservation)
        self.db.add(row)
        self.db.flush()
        return row.to_engine()

    def save(self, reservation: Reservation) -> Reservation:
        row = self._row(reservation.id)
        if row is None:
            raise NotFound("Reservation", reservation.id)
        self._apply(row, reservation)
        self.db.flush()
        return row.to_engine()

    def delete(self, reservation_id: str) -> None:
        self.db.query(ReservationModel).filter(
            ReservationModel.id == reservation_id
        ).delete(synchronize_session=False)


class SqlPriceRuleStore:
    def __init__(self, db: Session):
        self.db = db

    def list_rules(self) -> List[PriceRule]:
        rows = self.db.query(PriceRuleModel).order_by(PriceRuleModel.id).all()
        return [row.to_engine() for row in rows]

    def get_rule(self, rule_id: int) -> Optional[PriceRule]:
        row = self.db.query(PriceRuleModel).filter(PriceRuleModel.id == rule_id).first()
        return row.to_engine() if row else None

    def _apply(self, row: PriceRuleModel, rule: PriceRule) -> None:
        row.name = rule.name
        row.rule_type = rule.rule_type.value
        row.adjustment = rule.adjustment.value
        row.value = rule.value
        row.priority = rule.priority
        row.start_date = rule.start_date
        row.end_date = rule.end_date
        row.weekdays = _weekdays_to_text(rule.weekdays)
        row.min_stay = rule.min_stay
        row.max_stay = rule.max_stay
        row.room_id = rule.room_id
        row.room_type = rule.room_type
        row.is_active = rule.is_active

    def add_rule(self, rule: PriceRule) -> PriceRule:
        row = PriceRuleModel()
        self._apply(row, rule)
        self.db.add(row)
        self.db.flush()
        return row.to_engine()

    def save_rule(self, rule: PriceRule) -> PriceRule:
        row = self.db.query(PriceRuleModel).filter(PriceRuleModel.id == rule.id).first()
        if row is None:
            raise NotFound("PriceRule", rule.id)
        self._apply(row, rule)
        self.db.flush()
        return row.to_engine()

    def delete_rule(self, rule_id: int) -> None:
        self.db.query(PriceRuleModel).filter(
            PriceRuleModel.id == rule_id
        ).delete(synchronize_session=False)


class SqlOverrideStore:
    def __init__(self, db: Session):
        self.db = db

    def _row(self, room_id: str, day: date) -> Optional[OverrideModel]:
        return self.db.query(OverrideModel).filter(
            OverrideModel.room_id == room_id,
            OverrideModel.date == day
        ).first()

    def list_overrides(
        self, start: date, end: date, room_ids: Optional[Sequence[str]] = None
    ) -> List[RoomStatusOverride]:
        query = self.db.query(OverrideModel).filter(
            OverrideModel.date >= start,
            OverrideModel.date <= end
        )
        if room_ids is not None:
            query = query.filter(OverrideModel.room_id.in_(list(room_ids)))
        rows = query.order_by(OverrideModel.room_id, OverrideModel.date).all()
        return [row.to_engine() for row in rows]

    def get_override(self, room_id: str, day: date) -> Optional[RoomStatusOverride]:
        row = self._row(room_id, day)
        return row.to_engine() if row else None

    def put(self, override: RoomStatusOverride) -> RoomStatusOverride:
        row = self._row(override.room_id, override.date)
        if row is None:
            row = OverrideModel(room_id=override.room_id, date=override.date)
            self.db.add(row)
        row.status = override.status.value
        row.note = override.note
        row.price = override.price
        self.db.flush()
        return row.to_engine()

    def clear(self, room_id: str, day: date) -> bool:
        count = self.db.query(OverrideModel).filter(
            OverrideModel.room_id == room_id,
            OverrideModel.date == day
        ).delete(synchronize_session=False)
        return count > 0


class SqlStores(PropertyStores):
    """Stores bound to one request's database session."""

    def __init__(self, db: Session):
        self.db = db
        self.rooms = SqlRoomStore(db)
        self.reservations = SqlReservationStore(db)
        self.rules = SqlPriceRuleStore(db)
        self.overrides = SqlOverrideStore(db)

    @contextmanager
    def lock_rooms(self, *room_ids: str) -> Iterator[None]:
        try:
            for room_id in sorted(set(room_ids)):
                acquire_row_lock_or_fail(self.db, RoomModel, RoomModel.id == room_id, room_id)
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    @contextmanager
    def transaction(self) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
