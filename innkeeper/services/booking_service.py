"""
Booking Service

Reservation use cases on top of the engine:
- create / edit with conflict detection under a per-room lock
- front-desk status actions (confirm, check-in, check-out, cancel)
- bulk import that reports each row instead of stopping at the first failure
"""

import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional

from ..config import Settings, get_settings
from ..engine import status as lifecycle
from ..engine.conflicts import find_conflicts
from ..engine.dates import validate_stay
from ..engine.overrides import check_in_readiness
from ..engine.pricing import quantize_price
from ..engine.stay import StayQuote, quote_stay
from ..engine.types import (
    ConflictResult,
    Reservation,
    ReservationStatus,
    Room,
)
from ..exceptions import (
    BookingConflict,
    InnkeeperError,
    InvalidDateRange,
    InvalidStateTransition,
    RoomNotReady,
    StayRuleViolation,
)
from ..utils.logging_config import get_logger
from .stores import PropertyStores

logger = get_logger(__name__)

# Statuses a reservation may be created in
CREATABLE_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})

# Only closed records may be deleted
DELETABLE_STATUSES = frozenset({ReservationStatus.CANCELLED, ReservationStatus.CHECKED_OUT})


@dataclass
class NewReservation:
    room_id: str
    guest_name: str
    guest_phone: Optional[str]
    check_in_date: date
    check_out_date: date
    status: ReservationStatus = ReservationStatus.CONFIRMED
    nightly_rate: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None
    id: Optional[str] = None


@dataclass
class ReservationChanges:
    """Fields to edit; None leaves a field unchanged."""
    room_id: Optional[str] = None
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    nightly_rate: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None


@dataclass(frozen=True)
class AvailabilityCheck:
    room_id: str
    check_in: date
    check_out: date
    conflicts: List[ConflictResult]
    quote: StayQuote

    @property
    def available(self) -> bool:
        return not self.conflicts


@dataclass(frozen=True)
class ImportOutcome:
    row: int
    reservation: Optional[Reservation] = None
    error: Optional[str] = None
    code: Optional[str] = None
    conflicts: List[ConflictResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.reservation is not None


class BookingService:
    """
    Reservation writes for one property.

    The engine checks conflicts against a snapshot; this service makes
    check-then-write atomic by doing both inside stores.lock_rooms().
    """

    def __init__(self, stores: PropertyStores, settings: Optional[Settings] = None):
        self.stores = stores
        self.settings = settings or get_settings()

    # ==================
    # Queries
    # ==================

    def _quote(self, room: Room, check_in: date, check_out: date, overrides) -> StayQuote:
        return quote_stay(
            room, check_in, check_out,
            self.stores.rules.list_rules(),
            overrides,
            weekend_days=self.settings.weekend_day_numbers,
            decimals=self.settings.currency_decimals,
        )

    def _room_state(self, room_id: str, check_in: date, check_out: date):
        reservations = self.stores.reservations.list_overlapping(check_in, check_out, [room_id])
        overrides = self.stores.overrides.list_overrides(
            check_in, check_out - timedelta(days=1), [room_id]
        )
        return reservations, overrides

    def check_availability(
        self,
        room_id: str,
        check_in: date,
        check_out: date,
        exclude_reservation_id: Optional[str] = None
    ) -> AvailabilityCheck:
        """All conflicts of a proposed stay plus its price quote. Read-only."""
        validate_stay(check_in, check_out)
        room = self.stores.require_room(room_id)
        reservations, overrides = self._room_state(room_id, check_in, check_out)
        conflicts = find_conflicts(
            room_id, check_in, check_out, reservations, overrides,
            exclude_reservation_id=exclude_reservation_id,
            dirty_blocks_booking=self.settings.dirty_blocks_booking,
        )
        return AvailabilityCheck(
            room_id=room_id,
            check_in=check_in,
            check_out=check_out,
            conflicts=conflicts,
            quote=self._quote(room, check_in, check_out, overrides),
        )

    def _validate_booking(
        self,
        room: Room,
        check_in: date,
        check_out: date,
        exclude_reservation_id: Optional[str] = None
    ) -> StayQuote:
        reservations, overrides = self._room_state(room.id, check_in, check_out)
        conflicts = find_conflicts(
            room.id, check_in, check_out, reservations, overrides,
            exclude_reservation_id=exclude_reservation_id,
            dirty_blocks_booking=self.settings.dirty_blocks_booking,
        )
        if conflicts:
            logger.booking_rejected(room.id, check_in, check_out, len(conflicts))
            raise BookingConflict(room.id, conflicts)

        quote = self._quote(room, check_in, check_out, overrides)
        if self.settings.enforce_stay_rules and quote.violations:
            raise StayRuleViolation(list(quote.violations))
        return quote

    def _average_rate(self, quote: StayQuote) -> Decimal:
        return quantize_price(quote.total / quote.num_nights, self.settings.currency_decimals)

    # ==================
    # Writes
    # ==================

    def create_reservation(self, data: NewReservation) -> Reservation:
        """
        Book a room.

        Raises:
            InvalidDateRange: check-out not after check-in
            InvalidStateTransition: initial status other than pending/confirmed
            NotFound: unknown room
            BookingConflict: overlapping live reservation or closed day
            StayRuleViolation: stay shorter/longer than the arrival night allows
        """
        validate_stay(data.check_in_date, data.check_out_date)
        initial = ReservationStatus(data.status)
        if initial not in CREATABLE_STATUSES:
            raise InvalidStateTransition("new", initial.value)

        with self.stores.lock_room(data.room_id):
            room = self.stores.require_room(data.room_id)
            quote = self._validate_booking(room, data.check_in_date, data.check_out_date)

            reservation = Reservation(
                id=data.id or str(uuid.uuid4()),
                room_id=room.id,
                guest_name=data.guest_name,
                guest_phone=data.guest_phone,
                check_in_date=data.check_in_date,
                check_out_date=data.check_out_date,
                status=initial,
                nightly_rate=data.nightly_rate if data.nightly_rate is not None else self._average_rate(quote),
                total_amount=data.total_amount if data.total_amount is not None else quote.total,
            )
            saved = self.stores.reservations.add(reservation)

        logger.reservation_created(
            saved.id, saved.room_id, saved.check_in_date, saved.check_out_date, saved.total_amount
        )
        return saved

    def update_reservation(self, reservation_id: str, changes: ReservationChanges) -> Reservation:
        """
        Edit guest details, dates or room.

        A live reservation is re-checked for conflicts with itself
        excluded. When dates or room change and no amount is given, the
        price is re-quoted.
        """
        current = self.stores.require_reservation(reservation_id)
        target_room_id = changes.room_id or current.room_id

        with self.stores.lock_rooms(current.room_id, target_room_id):
            current = self.stores.require_reservation(reservation_id)
            check_in = changes.check_in_date or current.check_in_date
            check_out = changes.check_out_date or current.check_out_date
            validate_stay(check_in, check_out)

            stay_changed = (
                target_room_id != current.room_id
                or check_in != current.check_in_date
                or check_out != current.check_out_date
            )

            nightly_rate = changes.nightly_rate if changes.nightly_rate is not None else current.nightly_rate
            total_amount = changes.total_amount if changes.total_amount is not None else current.total_amount

            if stay_changed and current.occupies_room:
                room = self.stores.require_room(target_room_id)
                quote = self._validate_booking(
                    room, check_in, check_out, exclude_reservation_id=current.id
                )
                if changes.nightly_rate is None:
                    nightly_rate = self._average_rate(quote)
                if changes.total_amount is None:
                    total_amount = quote.total
            elif stay_changed:
                self.stores.require_room(target_room_id)

            updated = dataclasses.replace(
                current,
                room_id=target_room_id,
                guest_name=changes.guest_name if changes.guest_name is not None else current.guest_name,
                guest_phone=changes.guest_phone if changes.guest_phone is not None else current.guest_phone,
                check_in_date=check_in,
                check_out_date=check_out,
                nightly_rate=nightly_rate,
                total_amount=total_amount,
            )
            saved = self.stores.reservations.save(updated)

        logger.info(f"Reservation {reservation_id} updated (stay_changed={stay_changed})")
        return saved

    def _apply_transition(self, reservation_id: str, action, reference_date: Optional[date] = None) -> Reservation:
        current = self.stores.require_reservation(reservation_id)
        with self.stores.lock_room(current.room_id):
            current = self.stores.require_reservation(reservation_id)
            if action is lifecycle.check_in:
                self._ensure_ready(current, reference_date)
            updated = action(current)
            saved = self.stores.reservations.save(updated)

        logger.reservation_status_changed(saved.id, current.status.value, saved.status.value)
        return saved

    def _ensure_ready(self, reservation: Reservation, reference_date: date) -> None:
        if reference_date < reservation.check_in_date:
            raise InvalidDateRange(
                reference_date, reservation.check_in_date,
                f"Cannot check in on {reference_date}, arrival date is {reservation.check_in_date}"
            )
        overrides = self.stores.overrides.list_overrides(
            reference_date, reference_date, [reservation.room_id]
        )
        readiness = check_in_readiness(reservation.room_id, reference_date, overrides)
        if not readiness.available:
            raise RoomNotReady(reservation.room_id, reference_date, readiness.reason)
        if reference_date >= reservation.check_out_date:
            logger.warning(
                f"Late check-in for reservation {reservation.id}: "
                f"check-out date {reservation.check_out_date} has passed"
            )

    def confirm(self, reservation_id: str) -> Reservation:
        return self._apply_transition(reservation_id, lifecycle.confirm)

    def check_in(self, reservation_id: str, reference_date: date) -> Reservation:
        """
        Front-desk check-in on `reference_date`.

        Raises RoomNotReady when the room is dirty or closed that day.
        """
        return self._apply_transition(reservation_id, lifecycle.check_in, reference_date)

    def check_out(self, reservation_id: str) -> Reservation:
        return self._apply_transition(reservation_id, lifecycle.check_out)

    def cancel(self, reservation_id: str) -> Reservation:
        return self._apply_transition(reservation_id, lifecycle.cancel)

    def delete_reservation(self, reservation_id: str) -> None:
        """Remove a cancelled or checked-out record."""
        current = self.stores.require_reservation(reservation_id)
        if current.status not in DELETABLE_STATUSES:
            raise InvalidStateTransition(current.status.value, "deleted")
        with self.stores.lock_room(current.room_id):
            self.stores.reservations.delete(reservation_id)
        logger.info(f"Reservation {reservation_id} deleted")

    def bulk_import(self, rows: Iterable[NewReservation]) -> List[ImportOutcome]:
        """
        Create many reservations, one transaction per row.

        Conflicts and validation errors are reported per row; the import
        never stops early. Rows are checked against earlier rows of the
        same import.
        """
        outcomes: List[ImportOutcome] = []
        for index, row in enumerate(rows):
            try:
                reservation = self.create_reservation(row)
            except BookingConflict as e:
                outcomes.append(ImportOutcome(
                    row=index, error=e.message, code=e.code, conflicts=e.conflicts
                ))
            except InnkeeperError as e:
                outcomes.append(ImportOutcome(row=index, error=e.message, code=e.code))
            else:
                outcomes.append(ImportOutcome(row=index, reservation=reservation))

        imported = sum(1 for o in outcomes if o.ok)
        logger.info(f"Bulk import finished: {imported}/{len(outcomes)} rows imported")
        return outcomes
