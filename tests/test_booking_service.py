"""
Tests for the Booking Service

Runs against the in-memory stores. Covers:
- create with conflict detection and quoting
- edits with self-exclusion and room moves
- front-desk actions and check-in readiness
- bulk import reporting per row
- concurrent bookings of one room
"""

import pytest
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal

from innkeeper.engine.types import (
    AdjustmentKind,
    OverrideStatus,
    PriceRule,
    ReservationStatus,
    RoomStatusOverride,
    RuleType,
)
from innkeeper.exceptions import (
    BookingConflict,
    InvalidDateRange,
    InvalidStateTransition,
    NotFound,
    RoomNotReady,
    StayRuleViolation,
)
from innkeeper.services.booking_service import BookingService, NewReservation, ReservationChanges


@pytest.fixture
def service(stores, settings):
    return BookingService(stores, settings)


def booking(check_in, check_out, room_id="r101", phone="13800138000", **kwargs):
    return NewReservation(
        room_id=room_id,
        guest_name="Li Wei",
        guest_phone=phone,
        check_in_date=check_in,
        check_out_date=check_out,
        **kwargs
    )


class TestCreateReservation:

    def test_create_fills_price_from_rules(self, service):
        reservation = service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        assert reservation.status == ReservationStatus.CONFIRMED
        assert reservation.total_amount == Decimal("200.00")
        assert reservation.nightly_rate == Decimal("100.00")
        assert service.stores.reservations.get(reservation.id) == reservation

    def test_explicit_amounts_are_kept(self, service):
        reservation = service.create_reservation(booking(
            date(2024, 1, 10), date(2024, 1, 12),
            nightly_rate=Decimal("90"), total_amount=Decimal("180"),
        ))
        assert reservation.total_amount == Decimal("180")

    def test_same_day_turnover_allowed(self, service):
        service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        second = service.create_reservation(booking(date(2024, 1, 12), date(2024, 1, 14)))
        assert second.check_in_date == date(2024, 1, 12)

    def test_overlap_rejected_with_diagnostics(self, service):
        first = service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        with pytest.raises(BookingConflict) as exc_info:
            service.create_reservation(booking(date(2024, 1, 11), date(2024, 1, 13)))
        assert exc_info.value.room_id == "r101"
        assert [c.conflicting_reservation_id for c in exc_info.value.conflicts] == [first.id]

    def test_cancelled_reservation_frees_the_room(self, service):
        first = service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        service.cancel(first.id)
        assert service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))

    def test_closed_day_rejected(self, service, stores):
        stores.overrides.put(RoomStatusOverride("r101", date(2024, 1, 11), OverrideStatus.CLOSED))
        with pytest.raises(BookingConflict) as exc_info:
            service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        assert exc_info.value.conflicts[0].conflicting_override.date == date(2024, 1, 11)

    def test_dirty_day_does_not_block_booking(self, service, stores):
        stores.overrides.put(RoomStatusOverride("r101", date(2024, 1, 10), OverrideStatus.DIRTY))
        assert service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))

    def test_dirty_day_blocks_booking_when_configured(self, stores, settings):
        strict = BookingService(stores, settings.model_copy(update={"dirty_blocks_booking": True}))
        stores.overrides.put(RoomStatusOverride("r101", date(2024, 1, 10), OverrideStatus.DIRTY))
        with pytest.raises(BookingConflict):
            strict.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))

    def test_min_stay_enforced(self, service, stores):
        stores.rules.add_rule(PriceRule(
            id=0, priority=1, rule_type=RuleType.SEASONAL,
            adjustment=AdjustmentKind.PERCENTAGE, value=Decimal("0"), min_stay=3,
        ))
        with pytest.raises(StayRuleViolation) as exc_info:
            service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        assert "Minimum stay is 3" in exc_info.value.violations[0]

    def test_min_stay_not_enforced_when_disabled(self, stores, settings):
        lenient = BookingService(stores, settings.model_copy(update={"enforce_stay_rules": False}))
        stores.rules.add_rule(PriceRule(
            id=0, priority=1, rule_type=RuleType.SEASONAL,
            adjustment=AdjustmentKind.PERCENTAGE, value=Decimal("0"), min_stay=3,
        ))
        assert lenient.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))

    def test_invalid_dates_rejected(self, service):
        with pytest.raises(InvalidDateRange):
            service.create_reservation(booking(date(2024, 1, 12), date(2024, 1, 10)))

    def test_unknown_room(self, service):
        with pytest.raises(NotFound):
            service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12), room_id="nope"))

    @pytest.mark.parametrize("status", [ReservationStatus.CHECKED_IN, ReservationStatus.CANCELLED])
    def test_cannot_create_in_later_status(self, service, status):
        with pytest.raises(InvalidStateTransition):
            service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12), status=status))

    def test_concurrent_bookings_of_one_room(self, service):
        """Only one of many simultaneous identical bookings may succeed"""
        def attempt(_):
            try:
                service.create_reservation(booking(date(2024, 3, 1), date(2024, 3, 4)))
                return True
            except BookingConflict:
                return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(attempt, range(16)))

        assert results.count(True) == 1


class TestUpdateReservation:

    def test_extend_own_stay(self, service):
        """The reservation being edited does not conflict with itself"""
        r = service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        updated = service.update_reservation(r.id, ReservationChanges(check_out_date=date(2024, 1, 13)))
        assert updated.check_out_date == date(2024, 1, 13)
        assert updated.total_amount == Decimal("300.00")

    def test_extension_into_other_booking_rejected(self, service):
        r = service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        service.create_reservation(booking(date(2024, 1, 12), date(2024, 1, 14), phone="111"))
        with pytest.raises(BookingConflict):
            service.update_reservation(r.id, ReservationChanges(check_out_date=date(2024, 1, 13)))
        assert service.stores.reservations.get(r.id).check_out_date == date(2024, 1, 12)

    def test_move_to_other_room(self, service):
        r = service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        moved = service.update_reservation(r.id, ReservationChanges(room_id="r201"))
        assert moved.room_id == "r201"
        assert moved.total_amount == Decimal("600.00")

    def test_guest_details_only(self, service):
        r = service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        updated = service.update_reservation(r.id, ReservationChanges(guest_name="Wang Fang"))
        assert updated.guest_name == "Wang Fang"
        assert updated.total_amount == r.total_amount

    def test_reversed_dates_rejected(self, service):
        r = service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        with pytest.raises(InvalidDateRange):
            service.update_reservation(r.id, ReservationChanges(check_out_date=date(2024, 1, 9)))

    def test_unknown_reservation(self, service):
        with pytest.raises(NotFound):
            service.update_reservation("missing", ReservationChanges(guest_name="X"))


class TestFrontDeskActions:

    def test_lifecycle(self, service):
        r = service.create_reservation(booking(
            date(2024, 1, 10), date(2024, 1, 12), status=ReservationStatus.PENDING
        ))
        r = service.confirm(r.id)
        assert r.status == ReservationStatus.CONFIRMED
        r = service.check_in(r.id, reference_date=date(2024, 1, 10))
        assert r.status == ReservationStatus.CHECKED_IN
        r = service.check_out(r.id)
        assert r.status == ReservationStatus.CHECKED_OUT
        assert service.stores.reservations.get(r.id).status == ReservationStatus.CHECKED_OUT

    def test_check_in_refused_while_dirty(self, service, stores):
        r = service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        stores.overrides.put(RoomStatusOverride("r101", date(2024, 1, 10), OverrideStatus.DIRTY))
        with pytest.raises(RoomNotReady) as exc_info:
            service.check_in(r.id, reference_date=date(2024, 1, 10))
        assert exc_info.value.reason == "needs cleaning"
        assert service.stores.reservations.get(r.id).status == ReservationStatus.CONFIRMED

    def test_early_check_in_refused(self, service):
        r = service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        with pytest.raises(InvalidDateRange):
            service.check_in(r.id, reference_date=date(2024, 1, 9))

    def test_late_check_in_allowed(self, service):
        r = service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        assert service.check_in(r.id, reference_date=date(2024, 1, 11)).status == ReservationStatus.CHECKED_IN

    def test_cancel_checked_out_rejected(self, service):
        r = service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        service.check_in(r.id, reference_date=date(2024, 1, 10))
        service.check_out(r.id)
        with pytest.raises(InvalidStateTransition):
            service.cancel(r.id)

    def test_delete_only_closed_reservations(self, service):
        r = service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        with pytest.raises(InvalidStateTransition):
            service.delete_reservation(r.id)
        service.cancel(r.id)
        service.delete_reservation(r.id)
        assert service.stores.reservations.get(r.id) is None


class TestCheckAvailability:

    def test_lists_every_conflict_without_writing(self, service, stores):
        first = service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        stores.overrides.put(RoomStatusOverride("r101", date(2024, 1, 13), OverrideStatus.CLOSED))

        result = service.check_availability("r101", date(2024, 1, 11), date(2024, 1, 14))

        assert result.available is False
        assert result.conflicts[0].conflicting_reservation_id == first.id
        assert result.conflicts[1].conflicting_override.date == date(2024, 1, 13)
        assert result.quote.total == Decimal("300.00")

    def test_exclude_self(self, service):
        r = service.create_reservation(booking(date(2024, 1, 10), date(2024, 1, 12)))
        result = service.check_availability(
            "r101", date(2024, 1, 10), date(2024, 1, 12), exclude_reservation_id=r.id
        )
        assert result.available is True


class TestBulkImport:

    def test_conflicting_rows_reported_not_fatal(self, service):
        rows = [
            booking(date(2024, 1, 10), date(2024, 1, 12)),
            booking(date(2024, 1, 11), date(2024, 1, 13)),   # overlaps row 0
            booking(date(2024, 1, 12), date(2024, 1, 14)),
            booking(date(2024, 1, 15), date(2024, 1, 14)),   # reversed dates
            booking(date(2024, 1, 10), date(2024, 1, 12), room_id="missing"),
        ]

        outcomes = service.bulk_import(rows)

        assert [o.ok for o in outcomes] == [True, False, True, False, False]
        assert outcomes[1].code == "booking_conflict"
        assert outcomes[1].conflicts[0].conflicting_reservation_id == outcomes[0].reservation.id
        assert outcomes[3].code == "invalid_date_range"
        assert outcomes[4].code == "not_found"
        assert [o.row for o in outcomes] == [0, 1, 2, 3, 4]
