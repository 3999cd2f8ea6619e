"""
Tests for Occupancy Trend and Monthly Revenue

Pure engine functions over a reservation snapshot.
"""

import pytest
from datetime import date
from decimal import Decimal

from innkeeper.engine.reports import month_bounds, monthly_revenue, occupancy_trend
from innkeeper.engine.types import Reservation, ReservationStatus, Room
from innkeeper.exceptions import InvalidDateRange

ROOMS = [
    Room(id="r101", name="101"),
    Room(id="r102", name="102"),
    Room(id="r201", name="201"),
    Room(id="r202", name="202"),
]


def make_reservation(res_id, check_in, check_out, room_id="r101",
                     status=ReservationStatus.CONFIRMED, total=None):
    return Reservation(
        id=res_id, room_id=room_id, guest_name="Guest", guest_phone="13800138000",
        check_in_date=check_in, check_out_date=check_out, status=status,
        total_amount=Decimal(total) if total is not None else None,
    )


class TestOccupancyTrend:
    """Rooms occupied per night; check-out day is free"""

    def test_one_entry_per_day_inclusive(self):
        trend = occupancy_trend(date(2024, 3, 1), date(2024, 3, 7), ROOMS, [])
        assert [d.date for d in trend][0] == date(2024, 3, 1)
        assert len(trend) == 7
        assert all(d.occupied_rooms == 0 and d.total_rooms == 4 for d in trend)

    def test_checkout_night_not_counted(self):
        reservations = [make_reservation("A", date(2024, 3, 1), date(2024, 3, 3))]
        trend = occupancy_trend(date(2024, 3, 1), date(2024, 3, 3), ROOMS, reservations)
        assert [d.occupied_rooms for d in trend] == [1, 1, 0]
        assert trend[0].occupancy_rate == 25.0

    def test_cancelled_and_checked_out_ignored(self):
        reservations = [
            make_reservation("A", date(2024, 3, 1), date(2024, 3, 2), status=ReservationStatus.CANCELLED),
            make_reservation("B", date(2024, 3, 1), date(2024, 3, 2), room_id="r102",
                             status=ReservationStatus.CHECKED_OUT),
            make_reservation("C", date(2024, 3, 1), date(2024, 3, 2), room_id="r201",
                             status=ReservationStatus.PENDING),
        ]
        trend = occupancy_trend(date(2024, 3, 1), date(2024, 3, 1), ROOMS, reservations)
        assert trend[0].occupied_rooms == 1

    def test_room_counted_once_per_night(self):
        reservations = [
            make_reservation("A", date(2024, 3, 1), date(2024, 3, 3)),
            make_reservation("B", date(2024, 3, 2), date(2024, 3, 4)),
        ]
        trend = occupancy_trend(date(2024, 3, 2), date(2024, 3, 2), ROOMS, reservations)
        assert trend[0].occupied_rooms == 1

    def test_reservations_for_other_rooms_ignored(self):
        reservations = [make_reservation("A", date(2024, 3, 1), date(2024, 3, 2), room_id="gone")]
        trend = occupancy_trend(date(2024, 3, 1), date(2024, 3, 1), ROOMS, reservations)
        assert trend[0].occupied_rooms == 0

    def test_no_rooms_gives_zero_rate(self):
        trend = occupancy_trend(date(2024, 3, 1), date(2024, 3, 1), [], [])
        assert trend[0].occupancy_rate == 0.0

    def test_rate_rounded(self):
        rooms = ROOMS[:3]
        reservations = [make_reservation("A", date(2024, 3, 1), date(2024, 3, 2))]
        trend = occupancy_trend(date(2024, 3, 1), date(2024, 3, 1), rooms, reservations)
        assert trend[0].occupancy_rate == 33.33

    def test_end_before_start_rejected(self):
        with pytest.raises(InvalidDateRange):
            occupancy_trend(date(2024, 3, 5), date(2024, 3, 1), ROOMS, [])


class TestMonthlyRevenue:
    """Stays are credited to their arrival month"""

    def test_sums_non_cancelled_arrivals(self):
        reservations = [
            make_reservation("A", date(2024, 3, 1), date(2024, 3, 3), total="200.00"),
            make_reservation("B", date(2024, 3, 31), date(2024, 4, 2), room_id="r102", total="150.00"),
            make_reservation("C", date(2024, 3, 10), date(2024, 3, 11), room_id="r201",
                             status=ReservationStatus.CHECKED_OUT, total="100.00"),
            make_reservation("X", date(2024, 3, 5), date(2024, 3, 6),
                             status=ReservationStatus.CANCELLED, total="999.00"),
        ]
        summary = monthly_revenue(2024, 3, reservations)

        assert summary.total_revenue == Decimal("450.00")
        assert summary.total_reservations == 3
        assert summary.average_revenue == Decimal("150.00")

    def test_stay_spanning_month_end_belongs_to_arrival_month(self):
        reservations = [make_reservation("A", date(2024, 2, 28), date(2024, 3, 2), total="300.00")]
        assert monthly_revenue(2024, 3, reservations).total_reservations == 0
        assert monthly_revenue(2024, 2, reservations).total_revenue == Decimal("300.00")

    def test_empty_month(self):
        summary = monthly_revenue(2024, 3, [])
        assert summary.total_revenue == Decimal("0.00")
        assert summary.average_revenue == Decimal("0.00")
        assert summary.total_reservations == 0

    def test_missing_amount_counts_as_zero(self):
        reservations = [
            make_reservation("A", date(2024, 3, 1), date(2024, 3, 2), total="100.00"),
            make_reservation("B", date(2024, 3, 1), date(2024, 3, 2), room_id="r102"),
        ]
        summary = monthly_revenue(2024, 3, reservations)
        assert summary.total_reservations == 2
        assert summary.average_revenue == Decimal("50.00")

    def test_average_rounds_half_up(self):
        reservations = [
            make_reservation("A", date(2024, 3, 1), date(2024, 3, 2), total="100.00"),
            make_reservation("B", date(2024, 3, 1), date(2024, 3, 2), room_id="r102", total="100.01"),
        ]
        assert monthly_revenue(2024, 3, reservations).average_revenue == Decimal("100.01")

    def test_month_bounds_leap_february(self):
        assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
        assert month_bounds(2023, 2) == (date(2023, 2, 1), date(2023, 2, 28))
