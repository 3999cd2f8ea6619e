"""
Report Service

Front-desk and owner reports over the reservation stores:
- daily arrivals / departures / occupancy
- occupancy trend over a date range
- monthly revenue
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from ..config import Settings, get_settings
from ..engine.checkouts import (
    DailySummary,
    compute_daily_checkins,
    compute_daily_checkouts,
    daily_summary,
)
from ..engine.dates import validate_query_range
from ..engine.reports import (
    OccupancyDay,
    RevenueSummary,
    month_bounds,
    monthly_revenue,
    occupancy_trend,
)
from ..engine.types import Reservation
from ..exceptions import InvalidDateRange
from .stores import PropertyStores

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyReport:
    summary: DailySummary
    arrivals: List[Reservation]
    departures: List[Reservation]


class ReportService:
    def __init__(self, stores: PropertyStores, settings: Optional[Settings] = None):
        self.stores = stores
        self.settings = settings or get_settings()

    def daily_report(self, reference_date: date) -> DailyReport:
        """
        Arrivals, departures and occupancy for a reference date.

        Back-to-back stays of the same guest in the same room count as
        one continuous stay.
        """
        rooms = self.stores.rooms.list_rooms()
        # [day - 1, day + 1) catches stays ending on, starting on and covering the day
        reservations = self.stores.reservations.list_overlapping(
            reference_date - timedelta(days=1),
            reference_date + timedelta(days=1),
            [r.id for r in rooms],
        )
        return DailyReport(
            summary=daily_summary(reference_date, rooms, reservations),
            arrivals=compute_daily_checkins(reference_date, reservations),
            departures=compute_daily_checkouts(reference_date, reservations),
        )

    def occupancy_trend(self, start_date: date, end_date: date) -> List[OccupancyDay]:
        """
        Raises:
            InvalidDateRange: end before start, or a window longer than MAX_GRID_DAYS
        """
        validate_query_range(start_date, end_date)
        span = (end_date - start_date).days + 1
        if span > self.settings.max_grid_days:
            raise InvalidDateRange(
                start_date, end_date,
                f"Report window of {span} days exceeds the limit of {self.settings.max_grid_days}"
            )

        rooms = self.stores.rooms.list_rooms()
        reservations = self.stores.reservations.list_overlapping(
            start_date, end_date + timedelta(days=1), [r.id for r in rooms]
        )
        return occupancy_trend(start_date, end_date, rooms, reservations)

    def monthly_revenue(self, year: int, month: int) -> RevenueSummary:
        first, last = month_bounds(year, month)
        # Every stay arriving in the month overlaps [first, last + 1)
        reservations = self.stores.reservations.list_overlapping(first, last + timedelta(days=1))
        summary = monthly_revenue(year, month, reservations, self.settings.currency_decimals)
        logger.info(
            f"Revenue {year}-{month:02d}: {summary.total_revenue} "
            f"from {summary.total_reservations} reservations"
        )
        return summary
