# Availability & pricing engine: pure functions over snapshots
from .types import (
    AdjustmentKind,
    CalendarDay,
    ConflictResult,
    OverrideStatus,
    PriceRule,
    Reservation,
    ReservationStatus,
    Room,
    RoomStatusOverride,
    RuleType,
)
from .pricing import PriceResolution, RuleConflict, resolve_price, resolve_price_detail
from .overrides import Availability, check_in_readiness, resolve_availability
from .conflicts import check_conflict, find_conflicts, has_conflict, ranges_overlap
from .status import cancel, check_in, check_out, confirm, transition
from .grid import build_grid, grid_to_rows
from .stay import StayQuote, quote_stay
from .checkouts import (
    DailySummary,
    compute_daily_checkins,
    compute_daily_checkouts,
    daily_summary,
)
from .reports import OccupancyDay, RevenueSummary, monthly_revenue, occupancy_trend

__all__ = [
    "AdjustmentKind", "CalendarDay", "ConflictResult", "OverrideStatus", "PriceRule",
    "Reservation", "ReservationStatus", "Room", "RoomStatusOverride", "RuleType",
    "PriceResolution", "RuleConflict", "resolve_price", "resolve_price_detail",
    "Availability", "check_in_readiness", "resolve_availability",
    "check_conflict", "find_conflicts", "has_conflict", "ranges_overlap",
    "cancel", "check_in", "check_out", "confirm", "transition",
    "build_grid", "grid_to_rows",
    "StayQuote", "quote_stay",
    "DailySummary", "compute_daily_checkins", "compute_daily_checkouts", "daily_summary",
    "OccupancyDay", "RevenueSummary", "monthly_revenue", "occupancy_trend",
]
