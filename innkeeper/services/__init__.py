# Services package
from .stores import InMemoryStores, PropertyStores, Snapshot
from .sql_stores import SqlStores
from .booking_service import (
    AvailabilityCheck,
    BookingService,
    ImportOutcome,
    NewReservation,
    ReservationChanges,
)
from .calendar_service import CalendarService
from .report_service import DailyReport, ReportService
from .room_service import RoomChanges, RoomService

__all__ = [
    "InMemoryStores", "PropertyStores", "Snapshot", "SqlStores",
    "AvailabilityCheck", "BookingService", "ImportOutcome",
    "NewReservation", "ReservationChanges",
    "CalendarService", "DailyReport", "ReportService",
    "RoomChanges", "RoomService",
]
