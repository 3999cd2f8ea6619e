from fastapi import Depends
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..database import get_db
from ..services.booking_service import BookingService
from ..services.calendar_service import CalendarService
from ..services.report_service import ReportService
from ..services.room_service import RoomService
from ..services.sql_stores import SqlStores


def get_stores(db: Session = Depends(get_db)) -> SqlStores:
    """Stores bound to the request's database session"""
    return SqlStores(db)


def get_booking_service(
    stores: SqlStores = Depends(get_stores),
    settings: Settings = Depends(get_settings)
) -> BookingService:
    return BookingService(stores, settings)


def get_calendar_service(
    stores: SqlStores = Depends(get_stores),
    settings: Settings = Depends(get_settings)
) -> CalendarService:
    return CalendarService(stores, settings)


def get_report_service(
    stores: SqlStores = Depends(get_stores),
    settings: Settings = Depends(get_settings)
) -> ReportService:
    return ReportService(stores, settings)


def get_room_service(stores: SqlStores = Depends(get_stores)) -> RoomService:
    return RoomService(stores)
