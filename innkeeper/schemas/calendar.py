"""
Calendar Schemas

Grid, manual room status and report payloads.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field

from ..engine.types import OverrideStatus
from .reservation import ReservationResponse


class CalendarDayResponse(BaseModel):
    """Derived state of one room on one date"""
    room_id: str
    date: date
    price: Decimal
    available: bool
    reason: Optional[str] = None
    min_stay: Optional[int] = None
    max_stay: Optional[int] = None
    occupying_reservation_id: Optional[str] = None
    warnings: List[str] = []

    class Config:
        from_attributes = True


class RoomCalendar(BaseModel):
    room_id: str
    room_name: str
    days: List[CalendarDayResponse]


class CalendarGridResponse(BaseModel):
    start_date: date
    end_date: date
    currency: str
    rooms: List[RoomCalendar]


class BlockDatesRequest(BaseModel):
    room_id: str
    start_date: date
    end_date: date = Field(..., description="Inclusive")
    note: Optional[str] = Field(None, max_length=500)


class UnblockDatesRequest(BaseModel):
    room_id: str
    start_date: date
    end_date: date = Field(..., description="Inclusive")


class DaysChangedResponse(BaseModel):
    room_id: str
    days: int


class RoomStatusRequest(BaseModel):
    room_id: str
    date: date
    status: OverrideStatus
    note: Optional[str] = Field(None, max_length=500)


class SpecialPriceRequest(BaseModel):
    room_id: str
    date: date
    price: Optional[Decimal] = Field(None, ge=0, description="None removes the special price")


class OverrideResponse(BaseModel):
    room_id: str
    date: date
    status: Optional[OverrideStatus] = None
    note: Optional[str] = None
    price: Optional[Decimal] = None

    class Config:
        from_attributes = True


class DailyReportResponse(BaseModel):
    date: date
    total_rooms: int
    in_house: int
    available_rooms: int
    occupancy_rate: float
    arrivals: int
    departures: int
    arrival_list: List[ReservationResponse]
    departure_list: List[ReservationResponse]


class OccupancyDayResponse(BaseModel):
    date: date
    occupied_rooms: int
    total_rooms: int
    occupancy_rate: float

    class Config:
        from_attributes = True


class OccupancyTrendResponse(BaseModel):
    start_date: date
    end_date: date
    average_rate: float
    days: List[OccupancyDayResponse]


class RevenueResponse(BaseModel):
    year: int
    month: int
    currency: str
    total_revenue: Decimal
    total_reservations: int
    average_revenue: Decimal
