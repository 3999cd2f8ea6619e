import re
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date
from decimal import Decimal

from ..engine.types import ConflictResult, ReservationStatus


def _clean_text(v):
    """Strip markup from free-text guest fields"""
    if v is None or not isinstance(v, str):
        return v
    v = re.sub(r'<script[^>]*>.*?</script>', '', v, flags=re.IGNORECASE | re.DOTALL)
    v = re.sub(r'on\w+\s*=', '', v, flags=re.IGNORECASE)
    return v.strip()


class ReservationCreate(BaseModel):
    """
    New reservation.

    Date order is checked by the booking service so that a reversed
    range answers 400 like every other invalid range.
    """
    id: Optional[str] = Field(None, min_length=1, max_length=36)
    room_id: str = Field(..., min_length=1, max_length=36)
    guest_name: str = Field(..., min_length=1, max_length=100, description="Guest name")
    guest_phone: Optional[str] = Field(None, max_length=30, description="Guest phone")
    check_in_date: date
    check_out_date: date
    status: ReservationStatus = ReservationStatus.CONFIRMED
    nightly_rate: Optional[Decimal] = Field(None, ge=0, description="Quoted when omitted")
    total_amount: Optional[Decimal] = Field(None, ge=0, description="Quoted when omitted")

    @field_validator('guest_name', mode='before')
    @classmethod
    def sanitize_guest_name(cls, v):
        return _clean_text(v)


class ReservationUpdate(BaseModel):
    room_id: Optional[str] = Field(None, min_length=1, max_length=36)
    guest_name: Optional[str] = Field(None, min_length=1, max_length=100)
    guest_phone: Optional[str] = Field(None, max_length=30)
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    nightly_rate: Optional[Decimal] = Field(None, ge=0)
    total_amount: Optional[Decimal] = Field(None, ge=0)

    @field_validator('guest_name', mode='before')
    @classmethod
    def sanitize_guest_name(cls, v):
        return _clean_text(v)


class ReservationResponse(BaseModel):
    id: str
    room_id: str
    guest_name: str
    guest_phone: Optional[str] = None
    check_in_date: date
    check_out_date: date
    status: ReservationStatus
    nightly_rate: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None
    nights: int

    class Config:
        from_attributes = True


class CheckInRequest(BaseModel):
    """Front-desk check-in; reference_date defaults to today"""
    reference_date: Optional[date] = None


class ConflictInfo(BaseModel):
    """What a proposed stay collides with"""
    reservation_id: Optional[str] = None
    override_date: Optional[date] = None
    override_status: Optional[str] = None

    @classmethod
    def from_result(cls, result: ConflictResult) -> "ConflictInfo":
        override = result.conflicting_override
        return cls(
            reservation_id=result.conflicting_reservation_id,
            override_date=override.date if override else None,
            override_status=override.status.value if override else None,
        )


class AvailabilityResponse(BaseModel):
    room_id: str
    check_in_date: date
    check_out_date: date
    available: bool
    conflicts: List[ConflictInfo] = []
    nights: int
    total_amount: Decimal
    currency: str
    min_stay: Optional[int] = None
    max_stay: Optional[int] = None
    violations: List[str] = []


class ImportRequest(BaseModel):
    reservations: List[ReservationCreate] = Field(..., min_length=1, max_length=1000)


class ImportRowResult(BaseModel):
    row: int
    ok: bool
    reservation_id: Optional[str] = None
    error: Optional[str] = None
    code: Optional[str] = None
    conflicts: List[ConflictInfo] = []


class ImportResponse(BaseModel):
    imported: int
    failed: int
    results: List[ImportRowResult]
