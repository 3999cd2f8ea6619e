from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from decimal import Decimal


class RoomCreate(BaseModel):
    id: Optional[str] = Field(None, min_length=1, max_length=36)
    name: str = Field(..., min_length=1, max_length=100)
    room_type: Optional[str] = Field(None, max_length=50)
    base_price: Decimal = Field(default=Decimal("0"), ge=0, description="Nightly price before rules")
    sort_order: int = Field(default=0, description="Position on the calendar, lowest first")


class RoomUpdate(BaseModel):
    """Omitted fields stay unchanged"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    room_type: Optional[str] = Field(None, max_length=50)
    base_price: Optional[Decimal] = Field(None, ge=0)
    sort_order: Optional[int] = None


class RoomOrder(BaseModel):
    id: str
    sort_order: int


class RoomReorderRequest(BaseModel):
    updates: List[RoomOrder] = Field(..., min_length=1, max_length=500)

    @field_validator('updates')
    @classmethod
    def unique_rooms(cls, v):
        ids = [u.id for u in v]
        if len(ids) != len(set(ids)):
            raise ValueError("each room may appear only once")
        return v


class RoomReorderResponse(BaseModel):
    updated: int


class RoomResponse(BaseModel):
    id: str
    name: str
    room_type: Optional[str] = None
    base_price: Decimal
    sort_order: int = 0

    class Config:
        from_attributes = True
