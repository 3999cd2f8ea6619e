"""
Pricing Schemas

Pydantic models for price rule and quote requests and responses.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator

from ..engine.types import AdjustmentKind, RuleType


def _check_weekdays(v):
    if v is None:
        return v
    for d in v:
        if d not in range(7):
            raise ValueError("weekdays values must be 0-6 (0=Sun, 6=Sat)")
    return sorted(set(v))


class PriceRuleBase(BaseModel):
    """Base schema for a price rule"""
    name: str = Field(default="", max_length=100)
    rule_type: RuleType
    adjustment: AdjustmentKind
    value: Decimal = Field(..., description="Fixed price, percent, or amount depending on adjustment")
    priority: int = Field(default=0, description="Higher wins")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    weekdays: Optional[List[int]] = Field(None, description="Weekday numbers (0=Sun, 6=Sat)")
    min_stay: Optional[int] = Field(None, ge=1)
    max_stay: Optional[int] = Field(None, ge=1)
    room_id: Optional[str] = None
    room_type: Optional[str] = Field(None, max_length=50)
    is_active: bool = True

    @field_validator('weekdays')
    @classmethod
    def validate_weekdays(cls, v):
        return _check_weekdays(v)


class PriceRuleCreate(PriceRuleBase):
    """Schema for creating a price rule"""

    @model_validator(mode='after')
    def validate_window(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.min_stay and self.max_stay and self.max_stay < self.min_stay:
            raise ValueError("max_stay must not be below min_stay")
        if self.adjustment == AdjustmentKind.FIXED and self.value < 0:
            raise ValueError("a fixed price cannot be negative")
        return self


class PriceRuleUpdate(BaseModel):
    """Schema for updating a price rule; omitted fields stay unchanged"""
    name: Optional[str] = Field(None, max_length=100)
    rule_type: Optional[RuleType] = None
    adjustment: Optional[AdjustmentKind] = None
    value: Optional[Decimal] = None
    priority: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    weekdays: Optional[List[int]] = None
    min_stay: Optional[int] = Field(None, ge=1)
    max_stay: Optional[int] = Field(None, ge=1)
    room_id: Optional[str] = None
    room_type: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None

    @field_validator('weekdays')
    @classmethod
    def validate_weekdays(cls, v):
        return _check_weekdays(v)


class PriceRuleResponse(PriceRuleBase):
    """Schema for price rule response"""
    id: int

    @field_validator('weekdays', mode='before')
    @classmethod
    def weekdays_as_list(cls, v):
        if v is None:
            return v
        return sorted(v)

    class Config:
        from_attributes = True


class NightPriceResponse(BaseModel):
    """Price of one night of a quoted stay"""
    date: date
    price: Decimal
    applied_rule_ids: List[int] = []
    special_price: bool = False

    class Config:
        from_attributes = True


class QuoteResponse(BaseModel):
    """Price of a whole stay"""
    room_id: str
    check_in_date: date
    check_out_date: date
    nights: int
    total_amount: Decimal
    average_rate: Decimal
    currency: str
    min_stay: Optional[int] = None
    max_stay: Optional[int] = None
    violations: List[str] = []
    breakdown: List[NightPriceResponse]
