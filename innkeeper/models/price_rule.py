"""
Price Rule Model

Prioritized price adjustments configured by the property owner.
The integer id doubles as creation order for tie-breaking.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, FrozenSet
from sqlalchemy import Column, String, Numeric, ForeignKey, DateTime, Integer, Date, Boolean
from ..database import Base
from ..engine.types import PriceRule as PriceRuleSnapshot


class PriceRule(Base):
    __tablename__ = "price_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, default="")
    rule_type = Column(String(20), nullable=False)    # seasonal, weekday, weekend, holiday, special
    adjustment = Column(String(20), nullable=False)   # fixed, percentage, amount
    value = Column(Numeric(10, 2), nullable=False)
    priority = Column(Integer, nullable=False, default=0)

    # Optional active window (inclusive)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    # Comma-separated weekday numbers: 0=Sun ... 6=Sat
    weekdays = Column(String(20), nullable=True)

    min_stay = Column(Integer, nullable=True)
    max_stay = Column(Integer, nullable=True)

    # Scope: both empty means every room
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=True)
    room_type = Column(String(50), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def get_weekdays(self) -> Optional[FrozenSet[int]]:
        """Parse weekdays string to a set of integers, None when unset"""
        if not self.weekdays:
            return None
        days = frozenset(int(d.strip()) for d in self.weekdays.split(",") if d.strip().isdigit())
        return days or None

    def to_engine(self) -> PriceRuleSnapshot:
        return PriceRuleSnapshot(
            id=self.id,
            priority=self.priority or 0,
            rule_type=self.rule_type,
            adjustment=self.adjustment,
            value=Decimal(str(self.value)),
            start_date=self.start_date,
            end_date=self.end_date,
            weekdays=self.get_weekdays(),
            min_stay=self.min_stay,
            max_stay=self.max_stay,
            room_id=self.room_id,
            room_type=self.room_type,
            name=self.name or "",
            is_active=bool(self.is_active),
        )

    def __repr__(self):
        return f"<PriceRule {self.id} {self.rule_type}/{self.adjustment} p={self.priority}>"
