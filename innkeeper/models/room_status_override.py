"""
Room Status Override Model

Sparse manual status per (room, date): closed, dirty or available,
with an optional special price. No row means no override.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, String, Date, DateTime, Numeric, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from ..database import Base
from ..engine.types import OverrideStatus, RoomStatusOverride as OverrideSnapshot


class RoomStatusOverride(Base):
    __tablename__ = "room_status_overrides"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=OverrideStatus.AVAILABLE.value)
    note = Column(String(200), nullable=True)
    price = Column(Numeric(10, 2), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    room = relationship("Room", back_populates="overrides")

    __table_args__ = (
        UniqueConstraint("room_id", "date", name="uq_override_room_date"),
        Index("ix_override_date", "date"),
    )

    def to_engine(self) -> OverrideSnapshot:
        return OverrideSnapshot(
            room_id=self.room_id,
            date=self.date,
            status=OverrideStatus(self.status),
            note=self.note,
            price=Decimal(str(self.price)) if self.price is not None else None,
        )

    def __repr__(self):
        return f"<RoomStatusOverride {self.room_id} {self.date} {self.status}>"
