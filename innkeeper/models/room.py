import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, String, Numeric, Integer, DateTime
from sqlalchemy.orm import relationship
from ..database import Base
from ..engine.types import Room as RoomSnapshot


class Room(Base):
    """Bookable unit of inventory. Reference data, never changed by the engine."""
    __tablename__ = "rooms"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    room_type = Column(String(50), nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False, default=0)
    sort_order = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    reservations = relationship("Reservation", back_populates="room", cascade="all, delete-orphan")
    overrides = relationship("RoomStatusOverride", back_populates="room", cascade="all, delete-orphan")

    def to_engine(self) -> RoomSnapshot:
        return RoomSnapshot(
            id=self.id,
            name=self.name,
            room_type=self.room_type,
            base_price=Decimal(str(self.base_price or 0)),
            sort_order=self.sort_order or 0,
        )

    def __repr__(self):
        return f"<Room {self.name} ({self.room_type})>"
