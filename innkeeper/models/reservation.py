import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, String, Date, Numeric, Text, ForeignKey, DateTime, Index
from sqlalchemy.orm import relationship
from ..database import Base
from ..engine.types import Reservation as ReservationSnapshot, ReservationStatus


class Reservation(Base):
    """
    A guest's stay. check_out_date is exclusive.

    Rows are only deleted for cancelled or checked-out stays.
    """
    __tablename__ = "reservations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    guest_name = Column(String(100), nullable=False)
    guest_phone = Column(String(30), nullable=True)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    nightly_rate = Column(Numeric(10, 2), nullable=True)
    total_amount = Column(Numeric(10, 2), default=0)
    status = Column(String(20), default=ReservationStatus.CONFIRMED.value, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    room = relationship("Room", back_populates="reservations")

    __table_args__ = (
        Index("ix_reservation_room_dates", "room_id", "check_in_date", "check_out_date"),
        Index("ix_reservation_status", "status"),
    )

    def to_engine(self) -> ReservationSnapshot:
        return ReservationSnapshot(
            id=self.id,
            room_id=self.room_id,
            guest_name=self.guest_name,
            guest_phone=self.guest_phone,
            check_in_date=self.check_in_date,
            check_out_date=self.check_out_date,
            status=ReservationStatus(self.status),
            nightly_rate=Decimal(str(self.nightly_rate)) if self.nightly_rate is not None else None,
            total_amount=Decimal(str(self.total_amount)) if self.total_amount is not None else None,
        )

    def __repr__(self):
        return f"<Reservation {self.guest_name} - {self.check_in_date}>"
