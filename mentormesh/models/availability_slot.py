# mentormesh/models/availability_slot.py
from datetime import datetime, time
from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship

from mentormesh.models.base import Base, utcnow


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that still occupy the mentor's calendar
ACTIVE_STATUSES = (SlotStatus.AVAILABLE.value, SlotStatus.BOOKED.value)


class AvailabilitySlot(Base):
    """
    One bookable interval on a mentor's calendar.

    `date` is a calendar day; `start_time` / `end_time` are zero-padded
    "HH:MM" wall-clock strings on that day. `timezone` is a label only,
    all arithmetic treats the clock digits as-is.

    `status` is the single source of truth for the booking state;
    `is_booked` is derived from it.
    """

    __tablename__ = "availability_slots"

    id = Column(Integer, primary_key=True, index=True)

    mentor_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)

    status = Column(
        String(16),
        nullable=False,
        default=SlotStatus.AVAILABLE.value,
        index=True,
    )

    booked_by_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    booking_id = Column(String(64), nullable=True)
    meeting_link = Column(String(512), nullable=True)

    timezone = Column(String(64), nullable=False, default="UTC")
    notes = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    mentor = relationship("User", foreign_keys=[mentor_id], backref="availability_slots")
    booked_by = relationship("User", foreign_keys=[booked_by_id], backref="booked_slots")

    __table_args__ = (
        Index("ix_slots_mentor_date_status", "mentor_id", "date", "status"),
        Index("ix_slots_date_status", "date", "status"),
    )

    @hybrid_property
    def is_booked(self) -> bool:
        return self.status == SlotStatus.BOOKED.value

    @is_booked.expression
    def is_booked(cls):
        return cls.status == SlotStatus.BOOKED.value

    @property
    def starts_at(self) -> datetime:
        """`date` + `start_time` as one naive timestamp."""
        hour, minute = self.start_time.split(":")
        return datetime.combine(self.date, time(int(hour), int(minute)))
