"""Append-only reschedule history for bookings."""

from __future__ import annotations

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


class BookingRescheduleEntry(Base):
    """
    One superseded (date, time) pair of a booking.

    Rows are only inserted. ``sequence`` is 1-based per booking, so the
    number of rows equals the number of successful reschedules.
    """

    __tablename__ = "booking_reschedule_history"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence = Column(Integer, nullable=False)
    original_date = Column(Date, nullable=False)
    original_time = Column(String(5), nullable=False)
    new_date = Column(Date, nullable=False)
    new_time = Column(String(5), nullable=False)
    reason = Column(String(200), nullable=False)
    changed_by_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    changed_at = Column(DateTime(timezone=True), nullable=False)

    booking = relationship("Booking", back_populates="reschedule_history")
    changed_by = relationship("User")

    __table_args__ = (
        UniqueConstraint("booking_id", "sequence", name="uq_booking_reschedule_sequence"),
    )

    def __repr__(self) -> str:
        return (
            f"<BookingRescheduleEntry booking={self.booking_id} #{self.sequence} "
            f"{self.original_date} {self.original_time} -> {self.new_date} {self.new_time}>"
        )
