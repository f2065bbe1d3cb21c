"""
Booking model.

Entities:
- Booking: A resident's reservation of a facility for a time slot on a date
"""

import datetime as dt
from typing import Optional, TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Time,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from facility_reservations.models.base import (
    ACTIVE_BOOKING_STATUSES,
    BOOKING_STATUSES,
    BaseModel,
    sql_in,
)

# Avoid circular imports for type hints
if TYPE_CHECKING:
    from facility_reservations.models.facilities import Facility
    from facility_reservations.models.users import Resident, Staff


class Booking(BaseModel):
    """
    A resident's reservation of a facility.

    The slot is the half-open interval [start_time, end_time) on date, so a
    booking ending at 10:00 does not collide with one starting at 10:00.

    Status workflow:
    - pending: created by a resident, awaiting staff review
    - approved / rejected: decided by staff (stamps approved_by, approval_date)
    - cancelled: terminal, set by the owning resident or staff

    Only pending and approved bookings occupy their slot.
    """

    __tablename__ = "bookings"

    facility_id: Mapped[int] = mapped_column(
        ForeignKey("facilities.id"),
        nullable=False,
        doc="Facility being booked"
    )

    resident_id: Mapped[int] = mapped_column(
        ForeignKey("residents.id"),
        nullable=False,
        doc="Resident who owns the booking"
    )

    # Slot
    date: Mapped[dt.date] = mapped_column(
        Date,
        nullable=False,
        doc="Calendar date of the booking"
    )

    start_time: Mapped[dt.time] = mapped_column(
        Time,
        nullable=False,
        doc="Slot start (inclusive)"
    )

    end_time: Mapped[dt.time] = mapped_column(
        Time,
        nullable=False,
        doc="Slot end (exclusive)"
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        doc="Booking status: 'pending', 'approved', 'rejected', 'cancelled'"
    )

    purpose: Mapped[str] = mapped_column(String(200), nullable=False)

    attendees: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Number of attendees (at most the facility capacity)"
    )

    # Review stamp
    approved_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("staff.id"),
        nullable=True,
        doc="Staff member who approved or rejected the booking"
    )

    approval_date: Mapped[Optional[dt.datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="When the booking was approved or rejected (UTC)"
    )

    # Relationships
    facility: Mapped["Facility"] = relationship("Facility", back_populates="bookings")

    resident: Mapped["Resident"] = relationship("Resident")

    approver: Mapped[Optional["Staff"]] = relationship(
        "Staff",
        foreign_keys=[approved_by],
    )

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_booking_time_order"),
        CheckConstraint("attendees >= 1", name="ck_booking_attendees"),
        CheckConstraint(sql_in("status", BOOKING_STATUSES), name="ck_booking_status"),
        Index("idx_booking_resident", "resident_id"),
        Index("idx_booking_status", "status"),
        # Composite index for conflict checks
        Index("idx_booking_facility_date_time", "facility_id", "date", "start_time", "end_time"),
    )

    @property
    def is_active(self) -> bool:
        """Whether the booking occupies its slot."""
        return self.status in ACTIVE_BOOKING_STATUSES

    def __repr__(self) -> str:
        return (
            f"<Booking(facility_id={self.facility_id}, date={self.date}, "
            f"{self.start_time}-{self.end_time}, status='{self.status}')>"
        )
