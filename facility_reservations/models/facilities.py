"""
Facility, FacilityRating and StaffFacilityAssignment models.

Entities:
- Facility: A bookable physical resource (court, pool, hall) with a capacity
- FacilityRating: A user's 1-5 star rating of a facility
- StaffFacilityAssignment: Grants a staff member management rights over a facility
"""

from datetime import date, time
from typing import Optional, TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from facility_reservations.models.base import BaseModel, FACILITY_STATUSES, sql_in

# Avoid circular imports for type hints
if TYPE_CHECKING:
    from facility_reservations.models.bookings import Booking
    from facility_reservations.models.maintenance import MaintenanceReport
    from facility_reservations.models.users import Staff, User


class Facility(BaseModel):
    """
    Represents a bookable sports facility.

    Key features:
    - Capacity: maximum number of attendees for a single booking
    - Status: only 'open' facilities accept new bookings
    - Opening hours stored as times of day
    """

    __tablename__ = "facilities"

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Facility name (e.g., 'Tennis Court 1')"
    )

    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Facility type (e.g., 'tennis', 'pool', 'hall')"
    )

    location: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Location description"
    )

    capacity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Maximum attendees per booking"
    )

    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    is_indoor: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    open_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
        doc="Opening time"
    )

    close_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
        doc="Closing time"
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="open",
        doc="Facility status: 'open', 'closed', 'maintenance'"
    )

    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("staff.id"),
        nullable=True,
        doc="Staff member who created the facility"
    )

    # Relationships
    bookings: Mapped[list["Booking"]] = relationship(
        "Booking",
        back_populates="facility",
        cascade="all, delete-orphan",
    )

    maintenance_reports: Mapped[list["MaintenanceReport"]] = relationship(
        "MaintenanceReport",
        back_populates="facility",
        cascade="all, delete-orphan",
    )

    ratings: Mapped[list["FacilityRating"]] = relationship(
        "FacilityRating",
        back_populates="facility",
        cascade="all, delete-orphan",
    )

    assignments: Mapped[list["StaffFacilityAssignment"]] = relationship(
        "StaffFacilityAssignment",
        back_populates="facility",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_facility_capacity_positive"),
        CheckConstraint(sql_in("status", FACILITY_STATUSES), name="ck_facility_status"),
        Index("idx_facility_type", "type"),
        Index("idx_facility_status", "status"),
    )

    @property
    def is_open(self) -> bool:
        return self.status == "open"

    def __repr__(self) -> str:
        return f"<Facility(name='{self.name}', capacity={self.capacity}, status='{self.status}')>"


class FacilityRating(BaseModel):
    """A user's rating of a facility. One row per (facility, user)."""

    __tablename__ = "facility_ratings"

    facility_id: Mapped[int] = mapped_column(ForeignKey("facilities.id"), nullable=False)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    rating: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        doc="Rating between 1.0 and 5.0"
    )

    comment: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    facility: Mapped["Facility"] = relationship("Facility", back_populates="ratings")

    user: Mapped["User"] = relationship("User")

    __table_args__ = (
        CheckConstraint("rating >= 1.0 AND rating <= 5.0", name="ck_rating_range"),
        UniqueConstraint("facility_id", "user_id", name="uq_rating_facility_user"),
        Index("idx_rating_facility", "facility_id"),
    )


class StaffFacilityAssignment(BaseModel):
    """
    Grants a staff member visibility and management rights over a facility.

    A staff member holds at most one assignment per facility.
    """

    __tablename__ = "staff_facility_assignments"

    staff_id: Mapped[int] = mapped_column(
        ForeignKey("staff.id"),
        nullable=False,
        doc="Assigned staff member"
    )

    facility_id: Mapped[int] = mapped_column(
        ForeignKey("facilities.id"),
        nullable=False,
        doc="Facility the staff member manages"
    )

    role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="manager",
        doc="Role at the facility (e.g., 'manager', 'coach', 'lifeguard')"
    )

    assigned_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        default=date.today,
    )

    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    staff: Mapped["Staff"] = relationship("Staff", back_populates="assignments")

    facility: Mapped["Facility"] = relationship("Facility", back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("staff_id", "facility_id", name="uq_assignment_staff_facility"),
        Index("idx_assignment_staff", "staff_id"),
        Index("idx_assignment_facility", "facility_id"),
    )

    def __repr__(self) -> str:
        return f"<StaffFacilityAssignment(staff_id={self.staff_id}, facility_id={self.facility_id})>"
