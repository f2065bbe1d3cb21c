"""
MaintenanceReport model.

Entities:
- MaintenanceReport: An issue reported against a facility by a resident or staff member
"""

from datetime import date, datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from facility_reservations.models.base import (
    BaseModel,
    MAINTENANCE_PRIORITIES,
    MAINTENANCE_STATUSES,
    sql_in,
)

# Avoid circular imports for type hints
if TYPE_CHECKING:
    from facility_reservations.models.facilities import Facility
    from facility_reservations.models.users import Resident, Staff


class MaintenanceReport(BaseModel):
    """
    Tracks a maintenance issue for a facility.

    Exactly one of reported_by_resident / reported_by_staff is set.

    Lifecycle:
    1. reported: created by a resident or staff member
    2. in-progress / scheduled: staff working on it (scheduled_date optional)
    3. completed: completion_date stamped, feedback optionally attached
    """

    __tablename__ = "maintenance_reports"

    facility_id: Mapped[int] = mapped_column(
        ForeignKey("facilities.id"),
        nullable=False,
        doc="Facility with the issue"
    )

    reported_by_resident: Mapped[Optional[int]] = mapped_column(
        ForeignKey("residents.id"),
        nullable=True,
        doc="Resident who reported the issue"
    )

    reported_by_staff: Mapped[Optional[int]] = mapped_column(
        ForeignKey("staff.id"),
        nullable=True,
        doc="Staff member who reported the issue"
    )

    title: Mapped[str] = mapped_column(String(100), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="reported",
        doc="Status: 'reported', 'in-progress', 'scheduled', 'completed'"
    )

    priority: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="Priority: 'low', 'medium', 'high', 'critical'"
    )

    reported_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    assigned_to: Mapped[Optional[int]] = mapped_column(
        ForeignKey("staff.id"),
        nullable=True,
        doc="Staff member responsible for the fix"
    )

    scheduled_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    completion_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Set when the report enters 'completed', NULL otherwise"
    )

    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    facility: Mapped["Facility"] = relationship("Facility", back_populates="maintenance_reports")

    resident_reporter: Mapped[Optional["Resident"]] = relationship(
        "Resident",
        foreign_keys=[reported_by_resident],
    )

    staff_reporter: Mapped[Optional["Staff"]] = relationship(
        "Staff",
        foreign_keys=[reported_by_staff],
    )

    assigned_staff: Mapped[Optional["Staff"]] = relationship(
        "Staff",
        foreign_keys=[assigned_to],
    )

    __table_args__ = (
        CheckConstraint(
            "(reported_by_resident IS NULL) <> (reported_by_staff IS NULL)",
            name="ck_report_single_reporter",
        ),
        CheckConstraint(sql_in("status", MAINTENANCE_STATUSES), name="ck_report_status"),
        CheckConstraint(sql_in("priority", MAINTENANCE_PRIORITIES), name="ck_report_priority"),
        Index("idx_report_facility", "facility_id"),
        Index("idx_report_status", "status"),
        Index("idx_report_priority", "priority"),
    )

    def __repr__(self) -> str:
        return f"<MaintenanceReport(title='{self.title}', status='{self.status}', priority='{self.priority}')>"
