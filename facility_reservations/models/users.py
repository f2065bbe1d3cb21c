"""
User, Resident and Staff models.

Entities:
- User: Login identity, either a resident or a staff member
- Resident: Member of the estate who books facilities
- Staff: Employee who manages facilities, bookings and maintenance

Name, email and address columns hold ciphertext produced by
EncryptionService; they are only decrypted during response assembly.
"""

from datetime import date, datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from facility_reservations.models.base import (
    BaseModel,
    MEMBERSHIP_TYPES,
    USER_STATUSES,
    USER_TYPES,
    sql_in,
)

# Avoid circular imports for type hints
if TYPE_CHECKING:
    from facility_reservations.models.facilities import StaffFacilityAssignment


class User(BaseModel):
    """
    Login identity shared by residents and staff.

    The user_type decides which profile row (Resident or Staff) belongs
    to the user. Suspended or inactive users are refused by the API.
    """

    __tablename__ = "users"

    user_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="User type: 'resident' or 'staff'"
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="active",
        doc="Account status: 'active', 'inactive', 'suspended'"
    )

    google_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
        doc="Google account subject (set by the external OAuth flow)"
    )

    last_login: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Last successful login (UTC)"
    )

    # Relationships
    resident: Mapped[Optional["Resident"]] = relationship(
        "Resident",
        back_populates="user",
        uselist=False,
    )

    staff: Mapped[Optional["Staff"]] = relationship(
        "Staff",
        back_populates="user",
        uselist=False,
    )

    __table_args__ = (
        CheckConstraint(sql_in("user_type", USER_TYPES), name="ck_user_type"),
        CheckConstraint(sql_in("status", USER_STATUSES), name="ck_user_status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, type='{self.user_type}', status='{self.status}')>"


class Resident(BaseModel):
    """Resident profile. Residents create bookings and report maintenance issues."""

    __tablename__ = "residents"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        unique=True,
        doc="Owning user account"
    )

    name: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Encrypted full name"
    )

    email: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Encrypted email address"
    )

    encrypted_address: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Encrypted physical address"
    )

    membership_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="standard",
        doc="Membership: 'standard', 'premium', 'family'"
    )

    membership_start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    membership_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="resident")

    __table_args__ = (
        CheckConstraint(sql_in("membership_type", MEMBERSHIP_TYPES), name="ck_resident_membership"),
    )


class Staff(BaseModel):
    """
    Staff profile.

    Admins (is_admin=True) see every facility. Other staff only act on
    facilities listed in their StaffFacilityAssignment rows.
    """

    __tablename__ = "staff"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        unique=True,
        doc="Owning user account"
    )

    employee_id: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        doc="Unique employee identifier"
    )

    position: Mapped[str] = mapped_column(String(100), nullable=False)

    department: Mapped[str] = mapped_column(String(100), nullable=False)

    is_admin: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="Admin staff bypass facility assignment scoping"
    )

    name: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Encrypted full name"
    )

    email: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Encrypted email address"
    )

    user: Mapped["User"] = relationship("User", back_populates="staff")

    assignments: Mapped[list["StaffFacilityAssignment"]] = relationship(
        "StaffFacilityAssignment",
        back_populates="staff",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_staff_admin", "is_admin"),
    )

    def __repr__(self) -> str:
        return f"<Staff(id={self.id}, employee_id='{self.employee_id}', admin={self.is_admin})>"
