"""
Base model definitions for SQLAlchemy.

Provides:
- Base declarative class shared by every table
- BaseModel with an integer primary key and audit timestamps
- Status value tuples used by CHECK constraints and request models
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Allowed status values (kept next to the models so CHECK constraints and
# request validation agree)
FACILITY_STATUSES = ("open", "closed", "maintenance")
BOOKING_STATUSES = ("pending", "approved", "rejected", "cancelled")
ACTIVE_BOOKING_STATUSES = ("pending", "approved")
MAINTENANCE_STATUSES = ("reported", "in-progress", "scheduled", "completed")
MAINTENANCE_PRIORITIES = ("low", "medium", "high", "critical")
USER_TYPES = ("resident", "staff")
USER_STATUSES = ("active", "inactive", "suspended")
MEMBERSHIP_TYPES = ("standard", "premium", "family")


def sql_in(column: str, values: tuple[str, ...]) -> str:
    """Render a CHECK constraint expression restricting a column to values."""
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({quoted})"


class Base(DeclarativeBase):
    """Declarative base for all models."""


class BaseModel(Base):
    """
    Base model with common fields for all entities.

    Provides:
    - id: integer primary key
    - created_at: Timestamp of record creation (UTC)
    - updated_at: Timestamp of last update (UTC, auto-updates)

    All subclasses automatically inherit these fields.
    """

    __abstract__ = True

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Unique identifier"
    )

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Timestamp of record creation (UTC)"
    )

    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
        doc="Timestamp of last update (UTC)"
    )

    def to_dict(self) -> dict:
        """
        Convert model instance to dictionary.

        Returns:
            Dictionary with all column values (excludes relationships)
        """
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
        }

    def __repr__(self) -> str:
        """String representation showing class name and ID."""
        return f"<{self.__class__.__name__}(id={self.id})>"
