"""
SQLAlchemy models for Facility Reservations.

This module exports all database models for easy importing and
ensures Alembic can discover them for migrations.
"""

# Import base classes
from facility_reservations.models.base import Base, BaseModel

# Import all models (must be imported for Alembic autogenerate)
from facility_reservations.models.users import User, Resident, Staff
from facility_reservations.models.facilities import (
    Facility,
    FacilityRating,
    StaffFacilityAssignment,
)
from facility_reservations.models.bookings import Booking
from facility_reservations.models.maintenance import MaintenanceReport

# Export all for easy importing
__all__ = [
    # Base classes
    "Base",
    "BaseModel",
    # User models
    "User",
    "Resident",
    "Staff",
    # Facility models
    "Facility",
    "FacilityRating",
    "StaffFacilityAssignment",
    # Booking model
    "Booking",
    # Maintenance model
    "MaintenanceReport",
]
