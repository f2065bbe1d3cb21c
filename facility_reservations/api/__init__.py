"""
Facility Reservations API module.

Provides FastAPI HTTP endpoints for bookings, maintenance reports and facilities.
"""

from facility_reservations.api.main import app, run_server

__all__ = ["app", "run_server"]
