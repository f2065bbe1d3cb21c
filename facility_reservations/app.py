"""
ASGI entry point for Facility Reservations.

Re-exports the FastAPI app from facility_reservations/api/main.py, e.g.
`uvicorn facility_reservations.app:app`.
"""

from facility_reservations.api.main import app

__all__ = ["app"]
