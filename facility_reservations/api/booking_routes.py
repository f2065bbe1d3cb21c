"""
Booking API routes.

Residents create, view and cancel their own bookings. Staff list and
review bookings of the facilities they manage (admins see every facility).
"""

import datetime as dt
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from facility_reservations.api.dependencies import (
    Actor,
    get_cipher,
    get_current_actor,
    require_resident,
    require_staff,
)
from facility_reservations.api.models import (
    BookingStatus,
    CreateBookingRequest,
    UpdateBookingStatusRequest,
)
from facility_reservations.api.response_builder import (
    RESIDENT,
    STAFF,
    assemble_booking,
    rejection_response,
    success_response,
)
from facility_reservations.database import get_db
from facility_reservations.services import bookings as booking_service
from facility_reservations.services import transitions
from facility_reservations.services.encryption import EncryptionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.get("", summary="List bookings (staff)")
def list_bookings(
    status: Optional[BookingStatus] = Query(None, description="Filter by status"),
    facility_id: Optional[int] = Query(None, gt=0, description="Filter by facility"),
    date: Optional[dt.date] = Query(None, description="Filter by exact date (ISO 8601)"),
    include_past: bool = Query(False, description="Include bookings before today when no date is given"),
    actor: Actor = Depends(require_staff),
    db: Session = Depends(get_db),
    cipher: EncryptionService = Depends(get_cipher),
):
    """
    List bookings of the facilities the staff member manages.

    Without a date filter only upcoming bookings are returned. Staff with
    no facility assignments get an empty list.
    """
    bookings = booking_service.list_bookings(
        db,
        actor.staff,
        status=status,
        facility_id=facility_id,
        on_date=date,
        include_past=include_past,
    )
    return success_response(
        [assemble_booking(b, STAFF, cipher) for b in bookings],
        message=f"{len(bookings)} booking(s) found",
    )


@router.get("/my-bookings", summary="List my bookings (resident)")
def list_my_bookings(
    actor: Actor = Depends(require_resident),
    db: Session = Depends(get_db),
    cipher: EncryptionService = Depends(get_cipher),
):
    """List every booking owned by the calling resident."""
    bookings = booking_service.list_resident_bookings(db, actor.resident)
    return success_response(
        [assemble_booking(b, RESIDENT, cipher) for b in bookings],
        message=f"{len(bookings)} booking(s) found",
    )


@router.get("/{booking_id}", summary="Get booking")
def get_booking(
    booking_id: int = Path(..., gt=0),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    cipher: EncryptionService = Depends(get_cipher),
):
    """
    Get a single booking.

    Residents may only view their own bookings; staff only bookings of
    facilities they manage.
    """
    result = booking_service.get_booking(db, booking_id, resident=actor.resident, staff=actor.staff)
    if not result.ok:
        return rejection_response(result.rejection)
    return success_response(assemble_booking(result.value, actor.role, cipher), message="Booking found")


@router.post("", summary="Create booking (resident)", status_code=201)
def create_booking(
    request: CreateBookingRequest,
    actor: Actor = Depends(require_resident),
    db: Session = Depends(get_db),
    cipher: EncryptionService = Depends(get_cipher),
):
    """
    Request a facility slot.

    The booking is created 'pending'. It is refused when the facility is
    not open, the attendees exceed its capacity or the slot overlaps a
    pending or approved booking.
    """
    result = booking_service.create_booking(db, actor.resident, request.to_candidate())
    if not result.ok:
        return rejection_response(result.rejection)
    return success_response(
        assemble_booking(result.value, RESIDENT, cipher),
        message="Booking created successfully",
        status_code=201,
    )


@router.put("/{booking_id}/status", summary="Update booking status (staff)")
def update_booking_status(
    request: UpdateBookingStatusRequest,
    booking_id: int = Path(..., gt=0),
    actor: Actor = Depends(require_staff),
    db: Session = Depends(get_db),
    cipher: EncryptionService = Depends(get_cipher),
):
    """Approve, reject or otherwise change the status of a booking."""
    result = transitions.update_booking_status(db, booking_id, request.status, actor.staff)
    if not result.ok:
        return rejection_response(result.rejection)
    return success_response(
        assemble_booking(result.value.entity, STAFF, cipher),
        message=f"Booking {request.status}",
    )


@router.put("/{booking_id}/cancel", summary="Cancel booking (resident)")
def cancel_booking(
    booking_id: int = Path(..., gt=0),
    actor: Actor = Depends(require_resident),
    db: Session = Depends(get_db),
    cipher: EncryptionService = Depends(get_cipher),
):
    """Cancel one of the caller's bookings. A booking can only be cancelled once."""
    result = transitions.cancel_booking(db, booking_id, actor.resident)
    if not result.ok:
        return rejection_response(result.rejection)
    return success_response(
        assemble_booking(result.value.entity, RESIDENT, cipher),
        message="Booking cancelled successfully",
    )
