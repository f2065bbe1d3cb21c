"""
Response builder utilities for transforming ORM rows to API payloads.

Every endpoint answers with the same envelope:

    {"success": bool, "message": str, "data": payload | null, "reason": str?}

Personal data columns are decrypted one field at a time. A field that
fails to decrypt becomes null and the rest of the payload is still
returned. Residents never receive other people's personal data or staff
employee IDs.
"""

from datetime import time
from typing import Any, Iterable, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from facility_reservations.models.bookings import Booking
from facility_reservations.models.facilities import (
    Facility,
    FacilityRating,
    StaffFacilityAssignment,
)
from facility_reservations.models.maintenance import MaintenanceReport
from facility_reservations.services.encryption import EncryptionService
from facility_reservations.services.results import Rejection

STAFF = "staff"
RESIDENT = "resident"

VALIDATION_ERROR = "validation error"


# =============================================================================
# Envelope
# =============================================================================


def build_envelope(
    success: bool,
    message: str,
    data: Any = None,
    reason: Optional[str] = None,
) -> dict[str, Any]:
    """Build the response envelope dictionary."""
    envelope = {
        "success": success,
        "message": message,
        "data": jsonable_encoder(data),
    }
    if reason is not None:
        envelope["reason"] = reason
    return envelope


def success_response(data: Any = None, message: str = "OK", status_code: int = 200) -> JSONResponse:
    """Wrap a payload in a successful envelope."""
    return JSONResponse(status_code=status_code, content=build_envelope(True, message, data))


def error_response(
    status_code: int,
    message: str,
    reason: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    """Build a failed envelope. details, when given, becomes the data field."""
    return JSONResponse(
        status_code=status_code,
        content=build_envelope(False, message, details or None, reason),
    )


def rejection_response(rejection: Rejection) -> JSONResponse:
    """Translate a service rejection into its HTTP envelope."""
    return error_response(
        status_code=rejection.status_code,
        message=rejection.message,
        reason=rejection.reason,
        details=rejection.details,
    )


# =============================================================================
# Helpers
# =============================================================================


def format_time(value: Optional[time]) -> Optional[str]:
    """Render a time of day as 'HH:MM'."""
    return value.strftime("%H:%M") if value is not None else None


def average_rating(ratings: Iterable[FacilityRating]) -> tuple[Optional[float], int]:
    """
    Mean rating rounded to 2 decimals, and the number of ratings.

    The mean is None when the facility has no ratings.
    """
    values = [r.rating for r in ratings]
    if not values:
        return None, 0
    return round(sum(values) / len(values), 2), len(values)


# =============================================================================
# Facilities
# =============================================================================


def assemble_facility(facility: Facility) -> dict[str, Any]:
    """Flatten a facility with its rating aggregate."""
    avg, count = average_rating(facility.ratings)
    return {
        "id": facility.id,
        "name": facility.name,
        "type": facility.type,
        "location": facility.location,
        "capacity": facility.capacity,
        "image_url": facility.image_url,
        "is_indoor": facility.is_indoor,
        "description": facility.description,
        "open_time": format_time(facility.open_time),
        "close_time": format_time(facility.close_time),
        "status": facility.status,
        "average_rating": avg,
        "rating_count": count,
    }


def assemble_rating(rating: FacilityRating) -> dict[str, Any]:
    return {
        "id": rating.id,
        "facility_id": rating.facility_id,
        "user_id": rating.user_id,
        "rating": rating.rating,
        "comment": rating.comment,
        "created_at": rating.created_at,
        "updated_at": rating.updated_at,
    }


def assemble_assignment(assignment: StaffFacilityAssignment, cipher: EncryptionService) -> dict[str, Any]:
    """Flatten a staff assignment with the staff member's decrypted name and email."""
    staff = assignment.staff
    facility = assignment.facility
    return {
        "id": assignment.id,
        "staff_id": assignment.staff_id,
        "facility_id": assignment.facility_id,
        "facility_name": facility.name if facility else None,
        "role": assignment.role,
        "assigned_date": assignment.assigned_date,
        "is_primary": assignment.is_primary,
        "notes": assignment.notes,
        "staff_name": cipher.safe_decrypt(staff.name, "staff.name") if staff else None,
        "staff_email": cipher.safe_decrypt(staff.email, "staff.email") if staff else None,
        "employee_id": staff.employee_id if staff else None,
        "position": staff.position if staff else None,
    }


# =============================================================================
# Bookings
# =============================================================================


def assemble_booking(booking: Booking, role: str, cipher: EncryptionService) -> dict[str, Any]:
    """
    Flatten a booking for the given role.

    Staff get the resident's contact details and the approver's name and
    employee ID. Residents (who only ever see their own bookings) get the
    facility details and the approval stamp without the approver's identity.

    Args:
        booking: Booking with facility, resident and approver loaded
        role: 'staff' or 'resident'
        cipher: Encryption service used to decrypt personal data

    Returns:
        Client payload dictionary
    """
    facility = booking.facility
    payload = {
        "id": booking.id,
        "facility_id": booking.facility_id,
        "facility_name": facility.name if facility else None,
        "facility_location": facility.location if facility else None,
        "resident_id": booking.resident_id,
        "date": booking.date,
        "start_time": format_time(booking.start_time),
        "end_time": format_time(booking.end_time),
        "status": booking.status,
        "purpose": booking.purpose,
        "attendees": booking.attendees,
        "approval_date": booking.approval_date,
        "created_at": booking.created_at,
    }

    if role != STAFF:
        return payload

    resident = booking.resident
    approver = booking.approver
    payload.update(
        {
            "resident_name": cipher.safe_decrypt(resident.name, "resident.name") if resident else None,
            "resident_email": cipher.safe_decrypt(resident.email, "resident.email") if resident else None,
            "approved_by": booking.approved_by,
            "approver_name": cipher.safe_decrypt(approver.name, "approver.name") if approver else None,
            "approver_employee_id": approver.employee_id if approver else None,
        }
    )
    return payload


# =============================================================================
# Maintenance
# =============================================================================


def assemble_maintenance_report(
    report: MaintenanceReport,
    role: str,
    cipher: EncryptionService,
) -> dict[str, Any]:
    """
    Flatten a maintenance report for the given role.

    Staff get the reporter's and the assigned staff member's names.
    Residents get the report and its progress only.
    """
    facility = report.facility
    payload = {
        "id": report.id,
        "facility_id": report.facility_id,
        "facility_name": facility.name if facility else None,
        "title": report.title,
        "description": report.description,
        "status": report.status,
        "priority": report.priority,
        "reporter_type": RESIDENT if report.reported_by_resident is not None else STAFF,
        "reported_date": report.reported_date,
        "scheduled_date": report.scheduled_date,
        "completion_date": report.completion_date,
        "feedback": report.feedback,
    }

    if role != STAFF:
        return payload

    if report.resident_reporter is not None:
        reporter_name = cipher.safe_decrypt(report.resident_reporter.name, "reporter.name")
    elif report.staff_reporter is not None:
        reporter_name = cipher.safe_decrypt(report.staff_reporter.name, "reporter.name")
    else:
        reporter_name = None

    assigned = report.assigned_staff
    payload.update(
        {
            "reported_by_resident": report.reported_by_resident,
            "reported_by_staff": report.reported_by_staff,
            "reporter_name": reporter_name,
            "assigned_to": report.assigned_to,
            "assigned_staff_name": cipher.safe_decrypt(assigned.name, "assigned_staff.name") if assigned else None,
        }
    )
    return payload
