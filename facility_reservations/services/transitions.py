"""
Status transitions for bookings and maintenance reports.

The plan_* functions are pure: given the current row and the requested
change they either reject it or return the fields to write. The update_*
and cancel_* functions load rows, check visibility, apply a plan and commit.

Transition rules:
- Bookings: staff may move a booking between pending, approved, rejected
  and cancelled. Approving or rejecting stamps approved_by and
  approval_date; returning to pending clears both. Cancelled is terminal.
  Re-activating a rejected booking re-runs the time conflict check.
- Resident cancellation: only the owner, only once.
- Maintenance reports: any status may follow any other. Entering
  completed stamps completion_date, leaving completed clears it.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy.orm import Session

from facility_reservations.models.base import (
    ACTIVE_BOOKING_STATUSES,
    BOOKING_STATUSES,
    MAINTENANCE_STATUSES,
)
from facility_reservations.models.bookings import Booking
from facility_reservations.models.maintenance import MaintenanceReport
from facility_reservations.models.users import Resident, Staff
from facility_reservations.services import results
from facility_reservations.services.bookings import find_conflicting_booking, lock_facility
from facility_reservations.services.locks import facility_write_lock
from facility_reservations.services.results import RejectionKind, ServiceResult
from facility_reservations.services.visibility import can_access_facility, scoped_facility_ids

logger = logging.getLogger(__name__)

E = TypeVar("E")

REVIEW_STATUSES = ("approved", "rejected")


@dataclass
class StatusChange(Generic[E]):
    """An applied transition: the updated row and the fields written."""

    entity: E
    changes: dict[str, Any] = field(default_factory=dict)


@dataclass
class MaintenanceUpdate:
    """Fields a staff member may send when updating a maintenance report."""

    status: str
    assigned_to: Optional[int] = None
    scheduled_date: Optional[date] = None
    feedback: Optional[str] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _apply(entity, changes: dict[str, Any]) -> None:
    for name, value in changes.items():
        setattr(entity, name, value)


# =============================================================================
# Bookings
# =============================================================================


def plan_booking_status_change(
    booking: Booking,
    requested_status: str,
    staff: Staff,
    now: Optional[datetime] = None,
) -> ServiceResult[dict[str, Any]]:
    """
    Decide the fields written when staff set a booking's status.

    Args:
        booking: Booking being updated
        requested_status: Target status
        staff: Staff member making the change
        now: Timestamp for approval_date (defaults to current UTC time)

    Returns:
        Fields to write (empty when the status is unchanged), or a rejection
    """
    if requested_status not in BOOKING_STATUSES:
        return ServiceResult.rejected(
            RejectionKind.INVALID,
            results.INVALID_STATUS,
            f"Invalid booking status: {requested_status}",
            allowed=list(BOOKING_STATUSES),
        )

    if booking.status == "cancelled":
        return ServiceResult.conflict(
            results.ALREADY_CANCELLED,
            "Booking is already cancelled",
        )

    if booking.status == requested_status:
        return ServiceResult.success({})

    changes: dict[str, Any] = {"status": requested_status}
    if requested_status in REVIEW_STATUSES:
        changes["approved_by"] = staff.id
        changes["approval_date"] = now or _utcnow()
    elif requested_status == "pending":
        # Pending bookings carry no review stamp
        changes["approved_by"] = None
        changes["approval_date"] = None

    return ServiceResult.success(changes)


def update_booking_status(
    session: Session,
    booking_id: int,
    requested_status: str,
    staff: Staff,
) -> ServiceResult[StatusChange[Booking]]:
    """
    Apply a staff status change to a booking.

    Args:
        session: Database session
        booking_id: Booking to update
        requested_status: Target status
        staff: Staff member making the change

    Returns:
        The applied change, or a not_found/forbidden/conflict rejection
    """
    booking = session.get(Booking, booking_id)
    if booking is None:
        return ServiceResult.not_found(results.BOOKING_NOT_FOUND, "Booking not found")

    scope = scoped_facility_ids(session, staff)
    if not can_access_facility(scope, booking.facility_id):
        return ServiceResult.forbidden(
            results.FACILITY_NOT_ASSIGNED,
            "You are not assigned to this booking's facility",
        )

    plan = plan_booking_status_change(booking, requested_status, staff)
    if not plan.ok:
        logger.info(f"Status change of booking {booking_id} to {requested_status!r} rejected: {plan.reason}")
        return ServiceResult(rejection=plan.rejection)

    changes = plan.value
    if not changes:
        return ServiceResult.success(StatusChange(booking, changes))

    reactivating = not booking.is_active and requested_status in ACTIVE_BOOKING_STATUSES

    if not reactivating:
        _apply(booking, changes)
        session.commit()
        session.refresh(booking)
        logger.info(f"Booking {booking_id} set to {requested_status} by staff {staff.id}")
        return ServiceResult.success(StatusChange(booking, changes))

    # A rejected booking may only come back if its slot is still free
    facility_id = booking.facility_id
    with facility_write_lock(facility_id):
        lock_facility(session, facility_id)
        conflicting = find_conflicting_booking(
            session,
            facility_id,
            booking.date,
            booking.start_time,
            booking.end_time,
            exclude_booking_id=booking.id,
        )
        if conflicting is not None:
            conflicting_id = conflicting.id
            session.rollback()
            return ServiceResult.conflict(
                results.TIME_CONFLICT,
                "The booking's time slot is now taken by another booking",
                conflicting_booking_id=conflicting_id,
            )
        _apply(booking, changes)
        session.commit()

    session.refresh(booking)
    logger.info(f"Booking {booking_id} re-activated as {requested_status} by staff {staff.id}")
    return ServiceResult.success(StatusChange(booking, changes))


def cancel_booking(
    session: Session,
    booking_id: int,
    resident: Resident,
) -> ServiceResult[StatusChange[Booking]]:
    """
    Cancel a booking on behalf of its owner.

    Cancelling twice is rejected with "already cancelled" and writes nothing.

    Args:
        session: Database session
        booking_id: Booking to cancel
        resident: Resident requesting the cancellation

    Returns:
        The applied change, or a rejection
    """
    booking = session.get(Booking, booking_id)
    if booking is None:
        return ServiceResult.not_found(results.BOOKING_NOT_FOUND, "Booking not found")

    if booking.resident_id != resident.id:
        return ServiceResult.forbidden(
            results.NOT_BOOKING_OWNER,
            "You do not have permission to cancel this booking",
        )

    if booking.status == "cancelled":
        return ServiceResult.conflict(results.ALREADY_CANCELLED, "Booking is already cancelled")

    changes = {"status": "cancelled"}
    _apply(booking, changes)
    session.commit()
    session.refresh(booking)

    logger.info(f"Booking {booking_id} cancelled by resident {resident.id}")
    return ServiceResult.success(StatusChange(booking, changes))


# =============================================================================
# Maintenance reports
# =============================================================================


def plan_maintenance_update(
    report: MaintenanceReport,
    update: MaintenanceUpdate,
    now: Optional[datetime] = None,
) -> ServiceResult[dict[str, Any]]:
    """
    Decide the fields written for a maintenance status update.

    assigned_to, scheduled_date and feedback are only written when given.

    Args:
        report: Report being updated
        update: Requested change
        now: Timestamp for completion_date (defaults to current UTC time)

    Returns:
        Fields to write, or a rejection
    """
    if update.status not in MAINTENANCE_STATUSES:
        return ServiceResult.rejected(
            RejectionKind.INVALID,
            results.INVALID_STATUS,
            f"Invalid maintenance status: {update.status}",
            allowed=list(MAINTENANCE_STATUSES),
        )

    changes: dict[str, Any] = {"status": update.status}

    if update.assigned_to is not None:
        changes["assigned_to"] = update.assigned_to
    if update.scheduled_date is not None:
        changes["scheduled_date"] = update.scheduled_date
    if update.feedback:
        changes["feedback"] = update.feedback

    if update.status == "completed":
        if report.status != "completed" or report.completion_date is None:
            changes["completion_date"] = now or _utcnow()
    elif report.completion_date is not None:
        changes["completion_date"] = None

    return ServiceResult.success(changes)


def update_maintenance_status(
    session: Session,
    report_id: int,
    update: MaintenanceUpdate,
    staff: Staff,
) -> ServiceResult[StatusChange[MaintenanceReport]]:
    """
    Apply a staff update to a maintenance report.

    Args:
        session: Database session
        report_id: Report to update
        update: Requested change
        staff: Staff member making the change

    Returns:
        The applied change, or a not_found/forbidden rejection
    """
    report = session.get(MaintenanceReport, report_id)
    if report is None:
        return ServiceResult.not_found(results.REPORT_NOT_FOUND, "Maintenance report not found")

    scope = scoped_facility_ids(session, staff)
    if not can_access_facility(scope, report.facility_id):
        return ServiceResult.forbidden(
            results.FACILITY_NOT_ASSIGNED,
            "You are not assigned to this report's facility",
        )

    if update.assigned_to is not None and session.get(Staff, update.assigned_to) is None:
        return ServiceResult.not_found(
            results.STAFF_NOT_FOUND,
            "Assigned staff not found",
            assigned_to=update.assigned_to,
        )

    plan = plan_maintenance_update(report, update)
    if not plan.ok:
        return ServiceResult(rejection=plan.rejection)

    _apply(report, plan.value)
    session.commit()
    session.refresh(report)

    logger.info(f"Maintenance report {report_id} set to {update.status} by staff {staff.id}")
    return ServiceResult.success(StatusChange(report, plan.value))
