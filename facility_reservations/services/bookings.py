"""
Booking service.

Provides functions for:
- Validating a proposed booking (facility status, capacity, time conflicts)
- Creating bookings atomically with respect to concurrent requests
- Listing and fetching bookings with role-based visibility
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from facility_reservations.config import get_settings
from facility_reservations.models.base import ACTIVE_BOOKING_STATUSES
from facility_reservations.models.bookings import Booking
from facility_reservations.models.facilities import Facility
from facility_reservations.models.users import Resident, Staff
from facility_reservations.services import results
from facility_reservations.services.locks import facility_write_lock
from facility_reservations.services.results import ServiceResult
from facility_reservations.services.visibility import (
    can_access_facility,
    is_empty_scope,
    restrict_to_scope,
    scoped_facility_ids,
)

logger = logging.getLogger(__name__)

# Name of the PostgreSQL exclusion constraint created by Alembic
OVERLAP_CONSTRAINT = "no_booking_overlap"


@dataclass
class BookingCandidate:
    """A proposed booking slot, validated before anything is persisted."""

    facility_id: int
    date: date
    start_time: time
    end_time: time
    attendees: int
    purpose: str = ""

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        if self.attendees < 1:
            raise ValueError("attendees must be at least 1")


def today_local() -> date:
    """Today's date in the configured timezone."""
    tz_name = get_settings().timezone
    try:
        return datetime.now(ZoneInfo(tz_name)).date()
    except ZoneInfoNotFoundError:
        logger.warning(f"Unknown timezone {tz_name!r}, using server local date")
        return date.today()


def find_conflicting_booking(
    session: Session,
    facility_id: int,
    on_date: date,
    start_time: time,
    end_time: time,
    exclude_booking_id: Optional[int] = None,
) -> Optional[Booking]:
    """
    Find an active booking overlapping a slot.

    Uses half-open intervals: a booking ending exactly when the slot
    starts (or starting exactly when it ends) is not a conflict.
    Rejected and cancelled bookings never conflict.

    Args:
        session: Database session
        facility_id: Facility to check
        on_date: Booking date
        start_time: Proposed start
        end_time: Proposed end
        exclude_booking_id: Booking to ignore (for re-activation of an existing booking)

    Returns:
        The earliest overlapping booking, or None
    """
    conditions = [
        Booking.facility_id == facility_id,
        Booking.date == on_date,
        Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        # Overlap condition: existing starts before we end AND ends after we start
        Booking.start_time < end_time,
        Booking.end_time > start_time,
    ]

    if exclude_booking_id is not None:
        conditions.append(Booking.id != exclude_booking_id)

    stmt = (
        select(Booking)
        .where(and_(*conditions))
        .order_by(Booking.start_time)
        .limit(1)
    )

    return session.scalar(stmt)


def validate_booking(
    session: Session,
    facility: Optional[Facility],
    candidate: BookingCandidate,
) -> ServiceResult[None]:
    """
    Decide whether a proposed booking is admissible.

    Checks run in order and stop at the first failure:
    1. Facility exists
    2. Facility is open
    3. Attendees fit the facility capacity
    4. No active booking overlaps the slot

    Args:
        session: Database session
        facility: Facility being booked (None if the lookup found nothing)
        candidate: Proposed slot

    Returns:
        Successful result, or a rejection with a stable reason
    """
    if facility is None:
        return ServiceResult.not_found(
            results.FACILITY_NOT_FOUND,
            "Facility not found",
            facility_id=candidate.facility_id,
        )

    if not facility.is_open:
        return ServiceResult.conflict(
            results.FACILITY_NOT_OPEN,
            f"Facility is currently {facility.status}",
            current_status=facility.status,
        )

    if candidate.attendees > facility.capacity:
        return ServiceResult.conflict(
            results.CAPACITY_EXCEEDED,
            f"Number of attendees exceeds facility capacity of {facility.capacity}",
            capacity=facility.capacity,
        )

    conflicting = find_conflicting_booking(
        session,
        facility.id,
        candidate.date,
        candidate.start_time,
        candidate.end_time,
    )
    if conflicting is not None:
        return ServiceResult.conflict(
            results.TIME_CONFLICT,
            "The selected time slot conflicts with an existing booking",
            conflicting_booking_id=conflicting.id,
        )

    return ServiceResult.success()


def lock_facility(session: Session, facility_id: int) -> Optional[Facility]:
    """
    Load a facility with a row lock held until the transaction ends.

    SQLite has no row locks; the in-process facility_write_lock covers it.
    """
    stmt = select(Facility).where(Facility.id == facility_id).with_for_update()
    return session.scalar(stmt)


def is_overlap_violation(error: IntegrityError) -> bool:
    """Whether an IntegrityError came from the booking overlap constraint."""
    return OVERLAP_CONSTRAINT in str(error.orig)


def create_booking(
    session: Session,
    resident: Resident,
    candidate: BookingCandidate,
) -> ServiceResult[Booking]:
    """
    Validate and persist a new pending booking.

    The conflict check and the insert run under the facility write lock
    and inside one transaction holding the facility row lock, so two
    overlapping requests can never both be stored. The transaction is
    committed before the lock is released.

    Args:
        session: Database session
        resident: Resident making the booking
        candidate: Proposed slot

    Returns:
        The persisted booking, or a rejection (nothing is written)
    """
    resident_id = resident.id

    with facility_write_lock(candidate.facility_id):
        facility = lock_facility(session, candidate.facility_id)
        verdict = validate_booking(session, facility, candidate)
        if not verdict.ok:
            session.rollback()
            logger.info(
                f"Booking rejected for resident {resident_id} on facility "
                f"{candidate.facility_id}: {verdict.reason}"
            )
            return ServiceResult(rejection=verdict.rejection)

        booking = Booking(
            facility_id=candidate.facility_id,
            resident_id=resident_id,
            date=candidate.date,
            start_time=candidate.start_time,
            end_time=candidate.end_time,
            purpose=candidate.purpose,
            attendees=candidate.attendees,
            status="pending",
        )
        session.add(booking)

        try:
            session.commit()
        except IntegrityError as e:
            session.rollback()
            if is_overlap_violation(e):
                logger.info(f"Overlap constraint rejected booking on facility {candidate.facility_id}")
                return ServiceResult.conflict(
                    results.TIME_CONFLICT,
                    "The selected time slot conflicts with an existing booking",
                )
            raise

    session.refresh(booking)
    logger.info(f"Created booking {booking.id} for resident {resident_id} on facility {booking.facility_id}")
    return ServiceResult.success(booking)


def _with_associations(stmt):
    return stmt.options(
        joinedload(Booking.facility),
        joinedload(Booking.resident),
        joinedload(Booking.approver),
    )


def list_bookings(
    session: Session,
    staff: Staff,
    status: Optional[str] = None,
    facility_id: Optional[int] = None,
    on_date: Optional[date] = None,
    include_past: bool = False,
    today: Optional[date] = None,
) -> Sequence[Booking]:
    """
    List bookings visible to a staff member.

    Without a date filter only upcoming bookings (date >= today) are
    returned unless include_past is set.

    Args:
        session: Database session
        staff: Staff member making the request
        status: Filter by booking status
        facility_id: Filter by facility
        on_date: Filter by exact date
        include_past: Include bookings before today when no date is given
        today: Override today's date (defaults to the configured timezone)

    Returns:
        Bookings ordered by date (newest first) then start time; empty when
        the staff member has no assigned facilities
    """
    scope = scoped_facility_ids(session, staff)
    if is_empty_scope(scope):
        return []

    stmt = select(Booking)
    stmt = restrict_to_scope(stmt, Booking.facility_id, scope)

    if status:
        stmt = stmt.where(Booking.status == status)
    if facility_id is not None:
        stmt = stmt.where(Booking.facility_id == facility_id)
    if on_date is not None:
        stmt = stmt.where(Booking.date == on_date)
    elif not include_past:
        stmt = stmt.where(Booking.date >= (today or today_local()))

    stmt = _with_associations(stmt).order_by(Booking.date.desc(), Booking.start_time.asc())

    return session.scalars(stmt).unique().all()


def list_resident_bookings(session: Session, resident: Resident) -> Sequence[Booking]:
    """Get all bookings owned by a resident, newest first."""
    stmt = (
        select(Booking)
        .where(Booking.resident_id == resident.id)
        .options(joinedload(Booking.facility), joinedload(Booking.approver))
        .order_by(Booking.date.desc(), Booking.start_time.asc())
    )
    return session.scalars(stmt).unique().all()


def get_booking(
    session: Session,
    booking_id: int,
    resident: Optional[Resident] = None,
    staff: Optional[Staff] = None,
) -> ServiceResult[Booking]:
    """
    Fetch a booking the caller is allowed to see.

    Residents may only see their own bookings. Non-admin staff may only
    see bookings of facilities they are assigned to.

    Args:
        session: Database session
        booking_id: Booking ID
        resident: Requesting resident (if the caller is a resident)
        staff: Requesting staff member (if the caller is staff)

    Returns:
        The booking, or a not_found/forbidden rejection
    """
    stmt = _with_associations(select(Booking).where(Booking.id == booking_id))
    booking = session.scalar(stmt)

    if booking is None:
        return ServiceResult.not_found(results.BOOKING_NOT_FOUND, "Booking not found")

    if staff is not None:
        scope = scoped_facility_ids(session, staff)
        if not can_access_facility(scope, booking.facility_id):
            return ServiceResult.forbidden(
                results.FACILITY_NOT_ASSIGNED,
                "You are not assigned to this booking's facility",
            )
    elif resident is None or booking.resident_id != resident.id:
        return ServiceResult.forbidden(
            results.NOT_BOOKING_OWNER,
            "You do not have permission to view this booking",
        )

    return ServiceResult.success(booking)
