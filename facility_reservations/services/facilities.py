"""
Facility service.

Provides functions for:
- Facility listing and CRUD
- Staff-to-facility assignments
- Facility ratings
"""

import logging
from datetime import date
from typing import Any, Optional, Sequence

from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from facility_reservations.models.facilities import (
    Facility,
    FacilityRating,
    StaffFacilityAssignment,
)
from facility_reservations.models.users import Staff, User
from facility_reservations.services import results
from facility_reservations.services.results import ServiceResult
from facility_reservations.services.visibility import (
    can_access_facility,
    is_empty_scope,
    restrict_to_scope,
    scoped_facility_ids,
)

logger = logging.getLogger(__name__)

# Columns a staff member may set through create/update
EDITABLE_FIELDS = (
    "name",
    "type",
    "location",
    "capacity",
    "image_url",
    "is_indoor",
    "description",
    "open_time",
    "close_time",
    "status",
)


# =============================================================================
# Facility Queries
# =============================================================================


def list_facilities(
    session: Session,
    facility_type: Optional[str] = None,
    status: Optional[str] = None,
    is_indoor: Optional[bool] = None,
) -> Sequence[Facility]:
    """
    List facilities with their ratings loaded.

    Args:
        session: Database session
        facility_type: Filter by type
        status: Filter by status
        is_indoor: Filter by indoor/outdoor

    Returns:
        Facilities ordered by name
    """
    conditions = []
    if facility_type:
        conditions.append(Facility.type == facility_type)
    if status:
        conditions.append(Facility.status == status)
    if is_indoor is not None:
        conditions.append(Facility.is_indoor.is_(is_indoor))

    stmt = select(Facility).options(selectinload(Facility.ratings)).order_by(Facility.name)
    if conditions:
        stmt = stmt.where(and_(*conditions))

    return session.scalars(stmt).all()


def get_facility(session: Session, facility_id: int) -> ServiceResult[Facility]:
    """Get a facility with its ratings loaded."""
    stmt = select(Facility).where(Facility.id == facility_id).options(selectinload(Facility.ratings))
    facility = session.scalar(stmt)
    if facility is None:
        return ServiceResult.not_found(results.FACILITY_NOT_FOUND, "Facility not found")
    return ServiceResult.success(facility)


def list_assigned_facilities(session: Session, staff: Staff) -> Sequence[Facility]:
    """
    List the facilities a staff member manages.

    Admins get every facility. Staff without assignments get an empty list.
    """
    scope = scoped_facility_ids(session, staff)
    if is_empty_scope(scope):
        return []

    stmt = restrict_to_scope(select(Facility), Facility.id, scope)
    stmt = stmt.options(selectinload(Facility.ratings)).order_by(Facility.name)
    return session.scalars(stmt).all()


# =============================================================================
# Facility CRUD
# =============================================================================


def create_facility(session: Session, staff: Staff, fields: dict[str, Any]) -> Facility:
    """
    Create a facility.

    Args:
        session: Database session
        staff: Staff member creating the facility
        fields: Column values (see EDITABLE_FIELDS)

    Returns:
        The persisted facility
    """
    values = {name: fields[name] for name in EDITABLE_FIELDS if name in fields}
    values.setdefault("status", "open")

    facility = Facility(created_by=staff.id, **values)
    session.add(facility)
    session.commit()
    session.refresh(facility)

    logger.info(f"Facility {facility.id} ({facility.name}) created by staff {staff.id}")
    return facility


def update_facility(
    session: Session,
    facility_id: int,
    fields: dict[str, Any],
    staff: Staff,
) -> ServiceResult[Facility]:
    """
    Update a facility the staff member manages.

    Args:
        session: Database session
        facility_id: Facility to update
        fields: Column values to change (unknown keys are ignored)
        staff: Staff member making the change

    Returns:
        The updated facility, or a not_found/forbidden rejection
    """
    facility = session.get(Facility, facility_id)
    if facility is None:
        return ServiceResult.not_found(results.FACILITY_NOT_FOUND, "Facility not found")

    scope = scoped_facility_ids(session, staff)
    if not can_access_facility(scope, facility_id):
        return ServiceResult.forbidden(
            results.FACILITY_NOT_ASSIGNED,
            "You are not assigned to this facility",
        )

    for name in EDITABLE_FIELDS:
        if name in fields:
            setattr(facility, name, fields[name])

    session.commit()
    return get_facility(session, facility_id)


def delete_facility(session: Session, facility_id: int) -> ServiceResult[None]:
    """Delete a facility together with its bookings, reports, ratings and assignments."""
    facility = session.get(Facility, facility_id)
    if facility is None:
        return ServiceResult.not_found(results.FACILITY_NOT_FOUND, "Facility not found")

    session.delete(facility)
    session.commit()

    logger.info(f"Facility {facility_id} deleted")
    return ServiceResult.success()


# =============================================================================
# Staff Assignments
# =============================================================================


def assign_staff(
    session: Session,
    facility_id: int,
    staff_id: int,
    role: str,
    is_primary: bool = False,
    notes: Optional[str] = None,
    assigned_date: Optional[date] = None,
) -> ServiceResult[StaffFacilityAssignment]:
    """
    Assign a staff member to a facility.

    Args:
        session: Database session
        facility_id: Facility to assign
        staff_id: Staff member to assign
        role: Role at the facility
        is_primary: Whether this is the staff member's primary facility
        notes: Free-text notes
        assigned_date: Start of the assignment (defaults to today)

    Returns:
        The new assignment, or a not_found / "already assigned" rejection
    """
    if session.get(Facility, facility_id) is None:
        return ServiceResult.not_found(results.FACILITY_NOT_FOUND, "Facility not found")

    if session.get(Staff, staff_id) is None:
        return ServiceResult.not_found(results.STAFF_NOT_FOUND, "Staff not found")

    existing = session.scalar(
        select(StaffFacilityAssignment).where(
            StaffFacilityAssignment.staff_id == staff_id,
            StaffFacilityAssignment.facility_id == facility_id,
        )
    )
    if existing is not None:
        return ServiceResult.conflict(
            results.ALREADY_ASSIGNED,
            "Staff is already assigned to this facility",
            assignment_id=existing.id,
        )

    assignment = StaffFacilityAssignment(
        staff_id=staff_id,
        facility_id=facility_id,
        role=role,
        is_primary=is_primary,
        notes=notes,
        assigned_date=assigned_date or date.today(),
    )
    session.add(assignment)

    try:
        session.commit()
    except IntegrityError:
        # Concurrent request created the same assignment
        session.rollback()
        return ServiceResult.conflict(
            results.ALREADY_ASSIGNED,
            "Staff is already assigned to this facility",
        )

    session.refresh(assignment)
    logger.info(f"Staff {staff_id} assigned to facility {facility_id} as {role}")
    return ServiceResult.success(assignment)


def unassign_staff(session: Session, assignment_id: int) -> ServiceResult[None]:
    """Remove a staff assignment."""
    assignment = session.get(StaffFacilityAssignment, assignment_id)
    if assignment is None:
        return ServiceResult.not_found(results.ASSIGNMENT_NOT_FOUND, "Assignment not found")

    staff_id, facility_id = assignment.staff_id, assignment.facility_id
    session.delete(assignment)
    session.commit()

    logger.info(f"Staff {staff_id} unassigned from facility {facility_id}")
    return ServiceResult.success()


def get_assigned_staff(
    session: Session,
    facility_id: int,
) -> ServiceResult[Sequence[StaffFacilityAssignment]]:
    """Get the staff assignments of a facility, primary assignments first."""
    if session.get(Facility, facility_id) is None:
        return ServiceResult.not_found(results.FACILITY_NOT_FOUND, "Facility not found")

    stmt = (
        select(StaffFacilityAssignment)
        .where(StaffFacilityAssignment.facility_id == facility_id)
        .options(joinedload(StaffFacilityAssignment.staff), joinedload(StaffFacilityAssignment.facility))
        .order_by(StaffFacilityAssignment.is_primary.desc(), StaffFacilityAssignment.id)
    )
    return ServiceResult.success(session.scalars(stmt).all())


def list_staff_assignments(session: Session, staff_id: int) -> Sequence[StaffFacilityAssignment]:
    """Get every assignment held by a staff member (empty when none)."""
    stmt = (
        select(StaffFacilityAssignment)
        .where(StaffFacilityAssignment.staff_id == staff_id)
        .options(joinedload(StaffFacilityAssignment.facility), joinedload(StaffFacilityAssignment.staff))
        .order_by(StaffFacilityAssignment.is_primary.desc(), StaffFacilityAssignment.id)
    )
    return session.scalars(stmt).all()


# =============================================================================
# Ratings
# =============================================================================


def rate_facility(
    session: Session,
    facility_id: int,
    user: User,
    rating: float,
    comment: Optional[str] = None,
) -> ServiceResult[FacilityRating]:
    """
    Save a user's rating of a facility.

    If the user already rated the facility, the rating is replaced.

    Args:
        session: Database session
        facility_id: Facility being rated
        user: User submitting the rating
        rating: Value between 1.0 and 5.0
        comment: Optional comment

    Returns:
        The saved rating, or a not_found rejection
    """
    if session.get(Facility, facility_id) is None:
        return ServiceResult.not_found(results.FACILITY_NOT_FOUND, "Facility not found")

    existing = session.scalar(
        select(FacilityRating).where(
            FacilityRating.facility_id == facility_id,
            FacilityRating.user_id == user.id,
        )
    )

    if existing:
        existing.rating = rating
        existing.comment = comment
        session.commit()
        session.refresh(existing)
        logger.info(f"Updated rating of facility {facility_id} by user {user.id}")
        return ServiceResult.success(existing)

    facility_rating = FacilityRating(
        facility_id=facility_id,
        user_id=user.id,
        rating=rating,
        comment=comment,
    )
    session.add(facility_rating)
    session.commit()
    session.refresh(facility_rating)

    logger.info(f"Created rating of facility {facility_id} by user {user.id}")
    return ServiceResult.success(facility_rating)
