"""
Facility visibility for staff members.

Admins see every facility. Other staff only see facilities they are
assigned to. The assignment set is read from the database on every call
since assignments can change between requests.

Booking, maintenance and facility services all scope their queries
through this module.
"""

import logging
from typing import Union

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from facility_reservations.models.facilities import StaffFacilityAssignment
from facility_reservations.models.users import Staff

logger = logging.getLogger(__name__)


class _AllFacilities:
    """Sentinel scope meaning no facility filter applies."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ALL_FACILITIES"


ALL_FACILITIES = _AllFacilities()

FacilityScope = Union[frozenset[int], _AllFacilities]


def scoped_facility_ids(session: Session, staff: Staff) -> FacilityScope:
    """
    Compute the facilities a staff member may read or mutate.

    Args:
        session: Database session
        staff: Staff member acting on the request

    Returns:
        ALL_FACILITIES for admins, otherwise the (possibly empty) set of
        assigned facility IDs

    Storage errors propagate; they never widen the scope.
    """
    if staff.is_admin:
        return ALL_FACILITIES

    stmt = (
        select(StaffFacilityAssignment.facility_id)
        .where(StaffFacilityAssignment.staff_id == staff.id)
        .distinct()
    )
    facility_ids = frozenset(session.scalars(stmt).all())

    if not facility_ids:
        logger.info(f"Staff {staff.id} has no facility assignments")

    return facility_ids


def is_empty_scope(scope: FacilityScope) -> bool:
    """Whether the scope admits no facility at all."""
    return scope is not ALL_FACILITIES and not scope


def can_access_facility(scope: FacilityScope, facility_id: int) -> bool:
    """Whether a facility falls inside the scope."""
    return scope is ALL_FACILITIES or facility_id in scope


def restrict_to_scope(stmt: Select, column, scope: FacilityScope) -> Select:
    """
    Add a facility filter to a select statement.

    Args:
        stmt: Statement to restrict
        column: Facility ID column to filter on
        scope: Result of scoped_facility_ids()

    Returns:
        The statement unchanged for ALL_FACILITIES, otherwise filtered with IN
    """
    if scope is ALL_FACILITIES:
        return stmt
    return stmt.where(column.in_(sorted(scope)))
