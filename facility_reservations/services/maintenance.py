"""
Maintenance report service.

Provides functions for:
- Reporting facility issues (residents and staff)
- Listing reports with staff facility scoping
- Fetching a single report with ownership checks

Status updates live in services/transitions.py.
"""

import logging
from typing import Optional, Sequence

from sqlalchemy import case, select
from sqlalchemy.orm import Session, joinedload

from facility_reservations.models.facilities import Facility
from facility_reservations.models.maintenance import MaintenanceReport
from facility_reservations.models.users import Resident, Staff
from facility_reservations.services import results
from facility_reservations.services.results import ServiceResult
from facility_reservations.services.visibility import (
    can_access_facility,
    is_empty_scope,
    restrict_to_scope,
    scoped_facility_ids,
)

logger = logging.getLogger(__name__)

# Most urgent first
PRIORITY_RANK = case(
    {"critical": 4, "high": 3, "medium": 2, "low": 1},
    value=MaintenanceReport.priority,
    else_=0,
)


def _with_associations(stmt):
    return stmt.options(
        joinedload(MaintenanceReport.facility),
        joinedload(MaintenanceReport.resident_reporter),
        joinedload(MaintenanceReport.staff_reporter),
        joinedload(MaintenanceReport.assigned_staff),
    )


def create_report(
    session: Session,
    facility_id: int,
    title: str,
    description: str,
    priority: str,
    resident: Optional[Resident] = None,
    staff: Optional[Staff] = None,
) -> ServiceResult[MaintenanceReport]:
    """
    Create a maintenance report in the 'reported' status.

    Exactly one of resident / staff identifies the reporter.

    Args:
        session: Database session
        facility_id: Facility with the issue
        title: Short summary
        description: Details of the issue
        priority: 'low', 'medium', 'high' or 'critical'
        resident: Reporting resident
        staff: Reporting staff member

    Returns:
        The persisted report, or a not_found rejection for an unknown facility
    """
    if (resident is None) == (staff is None):
        raise ValueError("A report needs exactly one reporter")

    if session.get(Facility, facility_id) is None:
        return ServiceResult.not_found(
            results.FACILITY_NOT_FOUND,
            "Facility not found",
            facility_id=facility_id,
        )

    report = MaintenanceReport(
        facility_id=facility_id,
        title=title,
        description=description,
        priority=priority,
        status="reported",
        reported_by_resident=resident.id if resident else None,
        reported_by_staff=staff.id if staff else None,
    )
    session.add(report)
    session.commit()
    session.refresh(report)

    reporter = f"resident {report.reported_by_resident}" if resident else f"staff {report.reported_by_staff}"
    logger.info(f"Maintenance report {report.id} ({priority}) created for facility {facility_id} by {reporter}")
    return ServiceResult.success(report)


def list_reports(
    session: Session,
    staff: Staff,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    facility_id: Optional[int] = None,
) -> Sequence[MaintenanceReport]:
    """
    List maintenance reports visible to a staff member.

    Args:
        session: Database session
        staff: Staff member making the request
        status: Filter by status
        priority: Filter by priority
        facility_id: Filter by facility

    Returns:
        Reports ordered by urgency then newest first; empty when the staff
        member has no assigned facilities
    """
    scope = scoped_facility_ids(session, staff)
    if is_empty_scope(scope):
        return []

    stmt = restrict_to_scope(select(MaintenanceReport), MaintenanceReport.facility_id, scope)

    if status:
        stmt = stmt.where(MaintenanceReport.status == status)
    if priority:
        stmt = stmt.where(MaintenanceReport.priority == priority)
    if facility_id is not None:
        stmt = stmt.where(MaintenanceReport.facility_id == facility_id)

    stmt = _with_associations(stmt).order_by(
        PRIORITY_RANK.desc(),
        MaintenanceReport.reported_date.desc(),
        MaintenanceReport.id.desc(),
    )

    return session.scalars(stmt).unique().all()


def list_own_reports(
    session: Session,
    resident: Optional[Resident] = None,
    staff: Optional[Staff] = None,
) -> Sequence[MaintenanceReport]:
    """Get the reports filed by a resident or a staff member, newest first."""
    if resident is not None:
        condition = MaintenanceReport.reported_by_resident == resident.id
    elif staff is not None:
        condition = MaintenanceReport.reported_by_staff == staff.id
    else:
        return []

    stmt = _with_associations(select(MaintenanceReport).where(condition)).order_by(
        MaintenanceReport.reported_date.desc(),
        MaintenanceReport.id.desc(),
    )
    return session.scalars(stmt).unique().all()


def get_report(
    session: Session,
    report_id: int,
    resident: Optional[Resident] = None,
    staff: Optional[Staff] = None,
) -> ServiceResult[MaintenanceReport]:
    """
    Fetch a maintenance report the caller is allowed to see.

    Residents only see reports they filed. Non-admin staff see reports
    they filed and reports of facilities they are assigned to.
    """
    stmt = _with_associations(select(MaintenanceReport).where(MaintenanceReport.id == report_id))
    report = session.scalar(stmt)

    if report is None:
        return ServiceResult.not_found(results.REPORT_NOT_FOUND, "Maintenance report not found")

    if staff is not None:
        if report.reported_by_staff == staff.id:
            return ServiceResult.success(report)
        scope = scoped_facility_ids(session, staff)
        if not can_access_facility(scope, report.facility_id):
            return ServiceResult.forbidden(
                results.FACILITY_NOT_ASSIGNED,
                "You are not assigned to this report's facility",
            )
    elif resident is None or report.reported_by_resident != resident.id:
        return ServiceResult.forbidden(
            results.NOT_REPORT_OWNER,
            "You do not have permission to view this report",
        )

    return ServiceResult.success(report)
