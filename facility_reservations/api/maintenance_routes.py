"""
Maintenance report API routes.

Residents and staff report facility issues. Staff triage and update
reports of the facilities they manage.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from facility_reservations.api.dependencies import (
    Actor,
    get_cipher,
    get_current_actor,
    require_staff,
)
from facility_reservations.api.models import (
    CreateMaintenanceReportRequest,
    MaintenancePriority,
    MaintenanceStatus,
    UpdateMaintenanceStatusRequest,
)
from facility_reservations.api.response_builder import (
    STAFF,
    assemble_maintenance_report,
    rejection_response,
    success_response,
)
from facility_reservations.database import get_db
from facility_reservations.services import maintenance as maintenance_service
from facility_reservations.services import transitions
from facility_reservations.services.encryption import EncryptionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])


@router.get("", summary="List maintenance reports (staff)")
def list_reports(
    status: Optional[MaintenanceStatus] = Query(None),
    priority: Optional[MaintenancePriority] = Query(None),
    facility_id: Optional[int] = Query(None, gt=0),
    actor: Actor = Depends(require_staff),
    db: Session = Depends(get_db),
    cipher: EncryptionService = Depends(get_cipher),
):
    """List reports of managed facilities, most urgent first."""
    reports = maintenance_service.list_reports(
        db,
        actor.staff,
        status=status,
        priority=priority,
        facility_id=facility_id,
    )
    return success_response(
        [assemble_maintenance_report(r, STAFF, cipher) for r in reports],
        message=f"{len(reports)} report(s) found",
    )


@router.get("/my-reports", summary="List my maintenance reports")
def list_my_reports(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    cipher: EncryptionService = Depends(get_cipher),
):
    """List the reports filed by the caller."""
    reports = maintenance_service.list_own_reports(db, resident=actor.resident, staff=actor.staff)
    return success_response(
        [assemble_maintenance_report(r, actor.role, cipher) for r in reports],
        message=f"{len(reports)} report(s) found",
    )


@router.get("/{report_id}", summary="Get maintenance report")
def get_report(
    report_id: int = Path(..., gt=0),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    cipher: EncryptionService = Depends(get_cipher),
):
    """Get a single report the caller is allowed to see."""
    result = maintenance_service.get_report(db, report_id, resident=actor.resident, staff=actor.staff)
    if not result.ok:
        return rejection_response(result.rejection)
    return success_response(
        assemble_maintenance_report(result.value, actor.role, cipher),
        message="Maintenance report found",
    )


@router.post("", summary="Report a maintenance issue", status_code=201)
def create_report(
    request: CreateMaintenanceReportRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    cipher: EncryptionService = Depends(get_cipher),
):
    """File a maintenance report. New reports start in the 'reported' status."""
    result = maintenance_service.create_report(
        db,
        facility_id=request.facility_id,
        title=request.title,
        description=request.description,
        priority=request.priority,
        resident=actor.resident,
        staff=actor.staff,
    )
    if not result.ok:
        return rejection_response(result.rejection)
    return success_response(
        assemble_maintenance_report(result.value, actor.role, cipher),
        message="Maintenance report created successfully",
        status_code=201,
    )


@router.put("/{report_id}/status", summary="Update maintenance report (staff)")
def update_report_status(
    request: UpdateMaintenanceStatusRequest,
    report_id: int = Path(..., gt=0),
    actor: Actor = Depends(require_staff),
    db: Session = Depends(get_db),
    cipher: EncryptionService = Depends(get_cipher),
):
    """
    Change a report's status, optionally assigning staff, scheduling the
    work or attaching feedback.
    """
    result = transitions.update_maintenance_status(db, report_id, request.to_update(), actor.staff)
    if not result.ok:
        return rejection_response(result.rejection)
    return success_response(
        assemble_maintenance_report(result.value.entity, STAFF, cipher),
        message="Maintenance report updated successfully",
    )
