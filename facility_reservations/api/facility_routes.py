"""
Facility API routes.

Anyone may browse facilities. Staff create and edit the facilities they
manage, admins delete facilities and manage staff assignments, and any
signed-in user may rate a facility.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from facility_reservations.api.dependencies import (
    Actor,
    get_cipher,
    get_current_actor,
    require_admin,
    require_staff,
)
from facility_reservations.api.models import (
    AssignStaffRequest,
    CreateFacilityRequest,
    FacilityStatus,
    RateFacilityRequest,
    UpdateFacilityRequest,
)
from facility_reservations.api.response_builder import (
    assemble_assignment,
    assemble_facility,
    assemble_rating,
    rejection_response,
    success_response,
)
from facility_reservations.database import get_db
from facility_reservations.services import facilities as facility_service
from facility_reservations.services.encryption import EncryptionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/facilities", tags=["Facilities"])


# =============================================================================
# Browsing
# =============================================================================


@router.get("", summary="List facilities")
def list_facilities(
    type: Optional[str] = Query(None, description="Filter by facility type"),
    status: Optional[FacilityStatus] = Query(None),
    is_indoor: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
):
    """List facilities with their average rating."""
    facilities = facility_service.list_facilities(db, facility_type=type, status=status, is_indoor=is_indoor)
    return success_response(
        [assemble_facility(f) for f in facilities],
        message=f"{len(facilities)} facility(ies) found",
    )


@router.get("/assigned", summary="List my facilities (staff)")
def list_assigned_facilities(
    actor: Actor = Depends(require_staff),
    db: Session = Depends(get_db),
):
    """List the facilities the staff member manages (all of them for admins)."""
    facilities = facility_service.list_assigned_facilities(db, actor.staff)
    return success_response(
        [assemble_facility(f) for f in facilities],
        message=f"{len(facilities)} facility(ies) found",
    )


@router.get("/{facility_id}", summary="Get facility")
def get_facility(
    facility_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
):
    result = facility_service.get_facility(db, facility_id)
    if not result.ok:
        return rejection_response(result.rejection)
    return success_response(assemble_facility(result.value), message="Facility found")


# =============================================================================
# Management
# =============================================================================


@router.post("", summary="Create facility (staff)", status_code=201)
def create_facility(
    request: CreateFacilityRequest,
    actor: Actor = Depends(require_staff),
    db: Session = Depends(get_db),
):
    facility = facility_service.create_facility(db, actor.staff, request.to_fields())
    return success_response(
        assemble_facility(facility),
        message="Facility created successfully",
        status_code=201,
    )


@router.put("/{facility_id}", summary="Update facility (staff)")
def update_facility(
    request: UpdateFacilityRequest,
    facility_id: int = Path(..., gt=0),
    actor: Actor = Depends(require_staff),
    db: Session = Depends(get_db),
):
    """Update a facility. Non-admin staff may only edit facilities they are assigned to."""
    result = facility_service.update_facility(db, facility_id, request.to_fields(), actor.staff)
    if not result.ok:
        return rejection_response(result.rejection)
    return success_response(assemble_facility(result.value), message="Facility updated successfully")


@router.delete("/{facility_id}", summary="Delete facility (admin)")
def delete_facility(
    facility_id: int = Path(..., gt=0),
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    result = facility_service.delete_facility(db, facility_id)
    if not result.ok:
        return rejection_response(result.rejection)
    return success_response(message="Facility deleted successfully")


# =============================================================================
# Staff Assignments
# =============================================================================


@router.post("/{facility_id}/staff", summary="Assign staff to facility (admin)", status_code=201)
def assign_staff(
    request: AssignStaffRequest,
    facility_id: int = Path(..., gt=0),
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
    cipher: EncryptionService = Depends(get_cipher),
):
    result = facility_service.assign_staff(
        db,
        facility_id=facility_id,
        staff_id=request.staff_id,
        role=request.role,
        is_primary=request.is_primary,
        notes=request.notes,
    )
    if not result.ok:
        return rejection_response(result.rejection)
    return success_response(
        assemble_assignment(result.value, cipher),
        message="Staff assigned to facility successfully",
        status_code=201,
    )


@router.get("/{facility_id}/staff", summary="List facility staff (staff)")
def get_assigned_staff(
    facility_id: int = Path(..., gt=0),
    actor: Actor = Depends(require_staff),
    db: Session = Depends(get_db),
    cipher: EncryptionService = Depends(get_cipher),
):
    result = facility_service.get_assigned_staff(db, facility_id)
    if not result.ok:
        return rejection_response(result.rejection)
    return success_response(
        [assemble_assignment(a, cipher) for a in result.value],
        message=f"{len(result.value)} assignment(s) found",
    )


@router.get("/staff/{staff_id}/assignments", summary="List a staff member's assignments")
def list_staff_assignments(
    staff_id: int = Path(..., gt=0),
    actor: Actor = Depends(require_staff),
    db: Session = Depends(get_db),
    cipher: EncryptionService = Depends(get_cipher),
):
    """Admins may look up anyone; other staff only themselves."""
    if not actor.is_admin and actor.staff.id != staff_id:
        raise HTTPException(status_code=403, detail="You can only view your own assignments")

    assignments = facility_service.list_staff_assignments(db, staff_id)
    return success_response(
        [assemble_assignment(a, cipher) for a in assignments],
        message=f"{len(assignments)} assignment(s) found",
    )


@router.delete("/assignments/{assignment_id}", summary="Remove staff assignment (admin)")
def unassign_staff(
    assignment_id: int = Path(..., gt=0),
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    result = facility_service.unassign_staff(db, assignment_id)
    if not result.ok:
        return rejection_response(result.rejection)
    return success_response(message="Staff unassigned from facility successfully")


# =============================================================================
# Ratings
# =============================================================================


@router.post("/{facility_id}/ratings", summary="Rate facility")
def rate_facility(
    request: RateFacilityRequest,
    facility_id: int = Path(..., gt=0),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Rate a facility from 1 to 5. Rating again replaces the previous rating."""
    result = facility_service.rate_facility(db, facility_id, actor.user, request.rating, request.comment)
    if not result.ok:
        return rejection_response(result.rejection)
    return success_response(assemble_rating(result.value), message="Rating saved successfully")
