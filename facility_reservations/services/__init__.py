"""
Service layer for Facility Reservations.

Provides business logic and data access for:
- Staff facility visibility (admin override, assignment scoping)
- Booking validation (facility status, capacity, time conflicts) and creation
- Booking and maintenance status transitions
- Maintenance reports, facilities, staff assignments and ratings
- Encryption of personal data columns

Every function takes the SQLAlchemy Session as its first argument.
"""

from facility_reservations.services.results import (
    Rejection,
    RejectionKind,
    ServiceResult,
)

from facility_reservations.services.visibility import (
    ALL_FACILITIES,
    FacilityScope,
    scoped_facility_ids,
    is_empty_scope,
    can_access_facility,
    restrict_to_scope,
)

from facility_reservations.services.encryption import (
    DecryptionError,
    EncryptionService,
    get_encryption_service,
)

from facility_reservations.services.bookings import (
    BookingCandidate,
    find_conflicting_booking,
    validate_booking,
    create_booking,
    list_bookings,
    list_resident_bookings,
    get_booking,
)

from facility_reservations.services.transitions import (
    MaintenanceUpdate,
    StatusChange,
    plan_booking_status_change,
    update_booking_status,
    cancel_booking,
    plan_maintenance_update,
    update_maintenance_status,
)

from facility_reservations.services.maintenance import (
    create_report,
    list_reports,
    list_own_reports,
    get_report,
)

from facility_reservations.services.facilities import (
    list_facilities,
    get_facility,
    list_assigned_facilities,
    create_facility,
    update_facility,
    delete_facility,
    assign_staff,
    unassign_staff,
    get_assigned_staff,
    list_staff_assignments,
    rate_facility,
)

__all__ = [
    # Results
    "Rejection",
    "RejectionKind",
    "ServiceResult",
    # Visibility
    "ALL_FACILITIES",
    "FacilityScope",
    "scoped_facility_ids",
    "is_empty_scope",
    "can_access_facility",
    "restrict_to_scope",
    # Encryption
    "DecryptionError",
    "EncryptionService",
    "get_encryption_service",
    # Bookings
    "BookingCandidate",
    "find_conflicting_booking",
    "validate_booking",
    "create_booking",
    "list_bookings",
    "list_resident_bookings",
    "get_booking",
    # Transitions
    "MaintenanceUpdate",
    "StatusChange",
    "plan_booking_status_change",
    "update_booking_status",
    "cancel_booking",
    "plan_maintenance_update",
    "update_maintenance_status",
    # Maintenance
    "create_report",
    "list_reports",
    "list_own_reports",
    "get_report",
    # Facilities
    "list_facilities",
    "get_facility",
    "list_assigned_facilities",
    "create_facility",
    "update_facility",
    "delete_facility",
    "assign_staff",
    "unassign_staff",
    "get_assigned_staff",
    "list_staff_assignments",
    "rate_facility",
]
