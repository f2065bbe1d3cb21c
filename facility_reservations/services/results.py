"""
Typed service results.

Expected business outcomes (missing rows, ownership mismatches, slot
conflicts) are returned as a Rejection inside a ServiceResult instead of
being raised. Storage failures are not modelled here; they propagate as
exceptions and become 500 responses.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class RejectionKind(str, Enum):
    """Category of a rejection, mapped to an HTTP status by the API layer."""

    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    INVALID = "invalid"

    @property
    def status_code(self) -> int:
        return {
            RejectionKind.NOT_FOUND: 404,
            RejectionKind.FORBIDDEN: 403,
            RejectionKind.CONFLICT: 400,
            RejectionKind.INVALID: 400,
        }[self]


# Stable machine-checkable reasons
FACILITY_NOT_FOUND = "facility not found"
FACILITY_NOT_OPEN = "facility not open"
CAPACITY_EXCEEDED = "capacity exceeded"
TIME_CONFLICT = "time conflict"
BOOKING_NOT_FOUND = "booking not found"
NOT_BOOKING_OWNER = "not booking owner"
ALREADY_CANCELLED = "already cancelled"
REPORT_NOT_FOUND = "report not found"
NOT_REPORT_OWNER = "not report owner"
STAFF_NOT_FOUND = "staff not found"
ASSIGNMENT_NOT_FOUND = "assignment not found"
ALREADY_ASSIGNED = "already assigned"
FACILITY_NOT_ASSIGNED = "facility not assigned"
INVALID_STATUS = "invalid status"


@dataclass
class Rejection:
    """Why a service refused to act."""

    kind: RejectionKind
    reason: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def status_code(self) -> int:
        return self.kind.status_code


@dataclass
class ServiceResult(Generic[T]):
    """Either a value or a rejection."""

    value: Optional[T] = None
    rejection: Optional[Rejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None

    @property
    def reason(self) -> Optional[str]:
        return self.rejection.reason if self.rejection else None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "ServiceResult[T]":
        return cls(value=value)

    @classmethod
    def rejected(
        cls,
        kind: RejectionKind,
        reason: str,
        message: str,
        **details: Any,
    ) -> "ServiceResult[T]":
        return cls(rejection=Rejection(kind=kind, reason=reason, message=message, details=details))

    @classmethod
    def not_found(cls, reason: str, message: str, **details: Any) -> "ServiceResult[T]":
        return cls.rejected(RejectionKind.NOT_FOUND, reason, message, **details)

    @classmethod
    def forbidden(cls, reason: str, message: str, **details: Any) -> "ServiceResult[T]":
        return cls.rejected(RejectionKind.FORBIDDEN, reason, message, **details)

    @classmethod
    def conflict(cls, reason: str, message: str, **details: Any) -> "ServiceResult[T]":
        return cls.rejected(RejectionKind.CONFLICT, reason, message, **details)
