"""
Pydantic request and response models for the Facility Reservations API.

Request models reject malformed input before any service runs; the
resulting errors are returned as 400 envelopes with reason
"validation error".
"""

import datetime as dt
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from facility_reservations.services.bookings import BookingCandidate, today_local
from facility_reservations.services.transitions import MaintenanceUpdate

# 24-hour "HH:MM"
HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

BookingStatus = Literal["pending", "approved", "rejected", "cancelled"]
MaintenanceStatus = Literal["reported", "in-progress", "scheduled", "completed"]
MaintenancePriority = Literal["low", "medium", "high", "critical"]
FacilityStatus = Literal["open", "closed", "maintenance"]


def parse_hhmm(value: str) -> dt.time:
    """Parse a 24-hour 'HH:MM' string into a time."""
    return dt.datetime.strptime(value, "%H:%M").time()


# =============================================================================
# Bookings
# =============================================================================


class CreateBookingRequest(BaseModel):
    """Request to book a facility slot."""

    facility_id: int = Field(..., gt=0, description="Facility to book")
    date: dt.date = Field(..., description="Booking date (ISO 8601), today or later")
    start_time: str = Field(..., pattern=HHMM_PATTERN, examples=["09:00"])
    end_time: str = Field(..., pattern=HHMM_PATTERN, examples=["10:00"])
    attendees: int = Field(..., ge=1, description="Number of attendees")
    purpose: str = Field(
        ...,
        min_length=5,
        max_length=200,
        examples=["Weekly doubles practice"],
    )

    @field_validator("date")
    @classmethod
    def validate_date_not_past(cls, v: dt.date) -> dt.date:
        if v < today_local():
            raise ValueError("Booking date cannot be in the past")
        return v

    @field_validator("purpose")
    @classmethod
    def validate_purpose_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Purpose cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_time_order(self) -> "CreateBookingRequest":
        if parse_hhmm(self.end_time) <= parse_hhmm(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self

    def to_candidate(self) -> BookingCandidate:
        return BookingCandidate(
            facility_id=self.facility_id,
            date=self.date,
            start_time=parse_hhmm(self.start_time),
            end_time=parse_hhmm(self.end_time),
            attendees=self.attendees,
            purpose=self.purpose,
        )


class UpdateBookingStatusRequest(BaseModel):
    """Staff request to change a booking's status."""

    status: BookingStatus


# =============================================================================
# Maintenance
# =============================================================================


class CreateMaintenanceReportRequest(BaseModel):
    """Request to report a facility issue."""

    facility_id: int = Field(..., gt=0)
    title: str = Field(..., min_length=5, max_length=100)
    description: str = Field(..., min_length=10)
    priority: MaintenancePriority = "medium"


class UpdateMaintenanceStatusRequest(BaseModel):
    """Staff update of a maintenance report."""

    status: MaintenanceStatus
    assigned_to: Optional[int] = Field(None, gt=0, description="Staff member to assign")
    scheduled_date: Optional[dt.date] = None
    feedback: Optional[str] = Field(None, max_length=1000)

    def to_update(self) -> MaintenanceUpdate:
        return MaintenanceUpdate(
            status=self.status,
            assigned_to=self.assigned_to,
            scheduled_date=self.scheduled_date,
            feedback=self.feedback,
        )


# =============================================================================
# Facilities
# =============================================================================


class CreateFacilityRequest(BaseModel):
    """Request to create a facility."""

    name: str = Field(..., min_length=2, max_length=100)
    type: str = Field(..., min_length=2, max_length=50, examples=["tennis"])
    location: str = Field(..., min_length=2, max_length=100)
    capacity: int = Field(..., gt=0)
    image_url: Optional[str] = Field(None, max_length=500)
    is_indoor: bool = False
    description: str = Field("", max_length=2000)
    open_time: str = Field(..., pattern=HHMM_PATTERN, examples=["06:00"])
    close_time: str = Field(..., pattern=HHMM_PATTERN, examples=["22:00"])
    status: FacilityStatus = "open"

    @model_validator(mode="after")
    def validate_opening_hours(self) -> "CreateFacilityRequest":
        if parse_hhmm(self.close_time) <= parse_hhmm(self.open_time):
            raise ValueError("close_time must be after open_time")
        return self

    def to_fields(self) -> dict[str, Any]:
        fields = self.model_dump()
        fields["open_time"] = parse_hhmm(self.open_time)
        fields["close_time"] = parse_hhmm(self.close_time)
        return fields


class UpdateFacilityRequest(BaseModel):
    """Partial update of a facility. Only fields sent are changed."""

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    type: Optional[str] = Field(None, min_length=2, max_length=50)
    location: Optional[str] = Field(None, min_length=2, max_length=100)
    capacity: Optional[int] = Field(None, gt=0)
    image_url: Optional[str] = Field(None, max_length=500)
    is_indoor: Optional[bool] = None
    description: Optional[str] = Field(None, max_length=2000)
    open_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    close_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    status: Optional[FacilityStatus] = None

    @model_validator(mode="after")
    def validate_opening_hours(self) -> "UpdateFacilityRequest":
        if self.open_time and self.close_time:
            if parse_hhmm(self.close_time) <= parse_hhmm(self.open_time):
                raise ValueError("close_time must be after open_time")
        return self

    def to_fields(self) -> dict[str, Any]:
        fields = self.model_dump(exclude_unset=True, exclude_none=True)
        for name in ("open_time", "close_time"):
            if name in fields:
                fields[name] = parse_hhmm(fields[name])
        return fields


class AssignStaffRequest(BaseModel):
    """Admin request to assign a staff member to a facility."""

    staff_id: int = Field(..., gt=0)
    role: str = Field("manager", min_length=2, max_length=50)
    is_primary: bool = False
    notes: Optional[str] = Field(None, max_length=500)


class RateFacilityRequest(BaseModel):
    """A user's rating of a facility."""

    rating: float = Field(..., ge=1.0, le=5.0)
    comment: Optional[str] = Field(None, max_length=500)


# =============================================================================
# Response Models
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "unhealthy"]
    version: str
    database_connected: bool
