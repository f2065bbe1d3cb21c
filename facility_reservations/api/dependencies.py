"""
FastAPI dependency injection providers.

Provides the request actor (user plus staff/resident profile), role
guards and the encryption service.

Authentication happens upstream: the gateway resolves the login and
forwards the user id in the X-User-ID header.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from fastapi import Depends, Header, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from facility_reservations.database import get_db
from facility_reservations.models.users import Resident, Staff, User
from facility_reservations.services.encryption import EncryptionService, get_encryption_service

logger = logging.getLogger(__name__)


@dataclass
class Actor:
    """The authenticated caller of a request."""

    user: User
    staff: Optional[Staff] = None
    resident: Optional[Resident] = None

    @property
    def role(self) -> str:
        """Role used for response assembly: 'staff' or 'resident'."""
        return "staff" if self.staff is not None else "resident"

    @property
    def is_admin(self) -> bool:
        return self.staff is not None and self.staff.is_admin


def get_current_actor(
    x_user_id: Optional[str] = Header(None, description="Authenticated user ID"),
    db: Session = Depends(get_db),
) -> Actor:
    """
    Resolve the caller from the X-User-ID header.

    Raises:
        HTTPException: 401 if the header is missing or unknown,
            403 if the account is not active or has no profile
    """
    if not x_user_id or not x_user_id.strip().isdigit():
        raise HTTPException(status_code=401, detail="Not authorized, no valid user")

    user = db.get(User, int(x_user_id))
    if user is None:
        raise HTTPException(status_code=401, detail="Not authorized, user not found")

    if not user.is_active:
        logger.info(f"Refused request from {user.status} user {user.id}")
        raise HTTPException(status_code=403, detail=f"Account is {user.status}")

    staff = db.scalar(select(Staff).where(Staff.user_id == user.id))
    resident = None if staff else db.scalar(select(Resident).where(Resident.user_id == user.id))

    if staff is None and resident is None:
        raise HTTPException(status_code=403, detail="No resident or staff profile for this user")

    return Actor(user=user, staff=staff, resident=resident)


def require_staff(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Only staff members may continue."""
    if actor.staff is None:
        raise HTTPException(status_code=403, detail="Access restricted to staff members")
    return actor


def require_admin(actor: Actor = Depends(require_staff)) -> Actor:
    """Only admin staff may continue."""
    if not actor.staff.is_admin:
        raise HTTPException(status_code=403, detail="Access restricted to administrators")
    return actor


def require_resident(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Only residents may continue."""
    if actor.resident is None:
        raise HTTPException(status_code=403, detail="Access restricted to residents")
    return actor


def get_cipher() -> EncryptionService:
    """Dependency injection for the PII encryption service."""
    return get_encryption_service()
