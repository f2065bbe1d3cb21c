"""
Integration test fixtures for Facility Reservations.

Provides a file-backed SQLite database (so separate sessions and threads
really use separate connections), a session factory and helpers to seed
users and facilities.
"""

from datetime import time
from typing import Callable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from facility_reservations.api.dependencies import get_cipher
from facility_reservations.api.main import app
from facility_reservations.database import get_db
from facility_reservations.models import Base, Facility, Resident, Staff, User
from facility_reservations.services.encryption import EncryptionService


# =============================================================================
# Pytest Markers Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def file_engine(tmp_path):
    """SQLite engine on a temporary file with all tables created."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'reservations.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    engine.dispose()


@pytest.fixture
def session_factory(file_engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=file_engine)


@pytest.fixture
def integration_cipher() -> EncryptionService:
    return EncryptionService("integration-test-key")


# =============================================================================
# Seeding
# =============================================================================


@pytest.fixture
def seed(session_factory, integration_cipher) -> dict[str, Callable[..., int]]:
    """
    Helpers that insert rows in their own session and return the new ids.

    Returns:
        Dict with 'resident', 'staff' and 'facility' helpers
    """

    def _user(session: Session, user_type: str) -> User:
        user = User(user_type=user_type, status="active")
        session.add(user)
        session.flush()
        return user

    def resident(name: str = "Alice Resident", email: str = "alice@example.com") -> int:
        with session_factory() as session:
            user = _user(session, "resident")
            session.add(
                Resident(
                    user_id=user.id,
                    name=integration_cipher.encrypt(name),
                    email=integration_cipher.encrypt(email),
                    membership_type="standard",
                )
            )
            session.commit()
            return user.id

    def staff(name: str, employee_id: str, is_admin: bool = False) -> int:
        with session_factory() as session:
            user = _user(session, "staff")
            session.add(
                Staff(
                    user_id=user.id,
                    employee_id=employee_id,
                    position="Facility Manager",
                    department="Operations",
                    is_admin=is_admin,
                    name=integration_cipher.encrypt(name),
                    email=integration_cipher.encrypt(f"{employee_id.lower()}@example.com"),
                )
            )
            session.commit()
            return user.id

    def facility(name: str = "Tennis Court 1", capacity: int = 4) -> int:
        with session_factory() as session:
            row = Facility(
                name=name,
                type="tennis",
                location="North Block",
                capacity=capacity,
                is_indoor=False,
                description="Hard court",
                open_time=time(6, 0),
                close_time=time(22, 0),
                status="open",
            )
            session.add(row)
            session.commit()
            return row.id

    return {"resident": resident, "staff": staff, "facility": facility}


# =============================================================================
# API Client
# =============================================================================


@pytest.fixture
def integration_api_client(session_factory, integration_cipher):
    """TestClient where every request gets its own session on the file database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cipher] = lambda: integration_cipher

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
