"""
Pytest configuration and fixtures for Facility Reservations tests.

Provides database session fixtures, an encryption service and factories
for users, facilities, assignments and bookings.
"""

import os

# Keep the application engine off the filesystem during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from datetime import date, time, timedelta
from typing import Callable, Generator

import pytest
import sqlalchemy as sa
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from facility_reservations.models import (
    Base,
    Booking,
    Facility,
    MaintenanceReport,
    Resident,
    Staff,
    StaffFacilityAssignment,
    User,
)
from facility_reservations.services.encryption import EncryptionService

TEST_ENCRYPTION_KEY = "test-encryption-key"


# Configure SQLite to enforce foreign key constraints in tests
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite connections."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(scope="function")
def db_engine() -> Generator[Engine, None, None]:
    """
    In-memory SQLite engine with all tables created.

    StaticPool shares the single connection across threads, so the
    TestClient's worker threads see the same database.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    # Disable foreign key constraints for drop operations
    with engine.begin() as connection:
        connection.execute(sa.text("PRAGMA foreign_keys=OFF"))
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine: Engine) -> Generator[Session, None, None]:
    """
    Create a clean database session for each test.

    Yields:
        Session: SQLAlchemy session for database operations
    """
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def cipher() -> EncryptionService:
    """Encryption service with a fixed test key."""
    return EncryptionService(TEST_ENCRYPTION_KEY)


@pytest.fixture
def future_date() -> date:
    """A booking date safely in the future."""
    return date.today() + timedelta(days=7)


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_resident(db_session: Session, cipher: EncryptionService) -> Callable[..., Resident]:
    """Factory creating a user with a resident profile."""

    def _make(name: str = "Alice Resident", email: str = "alice@example.com", status: str = "active") -> Resident:
        user = User(user_type="resident", status=status)
        db_session.add(user)
        db_session.flush()

        resident = Resident(
            user_id=user.id,
            name=cipher.encrypt(name),
            email=cipher.encrypt(email),
            membership_type="standard",
        )
        db_session.add(resident)
        db_session.commit()
        db_session.refresh(resident)
        return resident

    return _make


@pytest.fixture
def make_staff(db_session: Session, cipher: EncryptionService) -> Callable[..., Staff]:
    """Factory creating a user with a staff profile."""
    counter = {"n": 0}

    def _make(name: str = "Sam Staff", is_admin: bool = False, employee_id: str | None = None) -> Staff:
        counter["n"] += 1
        user = User(user_type="staff", status="active")
        db_session.add(user)
        db_session.flush()

        staff = Staff(
            user_id=user.id,
            employee_id=employee_id or f"EMP{counter['n']:03d}",
            position="Facility Manager",
            department="Operations",
            is_admin=is_admin,
            name=cipher.encrypt(name),
            email=cipher.encrypt(f"staff{counter['n']}@example.com"),
        )
        db_session.add(staff)
        db_session.commit()
        db_session.refresh(staff)
        return staff

    return _make


@pytest.fixture
def make_facility(db_session: Session) -> Callable[..., Facility]:
    """Factory creating a facility (open, capacity 10 by default)."""

    def _make(name: str = "Tennis Court 1", capacity: int = 10, status: str = "open") -> Facility:
        facility = Facility(
            name=name,
            type="tennis",
            location="North Block",
            capacity=capacity,
            is_indoor=False,
            description="Hard court with floodlights",
            open_time=time(6, 0),
            close_time=time(22, 0),
            status=status,
        )
        db_session.add(facility)
        db_session.commit()
        db_session.refresh(facility)
        return facility

    return _make


@pytest.fixture
def assign(db_session: Session) -> Callable[..., StaffFacilityAssignment]:
    """Factory assigning a staff member to a facility."""

    def _assign(staff: Staff, facility: Facility, is_primary: bool = False) -> StaffFacilityAssignment:
        assignment = StaffFacilityAssignment(
            staff_id=staff.id,
            facility_id=facility.id,
            role="manager",
            is_primary=is_primary,
        )
        db_session.add(assignment)
        db_session.commit()
        db_session.refresh(assignment)
        return assignment

    return _assign


@pytest.fixture
def make_booking(db_session: Session) -> Callable[..., Booking]:
    """Factory inserting a booking row directly (no validation)."""

    def _make(
        facility: Facility,
        resident: Resident,
        on_date: date,
        start: time = time(9, 0),
        end: time = time(10, 0),
        status: str = "pending",
        attendees: int = 4,
    ) -> Booking:
        booking = Booking(
            facility_id=facility.id,
            resident_id=resident.id,
            date=on_date,
            start_time=start,
            end_time=end,
            status=status,
            purpose="Weekly practice",
            attendees=attendees,
        )
        db_session.add(booking)
        db_session.commit()
        db_session.refresh(booking)
        return booking

    return _make


@pytest.fixture
def make_report(db_session: Session) -> Callable[..., MaintenanceReport]:
    """Factory inserting a maintenance report directly."""

    def _make(
        facility: Facility,
        resident: Resident | None = None,
        staff: Staff | None = None,
        priority: str = "medium",
        status: str = "reported",
        title: str = "Broken net",
    ) -> MaintenanceReport:
        report = MaintenanceReport(
            facility_id=facility.id,
            reported_by_resident=resident.id if resident else None,
            reported_by_staff=staff.id if staff else None,
            title=title,
            description="The net on the north side is torn.",
            priority=priority,
            status=status,
        )
        db_session.add(report)
        db_session.commit()
        db_session.refresh(report)
        return report

    return _make


# =============================================================================
# Common Sample Data
# =============================================================================


@pytest.fixture
def resident(make_resident) -> Resident:
    return make_resident()


@pytest.fixture
def staff_member(make_staff) -> Staff:
    """Non-admin staff member without assignments."""
    return make_staff(name="Sam Staff")


@pytest.fixture
def admin(make_staff) -> Staff:
    return make_staff(name="Ada Admin", is_admin=True)


@pytest.fixture
def facility(make_facility) -> Facility:
    return make_facility()
