"""
Unit tests for the booking service.

Tests:
- Ordered admission checks (facility exists, open, capacity, time conflict)
- Half-open overlap semantics
- Overlap constraint violations mapped to "time conflict"
- Staff-scoped listing and role-checked fetching
"""

from datetime import date, time, timedelta
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from facility_reservations.models import Booking
from facility_reservations.services import results
from facility_reservations.services.bookings import (
    BookingCandidate,
    create_booking,
    find_conflicting_booking,
    get_booking,
    is_overlap_violation,
    list_bookings,
    list_resident_bookings,
    today_local,
    validate_booking,
)
from facility_reservations.services.results import RejectionKind

JUNE_1 = date(2025, 6, 1)


def candidate(facility_id, start=time(9, 0), end=time(10, 0), attendees=5, on_date=JUNE_1):
    return BookingCandidate(
        facility_id=facility_id,
        date=on_date,
        start_time=start,
        end_time=end,
        attendees=attendees,
        purpose="Club practice",
    )


def booking_count(session: Session) -> int:
    return len(session.scalars(select(Booking)).all())


class TestBookingCandidate:
    """Test BookingCandidate construction."""

    def test_valid_candidate(self):
        c = candidate(1)
        assert c.start_time < c.end_time

    @pytest.mark.parametrize("start,end", [(time(10, 0), time(10, 0)), (time(11, 0), time(10, 0))])
    def test_rejects_empty_or_inverted_interval(self, start, end):
        with pytest.raises(ValueError, match="start_time"):
            candidate(1, start=start, end=end)

    def test_rejects_zero_attendees(self):
        with pytest.raises(ValueError, match="attendees"):
            candidate(1, attendees=0)


class TestCreateBooking:
    """Test create_booking() on a capacity-10 open facility."""

    def test_free_slot_accepted_as_pending(self, db_session, facility, resident):
        result = create_booking(db_session, resident, candidate(facility.id))

        assert result.ok
        assert result.value.id is not None
        assert result.value.status == "pending"
        assert result.value.resident_id == resident.id

    def test_overlapping_slot_rejected(self, db_session, facility, resident):
        first = create_booking(db_session, resident, candidate(facility.id))

        result = create_booking(
            db_session, resident, candidate(facility.id, start=time(9, 30), end=time(10, 30))
        )

        assert not result.ok
        assert result.reason == results.TIME_CONFLICT
        assert result.rejection.kind is RejectionKind.CONFLICT
        assert result.rejection.details["conflicting_booking_id"] == first.value.id
        assert booking_count(db_session) == 1

    def test_abutting_slot_accepted(self, db_session, facility, resident):
        create_booking(db_session, resident, candidate(facility.id))

        result = create_booking(
            db_session, resident, candidate(facility.id, start=time(10, 0), end=time(11, 0))
        )

        assert result.ok
        assert booking_count(db_session) == 2

    def test_facility_under_maintenance_rejected(self, db_session, make_facility, resident):
        gym = make_facility(name="Gym", status="maintenance")

        result = create_booking(db_session, resident, candidate(gym.id))

        assert not result.ok
        assert result.reason == results.FACILITY_NOT_OPEN
        assert result.rejection.details["current_status"] == "maintenance"
        assert booking_count(db_session) == 0


class TestValidateBooking:
    """Test validate_booking() check order and edge cases."""

    def test_missing_facility(self, db_session):
        result = validate_booking(db_session, None, candidate(999))

        assert result.reason == results.FACILITY_NOT_FOUND
        assert result.rejection.status_code == 404

    def test_create_for_missing_facility(self, db_session, resident):
        result = create_booking(db_session, resident, candidate(999))

        assert result.reason == results.FACILITY_NOT_FOUND
        assert booking_count(db_session) == 0

    def test_capacity_exceeded(self, db_session, facility, resident):
        result = create_booking(db_session, resident, candidate(facility.id, attendees=11))

        assert result.reason == results.CAPACITY_EXCEEDED
        assert result.rejection.details["capacity"] == 10
        assert booking_count(db_session) == 0

    def test_capacity_boundary_accepted(self, db_session, facility, resident):
        result = create_booking(db_session, resident, candidate(facility.id, attendees=10))
        assert result.ok

    def test_status_checked_before_capacity(self, db_session, make_facility):
        closed = make_facility(name="Pool", status="closed", capacity=2)

        result = validate_booking(db_session, closed, candidate(closed.id, attendees=50))

        assert result.reason == results.FACILITY_NOT_OPEN

    def test_capacity_checked_before_conflict(self, db_session, facility, resident, make_booking):
        make_booking(facility, resident, JUNE_1)

        result = validate_booking(db_session, facility, candidate(facility.id, attendees=20))

        assert result.reason == results.CAPACITY_EXCEEDED

    @pytest.mark.parametrize("status", ["cancelled", "rejected"])
    def test_inactive_bookings_never_conflict(self, db_session, facility, resident, make_booking, status):
        make_booking(facility, resident, JUNE_1, status=status)

        result = validate_booking(db_session, facility, candidate(facility.id))

        assert result.ok

    def test_approved_bookings_conflict(self, db_session, facility, resident, make_booking):
        make_booking(facility, resident, JUNE_1, status="approved")

        result = validate_booking(db_session, facility, candidate(facility.id))

        assert result.reason == results.TIME_CONFLICT

    @pytest.mark.parametrize(
        "start,end,conflicts",
        [
            (time(8, 0), time(9, 0), False),  # ends when existing starts
            (time(10, 0), time(11, 0), False),  # starts when existing ends
            (time(8, 30), time(9, 1), True),
            (time(9, 59), time(10, 30), True),
            (time(9, 15), time(9, 45), True),  # inside existing
            (time(8, 0), time(11, 0), True),  # covers existing
            (time(9, 0), time(10, 0), True),  # identical
        ],
    )
    def test_half_open_overlap(self, db_session, facility, resident, make_booking, start, end, conflicts):
        make_booking(facility, resident, JUNE_1, start=time(9, 0), end=time(10, 0))

        found = find_conflicting_booking(db_session, facility.id, JUNE_1, start, end)

        assert (found is not None) is conflicts

    def test_other_date_or_facility_does_not_conflict(self, db_session, make_facility, resident, make_booking):
        court = make_facility(name="Court")
        pool = make_facility(name="Pool")
        make_booking(court, resident, JUNE_1)

        assert find_conflicting_booking(db_session, pool.id, JUNE_1, time(9, 0), time(10, 0)) is None
        assert find_conflicting_booking(
            db_session, court.id, JUNE_1 + timedelta(days=1), time(9, 0), time(10, 0)
        ) is None

    def test_exclude_booking_id(self, db_session, facility, resident, make_booking):
        existing = make_booking(facility, resident, JUNE_1)

        found = find_conflicting_booking(
            db_session, facility.id, JUNE_1, time(9, 0), time(10, 0), exclude_booking_id=existing.id
        )

        assert found is None


class TestOverlapConstraint:
    """Test mapping of the database exclusion constraint."""

    @staticmethod
    def _integrity_error(message: str) -> IntegrityError:
        return IntegrityError("INSERT INTO bookings", {}, Exception(message))

    def test_is_overlap_violation(self):
        error = self._integrity_error(
            'conflicting key value violates exclusion constraint "no_booking_overlap"'
        )
        assert is_overlap_violation(error) is True
        assert is_overlap_violation(self._integrity_error("NOT NULL constraint failed")) is False

    def test_constraint_violation_becomes_time_conflict(self, db_session, facility, resident):
        error = self._integrity_error('violates exclusion constraint "no_booking_overlap"')

        with patch.object(db_session, "commit", side_effect=error):
            result = create_booking(db_session, resident, candidate(facility.id))

        assert not result.ok
        assert result.reason == results.TIME_CONFLICT
        assert booking_count(db_session) == 0

    def test_other_integrity_errors_propagate(self, db_session, facility, resident):
        error = self._integrity_error("FOREIGN KEY constraint failed")

        with patch.object(db_session, "commit", side_effect=error):
            with pytest.raises(IntegrityError):
                create_booking(db_session, resident, candidate(facility.id))


class TestListBookings:
    """Test staff-scoped booking listing."""

    def test_assigned_facility_upcoming_only(
        self, db_session, make_staff, make_facility, resident, make_booking, assign
    ):
        staff = make_staff()
        assigned = make_facility(name="Assigned Court")
        other = make_facility(name="Other Court")
        assign(staff, assigned)
        today = date(2025, 6, 10)

        upcoming = make_booking(assigned, resident, today)
        later = make_booking(assigned, resident, today + timedelta(days=3))
        make_booking(assigned, resident, today - timedelta(days=1))
        make_booking(other, resident, today)

        bookings = list_bookings(db_session, staff, today=today)

        assert [b.id for b in bookings] == [later.id, upcoming.id]
        assert all(b.facility_id == assigned.id and b.date >= today for b in bookings)

    def test_no_assignments_returns_empty(self, db_session, staff_member, facility, resident, make_booking):
        make_booking(facility, resident, date.today() + timedelta(days=1))

        assert list_bookings(db_session, staff_member) == []

    def test_admin_sees_all_facilities(self, db_session, admin, make_facility, resident, make_booking):
        day = date(2025, 6, 10)
        make_booking(make_facility(name="Court"), resident, day)
        make_booking(make_facility(name="Pool"), resident, day)

        assert len(list_bookings(db_session, admin, today=day)) == 2

    def test_filters(self, db_session, admin, make_facility, resident, make_booking):
        day = date(2025, 6, 10)
        court = make_facility(name="Court")
        pool = make_facility(name="Pool")
        make_booking(court, resident, day, status="approved")
        make_booking(court, resident, day, start=time(11, 0), end=time(12, 0))
        make_booking(pool, resident, day)

        assert len(list_bookings(db_session, admin, status="approved", today=day)) == 1
        assert len(list_bookings(db_session, admin, facility_id=pool.id, today=day)) == 1

    def test_date_filter_overrides_upcoming_default(self, db_session, admin, facility, resident, make_booking):
        past = date(2025, 1, 1)
        make_booking(facility, resident, past)

        assert list_bookings(db_session, admin, today=date(2025, 6, 1)) == []
        assert len(list_bookings(db_session, admin, on_date=past, today=date(2025, 6, 1))) == 1
        assert len(list_bookings(db_session, admin, include_past=True, today=date(2025, 6, 1))) == 1

    def test_ordering(self, db_session, admin, facility, resident, make_booking):
        day = date(2025, 6, 10)
        late = make_booking(facility, resident, day, start=time(15, 0), end=time(16, 0))
        early = make_booking(facility, resident, day, start=time(8, 0), end=time(9, 0))
        next_day = make_booking(facility, resident, day + timedelta(days=1))

        ids = [b.id for b in list_bookings(db_session, admin, today=day)]

        assert ids == [next_day.id, early.id, late.id]

    def test_resident_bookings(self, db_session, facility, make_resident, make_booking):
        alice = make_resident()
        bob = make_resident(name="Bob", email="bob@example.com")
        mine = make_booking(facility, alice, JUNE_1)
        make_booking(facility, bob, JUNE_1, start=time(11, 0), end=time(12, 0))

        assert [b.id for b in list_resident_bookings(db_session, alice)] == [mine.id]


class TestGetBooking:
    """Test role checks on get_booking()."""

    def test_owner_can_view(self, db_session, facility, resident, make_booking):
        booking = make_booking(facility, resident, JUNE_1)

        result = get_booking(db_session, booking.id, resident=resident)

        assert result.ok
        assert result.value.facility.name == facility.name

    def test_other_resident_forbidden(self, db_session, facility, make_resident, make_booking):
        booking = make_booking(facility, make_resident(), JUNE_1)
        intruder = make_resident(name="Mallory", email="mallory@example.com")

        result = get_booking(db_session, booking.id, resident=intruder)

        assert result.reason == results.NOT_BOOKING_OWNER
        assert result.rejection.status_code == 403

    def test_unassigned_staff_forbidden(self, db_session, facility, resident, staff_member, make_booking):
        booking = make_booking(facility, resident, JUNE_1)

        result = get_booking(db_session, booking.id, staff=staff_member)

        assert result.reason == results.FACILITY_NOT_ASSIGNED

    def test_assigned_staff_and_admin_allowed(
        self, db_session, facility, resident, staff_member, admin, make_booking, assign
    ):
        booking = make_booking(facility, resident, JUNE_1)
        assign(staff_member, facility)

        assert get_booking(db_session, booking.id, staff=staff_member).ok
        assert get_booking(db_session, booking.id, staff=admin).ok

    def test_missing_booking(self, db_session, resident):
        result = get_booking(db_session, 12345, resident=resident)

        assert result.reason == results.BOOKING_NOT_FOUND
        assert result.rejection.kind is RejectionKind.NOT_FOUND


class TestTodayLocal:
    """Test today_local()."""

    def test_unknown_timezone_falls_back(self):
        settings = MagicMock(timezone="Mars/Olympus_Mons")
        with patch("facility_reservations.services.bookings.get_settings", return_value=settings):
            assert today_local() == date.today()
