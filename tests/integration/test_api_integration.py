"""
Integration tests for API endpoints.

Tests complete HTTP flows (facility setup, booking review, maintenance
triage) against a file-backed database with one session per request.
"""

from datetime import date, timedelta

import pytest
from sqlalchemy import select

from facility_reservations.models import Staff

pytestmark = pytest.mark.integration

API = "/api/v1"


def headers(user_id):
    return {"X-User-ID": str(user_id)}


@pytest.fixture
def people(seed):
    """An admin, a facility manager and two residents."""
    return {
        "admin": seed["staff"]("Ada Admin", "EMP001", is_admin=True),
        "manager": seed["staff"]("Manny Manager", "EMP002"),
        "alice": seed["resident"](),
        "bob": seed["resident"]("Bob Resident", "bob@example.com"),
    }


class TestBookingLifecycle:
    """Test facility setup, booking, review and cancellation end to end."""

    def test_full_booking_flow(self, integration_api_client, people, session_factory):
        """
        Given: An admin, an assigned manager and two residents
        When: Residents book, the manager reviews and a resident cancels
        Then: Conflicts, scoping and cancellation behave across requests
        """
        client = integration_api_client
        on_date = (date.today() + timedelta(days=10)).isoformat()

        # Admin creates the facility and assigns the manager
        created = client.post(
            f"{API}/facilities",
            json={
                "name": "Court 1",
                "type": "tennis",
                "location": "North Block",
                "capacity": 4,
                "open_time": "06:00",
                "close_time": "22:00",
            },
            headers=headers(people["admin"]),
        )
        assert created.status_code == 201
        facility_id = created.json()["data"]["id"]

        with session_factory() as session:
            manager_staff_id = session.scalar(select(Staff.id).where(Staff.user_id == people["manager"]))

        # Manager has no facilities yet
        assert client.get(f"{API}/bookings", headers=headers(people["manager"])).json()["data"] == []

        assigned = client.post(
            f"{API}/facilities/{facility_id}/staff",
            json={"staff_id": manager_staff_id, "is_primary": True},
            headers=headers(people["admin"]),
        )
        assert assigned.status_code == 201

        # Alice books 09:00-10:00, Bob's overlapping request is refused
        body = {
            "facility_id": facility_id,
            "date": on_date,
            "start_time": "09:00",
            "end_time": "10:00",
            "attendees": 2,
            "purpose": "Morning singles",
        }
        alice_booking = client.post(f"{API}/bookings", json=body, headers=headers(people["alice"]))
        assert alice_booking.status_code == 201
        booking_id = alice_booking.json()["data"]["id"]

        bob_body = {**body, "start_time": "09:30", "end_time": "11:00"}
        refused = client.post(f"{API}/bookings", json=bob_body, headers=headers(people["bob"]))
        assert refused.status_code == 400
        assert refused.json()["reason"] == "time conflict"

        # Bob cannot see or cancel Alice's booking
        assert client.get(f"{API}/bookings/{booking_id}", headers=headers(people["bob"])).status_code == 403
        assert client.put(f"{API}/bookings/{booking_id}/cancel", headers=headers(people["bob"])).status_code == 403

        # Manager sees and approves the booking
        listed = client.get(f"{API}/bookings", headers=headers(people["manager"])).json()["data"]
        assert [b["id"] for b in listed] == [booking_id]
        assert listed[0]["resident_name"] == "Alice Resident"

        approved = client.put(
            f"{API}/bookings/{booking_id}/status",
            json={"status": "approved"},
            headers=headers(people["manager"]),
        )
        assert approved.status_code == 200
        assert approved.json()["data"]["approver_name"] == "Manny Manager"

        # Alice sees the approval without the approver's identity
        mine = client.get(f"{API}/bookings/my-bookings", headers=headers(people["alice"])).json()["data"]
        assert mine[0]["status"] == "approved"
        assert mine[0]["approval_date"] is not None
        assert "approver_name" not in mine[0]

        # Alice cancels, which frees the slot for Bob
        cancelled = client.put(f"{API}/bookings/{booking_id}/cancel", headers=headers(people["alice"]))
        assert cancelled.json()["data"]["status"] == "cancelled"

        rebooked = client.post(f"{API}/bookings", json=bob_body, headers=headers(people["bob"]))
        assert rebooked.status_code == 201

        # A cancelled booking cannot be revived
        revived = client.put(
            f"{API}/bookings/{booking_id}/status",
            json={"status": "approved"},
            headers=headers(people["manager"]),
        )
        assert revived.status_code == 400
        assert revived.json()["reason"] == "already cancelled"

    def test_closed_facility_refuses_bookings(self, integration_api_client, people, seed):
        """
        Given: A facility an admin has closed
        When: A resident tries to book it
        Then: The request is refused as not open
        """
        client = integration_api_client
        facility_id = seed["facility"]()

        closed = client.put(
            f"{API}/facilities/{facility_id}", json={"status": "closed"}, headers=headers(people["admin"])
        )
        assert closed.json()["data"]["status"] == "closed"

        response = client.post(
            f"{API}/bookings",
            json={
                "facility_id": facility_id,
                "date": (date.today() + timedelta(days=2)).isoformat(),
                "start_time": "09:00",
                "end_time": "10:00",
                "attendees": 2,
                "purpose": "Morning singles",
            },
            headers=headers(people["alice"]),
        )

        assert response.status_code == 400
        assert response.json()["reason"] == "facility not open"


class TestMaintenanceFlow:
    """Test maintenance reporting and triage end to end."""

    def test_report_and_complete(self, integration_api_client, people, seed):
        """
        Given: A resident reporting two issues of different priority
        When: The admin lists and completes them
        Then: Reports come most urgent first and completion is stamped
        """
        client = integration_api_client
        facility_id = seed["facility"]()

        for title, priority in (("Loose fence panel", "low"), ("Exposed wiring", "critical")):
            response = client.post(
                f"{API}/maintenance",
                json={
                    "facility_id": facility_id,
                    "title": title,
                    "description": "Spotted during the evening session.",
                    "priority": priority,
                },
                headers=headers(people["alice"]),
            )
            assert response.status_code == 201

        listed = client.get(f"{API}/maintenance", headers=headers(people["admin"])).json()["data"]
        assert [r["priority"] for r in listed] == ["critical", "low"]
        assert listed[0]["reporter_name"] == "Alice Resident"

        # Unassigned manager sees nothing
        assert client.get(f"{API}/maintenance", headers=headers(people["manager"])).json()["data"] == []

        report_id = listed[0]["id"]
        completed = client.put(
            f"{API}/maintenance/{report_id}/status",
            json={"status": "completed", "feedback": "Wiring made safe"},
            headers=headers(people["admin"]),
        )
        assert completed.json()["data"]["completion_date"] is not None

        own = client.get(f"{API}/maintenance/my-reports", headers=headers(people["alice"])).json()["data"]
        statuses = {r["title"]: r["status"] for r in own}
        assert statuses == {"Exposed wiring": "completed", "Loose fence panel": "reported"}

        # Bob may not read Alice's report
        assert client.get(f"{API}/maintenance/{report_id}", headers=headers(people["bob"])).status_code == 403
