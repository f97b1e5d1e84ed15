import pytest
from datetime import date

from fastapi.testclient import TestClient

API = "/api/v1/schedules"

TUESDAY = date(2030, 1, 8)


def schedule_payload(doctor, clinic, day_of_week, start, end, **extra):
    return {
        "doctor_id": str(doctor.id),
        "clinic_id": str(clinic.id),
        "day_of_week": day_of_week,
        "start_time": start,
        "end_time": end,
        **extra,
    }


@pytest.mark.schedules
@pytest.mark.integration
class TestDoctorSchedules:
    """Test suite for dentist working windows."""

    def test_create_schedule(self, client: TestClient, admin_headers, clinic, dentist):
        response = client.post(
            API,
            json=schedule_payload(dentist, clinic, 6, "10:00", "14:00", notes="Sunday cover"),
            headers=admin_headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data["day_of_week"] == 6
        assert data["effective_from"] == "2030-01-07"
        assert data["is_active"] is True

    def test_overlap_at_another_clinic_rejected(self, client, admin_headers, other_clinic, dentist):
        response = client.post(
            API, json=schedule_payload(dentist, other_clinic, 1, "11:00", "14:00"), headers=admin_headers
        )

        assert response.status_code == 409
        error = response.json()
        assert error["error_code"] == "SCHEDULE_CONFLICT"
        assert error["message"] == "Schedule conflicts with existing schedule from 09:00 to 17:00"

    def test_touching_window_allowed(self, client, admin_headers, other_clinic, dentist):
        response = client.post(
            API, json=schedule_payload(dentist, other_clinic, 1, "17:00", "18:00"), headers=admin_headers
        )

        assert response.status_code == 201

    def test_disjoint_effective_periods_do_not_conflict(self, client, admin_headers, clinic, dentist):
        first = client.post(
            API,
            json=schedule_payload(dentist, clinic, 6, "09:00", "12:00", effective_until="2030-01-31"),
            headers=admin_headers
        )
        second = client.post(
            API,
            json=schedule_payload(dentist, clinic, 6, "10:00", "13:00", effective_from="2030-02-01"),
            headers=admin_headers
        )

        assert first.status_code == 201
        assert second.status_code == 201

    def test_break_must_sit_inside_window(self, client, admin_headers, clinic, dentist):
        response = client.post(
            API,
            json=schedule_payload(dentist, clinic, 6, "09:00", "12:00", break_start="11:30", break_end="12:30"),
            headers=admin_headers
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_BREAK"

    def test_only_dentists_get_schedules(self, client, admin_headers, clinic, staff_user):
        response = client.post(
            API, json=schedule_payload(staff_user, clinic, 0, "09:00", "12:00"), headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_ROLE"

    def test_bulk_create_reports_failures(self, client, admin_headers, clinic, other_clinic, dentist):
        response = client.post(
            f"{API}/bulk",
            json={"schedules": [
                schedule_payload(dentist, clinic, 6, "09:00", "12:00"),
                schedule_payload(dentist, other_clinic, 0, "10:00", "11:00"),
            ]},
            headers=admin_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data["created"]) == 1
        assert data["errors"] == [{
            "index": 1,
            "message": "Schedule conflicts with existing schedule from 09:00 to 17:00",
            "error_code": "SCHEDULE_CONFLICT",
        }]

    def test_update_rechecks_conflicts(self, client, admin_headers, other_clinic, dentist):
        created = client.post(
            API, json=schedule_payload(dentist, other_clinic, 1, "17:00", "19:00"), headers=admin_headers
        ).json()

        response = client.patch(f"{API}/{created['id']}", json={"start_time": "16:00"}, headers=admin_headers)

        assert response.status_code == 409

    def test_deactivated_schedule_stops_offering_slots(self, client, admin_headers, clinic, dentist):
        schedules = client.get(f"{API}/doctor/{dentist.id}", headers=admin_headers).json()
        tuesday = next(s for s in schedules if s["day_of_week"] == 1)

        deleted = client.delete(f"{API}/{tuesday['id']}", headers=admin_headers)
        slots = client.get(
            "/api/v1/appointments/available-slots",
            params={"clinic_id": str(clinic.id), "date": TUESDAY.isoformat(), "dentist_id": str(dentist.id)}
        )

        assert deleted.status_code == 204
        assert slots.json()["slots"] == []
        remaining = client.get(API, params={"doctor_id": str(dentist.id)}, headers=admin_headers).json()
        assert len(remaining) == 5

    def test_dentist_cannot_create_schedules(self, client, dentist_headers, clinic, dentist):
        response = client.post(
            API, json=schedule_payload(dentist, clinic, 6, "09:00", "12:00"), headers=dentist_headers
        )

        assert response.status_code == 403

    def test_available_doctors_by_date(self, client, admin_headers, clinic, dentist, second_dentist):
        tuesday = client.get(
            f"{API}/available", params={"clinic_id": str(clinic.id), "date": TUESDAY.isoformat()}
        ).json()
        saturday = client.get(
            f"{API}/available", params={"clinic_id": str(clinic.id), "day_of_week": 5}
        ).json()

        assert [d["doctor_name"] for d in tuesday] == ["Alice Adams", "Bob Brown"]
        assert [d["doctor_name"] for d in saturday] == ["Alice Adams"]
        assert tuesday[0]["schedules"][0]["break_start"] == "12:00:00"

    def test_available_doctors_requires_day(self, client, clinic):
        response = client.get(f"{API}/available", params={"clinic_id": str(clinic.id)})

        assert response.status_code == 422
        assert response.json()["error_code"] == "MISSING_DAY"


@pytest.mark.schedules
@pytest.mark.integration
class TestDoctorLeaves:
    """Test suite for leave requests and approval."""

    def _request(self, client, headers, dentist, start="2030-01-08", end="2030-01-08", **extra):
        return client.post(
            f"{API}/leaves",
            json={
                "doctor_id": str(dentist.id),
                "leave_type": "ANNUAL",
                "start_date": start,
                "end_date": end,
                **extra,
            },
            headers=headers
        )

    def test_dentist_requests_own_leave(self, client, dentist_headers, dentist):
        response = self._request(client, dentist_headers, dentist, reason="Family event")

        assert response.status_code == 201
        assert response.json()["status"] == "PENDING"

    def test_dentist_cannot_request_for_colleague(self, client, dentist_headers, second_dentist):
        response = self._request(client, dentist_headers, second_dentist)

        assert response.status_code == 403
        assert response.json()["error_code"] == "LEAVE_SCOPE_VIOLATION"

    def test_overlapping_leave_rejected(self, client, dentist_headers, dentist):
        self._request(client, dentist_headers, dentist, end="2030-01-10")

        response = self._request(client, dentist_headers, dentist, start="2030-01-10", end="2030-01-11")

        assert response.status_code == 409
        assert response.json()["error_code"] == "LEAVE_CONFLICT"

    def test_leave_in_the_past_rejected(self, client, dentist_headers, dentist):
        response = self._request(client, dentist_headers, dentist, start="2030-01-06", end="2030-01-06")

        assert response.status_code == 422
        assert response.json()["error_code"] == "PAST_DATE"

    def test_partial_leave_needs_both_times(self, client, dentist_headers, dentist):
        response = self._request(client, dentist_headers, dentist, start_time="10:00")

        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_LEAVE_TIMES"

    def test_approval_hides_dentist_from_availability(
        self, client, admin_headers, dentist_headers, admin_user, clinic, dentist, second_dentist
    ):
        leave_id = self._request(client, dentist_headers, dentist).json()["id"]

        approved = client.post(f"{API}/leaves/{leave_id}/approve", json={"approved": True}, headers=admin_headers)
        available = client.get(
            f"{API}/available", params={"clinic_id": str(clinic.id), "date": TUESDAY.isoformat()}
        ).json()

        assert approved.status_code == 200
        assert approved.json()["status"] == "APPROVED"
        assert approved.json()["approved_by"] == str(admin_user.id)
        assert [d["doctor_name"] for d in available] == ["Bob Brown"]

    def test_rejection_needs_reason(self, client, admin_headers, dentist_headers, dentist):
        leave_id = self._request(client, dentist_headers, dentist).json()["id"]

        missing = client.post(f"{API}/leaves/{leave_id}/approve", json={"approved": False}, headers=admin_headers)
        rejected = client.post(
            f"{API}/leaves/{leave_id}/approve",
            json={"approved": False, "rejection_reason": "Clinic fully booked"},
            headers=admin_headers
        )
        again = client.post(f"{API}/leaves/{leave_id}/approve", json={"approved": True}, headers=admin_headers)

        assert missing.status_code == 422
        assert missing.json()["error_code"] == "REJECTION_REASON_REQUIRED"
        assert rejected.json()["status"] == "REJECTED"
        assert rejected.json()["rejection_reason"] == "Clinic fully booked"
        assert again.status_code == 404

    def test_cancel_leave(self, client, dentist_headers, dentist):
        leave_id = self._request(client, dentist_headers, dentist).json()["id"]

        cancelled = client.post(f"{API}/leaves/{leave_id}/cancel", headers=dentist_headers)
        twice = client.post(f"{API}/leaves/{leave_id}/cancel", headers=dentist_headers)
        leaves = client.get(f"{API}/leaves/doctor/{dentist.id}", headers=dentist_headers).json()

        assert cancelled.json()["status"] == "CANCELLED"
        assert twice.status_code == 400
        assert twice.json()["error_code"] == "LEAVE_NOT_CANCELLABLE"
        assert len(leaves) == 1

    def test_dentist_cannot_approve(self, client, dentist_headers, dentist):
        leave_id = self._request(client, dentist_headers, dentist).json()["id"]

        response = client.post(f"{API}/leaves/{leave_id}/approve", json={"approved": True}, headers=dentist_headers)

        assert response.status_code == 403
