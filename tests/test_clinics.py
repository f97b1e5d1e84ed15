import pytest

from fastapi.testclient import TestClient

API = "/api/v1/clinics"


def week(open_time="09:00", close_time="17:00", days=range(5)):
    return [
        {"day_of_week": day, "open_time": open_time, "close_time": close_time}
        for day in days
    ]


@pytest.mark.integration
class TestClinics:
    """Test suite for clinic setup and staff assignment."""

    def test_create_clinic_fills_missing_days(self, client: TestClient, admin_headers):
        response = client.post(
            API,
            json={"name": "Bayside Dental", "code": "bay-1", "operating_hours": week()},
            headers=admin_headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data["code"] == "BAY-1"
        hours = sorted(data["operating_hours"], key=lambda row: row["day_of_week"])
        assert len(hours) == 7
        assert [row["is_closed"] for row in hours] == [False] * 5 + [True] * 2
        assert hours[0]["open_time"] == "09:00:00"

    def test_create_clinic_without_hours(self, client, admin_headers):
        created = client.post(API, json={"name": "Bayside Dental", "code": "BAY"}, headers=admin_headers)
        clinic_id = created.json()["id"]

        next_slot = client.get(
            "/api/v1/appointments/next-slot",
            params={"clinic_id": clinic_id, "date": "2030-01-08"},
            headers=admin_headers
        )

        assert created.status_code == 201
        assert created.json()["operating_hours"] == []
        assert next_slot.status_code == 400
        assert next_slot.json()["error_code"] == "NO_OPERATING_HOURS"

    def test_duplicate_code_rejected(self, client, admin_headers, clinic):
        response = client.post(API, json={"name": "Copy", "code": "HRB"}, headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["error_code"] == "CLINIC_CODE_EXISTS"

    def test_closing_before_opening_rejected(self, client, admin_headers):
        response = client.post(
            API,
            json={"name": "Bayside Dental", "code": "BAY", "operating_hours": week("17:00", "09:00")},
            headers=admin_headers
        )

        assert response.status_code == 422

    def test_day_listed_twice_rejected(self, client, admin_headers, clinic):
        response = client.put(
            f"{API}/{clinic.id}/operating-hours",
            json={"operating_hours": week(days=[1, 1])},
            headers=admin_headers
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "DUPLICATE_OPERATING_DAY"

    def test_replacing_hours_closes_the_clinic_for_slots(self, client, admin_headers, clinic, dentist):
        client.put(
            f"{API}/{clinic.id}/operating-hours",
            json={"operating_hours": week(days=[0, 2, 3, 4])},
            headers=admin_headers
        )

        slots = client.get(
            "/api/v1/appointments/available-slots",
            params={"clinic_id": str(clinic.id), "date": "2030-01-08"}
        )

        assert slots.status_code == 200
        assert slots.json()["slots"] == []

    def test_assign_and_unassign_staff(self, client, admin_headers, other_clinic, staff_user):
        assigned = client.post(f"{API}/{other_clinic.id}/staff/{staff_user.id}", headers=admin_headers)
        removed = client.delete(f"{API}/{other_clinic.id}/staff/{staff_user.id}", headers=admin_headers)
        again = client.delete(f"{API}/{other_clinic.id}/staff/{staff_user.id}", headers=admin_headers)

        assert assigned.status_code == 200
        assert [member["email"] for member in assigned.json()["staff"]] == ["nurse@harbourdental.com"]
        assert removed.status_code == 204
        assert again.status_code == 404
        assert again.json()["error_code"] == "ASSIGNMENT_NOT_FOUND"

    def test_patients_cannot_be_assigned(self, client, admin_headers, clinic, patient):
        response = client.post(f"{API}/{clinic.id}/staff/{patient.user_id}", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_ROLE"

    def test_unknown_clinic(self, client, admin_headers):
        response = client.get(f"{API}/00000000-0000-0000-0000-000000000000", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "CLINIC_NOT_FOUND"

    def test_staff_can_read_but_not_create(self, client, staff_headers, clinic):
        listing = client.get(API, headers=staff_headers)
        created = client.post(API, json={"name": "Nope", "code": "NOPE"}, headers=staff_headers)

        assert [item["code"] for item in listing.json()] == ["HRB"]
        assert created.status_code == 403
