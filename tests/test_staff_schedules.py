import pytest

from fastapi.testclient import TestClient

from app.domain.notifications.models import Notification, NotificationPriority, NotificationType

API = "/api/v1/staff-schedules"


def shift_payload(staff, clinic, date, start, end, **extra):
    return {
        "staff_id": str(staff.id),
        "clinic_id": str(clinic.id),
        "date": date,
        "start_time": start,
        "end_time": end,
        **extra,
    }


def weekly(days, **extra):
    return {"is_recurring": True, "recurrence_frequency": "WEEKLY", "recurrence_days_of_week": days, **extra}


def inbox(db, user, type):
    return db.query(Notification).filter(Notification.user_id == user.id, Notification.type == type).all()


@pytest.mark.staff_schedules
@pytest.mark.integration
class TestStaffShiftAssignment:
    """Test suite for shift assignment and conflict detection."""

    def test_assign_shift_notifies_staff(
        self, client: TestClient, db_session, admin_headers, clinic, staff_user, channel_mocks
    ):
        response = client.post(
            API, json=shift_payload(staff_user, clinic, "2030-01-08", "08:00", "16:00", shift_type="FULL_DAY"),
            headers=admin_headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "SCHEDULED"
        assert data["shift_type"] == "FULL_DAY"

        assigned = inbox(db_session, staff_user, NotificationType.SCHEDULE_ASSIGNMENT)
        assert len(assigned) == 1
        assert "Harbour Dental" in assigned[0].message
        recipient, subject, _, channel = channel_mocks.enqueue_delivery.call_args.args
        assert (recipient, subject, channel) == ("nurse@harbourdental.com", "New Shift Assigned", "email")

    def test_one_off_shift_clashing_with_recurring_series(self, client, db_session, admin_headers, clinic, staff_user):
        series = client.post(
            API, json=shift_payload(staff_user, clinic, "2030-01-07", "08:00", "12:00", **weekly([0, 2])),
            headers=admin_headers
        )

        response = client.post(
            API, json=shift_payload(staff_user, clinic, "2030-01-23", "10:00", "14:00"), headers=admin_headers
        )

        assert series.status_code == 201
        assert response.status_code == 409
        error = response.json()
        assert error["error_code"] == "SCHEDULE_CONFLICT"
        assert error["details"]["first_conflict_date"] == "2030-01-23"
        assert error["details"]["conflicts"][0]["id"] == series.json()["id"]

        alerts = inbox(db_session, staff_user, NotificationType.SCHEDULE_CONFLICT)
        assert len(alerts) == 1
        assert alerts[0].priority == NotificationPriority.HIGH

    def test_recurring_series_clashing_with_later_one_off(self, client, admin_headers, clinic, staff_user):
        client.post(
            API, json=shift_payload(staff_user, clinic, "2030-02-13", "09:00", "11:00"), headers=admin_headers
        )

        response = client.post(
            API, json=shift_payload(staff_user, clinic, "2030-01-07", "08:00", "12:00", **weekly([2])),
            headers=admin_headers
        )

        assert response.status_code == 409
        assert response.json()["details"]["first_conflict_date"] == "2030-02-13"

    def test_touching_shifts_and_other_days_allowed(self, client, admin_headers, clinic, staff_user):
        client.post(
            API, json=shift_payload(staff_user, clinic, "2030-01-07", "08:00", "12:00", **weekly([0, 2])),
            headers=admin_headers
        )

        afternoon = client.post(
            API, json=shift_payload(staff_user, clinic, "2030-01-23", "12:00", "16:00"), headers=admin_headers
        )
        tuesday = client.post(
            API, json=shift_payload(staff_user, clinic, "2030-01-22", "08:00", "12:00"), headers=admin_headers
        )

        assert afternoon.status_code == 201
        assert tuesday.status_code == 201

    def test_series_end_date_limits_conflicts(self, client, admin_headers, clinic, staff_user):
        client.post(
            API,
            json=shift_payload(
                staff_user, clinic, "2030-01-07", "08:00", "12:00",
                **weekly([0], recurrence_end_date="2030-01-31")
            ),
            headers=admin_headers
        )

        response = client.post(
            API, json=shift_payload(staff_user, clinic, "2030-02-04", "09:00", "10:00"), headers=admin_headers
        )

        assert response.status_code == 201

    def test_staff_must_belong_to_clinic(self, client, admin_headers, other_clinic, staff_user):
        response = client.post(
            API, json=shift_payload(staff_user, other_clinic, "2030-01-08", "08:00", "12:00"), headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "STAFF_NOT_ASSIGNED"

    def test_recurring_shift_needs_frequency(self, client, admin_headers, clinic, staff_user):
        response = client.post(
            API,
            json=shift_payload(staff_user, clinic, "2030-01-08", "08:00", "12:00", is_recurring=True),
            headers=admin_headers
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_RECURRENCE"

    def test_staff_cannot_assign_shifts(self, client, staff_headers, clinic, staff_user):
        response = client.post(
            API, json=shift_payload(staff_user, clinic, "2030-01-08", "08:00", "12:00"), headers=staff_headers
        )

        assert response.status_code == 403


@pytest.mark.staff_schedules
@pytest.mark.integration
class TestStaffShiftChanges:

    def _shift(self, client, headers, staff, clinic, date="2030-01-08", start="08:00", end="12:00", **extra):
        response = client.post(API, json=shift_payload(staff, clinic, date, start, end, **extra), headers=headers)
        assert response.status_code == 201
        return response.json()["id"]

    def test_moving_shift_notifies_staff(self, client, db_session, admin_headers, clinic, staff_user):
        shift_id = self._shift(client, admin_headers, staff_user, clinic)

        response = client.patch(f"{API}/{shift_id}", json={"start_time": "09:00"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["start_time"] == "09:00:00"
        assert len(inbox(db_session, staff_user, NotificationType.SCHEDULE_CHANGE)) == 1

    def test_notes_change_is_silent(self, client, db_session, admin_headers, clinic, staff_user):
        shift_id = self._shift(client, admin_headers, staff_user, clinic)

        client.patch(f"{API}/{shift_id}", json={"notes": "Covers reception"}, headers=admin_headers)

        assert inbox(db_session, staff_user, NotificationType.SCHEDULE_CHANGE) == []

    def test_update_into_conflict_rejected(self, client, admin_headers, clinic, staff_user):
        self._shift(client, admin_headers, staff_user, clinic)
        later = self._shift(client, admin_headers, staff_user, clinic, start="13:00", end="17:00")

        response = client.patch(f"{API}/{later}", json={"start_time": "11:00"}, headers=admin_headers)

        assert response.status_code == 409

    def test_cancelled_shift_does_not_block(self, client, admin_headers, clinic, staff_user):
        first = self._shift(client, admin_headers, staff_user, clinic)
        client.patch(f"{API}/{first}", json={"status": "CANCELLED"}, headers=admin_headers)

        response = client.post(
            API, json=shift_payload(staff_user, clinic, "2030-01-08", "09:00", "11:00"), headers=admin_headers
        )

        assert response.status_code == 201

    def test_delete_shift_notifies_staff(self, client, db_session, admin_headers, clinic, staff_user):
        shift_id = self._shift(client, admin_headers, staff_user, clinic)

        deleted = client.delete(f"{API}/{shift_id}", headers=admin_headers)
        missing = client.get(f"{API}/{shift_id}", headers=admin_headers)

        assert deleted.status_code == 204
        assert missing.status_code == 404
        cancelled = inbox(db_session, staff_user, NotificationType.SCHEDULE_CANCELLED)
        assert cancelled[0].data == {"staff_schedule_id": shift_id}

    def test_list_shifts(self, client, admin_headers, staff_headers, clinic, staff_user):
        self._shift(client, admin_headers, staff_user, clinic)
        self._shift(client, admin_headers, staff_user, clinic, date="2030-01-09", shift_type="AFTERNOON")

        listing = client.get(API, params={"clinic_id": str(clinic.id)}, headers=staff_headers).json()
        afternoons = client.get(
            API, params={"clinic_id": str(clinic.id), "shift_type": "AFTERNOON"}, headers=staff_headers
        ).json()

        assert listing["total"] == 2
        assert [item["date"] for item in listing["items"]] == ["2030-01-08", "2030-01-09"]
        assert afternoons["total"] == 1


@pytest.mark.staff_schedules
@pytest.mark.integration
class TestStaffAvailabilityAndAnalytics:

    def test_availability_expands_recurring_shifts(self, client, admin_headers, clinic, dentist, staff_user):
        client.post(
            API, json=shift_payload(staff_user, clinic, "2030-01-07", "08:00", "12:00", **weekly([0, 2])),
            headers=admin_headers
        )

        wednesday = client.get(
            f"{API}/availability", params={"clinic_id": str(clinic.id), "date": "2030-01-16"}, headers=admin_headers
        ).json()
        tuesday = client.get(
            f"{API}/availability", params={"clinic_id": str(clinic.id), "date": "2030-01-15"}, headers=admin_headers
        ).json()

        assert wednesday["scheduled_count"] == 1
        assert wednesday["available_count"] == 1
        nurse = next(member for member in wednesday["staff"] if member["user_id"] == str(staff_user.id))
        assert nurse["is_scheduled"] is True
        assert nurse["shifts"][0]["start_time"] == "08:00"
        assert tuesday["scheduled_count"] == 0

    def test_availability_needs_clinic(self, client, admin_headers):
        response = client.get(f"{API}/availability", params={"date": "2030-01-16"}, headers=admin_headers)

        assert response.status_code == 422
        assert response.json()["error_code"] == "CLINIC_REQUIRED"

    def test_analytics_counts_occurrences(self, client, admin_headers, clinic, dentist, staff_user):
        client.post(
            API,
            json=shift_payload(
                staff_user, clinic, "2030-01-07", "08:00", "12:00",
                **weekly([0, 2], recurrence_end_date="2030-01-20")
            ),
            headers=admin_headers
        )
        client.post(
            API, json=shift_payload(dentist, clinic, "2030-01-08", "13:00", "17:00", shift_type="AFTERNOON"),
            headers=admin_headers
        )

        response = client.get(
            f"{API}/analytics",
            params={"clinic_id": str(clinic.id), "start_date": "2030-01-01", "end_date": "2030-01-31"},
            headers=admin_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_shifts"] == 5
        assert data["total_hours"] == 20.0
        assert data["by_status"]["SCHEDULED"] == {"count": 5, "hours": 20.0}
        assert data["shift_type_distribution"]["MORNING"] == 4
        assert data["shift_type_distribution"]["AFTERNOON"] == 1
        assert [entry["name"] for entry in data["staff_utilization"]] == ["Nora Nurse", "Alice Adams"]
        assert data["staff_utilization"][0]["hours"] == 16.0
