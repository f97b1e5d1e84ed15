import pytest

from fastapi.testclient import TestClient

from app.domain.auth.models import User
from app.core.security import create_access_token, verify_password, get_password_hash

API = "/api/v1/auth"


@pytest.mark.auth
@pytest.mark.integration
class TestAuthentication:
    """Test authentication endpoints and functionality."""

    def test_login_success(self, client: TestClient, db_session, staff_user: User) -> None:
        """Test successful login."""
        response = client.post(
            f"{API}/login", json={"email": "nurse@harbourdental.com", "password": "password123"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == 3600
        assert data["access_token"]
        assert data["user"]["email"] == "nurse@harbourdental.com"
        assert data["user"]["role"] == "staff"
        db_session.refresh(staff_user)
        assert staff_user.last_login_at is not None

    def test_login_invalid_password(self, client: TestClient, staff_user: User) -> None:
        """Test login with a wrong password."""
        response = client.post(
            f"{API}/login", json={"email": "nurse@harbourdental.com", "password": "wrongpassword"}
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_CREDENTIALS"

    def test_login_unknown_user(self, client: TestClient) -> None:
        response = client.post(
            f"{API}/login", json={"email": "nobody@harbourdental.com", "password": "password123"}
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_CREDENTIALS"

    def test_login_inactive_user(self, client: TestClient, db_session, staff_user: User) -> None:
        """Test login with a deactivated account."""
        staff_user.is_active = False
        db_session.commit()

        response = client.post(
            f"{API}/login", json={"email": "nurse@harbourdental.com", "password": "password123"}
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "ACCOUNT_INACTIVE"

    def test_token_from_login_is_accepted(self, client: TestClient, staff_user: User, clinic) -> None:
        token = client.post(
            f"{API}/login", json={"email": "nurse@harbourdental.com", "password": "password123"}
        ).json()["access_token"]

        response = client.get(f"{API}/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(staff_user.id)
        assert data["clinic_ids"] == [str(clinic.id)]
        assert "notifications:read" in data["permissions"]

    def test_me_for_patient(self, client: TestClient, patient_headers, patient) -> None:
        response = client.get(f"{API}/me", headers=patient_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["role"] == "patient"
        assert data["patient_id"] == str(patient.id)

    def test_me_without_token(self, client: TestClient) -> None:
        """Test accessing a protected endpoint without a token."""
        response = client.get(f"{API}/me")

        assert response.status_code == 401

    def test_me_with_invalid_token(self, client: TestClient) -> None:
        """Test accessing a protected endpoint with an invalid token."""
        response = client.get(f"{API}/me", headers={"Authorization": "Bearer invalid_token"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    def test_me_with_expired_token(self, client: TestClient, staff_user: User) -> None:
        token = create_access_token(str(staff_user.id), {"role": "staff", "permissions": []}, expires_minutes=-1)

        response = client.get(f"{API}/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401


@pytest.mark.auth
@pytest.mark.unit
class TestPasswordSecurity:
    """Test password hashing and verification."""

    def test_password_hashing(self) -> None:
        password = "TestPassword123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert verify_password(password, hashed)
        assert not verify_password("WrongPassword", hashed)

    def test_user_password_helpers(self) -> None:
        user = User(email="a@harbourdental.com", first_name="A", last_name="B")
        user.set_password("secret-pass")

        assert user.password_hash != "secret-pass"
        assert user.verify_password("secret-pass")
