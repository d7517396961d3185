"""
API tests for authentication endpoints.
"""

from fastapi import status

from conftest import PASSWORD, bearer, make_user

SIGNUP = {
    "employee_id": "emp100",
    "name": "Alice Brown",
    "email": "alice@example.com",
    "password": "Secret123",
    "department": "Finance",
}


class TestSignup:
    """POST /auth/signup"""

    def test_signup_returns_token_and_profile(self, client):
        response = client.post("/api/v1/auth/signup", json=SIGNUP)

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User registered successfully"
        assert body["data"]["token"]
        user = body["data"]["user"]
        assert user["employee_id"] == "EMP100"
        assert user["role"] == "user"
        assert "hashed_password" not in user
        assert "password" not in user

    def test_signup_cannot_choose_admin_role(self, client):
        response = client.post("/api/v1/auth/signup", json={**SIGNUP, "role": "admin"})

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["data"]["user"]["role"] == "user"

    def test_duplicate_employee_id(self, client):
        client.post("/api/v1/auth/signup", json=SIGNUP)
        response = client.post(
            "/api/v1/auth/signup", json={**SIGNUP, "email": "someone@example.com"}
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json() == {"success": False, "message": "Employee ID already exists"}

    def test_weak_password(self, client):
        response = client.post("/api/v1/auth/signup", json={**SIGNUP, "password": "password"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["message"] == "Validation failed"
        assert [e["field"] for e in body["errors"]] == ["password"]


class TestLogin:
    """POST /auth/login"""

    def test_login(self, client, test_user):
        response = client.post(
            "/api/v1/auth/login", json={"employee_id": "emp001", "password": PASSWORD}
        )

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["message"] == "Login successful"
        assert body["data"]["user"]["last_login"] is not None

        profile = client.get(
            "/api/v1/auth/profile",
            headers={"Authorization": f"Bearer {body['data']['token']}"},
        )
        assert profile.json()["data"]["employee_id"] == "EMP001"

    def test_wrong_password(self, client, test_user):
        response = client.post(
            "/api/v1/auth/login", json={"employee_id": "EMP001", "password": "Nope1234"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message"] == "Invalid credentials"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_deactivated_account(self, client, db):
        make_user(db, "EMP050", is_active=False)
        response = client.post(
            "/api/v1/auth/login", json={"employee_id": "EMP050", "password": PASSWORD}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message"].startswith("Account is deactivated")


class TestTokens:
    """Bearer token checks on protected routes."""

    def test_missing_token(self, client):
        response = client.get("/api/v1/auth/profile")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message"] == "Access denied. No token provided."

    def test_garbage_token(self, client):
        response = client.get(
            "/api/v1/auth/profile", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message"] == "Invalid token"

    def test_token_of_deactivated_user(self, client, db):
        user = make_user(db, "EMP051", is_active=False)
        response = client.get("/api/v1/auth/profile", headers=bearer(user))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message"] == "Account is deactivated."


class TestAdminSignup:
    """POST /auth/admin/signup"""

    def test_user_cannot_create_admin(self, client, auth_headers):
        response = client.post("/api/v1/auth/admin/signup", json=SIGNUP, headers=auth_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_creates_admin(self, client, admin_headers):
        response = client.post("/api/v1/auth/admin/signup", json=SIGNUP, headers=admin_headers)

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["message"] == "Admin account created successfully"
        assert body["data"]["role"] == "admin"


class TestProfile:
    """GET/PUT /auth/profile and POST /auth/logout"""

    def test_update_profile(self, client, auth_headers):
        response = client.put(
            "/api/v1/auth/profile",
            json={"position": "Team Lead", "department": "Platform"},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["position"] == "Team Lead"
        assert data["department"] == "Platform"

    def test_empty_update(self, client, auth_headers):
        response = client.put("/api/v1/auth/profile", json={}, headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "No valid fields to update"

    def test_logout(self, client, auth_headers):
        response = client.post("/api/v1/auth/logout", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True, "message": "Logged out successfully"}
