"""Unit tests for user API endpoints."""

import uuid

from fastapi.testclient import TestClient


def _email(prefix: str = "u") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}@ex.com"


def _register(client: TestClient, email: str, role: str = "student", password: str = "pwd1"):
    return client.post(
        "/api/users/register",
        json={"email": email, "password": password, "name": "Test User", "role": role},
    )


def test_register_user(client: TestClient):
    """Test user registration."""
    email = _email()
    response = _register(client, email)
    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == email
    assert data["user"]["name"] == "Test User"
    assert data["user"]["role"] == "student"
    assert data["access_token"]


def test_register_teacher(client: TestClient):
    response = _register(client, _email("t"), role="teacher")
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "teacher"


def test_register_unknown_role_rejected(client: TestClient):
    response = _register(client, _email(), role="admin")
    assert response.status_code == 422


def test_register_duplicate_email(client: TestClient):
    """Test registering with duplicate email."""
    email = _email()
    _register(client, email)
    response = _register(client, email, password="pwd2")
    assert response.status_code == 409
    assert "already registered" in response.json()["detail"].lower()


def test_login_user(client: TestClient):
    """Test user login."""
    email = _email()
    _register(client, email)
    response = client.post("/api/users/login", json={"email": email, "password": "pwd1"})
    assert response.status_code == 200
    assert "access_token" in response.json()


def test_login_invalid_credentials(client: TestClient):
    """Test login with invalid credentials."""
    email = _email()
    _register(client, email)
    response = client.post("/api/users/login", json={"email": email, "password": "wrong"})
    assert response.status_code == 401


def test_me_requires_token(client: TestClient):
    assert client.get("/api/users/me").status_code == 401


def test_me_rejects_garbage_token(client: TestClient):
    response = client.get("/api/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_update_profile(client: TestClient):
    email = _email()
    token = _register(client, email).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    response = client.patch(
        "/api/users/me",
        json={"name": "Renamed", "profile_type": "master", "school_class": "10B"},
        headers=headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Renamed"
    assert data["profile_type"] == "master"
    assert data["school_class"] == "10B"

    me = client.get("/api/users/me", headers=headers).json()
    assert me["name"] == "Renamed"
