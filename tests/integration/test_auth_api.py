# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the authentication endpoints.

Each test runs the full application, including startup migrations, against
its own SQLite file.
"""

from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

pytestmark = pytest.mark.integration


def count_users(client: TestClient, app: FastAPI) -> int:
    row = client.portal.call(app.state.store.query_one, "SELECT COUNT(*) AS total FROM users")
    return row["total"]


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, body: dict[str, Any]) -> dict[str, Any]:
    response = client.post("/auth/register", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestRegister:
    """Tests for POST /auth/register."""

    def test_register_student(self, client: TestClient, student_registration: dict) -> None:
        response = client.post("/auth/register", json=student_registration)

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "User registered successfully"
        assert data["token"]
        assert data["user"]["email"] == "a@b.com"
        assert data["user"]["role"] == "student"
        assert data["user"]["status"] == "active"
        assert data["user"]["school"] == "X"
        assert data["user"]["grade"] == "5"
        assert data["user"]["points"] == 0
        assert "password" not in data["user"]
        assert "password_hash" not in data["user"]

    def test_token_matches_identity(
        self,
        client: TestClient,
        app: FastAPI,
        student_registration: dict,
    ) -> None:
        data = register(client, student_registration)

        claims = app.state.jwt_manager.decode_token(data["token"])

        assert claims.id == data["user"]["id"]
        assert claims.email == "a@b.com"
        assert claims.role.value == "student"
        assert claims.name == "A"
        assert claims.exp - claims.iat == 24 * 60 * 60

    def test_register_teacher(self, client: TestClient, teacher_registration: dict) -> None:
        user = register(client, teacher_registration)["user"]

        assert user["role"] == "teacher"
        assert user["school"] == "Liceo 7"
        assert user["subjects"] == "Matemáticas, Física"
        assert "grade" not in user
        assert "phone" not in user

    def test_register_tutor_defaults_relationship(self, client: TestClient, tutor_registration: dict) -> None:
        user = register(client, tutor_registration)["user"]

        assert user["role"] == "tutor"
        assert user["relationship"] == "parent"
        assert user["phone"] == "+56911112222"
        assert "school" not in user

    def test_role_defaults_to_student(self, client: TestClient) -> None:
        body = {"email": "sin-rol@x.cl", "password": "secret1", "name": "Sin Rol"}

        user = register(client, body)["user"]

        assert user["role"] == "student"

    def test_numeric_grade_accepted(self, client: TestClient, student_registration: dict) -> None:
        user = register(client, {**student_registration, "grade": 8})["user"]

        assert user["grade"] == "8"

    def test_email_is_normalized(self, client: TestClient, student_registration: dict) -> None:
        user = register(client, {**student_registration, "email": "  A@B.COM "})["user"]

        assert user["email"] == "a@b.com"

    def test_duplicate_email_rejected(
        self,
        client: TestClient,
        app: FastAPI,
        student_registration: dict,
    ) -> None:
        register(client, student_registration)
        before = count_users(client, app)

        response = client.post("/auth/register", json={**student_registration, "name": "Otro"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "email already registered"
        assert "details" in body
        assert count_users(client, app) == before

    def test_duplicate_email_differs_only_in_case(
        self,
        client: TestClient,
        student_registration: dict,
    ) -> None:
        register(client, student_registration)

        response = client.post("/auth/register", json={**student_registration, "email": "A@B.com"})

        assert response.status_code == 400

    @pytest.mark.parametrize(
        "override",
        [
            {"email": "not-an-email"},
            {"password": "12345"},
            {"password": "x" * 129},
            {"name": "   "},
            {"role": "admin"},
            {"role": "janitor"},
        ],
    )
    def test_invalid_input_rejected(
        self,
        client: TestClient,
        app: FastAPI,
        student_registration: dict,
        override: dict,
    ) -> None:
        before = count_users(client, app)

        response = client.post("/auth/register", json={**student_registration, **override})

        assert response.status_code == 400
        assert response.json()["error"] == "validation failed"
        assert count_users(client, app) == before

    def test_missing_field_rejected(self, client: TestClient) -> None:
        response = client.post("/auth/register", json={"email": "a@b.com", "password": "secret1"})

        assert response.status_code == 400
        assert "name" in response.json()["details"]


class TestLogin:
    """Tests for POST /auth/login."""

    def test_login_returns_composed_profile(self, client: TestClient, student_registration: dict) -> None:
        register(client, student_registration)

        response = client.post("/auth/login", json={"email": "a@b.com", "password": "secret1"})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Login successful"
        assert data["token"]
        assert data["user"]["school"] == "X"
        assert data["user"]["last_login"] is not None

    def test_login_email_case_insensitive(self, client: TestClient, student_registration: dict) -> None:
        register(client, student_registration)

        response = client.post("/auth/login", json={"email": "A@B.COM", "password": "secret1"})

        assert response.status_code == 200

    def test_unknown_email_and_wrong_password_look_the_same(
        self,
        client: TestClient,
        student_registration: dict,
    ) -> None:
        register(client, student_registration)

        unknown = client.post("/auth/login", json={"email": "nobody@x.cl", "password": "secret1"})
        wrong = client.post("/auth/login", json={"email": "a@b.com", "password": "wrong-pass"})

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json() == {"error": "invalid credentials"}

    def test_login_token_opens_profile(self, client: TestClient, teacher_registration: dict) -> None:
        register(client, teacher_registration)
        token = client.post(
            "/auth/login",
            json={"email": "profe@colegio.cl", "password": "pizarra123"},
        ).json()["token"]

        response = client.get("/auth/profile", headers=auth_header(token))

        assert response.status_code == 200
        assert response.json()["user"]["subjects"] == "Matemáticas, Física"

    def test_empty_password_rejected(self, client: TestClient) -> None:
        response = client.post("/auth/login", json={"email": "a@b.com", "password": ""})

        assert response.status_code == 400


class TestProfile:
    """Tests for the profile endpoints."""

    def test_profile_requires_token(self, client: TestClient) -> None:
        response = client.get("/auth/profile")

        assert response.status_code == 401

    def test_profile_rejects_garbage_token(self, client: TestClient) -> None:
        response = client.get("/auth/profile", headers=auth_header("garbage"))

        assert response.status_code == 403

    def test_profile_returns_role_fields(self, client: TestClient, tutor_registration: dict) -> None:
        data = register(client, tutor_registration)

        response = client.get("/auth/profile", headers=auth_header(data["token"]))

        assert response.status_code == 200
        assert response.json()["user"] == data["user"]

    def test_profile_of_deleted_user_not_found(
        self,
        client: TestClient,
        app: FastAPI,
        student_registration: dict,
    ) -> None:
        data = register(client, student_registration)
        client.portal.call(
            app.state.store.execute,
            "DELETE FROM users WHERE id = :id",
            {"id": data["user"]["id"]},
        )

        response = client.get("/auth/profile", headers=auth_header(data["token"]))

        assert response.status_code == 404

    def test_missing_extension_falls_back_to_empty_fields(
        self,
        client: TestClient,
        app: FastAPI,
        teacher_registration: dict,
    ) -> None:
        data = register(client, teacher_registration)
        client.portal.call(
            app.state.store.execute,
            "DELETE FROM teachers WHERE user_id = :id",
            {"id": data["user"]["id"]},
        )

        profile = client.get("/auth/profile", headers=auth_header(data["token"]))
        login = client.post(
            "/auth/login",
            json={"email": "profe@colegio.cl", "password": "pizarra123"},
        )

        assert profile.status_code == 200
        assert profile.json()["user"]["role"] == "teacher"
        assert profile.json()["user"]["school"] == ""
        assert profile.json()["user"]["subjects"] == ""
        assert login.status_code == 200
        assert login.json()["user"]["school"] == ""

    def test_update_profile(self, client: TestClient, student_registration: dict) -> None:
        token = register(client, student_registration)["token"]

        response = client.put(
            "/auth/profile",
            json={"name": "Ana", "avatar_url": "https://img.example/ana.png"},
            headers=auth_header(token),
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["name"] == "Ana"
        assert user["avatar_url"] == "https://img.example/ana.png"
        assert user["school"] == "X"

    def test_update_profile_rejects_blank_name(self, client: TestClient, student_registration: dict) -> None:
        token = register(client, student_registration)["token"]

        response = client.put("/auth/profile", json={"name": ""}, headers=auth_header(token))

        assert response.status_code == 400


class TestPasswordAndLogout:
    """Tests for password change and logout."""

    def test_change_password(self, client: TestClient, student_registration: dict) -> None:
        token = register(client, student_registration)["token"]

        response = client.post(
            "/auth/change-password",
            json={"current_password": "secret1", "new_password": "secret2"},
            headers=auth_header(token),
        )

        assert response.status_code == 200
        old = client.post("/auth/login", json={"email": "a@b.com", "password": "secret1"})
        new = client.post("/auth/login", json={"email": "a@b.com", "password": "secret2"})
        assert old.status_code == 401
        assert new.status_code == 200

    def test_change_password_wrong_current(self, client: TestClient, student_registration: dict) -> None:
        token = register(client, student_registration)["token"]

        response = client.post(
            "/auth/change-password",
            json={"current_password": "nope-nope", "new_password": "secret2"},
            headers=auth_header(token),
        )

        assert response.status_code == 400
        assert response.json() == {"error": "current password is incorrect"}

    def test_change_password_requires_token(self, client: TestClient) -> None:
        response = client.post(
            "/auth/change-password",
            json={"current_password": "secret1", "new_password": "secret2"},
        )

        assert response.status_code == 401

    def test_logout(self, client: TestClient, student_registration: dict) -> None:
        token = register(client, student_registration)["token"]

        response = client.post("/auth/logout", headers=auth_header(token))

        assert response.status_code == 200
        assert response.json() == {"message": "Logout successful"}


class TestHealth:
    """Tests for GET /health."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["environment"] == "development"
        assert data["database"]["status"] == "healthy"
