"""Tests for development sign-in and session tokens."""

import jwt
import pytest
from httpx import AsyncClient

from merit.auth.jwt import create_access_token, verify_token
from merit.auth.service import is_allowed_email
from merit.config import get_settings
from merit.db.enums import UserRole


class TestSignIn:
    async def test_first_sign_in_creates_student(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/session", json={"email": "Nurul.Izzah@student.upm.edu.my", "name": "Nurul Izzah"}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Account created"
        assert body["data"]["tokenType"] == "bearer"
        assert body["data"]["user"]["email"] == "nurul.izzah@student.upm.edu.my"
        assert body["data"]["user"]["role"] == "STUDENT"

        token = body["data"]["accessToken"]
        me = await client.get("/api/v1/students/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["data"]["name"] == "Nurul Izzah"

    async def test_second_sign_in_reuses_user(self, client: AsyncClient):
        first = await client.post("/api/v1/auth/session", json={"email": "lee@student.upm.edu.my"})
        second = await client.post("/api/v1/auth/session", json={"email": "LEE@student.upm.edu.my", "name": "Lee"})
        assert second.json()["message"] == "Signed in"
        assert second.json()["data"]["user"]["id"] == first.json()["data"]["user"]["id"]
        assert second.json()["data"]["user"]["name"] == "Lee"

    async def test_foreign_domain_rejected(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/session", json={"email": "someone@gmail.com"})
        assert response.status_code == 403
        assert response.json()["success"] is False

    async def test_invalid_email_rejected(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/session", json={"email": "not-an-email"})
        assert response.status_code == 422

    async def test_disabled_when_flag_off(self, client: AsyncClient, monkeypatch):
        monkeypatch.setenv("MERIT_DEV_LOGIN_ENABLED", "false")
        get_settings.cache_clear()
        response = await client.post("/api/v1/auth/session", json={"email": "lee@student.upm.edu.my"})
        get_settings.cache_clear()
        assert response.status_code == 404

    async def test_disabled_by_default(self, client: AsyncClient, make_user, monkeypatch):
        await make_user(email="admin@upm.edu.my", role=UserRole.ADMIN)
        monkeypatch.delenv("MERIT_DEV_LOGIN_ENABLED", raising=False)
        get_settings.cache_clear()
        response = await client.post("/api/v1/auth/session", json={"email": "admin@upm.edu.my"})
        get_settings.cache_clear()
        assert response.status_code == 404
        assert "accessToken" not in response.text

    async def test_refused_in_production(self, client: AsyncClient, monkeypatch):
        monkeypatch.setenv("MERIT_DEV_LOGIN_ENABLED", "true")
        monkeypatch.setenv("MERIT_ENVIRONMENT", "production")
        get_settings.cache_clear()
        response = await client.post("/api/v1/auth/session", json={"email": "lee@student.upm.edu.my"})
        get_settings.cache_clear()
        assert response.status_code == 404


class TestAllowedDomains:
    @pytest.mark.parametrize(
        ("email", "allowed"),
        [
            ("a@upm.edu.my", True),
            ("a@student.upm.edu.my", True),
            ("A@UPM.EDU.MY", True),
            ("a@notupm.edu.my", False),
            ("a@upm.edu.my.evil.com", False),
        ],
    )
    def test_domains(self, email: str, allowed: bool):
        assert is_allowed_email(email, ["upm.edu.my", "student.upm.edu.my"]) is allowed


class TestTokens:
    def test_round_trip_claims(self):
        token = create_access_token(7, "a@upm.edu.my", "ADMIN")
        payload = verify_token(token)
        assert payload["sub"] == "7"
        assert payload["role"] == "ADMIN"
        assert payload["iss"] == "merit-tracker"

    def test_wrong_type_rejected(self):
        settings = get_settings()
        token = jwt.encode(
            {"sub": "1", "type": "refresh", "iss": settings.jwt_issuer},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(jwt.InvalidTokenError, match="Expected token type"):
            verify_token(token)

    def test_tampered_token_rejected(self):
        token = create_access_token(1, "a@upm.edu.my", "STUDENT")
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token + "x")

    async def test_token_for_deleted_user(self, client: AsyncClient):
        token = create_access_token(9999, "gone@upm.edu.my", "STUDENT")
        response = await client.get("/api/v1/students/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "User not found"}
