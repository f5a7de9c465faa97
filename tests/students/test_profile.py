"""Tests for student profile endpoints."""

from httpx import AsyncClient


class TestMe:
    async def test_get_own_profile(self, student_client: AsyncClient, student):
        response = await student_client.get("/api/v1/students/me")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == student.id
        assert data["email"] == "ahmad@student.upm.edu.my"
        assert data["studentId"] == "S12345678"
        assert data["enrollmentDate"] == "2023-09-01"
        assert data["totalMeritPoints"] == 0
        assert data["role"] == "STUDENT"

    async def test_profile_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/v1/students/me")
        assert response.status_code == 401

    async def test_missing_profile_fields_are_empty(self, client: AsyncClient, make_user, auth_headers):
        user = await make_user(profile=False)
        data = (await client.get("/api/v1/students/me", headers=auth_headers(user))).json()["data"]
        assert data["studentId"] == ""
        assert data["faculty"] == ""
        assert data["year"] == 0
        assert data["enrollmentDate"] == ""

    async def test_update_profile(self, client: AsyncClient, make_user, auth_headers):
        user = await make_user(profile=False)
        response = await client.patch(
            "/api/v1/students/me",
            json={
                "studentId": "S77777777",
                "faculty": "Faculty of Science",
                "year": 1,
                "program": "Biotechnology",
                "enrollmentDate": "2024-09-01",
            },
            headers=auth_headers(user),
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["studentId"] == "S77777777"
        assert data["program"] == "Biotechnology"
        assert data["enrollmentDate"] == "2024-09-01"

    async def test_update_rejects_taken_student_number(self, client: AsyncClient, student, make_user, auth_headers):
        other = await make_user()
        response = await client.patch(
            "/api/v1/students/me", json={"studentId": student.student_id}, headers=auth_headers(other)
        )
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Student ID already in use"}


class TestLookup:
    async def test_by_student_number(self, student_client: AsyncClient, student):
        response = await student_client.get("/api/v1/students/S12345678")
        assert response.status_code == 200
        assert response.json()["data"]["id"] == student.id

    async def test_by_student_number_not_found(self, student_client: AsyncClient):
        response = await student_client.get("/api/v1/students/S00000000")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Student not found"}

    async def test_by_internal_id(self, student_client: AsyncClient, student):
        response = await student_client.get(f"/api/v1/students/by-id/{student.id}")
        assert response.status_code == 200
        assert response.json()["data"]["studentId"] == "S12345678"

    async def test_by_internal_id_without_profile(self, student_client: AsyncClient, admin):
        response = await student_client.get(f"/api/v1/students/by-id/{admin.id}")
        assert response.status_code == 400
        assert response.json()["error"] == "User is not a student"

    async def test_by_internal_id_not_found(self, student_client: AsyncClient):
        response = await student_client.get("/api/v1/students/by-id/9999")
        assert response.status_code == 404
