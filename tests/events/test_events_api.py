"""HTTP tests for the event catalogue."""

import json
from unittest.mock import AsyncMock, MagicMock

from httpx import AsyncClient

from merit.db.enums import EventCategory, EventStatus
from merit.events import router as events_router


class TestListEvents:
    async def test_empty(self, client: AsyncClient):
        response = await client.get("/api/v1/events")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == []
        assert body["pagination"] == {"totalItems": 0, "totalPages": 0, "currentPage": 1, "itemsPerPage": 10}

    async def test_ordered_by_date(self, client: AsyncClient, make_event):
        later = await make_event(title="Later", days_ahead=10)
        sooner = await make_event(title="Sooner", days_ahead=2)
        response = await client.get("/api/v1/events")
        assert [e["id"] for e in response.json()["data"]] == [sooner.id, later.id]

    async def test_event_shape(self, client: AsyncClient, make_event):
        event = await make_event(title="Career Fair", category=EventCategory.FACULTY, points=30, capacity=300)
        data = (await client.get("/api/v1/events")).json()["data"][0]
        assert data["id"] == event.id
        assert data["title"] == "Career Fair"
        assert data["category"] == "FACULTY"
        assert data["status"] == "Upcoming"
        assert data["points"] == 30
        assert data["capacity"] == 300
        assert data["registeredCount"] == 0
        assert len(data["date"]) == 10  # YYYY-MM-DD

    async def test_pagination(self, client: AsyncClient, make_event):
        for days in range(1, 6):
            await make_event(days_ahead=days)
        body = (await client.get("/api/v1/events", params={"page": 2, "limit": 2})).json()
        assert len(body["data"]) == 2
        assert body["pagination"] == {"totalItems": 5, "totalPages": 3, "currentPage": 2, "itemsPerPage": 2}

    async def test_filter_category_case_insensitive(self, client: AsyncClient, make_event):
        await make_event(category=EventCategory.CLUB)
        await make_event(category=EventCategory.UNIVERSITY)
        body = (await client.get("/api/v1/events", params={"category": "club"})).json()
        assert [e["category"] for e in body["data"]] == ["CLUB"]

    async def test_filter_status(self, client: AsyncClient, make_event):
        await make_event(status=EventStatus.COMPLETED)
        await make_event(status=EventStatus.UPCOMING)
        body = (await client.get("/api/v1/events", params={"status": "completed"})).json()
        assert [e["status"] for e in body["data"]] == ["Completed"]

    async def test_search(self, client: AsyncClient, make_event):
        await make_event(title="Hackathon: Code for Change")
        await make_event(title="Sports Day", location="Stadium")
        await make_event(title="Talk", description="An evening hackathon recap")
        body = (await client.get("/api/v1/events", params={"search": "HACKATHON"})).json()
        assert body["pagination"]["totalItems"] == 2

    async def test_served_from_cache(self, client: AsyncClient, monkeypatch):
        cached = {"success": True, "data": [], "message": None, "pagination": {
            "totalItems": 0, "totalPages": 0, "currentPage": 1, "itemsPerPage": 10,
        }}
        redis = MagicMock()
        redis.get = AsyncMock(return_value=json.dumps(cached))
        redis.set = AsyncMock()
        monkeypatch.setattr(events_router, "get_optional_redis", lambda: redis)

        response = await client.get("/api/v1/events")
        assert response.json() == cached
        redis.set.assert_not_awaited()

    async def test_refresh_bypasses_cache(self, client: AsyncClient, make_event, monkeypatch):
        event = await make_event()
        redis = MagicMock()
        redis.get = AsyncMock(return_value='{"success": true, "data": []}')
        redis.set = AsyncMock()
        monkeypatch.setattr(events_router, "get_optional_redis", lambda: redis)

        response = await client.get("/api/v1/events", params={"refresh": "true"})
        assert [e["id"] for e in response.json()["data"]] == [event.id]
        redis.get.assert_not_awaited()
        redis.set.assert_awaited_once()
        assert redis.set.await_args.kwargs["ex"] == 900


class TestGetEvent:
    async def test_found(self, client: AsyncClient, make_event):
        event = await make_event(title="Seminar")
        response = await client.get(f"/api/v1/events/{event.id}")
        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Seminar"

    async def test_not_found(self, client: AsyncClient):
        response = await client.get("/api/v1/events/9999")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Event not found"}


class TestAdminEvents:
    PAYLOAD = {
        "title": "Innovation Summit",
        "description": "Student research showcase",
        "date": "2026-12-01T09:00:00Z",
        "time": "09:00 AM - 5:00 PM",
        "location": "Dewan Besar",
        "organizer": "Office of Innovation",
        "category": "UNIVERSITY",
        "points": 50,
        "capacity": 500,
    }

    async def test_create_event(self, admin_client: AsyncClient):
        response = await admin_client.post("/api/v1/events", json=self.PAYLOAD)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["title"] == "Innovation Summit"
        assert data["date"] == "2026-12-01"
        assert data["status"] == "Upcoming"
        assert data["registeredCount"] == 0

    async def test_create_requires_admin(self, student_client: AsyncClient):
        response = await student_client.post("/api/v1/events", json=self.PAYLOAD)
        assert response.status_code == 403
        assert response.json() == {"success": False, "error": "Administrator access required"}

    async def test_negative_capacity_rejected(self, admin_client: AsyncClient):
        response = await admin_client.post("/api/v1/events", json={**self.PAYLOAD, "capacity": -1})
        assert response.status_code == 422

    async def test_update_status(self, admin_client: AsyncClient, make_event):
        event = await make_event()
        response = await admin_client.patch(f"/api/v1/events/{event.id}/status", json={"status": "ONGOING"})
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "Ongoing"

    async def test_update_status_unknown_event(self, admin_client: AsyncClient):
        response = await admin_client.patch("/api/v1/events/9999/status", json={"status": "COMPLETED"})
        assert response.status_code == 404

    async def test_create_invalidates_cached_pages(self, admin_client: AsyncClient, monkeypatch):
        async def scan_iter(match: str):
            yield "events:list:abc"

        redis = MagicMock()
        redis.scan_iter = scan_iter
        redis.delete = AsyncMock()
        monkeypatch.setattr(events_router, "get_optional_redis", lambda: redis)

        response = await admin_client.post("/api/v1/events", json=self.PAYLOAD)
        assert response.status_code == 201
        redis.delete.assert_awaited_once_with("events:list:abc")
