"""Request/response schemas for event endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from merit.db.enums import EventCategory, EventStatus
from merit.db.models import Event
from merit.schemas import CamelModel


class EventResponse(CamelModel):
    id: int
    title: str
    description: str
    date: str
    time: str
    location: str
    organizer: str
    category: EventCategory
    points: int
    capacity: int
    registered_count: int
    waitlisted_count: int = 0
    status: str
    image_url: str | None = None


class EventCreateRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=256)
    description: str = ""
    date: datetime
    time: str = Field("", max_length=32)
    location: str = Field("", max_length=256)
    organizer: str = Field("", max_length=256)
    category: EventCategory
    points: int = Field(..., ge=0)
    capacity: int = Field(..., ge=0)
    image_url: str | None = None


class EventStatusUpdateRequest(CamelModel):
    status: EventStatus


def event_response(event: Event, registered_count: int, waitlisted_count: int = 0) -> EventResponse:
    """Build an EventResponse; dates are rendered as YYYY-MM-DD."""
    return EventResponse(
        id=event.id,
        title=event.title,
        description=event.description,
        date=event.date.date().isoformat(),
        time=event.time,
        location=event.location,
        organizer=event.organizer,
        category=EventCategory(event.category),
        points=event.points,
        capacity=event.capacity,
        registered_count=registered_count,
        waitlisted_count=waitlisted_count,
        status=EventStatus(event.status).label,
        image_url=event.image_url,
    )
