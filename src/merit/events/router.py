"""Event catalogue endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from merit.auth.dependencies import require_admin
from merit.config import get_settings
from merit.database import get_session
from merit.db.models import User
from merit.events.cache import cache_event_page, get_cached_event_page, invalidate_event_pages
from merit.events.schemas import (
    EventCreateRequest,
    EventResponse,
    EventStatusUpdateRequest,
    event_response,
)
from merit.events.service import create_event, get_event_with_counts, list_events, update_event_status
from merit.redis_client import get_optional_redis
from merit.schemas import ApiResponse, PaginatedResponse, Pagination

router = APIRouter(prefix="/api/v1/events", tags=["Events"])


@router.get("", response_model=PaginatedResponse[list[EventResponse]])
async def get_events(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    category: str | None = Query(None),
    status: str | None = Query(None),
    search: str | None = Query(None, max_length=128),
    refresh: bool = Query(False),
    db: AsyncSession = Depends(get_session),
) -> PaginatedResponse[list[EventResponse]] | dict:
    """Events ordered by date (cached for 15 minutes; ``refresh=true`` reloads)."""
    params = {"page": page, "limit": limit, "category": category, "status": status, "search": search}
    redis = get_optional_redis()

    if not refresh:
        cached = await get_cached_event_page(redis, params)
        if cached is not None:
            return cached

    rows, total = await list_events(db, page=page, limit=limit, category=category, status=status, search=search)
    response = PaginatedResponse[list[EventResponse]](
        data=[event_response(event, registered, waitlisted) for event, registered, waitlisted in rows],
        pagination=Pagination.build(total, page, limit),
    )
    await cache_event_page(
        redis, params, response.model_dump(mode="json", by_alias=True), get_settings().event_list_cache_ttl_seconds
    )
    return response


@router.get("/{event_id}", response_model=ApiResponse[EventResponse])
async def get_event(
    event_id: int,
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[EventResponse]:
    """Single event with live registration counts."""
    event, registered, waitlisted = await get_event_with_counts(db, event_id)
    return ApiResponse(data=event_response(event, registered, waitlisted))


@router.post("", response_model=ApiResponse[EventResponse], status_code=201)
async def post_event(
    body: EventCreateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[EventResponse]:
    """Create an event (administrators only)."""
    event = await create_event(db, **body.model_dump())
    await db.commit()
    await invalidate_event_pages(get_optional_redis())
    return ApiResponse(data=event_response(event, 0), message="Event created")


@router.patch("/{event_id}/status", response_model=ApiResponse[EventResponse])
async def patch_event_status(
    event_id: int,
    body: EventStatusUpdateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[EventResponse]:
    """Change an event's lifecycle status (administrators only)."""
    await update_event_status(db, event_id, body.status)
    await db.commit()
    await invalidate_event_pages(get_optional_redis())
    event, registered, waitlisted = await get_event_with_counts(db, event_id)
    return ApiResponse(data=event_response(event, registered, waitlisted))
