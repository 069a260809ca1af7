"""
Event endpoints for API v1.

Public routes list, filter and look up events.  Routes under the auth
gate create events and expose the caller's hosted, previous and
upcoming events.  Fixed paths (``/upcoming``, ``/hosted`` ...) are
declared before ``/{event_id}`` so they are not captured by it.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from mb_events_api.app.api.deps import get_current_user, get_event_service
from mb_events_api.app.schemas.event import (
    EventCreatedResponse,
    EventDetailResponse,
    EventFeedResponse,
    EventListResponse,
    PayResponse,
    UserEventsPage,
)
from mb_events_api.app.services.event_query import ListingFilters, parse_page
from mb_events_api.app.services.event_service import EventService, parse_event_form


router = APIRouter()


@router.get("", response_model=EventListResponse)
async def list_events(
    page: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    search_term: Optional[str] = Query(None, alias="searchTerm"),
    tag: Optional[str] = Query(None, description="Comma-separated; matches any"),
    price: Optional[str] = Query(None, description="'free' or any other value for paid"),
    service: EventService = Depends(get_event_service),
) -> EventListResponse:
    """List upcoming events, newest first, ten per page.

    Filters combine with AND.  ``searchTerm`` matches title, location or
    category; ``location`` and ``category`` are case-insensitive
    substring matches.  An invalid ``page`` is treated as page 1.
    """
    filters = ListingFilters(
        location=location,
        category=category,
        search_term=search_term,
        tag=tag,
        price=price,
    )
    return await service.list_events(filters, parse_page(page))


@router.post("", response_model=EventCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    title: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    start_time: Optional[str] = Form(None, alias="startTime"),
    end_time: Optional[str] = Form(None, alias="endTime"),
    location: Optional[str] = Form(None),
    online: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    tags: Optional[List[str]] = Form(None),
    free: Optional[str] = Form(None),
    regular_price: Optional[str] = Form(None, alias="regularPrice"),
    vip_price: Optional[str] = Form(None, alias="vipPrice"),
    image: Optional[UploadFile] = File(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
) -> EventCreatedResponse:
    """Create an event hosted by the caller from a multipart form."""
    data = parse_event_form(
        title=title,
        date_value=date,
        start_time=start_time,
        end_time=end_time,
        location=location,
        online=online,
        category=category,
        description=description,
        tags=tags,
        free=free,
        regular_price=regular_price,
        vip_price=vip_price,
    )
    content = await image.read() if image is not None else b""
    event = await service.create_event(
        data,
        current_user["user_id"],
        image.filename if image is not None else "",
        content,
        (image.content_type if image is not None else None) or "application/octet-stream",
    )
    return EventCreatedResponse(event=event)


@router.get("/upcoming", response_model=EventFeedResponse)
async def upcoming_events(service: EventService = Depends(get_event_service)) -> EventFeedResponse:
    return EventFeedResponse(events=await service.upcoming_feed())


@router.get("/free", response_model=EventFeedResponse)
async def free_events(service: EventService = Depends(get_event_service)) -> EventFeedResponse:
    return EventFeedResponse(events=await service.upcoming_feed(free_only=True))


@router.get("/hosted", response_model=EventListResponse)
async def hosted_events(
    page: Optional[str] = Query(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
) -> EventListResponse:
    return await service.hosted_events(current_user["user_id"], parse_page(page))


@router.get("/previous", response_model=UserEventsPage)
async def previous_events(
    page: Optional[str] = Query(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
) -> UserEventsPage:
    return await service.previous_events(current_user["user_id"], parse_page(page))


@router.get("/attending", response_model=UserEventsPage)
async def events_to_attend(
    page: Optional[str] = Query(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
) -> UserEventsPage:
    return await service.events_to_attend(current_user["user_id"], parse_page(page))


@router.post("/pay/{event_id}", response_model=PayResponse)
async def pay_for_event(
    event_id: int,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
) -> PayResponse:
    """Record that the caller paid for an event; a second payment is a conflict."""
    your_events = await service.pay_for_event(current_user["user_id"], event_id)
    return PayResponse(your_events=your_events)


@router.get("/{event_id}", response_model=EventDetailResponse)
async def get_event(
    event_id: int,
    service: EventService = Depends(get_event_service),
) -> EventDetailResponse:
    """Retrieve one event together with up to three similar upcoming events."""
    return await service.get_event(event_id)
