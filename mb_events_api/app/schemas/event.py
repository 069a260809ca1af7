"""
Pydantic models for event data.

``EventRead`` is the public shape of an event, with the host reduced to
its id and display name.  ``EventCreate`` is the validated form of the
multipart payload accepted by ``POST /events``; the image itself is
handled separately by the media service.  The remaining models are the
response envelopes of the event endpoints.
"""

import datetime as dt
from typing import List, Optional

from pydantic import Field, model_validator

from . import CamelModel


class Price(CamelModel):
    free: bool = False
    regular: Optional[float] = Field(None, ge=0, examples=[25.0])
    vip: Optional[float] = Field(None, ge=0, examples=[60.0])

    @model_validator(mode="after")
    def _paid_events_need_prices(self) -> "Price":
        if not self.free and (self.regular is None or self.vip is None):
            raise ValueError("Paid events require both regular and vip prices")
        return self


class HostRead(CamelModel):
    id: int
    full_name: str


class EventBase(CamelModel):
    title: str = Field(..., min_length=1, examples=["Lagos Tech Meetup"])
    date: dt.date
    start_time: str = Field(..., min_length=1, examples=["10:00"])
    end_time: str = Field(..., min_length=1, examples=["14:00"])
    location: str = Field(..., min_length=1, examples=["online"])
    category: str = Field(..., min_length=1, examples=["technology"])
    description: str = Field(..., min_length=1)
    tags: List[str] = Field(..., min_length=1, examples=[["python", "networking"]])
    price: Price


class EventCreate(EventBase):
    """Event fields supplied by the host; the image URL is added on upload."""


class EventRead(EventBase):
    id: int
    image: str
    hosted_by: HostRead
    created_at: dt.datetime


class EventListResponse(CamelModel):
    success: bool = True
    current_page: int
    total_pages: int
    total_events: int
    num_of_events: int
    events: List[EventRead]


class EventFeedResponse(CamelModel):
    success: bool = True
    events: List[EventRead]


class EventDetailResponse(CamelModel):
    success: bool = True
    event: EventRead
    similar_events: List[EventRead]


class EventCreatedResponse(CamelModel):
    success: bool = True
    message: str = "Event created successfully"
    event: EventRead


class UserEventsPage(EventListResponse):
    """Listing envelope for the caller's own events, with a status message."""

    message: str


class PayResponse(CamelModel):
    success: bool = True
    message: str = "Event added to your events successfully"
    your_events: List[int]
