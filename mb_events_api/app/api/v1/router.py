"""
Top-level router for version 1 of the API.

Account routes sit directly under the version prefix
(``/api/v1/register``); event routes are grouped under ``/events``.
"""

from fastapi import APIRouter

from .endpoints import events, users

router = APIRouter()

# Account routes define their own paths; no prefix.
router.include_router(users.router, tags=["users"])
router.include_router(events.router, prefix="/events", tags=["events"])
