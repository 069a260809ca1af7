"""
FastAPI dependencies shared by the v1 endpoints.

Settings live on ``app.state`` and are handed to services through these
providers, so tests can swap any collaborator with
``app.dependency_overrides``.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from mb_events_api.app.core.config import Settings
from mb_events_api.app.core.errors import AuthenticationError
from mb_events_api.app.core.security import ACCESS_TOKEN, decode_token
from mb_events_api.app.services.event_service import EventService
from mb_events_api.app.services.media_service import MediaService
from mb_events_api.app.services.notification_service import NotificationService
from mb_events_api.app.services.user_service import UserService

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Resolve the caller from a ``Bearer`` access token.

    Returns ``{"user_id": int, "email": str}``.  A missing header, a
    non-Bearer scheme or a token without an integer ``userId`` raises
    ``AuthenticationError``.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Authentication failed")
    claims = decode_token(credentials.credentials, settings, ACCESS_TOKEN)
    user_id = claims.get("userId")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise AuthenticationError("Invalid token")
    return {"user_id": user_id, "email": claims.get("email")}


def get_media_service(settings: Settings = Depends(get_settings)) -> MediaService:
    return MediaService(settings)


def get_notification_service(settings: Settings = Depends(get_settings)) -> NotificationService:
    return NotificationService(settings)


def get_event_service(
    settings: Settings = Depends(get_settings),
    media: MediaService = Depends(get_media_service),
) -> EventService:
    return EventService(settings, media)


def get_user_service(
    settings: Settings = Depends(get_settings),
    notifier: NotificationService = Depends(get_notification_service),
) -> UserService:
    return UserService(settings, notifier)
