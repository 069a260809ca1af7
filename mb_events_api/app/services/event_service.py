"""
Business logic for events.

``EventService`` runs ``EventQuery`` values from ``event_query`` against
SQLite and shapes the results into the response envelopes.  Every list
operation resolves the host of each event to ``{id, fullName}`` and
loads tags in one extra query per page.

"Today" is the current UTC calendar date.  The general listing, the
curated feeds and the similar-events lookup only consider events dated
today or later; host-scoped and single-event lookups ignore dates.
"""

import logging
import sqlite3
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError as SchemaValidationError

from ..core.config import Settings
from ..core.db import get_connection
from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..schemas.event import (
    EventCreate,
    EventDetailResponse,
    EventListResponse,
    EventRead,
    HostRead,
    Price,
    UserEventsPage,
)
from .event_query import (
    FEED_SIZE,
    LISTING_PAGE_SIZE,
    MAX_ROW_ID,
    ORDER_LATEST_DATE,
    ORDER_NEWEST,
    ORDER_SOONEST,
    SIMILAR_EVENTS_LIMIT,
    USER_PAGE_SIZE,
    EventQuery,
    ListingFilters,
    Page,
    before,
    event_id_is,
    hosted_by,
    in_user_events,
    listing_query,
    on_or_after,
    price_is_free,
    same_category_except,
)
from .media_service import MediaService

logger = logging.getLogger(__name__)

Connection = sqlite3.Connection


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _known_id(value: int) -> bool:
    """Ids outside SQLite's integer range cannot name a stored row."""
    return 1 <= value <= MAX_ROW_ID


def _split_tags(values: Union[str, Sequence[str], None]) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    return [tag.strip() for value in values for tag in value.split(",") if tag.strip()]


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError as exc:
        raise ValidationError("date must be an ISO date (YYYY-MM-DD)") from exc


def _parse_price(value: Optional[str], name: str) -> float:
    if value is None or not str(value).strip():
        raise ValidationError("Regular and VIP prices are required for paid events")
    try:
        amount = float(value)
    except ValueError as exc:
        raise ValidationError(f"{name} must be a number") from exc
    if amount < 0:
        raise ValidationError(f"{name} must not be negative")
    return amount


def parse_event_form(
    *,
    title: Optional[str],
    date_value: Optional[str],
    start_time: Optional[str],
    end_time: Optional[str],
    location: Optional[str],
    online: Optional[str],
    category: Optional[str],
    description: Optional[str],
    tags: Union[str, Sequence[str], None],
    free: Optional[str],
    regular_price: Optional[str],
    vip_price: Optional[str],
) -> EventCreate:
    """Validate the multipart fields of an event submission.

    ``online == "true"`` replaces the location with ``"online"``.  Tags
    may be one comma-separated value or repeated form fields.  ``free``
    must be the string ``"true"`` or ``"false"``; paid events need both
    prices.
    """
    is_online = (online or "").strip().lower() == "true"
    tag_list = _split_tags(tags)
    required = (title, date_value, start_time, end_time, category, description, free)
    if any(not (v or "").strip() for v in required) or not tag_list:
        raise ValidationError("All fields are required")
    if not is_online and not (location or "").strip():
        raise ValidationError("All fields are required")

    free_flag = free.strip().lower()
    if free_flag not in ("true", "false"):
        raise ValidationError("free must be 'true' or 'false'")
    if free_flag == "true":
        price = Price(free=True, regular=0, vip=0)
    else:
        price = Price(
            free=False,
            regular=_parse_price(regular_price, "regularPrice"),
            vip=_parse_price(vip_price, "vipPrice"),
        )

    try:
        return EventCreate(
            title=title.strip(),
            date=_parse_date(date_value),
            start_time=start_time.strip(),
            end_time=end_time.strip(),
            location="online" if is_online else location.strip(),
            category=category.strip(),
            description=description.strip(),
            tags=tag_list,
            price=price,
        )
    except SchemaValidationError as exc:
        raise ValidationError(exc.errors()[0]["msg"]) from exc


class EventService:
    """Event listing, lookup, creation and the caller's event relations."""

    def __init__(self, settings: Settings, media: MediaService) -> None:
        self.settings = settings
        self.media = media

    # ------------------------------------------------------------------
    # Query execution
    # ------------------------------------------------------------------
    def _count(self, conn: Connection, query: EventQuery) -> int:
        where, params = query.compile_where()
        row = conn.execute(f"SELECT COUNT(*) AS total FROM events e {where}", params).fetchone()
        return row["total"]

    def _fetch(
        self,
        conn: Connection,
        query: EventQuery,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[EventRead]:
        where, params = query.compile_where()
        sql = (
            "SELECT e.*, u.full_name AS host_name FROM events e "
            f"JOIN users u ON u.id = e.hosted_by {where} ORDER BY {query.order_by}"
        )
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params = params + (limit, offset)
        rows = conn.execute(sql, params).fetchall()
        tags = self._load_tags(conn, [row["id"] for row in rows])
        return [self._to_event(row, tags.get(row["id"], [])) for row in rows]

    def _load_tags(self, conn: Connection, event_ids: List[int]) -> Dict[int, List[str]]:
        if not event_ids:
            return {}
        placeholders = ", ".join("?" for _ in event_ids)
        rows = conn.execute(
            f"SELECT event_id, tag FROM event_tags WHERE event_id IN ({placeholders}) "
            "ORDER BY event_id, position",
            tuple(event_ids),
        ).fetchall()
        tags: Dict[int, List[str]] = {}
        for row in rows:
            tags.setdefault(row["event_id"], []).append(row["tag"])
        return tags

    @staticmethod
    def _to_event(row: sqlite3.Row, tags: List[str]) -> EventRead:
        return EventRead(
            id=row["id"],
            title=row["title"],
            date=row["date"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            location=row["location"],
            category=row["category"],
            description=row["description"],
            tags=tags,
            price=Price(
                free=bool(row["price_free"]),
                regular=row["price_regular"],
                vip=row["price_vip"],
            ),
            image=row["image"],
            hosted_by=HostRead(id=row["hosted_by"], full_name=row["host_name"]),
            created_at=row["created_at"],
        )

    def _paginate(self, conn: Connection, query: EventQuery, page: Page) -> Dict[str, Any]:
        total = self._count(conn, query)
        # Pages past the end are empty; their offset may not fit an SQLite integer.
        events = (
            self._fetch(conn, query, limit=page.size, offset=page.offset)
            if page.offset < total
            else []
        )
        return {
            "current_page": page.number,
            "total_pages": page.total_pages(total),
            "total_events": total,
            "num_of_events": len(events),
            "events": events,
        }

    # ------------------------------------------------------------------
    # Public listings
    # ------------------------------------------------------------------
    async def list_events(self, filters: ListingFilters, page_number: int) -> EventListResponse:
        """General listing: upcoming events, filtered, newest created first."""
        query = listing_query(filters, utc_today())
        conn = get_connection(self.settings)
        try:
            result = self._paginate(conn, query, Page(page_number, LISTING_PAGE_SIZE))
        finally:
            conn.close()
        return EventListResponse(**result)

    async def upcoming_feed(self, free_only: bool = False) -> List[EventRead]:
        """The next ``FEED_SIZE`` events by date, optionally only free ones."""
        query = EventQuery().where(on_or_after(utc_today())).ordered(ORDER_SOONEST)
        if free_only:
            query = query.where(price_is_free(True))
        conn = get_connection(self.settings)
        try:
            return self._fetch(conn, query, limit=FEED_SIZE)
        finally:
            conn.close()

    async def get_event(self, event_id: int) -> EventDetailResponse:
        """One event plus up to three upcoming events of the same category."""
        conn = get_connection(self.settings)
        try:
            if not _known_id(event_id):
                raise NotFoundError("Event not found")
            found = self._fetch(conn, EventQuery().where(event_id_is(event_id)))
            if not found:
                raise NotFoundError("Event not found")
            event = found[0]
            similar_query = (
                EventQuery()
                .where(same_category_except(event.category, event.id), on_or_after(utc_today()))
                .ordered(ORDER_NEWEST)
            )
            similar = self._fetch(conn, similar_query, limit=SIMILAR_EVENTS_LIMIT)
        finally:
            conn.close()
        return EventDetailResponse(event=event, similar_events=similar)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    async def create_event(
        self,
        data: EventCreate,
        host_id: int,
        image_name: str,
        image_content: bytes,
        image_type: str,
    ) -> EventRead:
        """Upload the image, then store the event with its tags."""
        if not image_content:
            raise ValidationError("All fields are required")
        image_url = await self.media.upload_image(image_name, image_content, image_type)

        conn = get_connection(self.settings)
        try:
            if not conn.execute("SELECT id FROM users WHERE id = ?", (host_id,)).fetchone():
                raise NotFoundError("User not found")
            cursor = conn.execute(
                """
                INSERT INTO events (title, date, start_time, end_time, location, category,
                                    description, price_free, price_regular, price_vip,
                                    image, hosted_by, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    data.title,
                    data.date.isoformat(),
                    data.start_time,
                    data.end_time,
                    data.location,
                    data.category,
                    data.description,
                    int(data.price.free),
                    data.price.regular,
                    data.price.vip,
                    image_url,
                    host_id,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            event_id = cursor.lastrowid
            conn.executemany(
                "INSERT INTO event_tags (event_id, position, tag) VALUES (?, ?, ?)",
                [(event_id, position, tag) for position, tag in enumerate(data.tags)],
            )
            conn.commit()
            event = self._fetch(conn, EventQuery().where(event_id_is(event_id)))[0]
        finally:
            conn.close()
        logger.info("User %s created event %s '%s'", host_id, event_id, data.title)
        return event

    # ------------------------------------------------------------------
    # Caller-scoped relations
    # ------------------------------------------------------------------
    async def hosted_events(self, user_id: int, page_number: int) -> EventListResponse:
        query = EventQuery().where(hosted_by(user_id)).ordered(ORDER_NEWEST)
        conn = get_connection(self.settings)
        try:
            result = self._paginate(conn, query, Page(page_number, USER_PAGE_SIZE))
        finally:
            conn.close()
        return EventListResponse(**result)

    async def previous_events(self, user_id: int, page_number: int) -> UserEventsPage:
        """The caller's events dated before today, latest first."""
        query = (
            EventQuery()
            .where(in_user_events(user_id), before(utc_today()))
            .ordered(ORDER_LATEST_DATE)
        )
        conn = get_connection(self.settings)
        try:
            result = self._paginate(conn, query, Page(page_number, USER_PAGE_SIZE))
        finally:
            conn.close()
        return UserEventsPage(message="Previous events retrieved successfully", **result)

    async def events_to_attend(self, user_id: int, page_number: int) -> UserEventsPage:
        """The caller's events dated today or later, soonest first."""
        query = (
            EventQuery()
            .where(in_user_events(user_id), on_or_after(utc_today()))
            .ordered(ORDER_SOONEST)
        )
        conn = get_connection(self.settings)
        try:
            result = self._paginate(conn, query, Page(page_number, USER_PAGE_SIZE))
        finally:
            conn.close()
        return UserEventsPage(message="Upcoming events retrieved successfully", **result)

    async def pay_for_event(self, user_id: int, event_id: int) -> List[int]:
        """Add an event to the caller's events; return their event ids in order.

        The insert is keyed on ``(user_id, event_id)`` so concurrent
        duplicate submissions cannot both succeed.
        """
        conn = get_connection(self.settings)
        try:
            if not _known_id(event_id) or not conn.execute(
                "SELECT id FROM events WHERE id = ?", (event_id,)
            ).fetchone():
                raise NotFoundError("Event not found")
            if not conn.execute("SELECT id FROM users WHERE id = ?", (user_id,)).fetchone():
                raise NotFoundError("User not found")
            cursor = conn.execute(
                "INSERT OR IGNORE INTO user_events (user_id, event_id, added_at) VALUES (?, ?, ?)",
                (user_id, event_id, datetime.now(timezone.utc).isoformat()),
            )
            if cursor.rowcount == 0:
                raise ConflictError("Event already added to your events")
            conn.commit()
            rows = conn.execute(
                "SELECT event_id FROM user_events WHERE user_id = ? ORDER BY added_at, rowid",
                (user_id,),
            ).fetchall()
        finally:
            conn.close()
        logger.info("User %s added event %s to their events", user_id, event_id)
        return [row["event_id"] for row in rows]
