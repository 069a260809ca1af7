"""
Event query engine: filter values, ordering and pagination math.

An ``EventQuery`` is an immutable value made of independent predicate
fragments.  Fragments are ANDed together and compiled once into a
parameterised SQL ``WHERE`` clause; adding a filter returns a new query
instead of mutating an existing one, so the order in which request
parameters are applied never changes the result.

All SQL produced here refers to the ``events`` table through the alias
``e``.  Ordering clauses come from the fixed ``ORDER_*`` constants and
never from request input.
"""

import math
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Optional, Tuple

LISTING_PAGE_SIZE = 10
USER_PAGE_SIZE = 3
FEED_SIZE = 6
SIMILAR_EVENTS_LIMIT = 3

# Largest value SQLite can bind as an INTEGER.
MAX_ROW_ID = 2**63 - 1

ORDER_NEWEST = "e.created_at DESC, e.id DESC"
ORDER_SOONEST = "e.date ASC, e.created_at ASC, e.id ASC"
ORDER_LATEST_DATE = "e.date DESC, e.created_at DESC, e.id DESC"

_LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class Predicate:
    """One SQL condition together with its positional parameters."""

    sql: str
    params: Tuple[Any, ...] = ()


MATCH_NOTHING = Predicate("0")


def _like_pattern(term: str) -> str:
    escaped = (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def contains(column: str, term: str) -> Predicate:
    """Case-insensitive substring match on ``column``."""
    return Predicate(
        f"lower({column}) LIKE lower(?) ESCAPE '{_LIKE_ESCAPE}'",
        (_like_pattern(term),),
    )


def any_of(*predicates: Predicate) -> Predicate:
    if not predicates:
        return MATCH_NOTHING
    sql = " OR ".join(f"({p.sql})" for p in predicates)
    params: Tuple[Any, ...] = sum((p.params for p in predicates), ())
    return Predicate(f"({sql})", params)


def on_or_after(day: date) -> Predicate:
    return Predicate("e.date >= ?", (day.isoformat(),))


def before(day: date) -> Predicate:
    return Predicate("e.date < ?", (day.isoformat(),))


def search(term: str) -> Predicate:
    """Match ``term`` in the title, location or category."""
    return any_of(contains("e.title", term), contains("e.location", term), contains("e.category", term))


def has_any_tag(raw: str) -> Predicate:
    """Match events tagged with any entry of a comma-separated list.

    Entries are trimmed and compared exactly.  A list with no non-blank
    entries matches nothing.
    """
    tags = [t.strip() for t in raw.split(",") if t.strip()]
    if not tags:
        return MATCH_NOTHING
    placeholders = ", ".join("?" for _ in tags)
    return Predicate(
        f"e.id IN (SELECT event_id FROM event_tags WHERE tag IN ({placeholders}))",
        tuple(tags),
    )


def price_is_free(free: bool) -> Predicate:
    return Predicate("e.price_free = ?", (1 if free else 0,))


def price_filter(value: str) -> Predicate:
    """``"free"`` selects free events; any other value selects paid ones."""
    return price_is_free(value == "free")


def event_id_is(event_id: int) -> Predicate:
    return Predicate("e.id = ?", (event_id,))


def hosted_by(user_id: int) -> Predicate:
    return Predicate("e.hosted_by = ?", (user_id,))


def in_user_events(user_id: int) -> Predicate:
    return Predicate("e.id IN (SELECT event_id FROM user_events WHERE user_id = ?)", (user_id,))


def same_category_except(category: str, event_id: int) -> Predicate:
    return Predicate("e.category = ? AND e.id != ?", (category, event_id))


@dataclass(frozen=True)
class EventQuery:
    """Immutable conjunction of predicates plus an ordering."""

    predicates: Tuple[Predicate, ...] = ()
    order_by: str = ORDER_NEWEST

    def where(self, *predicates: Predicate) -> "EventQuery":
        return replace(self, predicates=self.predicates + predicates)

    def ordered(self, order_by: str) -> "EventQuery":
        return replace(self, order_by=order_by)

    def compile_where(self) -> Tuple[str, Tuple[Any, ...]]:
        """Return ``(where_sql, params)``; ``where_sql`` is empty when unfiltered."""
        if not self.predicates:
            return "", ()
        sql = " AND ".join(f"({p.sql})" for p in self.predicates)
        params: Tuple[Any, ...] = sum((p.params for p in self.predicates), ())
        return f"WHERE {sql}", params


@dataclass(frozen=True)
class ListingFilters:
    """Optional request parameters of the general event listing."""

    location: Optional[str] = None
    category: Optional[str] = None
    search_term: Optional[str] = None
    tag: Optional[str] = None
    price: Optional[str] = None


def listing_query(filters: ListingFilters, today: date) -> EventQuery:
    """Build the query behind the general listing.

    Only events dated today or later are eligible.  Empty parameter
    values count as absent.
    """
    query = EventQuery().where(on_or_after(today))
    if filters.search_term:
        query = query.where(search(filters.search_term))
    if filters.location:
        query = query.where(contains("e.location", filters.location))
    if filters.category:
        query = query.where(contains("e.category", filters.category))
    if filters.tag:
        query = query.where(has_any_tag(filters.tag))
    if filters.price:
        query = query.where(price_filter(filters.price))
    return query.ordered(ORDER_NEWEST)


def parse_page(raw: Any) -> int:
    """Interpret a ``page`` parameter; anything but a positive integer means 1."""
    if raw is None or isinstance(raw, bool):
        return 1
    try:
        page = int(str(raw).strip())
    except ValueError:
        return 1
    return page if page >= 1 else 1


@dataclass(frozen=True)
class Page:
    number: int
    size: int

    @property
    def offset(self) -> int:
        return (self.number - 1) * self.size

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.size) if total else 0
