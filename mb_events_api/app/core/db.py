"""
SQLite storage and a small migration system.

``get_connection`` opens a connection to the database named by the
settings, ``get_cursor`` wraps one in a commit-or-close context manager
and ``init_db`` applies pending migrations at start-up.  Applied
versions are recorded in the ``migrations`` table; to change the schema
append a new ``(version, sql)`` entry to ``MIGRATIONS``.

Timestamps are stored as ISO-8601 strings produced by Python (UTC, with
microseconds) and event dates as ``YYYY-MM-DD``, so lexical comparison
in SQL matches chronological order.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Tuple

from .config import Settings

logger = logging.getLogger(__name__)

MIGRATIONS: List[Tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            full_name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            reset_token TEXT,
            reset_token_expiry TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            date TEXT NOT NULL,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            location TEXT NOT NULL,
            category TEXT NOT NULL,
            description TEXT NOT NULL,
            price_free INTEGER NOT NULL DEFAULT 0,
            price_regular REAL,
            price_vip REAL,
            image TEXT NOT NULL,
            hosted_by INTEGER NOT NULL,
            created_at TEXT NOT NULL,
            FOREIGN KEY(hosted_by) REFERENCES users(id)
        );

        -- Tags keep their original order through ``position``.
        CREATE TABLE IF NOT EXISTS event_tags (
            event_id INTEGER NOT NULL,
            position INTEGER NOT NULL,
            tag TEXT NOT NULL,
            PRIMARY KEY (event_id, position),
            FOREIGN KEY(event_id) REFERENCES events(id)
        );

        -- Events a user has paid for or bookmarked ("yourevents").
        CREATE TABLE IF NOT EXISTS user_events (
            user_id INTEGER NOT NULL,
            event_id INTEGER NOT NULL,
            added_at TEXT NOT NULL,
            PRIMARY KEY (user_id, event_id),
            FOREIGN KEY(user_id) REFERENCES users(id),
            FOREIGN KEY(event_id) REFERENCES events(id)
        );
        """,
    ),
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_events_date ON events(date);
        CREATE INDEX IF NOT EXISTS idx_events_created_at ON events(created_at);
        CREATE INDEX IF NOT EXISTS idx_events_hosted_by ON events(hosted_by);
        CREATE INDEX IF NOT EXISTS idx_events_category ON events(category);
        CREATE INDEX IF NOT EXISTS idx_event_tags_tag ON event_tags(tag);
        CREATE INDEX IF NOT EXISTS idx_user_events_event_id ON user_events(event_id);
        """,
    ),
]


def get_database_path(settings: Settings) -> str:
    """Resolve the database path; relative paths are anchored at the project root."""
    db_url = settings.database_url
    if db_url == ":memory:" or os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / db_url).resolve())


def get_connection(settings: Settings) -> sqlite3.Connection:
    """Open a new connection with name-addressable rows and foreign keys on."""
    conn = sqlite3.connect(get_database_path(settings))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_cursor(settings: Settings) -> Iterator[sqlite3.Cursor]:
    """Yield a cursor, commit on success, roll back on error, always close."""
    conn = get_connection(settings)
    try:
        yield conn.cursor()
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(settings: Settings) -> None:
    """Create the database if needed and apply pending migrations."""
    with get_cursor(settings) as cursor:
        cursor.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
        row = cursor.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                logger.info("Applying database migration %s", version)
                cursor.executescript(sql)
                cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                current_version = version
