"""SQLite feed state adapter.

Remembers the last relayed recent change per wiki so a restart resumes where
the previous run stopped instead of replaying or skipping changes.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


@dataclass(frozen=True)
class FeedState:
    """Position of the last relayed change in a wiki's recent changes."""

    last_rc_id: int
    last_timestamp: datetime


class FeedStateStorage:
    """Thin SQLite wrapper around the feed_state table."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - feed_state: per-wiki position in recent changes
        """

        with self._connect() as conn:
            # Fields:
            # - wiki_key: api.php URL of the wiki (PRIMARY KEY)
            # - last_rc_id: highest rcid handled for that wiki
            # - last_timestamp: timestamp of that change, used to resume the feed
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS feed_state (
                    wiki_key TEXT PRIMARY KEY,
                    last_rc_id INTEGER NOT NULL,
                    last_timestamp TIMESTAMP NOT NULL
                )
                """
            )

    def get_state(self, wiki_key: str) -> Optional[FeedState]:
        """Return the stored position for a wiki, if any."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT last_rc_id, last_timestamp FROM feed_state WHERE wiki_key = ?",
                (wiki_key,),
            ).fetchone()
        if row is None:
            return None
        timestamp = datetime.fromisoformat(row["last_timestamp"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return FeedState(last_rc_id=int(row["last_rc_id"]), last_timestamp=timestamp)

    def set_state(self, wiki_key: str, last_rc_id: int, last_timestamp: datetime) -> None:
        """Upsert the position for a wiki."""

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO feed_state (wiki_key, last_rc_id, last_timestamp)
                VALUES (?, ?, ?)
                ON CONFLICT(wiki_key) DO UPDATE SET
                    last_rc_id = excluded.last_rc_id,
                    last_timestamp = excluded.last_timestamp
                """,
                (wiki_key, last_rc_id, last_timestamp.isoformat()),
            )
