"""MediaWiki-to-core change mapping adapter.

This keeps Action API field names and quirks out of the core pipeline.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from core.models import ChangeEvent, LogEntry

API_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
MW_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def parse_api_timestamp(value: Optional[str]) -> datetime:
    """Parse an API timestamp (``2024-01-01T12:00:00Z``) into an aware datetime."""

    if not value:
        return datetime.now(timezone.utc)
    return datetime.strptime(value, API_TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def to_mw_timestamp(value: datetime) -> str:
    """Format a datetime the way MediaWiki stores it (``20240101120000``)."""

    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(MW_TIMESTAMP_FORMAT)


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(value)


def _visible_user(row: dict[str, Any]) -> Optional[str]:
    if row.get("userhidden"):
        return None
    return row.get("user") or None


def _visible_comment(row: dict[str, Any]) -> str:
    if row.get("commenthidden"):
        return ""
    return row.get("comment") or ""


def change_from_api(row: dict[str, Any]) -> ChangeEvent:
    """Build a core ChangeEvent from one ``list=recentchanges`` row."""

    # Rows with a hidden action carry no usable title; an empty title makes
    # the title lookup fail for this event only.
    title = "" if row.get("actionhidden") else row.get("title", "")
    return ChangeEvent(
        rc_id=int(row["rcid"]),
        source=str(row.get("type", "")),
        namespace=int(row.get("ns", 0)),
        title=title,
        page_id=int(row.get("pageid", 0)),
        timestamp=parse_api_timestamp(row.get("timestamp")),
        performer=_visible_user(row),
        bot=bool(row.get("bot", False)),
        revision_id=int(row.get("revid", 0)),
        old_revision_id=int(row.get("old_revid", 0)),
        old_len=_optional_int(row.get("oldlen")),
        new_len=_optional_int(row.get("newlen")),
        comment=_visible_comment(row),
        log_id=_optional_int(row.get("logid")),
        log_type=row.get("logtype"),
    )


def log_entry_from_api(row: dict[str, Any]) -> LogEntry:
    """Build a core LogEntry from one ``list=logevents`` row."""

    return LogEntry(
        log_id=int(row["logid"]),
        log_type=str(row.get("type", "")),
        log_action=str(row.get("action", "")),
        title=row.get("title", ""),
        performer=_visible_user(row),
        comment=_visible_comment(row),
        params=dict(row.get("params") or {}),
        timestamp=parse_api_timestamp(row.get("timestamp")) if row.get("timestamp") else None,
    )
