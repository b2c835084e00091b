"""Routing of change events to an embed formatter."""

from __future__ import annotations

from enum import Enum

from core.models import ChangeEvent

SOURCE_EDIT = "edit"
SOURCE_NEW = "new"
SOURCE_LOG = "log"


class EventKind(Enum):
    EDIT = "edit"
    NEW_PAGE = "new"
    LOG_ACTION = "log"
    IGNORED = "ignored"


_KINDS = {
    SOURCE_EDIT: EventKind.EDIT,
    SOURCE_NEW: EventKind.NEW_PAGE,
    SOURCE_LOG: EventKind.LOG_ACTION,
}


def classify(event: ChangeEvent) -> EventKind:
    """Map the event's source category; unknown categories are ignored."""

    return _KINDS.get(event.source, EventKind.IGNORED)
