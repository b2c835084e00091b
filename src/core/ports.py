"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for host lookups and notification delivery
so that the core can be reused with different wikis and chat backends, and
tested with fakes returning fixed data.
"""

from __future__ import annotations

from typing import Optional, Protocol

from core.models import LogEntry, UserProfile, WebhookPayload


class TitlePort(Protocol):
    """Title display and URL resolution."""

    def prefixed_text(self, title: str) -> str:
        ...

    def full_url(self, title: str, query: str = "") -> str:
        ...


class UserPort(Protocol):
    """Performer resolution; raises ResolutionError when the user is unknown."""

    def profile(self, user_name: Optional[str]) -> UserProfile:
        ...


class LogStorePort(Protocol):
    """Log entry lookup; returns None for deleted or suppressed entries."""

    def get_log_entry(
        self, log_id: int, log_type: Optional[str] = None, title: Optional[str] = None
    ) -> Optional[LogEntry]:
        ...


class LogFormatterPort(Protocol):
    """Plain-text rendering of a log entry."""

    def plain_action_text(self, entry: LogEntry) -> str:
        ...


class FileRepositoryPort(Protocol):
    """Current full URL of an uploaded file."""

    def file_url(self, title: str) -> str:
        ...


class NotifierPort(Protocol):
    """Best-effort delivery of one payload to a webhook."""

    def send(self, payload: WebhookPayload, webhook_url: str) -> None:
        ...
