"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any wiki- or chat-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

# positive: 570888 = #08b608
# zero: 6647148 = #656d6c
# negative: 15802400 = #f12020
COLOR_POSITIVE = 570888
COLOR_NEUTRAL = 6647148
COLOR_NEGATIVE = 15802400


@dataclass(frozen=True)
class ChangeEvent:
    """One observed wiki change, as handed to the core pipeline."""

    rc_id: int
    source: str
    namespace: int
    title: str
    page_id: int
    timestamp: datetime
    performer: Optional[str]
    bot: bool = False
    revision_id: int = 0
    old_revision_id: int = 0
    old_len: Optional[int] = None
    new_len: Optional[int] = None
    comment: str = ""
    log_id: Optional[int] = None
    log_type: Optional[str] = None


@dataclass(frozen=True)
class UserProfile:
    """Display name and profile page of a performer."""

    name: str
    url: str


@dataclass(frozen=True)
class LogEntry:
    """A log entry looked up from the host's log store."""

    log_id: int
    log_type: str
    log_action: str
    title: str
    performer: Optional[str]
    comment: str = ""
    params: dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class EmbedAuthor:
    name: str
    url: str


@dataclass(frozen=True)
class EmbedFooter:
    text: str


@dataclass(frozen=True)
class EmbedImage:
    url: str


@dataclass(frozen=True)
class NotificationEmbed:
    """A single embed card for the chat webhook."""

    color: int
    title: str
    url: str
    author: EmbedAuthor
    description: str
    footer: EmbedFooter
    timestamp: str
    image: Optional[EmbedImage] = None

    def to_dict(self) -> dict[str, Any]:
        """Return the wire representation, omitting the image when absent."""

        data: dict[str, Any] = {
            "color": self.color,
            "title": self.title,
            "url": self.url,
            "author": {"name": self.author.name, "url": self.author.url},
            "description": self.description,
            "footer": {"text": self.footer.text},
            "timestamp": self.timestamp,
        }
        if self.image is not None:
            data["image"] = {"url": self.image.url}
        return data


@dataclass(frozen=True)
class WebhookPayload:
    """Envelope POSTed to the webhook."""

    embeds: tuple[NotificationEmbed, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"embeds": [embed.to_dict() for embed in self.embeds]}
