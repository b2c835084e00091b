"""Embed formatters for edits, page creations and log actions.

Each formatter turns a ChangeEvent plus host lookups into one
NotificationEmbed. Free text (edit summaries, rendered log text) is always
escaped; the generated link markup is not, so link targets stay intact.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from core.classifier import SOURCE_EDIT, SOURCE_LOG, SOURCE_NEW
from core.links import diff_query, history_query, markdown_link_url
from core.markdown import escape_markdown
from core.models import (
    COLOR_NEGATIVE,
    COLOR_NEUTRAL,
    COLOR_POSITIVE,
    ChangeEvent,
    EmbedAuthor,
    EmbedFooter,
    EmbedImage,
    NotificationEmbed,
)
from core.ports import FileRepositoryPort, LogFormatterPort, LogStorePort, TitlePort, UserPort

UPLOAD_LOG_TYPE = "upload"


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ISO-8601 in UTC (``2024-01-01T12:00:00Z``)."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def size_color(len_difference: int) -> int:
    if len_difference > 0:
        return COLOR_POSITIVE
    if len_difference == 0:
        return COLOR_NEUTRAL
    return COLOR_NEGATIVE


def format_len_difference(len_difference: int) -> str:
    return f"+{len_difference}" if len_difference > 0 else str(len_difference)


def _with_comment(comment: str, description: str) -> str:
    if not comment:
        return description
    return f"{escape_markdown(comment)} {description}"


class EmbedFormatter:
    """Builds embeds using injected host lookups."""

    def __init__(
        self,
        titles: TitlePort,
        users: UserPort,
        logs: LogStorePort,
        log_formatter: LogFormatterPort,
        files: FileRepositoryPort,
    ) -> None:
        self._titles = titles
        self._users = users
        self._logs = logs
        self._log_formatter = log_formatter
        self._files = files

    def _embed(self, event: ChangeEvent, color: int, description: str, footer: str) -> NotificationEmbed:
        # Resolution errors propagate: no partial notification is ever built.
        user = self._users.profile(event.performer)
        return NotificationEmbed(
            color=color,
            title=self._titles.prefixed_text(event.title),
            url=self._titles.full_url(event.title),
            author=EmbedAuthor(name=user.name, url=user.url),
            description=description,
            footer=EmbedFooter(text=footer),
            timestamp=format_timestamp(event.timestamp),
        )

    def edit_to_embed(self, event: ChangeEvent) -> NotificationEmbed:
        """Embed for an edit, colored by the sign of the size change."""

        diff_link = markdown_link_url(self._titles, event.title, diff_query(event))
        hist_link = markdown_link_url(self._titles, event.title, history_query(event))
        len_difference = (event.new_len or 0) - (event.old_len or 0)
        description = f"([diff]({diff_link}) | [hist]({hist_link})) ({format_len_difference(len_difference)})"
        return self._embed(
            event,
            color=size_color(len_difference),
            description=_with_comment(event.comment, description),
            footer=SOURCE_EDIT,
        )

    def new_to_embed(self, event: ChangeEvent) -> NotificationEmbed:
        """Embed for a page creation; creations carry no size delta color."""

        hist_link = markdown_link_url(self._titles, event.title, history_query(event))
        description = f"([hist]({hist_link})) ({event.new_len or 0})"
        return self._embed(
            event,
            color=COLOR_NEUTRAL,
            description=_with_comment(event.comment, description),
            footer=SOURCE_NEW,
        )

    def log_to_embed(self, event: ChangeEvent) -> Optional[NotificationEmbed]:
        """Embed for a log action, or None when the log entry is gone.

        Log entries can legitimately be deleted or suppressed between the
        change and the lookup, so a missing entry is not an error.
        """

        if event.log_id is None:
            return None
        entry = self._logs.get_log_entry(event.log_id, event.log_type, event.title)
        if entry is None:
            return None

        description = self._log_formatter.plain_action_text(entry)
        if entry.comment:
            description = f"{description}: {entry.comment}"

        embed = self._embed(
            event,
            color=COLOR_NEUTRAL,
            description=escape_markdown(description),
            footer=SOURCE_LOG,
        )
        if event.log_type == UPLOAD_LOG_TYPE:
            embed = replace(embed, image=EmbedImage(url=self._files.file_url(event.title)))
        return embed
