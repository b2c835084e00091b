"""Link helpers for embed descriptions (core domain)."""

from __future__ import annotations

from core.models import ChangeEvent
from core.ports import TitlePort


def encode_link_url(url: str) -> str:
    """Percent-encode parentheses so a URL cannot close a markdown link early.

    Only apply this to URLs placed inside ``[text](url)``; plain URL fields
    are sent as-is.
    """

    return url.replace("(", "%28").replace(")", "%29")


def history_query(event: ChangeEvent) -> str:
    return f"action=history&curid={event.page_id}"


def diff_query(event: ChangeEvent) -> str:
    """Query for a diff of the change's parent revision against the current one."""

    return f"curid={event.page_id}&oldid={event.old_revision_id}&diff=0"


def markdown_link_url(titles: TitlePort, title: str, query: str) -> str:
    """Resolve ``title`` + ``query`` to a URL safe for markdown link syntax."""

    return encode_link_url(titles.full_url(title, query))
