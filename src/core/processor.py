"""Core change processing pipeline.

This module is integration-agnostic. It only relies on ports for host lookups
and notifications, enabling other wikis or chat backends without changes here.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.classifier import EventKind, classify
from core.config import FilterPolicy
from core.filters import should_notify
from core.formatters import EmbedFormatter
from core.models import ChangeEvent, NotificationEmbed, WebhookPayload
from core.ports import NotifierPort

LOGGER = logging.getLogger(__name__)


class ChangeProcessor:
    """Orchestrates filtering, classification, formatting, and delivery."""

    def __init__(self, formatter: EmbedFormatter, notifier: NotifierPort) -> None:
        self._formatter = formatter
        self._notifier = notifier

    def build_payload(self, event: ChangeEvent) -> Optional[WebhookPayload]:
        """Return the payload for an event, or None when nothing should be sent."""

        kind = classify(event)
        embed: Optional[NotificationEmbed]
        if kind is EventKind.EDIT:
            embed = self._formatter.edit_to_embed(event)
        elif kind is EventKind.NEW_PAGE:
            embed = self._formatter.new_to_embed(event)
        elif kind is EventKind.LOG_ACTION:
            embed = self._formatter.log_to_embed(event)
            if embed is None:
                LOGGER.info("Log entry %s not found, skipping rc %s", event.log_id, event.rc_id)
                return None
        else:
            LOGGER.debug("Ignoring rc %s with source %r", event.rc_id, event.source)
            return None
        return WebhookPayload(embeds=(embed,))

    def handle(self, event: ChangeEvent, policy: FilterPolicy) -> None:
        """Process one change event through the core pipeline.

        Title and user resolution errors propagate to the caller; nothing is
        sent for that event.
        """

        if not should_notify(event, policy):
            LOGGER.debug("Filtered rc %s (namespace=%s, bot=%s)", event.rc_id, event.namespace, event.bot)
            return

        payload = self.build_payload(event)
        if payload is None:
            return

        self._notifier.send(payload, policy.webhook_url)
        LOGGER.info("Relayed rc %s (%s: %s)", event.rc_id, event.source, event.title)
