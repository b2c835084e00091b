"""Namespace and bot filtering applied before any formatting."""

from __future__ import annotations

from core.config import FilterPolicy
from core.models import ChangeEvent


def should_notify(event: ChangeEvent, policy: FilterPolicy) -> bool:
    """Return False for disabled namespaces and, when configured, bot changes."""

    if event.namespace in policy.disabled_namespaces:
        return False
    if policy.ignore_bots and event.bot:
        return False
    return True
