"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from core import PROJECT_NAME, PROJECT_URL, __version__
from core.errors import ConfigError


@dataclass(frozen=True)
class FilterPolicy:
    """Snapshot of the notification policy, passed into every invocation."""

    disabled_namespaces: frozenset[int]
    ignore_bots: bool
    webhook_url: str


@dataclass(frozen=True)
class DeliveryConfig:
    """Settings consumed by the webhook delivery adapter.

    ``connect_timeout`` is the socket timeout; ``timeout`` caps the whole
    request, however slowly the server answers.
    """

    timeout: float
    user_agent: str
    connect_timeout: float = 10.0


def build_user_agent(contact: Optional[str] = None) -> str:
    """Return ``wikirelay/<version> (<project url>[; <contact>])``."""

    details = PROJECT_URL if not contact else f"{PROJECT_URL}; {contact}"
    return f"{PROJECT_NAME}/{__version__} ({details})"


def build_filter_policy(notifications: dict[str, Any], webhook_url: Optional[str]) -> FilterPolicy:
    """Build the policy from the notifications section of config.json.

    The webhook URL is required; a deployment without one is broken, so we
    refuse to start rather than silently dropping every change.
    """

    if not webhook_url or not webhook_url.strip():
        raise ConfigError("DISCORD_WEBHOOK_URL must be set to the Discord webhook URL")

    raw_namespaces = notifications.get("disabled_namespaces", []) or []
    try:
        disabled = frozenset(int(ns) for ns in raw_namespaces)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"notifications.disabled_namespaces must be integers: {raw_namespaces!r}") from e

    return FilterPolicy(
        disabled_namespaces=disabled,
        ignore_bots=bool(notifications.get("ignore_bots", False)),
        webhook_url=webhook_url.strip(),
    )
