"""Static configuration for wikirelay.

All user-editable settings (wiki, notifications, catch-up, logging) live in a
single JSON file; the webhook URL is a secret and comes from the environment
(or a .env file) so it stays out of the repo.
"""

import json
import os

from dotenv import load_dotenv

from core.config import build_user_agent

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

load_dotenv(os.path.join(PROJECT_ROOT, ".env"))

# Where to store the SQLite feed state.
DB_PATH = os.getenv("WIKIRELAY_DB", os.path.join(PROJECT_ROOT, "wikirelay.db"))

CONFIG_PATH = os.getenv("WIKIRELAY_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Wiki to watch and how often to ask it for new changes.
_wiki = _CONFIG.get("wiki", {})
WIKI_API_URL = _wiki.get("api_url")
POLL_INTERVAL = float(_wiki.get("poll_interval", 30))
BATCH_SIZE = int(_wiki.get("batch_size", 50))

# Notification policy. The environment wins over config.json for the webhook.
NOTIFICATIONS = _CONFIG.get("notifications", {})
WEBHOOK_URL = os.getenv("DISCORD_WEBHOOK_URL") or NOTIFICATIONS.get("webhook_url")
# connect_timeout bounds the socket; timeout caps a whole delivery.
CONNECT_TIMEOUT = float(NOTIFICATIONS.get("connect_timeout", 10))
DELIVERY_TIMEOUT = float(NOTIFICATIONS.get("timeout", 10))

# Identifies us to both the wiki API and the webhook host.
USER_AGENT = build_user_agent(NOTIFICATIONS.get("user_agent_contact"))

# Catch-up on first start relays the latest N changes instead of starting silent.
_catch_up = _CONFIG.get("catch_up", {})
CATCH_UP_ENABLED = bool(_catch_up.get("enabled", False))
CATCH_UP_CHANGES = int(_catch_up.get("changes", 25))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
