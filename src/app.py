"""Application entry point for the wikirelay watcher."""

from __future__ import annotations

import argparse
import logging
import os
import time
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

import settings
from adapters.discord_webhook import DiscordWebhookNotifier
from adapters.log_formatting import PlainLogFormatter
from adapters.mediawiki_api import MediaWikiClient
from adapters.mediawiki_feed import RecentChangesFeed
from adapters.sqlite_storage import FeedStateStorage
from core.config import DeliveryConfig, FilterPolicy, build_filter_policy
from core.errors import ConfigError, WikiApiError
from core.formatters import EmbedFormatter
from core.processor import ChangeProcessor

NAME = "WIKIRELAY"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    # The webhook URL embeds its token, so it is always masked.
    values = [settings.WEBHOOK_URL] if settings.WEBHOOK_URL else []
    redact_cfg = config.get("redact", {}) if config else {}
    if redact_cfg.get("enabled", False):
        for name in redact_cfg.get("patterns", []):
            value = os.getenv(name)
            if value:
                values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", True):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/wikirelay.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _load_policy() -> FilterPolicy:
    # Fail fast: a missing webhook is a deployment error, not a runtime one.
    policy = build_filter_policy(settings.NOTIFICATIONS, settings.WEBHOOK_URL)
    if not settings.WIKI_API_URL:
        raise ConfigError("wiki.api_url must be set in config.json")
    return policy


def _build_client() -> MediaWikiClient:
    return MediaWikiClient(
        api_url=settings.WIKI_API_URL,
        user_agent=settings.USER_AGENT,
        timeout=settings.CONNECT_TIMEOUT,
    )


def _build_processor(client: MediaWikiClient) -> ChangeProcessor:
    formatter = EmbedFormatter(
        titles=client,
        users=client,
        logs=client,
        log_formatter=PlainLogFormatter(),
        files=client,
    )
    notifier = DiscordWebhookNotifier(
        DeliveryConfig(
            timeout=settings.DELIVERY_TIMEOUT,
            user_agent=settings.USER_AGENT,
            connect_timeout=settings.CONNECT_TIMEOUT,
        )
    )
    return ChangeProcessor(formatter=formatter, notifier=notifier)


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    policy = _load_policy()
    logger.info("Starting wikirelay for %s", settings.WIKI_API_URL)
    logger.info(
        "Disabled namespaces: %s, ignore bots: %s",
        sorted(policy.disabled_namespaces),
        policy.ignore_bots,
    )

    storage = FeedStateStorage(settings.DB_PATH)
    storage.init_db()

    client = _build_client()
    feed = RecentChangesFeed(
        source=client,
        storage=storage,
        processor=_build_processor(client),
        batch_size=settings.BATCH_SIZE,
    )

    catch_up = settings.CATCH_UP_CHANGES if settings.CATCH_UP_ENABLED else None
    feed.start(policy, catch_up_changes=catch_up)

    logger.info("Polling every %ss", settings.POLL_INTERVAL)
    try:
        while True:
            try:
                relayed = feed.poll_once(policy)
                if relayed:
                    logger.info("Processed %s changes", relayed)
            except WikiApiError:
                logger.exception("Recent changes request failed, retrying next poll")
            time.sleep(settings.POLL_INTERVAL)
    except KeyboardInterrupt:
        logger.info("Stopping wikirelay")


def _check() -> None:
    _print_banner()
    _configure_logging()

    policy = _load_policy()
    client = _build_client()
    general = client.site_info()

    print(f"Wiki:                {general.get('sitename', '?')} ({client.full_url(general.get('mainpage', 'Main Page'))})")
    print(f"API:                 {settings.WIKI_API_URL}")
    print(f"Disabled namespaces: {sorted(policy.disabled_namespaces) or 'none'}")
    print(f"Ignore bots:         {policy.ignore_bots}")
    print(f"User agent:          {settings.USER_AGENT}")
    print("Configuration OK")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="wikirelay")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start relaying recent changes")
    subparsers.add_parser("check", help="Validate configuration and reach the wiki")

    args = parser.parse_args(argv)
    if args.command == "check":
        _check()
        return
    _run()


if __name__ == "__main__":
    main()
