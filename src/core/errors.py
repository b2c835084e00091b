"""Exceptions shared by the core and adapters."""

from __future__ import annotations

from typing import Optional


class RelayError(Exception):
    """Base exception for wikirelay."""


class ConfigError(RelayError):
    """Configuration is missing or invalid."""


class ResolutionError(RelayError):
    """A title, user, or file could not be resolved by the host."""


class WikiApiError(RelayError):
    """The wiki API answered with an error or an unreadable response."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code
