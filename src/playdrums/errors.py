"""Error types raised by the playdrums facade.

Playwright's own errors (``playwright.async_api.Error`` and its
``TimeoutError``) are never wrapped; they reach the caller unchanged.
"""

from __future__ import annotations


class PlayDrumsError(Exception):
    """Base class for every error raised by playdrums itself."""


class BrowserNotOpenError(PlayDrumsError, RuntimeError):
    """Browser, context or page is missing for an operation that needs it."""


class BrowserAlreadyOpenError(PlayDrumsError, RuntimeError):
    """A browser is already running for this session."""


class ElementNotFoundError(PlayDrumsError, LookupError):
    def __init__(self, pattern: str, message: str | None = None):
        self.pattern = pattern
        super().__init__(message or f"Unable to find {pattern}")


class TargetNotFoundError(PlayDrumsError, LookupError):
    """A page, context or cookie lookup matched zero (or too many) targets."""

    def __init__(self, target: str, message: str | None = None):
        self.target = target
        super().__init__(message or f"Cannot find title or URL matching {target}")


__all__ = [
    "BrowserAlreadyOpenError",
    "BrowserNotOpenError",
    "ElementNotFoundError",
    "PlayDrumsError",
    "TargetNotFoundError",
]
