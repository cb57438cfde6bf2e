"""Shared constants and helpers for playdrums modules."""

from __future__ import annotations

import os
import re
import time
from typing import Any, Pattern, Union


DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_NAVIGATION_TIMEOUT_MS = 30_000
DEFAULT_OBSERVE_TIME_MS = 3_000
DEFAULT_RETRY_INTERVAL_MS = 100
DEFAULT_RETRY_TIMEOUT_MS = 10_000
DEFAULT_SETTLE_DELAY_MS = 100

BROWSER_TYPES = ("chromium", "firefox", "webkit")

TRUTHY = frozenset({"1", "true", "yes", "on"})
FALSY = frozenset({"0", "false", "no", "off"})

PageTarget = Union[str, Pattern[str]]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _as_text(value: Any) -> str:
    """``str(value)``, with ``None`` as the empty string."""
    return "" if value is None else str(value)


def _coerce_bool(value: Any) -> bool:
    """Booleans from option values; ``"off"``/``"no"``/``""`` read as False."""
    if isinstance(value, str):
        word = value.strip().lower()
        return word in TRUTHY or (word not in FALSY and bool(word))
    return bool(value)


def _normalize_timeout(timeout_ms: Any, default: int = DEFAULT_TIMEOUT_MS) -> int:
    if timeout_ms is None:
        return default
    try:
        return max(1, int(timeout_ms))
    except (TypeError, ValueError):
        return default


def _parse_bool_env(name: str, default: bool) -> bool:
    word = os.getenv(name, "").strip().lower()
    if word in TRUTHY:
        return True
    if word in FALSY:
        return False
    return default


def _parse_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _parse_int_env(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return max(minimum, int(default))
    try:
        parsed = int(raw.strip())
    except Exception:
        return max(minimum, int(default))
    return max(minimum, parsed)


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _is_pattern(value: Any) -> bool:
    return isinstance(value, re.Pattern)


def _ensure_target(value: Any, *, argument: str) -> PageTarget:
    if isinstance(value, str) or _is_pattern(value):
        return value
    raise TypeError(
        f'The "{argument}" argument must be of type str or re.Pattern. '
        f"Received type {type(value).__name__}"
    )


def _matches_target(target: PageTarget, url: str, title: str) -> bool:
    """Exact match for strings, regex search for compiled patterns."""
    if _is_pattern(target):
        return bool(target.search(url) or target.search(title))
    return url == target or title == target


def _describe_target(target: Any) -> str:
    if _is_pattern(target):
        return f"/{target.pattern}/"
    return _as_text(target)


def _with_scheme(url: str) -> str:
    clean = (url or "").strip()
    if not clean:
        raise ValueError("URL required for navigation")
    if re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*:", clean):
        return clean
    return f"http://{clean}"
