"""Process-level option bag merged into every playdrums call.

Options are stored under snake_case names. The camelCase spellings used by
step definitions written against the JavaScript API (``navigationTimeout``,
``extraHTTPHeaders``...) are accepted everywhere and normalised on entry.

Precedence when resolving the options of a call::

    defaults  <-  stored config  <-  call-site overrides
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from .common import (
    DEFAULT_NAVIGATION_TIMEOUT_MS,
    DEFAULT_OBSERVE_TIME_MS,
    DEFAULT_RETRY_INTERVAL_MS,
    DEFAULT_RETRY_TIMEOUT_MS,
    DEFAULT_SETTLE_DELAY_MS,
    DEFAULT_TIMEOUT_MS,
    _coerce_bool,
    _parse_bool_env,
    _parse_int_env,
    _parse_str_env,
)
from .logging_utils import _log_browser_event

logger = logging.getLogger(__name__)

OPTION_ALIASES: Dict[str, str] = {
    "browserType": "browser_type",
    "navigationTimeout": "navigation_timeout",
    "defaultTimeout": "timeout",
    "default_timeout": "timeout",
    "observeTime": "observe_time",
    "retryInterval": "retry_interval",
    "retryTimeout": "retry_timeout",
    "matchHiddenElement": "match_hidden_element",
    "implicitWait": "implicit_wait",
    "waitForEvent": "wait_for_event",
    "waitForRequest": "wait_for_request",
    "waitForResponse": "wait_for_response",
    "waitForNavigation": "wait_for_navigation",
    "extraHTTPHeaders": "extra_http_headers",
    "waitUntil": "wait_until",
    "contextName": "context_name",
    "settleDelay": "settle_delay",
    "ignoreHTTPSErrors": "ignore_https_errors",
    "launchArgs": "launch_args",
    "debugEvents": "debug_events",
}

BOOLEAN_OPTIONS = frozenset(
    {
        "headless",
        "observe",
        "implicit_wait",
        "match_hidden_element",
        "wait_for_navigation",
        "ignore_https_errors",
    }
)


def default_options() -> Dict[str, Any]:
    """Built-in defaults, with environment overrides applied."""
    return {
        "headless": _parse_bool_env("PLAYDRUMS_HEADLESS", False),
        "browser_type": _parse_str_env("PLAYDRUMS_BROWSER_TYPE", "chromium"),
        "navigation_timeout": _parse_int_env(
            "PLAYDRUMS_NAVIGATION_TIMEOUT_MS", DEFAULT_NAVIGATION_TIMEOUT_MS, 1
        ),
        "timeout": _parse_int_env("PLAYDRUMS_TIMEOUT_MS", DEFAULT_TIMEOUT_MS, 1),
        "observe": _parse_bool_env("PLAYDRUMS_OBSERVE", False),
        "observe_time": _parse_int_env("PLAYDRUMS_OBSERVE_TIME_MS", DEFAULT_OBSERVE_TIME_MS, 0),
        "retry_interval": DEFAULT_RETRY_INTERVAL_MS,
        "retry_timeout": DEFAULT_RETRY_TIMEOUT_MS,
        "match_hidden_element": True,
        "implicit_wait": False,
        "wait_for_event": None,
        "wait_for_request": None,
        "wait_for_response": None,
        "wait_for_navigation": False,
        "wait_until": "load",
        "settle_delay": DEFAULT_SETTLE_DELAY_MS,
        "device": None,
        "extra_http_headers": None,
        "url": None,
        "context_name": None,
        "ignore_https_errors": False,
        "launch_args": None,
        "debug_events": None,
    }


def normalize_option_key(key: str) -> str:
    clean = str(key).strip()
    return OPTION_ALIASES.get(clean, clean)


def normalize_options(options: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    for key, value in (options or {}).items():
        name = normalize_option_key(key)
        if name in BOOLEAN_OPTIONS and value is not None:
            value = _coerce_bool(value)
        normalized[name] = value
    return normalized


class ConfigStore:
    """Mutable option bag shared by every action of one facade."""

    def __init__(self, defaults: Optional[Mapping[str, Any]] = None) -> None:
        self._defaults: Dict[str, Any] = normalize_options(
            defaults if defaults is not None else default_options()
        )
        self._stored: Dict[str, Any] = {}

    def set_config(self, partial: Optional[Mapping[str, Any]] = None, **options: Any) -> None:
        updates = normalize_options(partial)
        updates.update(normalize_options(options))
        unknown = sorted(key for key in updates if key not in self._defaults)
        if unknown:
            raise KeyError(f"Unknown configuration option(s): {', '.join(unknown)}")
        self._stored.update(updates)
        _log_browser_event(logger, level=logging.DEBUG, event="set_config", keys=",".join(updates))

    def get_config(self, name: Optional[str] = None) -> Any:
        merged = {**self._defaults, **self._stored}
        if name is None:
            return merged
        return merged.get(normalize_option_key(name))

    def reset(self) -> None:
        self._stored.clear()

    def resolve(self, overrides: Optional[Mapping[str, Any]] = None, **options: Any) -> Dict[str, Any]:
        call_site = normalize_options(overrides)
        call_site.update(normalize_options(options))
        # None at the call site means "not given", never "unset".
        call_site = {key: value for key, value in call_site.items() if value is not None}
        return {**self._defaults, **self._stored, **call_site}


__all__ = ["ConfigStore", "OPTION_ALIASES", "default_options", "normalize_options"]
