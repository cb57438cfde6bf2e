"""Structured ``key=value`` logging for playdrums modules."""

from __future__ import annotations

import logging
import re
from typing import Any


def _format_field(value: Any) -> str:
    if value is True or value is False:
        return str(value).lower()
    if isinstance(value, re.Pattern):
        return f"/{value.pattern}/"
    return str(value)


def _log_browser_event(
    logger: logging.Logger,
    *,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """Log ``playdrums event=<event> k=v ...``; ``None`` fields are left out."""
    if not logger.isEnabledFor(level):
        return
    pairs = [f"event={event}"]
    pairs.extend(
        f"{key}={_format_field(value)}" for key, value in fields.items() if value is not None
    )
    logger.log(level, "playdrums %s", " ".join(pairs))
