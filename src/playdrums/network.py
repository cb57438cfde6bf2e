"""Network interception mixin for PlayDrums."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .common import _describe_target
from .intercept import ROUTE_PATTERN, InterceptRule
from .logging_utils import _log_browser_event

logger = logging.getLogger(__name__)


class NetworkMixin:
    async def intercept(
        self,
        url: Any,
        response: Any = None,
        count: Optional[int] = None,
    ) -> InterceptRule:
        """
        Intercept requests of the current context whose URL equals ``url``
        (or matches it, for a compiled regex).

        ``response`` decides what happens to a matching request: ``None``
        blocks it, a mapping mocks it (``status``/``headers``/``body``/
        ``content_type``), a string redirects to that URL and a callable
        receives the Playwright ``Route`` (plus the ``Request`` when it takes
        two arguments). ``count`` limits how many requests
        the rule applies to; omitted, zero or negative means unlimited.
        """
        record = self.session.require_context()
        table = record.intercepts
        rule = table.add(url, response, count)
        if not table.installed:
            await record.context.route(ROUTE_PATTERN, table.handle)
            table.installed = True
            _log_browser_event(
                logger, level=logging.DEBUG, event="route_installed", context=record.name
            )
        return rule

    async def clear_intercept(self, url: Any = None) -> int:
        """Drop the rule registered for ``url``, or every rule of the context."""
        record = self.session.require_context()
        table = record.intercepts
        removed = table.clear(url)
        if url is None and table.installed:
            await record.context.unroute(ROUTE_PATTERN, table.handle)
            table.installed = False
        _log_browser_event(
            logger,
            level=logging.DEBUG,
            event="intercept_cleared",
            url=_describe_target(url) if url is not None else "*",
            removed=removed,
        )
        return removed
