"""Navigation mixin for PlayDrums."""

from __future__ import annotations

import logging
from typing import Any

from .common import _as_text, _normalize_timeout, _with_scheme
from .logging_utils import _log_browser_event
from .waiting import observe_pause, run_with_waits

logger = logging.getLogger(__name__)


class NavigationMixin:
    async def goto(self, url: str, **options: Any) -> Any:
        """
        Navigate the current page to ``url``; ``http://`` is prepended when
        no scheme is given. Returns Playwright's main-resource response.
        """
        opts = self.config.resolve(options)
        self.session.validate()
        page = self.session.page
        target = _with_scheme(url)
        headers = opts.get("extra_http_headers")
        if headers:
            await page.set_extra_http_headers(dict(headers))
        response = await run_with_waits(
            page.goto(
                target,
                timeout=_normalize_timeout(opts.get("navigation_timeout")),
                wait_until=opts.get("wait_until") or "load",
            ),
            page,
            opts,
            navigates=True,
        )
        _log_browser_event(logger, level=logging.INFO, event="goto", url=target)
        await observe_pause(opts)
        return response

    async def reload(self, **options: Any) -> Any:
        opts = self.config.resolve(options)
        self.session.validate()
        page = self.session.page
        response = await run_with_waits(
            page.reload(
                timeout=_normalize_timeout(opts.get("navigation_timeout")),
                wait_until=opts.get("wait_until") or "load",
            ),
            page,
            opts,
            navigates=True,
        )
        await observe_pause(opts)
        return response

    async def go_back(self, **options: Any) -> Any:
        opts = self.config.resolve(options)
        self.session.validate()
        page = self.session.page
        response = await run_with_waits(
            page.go_back(timeout=_normalize_timeout(opts.get("navigation_timeout"))),
            page,
            opts,
            navigates=True,
        )
        await observe_pause(opts)
        return response

    async def go_forward(self, **options: Any) -> Any:
        opts = self.config.resolve(options)
        self.session.validate()
        page = self.session.page
        response = await run_with_waits(
            page.go_forward(timeout=_normalize_timeout(opts.get("navigation_timeout"))),
            page,
            opts,
            navigates=True,
        )
        await observe_pause(opts)
        return response

    def current_url(self) -> str:
        self.session.validate()
        return _as_text(self.session.page.url)

    async def title(self) -> str:
        self.session.validate()
        return _as_text(await self.session.page.title())
