"""Browser, context and page lifecycle mixin for PlayDrums."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from .common import (
    _as_text,
    _describe_target,
    _ensure_target,
    _matches_target,
    _normalize_timeout,
    _now_ms,
)
from .errors import BrowserAlreadyOpenError, TargetNotFoundError
from .intercept import InterceptTable
from .launch import build_context_options, build_launch_options, resolve_browser_type
from .logging_utils import _log_browser_event
from .session import ContextRecord

logger = logging.getLogger(__name__)


async def _page_title(page: Any) -> str:
    try:
        return _as_text(await page.title())
    except Exception:
        return ""


class LifecycleMixin:
    async def open_browser(self, **options: Any) -> None:
        """
        Launch a browser. With ``url``, a context and a page are opened too.

        Only one browser per session: a second call fails until
        ``close_browser()`` has run.
        """
        opts = self.config.resolve(options)
        if self.session.browser is not None:
            raise BrowserAlreadyOpenError("Browser already opened")
        browser_type = resolve_browser_type(opts.get("browser_type"))

        playwright = await self._playwright_factory()
        try:
            launcher = getattr(playwright, browser_type)
            browser = await launcher.launch(**build_launch_options(opts))
        except Exception:
            await playwright.stop()
            raise
        self.session.playwright = playwright
        self.session.browser = browser
        _log_browser_event(
            logger,
            level=logging.INFO,
            event="browser_opened",
            browser_type=browser_type,
            headless=bool(opts.get("headless")),
        )
        if opts.get("url"):
            await self.open_context(**options)

    async def open_context(self, **options: Any) -> None:
        """Open a new named browsing context; with ``url`` a page is opened in it."""
        opts = self.config.resolve(options)
        self.session.require_browser()
        name = _as_text(opts.get("context_name")).strip() or f"default-{_now_ms()}"
        if self.session.find_contexts(name):
            raise ValueError(f"Context {name!r} is already open")

        context = await self.session.browser.new_context(
            **build_context_options(self.session.playwright, opts)
        )
        context.set_default_timeout(_normalize_timeout(opts.get("timeout")))
        context.set_default_navigation_timeout(
            _normalize_timeout(opts.get("navigation_timeout"))
        )
        record = ContextRecord(
            context=context,
            name=name,
            opener=self.session.context,
            intercepts=InterceptTable(),
        )
        self.session.contexts.append(record)
        self.session.context = record
        self.session.page = None
        _log_browser_event(logger, level=logging.INFO, event="context_opened", name=name)
        if opts.get("url"):
            await self.open_page(**options)

    async def open_page(self, **options: Any) -> None:
        """Open a tab in the current context (a default context is created if needed)."""
        opts = self.config.resolve(options)
        self.session.require_browser()
        if self.session.context is None:
            await self.open_context(**{k: v for k, v in options.items() if k != "url"})
        record = self.session.require_context()

        page = await record.context.new_page()
        page_id = self.session.tag_page(page)
        self._watch_page(page, opts)
        self.session.push("new", record, page)
        _log_browser_event(
            logger,
            level=logging.INFO,
            event="page_opened",
            context=record.name,
            page_id=page_id,
        )
        url = opts.get("url")
        if url:
            await self.goto(url, **{k: v for k, v in options.items() if k != "url"})

    def _watch_page(self, page: Any, options: Any) -> None:
        page.on("close", lambda *_args, page_obj=page: self._on_page_closed(page_obj))
        for event in options.get("debug_events") or ():
            page.on(
                event,
                lambda *_args, name=event: _log_browser_event(
                    logger, level=logging.DEBUG, event="page_event", name=name
                ),
            )

    def _on_page_closed(self, page: Any) -> None:
        if self.session.forget_pages([page]):
            self.session.restore_latest()

    async def close_browser(self) -> None:
        """Close every context, the browser and Playwright. Safe to call twice."""
        session = self.session
        for record in list(session.contexts):
            try:
                await record.context.close()
            except Exception as exc:
                _log_browser_event(
                    logger, level=logging.DEBUG, event="context_close_failed", error=exc
                )
        browser = session.browser
        playwright = session.playwright
        session.reset()
        try:
            if browser is not None:
                await browser.close()
        finally:
            if playwright is not None:
                await playwright.stop()
        if browser is not None:
            _log_browser_event(logger, level=logging.INFO, event="browser_closed")

    async def close_context(self, name: Optional[str] = None) -> None:
        """Close the named (or current) context and fall back to the previous page."""
        current = self.session.require_context()
        name = name or current.name
        matches = self.session.find_contexts(name)
        if len(matches) != 1:
            raise TargetNotFoundError(name, f"Found {len(matches)} context(s) matching {name}")
        record = matches[0]

        if self.session.forget_context(record):
            self.session.restore_latest()
        await record.context.close()
        _log_browser_event(logger, level=logging.INFO, event="context_closed", name=name)

    async def close_page(self, target: Any = None, context_name: Optional[str] = None) -> None:
        """
        Close the current tab, or every tab of a context whose URL or title
        matches ``target`` (exact string, or regex search).

        With only ``context_name``, the tab last used in that context is
        closed; nothing happens when the context has no such tab.
        """
        self.session.validate()
        if target is None:
            record = self._context_by_name(context_name)
            page = self.session.latest_page(record)
            if page is None:
                _log_browser_event(
                    logger, level=logging.DEBUG, event="close_page_skipped", context=record.name
                )
                return
            await page.close()
            self._on_page_closed(page)
            return

        target = _ensure_target(target, argument="target")
        record = self._context_by_name(context_name)
        pages = await self._matching_pages(record.context.pages, target)
        if not pages:
            raise TargetNotFoundError(
                _describe_target(target),
                f"Unable to find tab matching {_describe_target(target)}",
            )
        for page in pages:
            await page.close()
        if self.session.forget_pages(pages):
            self.session.restore_latest()

    async def switch_page(self, target: Any) -> None:
        """Make the first tab of the current context matching ``target`` current."""
        self.session.validate()
        target = _ensure_target(target, argument="target")
        record = self.session.context
        pages = await self._matching_pages(record.context.pages, target, first_only=True)
        if not pages:
            raise TargetNotFoundError(_describe_target(target))
        await self._activate(record, pages[0])

    async def switch_context(self, target: Any, name: Optional[str] = None) -> None:
        """Like ``switch_page`` but searching every context, or only the named one."""
        self.session.validate()
        target = _ensure_target(target, argument="target")
        records = [self._context_by_name(name)] if name else list(self.session.contexts)
        for record in records:
            pages = await self._matching_pages(record.context.pages, target, first_only=True)
            if pages:
                await self._activate(record, pages[0])
                return
        raise TargetNotFoundError(_describe_target(target))

    async def _activate(self, record: ContextRecord, page: Any) -> None:
        if self.session.page_id(page) is None:
            # Tabs the site opened itself (popups, target=_blank) are first seen here.
            self._watch_page(page, self.config.resolve())
            self.session.tag_page(page)
        self.session.push("switch", record, page)
        await page.bring_to_front()
        _log_browser_event(
            logger,
            level=logging.DEBUG,
            event="page_switched",
            context=record.name,
            url=_as_text(page.url),
        )

    def _context_by_name(self, name: Optional[str]) -> ContextRecord:
        current = self.session.context
        if not name or (current is not None and name == current.name):
            return self.session.require_context()
        matches = self.session.find_contexts(name)
        if len(matches) != 1:
            raise TargetNotFoundError(name, f"Found {len(matches)} context(s) matching {name}")
        return matches[0]

    @staticmethod
    async def _matching_pages(
        pages: Iterable[Any],
        target: Any,
        *,
        first_only: bool = False,
    ) -> List[Any]:
        found: List[Any] = []
        for page in pages:
            title = await _page_title(page)
            if _matches_target(target, _as_text(page.url), title):
                found.append(page)
                if first_only:
                    break
        return found
