"""Lazy element selectors resolved across every frame of the current page."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

from playwright.async_api import Error as PlaywrightError

from .common import DEFAULT_RETRY_INTERVAL_MS, DEFAULT_RETRY_TIMEOUT_MS, _as_text
from .errors import ElementNotFoundError
from .logging_utils import _log_browser_event
from .session import Session
from .waiting import poll_until

logger = logging.getLogger(__name__)

ELEMENTS_ABOVE_JS = """
(element) => {
  const rect = element.getBoundingClientRect();
  const left = rect.left + 1;
  const right = rect.right - 1;
  const top = rect.top + 1;
  const bottom = rect.bottom - 1;
  for (const [x, y] of [[left, top], [right, top], [left, bottom], [right, bottom]]) {
    if (document.elementFromPoint(x, y) !== element) return true;
  }
  return false;
}
"""

VALUE_JS = "(element) => element.value"


def _fallback_patterns(pattern: str) -> List[str]:
    """The pattern itself, then an exact-text XPath, then an any-attribute XPath."""
    candidates = [pattern]
    if '"' not in pattern:
        candidates.append(f'//*[text()="{pattern}"]')
        candidates.append(f'//*[@*="{pattern}"]')
    return candidates


class Selector:
    """
    Deferred reference to one or more DOM elements.

    A selector is built either from a string pattern (CSS, XPath or any
    Playwright selector, with text/attribute XPath fallbacks) or from an
    element handle that is already resolved. String patterns are looked up
    again on every use against the live frames of the session's current
    page; a child selector is looked up inside its parent's element.
    """

    def __init__(
        self,
        session: Session,
        pattern: Any,
        options: Optional[Mapping[str, Any]] = None,
        parent: Optional["Selector"] = None,
    ) -> None:
        self._session = session
        self.options: Dict[str, Any] = dict(options or {})
        self.parent = parent
        self.pattern: Optional[str] = None
        self._handle: Any = None
        self._effective: Optional[str] = None
        if isinstance(pattern, str):
            if not pattern.strip():
                raise ValueError("Selector pattern must be a non-empty string")
            self.pattern = pattern
        elif pattern is None:
            raise TypeError("Selector needs a string pattern or an element handle")
        else:
            self._handle = pattern

    def __repr__(self) -> str:
        if self.pattern is None:
            return f"Selector(handle={self._handle!r})"
        return f"Selector({self.selector!r})"

    @property
    def selector(self) -> str:
        """The pattern variant that last matched, or the pattern as given."""
        return self._effective or self.pattern or _as_text(self._handle)

    def select_child(self, pattern: str, **options: Any) -> "Selector":
        """Child selector resolved relative to this selector's element."""
        return Selector(self._session, pattern, {**self.options, **options}, parent=self)

    S = select_child

    # ------------------------------------------------------------------ #
    # Resolution
    # ------------------------------------------------------------------ #

    async def get_element_handle(self) -> Any:
        if self._handle is not None:
            return self._handle
        if not self.options.get("implicit_wait"):
            return await self._resolve_once()
        return await poll_until(
            self._resolve_once,
            interval_ms=int(self.options.get("retry_interval") or DEFAULT_RETRY_INTERVAL_MS),
            timeout_ms=int(self.options.get("retry_timeout") or DEFAULT_RETRY_TIMEOUT_MS),
            retry_on=(ElementNotFoundError,),
        )

    async def elements(self) -> List[Any]:
        """Every matching element across all frames (empty list when none)."""
        if self._handle is not None:
            return [self._handle]
        roots = await self._roots()
        candidates = [self._effective] if self._effective else _fallback_patterns(self.pattern)
        for candidate in candidates:
            results = await asyncio.gather(
                *(self._query_all(root, candidate) for root in roots)
            )
            found = [handle for batch in results for handle in batch]
            if found:
                self._effective = candidate
                return found
        return []

    async def _resolve_once(self) -> Any:
        roots = await self._roots()
        candidates = [self._effective] if self._effective else _fallback_patterns(self.pattern)
        for candidate in candidates:
            handle = await self._race(roots, candidate)
            if handle is not None:
                self._effective = candidate
                return handle
        _log_browser_event(
            logger,
            level=logging.DEBUG,
            event="selector_miss",
            pattern=self.pattern,
            roots=len(roots),
        )
        raise ElementNotFoundError(self.pattern)

    async def _roots(self) -> List[Any]:
        if self.parent is not None:
            return [await self.parent.get_element_handle()]
        self._session.validate()
        page = self._session.page
        frames = list(getattr(page, "frames", None) or [])
        return frames or [page]

    async def _race(self, roots: List[Any], pattern: str) -> Any:
        """First root to yield an element wins; frame order is not guaranteed."""
        if len(roots) == 1:
            return await self._query(roots[0], pattern)
        pending = {asyncio.ensure_future(self._query(root, pattern)) for root in roots}
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    handle = task.result()
                    if handle is not None:
                        return handle
            return None
        finally:
            for task in pending:
                task.cancel()

    async def _query(self, root: Any, pattern: str) -> Any:
        if self.options.get("match_hidden_element", True):
            try:
                return await root.query_selector(pattern)
            except PlaywrightError as exc:
                _log_browser_event(
                    logger, level=logging.DEBUG, event="query_failed", pattern=pattern, error=exc
                )
                return None
        handles = await self._query_all(root, pattern)
        return handles[0] if handles else None

    async def _query_all(self, root: Any, pattern: str) -> List[Any]:
        try:
            handles = await root.query_selector_all(pattern)
        except PlaywrightError as exc:
            _log_browser_event(
                logger, level=logging.DEBUG, event="query_failed", pattern=pattern, error=exc
            )
            return []
        if self.options.get("match_hidden_element", True):
            return list(handles)
        visible: List[Any] = []
        for handle in handles:
            try:
                shown = await handle.is_visible()
            except PlaywrightError as exc:
                # Detached between the query and the check; counts as a miss.
                _log_browser_event(
                    logger, level=logging.DEBUG, event="query_failed", pattern=pattern, error=exc
                )
                continue
            if shown:
                visible.append(handle)
        return visible

    # ------------------------------------------------------------------ #
    # Queries and element-level actions
    # ------------------------------------------------------------------ #

    async def exists(self) -> bool:
        """
        False when nothing matches in eager mode. With implicit wait the
        lookup is retried and the last failure raised once it times out.
        """
        if self.options.get("implicit_wait"):
            await self.get_element_handle()
            return True
        try:
            await self.get_element_handle()
        except ElementNotFoundError:
            return False
        return True

    async def text(self) -> str:
        handle = await self.get_element_handle()
        return _as_text(await handle.inner_text())

    async def value(self) -> Any:
        handle = await self.get_element_handle()
        return await handle.evaluate(VALUE_JS)

    async def select(self, value: Any) -> List[str]:
        handle = await self.get_element_handle()
        return await handle.select_option(value)

    async def check(self) -> None:
        handle = await self.get_element_handle()
        await handle.check()

    async def uncheck(self) -> None:
        handle = await self.get_element_handle()
        await handle.uncheck()

    async def is_checked(self) -> bool:
        handle = await self.get_element_handle()
        return bool(await handle.is_checked())

    async def is_visible(self) -> bool:
        try:
            handle = await self.get_element_handle()
        except ElementNotFoundError:
            return False
        return bool(await handle.is_visible())

    async def has_element_above(self) -> bool:
        """True when another element covers one of this element's corners."""
        handle = await self.get_element_handle()
        return bool(await handle.evaluate(ELEMENTS_ABOVE_JS))


__all__ = ["Selector"]
