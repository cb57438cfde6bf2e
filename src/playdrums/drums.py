"""
PlayDrums facade.

One ``PlayDrums`` instance owns one session (browser, current context,
current page and their history) and one configuration store. Actions are
meant to be awaited one after the other; the session is not guarded against
concurrent mutation.

Example::

    drums = PlayDrums()
    await drums.open_browser(headless=True)
    await drums.open_page(url="https://example.test")
    await drums.write("admin", drums.select("#login"))
    await drums.click(drums.select("Sign in"), wait_for_navigation=True)
    await drums.close_browser()
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping, Optional

from playwright.async_api import async_playwright

from .config import ConfigStore
from .context_settings import ContextSettingsMixin
from .interaction import InteractionMixin
from .lifecycle import LifecycleMixin
from .navigation import NavigationMixin
from .network import NetworkMixin
from .session import Session


async def _start_playwright() -> Any:
    return await async_playwright().start()


class PlayDrums(
    LifecycleMixin,
    NavigationMixin,
    InteractionMixin,
    NetworkMixin,
    ContextSettingsMixin,
):
    """Simplified action/assertion vocabulary over Playwright's async API."""

    def __init__(
        self,
        config: Optional[ConfigStore] = None,
        *,
        playwright_factory: Optional[Callable[[], Awaitable[Any]]] = None,
    ) -> None:
        self.config = config or ConfigStore()
        self.session = Session()
        self._playwright_factory = playwright_factory or _start_playwright

    async def __aenter__(self) -> "PlayDrums":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.close_browser()

    def set_config(self, partial: Optional[Mapping[str, Any]] = None, **options: Any) -> None:
        self.config.set_config(partial, **options)

    def get_config(self, name: Optional[str] = None) -> Any:
        return self.config.get_config(name)

    @property
    def page(self) -> Any:
        return self.session.page

    @property
    def context(self) -> Any:
        record = self.session.context
        return record.context if record is not None else None

    @property
    def browser(self) -> Any:
        return self.session.browser


_PLAYDRUMS: Optional[PlayDrums] = None


def get_playdrums() -> PlayDrums:
    """Shared facade for step definitions that do not pass one around."""
    global _PLAYDRUMS
    if _PLAYDRUMS is None:
        _PLAYDRUMS = PlayDrums()
    return _PLAYDRUMS


def set_playdrums(drums: Optional[PlayDrums]) -> None:
    global _PLAYDRUMS
    _PLAYDRUMS = drums


__all__ = ["PlayDrums", "get_playdrums", "set_playdrums"]
