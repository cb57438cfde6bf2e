"""Session state: the active browser/context/page triple and its history."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .errors import BrowserNotOpenError
from .intercept import InterceptTable


@dataclass(eq=False)
class ContextRecord:
    context: Any
    name: str
    opener: Optional["ContextRecord"] = None
    intercepts: InterceptTable = field(default_factory=InterceptTable)


@dataclass(eq=False)
class HistoryEntry:
    event: str
    context: ContextRecord
    page: Any


@dataclass
class Session:
    """
    Mutable state of one playdrums facade.

    ``history`` lists every page that was opened or switched to, most recent
    last. Entries are dropped when their page or context is closed, so the
    last entry is always the page to fall back to.
    """

    playwright: Any = None
    browser: Any = None
    context: Optional[ContextRecord] = None
    page: Any = None
    history: List[HistoryEntry] = field(default_factory=list)
    contexts: List[ContextRecord] = field(default_factory=list)
    page_ids: Dict[int, str] = field(default_factory=dict)

    def validate(self) -> None:
        if self.browser is None or self.context is None or self.page is None:
            raise BrowserNotOpenError(
                "Browser or page not initialized. Call `open_browser()` before using this API"
            )

    def require_browser(self) -> None:
        if self.browser is None:
            raise BrowserNotOpenError("Browser not opened. Call `open_browser()` first")

    def require_context(self) -> ContextRecord:
        self.require_browser()
        if self.context is None:
            raise BrowserNotOpenError(
                "Context not initialized. Call `open_context()` before using this API"
            )
        return self.context

    def tag_page(self, page: Any) -> str:
        key = id(page)
        known = self.page_ids.get(key)
        if known:
            return known
        page_id = str(uuid.uuid4())
        self.page_ids[key] = page_id
        return page_id

    def page_id(self, page: Any) -> Optional[str]:
        return self.page_ids.get(id(page))

    def push(self, event: str, record: ContextRecord, page: Any) -> None:
        self.context = record
        self.page = page
        self.history.append(HistoryEntry(event=event, context=record, page=page))

    def find_contexts(self, name: str) -> List[ContextRecord]:
        return [record for record in self.contexts if record.name == name]

    def latest_page(self, record: ContextRecord) -> Any:
        """Current page of ``record``: the session page, or its newest history entry."""
        if record is self.context and self.page is not None:
            return self.page
        for entry in reversed(self.history):
            if entry.context is record:
                return entry.page
        return None

    def forget_pages(self, pages: Iterable[Any]) -> bool:
        """Drop history entries of ``pages``; True when the current page was among them."""
        doomed = {id(page) for page in pages}
        self.history = [entry for entry in self.history if id(entry.page) not in doomed]
        for key in doomed:
            self.page_ids.pop(key, None)
        return self.page is not None and id(self.page) in doomed

    def forget_context(self, record: ContextRecord) -> bool:
        """Drop ``record``, its history and its page ids; True when it was the current context."""
        doomed = {id(entry.page) for entry in self.history if entry.context is record}
        doomed.update(id(page) for page in getattr(record.context, "pages", None) or ())
        for key in doomed:
            self.page_ids.pop(key, None)
        self.history = [entry for entry in self.history if entry.context is not record]
        self.contexts = [item for item in self.contexts if item is not record]
        return self.context is record

    def restore_latest(self) -> None:
        if self.history:
            latest = self.history[-1]
            self.context = latest.context
            self.page = latest.page
            return
        self.page = None
        if self.context is not None and self.context not in self.contexts:
            self.context = self.contexts[-1] if self.contexts else None

    def reset(self) -> None:
        self.playwright = None
        self.browser = None
        self.context = None
        self.page = None
        self.history.clear()
        self.contexts.clear()
        self.page_ids.clear()


__all__ = ["ContextRecord", "HistoryEntry", "Session"]
