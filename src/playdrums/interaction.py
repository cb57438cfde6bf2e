"""Element and page interaction mixin for PlayDrums."""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from .common import _normalize_timeout
from .logging_utils import _log_browser_event
from .selector import Selector
from .waiting import observe_pause, run_with_waits

logger = logging.getLogger(__name__)

CLICK_OPTION_KEYS = ("button", "click_count", "delay", "modifiers", "position", "force", "trial")
MOUSE_ACTIONS = ("press", "move", "release")

HIGHLIGHT_JS = """
(node) => {
  const target = node.nodeType === Node.TEXT_NODE ? node.parentElement : node;
  target.style.outline = '0.2em solid red';
}
"""

IS_FILE_INPUT_JS = "(element) => element.tagName === 'INPUT' && element.type === 'file'"


def _looks_like_function(expression: str) -> bool:
    text = expression.strip()
    return "=>" in text or text.startswith("function") or text.startswith("async ")


class InteractionMixin:
    def select(self, pattern: Any, **options: Any) -> Selector:
        """Build a selector for ``pattern`` (a string or an element handle)."""
        opts = self.config.resolve(options)
        self.session.validate()
        return Selector(self.session, pattern, opts)

    def _as_selector(self, target: Any, opts: Mapping[str, Any]) -> Selector:
        if isinstance(target, Selector):
            return target
        return Selector(self.session, target, opts)

    async def _handle_for(self, target: Any, opts: Mapping[str, Any]) -> Any:
        return await self._as_selector(target, opts).get_element_handle()

    async def click(self, selector: Any, **options: Any) -> None:
        """Click the first element matching ``selector``; waits per options."""
        opts = self.config.resolve(options)
        self.session.validate()
        handle = await self._handle_for(selector, opts)
        click_kwargs: Dict[str, Any] = {
            key: opts[key] for key in CLICK_OPTION_KEYS if opts.get(key) is not None
        }
        click_kwargs["timeout"] = _normalize_timeout(opts.get("timeout"))
        await run_with_waits(handle.click(**click_kwargs), self.session.page, opts)
        await observe_pause(opts)

    async def hover(self, selector: Any, **options: Any) -> None:
        opts = self.config.resolve(options)
        self.session.validate()
        handle = await self._handle_for(selector, opts)
        await handle.hover(timeout=_normalize_timeout(opts.get("timeout")))
        await observe_pause(opts)

    async def focus(self, selector: Any, **options: Any) -> None:
        opts = self.config.resolve(options)
        self.session.validate()
        handle = await self._handle_for(selector, opts)
        await handle.focus()
        await observe_pause(opts)

    async def write(self, text: str, selector: Any = None, **options: Any) -> None:
        """Fill ``selector`` with ``text``, or type it into the focused element."""
        opts = self.config.resolve(options)
        self.session.validate()
        page = self.session.page
        if selector is not None:
            handle = await self._handle_for(selector, opts)
            action = handle.fill(text, timeout=_normalize_timeout(opts.get("timeout")))
        else:
            action = page.keyboard.type(text)
        await run_with_waits(action, page, opts)
        await observe_pause(opts)

    async def clear(self, selector: Any = None, **options: Any) -> None:
        """Empty ``selector``, or select-all and delete in the focused element."""
        opts = self.config.resolve(options)
        self.session.validate()
        page = self.session.page
        if selector is not None:
            handle = await self._handle_for(selector, opts)
            action = handle.fill("", timeout=_normalize_timeout(opts.get("timeout")))
        else:
            action = self._clear_focused(page)
        await run_with_waits(action, page, opts)
        await observe_pause(opts)

    @staticmethod
    async def _clear_focused(page: Any) -> None:
        await page.keyboard.down("Control")
        await page.keyboard.press("KeyA")
        await page.keyboard.up("Control")
        await page.keyboard.press("Delete")

    async def press(self, keys: Union[str, Sequence[str]], **options: Any) -> None:
        """Press one key, or each key of a sequence in order."""
        opts = self.config.resolve(options)
        self.session.validate()
        page = self.session.page
        sequence = [keys] if isinstance(keys, str) else list(keys)
        await run_with_waits(self._press_all(page, sequence), page, opts)
        await observe_pause(opts)

    @staticmethod
    async def _press_all(page: Any, keys: Sequence[str]) -> None:
        for key in keys:
            await page.keyboard.press(key)

    async def attach(self, file_path: Any, selector: Any, **options: Any) -> None:
        """Attach ``file_path`` to a file input, or to the chooser opened by ``selector``."""
        opts = self.config.resolve(options)
        self.session.validate()
        timeout = _normalize_timeout(opts.get("timeout"))
        handle = await self._handle_for(selector, opts)
        if await handle.evaluate(IS_FILE_INPUT_JS):
            await handle.set_input_files(file_path, timeout=timeout)
        else:
            async with self.session.page.expect_file_chooser(timeout=timeout) as chooser_info:
                await handle.click(timeout=timeout)
            chooser = await chooser_info.value
            await chooser.set_files(file_path, timeout=timeout)
        _log_browser_event(logger, level=logging.DEBUG, event="attach", path=file_path)
        await observe_pause(opts)

    async def mouse_action(
        self,
        action: str,
        selector: Any = None,
        coordinates: Optional[Mapping[str, float]] = None,
        **options: Any,
    ) -> None:
        """
        ``press``, ``move`` or ``release`` the mouse at ``coordinates``, or at
        the centre of ``selector`` when one is given.
        """
        opts = self.config.resolve(options)
        self.session.validate()
        if action not in MOUSE_ACTIONS:
            raise ValueError(
                "Unknown action, please set one of the given actions: " + ", ".join(MOUSE_ACTIONS)
            )
        if selector is not None:
            handle = await self._handle_for(selector, opts)
            box = await handle.bounding_box()
            if box is None:
                raise ValueError(f"Element {selector!r} is not visible; no bounding box")
            coordinates = {
                "x": box["x"] + box["width"] / 2,
                "y": box["y"] + box["height"] / 2,
            }
        if not coordinates:
            raise ValueError("coordinates or selector is required for mouse_action")

        mouse = self.session.page.mouse
        await mouse.move(coordinates["x"], coordinates["y"])
        if action == "press":
            await mouse.down()
        elif action == "release":
            await mouse.up()
        await observe_pause(opts)

    async def scroll_to(self, selector: Any, **options: Any) -> None:
        opts = self.config.resolve(options)
        self.session.validate()
        handle = await self._handle_for(selector, opts)
        await run_with_waits(
            handle.scroll_into_view_if_needed(timeout=_normalize_timeout(opts.get("timeout"))),
            self.session.page,
            opts,
        )
        await observe_pause(opts)

    async def highlight(self, selector: Any, **options: Any) -> None:
        """Outline the element in red, for debugging."""
        opts = self.config.resolve(options)
        self.session.validate()
        handle = await self._handle_for(selector, opts)
        await handle.evaluate(HIGHLIGHT_JS)

    async def evaluate(
        self,
        expression: str,
        arg: Any = None,
        selector: Any = None,
        **options: Any,
    ) -> Any:
        """
        Run ``expression`` in the page, or against ``selector``'s element
        (passed as the function's first argument), and return its
        JSON-serialisable result.
        """
        opts = self.config.resolve(options)
        self.session.validate()
        target = self.session.page
        if selector is not None:
            target = await self._handle_for(selector, opts)
        return await target.evaluate(expression, await self._js_arg(arg))

    async def wait_for(
        self,
        target: Any = None,
        arg: Any = None,
        *,
        state: str = "visible",
        timeout: Optional[int] = None,
        **options: Any,
    ) -> Any:
        """
        Wait for a number of milliseconds, for an element, or for a JS predicate.

        - ``wait_for(500)`` sleeps 500 ms.
        - ``wait_for(selector)`` / ``wait_for("#id", state="hidden")`` waits for
          the element state (``attached``, ``detached``, ``visible``, ``hidden``).
        - ``wait_for("() => window.ready", arg)`` polls the predicate until truthy.
        """
        opts = self.config.resolve(options, timeout=timeout)
        self.session.validate()
        page = self.session.page
        wait_timeout = _normalize_timeout(opts.get("timeout"))

        if target is None or isinstance(target, (int, float)):
            delay = wait_timeout if target is None else max(0, int(target))
            await page.wait_for_timeout(delay)
            return True
        if isinstance(target, str) and _looks_like_function(target):
            return await page.wait_for_function(
                target,
                arg=await self._js_arg(arg),
                timeout=wait_timeout,
                polling=int(opts.get("retry_interval") or 100),
            )
        selector = self._as_selector(target, opts)
        if selector.pattern is None:
            handle = await selector.get_element_handle()
            await handle.wait_for_element_state(state, timeout=wait_timeout)
            return handle
        return await page.wait_for_selector(selector.selector, state=state, timeout=wait_timeout)

    async def _js_arg(self, arg: Any) -> Any:
        if isinstance(arg, Selector):
            return await arg.get_element_handle()
        if isinstance(arg, (list, tuple)):
            return [await self._js_arg(item) for item in arg]
        return arg

    async def screenshot(
        self,
        selector: Any = None,
        *,
        path: Optional[str] = None,
        encoding: Optional[str] = None,
        full_page: bool = False,
        **options: Any,
    ) -> Any:
        """Capture the page (or one element); ``encoding="base64"`` returns text."""
        opts = self.config.resolve(options)
        self.session.validate()
        timeout = _normalize_timeout(opts.get("timeout"))
        if selector is not None:
            handle = await self._handle_for(selector, opts)
            data = await handle.screenshot(path=path, timeout=timeout)
        else:
            data = await self.session.page.screenshot(path=path, full_page=full_page, timeout=timeout)
        if encoding == "base64":
            return base64.b64encode(data).decode("ascii")
        return data

    async def set_viewport(self, width: int, height: int) -> None:
        self.session.validate()
        await self.session.page.set_viewport_size({"width": int(width), "height": int(height)})
