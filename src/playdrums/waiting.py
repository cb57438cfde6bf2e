"""Polling and action/wait joining primitives."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Tuple, Type

from .common import (
    DEFAULT_NAVIGATION_TIMEOUT_MS,
    DEFAULT_SETTLE_DELAY_MS,
    DEFAULT_TIMEOUT_MS,
    _as_list,
    _normalize_timeout,
)
from .logging_utils import _log_browser_event

logger = logging.getLogger(__name__)


async def poll_until(
    attempt: Callable[[], Awaitable[Any]],
    *,
    interval_ms: int,
    timeout_ms: int,
    retry_on: Tuple[Type[BaseException], ...] = (),
) -> Any:
    """
    Call ``attempt`` until it returns something other than ``None``.

    Exceptions listed in ``retry_on`` count as a failed attempt; anything else
    propagates at once. Each attempt is bounded by the remaining budget. When
    the deadline passes, the last attempt's exception is re-raised (or a
    ``TimeoutError`` when every attempt simply returned ``None``).
    """
    loop = asyncio.get_running_loop()
    timeout_value = _normalize_timeout(timeout_ms)
    interval = max(0, int(interval_ms)) / 1000.0
    deadline = loop.time() + timeout_value / 1000.0
    last_error: Optional[BaseException] = None
    attempts = 0

    while True:
        attempts += 1
        remaining = max(0.001, deadline - loop.time())
        try:
            result = await asyncio.wait_for(attempt(), timeout=remaining)
        except asyncio.TimeoutError as exc:
            last_error = exc
        except retry_on as exc:
            last_error = exc
        else:
            if result is not None:
                return result
            last_error = None

        if loop.time() >= deadline:
            break
        _log_browser_event(
            logger,
            level=logging.DEBUG,
            event="poll_retry",
            attempt=attempts,
            error=type(last_error).__name__ if last_error else None,
        )
        await asyncio.sleep(min(interval, max(0.0, deadline - loop.time())))

    if last_error is not None:
        raise last_error
    raise TimeoutError(f"Condition not met within {timeout_value} ms ({attempts} attempts)")


async def _navigation_completed(page: Any, wait_until: str, timeout: int) -> None:
    """Wait for the next main-frame navigation, then for its load state."""
    main_frame = page.main_frame
    await page.wait_for_event(
        "framenavigated",
        predicate=lambda frame: frame == main_frame,
        timeout=timeout,
    )
    await page.wait_for_load_state(wait_until, timeout=timeout)


def _build_waits(
    page: Any,
    options: Mapping[str, Any],
    *,
    navigates: bool = False,
) -> List[Awaitable[Any]]:
    timeout = _normalize_timeout(options.get("timeout"), DEFAULT_TIMEOUT_MS)
    navigation_timeout = _normalize_timeout(
        options.get("navigation_timeout"), DEFAULT_NAVIGATION_TIMEOUT_MS
    )
    waits: List[Awaitable[Any]] = []
    for event in _as_list(options.get("wait_for_event")):
        waits.append(page.wait_for_event(event, timeout=timeout))
    for matcher in _as_list(options.get("wait_for_request")):
        waits.append(page.wait_for_request(matcher, timeout=timeout))
    for matcher in _as_list(options.get("wait_for_response")):
        waits.append(page.wait_for_response(matcher, timeout=timeout))
    if options.get("wait_for_navigation"):
        wait_until = options.get("wait_until") or "load"
        if navigates:
            waits.append(page.wait_for_load_state(wait_until, timeout=navigation_timeout))
        else:
            waits.append(_navigation_completed(page, wait_until, navigation_timeout))
    settle_ms = options.get("settle_delay")
    if settle_ms is None:
        settle_ms = DEFAULT_SETTLE_DELAY_MS
    waits.append(asyncio.sleep(max(0, int(settle_ms)) / 1000.0))
    return waits


async def run_with_waits(
    action: Awaitable[Any],
    page: Any,
    options: Mapping[str, Any],
    *,
    navigates: bool = False,
) -> Any:
    """
    Await ``action`` together with every wait condition named in ``options``.

    Wait listeners are armed before the action starts so events fired by the
    action itself are observed. All of them must complete (join, not race).
    The action's own result is returned. If anything fails, the remaining
    waits are cancelled and the failure propagates.

    ``wait_for_navigation`` waits for the next main-frame navigation to
    reach ``wait_until``. Pass ``navigates=True`` when the action is itself
    a navigation (``goto``, ``reload``...), so only its load state is awaited.
    """
    waits = _build_waits(page, options, navigates=navigates)
    wait_tasks = [asyncio.ensure_future(item) for item in waits]
    action_task = asyncio.ensure_future(action)
    tasks = [action_task, *wait_tasks]
    try:
        results = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return results[0]


async def observe_pause(options: Mapping[str, Any]) -> None:
    """Sleep ``observe_time`` ms after an action when observe mode is on."""
    if not options.get("observe"):
        return
    delay = max(0, int(options.get("observe_time") or 0))
    if delay:
        await asyncio.sleep(delay / 1000.0)


__all__ = ["observe_pause", "poll_until", "run_with_waits"]
