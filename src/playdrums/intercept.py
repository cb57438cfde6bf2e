"""Network interception rules and the per-context routing table."""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field

from .common import PageTarget, _as_text, _describe_target, _ensure_target, _is_pattern
from .logging_utils import _log_browser_event

logger = logging.getLogger(__name__)

UNLIMITED = -1
ROUTE_PATTERN = "**/*"


class FulfillSpec(BaseModel):
    status: int = Field(200, description="HTTP status of the mocked response.")
    headers: Dict[str, str] = Field(default_factory=dict, description="Response headers.")
    body: Any = Field(None, description="str/bytes sent as-is, anything else JSON-encoded.")
    content_type: Optional[str] = Field(None, description="Content-Type of the response.")
    path: Optional[str] = Field(None, description="File to serve as the response body.")

    def to_fulfill_kwargs(self) -> Dict[str, Any]:
        headers = dict(self.headers)
        kwargs: Dict[str, Any] = {"status": self.status}
        content_type = self.content_type
        body = self.body
        if body is not None and not isinstance(body, (str, bytes)):
            body = json.dumps(body)
            has_type = any(key.lower() == "content-type" for key in headers)
            if content_type is None and not has_type:
                content_type = "application/json"
        if body is not None:
            kwargs["body"] = body
        if self.path:
            kwargs["path"] = self.path
        if content_type:
            kwargs["content_type"] = content_type
        if headers:
            kwargs["headers"] = headers
        return kwargs


@dataclass(frozen=True)
class Block:
    """Abort the request, as if the network were down."""


@dataclass(frozen=True)
class Fulfill:
    spec: FulfillSpec


@dataclass(frozen=True)
class Redirect:
    location: str


@dataclass(frozen=True)
class Handler:
    """
    Hand the Playwright ``Route`` (and the ``Request``, when the callable takes
    two arguments) to user code; it must continue, fulfill or abort the route.
    """

    fn: Callable[[Any], Any]


InterceptAction = Union[Block, Fulfill, Redirect, Handler]


def build_action(response: Any) -> InterceptAction:
    if response is None:
        return Block()
    if isinstance(response, (Block, Fulfill, Redirect, Handler)):
        return response
    if isinstance(response, FulfillSpec):
        return Fulfill(response)
    if isinstance(response, str):
        return Redirect(response)
    if isinstance(response, Mapping):
        return Fulfill(FulfillSpec.model_validate(dict(response)))
    if callable(response):
        return Handler(response)
    raise TypeError(
        "Intercept response must be None, a mapping, a redirect URL or a callable. "
        f"Received type {type(response).__name__}"
    )


@dataclass
class InterceptRule:
    matcher: PageTarget
    action: InterceptAction
    remaining: int = UNLIMITED

    def matches(self, url: str) -> bool:
        if _is_pattern(self.matcher):
            return bool(self.matcher.search(url))
        return url == self.matcher

    def consume(self) -> None:
        if self.remaining > 0:
            self.remaining -= 1

    @property
    def exhausted(self) -> bool:
        return self.remaining == 0


def _accepts_request(fn: Callable[..., Any]) -> bool:
    """True when ``fn`` takes a second positional argument for the request."""
    try:
        parameters = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return False
    positional = 0
    for parameter in parameters:
        if parameter.kind == inspect.Parameter.VAR_POSITIONAL:
            return True
        if parameter.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            positional += 1
    return positional >= 2


def _same_target(left: Any, right: Any) -> bool:
    if _is_pattern(left) and _is_pattern(right):
        return (left.pattern, left.flags) == (right.pattern, right.flags)
    return left == right


class InterceptTable:
    """Ordered rule list for one browser context; first matching rule wins."""

    def __init__(self) -> None:
        self.rules: List[InterceptRule] = []
        self.installed = False

    def add(self, url: Any, response: Any = None, count: Optional[int] = None) -> InterceptRule:
        matcher = _ensure_target(url, argument="url")
        remaining = UNLIMITED if not count or count < 0 else int(count)
        rule = InterceptRule(matcher=matcher, action=build_action(response), remaining=remaining)
        self.rules.append(rule)
        _log_browser_event(
            logger,
            level=logging.DEBUG,
            event="intercept_added",
            url=_describe_target(matcher),
            action=type(rule.action).__name__,
            count=remaining,
        )
        return rule

    def clear(self, url: Any = None) -> int:
        if url is None:
            removed = len(self.rules)
            self.rules.clear()
            return removed
        for index, rule in enumerate(self.rules):
            if _same_target(rule.matcher, url):
                del self.rules[index]
                return 1
        return 0

    def match(self, url: str) -> Optional[InterceptRule]:
        for rule in self.rules:
            if rule.matches(url):
                return rule
        return None

    async def handle(self, route: Any, request: Any = None) -> None:
        request = request if request is not None else route.request
        url = _as_text(request.url)
        rule = self.match(url)
        if rule is None:
            await route.continue_()
            return

        # Consume before awaiting so concurrent requests cannot overdraw a rule.
        rule.consume()
        if rule.exhausted:
            self.rules = [item for item in self.rules if item is not rule]
        _log_browser_event(
            logger,
            level=logging.DEBUG,
            event="intercept_hit",
            url=url,
            action=type(rule.action).__name__,
            remaining=rule.remaining,
        )
        await self._apply(rule.action, route, request)

    @staticmethod
    async def _apply(action: InterceptAction, route: Any, request: Any) -> None:
        if isinstance(action, Block):
            await route.abort()
        elif isinstance(action, Fulfill):
            await route.fulfill(**action.spec.to_fulfill_kwargs())
        elif isinstance(action, Redirect):
            status = 301 if _as_text(request.method).upper() == "GET" else 308
            await route.fulfill(status=status, headers={"location": action.location})
        elif isinstance(action, Handler):
            if _accepts_request(action.fn):
                result = action.fn(route, request)
            else:
                result = action.fn(route)
            if inspect.isawaitable(result):
                await result
        else:
            raise TypeError(f"Unsupported intercept action: {action!r}")


__all__ = [
    "Block",
    "Fulfill",
    "FulfillSpec",
    "Handler",
    "InterceptRule",
    "InterceptTable",
    "Redirect",
    "ROUTE_PATTERN",
    "UNLIMITED",
    "build_action",
]
