"""Cookies, permissions, geolocation and device emulation for the current context."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .errors import BrowserNotOpenError, TargetNotFoundError
from .launch import resolve_device
from .logging_utils import _log_browser_event

logger = logging.getLogger(__name__)


class CookieSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    value: str
    url: Optional[str] = None
    domain: Optional[str] = None
    path: Optional[str] = None
    expires: Optional[float] = Field(None, description="Unix time in seconds.")
    http_only: Optional[bool] = Field(None, alias="httpOnly")
    secure: Optional[bool] = None
    same_site: Optional[str] = Field(None, alias="sameSite")

    def to_playwright(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Geolocation(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy: float = Field(0, ge=0)


_COOKIE_FIELD_ALIASES = {"http_only": "httpOnly", "same_site": "sameSite"}


def _cookie_criteria(name: Optional[str], filters: Mapping[str, Any]) -> Dict[str, Any]:
    criteria = {
        _COOKIE_FIELD_ALIASES.get(key, key): value
        for key, value in filters.items()
        if key != "url" and value is not None
    }
    if name:
        criteria["name"] = name
    return criteria


def _cookie_matches(cookie: Mapping[str, Any], criteria: Mapping[str, Any]) -> bool:
    return all(cookie.get(key) == value for key, value in criteria.items())


class ContextSettingsMixin:
    async def set_cookie(self, name: str, value: str, **options: Any) -> None:
        """Set a cookie; ``url`` or ``domain`` is required."""
        self.session.validate()
        if not options.get("url") and not options.get("domain"):
            raise ValueError("At least URL or domain needs to be specified for setting cookies")
        cookie = CookieSpec(name=name, value=value, **options)
        await self.session.context.context.add_cookies([cookie.to_playwright()])

    async def get_cookies(self, name: Optional[str] = None, **filters: Any) -> List[Dict[str, Any]]:
        """Cookies of the current context, optionally filtered by name/url/domain/path."""
        self.session.validate()
        context = self.session.context.context
        url = filters.get("url")
        cookies = await (context.cookies(url) if url else context.cookies())
        criteria = _cookie_criteria(name, filters)
        return [cookie for cookie in cookies if _cookie_matches(cookie, criteria)]

    async def delete_cookies(self, name: Optional[str] = None, **filters: Any) -> None:
        """
        Delete cookies matching ``name`` and filters; every cookie when neither
        is given. Raises ``TargetNotFoundError`` when nothing matches.
        """
        self.session.validate()
        context = self.session.context.context
        if not name and not any(value is not None for value in filters.values()):
            await context.clear_cookies()
            return
        matched = await self.get_cookies(name, **filters)
        if not matched:
            raise TargetNotFoundError(
                name or str(filters), f"Found no cookie(s) matching name {name or filters}"
            )
        for cookie in matched:
            await context.clear_cookies(
                name=cookie.get("name"),
                domain=cookie.get("domain"),
                path=cookie.get("path"),
            )
        _log_browser_event(logger, level=logging.DEBUG, event="cookies_deleted", count=len(matched))

    async def override_permissions(self, origin: str, permissions: Sequence[str]) -> None:
        self.session.validate()
        await self.session.context.context.grant_permissions(list(permissions), origin=origin)

    async def clear_permission_overrides(self) -> None:
        self.session.validate()
        await self.session.context.context.clear_permissions()

    async def set_location(
        self,
        latitude: Any,
        longitude: Optional[float] = None,
        accuracy: float = 0,
    ) -> None:
        """
        Override geolocation, e.g. ``set_location(27.17, 78.04)``. A single
        mapping with ``latitude``/``longitude``/``accuracy`` keys is accepted too.
        """
        self.session.validate()
        if isinstance(latitude, Mapping):
            geolocation = Geolocation(**{"accuracy": accuracy, **dict(latitude)})
        else:
            geolocation = Geolocation(latitude=latitude, longitude=longitude, accuracy=accuracy)
        await self.session.context.context.set_geolocation(geolocation.model_dump())

    def get_device(self, name: str) -> Dict[str, Any]:
        """Playwright's emulation descriptor for a device model, e.g. ``"iPhone 13"``."""
        if self.session.playwright is None:
            raise BrowserNotOpenError("Browser not opened. Call `open_browser()` first")
        return resolve_device(self.session.playwright, name)
