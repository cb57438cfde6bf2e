"""Browser launch and context option helpers."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from .common import BROWSER_TYPES, _as_text, _coerce_bool

# Keyword arguments of ``Browser.new_context`` that may be passed straight
# through from a call site.
CONTEXT_PASSTHROUGH_KEYS = (
    "viewport",
    "screen",
    "user_agent",
    "locale",
    "timezone_id",
    "geolocation",
    "permissions",
    "color_scheme",
    "storage_state",
    "http_credentials",
    "base_url",
    "offline",
    "java_script_enabled",
    "bypass_csp",
    "accept_downloads",
    "record_video_dir",
    "proxy",
)


def resolve_browser_type(name: Any) -> str:
    clean = _as_text(name or "chromium").strip().lower()
    if clean not in BROWSER_TYPES:
        raise ValueError(
            "Unknown browser, please set one of the given browsers: " + ", ".join(BROWSER_TYPES)
        )
    return clean


def build_launch_options(options: Mapping[str, Any]) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"headless": _coerce_bool(options.get("headless"))}
    launch_args = options.get("launch_args")
    if launch_args:
        kwargs["args"] = list(launch_args)
    return kwargs


def resolve_device(playwright: Any, device: Any) -> Dict[str, Any]:
    """Return the emulation descriptor for ``device`` (a name or a mapping)."""
    if not device:
        return {}
    if isinstance(device, Mapping):
        return dict(device)
    devices = getattr(playwright, "devices", None) or {}
    descriptor = devices.get(str(device))
    if descriptor is None:
        known = "\n".join(sorted(devices))
        raise ValueError(f"Please set one of the given device models\n{known}")
    return dict(descriptor)


def build_context_options(
    playwright: Any,
    options: Mapping[str, Any],
) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {}
    for key in CONTEXT_PASSTHROUGH_KEYS:
        value = options.get(key)
        if value is not None:
            kwargs[key] = value
    headers = options.get("extra_http_headers")
    if headers:
        kwargs["extra_http_headers"] = dict(headers)
    if options.get("ignore_https_errors"):
        kwargs["ignore_https_errors"] = True
    # Device descriptors win over loose options.
    kwargs.update(resolve_device(playwright, options.get("device")))
    # Descriptors carry the engine to use; it was already chosen at launch.
    kwargs.pop("default_browser_type", None)
    return kwargs


__all__ = [
    "CONTEXT_PASSTHROUGH_KEYS",
    "build_context_options",
    "build_launch_options",
    "resolve_browser_type",
    "resolve_device",
]
