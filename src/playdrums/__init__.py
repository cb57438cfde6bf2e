"""
playdrums: a small action/assertion vocabulary over Playwright.

This package holds the facade (``PlayDrums``), its lazy ``Selector``, the
configuration store and the network interception table.
"""

from .config import ConfigStore
from .drums import PlayDrums, get_playdrums, set_playdrums
from .errors import (
    BrowserAlreadyOpenError,
    BrowserNotOpenError,
    ElementNotFoundError,
    PlayDrumsError,
    TargetNotFoundError,
)
from .intercept import UNLIMITED, Block, Fulfill, FulfillSpec, Handler, Redirect
from .selector import Selector

__all__ = [
    "Block",
    "BrowserAlreadyOpenError",
    "BrowserNotOpenError",
    "ConfigStore",
    "ElementNotFoundError",
    "Fulfill",
    "FulfillSpec",
    "Handler",
    "PlayDrums",
    "PlayDrumsError",
    "Redirect",
    "Selector",
    "TargetNotFoundError",
    "UNLIMITED",
    "get_playdrums",
    "set_playdrums",
]
