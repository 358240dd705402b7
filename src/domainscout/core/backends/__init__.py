"""Browser session backends."""

from .base import (
    BrowserSession,
    SessionFactory,
    BackendError,
    SessionError,
    BrowserError,
    NavigationTimeout,
    PageBlocked,
)
from .playwright_backend import PlaywrightSession, playwright_session_factory

__all__ = [
    # Base classes
    "BrowserSession",
    "SessionFactory",
    # Errors
    "BackendError",
    "SessionError",
    "BrowserError",
    "NavigationTimeout",
    "PageBlocked",
    # Playwright
    "PlaywrightSession",
    "playwright_session_factory",
]
