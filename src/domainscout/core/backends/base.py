"""
Browser session base classes and errors.

Defines the interface contract every session backend implements. A
session is one isolated automation context used by a single worker for
all of its lookups.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any


class BrowserSession(ABC):
    """Abstract base class for browser sessions.

    Sessions are created unstarted; ``start`` acquires the remote or local
    browser and ``close`` releases it. ``close`` must be safe to call after
    a failed or partial ``start``.
    """

    def __init__(self, session_number: int = 1) -> None:
        self.session_number = session_number

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier."""
        pass

    @abstractmethod
    async def start(self) -> None:
        """Acquire the browser and open a page.

        Raises:
            SessionError: If the session cannot be created
        """
        pass

    @abstractmethod
    async def goto(self, url: str) -> None:
        """Navigate and wait for DOM content.

        Raises:
            NavigationTimeout: Page didn't load in time
            PageBlocked: Bot detection or access denied
            BrowserError: Any other navigation failure
        """
        pass

    @abstractmethod
    async def page_text(self) -> str:
        """Visible text of the current page."""
        pass

    @abstractmethod
    async def submit_search(self, selector: str, value: str) -> None:
        """Type ``value`` into the input matching ``selector`` and submit."""
        pass

    async def clear_cookies(self) -> None:
        """Forget cookies so the next navigation starts fresh."""
        pass

    async def close(self) -> None:
        """Clean up session resources."""
        pass

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


# Builds an unstarted session for a 1-based session number
SessionFactory = Callable[[int], BrowserSession]


class BackendError(Exception):
    """Base exception for backend errors."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class SessionError(BackendError):
    """Browser session could not be created or connected."""
    pass


class BrowserError(BackendError):
    """Base exception for in-page browser errors."""
    pass


class NavigationTimeout(BrowserError):
    """Page didn't load in time."""
    pass


class PageBlocked(BrowserError):
    """Bot detection or access denied."""
    pass
