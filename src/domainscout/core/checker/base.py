"""
Availability checker base classes.

Defines the contract consumed by session workers: ``check(domain)``
returns a DomainStatus and never raises for per-domain problems.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

from domainscout.core.backends.base import BrowserSession
from domainscout.core.normalize.canonical import DomainStatus
from domainscout.core.normalize.parsing import normalize_whitespace


class AvailabilityChecker(ABC):
    """Queries a registrar for one domain at a time."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Checker identifier."""
        pass

    @abstractmethod
    async def check(self, domain: str) -> DomainStatus:
        """Determine the availability of ``domain``.

        Returns ``unknown`` when the page loaded but was ambiguous and
        ``error`` when every lookup strategy failed.
        """
        pass


# Builds a checker bound to a started session and its session number
CheckerFactory = Callable[[BrowserSession, int], AvailabilityChecker]


def classify_page_text(
    text: str,
    available_markers: Sequence[str],
    unavailable_markers: Sequence[str],
) -> DomainStatus:
    """Map registrar page text to an availability status.

    A domain is available only when every available marker is present,
    unavailable when any unavailable marker is present, unknown otherwise.
    """
    haystack = normalize_whitespace(text).lower()

    if available_markers and all(marker.lower() in haystack for marker in available_markers):
        return DomainStatus.AVAILABLE

    if any(marker.lower() in haystack for marker in unavailable_markers):
        return DomainStatus.UNAVAILABLE

    return DomainStatus.UNKNOWN
