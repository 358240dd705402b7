"""
Registrar search-page checker.

Queries a registrar's search results page for a domain and reads the
availability off the page text. Each lookup runs as a bounded state machine:

    ATTEMPTING(1) -> BACKOFF -> ATTEMPTING(2) -> ... -> ATTEMPTING(n)
        -> FALLBACK -> RESOLVED | FAILED

A loaded page always resolves (possibly to ``unknown``). Transient
browser failures back off linearly and retry until the attempt budget is
spent, then the fallback lookup goes through the registrar's home page
search box instead of the direct results URL.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import quote

from domainscout.core.backends.base import BrowserError, BrowserSession
from domainscout.core.config.models import CheckerConfig
from domainscout.core.logging import ContextualLogger
from domainscout.core.normalize.canonical import DomainStatus
from domainscout.core.normalize.parsing import validate_domain

from .base import AvailabilityChecker, classify_page_text

logger = logging.getLogger(__name__)

# NavigationTimeout and PageBlocked are subclasses
TRANSIENT_ERRORS: tuple[type[Exception], ...] = (BrowserError, asyncio.TimeoutError)


class LookupState(str, Enum):
    """States of a single domain lookup."""

    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    FALLBACK = "fallback"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass
class LookupTrace:
    """Transitions taken while looking up one domain."""

    domain: str
    transitions: list[tuple[LookupState, int]] = field(default_factory=list)
    status: DomainStatus | None = None
    errors: list[str] = field(default_factory=list)
    delays: list[float] = field(default_factory=list)

    @property
    def attempts(self) -> int:
        """Number of primary lookup attempts made."""
        return sum(1 for state, _ in self.transitions if state is LookupState.ATTEMPTING)

    @property
    def used_fallback(self) -> bool:
        return any(state is LookupState.FALLBACK for state, _ in self.transitions)

    @property
    def final_state(self) -> LookupState | None:
        return self.transitions[-1][0] if self.transitions else None


class RegistrarChecker(AvailabilityChecker):
    """Checks availability on a registrar's web search within one session."""

    def __init__(
        self,
        session: BrowserSession,
        config: CheckerConfig | None = None,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Initialize the checker.

        Args:
            session: Started browser session owned by the calling worker
            config: Lookup URLs, markers and retry policy
            sleep: Awaitable used for backoff delays
        """
        self.session = session
        self.config = config or CheckerConfig()
        self._sleep = sleep
        self._log = ContextualLogger(logger, session=session.session_number)

    @property
    def name(self) -> str:
        return self.config.registrar

    def search_url(self, domain: str) -> str:
        return self.config.search_url_template.format(domain=quote(domain, safe="."))

    async def check(self, domain: str) -> DomainStatus:
        trace = await self.lookup(domain)
        return trace.status or DomainStatus.ERROR

    async def lookup(self, domain: str) -> LookupTrace:
        """Run the lookup state machine for one domain."""
        trace = LookupTrace(domain=domain)
        log = self._log.with_context(domain=domain)

        try:
            domain = validate_domain(domain)
        except ValueError as e:
            log.error(str(e))
            trace.errors.append(str(e))
            trace.transitions.append((LookupState.FAILED, 0))
            trace.status = DomainStatus.ERROR
            return trace

        state = LookupState.ATTEMPTING
        attempt = 1

        while True:
            trace.transitions.append((state, attempt))

            if state is LookupState.ATTEMPTING:
                log.info(
                    f"Checking on {self.name} (attempt {attempt}/{self.config.max_attempts})",
                    extra={"attempt": attempt},
                )
                try:
                    trace.status = await self._primary_lookup(domain)
                    state = LookupState.RESOLVED
                except TRANSIENT_ERRORS as e:
                    trace.errors.append(str(e))
                    log.warning(f"Navigation error on attempt {attempt}: {e}", extra={"attempt": attempt})
                    if attempt < self.config.max_attempts:
                        state = LookupState.BACKOFF
                    else:
                        state = LookupState.FALLBACK
                except Exception as e:
                    trace.errors.append(str(e))
                    log.exception(f"Unexpected error on attempt {attempt}")
                    state = LookupState.FAILED

            elif state is LookupState.BACKOFF:
                delay = self.config.backoff_seconds * attempt
                trace.delays.append(delay)
                log.debug(f"Waiting {delay:.1f}s before retry")
                await self._sleep(delay)
                attempt += 1
                state = LookupState.ATTEMPTING

            elif state is LookupState.FALLBACK:
                log.info("Repeated navigation errors, trying home page search")
                try:
                    trace.status = await self._fallback_lookup(domain)
                    state = LookupState.RESOLVED
                except Exception as e:
                    trace.errors.append(str(e))
                    log.error(f"Fallback lookup failed: {e}")
                    state = LookupState.FAILED

            elif state is LookupState.RESOLVED:
                log.info(f"Result: {trace.status.value if trace.status else 'unknown'}")
                return trace

            else:
                trace.status = DomainStatus.ERROR
                return trace

    async def _primary_lookup(self, domain: str) -> DomainStatus:
        """Open the search results page directly and classify it."""
        await self.session.clear_cookies()
        await self.session.goto(self.search_url(domain))
        return self._classify(await self.session.page_text())

    async def _fallback_lookup(self, domain: str) -> DomainStatus:
        """Search through the registrar's home page search box."""
        await self.session.goto(self.config.home_url)
        await self.session.submit_search(self.config.search_input_selector, domain)
        return self._classify(await self.session.page_text())

    def _classify(self, text: str) -> DomainStatus:
        return classify_page_text(
            text,
            self.config.available_markers,
            self.config.unavailable_markers,
        )


def registrar_checker_factory(config: CheckerConfig):
    """Build a CheckerFactory producing RegistrarChecker instances."""

    def factory(session: BrowserSession, session_number: int) -> RegistrarChecker:
        return RegistrarChecker(session, config)

    return factory
