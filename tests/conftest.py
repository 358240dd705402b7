"""
Pytest configuration for DomainScout.

Provides fixtures for:
- Result stores rooted in a temporary directory with no retry delays
- Application config pointing at temporary input/output paths
- Scripted browser sessions and checkers standing in for Playwright
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from domainscout.core.backends.base import BrowserSession, SessionError
from domainscout.core.checker.base import AvailabilityChecker
from domainscout.core.config import AppConfig, LoggingConfig, RunnerConfig, StoreConfig
from domainscout.core.normalize import DomainStatus
from domainscout.persistence import ResultStore


# =============================================================================
# Scripted collaborators
# =============================================================================


class FakeSession(BrowserSession):
    """Browser session replaying scripted page texts.

    ``pages`` maps a URL to page text, to an exception raised by ``goto``,
    or to a list of those consumed one per visit. ``searches`` maps a
    searched value to the page text shown after ``submit_search``.
    """

    def __init__(
        self,
        session_number: int = 1,
        pages: dict[str, object] | None = None,
        searches: dict[str, object] | None = None,
        fail_start: bool = False,
    ) -> None:
        super().__init__(session_number)
        self.pages = dict(pages or {})
        self.searches = dict(searches or {})
        self.fail_start = fail_start

        self.visited: list[str] = []
        self.searched: list[str] = []
        self.cookie_clears = 0
        self.started = False
        self.closed = False
        self._text = ""

    @property
    def name(self) -> str:
        return "fake"

    async def start(self) -> None:
        if self.fail_start:
            raise SessionError(f"session {self.session_number} refused")
        self.started = True

    async def goto(self, url: str) -> None:
        self.visited.append(url)
        self._text = self._resolve(self.pages.get(url, ""))

    async def page_text(self) -> str:
        return self._text

    async def submit_search(self, selector: str, value: str) -> None:
        self.searched.append(value)
        self._text = self._resolve(self.searches.get(value, ""))

    async def clear_cookies(self) -> None:
        self.cookie_clears += 1

    async def close(self) -> None:
        self.closed = True

    @staticmethod
    def _resolve(outcome: object) -> str:
        if isinstance(outcome, list):
            outcome = outcome.pop(0) if outcome else ""
        if isinstance(outcome, BaseException):
            raise outcome
        return str(outcome)


class FakeChecker(AvailabilityChecker):
    """Checker returning scripted statuses and recording every call."""

    def __init__(
        self,
        results: dict[str, DomainStatus | Exception],
        calls: list[tuple[int, str]],
        session_number: int = 1,
        default: DomainStatus = DomainStatus.UNAVAILABLE,
        before_return: Callable[[str], object] | None = None,
    ) -> None:
        self.results = results
        self.calls = calls
        self.session_number = session_number
        self.default = default
        self.before_return = before_return

    @property
    def name(self) -> str:
        return "fake"

    async def check(self, domain: str) -> DomainStatus:
        self.calls.append((self.session_number, domain))
        outcome = self.results.get(domain, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        if self.before_return is not None:
            result = self.before_return(domain)
            if hasattr(result, "__await__"):
                await result
        return outcome


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def store_config() -> StoreConfig:
    """Store retry settings without delays."""
    return StoreConfig(
        read_attempts=2,
        read_delay_seconds=0.0,
        write_attempts=3,
        write_backoff_seconds=0.0,
    )


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "output" / "domain.json"


@pytest.fixture
def store(store_path: Path, store_config: StoreConfig) -> ResultStore:
    return ResultStore(store_path, store_config)


@pytest.fixture
def input_path(tmp_path: Path) -> Path:
    return tmp_path / "input" / "domains.txt"


@pytest.fixture
def write_domains(input_path: Path) -> Callable[[Iterable[str]], Path]:
    """Write a domain list file, one entry per line."""

    def _write(lines: Iterable[str]) -> Path:
        input_path.parent.mkdir(parents=True, exist_ok=True)
        input_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return input_path

    return _write


@pytest.fixture
def app_config(input_path: Path, store_path: Path, store_config: StoreConfig) -> AppConfig:
    return AppConfig(
        runner=RunnerConfig(input_path=input_path, output_path=store_path, max_sessions=3),
        store=store_config,
        logging=LoggingConfig(file=None, rich_console=False),
    )


@pytest.fixture
def checker_calls() -> list[tuple[int, str]]:
    """Shared log of (session_number, domain) checks across fake checkers."""
    return []


@pytest.fixture
def make_session_factory():
    """Build a session factory that keeps every session it creates."""

    def _make(fail_sessions: Iterable[int] = ()):
        failing = set(fail_sessions)
        created: list[FakeSession] = []

        def factory(session_number: int) -> FakeSession:
            session = FakeSession(session_number, fail_start=session_number in failing)
            created.append(session)
            return session

        factory.created = created  # type: ignore[attr-defined]
        return factory

    return _make


@pytest.fixture
def make_checker_factory(checker_calls: list[tuple[int, str]]):
    """Build a checker factory producing FakeChecker instances."""

    def _make(
        results: dict[str, DomainStatus | Exception] | None = None,
        default: DomainStatus = DomainStatus.UNAVAILABLE,
    ):
        scripted = dict(results or {})

        def factory(session: BrowserSession, session_number: int) -> FakeChecker:
            return FakeChecker(scripted, checker_calls, session_number, default=default)

        return factory

    return _make


@pytest.fixture(autouse=True)
def _isolate_domainscout_logger():
    """Leave the package logger without handlers between tests."""
    logger = logging.getLogger("domainscout")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
