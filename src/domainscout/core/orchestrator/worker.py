"""
Session worker.

One worker owns one browser session and one partition, and processes its
domains strictly in order against the shared result store.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from domainscout.core.backends.base import BrowserSession, SessionFactory
from domainscout.core.checker.base import AvailabilityChecker, CheckerFactory
from domainscout.core.logging import ContextualLogger
from domainscout.core.normalize.canonical import DomainRecord, DomainStatus
from domainscout.persistence.store import AppendOutcome, ResultStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class WorkerStats:
    """Statistics for one session worker."""

    session_number: int
    assigned: int = 0
    checked: int = 0
    persisted: int = 0
    skipped: int = 0
    discarded: int = 0
    errors: int = 0

    failed: bool = False
    failure: str | None = None

    statuses: dict[DomainStatus, int] = field(
        default_factory=lambda: {status: 0 for status in DomainStatus}
    )

    started_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        """Get worker duration in seconds."""
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "session": self.session_number,
            "assigned": self.assigned,
            "checked": self.checked,
            "persisted": self.persisted,
            "skipped": self.skipped,
            "discarded": self.discarded,
            "errors": self.errors,
            "failed": self.failed,
            "failure": self.failure,
            "statuses": {status.value: count for status, count in self.statuses.items()},
            "duration_seconds": self.duration_seconds,
        }


class SessionWorker:
    """Processes one partition of domains with one browser session.

    Per domain:
    1. Skip it if the store already has it
    2. Check it (the checker never raises for per-domain problems)
    3. Append the result unless another worker recorded it meanwhile
    4. On any unexpected failure, record ``error`` and move on
    """

    def __init__(
        self,
        session_number: int,
        domains: Sequence[str],
        store: ResultStore,
        session_factory: SessionFactory,
        checker_factory: CheckerFactory,
    ) -> None:
        self.session_number = session_number
        self.domains = list(domains)
        self.store = store
        self._session_factory = session_factory
        self._checker_factory = checker_factory
        self._log = ContextualLogger(logger, session=session_number)

    async def run(self) -> WorkerStats:
        """Acquire a session, process the partition, release the session."""
        stats = WorkerStats(session_number=self.session_number, assigned=len(self.domains))
        session: BrowserSession | None = None

        self._log.info(f"Starting with {len(self.domains)} domains")

        try:
            session = self._session_factory(self.session_number)
            await session.start()
            checker = self._checker_factory(session, self.session_number)

            for domain in self.domains:
                await self._process_domain(domain, checker, stats)

        except Exception as e:
            stats.failed = True
            stats.failure = str(e)
            self._log.exception(f"Session failed: {e}")

        finally:
            if session is not None:
                try:
                    await session.close()
                except Exception as close_error:
                    self._log.error(f"Error closing session: {close_error}")
            stats.finished_at = _utcnow()

        self._log.info(
            f"Finished: {stats.persisted} saved, {stats.skipped} skipped, "
            f"{stats.discarded} discarded, {stats.errors} errors"
        )
        return stats

    async def _process_domain(
        self,
        domain: str,
        checker: AvailabilityChecker,
        stats: WorkerStats,
    ) -> None:
        log = self._log.with_context(domain=domain)

        try:
            if await self.store.contains(domain):
                log.info("Already checked, skipping")
                stats.skipped += 1
                return

            status = await checker.check(domain)
            stats.checked += 1

            outcome = await self.store.append_if_absent(DomainRecord.of(domain, status))

            if outcome is AppendOutcome.APPENDED:
                stats.persisted += 1
                stats.statuses[status] += 1
                log.info(f"Saved status {status.value} to {self.store.path}")
            elif outcome is AppendOutcome.ALREADY_PRESENT:
                stats.discarded += 1
                log.info("Checked by another session while processing, skipping save")
            else:
                stats.errors += 1
                log.error(f"Could not save result ({outcome.value})")

        except Exception as e:
            stats.errors += 1
            log.exception(f"Error processing domain: {e}")
            await self._record_error(domain, log, stats)

    async def _record_error(self, domain: str, log: ContextualLogger, stats: WorkerStats) -> None:
        """Best-effort save of an ``error`` record for ``domain``."""
        try:
            outcome = await self.store.append_if_absent(DomainRecord.of(domain, DomainStatus.ERROR))
            if outcome.persisted:
                stats.statuses[DomainStatus.ERROR] += 1
        except Exception as save_error:
            log.error(f"Failed to save error status: {save_error}")
