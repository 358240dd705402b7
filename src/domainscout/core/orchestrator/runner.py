"""
Domain check runner orchestrator.

Coordinates the full workflow: read input → reconcile with the result
store → partition → run session workers concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from domainscout.core.backends.base import SessionFactory
from domainscout.core.backends.playwright_backend import playwright_session_factory
from domainscout.core.checker.base import CheckerFactory
from domainscout.core.checker.registrar import registrar_checker_factory
from domainscout.core.config.models import AppConfig
from domainscout.core.normalize.canonical import DomainStatus, domain_set
from domainscout.core.normalize.parsing import load_domain_list
from domainscout.persistence.store import ResultStore

from .partition import partition_domains
from .worker import SessionWorker, WorkerStats

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RunStats:
    """Statistics for a check run."""

    input_domains: int = 0
    already_checked: int = 0
    pruned_errors: int = 0
    unresolved: int = 0
    sessions: int = 0
    dry_run: bool = False

    partitions: list[list[str]] = field(default_factory=list)
    workers: list[WorkerStats] = field(default_factory=list)

    started_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        """Get run duration in seconds."""
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    @property
    def checked(self) -> int:
        return sum(w.checked for w in self.workers)

    @property
    def persisted(self) -> int:
        return sum(w.persisted for w in self.workers)

    @property
    def errors_count(self) -> int:
        return sum(w.errors for w in self.workers)

    @property
    def failed_sessions(self) -> int:
        return sum(1 for w in self.workers if w.failed)

    @property
    def statuses(self) -> dict[DomainStatus, int]:
        totals = {status: 0 for status in DomainStatus}
        for worker in self.workers:
            for status, count in worker.statuses.items():
                totals[status] += count
        return totals

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "input_domains": self.input_domains,
            "already_checked": self.already_checked,
            "pruned_errors": self.pruned_errors,
            "unresolved": self.unresolved,
            "sessions": self.sessions,
            "dry_run": self.dry_run,
            "checked": self.checked,
            "persisted": self.persisted,
            "errors_count": self.errors_count,
            "failed_sessions": self.failed_sessions,
            "statuses": {status.value: count for status, count in self.statuses.items()},
            "workers": [w.to_dict() for w in self.workers],
            "duration_seconds": self.duration_seconds,
        }


class CheckRunner:
    """Orchestrates a complete availability check run.

    Coordinates:
    - Input loading and de-duplication
    - Reconciliation against the result store (errored domains are retried)
    - Partitioning of unresolved domains across sessions
    - Concurrent session workers, each isolated from its siblings' failures
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        store: ResultStore | None = None,
        session_factory: SessionFactory | None = None,
        checker_factory: CheckerFactory | None = None,
    ) -> None:
        """Initialize the check runner.

        Args:
            config: Application configuration (defaults if not provided)
            store: Result store (built from config.runner.output_path if not provided)
            session_factory: Builds browser sessions (Playwright if not provided)
            checker_factory: Builds checkers (registrar checker if not provided)
        """
        self.config = config or AppConfig()
        self.store = store or ResultStore(self.config.runner.output_path, self.config.store)
        self.session_factory = session_factory or playwright_session_factory(self.config.browser)
        self.checker_factory = checker_factory or registrar_checker_factory(self.config.checker)

    async def run(self, dry_run: bool = False) -> RunStats:
        """Execute a complete check run.

        Args:
            dry_run: Plan the partitions without opening sessions

        Returns:
            RunStats with execution statistics

        Raises:
            InputError: If the domain list cannot be read
        """
        stats = RunStats(dry_run=dry_run)
        input_path = Path(self.config.runner.input_path)

        try:
            logger.info(f"Domains path: {input_path}")
            logger.info(f"Output path: {self.store.path}")

            domains = load_domain_list(input_path)
            stats.input_domains = len(domains)
            logger.info(f"Found {len(domains)} unique domains in input file")

            baseline, stats.pruned_errors = await self.store.prune_errors()

            if not domains:
                logger.info("No domains found in the input file")
                return stats

            checked = domain_set(baseline)
            logger.info(f"{len(checked)} domains have already been checked")

            unresolved = [d for d in domains if d not in checked]
            stats.already_checked = len(domains) - len(unresolved)
            stats.unresolved = len(unresolved)
            logger.info(f"{len(unresolved)} domains need to be checked")

            if not unresolved:
                logger.info("All domains have already been checked. Nothing to do.")
                return stats

            stats.partitions = partition_domains(unresolved, self.config.runner.max_sessions)
            stats.sessions = len(stats.partitions)
            logger.info(f"Using {stats.sessions} parallel sessions")
            for index, partition in enumerate(stats.partitions, start=1):
                logger.info(f"Session {index} will check {len(partition)} domains")

            if dry_run:
                logger.info("Dry run - no sessions started")
                return stats

            stats.workers = await self._run_workers(stats.partitions)
            logger.info("All domains have been checked")

        finally:
            stats.finished_at = _utcnow()

        return stats

    async def _run_workers(self, partitions: list[list[str]]) -> list[WorkerStats]:
        """Run one worker per partition and wait for all of them."""
        workers = [
            SessionWorker(
                session_number=index,
                domains=partition,
                store=self.store,
                session_factory=self.session_factory,
                checker_factory=self.checker_factory,
            )
            for index, partition in enumerate(partitions, start=1)
        ]

        results = await asyncio.gather(
            *(worker.run() for worker in workers),
            return_exceptions=True,
        )

        worker_stats: list[WorkerStats] = []
        for worker, result in zip(workers, results):
            if isinstance(result, BaseException):
                logger.error(
                    f"Session {worker.session_number} crashed: {result!r}",
                    exc_info=result,
                )
                worker_stats.append(
                    WorkerStats(
                        session_number=worker.session_number,
                        assigned=len(worker.domains),
                        failed=True,
                        failure=repr(result),
                        finished_at=_utcnow(),
                    )
                )
            else:
                worker_stats.append(result)

        return worker_stats


async def run_domain_check(
    config: AppConfig | None = None,
    *,
    dry_run: bool = False,
) -> RunStats:
    """Convenience function to run a check with the default Playwright stack.

    Args:
        config: Application configuration
        dry_run: Plan without opening sessions

    Returns:
        RunStats with execution statistics
    """
    runner = CheckRunner(config)
    return await runner.run(dry_run=dry_run)
