"""Orchestrator - partitioning, session workers, run coordination."""

from .partition import interleave_partitions, partition_domains
from .runner import CheckRunner, RunStats, run_domain_check
from .worker import SessionWorker, WorkerStats

__all__ = [
    "CheckRunner",
    "RunStats",
    "run_domain_check",
    "SessionWorker",
    "WorkerStats",
    "partition_domains",
    "interleave_partitions",
]
