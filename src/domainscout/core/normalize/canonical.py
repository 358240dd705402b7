"""
Canonical domain record model.

Provides the validated representation of a checked domain that flows
between the checker, the workers and the result store.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator

from .parsing import normalize_domain


class DomainStatus(str, Enum):
    """Availability status of a domain."""

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"
    ERROR = "error"

    @property
    def is_resolved(self) -> bool:
        """Resolved statuses are not retried on the next run."""
        return self is not DomainStatus.ERROR


class DomainRecord(BaseModel):
    """One checked domain as stored in the result file.

    The domain is normalized on construction but not validated as a
    hostname, so records written by older or foreign tools still load.
    Input lists are validated strictly in ``parsing``. Any status outside
    DomainStatus is rejected.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    domain: str
    status: DomainStatus

    @field_validator("domain", mode="before")
    @classmethod
    def normalize(cls, v: object) -> str:
        if not isinstance(v, str):
            raise ValueError("domain must be a string")
        domain = normalize_domain(v)
        if not domain:
            raise ValueError("domain must not be empty")
        return domain

    @classmethod
    def of(cls, domain: str, status: DomainStatus | str) -> "DomainRecord":
        """Shorthand constructor."""
        return cls(domain=domain, status=DomainStatus(status))


# Whole-document adapter used at the store boundary
RECORDS_ADAPTER: TypeAdapter[list[DomainRecord]] = TypeAdapter(list[DomainRecord])


def domain_set(records: list[DomainRecord]) -> set[str]:
    """Domains present in a record list."""
    return {record.domain for record in records}


def dedupe_records(records: list[DomainRecord]) -> tuple[list[DomainRecord], int]:
    """Drop repeated domains, keeping the first occurrence.

    Returns:
        Tuple of (unique records, number dropped)
    """
    seen: set[str] = set()
    unique: list[DomainRecord] = []
    for record in records:
        if record.domain in seen:
            continue
        seen.add(record.domain)
        unique.append(record)
    return unique, len(records) - len(unique)


def count_by_status(records: list[DomainRecord]) -> dict[DomainStatus, int]:
    """Count records per status, including zero counts."""
    counts = {status: 0 for status in DomainStatus}
    for record in records:
        counts[record.status] += 1
    return counts
