"""
JSON result store.

The store is a single JSON array of ``{"domain", "status"}`` objects shared
by every session worker. There is no lock: writers follow a read, check,
append, atomic-rewrite discipline, so a racing writer can lose work but a
reader never observes a half-written document.

Layout next to the target file ``domain.json``:

- ``domain.json.backup``: content before the most recent write
- ``domain.json.backup.<epoch-ms>``: quarantined copy of a corrupt document
- ``.domain.json.*.tmp``: in-flight writes, renamed over the target
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import time
from collections.abc import Sequence
from enum import Enum
from pathlib import Path

from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
    wait_incrementing,
)

from domainscout.core.config.models import StoreConfig
from domainscout.core.normalize.canonical import (
    RECORDS_ADAPTER,
    DomainRecord,
    DomainStatus,
    count_by_status,
    dedupe_records,
    domain_set,
)

logger = logging.getLogger(__name__)


class AppendOutcome(str, Enum):
    """Result of an optimistic append."""

    APPENDED = "appended"
    ALREADY_PRESENT = "already_present"
    READ_FAILED = "read_failed"
    WRITE_FAILED = "write_failed"

    @property
    def persisted(self) -> bool:
        return self is AppendOutcome.APPENDED


class StoreReadError(Exception):
    """Result file could not be read after all retries."""


class ResultStore:
    """Atomically-updated domain -> status mapping backed by one JSON file."""

    def __init__(self, path: Path | str, config: StoreConfig | None = None) -> None:
        self.path = Path(path)
        self.config = config or StoreConfig()

    def __repr__(self) -> str:
        return f"ResultStore({str(self.path)!r})"

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(f"{self.path.name}.backup")

    def quarantine_path(self) -> Path:
        """Timestamped path for a corrupt document."""
        stamp = int(time.time() * 1000)
        candidate = self.path.with_name(f"{self.path.name}.backup.{stamp}")
        while candidate.exists():
            stamp += 1
            candidate = self.path.with_name(f"{self.path.name}.backup.{stamp}")
        return candidate

    # =========================================================================
    # Read
    # =========================================================================

    async def load(self) -> list[DomainRecord]:
        """Load all records.

        Never raises: a missing file is created empty, a corrupt file is
        quarantined and reset, and exhausted I/O retries yield an empty list.
        """
        try:
            return await self._load_with_retry()
        except StoreReadError as e:
            logger.error(str(e))
            return []

    async def _load_with_retry(self) -> list[DomainRecord]:
        """Load records, raising StoreReadError when I/O retries run out."""
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.read_attempts),
                wait=wait_fixed(self.config.read_delay_seconds),
                retry=retry_if_exception_type(OSError),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    return self._read_once()
        except OSError as e:
            raise StoreReadError(
                f"Failed to read results file {self.path} after "
                f"{self.config.read_attempts} attempts: {e}"
            ) from e
        return []

    def _read_once(self) -> list[DomainRecord]:
        if not self.path.exists():
            logger.info(f"Results file does not exist yet at {self.path}, creating empty store")
            self._write_document([])
            return []

        data = self.path.read_bytes()

        if not data.strip():
            logger.debug(f"Results file at {self.path} is empty")
            return []

        try:
            records = RECORDS_ADAPTER.validate_json(data)
        except ValidationError as e:
            self._quarantine(e)
            return []

        records, dropped = dedupe_records(records)
        if dropped:
            logger.warning(f"Ignored {dropped} duplicate entries in {self.path}")

        logger.debug(f"Read {len(records)} entries from {self.path}")
        return records

    def _quarantine(self, error: ValidationError) -> None:
        """Preserve a corrupt document and reset the store to empty."""
        quarantine = self.quarantine_path()
        logger.error(
            f"Results file {self.path} is corrupt ({error.error_count()} errors): "
            f"{error.errors()[0]['msg'] if error.errors() else error}"
        )
        shutil.copy2(self.path, quarantine)
        logger.warning(f"Quarantined corrupt results file at {quarantine}")
        self._write_document([])

    # =========================================================================
    # Write
    # =========================================================================

    async def save(self, records: Sequence[DomainRecord]) -> bool:
        """Replace the stored document with ``records``.

        The previous document is copied to the ``.backup`` sibling first.
        Returns False when all attempts failed; never raises on I/O errors.
        """
        unit = self.config.write_backoff_seconds
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.write_attempts),
                wait=wait_incrementing(start=unit, increment=unit),
                retry=retry_if_exception_type(OSError),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    self._write_once(records)
        except OSError as e:
            logger.error(
                f"Failed to write results file {self.path} after "
                f"{self.config.write_attempts} attempts: {e}"
            )
            return False

        logger.debug(f"Wrote {len(records)} entries to {self.path}")
        return True

    def _write_once(self, records: Sequence[DomainRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        if self.path.exists():
            shutil.copy2(self.path, self.backup_path)

        self._write_document(records)

    def _write_document(self, records: Sequence[DomainRecord]) -> None:
        """Write to a temporary sibling, then rename over the target."""
        payload = RECORDS_ADAPTER.dump_json(list(records), indent=4) + b"\n"

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            dir=self.path.parent,
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    # =========================================================================
    # Merge discipline
    # =========================================================================

    async def contains(self, domain: str) -> bool:
        """Re-read the store and check whether ``domain`` is recorded."""
        records = await self.load()
        return domain in domain_set(records)

    async def append_if_absent(self, record: DomainRecord) -> AppendOutcome:
        """Re-read, check the domain is still absent, append and save.

        Optimistic: another writer may append the same domain between our
        read and our rename. A failed read never leads to a write, so an
        unreadable store is not overwritten with a single record.
        """
        try:
            records = await self._load_with_retry()
        except StoreReadError as e:
            logger.error(f"{e}; not saving {record.domain}")
            return AppendOutcome.READ_FAILED

        if record.domain in domain_set(records):
            return AppendOutcome.ALREADY_PRESENT

        records.append(record)
        if await self.save(records):
            return AppendOutcome.APPENDED
        return AppendOutcome.WRITE_FAILED

    async def prune_errors(self) -> tuple[list[DomainRecord], int]:
        """Drop ``error`` records so those domains are checked again.

        The filtered set is written back only when something was dropped.

        Returns:
            Tuple of (remaining records, number of records dropped)
        """
        records = await self.load()
        kept = [r for r in records if r.status.is_resolved]
        dropped = len(records) - len(kept)

        if dropped:
            logger.info(f"Removed {dropped} domains with error status for retry")
            if await self.save(kept):
                logger.info(f"Updated results file with {len(kept)} valid entries")
            else:
                logger.warning("Could not persist pruned results; errored domains stay recorded")

        return kept, dropped

    async def summary(self) -> dict[DomainStatus, int]:
        """Count stored records per status."""
        return count_by_status(await self.load())
