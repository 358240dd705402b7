from __future__ import annotations

import json
from pathlib import Path

import pytest

from domainscout.core.normalize import DomainRecord, DomainStatus
from domainscout.persistence import AppendOutcome, ResultStore


def _records(*pairs: tuple[str, str]) -> list[DomainRecord]:
    return [DomainRecord.of(domain, status) for domain, status in pairs]


def _document(path: Path) -> list[dict[str, str]]:
    return json.loads(path.read_text(encoding="utf-8"))


async def test_load_creates_missing_file(store: ResultStore, store_path: Path) -> None:
    assert not store_path.exists()

    assert await store.load() == []
    assert _document(store_path) == []


async def test_load_empty_file_is_empty_store(store: ResultStore, store_path: Path) -> None:
    store_path.parent.mkdir(parents=True)
    store_path.write_text("  \n", encoding="utf-8")

    assert await store.load() == []
    assert list(store_path.parent.glob("domain.json.backup.*")) == []


async def test_save_writes_pretty_json_and_keeps_backup(store: ResultStore, store_path: Path) -> None:
    first = _records(("a.com", "available"))
    second = first + _records(("b.com", "unavailable"))

    assert await store.save(first)
    assert await store.save(second)

    assert _document(store_path) == [
        {"domain": "a.com", "status": "available"},
        {"domain": "b.com", "status": "unavailable"},
    ]
    assert _document(store.backup_path) == [{"domain": "a.com", "status": "available"}]
    assert '\n    {\n        "domain"' in store_path.read_text(encoding="utf-8")


async def test_save_leaves_no_temporary_files(store: ResultStore, store_path: Path) -> None:
    await store.save(_records(("a.com", "unknown")))

    assert sorted(p.name for p in store_path.parent.iterdir()) == ["domain.json"]


async def test_corrupt_file_is_quarantined_and_reset(store: ResultStore, store_path: Path) -> None:
    store_path.parent.mkdir(parents=True)
    store_path.write_text('[{"domain": "a.com", "status": ', encoding="utf-8")

    assert await store.load() == []

    quarantined = list(store_path.parent.glob("domain.json.backup.*"))
    assert len(quarantined) == 1
    assert quarantined[0].read_text(encoding="utf-8") == '[{"domain": "a.com", "status": '
    assert _document(store_path) == []


async def test_unknown_status_counts_as_corrupt(store: ResultStore, store_path: Path) -> None:
    store_path.parent.mkdir(parents=True)
    store_path.write_text('[{"domain": "a.com", "status": "sold"}]', encoding="utf-8")

    assert await store.load() == []
    assert len(list(store_path.parent.glob("domain.json.backup.*"))) == 1


async def test_duplicate_entries_keep_first_occurrence(store: ResultStore, store_path: Path) -> None:
    store_path.parent.mkdir(parents=True)
    store_path.write_text(
        json.dumps([
            {"domain": "a.com", "status": "unavailable"},
            {"domain": "a.com", "status": "available"},
        ]),
        encoding="utf-8",
    )

    records = await store.load()

    assert records == _records(("a.com", "unavailable"))


async def test_unusual_but_well_formed_records_load_unchanged(
    store: ResultStore, store_path: Path
) -> None:
    document = [
        {"domain": "a.com", "status": "available"},
        {"domain": "bücher.de", "status": "unavailable"},
        {"domain": "localhost", "status": "unknown"},
        {"domain": "WWW.B.com", "status": "error"},
    ]
    store_path.parent.mkdir(parents=True)
    original = json.dumps(document, ensure_ascii=False)
    store_path.write_text(original, encoding="utf-8")

    records = await store.load()

    assert [(r.domain, r.status.value) for r in records] == [
        ("a.com", "available"),
        ("bücher.de", "unavailable"),
        ("localhost", "unknown"),
        ("b.com", "error"),
    ]
    assert list(store_path.parent.glob("domain.json.backup.*")) == []
    assert store_path.read_text(encoding="utf-8") == original


async def test_read_is_retried_on_os_error(
    store: ResultStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    await store.save(_records(("a.com", "available")))
    real_read = store._read_once
    calls = {"count": 0}

    def flaky_read() -> list[DomainRecord]:
        calls["count"] += 1
        if calls["count"] == 1:
            raise PermissionError("file busy")
        return real_read()

    monkeypatch.setattr(store, "_read_once", flaky_read)

    assert await store.load() == _records(("a.com", "available"))
    assert calls["count"] == 2


async def test_load_returns_empty_when_reads_are_exhausted(
    store: ResultStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    def broken_read() -> list[DomainRecord]:
        raise OSError("disk gone")

    monkeypatch.setattr(store, "_read_once", broken_read)

    assert await store.load() == []


async def test_save_reports_failure_after_all_attempts(
    store: ResultStore, store_config, monkeypatch: pytest.MonkeyPatch
) -> None:
    attempts = {"count": 0}

    def failing_write(records) -> None:
        attempts["count"] += 1
        raise OSError("read-only filesystem")

    monkeypatch.setattr(store, "_write_once", failing_write)

    assert await store.save(_records(("a.com", "available"))) is False
    assert attempts["count"] == store_config.write_attempts


async def test_save_recovers_from_transient_write_error(
    store: ResultStore, store_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    real_write = store._write_once
    attempts = {"count": 0}

    def flaky_write(records) -> None:
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise OSError("temporarily locked")
        real_write(records)

    monkeypatch.setattr(store, "_write_once", flaky_write)

    assert await store.save(_records(("a.com", "available")))
    assert _document(store_path) == [{"domain": "a.com", "status": "available"}]


async def test_interrupted_write_leaves_previous_document_intact(
    store: ResultStore, store_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    assert await store.save(_records(("a.com", "available")))
    before = store_path.read_bytes()

    def interrupted_replace(src, dst) -> None:
        raise OSError("disk unplugged mid-rename")

    monkeypatch.setattr("domainscout.persistence.store.os.replace", interrupted_replace)

    assert await store.save(_records(("a.com", "available"), ("b.com", "unknown"))) is False

    assert store_path.read_bytes() == before
    assert json.loads(before) == [{"domain": "a.com", "status": "available"}]
    assert list(store_path.parent.glob(".domain.json.*.tmp")) == []


async def test_append_if_absent(store: ResultStore, store_path: Path) -> None:
    first = await store.append_if_absent(DomainRecord.of("a.com", "available"))
    again = await store.append_if_absent(DomainRecord.of("a.com", "unavailable"))

    assert first is AppendOutcome.APPENDED
    assert again is AppendOutcome.ALREADY_PRESENT
    assert _document(store_path) == [{"domain": "a.com", "status": "available"}]
    assert await store.contains("a.com")
    assert not await store.contains("b.com")


async def test_append_does_not_overwrite_unreadable_store(
    store: ResultStore, store_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    await store.save(_records(("a.com", "available"), ("b.com", "unknown")))
    before = store_path.read_bytes()

    def broken_read() -> list[DomainRecord]:
        raise OSError("disk gone")

    monkeypatch.setattr(store, "_read_once", broken_read)

    outcome = await store.append_if_absent(DomainRecord.of("c.com", "available"))

    assert outcome is AppendOutcome.READ_FAILED
    assert not outcome.persisted
    assert store_path.read_bytes() == before


async def test_append_reports_write_failure(
    store: ResultStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    await store.load()

    def failing_write(records) -> None:
        raise OSError("no space left on device")

    monkeypatch.setattr(store, "_write_once", failing_write)

    outcome = await store.append_if_absent(DomainRecord.of("a.com", "available"))

    assert outcome is AppendOutcome.WRITE_FAILED


async def test_prune_errors_drops_error_records(store: ResultStore, store_path: Path) -> None:
    await store.save(
        _records(("a.com", "available"), ("b.com", "error"), ("c.com", "unknown"), ("d.com", "error"))
    )

    kept, dropped = await store.prune_errors()

    assert dropped == 2
    assert [r.domain for r in kept] == ["a.com", "c.com"]
    assert [entry["domain"] for entry in _document(store_path)] == ["a.com", "c.com"]


async def test_prune_errors_without_errors_does_not_rewrite(
    store: ResultStore, store_path: Path
) -> None:
    store_path.parent.mkdir(parents=True)
    store_path.write_text(json.dumps([{"domain": "a.com", "status": "available"}]), encoding="utf-8")

    kept, dropped = await store.prune_errors()

    assert dropped == 0
    assert kept == _records(("a.com", "available"))
    assert not store.backup_path.exists()


async def test_summary_counts_statuses(store: ResultStore) -> None:
    await store.save(_records(("a.com", "available"), ("b.com", "available"), ("c.com", "error")))

    summary = await store.summary()

    assert summary[DomainStatus.AVAILABLE] == 2
    assert summary[DomainStatus.ERROR] == 1
    assert summary[DomainStatus.UNKNOWN] == 0
