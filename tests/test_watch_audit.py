"""Tests for the JSONL outcome audit log."""

from datetime import UTC, datetime, timedelta
from pathlib import Path

from maturewatch.schemas.watch import (
    FailureKind,
    OutcomeStatus,
    ProcessingOutcome,
    WatchEvent,
)
from maturewatch.watcher.audit import OutcomeAuditLog


def _make_outcome(
    *,
    name: str = "batch.csv",
    status: OutcomeStatus = OutcomeStatus.SUCCEEDED,
    failure: FailureKind = FailureKind.HANDLER,
    when: datetime | None = None,
) -> ProcessingOutcome:
    failed = status == OutcomeStatus.FAILED
    return ProcessingOutcome(
        path=Path("/incoming") / name,
        status=status,
        failure=failure if failed else None,
        reason="bad header" if failed else "",
        value=None if failed else 42,
        deleted=not failed,
        first_seen=1_700_000_000.0,
        dispatched_at=when or datetime.now(UTC),
    )


class TestWatchEvent:
    def test_from_successful_outcome(self):
        event = WatchEvent.from_outcome(_make_outcome())
        assert event.source_path == "/incoming/batch.csv"
        assert event.file_name == "batch.csv"
        assert event.status == OutcomeStatus.SUCCEEDED
        assert event.failure is None
        assert event.deleted is True
        assert event.result == "42"

    def test_from_failed_outcome(self):
        event = WatchEvent.from_outcome(_make_outcome(status=OutcomeStatus.FAILED))
        assert event.failure == FailureKind.HANDLER
        assert event.reason == "bad header"
        assert event.result == ""


class TestLogAndRead:
    def test_log_creates_file(self, tmp_path):
        log_path = tmp_path / "audit.jsonl"
        OutcomeAuditLog(log_path).log_outcome(_make_outcome())
        assert log_path.exists()

    def test_roundtrip_preserves_order(self, tmp_path):
        audit = OutcomeAuditLog(tmp_path / "audit.jsonl")
        for name in ("a.csv", "b.csv", "c.csv"):
            audit.log_outcome(_make_outcome(name=name))

        entries = audit.read_entries()
        assert [e.file_name for e in entries] == ["a.csv", "b.csv", "c.csv"]

    def test_read_missing_file_returns_empty_list(self, tmp_path):
        assert OutcomeAuditLog(tmp_path / "audit.jsonl").read_entries() == []

    def test_creates_parent_dirs(self, tmp_path):
        audit = OutcomeAuditLog(tmp_path / "deep" / "nested" / "audit.jsonl")
        audit.log_outcome(_make_outcome())
        assert audit.read_entries()[0].file_name == "batch.csv"


class TestFiltering:
    def test_since_status_and_limit(self, tmp_path):
        audit = OutcomeAuditLog(tmp_path / "audit.jsonl")
        now = datetime.now(UTC)
        audit.log_outcome(_make_outcome(name="old.csv", when=now - timedelta(hours=2)))
        audit.log_outcome(_make_outcome(name="f1.csv", status=OutcomeStatus.FAILED, when=now))
        audit.log_outcome(_make_outcome(name="ok1.csv", when=now))
        audit.log_outcome(_make_outcome(name="ok2.csv", when=now))

        cutoff = now - timedelta(hours=1)
        assert len(audit.read_entries(since=cutoff)) == 3

        succeeded = audit.read_entries(since=cutoff, status=OutcomeStatus.SUCCEEDED)
        assert [e.file_name for e in succeeded] == ["ok1.csv", "ok2.csv"]

        newest = audit.read_entries(limit=1)
        assert [e.file_name for e in newest] == ["ok2.csv"]

    def test_failure_kind(self, tmp_path):
        audit = OutcomeAuditLog(tmp_path / "audit.jsonl")
        failed = OutcomeStatus.FAILED
        audit.log_outcome(_make_outcome(name="h.csv", status=failed))
        audit.log_outcome(_make_outcome(name="d.csv", status=failed, failure=FailureKind.DELETION))
        audit.log_outcome(_make_outcome(name="ok.csv"))

        entries = audit.read_entries(failure=FailureKind.DELETION)

        assert [e.file_name for e in entries] == ["d.csv"]
        assert entries[0].reason == "bad header"

    def test_limit_zero_returns_nothing(self, tmp_path):
        audit = OutcomeAuditLog(tmp_path / "audit.jsonl")
        audit.log_outcome(_make_outcome())
        assert audit.read_entries(limit=0) == []


class TestDamagedLog:
    def test_truncated_last_line_is_skipped(self, tmp_path):
        audit = OutcomeAuditLog(tmp_path / "audit.jsonl")
        audit.log_outcome(_make_outcome(name="a.csv"))
        line = WatchEvent.from_outcome(_make_outcome(name="b.csv")).model_dump_json()
        with audit.path.open("a") as f:
            f.write(line[: len(line) // 2])

        assert [e.file_name for e in audit.events()] == ["a.csv"]


class TestLogOutcome:
    def test_returns_written_event(self, tmp_path):
        audit = OutcomeAuditLog(tmp_path / "audit.jsonl")
        event = audit.log_outcome(_make_outcome(name="a.csv"))
        assert event.dispatched_at == audit.read_entries()[0].dispatched_at
