"""JSONL trail of dispatch outcomes.

``OutcomeAuditLog.log_outcome`` is meant to be passed to
``Watcher.on_outcome``: every file gets its line the moment its outcome is
known, so a watch that is killed still leaves a record of what it handled.
"""

import logging
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from maturewatch.schemas.watch import FailureKind, OutcomeStatus, ProcessingOutcome, WatchEvent

logger = logging.getLogger(__name__)


class OutcomeAuditLog:
    """Outcome writer and reader backed by one JSONL file.

    Usage::

        audit = OutcomeAuditLog("data/watch_audit.jsonl")
        Watcher("incoming/*.csv", load_csv).on_outcome(audit.log_outcome).watch()
        failures = audit.read_entries(status=OutcomeStatus.FAILED)
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def log_outcome(self, outcome: ProcessingOutcome) -> WatchEvent:
        event = WatchEvent.from_outcome(outcome)
        self.log(event)
        return event

    def log(self, event: WatchEvent) -> None:
        with self._path.open("a", encoding="utf-8") as f:
            f.write(f"{event.model_dump_json()}\n")
        logger.debug("Recorded %s outcome for %s", event.status, event.source_path)

    def events(self) -> Iterator[WatchEvent]:
        """Yield recorded events in the order they were dispatched.

        A line that does not parse (typically the last one, cut short when
        the watch was killed mid-write) is logged and skipped.
        """
        if not self._path.exists():
            return
        with self._path.open(encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    yield WatchEvent.model_validate_json(line)
                except ValidationError:
                    logger.warning("Ignoring unreadable line %d in %s", lineno, self._path)

    def read_entries(
        self,
        *,
        since: datetime | None = None,
        status: OutcomeStatus | None = None,
        failure: FailureKind | None = None,
        limit: int | None = None,
    ) -> list[WatchEvent]:
        """Return recorded outcomes, oldest dispatch first.

        Args:
            since: Keep files dispatched strictly after this moment.
            status: Keep only succeeded or only failed outcomes.
            failure: Keep only failures of this kind (handler, deletion, vanished).
            limit: Keep only the newest ``limit`` matches.
        """
        entries = [
            event
            for event in self.events()
            if (since is None or event.dispatched_at > since)
            and (status is None or event.status == status)
            and (failure is None or event.failure == failure)
        ]
        if limit is not None:
            entries = entries[max(len(entries) - limit, 0) :]
        return entries
