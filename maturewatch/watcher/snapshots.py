"""In-memory store of per-path snapshots for one watch invocation.

Tracks when each matching path was first seen, its last observed
modification time, and whether it is still showing up in scans. Paths that
have been dispatched are retired and ignored for the rest of the watch.
Nothing is persisted.
"""

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from maturewatch.schemas.watch import FileSnapshot, Observation

logger = logging.getLogger(__name__)

# A tracked path absent from this many consecutive scans is dropped
MISSING_SCANS_BEFORE_REMOVAL = 2


class SnapshotStore:
    """Mapping of path -> FileSnapshot owned by a single watch loop.

    Usage::

        store = SnapshotStore()
        store.observe(path, mtime, now=time.time())
        for path, snapshot in store.snapshots():
            ...
        store.retire(path)
    """

    def __init__(self) -> None:
        self._snapshots: dict[Path, FileSnapshot] = {}
        self._retired: set[Path] = set()

    def __len__(self) -> int:
        return len(self._snapshots)

    def __contains__(self, path: object) -> bool:
        return path in self._snapshots

    def get(self, path: Path) -> FileSnapshot | None:
        return self._snapshots.get(path)

    def is_retired(self, path: Path) -> bool:
        return path in self._retired

    def observe(self, path: Path, modified: float, *, now: float) -> Observation | None:
        """Record that ``path`` matched the pattern with modification time ``modified``.

        Returns:
            NEW on first sight, CHANGED if the modification time differs from
            the stored one (the maturity clock restarts from ``modified``),
            UNCHANGED otherwise. None if the path was already dispatched.
        """
        if path in self._retired:
            return None

        snapshot = self._snapshots.get(path)
        if snapshot is None:
            self._snapshots[path] = FileSnapshot(
                path=path,
                first_seen=now,
                last_modified=modified,
                last_checked=now,
            )
            return Observation.NEW

        snapshot.last_checked = now
        snapshot.missed_scans = 0
        if modified == snapshot.last_modified:
            snapshot.last_observation = Observation.UNCHANGED
        else:
            if modified < snapshot.last_modified:
                logger.warning(
                    "Modification time of %s moved backwards (%.3f -> %.3f)",
                    path,
                    snapshot.last_modified,
                    modified,
                )
            snapshot.last_modified = modified
            snapshot.last_observation = Observation.CHANGED
        return snapshot.last_observation

    def mark_missing(self, seen: Iterable[Path]) -> list[Path]:
        """Account for tracked paths that did not appear in the latest scan.

        Returns:
            Paths removed because they were missing from
            ``MISSING_SCANS_BEFORE_REMOVAL`` consecutive scans.
        """
        seen = set(seen)
        removed = []
        for path, snapshot in list(self._snapshots.items()):
            if path in seen:
                continue
            snapshot.missed_scans += 1
            if snapshot.missed_scans >= MISSING_SCANS_BEFORE_REMOVAL:
                del self._snapshots[path]
                removed.append(path)
                logger.info("No longer tracking %s (removed externally)", path)
        return removed

    def remove(self, path: Path) -> FileSnapshot | None:
        """Drop the snapshot for ``path``. The path may be tracked again later."""
        return self._snapshots.pop(path, None)

    def retire(self, path: Path) -> FileSnapshot | None:
        """Drop the snapshot for ``path`` and ignore the path from now on."""
        self._retired.add(path)
        return self._snapshots.pop(path, None)

    def snapshots(self) -> Iterator[tuple[Path, FileSnapshot]]:
        """Iterate over current (path, snapshot) pairs, ordered by path.

        Materializes the pairs first, so callers may retire paths while iterating.
        """
        return iter(sorted(self._snapshots.items(), key=lambda item: item[0]))
