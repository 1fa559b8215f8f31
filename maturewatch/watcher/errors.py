"""Error taxonomy for the watch loop.

Only ``ScanError`` ever reaches the loop; the dispatch errors are converted
into failed ``ProcessingOutcome`` records by the dispatcher.
"""

from pathlib import Path

from maturewatch.schemas.watch import FailureKind


class WatchError(Exception):
    """Base class for watcher errors tied to a path."""

    kind: FailureKind | None = None

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ScanError(WatchError):
    """Raised when the watched directory cannot be listed."""


class HandlerError(WatchError):
    """Raised when the user handler fails for a path."""

    kind = FailureKind.HANDLER


class DeletionError(WatchError):
    """Raised when a processed file cannot be removed."""

    kind = FailureKind.DELETION


class VanishedFileError(WatchError):
    """Raised when a path disappears between scan and dispatch."""

    kind = FailureKind.VANISHED

    def __init__(self, path: Path, reason: str = "vanished") -> None:
        super().__init__(path, reason)
