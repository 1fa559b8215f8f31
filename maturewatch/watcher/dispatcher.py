"""Runs the user handler on mature files and applies the deletion policy.

Every dispatch produces exactly one ``ProcessingOutcome``; no error raised
here escapes to the watch loop.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from maturewatch.schemas.watch import FileSnapshot, OutcomeStatus, ProcessingOutcome
from maturewatch.watcher.errors import (
    DeletionError,
    HandlerError,
    VanishedFileError,
    WatchError,
)

logger = logging.getLogger(__name__)


class Dispatcher:
    """Invokes a handler on a path and records what happened.

    Usage::

        dispatcher = Dispatcher(handler, delete_on_completion=True)
        outcome = dispatcher.dispatch(snapshot)
    """

    def __init__(
        self,
        handler: Callable[[Path], Any],
        *,
        delete_on_completion: bool = False,
    ) -> None:
        self._handler = handler
        self._delete_on_completion = delete_on_completion

    def dispatch(self, snapshot: FileSnapshot) -> ProcessingOutcome:
        """Process a single mature file: existence check, handler, deletion.

        A file is deleted only after the handler returned successfully.
        """
        path = snapshot.path
        value = None
        deleted = False
        try:
            if not path.exists():
                raise VanishedFileError(path)
            value = self._run_handler(path)
            if self._delete_on_completion:
                self._delete(path)
                deleted = True
                logger.info("Processed and deleted %s.", path)
            else:
                logger.info("Processed %s.", path)
        except WatchError as exc:
            return self._failed(snapshot, exc, value)

        return ProcessingOutcome(
            path=path,
            status=OutcomeStatus.SUCCEEDED,
            value=value,
            deleted=deleted,
            first_seen=snapshot.first_seen,
            dispatched_at=datetime.now(UTC),
        )

    def _run_handler(self, path: Path) -> Any:
        try:
            return self._handler(path)
        except Exception as exc:
            logger.exception("Handler failed for %s: %s", path, exc)
            raise HandlerError(path, str(exc) or type(exc).__name__) from exc

    def _delete(self, path: Path) -> None:
        try:
            path.unlink()
        except OSError as exc:
            logger.warning("Processed but failed to delete %s: %s", path, exc)
            raise DeletionError(path, str(exc)) from exc

    def _failed(
        self, snapshot: FileSnapshot, exc: WatchError, value: Any
    ) -> ProcessingOutcome:
        if isinstance(exc, VanishedFileError):
            logger.warning("%s vanished before it could be processed", snapshot.path)
        return ProcessingOutcome(
            path=snapshot.path,
            status=OutcomeStatus.FAILED,
            failure=exc.kind,
            reason=exc.reason,
            value=value,
            first_seen=snapshot.first_seen,
            dispatched_at=datetime.now(UTC),
        )
