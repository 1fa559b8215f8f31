"""Polling watch loop: scan, track, classify, dispatch, check the stop condition.

Single-threaded. The handler runs inline and blocks the loop; the only
deliberate pause is the sleep between cycles. Each ``watch()`` call owns its
own snapshot store and results, so one ``Watcher`` can be watched repeatedly.
"""

import logging
import time
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path
from typing import Any

from maturewatch.schemas.watch import (
    Maturity,
    Observation,
    ProcessingOutcome,
    ScanResult,
    StopCondition,
    WatchResults,
    WatchSpec,
)
from maturewatch.watcher.dispatcher import Dispatcher
from maturewatch.watcher.errors import ScanError
from maturewatch.watcher.maturation import classify
from maturewatch.watcher.scanner import Scanner
from maturewatch.watcher.snapshots import SnapshotStore
from maturewatch.watcher.stop import should_stop

logger = logging.getLogger(__name__)


def _seconds(duration: float | timedelta) -> float:
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


class Watcher:
    """Watches a glob pattern and hands each file to ``handler`` once it has matured.

    Usage::

        results = (
            Watcher("incoming/*.csv", load_csv)
            .maturation(5)
            .delete_on_completion(True)
            .watch(StopCondition.files_found(10))
        )
        for path, rows in results.completed.items():
            ...

    The handler receives the file's ``Path``. Its return value is kept on the
    outcome; raising any exception marks the file as failed and leaves it on disk.
    """

    def __init__(
        self,
        pattern: str,
        handler: Callable[[Path], Any],
        *,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._spec = WatchSpec(pattern=pattern, handler=handler)
        self._clock = clock
        self._sleep = sleep
        self._max_scan_failures: int | None = None
        self._on_outcome: Callable[[ProcessingOutcome], None] | None = None

    @property
    def spec(self) -> WatchSpec:
        return self._spec

    def _configure(self, **changes: Any) -> "Watcher":
        self._spec = WatchSpec.model_validate({**dict(self._spec), **changes})
        return self

    def maturation(self, duration: float | timedelta) -> "Watcher":
        """Set how long a file must go unmodified before it is processed."""
        return self._configure(maturation=_seconds(duration))

    def check_interval(self, duration: float | timedelta) -> "Watcher":
        """Set the minimum time between the start of two poll cycles.

        This is a minimum; slow handlers can stretch a cycle beyond it.
        """
        return self._configure(check_interval=_seconds(duration))

    def delete_on_completion(self, delete: bool = True) -> "Watcher":
        """Delete each file after its handler returns successfully."""
        return self._configure(delete_on_completion=delete)

    def max_scan_failures(self, count: int | None) -> "Watcher":
        """Raise ``ScanError`` out of ``watch()`` after ``count`` consecutive failed scans.

        ``None`` or 0 keeps retrying forever.
        """
        self._max_scan_failures = count or None
        return self

    def on_outcome(self, callback: Callable[[ProcessingOutcome], None] | None) -> "Watcher":
        """Call ``callback`` with every outcome as soon as it is recorded.

        Exceptions raised by the callback are logged; the outcome is kept and
        the watch carries on.
        """
        self._on_outcome = callback
        return self

    def watch(self, condition: StopCondition | None = None) -> WatchResults:
        """Poll until ``condition`` is met and return everything that was dispatched.

        Defaults to ``StopCondition.never()``, in which case only
        KeyboardInterrupt ends the loop.

        Raises:
            ScanError: If ``max_scan_failures`` consecutive scans failed.
        """
        condition = condition or StopCondition.never()
        spec = self._spec
        scanner = Scanner(spec.pattern)
        dispatcher = Dispatcher(spec.handler, delete_on_completion=spec.delete_on_completion)
        store = SnapshotStore()
        results = WatchResults()

        start = self._clock()
        last_activity = start
        scan_failures = 0
        logger.info(
            "Watching %s (mature after %gs, checking every %gs, stopping %s)",
            spec.pattern,
            spec.maturation,
            spec.check_interval,
            condition.describe(),
        )

        try:
            while True:
                iteration_start = self._clock()
                results.iterations += 1

                try:
                    scan = scanner.scan()
                except ScanError as exc:
                    scan_failures += 1
                    logger.warning("Scan failed (%d in a row), skipping cycle: %s", scan_failures, exc)
                    if self._max_scan_failures and scan_failures >= self._max_scan_failures:
                        raise
                else:
                    scan_failures = 0
                    if self._run_cycle(scan, store, dispatcher, results, now=iteration_start):
                        last_activity = iteration_start

                now = self._clock()
                if should_stop(
                    condition,
                    dispatched=len(results.outcomes),
                    elapsed=now - start,
                    iterations=results.iterations,
                    idle=now - last_activity,
                ):
                    logger.info("Processing halted: stop condition met (%s).", condition.describe())
                    break

                remaining = spec.check_interval - (now - iteration_start)
                if remaining > 0:
                    self._sleep(remaining)
        except KeyboardInterrupt:
            logger.info("Watch interrupted; returning results gathered so far.")

        results.not_processed = [path for path, _ in store.snapshots()]
        results.elapsed = self._clock() - start
        return results

    def _run_cycle(
        self,
        scan: ScanResult,
        store: SnapshotStore,
        dispatcher: Dispatcher,
        results: WatchResults,
        *,
        now: float,
    ) -> int:
        """Track the scanned files and dispatch the mature ones.

        Returns:
            The number of paths that appeared or were modified since the last scan.
        """
        active = 0
        for path, modified in scan.files.items():
            observation = store.observe(path, modified, now=now)
            if observation == Observation.NEW:
                logger.debug("Tracking new file %s", path)
            if observation in (Observation.NEW, Observation.CHANGED):
                active += 1
            results.skipped.pop(path, None)

        for path, reason in scan.skipped.items():
            if not store.is_retired(path):
                results.skipped[path] = reason

        store.mark_missing(scan.files)

        mature = [
            snapshot
            for _, snapshot in store.snapshots()
            if classify(snapshot, now=now, maturation=self._spec.maturation) == Maturity.MATURE
        ]
        for snapshot in mature:
            outcome = dispatcher.dispatch(snapshot)
            store.retire(snapshot.path)
            results.outcomes.append(outcome)
            self._notify(outcome)

        return active

    def _notify(self, outcome: ProcessingOutcome) -> None:
        if self._on_outcome is None:
            return
        try:
            self._on_outcome(outcome)
        except Exception:
            logger.exception("Outcome callback failed for %s", outcome.path)
