"""Schemas for the file maturation watcher.

Covers watch configuration, per-path snapshots, dispatch outcomes,
stop conditions, and the audit record written for each outcome.
"""

from collections.abc import Callable
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Observation(StrEnum):
    """What the snapshot store concluded about a path in the current cycle."""

    NEW = "new"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


class Maturity(StrEnum):
    """Classification of a tracked path."""

    IMMATURE = "immature"
    MATURE = "mature"


class OutcomeStatus(StrEnum):
    """Result of dispatching a mature path."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureKind(StrEnum):
    """Why a dispatch failed."""

    HANDLER = "handler"
    DELETION = "deletion"
    VANISHED = "vanished"


class StopKind(StrEnum):
    """When the watch loop halts."""

    ONCE = "once"
    FILES_FOUND = "files_found"
    ELAPSED = "elapsed"
    NO_NEW_FILES_SINCE = "no_new_files_since"
    NEVER = "never"


# --- Configuration ---


class WatchSpec(BaseModel):
    """Immutable configuration for one watcher."""

    model_config = ConfigDict(frozen=True)

    pattern: str = Field(min_length=1, description="Glob pattern, e.g. 'incoming/*.csv'")
    handler: Callable[[Path], Any]
    maturation: float = Field(
        default=5.0,
        ge=0.0,
        description="Seconds a file must stay unmodified before it is processed",
    )
    check_interval: float = Field(
        default=1.0,
        gt=0.0,
        description="Minimum seconds between the start of two poll cycles",
    )
    delete_on_completion: bool = False


class StopCondition(BaseModel):
    """Predicate that terminates the watch loop.

    Flat model: ``count`` applies to FILES_FOUND, ``seconds`` to ELAPSED and
    NO_NEW_FILES_SINCE. Use the constructors rather than building it directly::

        StopCondition.files_found(3)
        StopCondition.elapsed(60)
        StopCondition.parse("idle:30")
    """

    model_config = ConfigDict(frozen=True)

    kind: StopKind
    count: int | None = Field(default=None, ge=0)
    seconds: float | None = Field(default=None, ge=0.0)

    @model_validator(mode="after")
    def _check_params(self) -> "StopCondition":
        if self.kind == StopKind.FILES_FOUND and self.count is None:
            raise ValueError("files_found requires a count")
        if self.kind in (StopKind.ELAPSED, StopKind.NO_NEW_FILES_SINCE) and self.seconds is None:
            raise ValueError(f"{self.kind} requires a duration in seconds")
        return self

    @classmethod
    def once(cls) -> "StopCondition":
        return cls(kind=StopKind.ONCE)

    @classmethod
    def never(cls) -> "StopCondition":
        return cls(kind=StopKind.NEVER)

    @classmethod
    def files_found(cls, count: int) -> "StopCondition":
        return cls(kind=StopKind.FILES_FOUND, count=count)

    @classmethod
    def elapsed(cls, seconds: float) -> "StopCondition":
        return cls(kind=StopKind.ELAPSED, seconds=seconds)

    @classmethod
    def no_new_files_since(cls, seconds: float) -> "StopCondition":
        return cls(kind=StopKind.NO_NEW_FILES_SINCE, seconds=seconds)

    @classmethod
    def parse(cls, text: str) -> "StopCondition":
        """Parse the CLI form: ``once``, ``never``, ``files:N``, ``elapsed:S``, ``idle:S``.

        Raises:
            ValueError: If the text is not one of the supported forms.
        """
        name, _, arg = text.strip().lower().partition(":")
        if name in ("once", "never") and not arg:
            return cls.once() if name == "once" else cls.never()
        if not arg:
            raise ValueError(f"Stop condition '{text}' needs a value (e.g. files:3)")
        try:
            if name in ("files", "files-found"):
                return cls.files_found(int(arg))
            if name == "elapsed":
                return cls.elapsed(float(arg))
            if name in ("idle", "no-new-files-since"):
                return cls.no_new_files_since(float(arg))
        except ValueError as exc:
            raise ValueError(f"Invalid stop condition '{text}': {exc}") from exc
        raise ValueError(f"Unknown stop condition: {text}")

    def describe(self) -> str:
        if self.kind == StopKind.FILES_FOUND:
            return f"after {self.count} files"
        if self.kind == StopKind.ELAPSED:
            return f"after {self.seconds:g}s"
        if self.kind == StopKind.NO_NEW_FILES_SINCE:
            return f"after {self.seconds:g}s without new or modified files"
        if self.kind == StopKind.ONCE:
            return "after one confirmation scan"
        return "never"


# --- Per-cycle state ---


class FileSnapshot(BaseModel):
    """The watcher's record of one tracked path. Times are epoch seconds."""

    path: Path
    first_seen: float
    last_modified: float
    last_checked: float
    last_observation: Observation = Observation.NEW
    missed_scans: int = Field(default=0, ge=0)


class ScanResult(BaseModel):
    """Paths matching the pattern in one scan, with their modification times."""

    files: dict[Path, float] = Field(default_factory=dict)
    skipped: dict[Path, str] = Field(
        default_factory=dict,
        description="Matched paths whose modification time could not be read",
    )


# --- Outcomes ---


class ProcessingOutcome(BaseModel):
    """What happened when a mature path was dispatched."""

    path: Path
    status: OutcomeStatus
    failure: FailureKind | None = None
    reason: str = ""
    value: Any = Field(default=None, description="Return value of the handler, if it ran")
    deleted: bool = False
    first_seen: float
    dispatched_at: datetime

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED


class WatchResults(BaseModel):
    """Everything a watch invocation accumulated, returned when it stops."""

    outcomes: list[ProcessingOutcome] = Field(default_factory=list)
    not_processed: list[Path] = Field(
        default_factory=list,
        description="Paths still maturing when the loop stopped",
    )
    skipped: dict[Path, str] = Field(default_factory=dict)
    iterations: int = 0
    elapsed: float = 0.0

    @property
    def succeeded(self) -> list[ProcessingOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.SUCCEEDED]

    @property
    def failed(self) -> list[ProcessingOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.FAILED]

    @property
    def completed(self) -> dict[Path, Any]:
        """Successfully processed paths mapped to the handler's return value."""
        return {o.path: o.value for o in self.succeeded}

    @property
    def errored(self) -> dict[Path, str]:
        return {o.path: o.reason for o in self.failed}


class WatchEvent(BaseModel):
    """An audit record for a single dispatch outcome."""

    dispatched_at: datetime = Field(description="When the file was handed to the handler")
    source_path: str = Field(description="Path of the processed file")
    file_name: str
    status: OutcomeStatus
    failure: FailureKind | None = None
    reason: str = Field(default="", description="Error details if status is failed")
    deleted: bool = False
    result: str = Field(default="", description="repr() of the handler's return value")

    @classmethod
    def from_outcome(cls, outcome: ProcessingOutcome) -> "WatchEvent":
        return cls(
            dispatched_at=outcome.dispatched_at,
            source_path=str(outcome.path),
            file_name=outcome.path.name,
            status=outcome.status,
            failure=outcome.failure,
            reason=outcome.reason,
            deleted=outcome.deleted,
            result="" if outcome.value is None else repr(outcome.value),
        )
