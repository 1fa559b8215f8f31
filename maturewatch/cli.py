"""CLI entry point for maturewatch.

Commands:
    maturewatch watch    - poll a pattern and process files once they mature
    maturewatch history  - show processed files from the audit log
"""

import logging
import sys

import click

from maturewatch.config import (
    ACTION,
    AUDIT_LOG_PATH,
    CHECK_INTERVAL_SECONDS,
    COMMAND,
    DELETE_ON_COMPLETION,
    DEST_DIR,
    MATURATION_SECONDS,
    MAX_SCAN_FAILURES,
    STOP_CONDITION,
    UPLOAD_TOKEN,
    UPLOAD_URL,
    WATCH_PATTERN,
)
from maturewatch.schemas.watch import StopCondition


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """maturewatch: process files once they have stopped changing."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# ------------------------------------------------------------------
# maturewatch watch
# ------------------------------------------------------------------


def _parse_stop(ctx: click.Context, param: click.Parameter, value: str) -> StopCondition:
    try:
        return StopCondition.parse(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


def _validate_watch_config(
    pattern: str, action: str, dest: str, command: str, url: str, delete: bool
) -> None:
    """Fail loudly if the watch options don't fit together."""
    from pathlib import Path

    if not pattern:
        click.echo("Error: PATTERN is required (or set MATUREWATCH_PATTERN).", err=True)
        sys.exit(1)
    if action == "move":
        if not dest:
            click.echo(
                "Error: --dest is required for the move action (or set MATUREWATCH_DEST_DIR).",
                err=True,
            )
            sys.exit(1)
        if not Path(dest).is_dir():
            click.echo(f"Error: Destination directory does not exist: {dest}", err=True)
            sys.exit(1)
        if delete:
            click.echo("Error: --delete cannot be combined with the move action.", err=True)
            sys.exit(1)
    elif action == "upload" and not url:
        click.echo(
            "Error: --url is required for the upload action (or set MATUREWATCH_UPLOAD_URL).",
            err=True,
        )
        sys.exit(1)
    elif action == "command" and not command:
        click.echo(
            "Error: --command is required for the command action (or set MATUREWATCH_COMMAND).",
            err=True,
        )
        sys.exit(1)


@cli.command()
@click.argument("pattern", default=WATCH_PATTERN, required=False)
@click.option(
    "--maturation",
    type=click.FloatRange(min=0),
    default=MATURATION_SECONDS,
    show_default=True,
    help="Seconds a file must stay unmodified before it is processed.",
)
@click.option(
    "--interval",
    type=click.FloatRange(min=0, min_open=True),
    default=CHECK_INTERVAL_SECONDS,
    show_default=True,
    help="Minimum seconds between scans.",
)
@click.option(
    "--delete/--keep",
    default=DELETE_ON_COMPLETION,
    show_default=True,
    help="Delete each file after it was processed successfully.",
)
@click.option(
    "--stop",
    "stop_condition",
    default=STOP_CONDITION,
    show_default=True,
    callback=_parse_stop,
    help="When to stop: once, never, files:N, elapsed:SECONDS, idle:SECONDS.",
)
@click.option(
    "--action",
    type=click.Choice(["log", "hash", "move", "upload", "command"], case_sensitive=False),
    default=ACTION,
    show_default=True,
    help="What to do with each mature file.",
)
@click.option("--dest", default=DEST_DIR, help="Destination directory (move action).")
@click.option("--command", default=COMMAND, help="Shell command with {path} placeholder (command action).")
@click.option("--url", default=UPLOAD_URL, help="Endpoint to POST files to (upload action).")
@click.option(
    "--audit-log",
    default=AUDIT_LOG_PATH,
    show_default=True,
    help="JSONL file recording every outcome (empty to disable).",
)
@click.option(
    "--max-scan-failures",
    type=click.IntRange(min=0),
    default=MAX_SCAN_FAILURES,
    show_default=True,
    help="Give up after this many consecutive failed scans (0 = never).",
)
def watch(
    pattern: str,
    maturation: float,
    interval: float,
    delete: bool,
    stop_condition: StopCondition,
    action: str,
    dest: str,
    command: str,
    url: str,
    audit_log: str,
    max_scan_failures: int,
) -> None:
    """Watch PATTERN (e.g. 'incoming/*.csv') and process files once they mature."""
    from pathlib import Path

    from maturewatch.integrations.upload import UploadClient
    from maturewatch.watcher.actions import Action, build_handler
    from maturewatch.watcher.audit import OutcomeAuditLog
    from maturewatch.watcher.errors import ScanError
    from maturewatch.watcher.loop import Watcher

    action = action.lower()
    _validate_watch_config(pattern, action, dest, command, url, delete)

    upload_client = UploadClient(url, UPLOAD_TOKEN) if action == "upload" else None
    try:
        handler = build_handler(
            Action(action),
            dest_dir=Path(dest) if dest else None,
            command=command,
            upload_client=upload_client,
        )
        watcher = (
            Watcher(pattern, handler)
            .maturation(maturation)
            .check_interval(interval)
            .delete_on_completion(delete)
            .max_scan_failures(max_scan_failures)
        )
        if audit_log:
            watcher.on_outcome(OutcomeAuditLog(audit_log).log_outcome)

        click.echo(f"Watching {pattern} (Ctrl+C to stop)…")
        click.echo(f"  Action: {action}")
        click.echo(f"  Mature after: {maturation:g}s, stop: {stop_condition.describe()}")
        try:
            results = watcher.watch(stop_condition)
        except ScanError as exc:
            click.echo(f"Error: Giving up after repeated scan failures: {exc}", err=True)
            sys.exit(1)
    finally:
        if upload_client:
            upload_client.close()

    click.echo(
        f"Done. Files: {len(results.outcomes)}, "
        f"Succeeded: {len(results.succeeded)}, Failed: {len(results.failed)}, "
        f"Not processed: {len(results.not_processed)}, Skipped: {len(results.skipped)}"
    )
    for outcome in results.failed:
        click.echo(f"  FAILED {outcome.path} ({outcome.failure}): {outcome.reason}")


# ------------------------------------------------------------------
# maturewatch history
# ------------------------------------------------------------------


@cli.command()
@click.option("--hours", default=24, show_default=True, help="Lookback period in hours (0 = all).")
@click.option(
    "--status",
    type=click.Choice(["succeeded", "failed"], case_sensitive=False),
    default=None,
    help="Only show outcomes with this status.",
)
@click.option(
    "--failure",
    type=click.Choice(["handler", "deletion", "vanished"], case_sensitive=False),
    default=None,
    help="Only show failures of this kind.",
)
@click.option("--limit", "-n", default=None, type=int, help="Show at most this many (newest).")
@click.option("--audit-log", default=AUDIT_LOG_PATH, show_default=True, help="Audit log to read.")
def history(
    hours: int, status: str | None, failure: str | None, limit: int | None, audit_log: str
) -> None:
    """Show files processed recently, oldest first."""
    from datetime import UTC, datetime, timedelta

    from maturewatch.schemas.watch import FailureKind, OutcomeStatus
    from maturewatch.watcher.audit import OutcomeAuditLog

    since = datetime.now(UTC) - timedelta(hours=hours) if hours else None
    entries = OutcomeAuditLog(audit_log).read_entries(
        since=since,
        status=OutcomeStatus(status.lower()) if status else None,
        failure=FailureKind(failure.lower()) if failure else None,
        limit=limit,
    )
    if not entries:
        click.echo("No processed files.")
        return

    for entry in entries:
        line = f"{entry.dispatched_at:%Y-%m-%d %H:%M:%S} {entry.status.value:<9} {entry.source_path}"
        if entry.failure:
            line += f"  [{entry.failure.value}] {entry.reason}"
        elif entry.deleted:
            line += "  (deleted)"
        click.echo(line)

    failed = sum(1 for e in entries if e.status == OutcomeStatus.FAILED)
    click.echo(f"\nTotal: {len(entries)}, Failed: {failed}")
