"""Built-in handlers used by the ``maturewatch watch`` command.

Each builder returns a callable ``Path -> value``. Raising marks the file as
failed; the return value is kept on the outcome and in the audit log.

  - log:     log the path, return its size in bytes
  - hash:    return the SHA-256 hex digest of the contents
  - move:    move the file into a destination directory
  - upload:  POST the file to an HTTP endpoint
  - command: run a shell command with ``{path}`` substituted
"""

import hashlib
import logging
import shlex
import shutil
import subprocess
from collections.abc import Callable
from enum import StrEnum
from pathlib import Path
from typing import Any

from maturewatch.integrations.upload import UploadClient

logger = logging.getLogger(__name__)

HASH_CHUNK_SIZE = 65536  # 64 KB chunks for hashing

Handler = Callable[[Path], Any]


class Action(StrEnum):
    """Built-in file handlers selectable from the CLI."""

    LOG = "log"
    HASH = "hash"
    MOVE = "move"
    UPLOAD = "upload"
    COMMAND = "command"


def compute_file_hash(file_path: str | Path) -> str:
    """Compute the SHA-256 hex digest of a file's contents."""
    sha256 = hashlib.sha256()
    with open(file_path, "rb") as f:
        while chunk := f.read(HASH_CHUNK_SIZE):
            sha256.update(chunk)
    return sha256.hexdigest()


def log_file(path: Path) -> int:
    size = path.stat().st_size
    logger.info("Matured: %s (%d bytes)", path, size)
    return size


def move_to(source: Path, dest_dir: Path) -> Path:
    """Move a file into ``dest_dir``.

    If a file with the same name already exists at the destination,
    appends a numeric suffix (e.g. ``data_1.csv``, ``data_2.csv``).

    Returns:
        The final destination path.
    """
    dest = dest_dir / source.name
    counter = 1
    while dest.exists():
        dest = dest_dir / f"{source.stem}_{counter}{source.suffix}"
        counter += 1

    shutil.move(str(source), str(dest))
    logger.info("Moved %s → %s", source.name, dest)
    return dest


def run_command(template: str, path: Path) -> int:
    """Run ``template`` with ``{path}`` replaced by the shell-quoted file path.

    Raises:
        subprocess.CalledProcessError: If the command exits non-zero.
    """
    command = template.replace("{path}", shlex.quote(str(path)))
    completed = subprocess.run(command, shell=True, capture_output=True, text=True, check=True)
    logger.debug("Command for %s: %s", path.name, completed.stdout.strip())
    return completed.returncode


def build_handler(
    action: Action,
    *,
    dest_dir: Path | None = None,
    command: str = "",
    upload_client: UploadClient | None = None,
) -> Handler:
    """Return the handler for ``action``.

    Args:
        action: Which built-in handler to use.
        dest_dir: Required for MOVE.
        command: Required for COMMAND.
        upload_client: Required for UPLOAD.

    Raises:
        ValueError: If the option the action needs is missing.
    """
    if action == Action.LOG:
        return log_file
    if action == Action.HASH:
        return compute_file_hash
    if action == Action.MOVE:
        if dest_dir is None:
            raise ValueError("dest_dir is required for the move action")
        return lambda path: move_to(path, dest_dir)
    if action == Action.UPLOAD:
        if upload_client is None:
            raise ValueError("upload_client is required for the upload action")
        return upload_client.upload
    if action == Action.COMMAND:
        if not command:
            raise ValueError("command is required for the command action")
        return lambda path: run_command(command, path)
    raise ValueError(f"Unknown action: {action}")
