"""Polling scanner: lists the files currently matching the watch pattern.

Read-only. Each call to ``scan()`` returns a fresh ``ScanResult``; nothing is
cached between cycles.
"""

import glob
import logging
import os
import stat
from pathlib import Path

from maturewatch.schemas.watch import ScanResult
from maturewatch.watcher.errors import ScanError

logger = logging.getLogger(__name__)

_GLOB_CHARS = ("*", "?", "[")


def pattern_root(pattern: str) -> Path:
    """Return the deepest directory of ``pattern`` that contains no glob characters.

    ``incoming/*.csv`` -> ``incoming``, ``logs/**/app.log`` -> ``logs``,
    ``*.txt`` -> ``.``.
    """
    parts = Path(pattern).parts[:-1]
    literal: list[str] = []
    for part in parts:
        if any(ch in part for ch in _GLOB_CHARS):
            break
        literal.append(part)
    return Path(*literal) if literal else Path(".")


class Scanner:
    """Lists regular files matching a glob pattern together with their mtimes.

    Usage::

        scanner = Scanner("incoming/*.csv")
        result = scanner.scan()
        for path, mtime in result.files.items():
            ...
    """

    def __init__(self, pattern: str) -> None:
        self._pattern = pattern
        self._root = pattern_root(pattern)

    @property
    def root(self) -> Path:
        return self._root

    def scan(self) -> ScanResult:
        """List matching files.

        Dotfiles match like any other name. Paths that disappear between
        listing and ``stat`` are left out. Paths whose ``stat`` fails for any other reason go to ``skipped``.

        Raises:
            ScanError: If the directory at the root of the pattern is missing
                or cannot be read.
        """
        self._check_root()

        result = ScanResult()
        for name in sorted(glob.glob(self._pattern, recursive=True, include_hidden=True)):
            path = Path(name)
            try:
                st = path.stat()
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.debug("Couldn't read modification time of %s: %s", path, exc)
                result.skipped[path] = str(exc)
                continue
            if not stat.S_ISREG(st.st_mode):
                continue
            result.files[path] = st.st_mtime

        logger.debug(
            "Scanned %s: %d files, %d skipped",
            self._pattern,
            len(result.files),
            len(result.skipped),
        )
        return result

    def _check_root(self) -> None:
        # glob.glob() silently returns nothing for unreadable directories
        if not self._root.is_dir():
            raise ScanError(self._root, "watch directory does not exist")
        try:
            with os.scandir(self._root):
                pass
        except OSError as exc:
            raise ScanError(self._root, f"watch directory is not readable: {exc}") from exc
