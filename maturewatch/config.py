"""Single source of truth for all configuration.

All modules import from here, never from os.environ directly.

Settings come from a .env file (``MATUREWATCH_ENV_FILE``, default ``.env`` in
the project root), or from a SOPS-encrypted file when
``MATUREWATCH_USE_SOPS=true``. Process environment variables win over the file.
"""

import os
from pathlib import Path

from maturewatch.secrets import load_encrypted_env, load_env_file

PROJECT_ROOT = Path(__file__).resolve().parent.parent

USE_SOPS = os.environ.get("MATUREWATCH_USE_SOPS", "false").lower() == "true"
ENV_FILE = Path(os.environ.get("MATUREWATCH_ENV_FILE", str(PROJECT_ROOT / ".env")))


def _load() -> dict[str, str | None]:
    """Load the settings file, then overlay MATUREWATCH_* environment variables."""
    if USE_SOPS:
        values = load_encrypted_env(ENV_FILE.with_name(ENV_FILE.name + ".enc"))
    else:
        values = load_env_file(ENV_FILE)
    values.update({k: v for k, v in os.environ.items() if k.startswith("MATUREWATCH_")})
    return values


def _get(key: str, default: str) -> str:
    value = _settings.get(key)
    return default if value is None or value == "" else value


def _flag(key: str, default: bool) -> bool:
    return _get(key, "true" if default else "false").lower() in ("1", "true", "yes", "on")


_settings = _load()

# --- Watch loop ---
WATCH_PATTERN: str = _get("MATUREWATCH_PATTERN", "")
MATURATION_SECONDS: float = float(_get("MATUREWATCH_MATURATION_SECONDS", "5"))
CHECK_INTERVAL_SECONDS: float = float(_get("MATUREWATCH_CHECK_INTERVAL_SECONDS", "1"))
DELETE_ON_COMPLETION: bool = _flag("MATUREWATCH_DELETE_ON_COMPLETION", False)
STOP_CONDITION: str = _get("MATUREWATCH_STOP_CONDITION", "never")
MAX_SCAN_FAILURES: int = int(_get("MATUREWATCH_MAX_SCAN_FAILURES", "10"))

# --- Actions ---
ACTION: str = _get("MATUREWATCH_ACTION", "log")
DEST_DIR: str = _get("MATUREWATCH_DEST_DIR", "")
COMMAND: str = _get("MATUREWATCH_COMMAND", "")
UPLOAD_URL: str = _get("MATUREWATCH_UPLOAD_URL", "")
UPLOAD_TOKEN: str = _get("MATUREWATCH_UPLOAD_TOKEN", "")

# --- Audit ---
AUDIT_LOG_PATH: str = _get(
    "MATUREWATCH_AUDIT_LOG_PATH", str(PROJECT_ROOT / "data" / "watch_audit.jsonl")
)
