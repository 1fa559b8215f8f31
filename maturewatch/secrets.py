"""Loaders for the settings file: plain .env or SOPS-encrypted .env."""

import subprocess
from io import StringIO
from pathlib import Path

from dotenv import dotenv_values


def load_encrypted_env(encrypted_path: str | Path) -> dict[str, str | None]:
    """Decrypt a SOPS-encrypted .env file and return its key-value pairs.

    Useful when the upload token should not sit on disk in plain text.

    Raises:
        FileNotFoundError: If the encrypted file does not exist.
        subprocess.CalledProcessError: If SOPS decryption fails.
    """
    path = Path(encrypted_path)
    if not path.exists():
        raise FileNotFoundError(f"Encrypted settings file not found: {path}")

    result = subprocess.run(
        ["sops", "--decrypt", str(path)],
        capture_output=True,
        text=True,
        check=True,
    )
    return dict(dotenv_values(stream=StringIO(result.stdout)))


def load_env_file(dotenv_path: str | Path) -> dict[str, str | None]:
    """Load a plain .env file. A missing file yields no settings."""
    path = Path(dotenv_path)
    if not path.exists():
        return {}
    return dict(dotenv_values(path))
