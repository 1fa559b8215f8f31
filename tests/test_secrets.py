"""Tests for the settings file loaders."""

import subprocess
from unittest.mock import patch

import pytest

from maturewatch.secrets import load_encrypted_env, load_env_file


class TestLoadEnvFile:
    def test_reads_values(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("MATUREWATCH_PATTERN=incoming/*.csv\nMATUREWATCH_MATURATION_SECONDS=30\n")

        values = load_env_file(env)

        assert values["MATUREWATCH_PATTERN"] == "incoming/*.csv"
        assert values["MATUREWATCH_MATURATION_SECONDS"] == "30"

    def test_missing_file_is_empty(self, tmp_path):
        assert load_env_file(tmp_path / "nope.env") == {}


class TestLoadEncryptedEnv:
    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_encrypted_env(tmp_path / "settings.env.enc")

    def test_decrypts_with_sops(self, tmp_path):
        enc = tmp_path / "settings.env.enc"
        enc.write_text("ciphertext")
        decrypted = subprocess.CompletedProcess(
            args=["sops"], returncode=0, stdout="MATUREWATCH_UPLOAD_TOKEN=abc\n", stderr=""
        )

        with patch("maturewatch.secrets.subprocess.run", return_value=decrypted) as run:
            values = load_encrypted_env(enc)

        assert values == {"MATUREWATCH_UPLOAD_TOKEN": "abc"}
        assert run.call_args.args[0] == ["sops", "--decrypt", str(enc)]
