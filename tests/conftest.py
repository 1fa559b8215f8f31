"""Shared fixtures for maturewatch tests."""

import os

import pytest

START = 1_700_000_000.0


class FakeClock:
    """Deterministic replacement for time.time/time.sleep.

    ``sleep`` advances the clock and then runs any hooks, which lets a test
    simulate a producer writing to a file between two scans.
    """

    def __init__(self, start: float = START) -> None:
        self.now = start
        self.sleeps: list[float] = []
        self.on_sleep: list = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        for hook in self.on_sleep:
            hook(self.now)


@pytest.fixture(autouse=True)
def _no_sops(monkeypatch):
    """Ensure tests never try to invoke SOPS."""
    monkeypatch.setenv("MATUREWATCH_USE_SOPS", "false")


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def make_file(tmp_path):
    """Create a file under tmp_path with an explicit modification time."""

    def _make(name: str, mtime: float, content: bytes = b"data"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        os.utime(path, (mtime, mtime))
        return path

    return _make
