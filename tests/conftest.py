from types import SimpleNamespace

import pytest

from raidsetup import executil


@pytest.fixture(autouse=True)
def isolated_log(tmp_path, monkeypatch):
    """Keep every test's JSONL log under its own tmp dir."""

    log_dir = tmp_path / "logs"
    monkeypatch.setattr(executil, "LOG_DIRS", [str(log_dir)])
    monkeypatch.setattr(executil, "LOG_PATH", None)
    monkeypatch.setattr(executil, "LOG_NAME", "raid_setup")
    return log_dir


class CommandRecorder:
    """Stand-in for ``executil.run`` that records argv and replays canned results."""

    def __init__(self):
        self.calls: list[list[str]] = []
        self.rules: list[tuple[tuple[str, ...], SimpleNamespace]] = []

    def on(self, *prefix: str, rc: int = 0, out: str = "", err: str = ""):
        self.rules.append((prefix, SimpleNamespace(rc=rc, out=out, err=err, duration=0.0)))
        return self

    def __call__(self, cmd, check=True, **_kwargs):
        argv = list(cmd)
        self.calls.append(argv)
        for prefix, result in reversed(self.rules):
            if tuple(argv[: len(prefix)]) == prefix:
                return result
        return SimpleNamespace(rc=0, out="", err="", duration=0.0)

    def commands(self, name: str) -> list[list[str]]:
        return [argv for argv in self.calls if argv and argv[0] == name]


@pytest.fixture
def recorder():
    return CommandRecorder()
