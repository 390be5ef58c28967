"""Subprocess wrapper, per-run JSONL log and console helpers."""

from __future__ import annotations

import datetime as _dt
import json
import os
import shlex
import subprocess
import time
from typing import Sequence

from .paths import log_dir


LOG_DIRS: list[str] | None = None
LOG_PATH: str | None = None
LOG_NAME = "raid_setup"

GREEN = "\033[0;32m"
YELLOW = "\033[0;33m"
RED = "\033[0;31m"
CLR = "\033[0m"


def _log_dirs() -> list[str]:
    if LOG_DIRS:
        return list(LOG_DIRS)
    return [
        log_dir(),
        "/var/log/raidsetup",
        "/tmp/raidsetup-logs",
    ]


def _ensure_logger() -> str | None:
    global LOG_PATH
    if LOG_PATH:
        return LOG_PATH
    stamp = time.strftime("%Y%m%d_%H%M%S")
    for d in _log_dirs():
        d_expanded = os.path.expanduser(d)
        try:
            os.makedirs(d_expanded, exist_ok=True)
            LOG_PATH = os.path.join(d_expanded, f"{LOG_NAME}_{stamp}.jsonl")
            return LOG_PATH
        except OSError:
            continue
    LOG_PATH = None
    return None


def resolve_log_path() -> str | None:
    """Return the active per-run log path, creating directories when possible."""

    return _ensure_logger()


def start_run_log(directory: str | None = None, name: str = "raid_setup") -> str | None:
    """Begin a fresh timestamped log file, optionally in ``directory``."""

    global LOG_DIRS, LOG_NAME, LOG_PATH
    if directory:
        LOG_DIRS = [directory]
    LOG_NAME = name
    LOG_PATH = None
    return _ensure_logger()


class Result:
    def __init__(self, rc: int, out: str, err: str, duration: float):
        self.rc, self.out, self.err, self.duration = rc, out, err, duration


LEVELS = {"TRACE": 10, "INFO": 20, "WARN": 30, "ERROR": 40, "NONE": 100}
LOG_LEVEL = os.environ.get("RAIDSETUP_LOG_LEVEL", "TRACE").upper()


def _write_jsonl(obj: dict):
    path = _ensure_logger()
    try:
        if path:
            with open(path, "a", encoding="utf-8") as f:
                f.write(json.dumps(obj) + "\n")
    except OSError:
        pass


def log(level: str, event: str, **fields):
    lvl = LEVELS.get(level.upper(), 100)
    cur = LEVELS.get(LOG_LEVEL, 100)
    if lvl < cur:
        return
    ts = _dt.datetime.now(_dt.timezone.utc).isoformat()
    rec = {"ts": ts, "level": level.upper(), "event": event}
    rec.update(fields)
    _write_jsonl(rec)


def trace(event: str, **fields):
    log("TRACE", event, **fields)


def _emit(level: str, tag: str, msg: str):
    print(f"{tag} {msg}", flush=True)
    log(level, "console", msg=msg)


def info(msg: str):
    _emit("INFO", "[INFO]", msg)


def ok(msg: str):
    _emit("INFO", f"{GREEN}[OK]{CLR}", msg)


def warn(msg: str):
    _emit("WARN", f"{YELLOW}[WARN]{CLR}", msg)


def fail(msg: str):
    _emit("ERROR", f"{RED}[FAIL]{CLR}", msg)


def run(
    cmd: Sequence[str],
    check: bool = True,
    dry_run: bool = False,
    timeout: float = 60.0,
    input_text: str | None = None,
) -> Result:
    trace("exec.start", cmd=list(cmd))
    started = time.time()
    if dry_run:
        text = "DRY-RUN: " + " ".join(shlex.quote(c) for c in cmd)
        return Result(0, text, "", 0.0)
    env2 = os.environ.copy()
    env2.setdefault("RAIDSETUP_LOG_LEVEL", LOG_LEVEL)
    try:
        proc = subprocess.run(
            list(cmd),
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env2,
            input=input_text,
        )
    except FileNotFoundError as exc:
        # rc 127 mirrors the shell for a missing binary.
        dur = time.time() - started
        trace("exec.missing", cmd=list(cmd), err=str(exc), dur=dur)
        if check:
            raise
        return Result(127, "", str(exc), dur)
    except subprocess.TimeoutExpired as exc:
        udev_settle()
        dur = time.time() - started
        trace("exec.timeout", cmd=list(cmd), timeout=timeout, dur=dur)
        if check:
            raise
        return Result(124, "", f"timed out after {exc.timeout}s", dur)
    dur = time.time() - started
    trace(
        "exec.done",
        cmd=list(cmd),
        rc=proc.returncode,
        dur=dur,
        out=proc.stdout,
        err=proc.stderr,
    )
    if check and proc.returncode != 0:
        raise subprocess.CalledProcessError(proc.returncode, cmd, proc.stdout, proc.stderr)
    return Result(proc.returncode, proc.stdout, proc.stderr, dur)


def udev_settle():
    try:
        subprocess.run(["udevadm", "settle"], check=False)
    except OSError:
        pass


def append_jsonl(path: str, obj: dict):
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(obj, ensure_ascii=False) + "\n")
    except OSError:
        pass
