from __future__ import annotations

import os
from pathlib import Path

_DEFAULT_LOG_DIR = "/var/log/raidsetup"
_DEFAULT_MDADM_CONF = "/etc/mdadm/mdadm.conf"
_DEFAULT_FSTAB = "/etc/fstab"
_DEFAULT_ARRAY_DEVICE = "/dev/md0"
_DEFAULT_MOUNT_ROOT = "/mnt"
_DEFAULT_EVENT_LOG = "/var/log/mdadm-custom.log"


def _expand(path: str) -> str:
    candidate = Path(path).expanduser()
    try:
        return str(candidate.resolve())
    except FileNotFoundError:
        return str(candidate)


def _env_path(name: str, default: str) -> str:
    override = os.environ.get(name)
    if override:
        return _expand(override)
    return default


def log_dir() -> str:
    """Return the directory that receives per-run logs.

    Overridable through ``RAIDSETUP_LOG_DIR``; the default matches where the
    operators already look for provisioning logs.
    """

    return _env_path("RAIDSETUP_LOG_DIR", _DEFAULT_LOG_DIR)


def mdadm_conf_path() -> str:
    return _env_path("RAIDSETUP_MDADM_CONF", _DEFAULT_MDADM_CONF)


def fstab_path() -> str:
    return _env_path("RAIDSETUP_FSTAB", _DEFAULT_FSTAB)


def array_device() -> str:
    return os.environ.get("RAIDSETUP_ARRAY_DEVICE") or _DEFAULT_ARRAY_DEVICE


def mount_root() -> str:
    return _env_path("RAIDSETUP_MOUNT_ROOT", _DEFAULT_MOUNT_ROOT)


def event_log_path() -> str:
    return _env_path("RAIDSETUP_EVENT_LOG", _DEFAULT_EVENT_LOG)
