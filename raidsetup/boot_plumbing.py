"""Append the new array to fstab and mdadm.conf, with timestamped backups."""
import os
import shutil
import time
from typing import Optional

from .errors import FstabEntryError


def backup_file(path: str, stamp: Optional[str] = None) -> Optional[str]:
    """Copy ``path`` to ``<path>.backup.<stamp>``; returns None if absent."""

    if not os.path.isfile(path):
        return None
    stamp = stamp or time.strftime("%Y%m%d_%H%M%S")
    dst = f"{path}.backup.{stamp}"
    shutil.copy2(path, dst)
    return dst


def _read(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read()
    except FileNotFoundError:
        return ""


def _append_line(path: str, line: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    current = _read(path)
    with open(path, "a", encoding="utf-8") as f:
        if current and not current.endswith("\n"):
            f.write("\n")
        f.write(line.rstrip("\n") + "\n")
        try:
            f.flush()
            os.fsync(f.fileno())
        except OSError:
            pass


def fstab_line(uuid: str, mount_point: str, fstype: str = "ext4") -> str:
    return f"UUID={uuid}  {mount_point}  {fstype}  defaults,nofail  0  0"


def append_fstab_entry(fstab: str, uuid: str, mount_point: str, fstype: str = "ext4") -> bool:
    """Append a boot-time mount for ``uuid`` unless fstab already names it."""

    if uuid in _read(fstab):
        return False
    _append_line(fstab, fstab_line(uuid, mount_point, fstype))
    return True


def append_registry_entry(conf: str, array_device: str, array_line: str) -> bool:
    """Append ``array_line`` to mdadm.conf unless ``array_device`` is listed."""

    if not array_line:
        raise ValueError("empty ARRAY definition")
    if array_device in _read(conf):
        return False
    _append_line(conf, array_line)
    return True


def assert_fstab_uuid(fstab: str, uuid: str) -> None:
    for line in _read(fstab).splitlines():
        stripped = line.strip()
        if stripped.startswith("#"):
            continue
        if stripped.startswith(f"UUID={uuid}"):
            return
    raise FstabEntryError(f"fstab has no entry for UUID={uuid}", fstab=fstab, uuid=uuid)
