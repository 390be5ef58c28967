"""Block device enumeration and signature probes."""
from __future__ import annotations

import json
import os
import stat

from .executil import run, trace
from .model import DiskInfo


def is_block_device(path: str) -> bool:
    try:
        return stat.S_ISBLK(os.stat(path).st_mode)
    except OSError:
        return False


def list_disks() -> list[DiskInfo]:
    """Return whole disks reported by ``lsblk`` that exist as block devices."""

    result = run(["lsblk", "-J", "-d", "-p", "-o", "NAME,SIZE,TYPE"], check=True)
    try:
        payload = json.loads(result.out or "{}")
    except json.JSONDecodeError as exc:
        raise SystemExit(f"failed to parse lsblk output: {exc}") from exc

    disks: list[DiskInfo] = []
    for entry in payload.get("blockdevices") or []:
        if entry.get("type") != "disk":
            continue
        path = entry.get("name") or ""
        if path and not path.startswith("/"):
            path = f"/dev/{path}"
        if not is_block_device(path):
            continue
        disks.append(DiskInfo(path=path, size=str(entry.get("size") or "unknown")))
    trace("devices.list_disks", disks=[d.path for d in disks])
    return disks


def mount_sources(mounts_file: str = "/proc/self/mounts") -> list[tuple[str, str]]:
    """Return ``(source, mountpoint)`` pairs from the kernel mount table."""

    entries: list[tuple[str, str]] = []
    try:
        with open(mounts_file, "r", encoding="utf-8") as fh:
            for line in fh:
                parts = line.split()
                if len(parts) < 2:
                    continue
                entries.append((parts[0], parts[1].replace("\\040", " ")))
    except FileNotFoundError:
        return []
    return entries


def is_mounted(device: str) -> bool:
    return any(src.startswith(device) for src, _ in mount_sources())


def mounted_partitions(device: str) -> list[str]:
    """Mounted sources that belong to ``device`` but are not the disk itself."""

    seen: list[str] = []
    for src, _ in mount_sources():
        if src != device and src.startswith(device) and src not in seen:
            seen.append(src)
    return seen


def mountpoints_of(device: str) -> list[str]:
    return [mnt for src, mnt in mount_sources() if src == device]


def has_filesystem_signature(device: str) -> bool:
    return run(["blkid", device], check=False).rc == 0


def has_raid_signature(device: str) -> bool:
    return run(["mdadm", "--examine", device], check=False).rc == 0


def uuid_of(path: str) -> str:
    r = run(["blkid", "-s", "UUID", "-o", "value", path], check=False)
    return (r.out or "").strip()
