"""Filesystem creation and mounting for the new array."""
import os

from .devices import uuid_of
from .errors import FormatError, MountError, UuidMissingError
from .executil import info, run, trace

MKFS_TIMEOUT = 600.0
MOUNT_MODE = 0o755


def label_for(level: int) -> str:
    return f"RAID{level}"


def mount_point_for(level: int, mount_root: str = "/mnt") -> str:
    return os.path.join(mount_root, f"raid{level}")


def format_array(device: str, level: int, fstype: str = "ext4") -> None:
    info(f"Formatting {device} with {fstype}...")
    res = run([f"mkfs.{fstype}", "-F", "-L", label_for(level), device], check=False, timeout=MKFS_TIMEOUT)
    if res.rc != 0:
        raise FormatError("Failed to format RAID device", device=device, err=(res.err or "").strip())


def mount_array(device: str, mount_point: str, mode: int = MOUNT_MODE) -> str:
    info(f"Creating mount point: {mount_point}")
    os.makedirs(mount_point, exist_ok=True)
    info(f"Mounting {device} to {mount_point}...")
    res = run(["mount", device, mount_point], check=False)
    if res.rc != 0:
        raise MountError("Failed to mount RAID device", device=device, mount_point=mount_point)
    os.chmod(mount_point, mode)
    trace("mounts.mounted", device=device, mount_point=mount_point, mode=oct(mode))
    return mount_point


def filesystem_uuid(device: str) -> str:
    uuid = uuid_of(device)
    if not uuid:
        raise UuidMissingError("Could not get UUID for RAID device", device=device)
    return uuid
