"""Pre-flight guards and the device safety gate."""

from __future__ import annotations

import os
import shutil
from typing import Iterable

from . import devices
from .errors import MissingToolError, PrivilegeError, UnsafeDeviceError
from .executil import trace, warn
from .model import DeviceSafetyReport

REQUIRED_TOOLS = ("mdadm", "lsblk", "blkid", "mkfs.ext4", "wipefs")


def require_root() -> None:
    if os.geteuid() != 0:
        raise PrivilegeError("This script must be run as root")


def require_tools(tools: Iterable[str] = REQUIRED_TOOLS) -> dict[str, str]:
    """Resolve every required binary on ``PATH``; the first gap is fatal."""

    resolved: dict[str, str] = {}
    for tool in tools:
        path = shutil.which(tool)
        if not path:
            raise MissingToolError(
                f"Required command '{tool}' not found. Please install it first.",
                tool=tool,
            )
        resolved[tool] = path
    trace("safety.tools", tools=resolved)
    return resolved


def inspect(device: str) -> DeviceSafetyReport:
    report = DeviceSafetyReport(
        device=device,
        is_mounted=devices.is_mounted(device),
        has_filesystem_signature=devices.has_filesystem_signature(device),
        has_raid_signature=devices.has_raid_signature(device),
    )
    trace(
        "safety.inspect",
        device=device,
        mounted=report.is_mounted,
        fs=report.has_filesystem_signature,
        raid=report.has_raid_signature,
    )
    return report


def verify_clean(selected: Iterable[str]) -> list[DeviceSafetyReport]:
    """Re-inspect cleaned devices; any remaining signature or mount is fatal."""

    reports = []
    for device in selected:
        report = inspect(device)
        if not report.safe:
            for tag in report.warnings():
                warn(f"{device} still reports {tag}")
            raise UnsafeDeviceError(
                f"Device {device} is not safe to use after cleaning",
                device=device,
                flags=report.warnings(),
            )
        reports.append(report)
    return reports
