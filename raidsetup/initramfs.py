"""Refresh the boot image so the new array assembles at boot."""

from __future__ import annotations

import enum
import shutil
from typing import Any, Callable, Dict, Optional

from .errors import BootImageRefreshError
from .executil import info, run, warn

INITRAMFS_TIMEOUT = 360


class RefreshTool(enum.Enum):
    UPDATE_INITRAMFS = "update-initramfs"
    DRACUT = "dracut"
    MKINITCPIO = "mkinitcpio"


# Probe order matters: the first tool found on PATH wins.
REFRESH_COMMANDS: Dict[RefreshTool, list[str]] = {
    RefreshTool.UPDATE_INITRAMFS: ["update-initramfs", "-u"],
    RefreshTool.DRACUT: ["dracut", "-f"],
    RefreshTool.MKINITCPIO: ["mkinitcpio", "-p", "linux"],
}


def detect_tool(which: Callable[[str], Optional[str]] = shutil.which) -> Optional[RefreshTool]:
    for tool in REFRESH_COMMANDS:
        if which(tool.value):
            return tool
    return None


def refresh(which: Callable[[str], Optional[str]] = shutil.which) -> Dict[str, Any]:
    tool = detect_tool(which)
    if tool is None:
        warn("Could not find initramfs update command. Manual update may be required.")
        return {"tool": None, "rc": None}
    cmd = REFRESH_COMMANDS[tool]
    info(f"Updating initramfs with {tool.value}...")
    res = run(cmd, check=False, timeout=INITRAMFS_TIMEOUT)
    telemetry = {"tool": tool.value, "cmd": cmd, "rc": res.rc, "duration_sec": getattr(res, "duration", None)}
    if res.rc != 0:
        raise BootImageRefreshError(
            f"{tool.value} failed with exit code {res.rc}",
            **telemetry,
        )
    return telemetry
