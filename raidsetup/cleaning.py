"""Destructive device preparation and release of a stale array."""
import os
import time

from . import devices
from .errors import ArrayReleaseError
from .executil import info, run, trace, udev_settle
from .model import CleanReport, StepResult

WIPE_MB = 10


def _attempt(report: CleanReport, step: str, cmd: list[str]) -> StepResult:
    res = run(cmd, check=False)
    outcome = StepResult(step=step, device=report.device, cmd=list(cmd), rc=res.rc, error=(res.err or "").strip())
    report.steps.append(outcome)
    return outcome


def _unmount(report: CleanReport, source: str) -> StepResult:
    outcome = _attempt(report, "umount", ["umount", source])
    if not outcome.ok:
        outcome = _attempt(report, "umount_lazy", ["umount", "-l", source])
    return outcome


def clean_device(device: str) -> CleanReport:
    """Unmount, erase superblocks and signatures, and zero the head of ``device``.

    Every sub-step is best effort; failures are recorded on the returned
    report and left for the post-clean safety check to judge.
    """

    info(f"Cleaning device {device}...")
    report = CleanReport(device=device)
    for part in devices.mounted_partitions(device):
        info(f"Unmounting {part}...")
        _unmount(report, part)
    _attempt(report, "zero_superblock", ["mdadm", "--zero-superblock", "--force", device])
    _attempt(report, "wipefs", ["wipefs", "-a", device])
    _attempt(
        report,
        "zero_head",
        ["dd", "if=/dev/zero", f"of={device}", "bs=1M", f"count={WIPE_MB}", "conv=fsync"],
    )
    udev_settle()
    trace(
        "cleaning.device",
        device=device,
        steps=[{"step": s.step, "rc": s.rc} for s in report.steps],
        failures=len(report.failures()),
    )
    return report


def _array_active(array_device: str, mdstat: str = "/proc/mdstat") -> bool:
    name = os.path.basename(array_device)
    try:
        with open(mdstat, "r", encoding="utf-8") as fh:
            return any(line.split(":")[0].strip() == name for line in fh)
    except FileNotFoundError:
        return False


def release_existing_array(array_device: str, settle_delay: float = 2.0) -> bool:
    """Unmount and stop an array already occupying ``array_device``.

    Returns False when nothing was there. Unmount and stop failures are fatal;
    removing the leftover device node is best effort.
    """

    if not os.path.exists(array_device):
        return False
    info(f"Cleaning up existing {array_device}...")
    mounted = devices.mountpoints_of(array_device)
    if mounted:
        info(f"Unmounting {array_device} from {', '.join(mounted)}...")
        if run(["umount", array_device], check=False).rc != 0:
            if run(["umount", "-l", array_device], check=False).rc != 0:
                raise ArrayReleaseError(f"Failed to unmount {array_device}", device=array_device)
    if _array_active(array_device):
        info(f"Stopping RAID array {array_device}...")
        if run(["mdadm", "--stop", array_device], check=False).rc != 0:
            raise ArrayReleaseError("Failed to stop RAID array", device=array_device)
        time.sleep(settle_delay)
    if os.path.exists(array_device):
        info(f"Removing device node {array_device}...")
        run(["mdadm", "--remove", array_device], check=False)
    return True
