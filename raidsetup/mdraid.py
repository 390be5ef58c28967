"""Array creation, readiness polling and descriptor read-back."""
import re
import time
from typing import Callable

from .devices import is_block_device
from .errors import ArrayCreateError, ArrayReadyTimeout
from .executil import info, run, trace, udev_settle
from .model import ArrayDescriptor, ProvisioningRequest, RunConfig

CREATE_TIMEOUT = 300.0
# A member map such as ``[U_]`` means at least one member is still syncing.
_SYNC_RE = re.compile(r"\[[U_]*_[U_]*\]")


def create_array(cfg: RunConfig, request: ProvisioningRequest) -> None:
    cmd = [
        "mdadm",
        "--create",
        cfg.array_device,
        f"--level={request.level}",
        f"--raid-devices={request.disk_count}",
        *request.devices,
        "--verbose",
        "--run",
    ]
    info(f"Creating RAID {request.level} array on {cfg.array_device}...")
    res = run(cmd, check=False, timeout=CREATE_TIMEOUT)
    if res.rc != 0:
        raise ArrayCreateError(
            "Failed to create RAID array",
            rc=res.rc,
            err=(res.err or "").strip(),
        )
    udev_settle()


def detail(array_device: str) -> str:
    return run(["mdadm", "--detail", array_device], check=False).out or ""


def is_ready(array_device: str) -> bool:
    if not is_block_device(array_device):
        return False
    return run(["mdadm", "--detail", array_device], check=False).rc == 0


def wait_until_ready(
    array_device: str,
    attempts: int = 60,
    interval: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Poll until the array answers ``mdadm --detail``; returns attempts used."""

    info("Waiting for RAID array to become active...")
    for attempt in range(1, attempts + 1):
        if is_ready(array_device):
            trace("mdraid.ready", device=array_device, attempts=attempt)
            return attempt
        sleep(interval)
    raise ArrayReadyTimeout(
        f"RAID array did not become active within {int(attempts * interval)} seconds",
        device=array_device,
        attempts=attempts,
    )


def sync_in_progress(mdstat_path: str = "/proc/mdstat") -> bool:
    try:
        with open(mdstat_path, "r", encoding="utf-8") as fh:
            text = fh.read()
    except FileNotFoundError:
        return False
    return bool(_SYNC_RE.search(text)) or "resync" in text or "recovery" in text


def _export_field(export_text: str, key: str) -> str:
    for line in export_text.splitlines():
        name, _, value = line.partition("=")
        if name.strip() == key:
            return value.strip()
    return ""


def registry_line(array_device: str) -> str:
    """Return the ``ARRAY`` line mdadm would write for ``array_device``."""

    out = run(["mdadm", "--detail", "--brief", array_device], check=False).out or ""
    for line in out.splitlines():
        if line.startswith("ARRAY"):
            return line.strip()
    return ""


def describe(cfg: RunConfig, request: ProvisioningRequest) -> ArrayDescriptor:
    export = run(["mdadm", "--detail", "--export", cfg.array_device], check=False).out or ""
    descriptor = ArrayDescriptor(
        device=cfg.array_device,
        uuid=_export_field(export, "MD_UUID"),
        level=request.level,
        members=request.disk_count,
        registry_line=registry_line(cfg.array_device),
    )
    trace("mdraid.describe", device=descriptor.device, uuid=descriptor.uuid, line=descriptor.registry_line)
    return descriptor
