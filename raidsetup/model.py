from dataclasses import dataclass, field
from typing import Optional

# Minimum member count for each supported redundancy level.
LEVEL_MIN_DISKS = {0: 2, 1: 2, 5: 3, 6: 4, 10: 4}


@dataclass
class RunConfig:
    array_device: str
    mdadm_conf: str
    fstab: str
    mount_root: str
    log_path: Optional[str] = None
    fstype: str = "ext4"
    ready_attempts: int = 60
    ready_interval: float = 1.0


@dataclass
class ProvisioningRequest:
    level: int
    disk_count: int
    devices: list[str] = field(default_factory=list)

    def __post_init__(self):
        if self.level not in LEVEL_MIN_DISKS:
            raise ValueError(f"unsupported RAID level: {self.level}")
        if self.disk_count < LEVEL_MIN_DISKS[self.level]:
            raise ValueError(f"RAID {self.level} needs at least {LEVEL_MIN_DISKS[self.level]} disks")
        if len(self.devices) != self.disk_count:
            raise ValueError(f"expected {self.disk_count} devices, got {len(self.devices)}")
        if len(set(self.devices)) != len(self.devices):
            raise ValueError("devices must be distinct")


@dataclass
class DiskInfo:
    path: str
    size: str = "unknown"


@dataclass
class DeviceSafetyReport:
    device: str
    is_mounted: bool = False
    has_filesystem_signature: bool = False
    has_raid_signature: bool = False

    @property
    def safe(self) -> bool:
        return not (self.is_mounted or self.has_filesystem_signature or self.has_raid_signature)

    def warnings(self) -> list[str]:
        tags = []
        if self.is_mounted:
            tags.append("MOUNTED")
        if self.has_filesystem_signature:
            tags.append("HAS_FS")
        if self.has_raid_signature:
            tags.append("RAID_SIG")
        return tags


@dataclass
class StepResult:
    step: str
    device: str
    cmd: list[str]
    rc: int
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.rc == 0


@dataclass
class CleanReport:
    device: str
    steps: list[StepResult] = field(default_factory=list)

    def failures(self) -> list[StepResult]:
        return [step for step in self.steps if not step.ok]


@dataclass(frozen=True)
class ArrayDescriptor:
    device: str
    uuid: str
    level: int
    members: int
    registry_line: str = ""
