"""Alert mail for ``mdadm --monitor`` events.

mdadm runs its ``PROGRAM`` hook as ``<program> <event> <md-device> [component]``.
Each known event maps to a fixed subject, body and priority; anything mdadm
adds later falls through to a generic template so the operator still hears
about it.
"""

from __future__ import annotations

import datetime as _dt
import enum
import os
import socket
from dataclasses import dataclass
from typing import Optional

from .executil import run, trace


class Priority(enum.Enum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class RaidEvent(enum.Enum):
    FAIL = "Fail"
    FAIL_SPARE = "FailSpare"
    SPARE_ACTIVE = "SpareActive"
    NEW_ARRAY = "NewArray"
    DEGRADED_ARRAY = "DegradedArray"
    MOVE_SPARE = "MoveSpare"
    SPARES_MISSING = "SparesMissing"
    TEST_MESSAGE = "TestMessage"
    DEVICE_DISAPPEARED = "DeviceDisappeared"
    REBUILD_STARTED = "RebuildStarted"
    REBUILD_FINISHED = "RebuildFinished"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, name: str) -> "RaidEvent":
        for event in cls:
            if event.value == name and event is not cls.UNKNOWN:
                return event
        return cls.UNKNOWN


@dataclass(frozen=True)
class Template:
    subject: str
    body: str
    priority: Priority


TEMPLATES: dict[RaidEvent, Template] = {
    RaidEvent.FAIL: Template(
        "CRITICAL: Drive Failure Detected",
        "CRITICAL ALERT: A drive has failed in your RAID array!\n\n"
        "Device: {device}\n"
        "Failed Component: {component}\n\n"
        "IMMEDIATE ACTION REQUIRED:\n"
        "1. Replace the failed drive as soon as possible\n"
        "2. Monitor the array status closely\n"
        "3. Ensure you have recent backups",
        Priority.HIGH,
    ),
    RaidEvent.FAIL_SPARE: Template(
        "WARNING: Spare Drive Failed",
        "WARNING: A spare drive has failed.\n\n"
        "Device: {device}\n"
        "Failed Spare: {component}\n\n"
        "This reduces your redundancy. Consider replacing the spare drive.",
        Priority.NORMAL,
    ),
    RaidEvent.SPARE_ACTIVE: Template(
        "INFO: Spare Drive Activated",
        "INFORMATION: A spare drive has been activated and is rebuilding.\n\n"
        "Device: {device}\n"
        "Active Spare: {component}\n\n"
        "The array is rebuilding. Monitor progress with: watch cat /proc/mdstat",
        Priority.NORMAL,
    ),
    RaidEvent.NEW_ARRAY: Template(
        "INFO: New RAID Array Created",
        "INFORMATION: A new RAID array has been created.\n\nDevice: {device}",
        Priority.LOW,
    ),
    RaidEvent.DEGRADED_ARRAY: Template(
        "WARNING: Array Degraded",
        "WARNING: RAID array is running in degraded mode.\n\n"
        "Device: {device}\n\n"
        "This means the array is functioning but with reduced redundancy.\n"
        "Consider investigating and replacing any failed drives.",
        Priority.HIGH,
    ),
    RaidEvent.MOVE_SPARE: Template(
        "INFO: Spare Drive Moved",
        "INFORMATION: A spare drive has been moved between arrays.\n\n"
        "Device: {device}\n"
        "Spare: {component}",
        Priority.LOW,
    ),
    RaidEvent.SPARES_MISSING: Template(
        "WARNING: No Spare Drives Available",
        "WARNING: The RAID array has no spare drives available.\n\n"
        "Device: {device}\n\n"
        "Consider adding spare drives to improve fault tolerance.",
        Priority.NORMAL,
    ),
    RaidEvent.TEST_MESSAGE: Template(
        "TEST: RAID Monitoring Test",
        "This is a test message from your RAID monitoring system.\n\n"
        "Device: {device}\n\n"
        "If you receive this message, your notification system is working correctly.",
        Priority.LOW,
    ),
    RaidEvent.DEVICE_DISAPPEARED: Template(
        "CRITICAL: RAID Device Disappeared",
        "CRITICAL ALERT: A RAID device has disappeared from the system!\n\n"
        "Device: {device}\n\n"
        "This could indicate:\n"
        "- Drive failure\n"
        "- Connection issues\n"
        "- Power problems\n\n"
        "IMMEDIATE INVESTIGATION REQUIRED!",
        Priority.HIGH,
    ),
    RaidEvent.REBUILD_STARTED: Template(
        "INFO: RAID Rebuild Started",
        "INFORMATION: RAID rebuild has started.\n\n"
        "Device: {device}\n\n"
        "Monitor progress with: watch cat /proc/mdstat\n"
        "Rebuild may take several hours depending on drive size.",
        Priority.NORMAL,
    ),
    RaidEvent.REBUILD_FINISHED: Template(
        "SUCCESS: RAID Rebuild Complete",
        "SUCCESS: RAID rebuild has completed successfully!\n\n"
        "Device: {device}\n\n"
        "Your array is now fully redundant again.",
        Priority.NORMAL,
    ),
    RaidEvent.UNKNOWN: Template(
        "UNKNOWN: RAID Event",
        "An unknown RAID event has occurred.\n\n"
        "Event: {event}\n"
        "Device: {device}\n"
        "Component: {component}\n\n"
        "Please check the system logs for more information.",
        Priority.NORMAL,
    ),
}


@dataclass
class Alert:
    event: str
    device: str
    component: str = ""
    hostname: str = ""
    timestamp: str = ""


def device_detail(device: str) -> str:
    if not device or not os.path.exists(device):
        return ""
    return (run(["mdadm", "--detail", device], check=False).out or "").rstrip()


def read_mdstat(path: str = "/proc/mdstat") -> str:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read().rstrip()
    except OSError as exc:
        return f"<unavailable: {exc}>"


def render(alert: Alert, recipient: str, detail: str = "", mdstat: str = "") -> str:
    template = TEMPLATES[RaidEvent.parse(alert.event)]
    body = template.body.format(event=alert.event, device=alert.device, component=alert.component)
    lines = [
        f"Subject: [RAID Alert] {template.subject}",
        f"From: raid-monitor@{alert.hostname}",
        f"To: {recipient}",
        f"Priority: {template.priority.value}",
        "",
        body,
        "",
        "Detailed Information:",
        detail,
        "",
        "---",
        f"Server: {alert.hostname}",
        f"Time: {alert.timestamp}",
        f"Device: {alert.device}",
    ]
    if alert.component:
        lines.append(f"Component: {alert.component}")
    lines.extend(["", "Current RAID Status:", mdstat])
    return "\n".join(lines) + "\n"


def send(message: str, recipient: str, dry_run: bool = False) -> bool:
    res = run(["msmtp", recipient], check=False, dry_run=dry_run, input_text=message)
    trace("notify.send", recipient=recipient, rc=res.rc, err=(res.err or "").strip())
    return res.rc == 0


def record_event(path: str, alert: Alert) -> None:
    line = f"{alert.timestamp}: RAID Event - {alert.event} on {alert.device} ({alert.component})\n"
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "a", encoding="utf-8") as fh:
            fh.write(line)
    except OSError as exc:
        trace("notify.event_log_error", path=path, error=str(exc))


def make_alert(event: str, device: str, component: Optional[str] = None) -> Alert:
    return Alert(
        event=event,
        device=device,
        component=component or "",
        hostname=socket.gethostname(),
        timestamp=_dt.datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    )
