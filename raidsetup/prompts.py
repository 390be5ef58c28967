"""Interactive parameter collection and the destructive-action gate."""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from .devices import is_block_device
from .errors import InputClosedError
from .executil import trace
from .model import LEVEL_MIN_DISKS, DiskInfo, DeviceSafetyReport

CONFIRM_LITERAL = "YES"

Ask = Callable[[str], str]
Say = Callable[[str], None]


def parse_level(text: str) -> Optional[int]:
    value = text.strip()
    if not (value.isascii() and value.isdecimal()):
        return None
    level = int(value)
    return level if level in LEVEL_MIN_DISKS else None


def min_disks(level: int) -> int:
    return LEVEL_MIN_DISKS[level]


def parse_disk_count(text: str, minimum: int) -> Optional[int]:
    value = text.strip()
    if not (value.isascii() and value.isdecimal()):
        return None
    count = int(value)
    return count if count >= minimum else None


def _read(ask: Ask, prompt: str) -> str:
    try:
        return ask(prompt)
    except EOFError as exc:
        raise InputClosedError("Input closed before provisioning parameters were complete") from exc


def ask_level(ask: Ask = input, say: Say = print) -> int:
    levels = ", ".join(str(level) for level in LEVEL_MIN_DISKS)
    while True:
        level = parse_level(_read(ask, f"Enter RAID level ({levels}): "))
        if level is not None:
            return level
        say("Invalid RAID level. Please enter 0, 1, 5, 6, or 10.")


def ask_disk_count(minimum: int, ask: Ask = input, say: Say = print) -> int:
    while True:
        count = parse_disk_count(_read(ask, f"How many disks do you want to use? (Minimum {minimum}): "), minimum)
        if count is not None:
            return count
        say(f"Please enter a number >= {minimum}")


def render_inventory(disks: Iterable[DiskInfo], reports: dict[str, DeviceSafetyReport]) -> list[str]:
    lines = []
    for disk in disks:
        report = reports.get(disk.path)
        tags = report.warnings() if report else []
        status = "!!" if tags else "ok"
        suffix = " " + " ".join(f"[{tag}]" for tag in tags) if tags else ""
        lines.append(f"{status} {disk.path} ({disk.size}){suffix}")
    return lines


def collect_devices(
    count: int,
    ask: Ask = input,
    say: Say = print,
    exists: Optional[Callable[[str], bool]] = None,
) -> list[str]:
    """Prompt for ``count`` distinct block devices, one slot at a time."""

    exists = exists or is_block_device
    selected: list[str] = []
    for slot in range(1, count + 1):
        while True:
            disk = _read(ask, f"Disk {slot}: ").strip()
            if not exists(disk):
                say(f"{disk} is not a valid block device")
                continue
            if disk in selected:
                say(f"{disk} already selected")
                continue
            selected.append(disk)
            trace("prompts.select", slot=slot, device=disk)
            break
    return selected


def render_selection(level: int, selected: list[str], sizes: dict[str, str]) -> list[str]:
    lines = [f"You selected the following disks for RAID {level}:"]
    for idx, disk in enumerate(selected, start=1):
        lines.append(f"  {idx}. {disk} ({sizes.get(disk, 'unknown')})")
    return lines


def confirm_destruction(ask: Ask = input, say: Say = print) -> bool:
    say("WARNING: This will COMPLETELY ERASE all data on the selected disks!")
    say("This action is IRREVERSIBLE!")
    answer = _read(ask, f"Type '{CONFIRM_LITERAL}' to continue (case sensitive): ")
    return answer == CONFIRM_LITERAL
