"""CLI entrypoints for the mdadm array provisioner and its event notifier."""

from __future__ import annotations

import argparse
import json
import os
import sys
import time
from typing import Any, Callable, Dict, Optional

from . import paths
from .boot_plumbing import append_fstab_entry, append_registry_entry, assert_fstab_uuid, backup_file
from .cleaning import clean_device, release_existing_array
from .devices import list_disks
from .errors import OperatorCancelled, ProvisionError
from .executil import append_jsonl, fail, info, ok, resolve_log_path, run, start_run_log, trace, warn
from .initramfs import refresh as refresh_boot_image
from .mdraid import create_array, describe, detail, sync_in_progress, wait_until_ready
from .model import ProvisioningRequest, RunConfig
from .mounts import filesystem_uuid, format_array, mount_array, mount_point_for
from .notify import device_detail, make_alert, read_mdstat, record_event, render, send
from .prompts import (
    ask_disk_count,
    ask_level,
    collect_devices,
    confirm_destruction,
    min_disks,
    render_inventory,
    render_selection,
)
from .safety import inspect, require_root, require_tools, verify_clean

RESULT_CODES: Dict[str, int] = {
    "SETUP_OK": 0,
    "FAIL_GENERIC": 1,
    "FAIL_PRIVILEGE": 2,
    "FAIL_MISSING_TOOL": 3,
    "FAIL_INPUT_CLOSED": 4,
    "FAIL_CANCELLED": 5,
    "FAIL_RELEASE_ARRAY": 6,
    "FAIL_UNSAFE_AFTER_CLEAN": 7,
    "FAIL_ARRAY_CREATE": 8,
    "FAIL_ARRAY_TIMEOUT": 9,
    "FAIL_MKFS": 10,
    "FAIL_MOUNT": 11,
    "FAIL_UUID": 12,
    "FAIL_BOOT_IMAGE": 13,
    "FAIL_UNHANDLED": 14,
    "FAIL_FSTAB": 15,
}

CLI_START_MONO = time.perf_counter()

Ask = Callable[[str], str]
Say = Callable[[str], None]


def _emit_result(kind: str, extra: Optional[Dict[str, Any]] = None) -> None:
    payload: Dict[str, Any] = {"result": kind, "ts": int(time.time())}
    if extra:
        payload.update(extra)
    log_path = resolve_log_path()
    if log_path:
        payload.setdefault("log_path", log_path)
        append_jsonl(log_path, payload)
    payload["timing_total_ms"] = int(max(0.0, (time.perf_counter() - CLI_START_MONO) * 1000))
    print(json.dumps(payload, sort_keys=True, separators=(",", ":")))
    raise SystemExit(RESULT_CODES.get(kind, 1))


def _cleanup() -> None:
    # Exit hook only; destructive steps are never rolled back.
    info("Performing cleanup...")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="raidsetup", add_help=True)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--array-device", default=paths.array_device())
    parser.add_argument("--mdadm-conf", default=None)
    parser.add_argument("--fstab", default=None)
    parser.add_argument("--mount-root", default=None)
    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    return RunConfig(
        array_device=args.array_device,
        mdadm_conf=args.mdadm_conf or paths.mdadm_conf_path(),
        fstab=args.fstab or paths.fstab_path(),
        mount_root=args.mount_root or paths.mount_root(),
    )


def _show_inventory(say: Say) -> Dict[str, str]:
    info("Scanning available disks...")
    disks = list_disks()
    reports = {disk.path: inspect(disk.path) for disk in disks}
    say("")
    say("Available Disks:")
    for line in render_inventory(disks, reports):
        say(line)
    return {disk.path: disk.size for disk in disks}


def _persist(cfg: RunConfig, request: ProvisioningRequest, mount_point: str, fs_uuid: str) -> Dict[str, Any]:
    descriptor = describe(cfg, request)

    info(f"Adding to {cfg.fstab} (UUID: {fs_uuid})...")
    fstab_backup = backup_file(cfg.fstab)
    if append_fstab_entry(cfg.fstab, fs_uuid, mount_point, cfg.fstype):
        assert_fstab_uuid(cfg.fstab, fs_uuid)
        ok("Added fstab entry")
    else:
        info("fstab entry already exists")

    info(f"Updating {cfg.mdadm_conf}...")
    conf_backup = backup_file(cfg.mdadm_conf)
    registered = False
    if not descriptor.registry_line:
        warn(f"mdadm reported no ARRAY line for {cfg.array_device}; {cfg.mdadm_conf} left unchanged")
    elif append_registry_entry(cfg.mdadm_conf, cfg.array_device, descriptor.registry_line):
        registered = True
        ok(f"Added RAID configuration to {cfg.mdadm_conf}")
    else:
        info(f"RAID configuration already exists in {cfg.mdadm_conf}")

    boot_image = refresh_boot_image()
    return {
        "array_uuid": descriptor.uuid,
        "registry_line": descriptor.registry_line,
        "registered": registered,
        "backups": {"fstab": fstab_backup, "mdadm_conf": conf_backup},
        "boot_image": boot_image,
    }


def _print_summary(cfg: RunConfig, request: ProvisioningRequest, mount_point: str, fs_uuid: str, say: Say) -> None:
    say("")
    say("=============== SUCCESS ===============")
    ok(f"RAID {request.level} array created successfully!")
    say("")
    say("Summary:")
    say(f"  - RAID Level: {request.level}")
    say(f"  - Device: {cfg.array_device}")
    say(f"  - Mount Point: {mount_point}")
    say(f"  - Filesystem: {cfg.fstype}")
    say(f"  - UUID: {fs_uuid}")
    say(f"  - Log File: {cfg.log_path}")
    say("")
    say("Array Details:")
    say(detail(cfg.array_device))
    say("Disk Usage:")
    say(run(["df", "-h", mount_point], check=False).out or "")
    say("Useful Commands:")
    say("  - Check RAID status: cat /proc/mdstat")
    say(f"  - Detailed info: mdadm --detail {cfg.array_device}")
    say("  - Monitor sync: watch cat /proc/mdstat")
    say(f"  - View logs: tail -f {cfg.log_path}")


def run_workflow(cfg: RunConfig, ask: Ask = input, say: Say = print) -> Dict[str, Any]:
    """Collect parameters, wipe the chosen disks and build the array.

    Nothing destructive happens before the operator types the confirmation
    literal. Any fatal condition raises a ``ProvisionError`` subclass.
    """

    level = ask_level(ask, say)
    minimum = min_disks(level)
    info(f"Selected RAID level: {level} (minimum {minimum} disks required)")
    count = ask_disk_count(minimum, ask, say)

    release_existing_array(cfg.array_device)
    sizes = _show_inventory(say)

    say("")
    info("Collecting disk selections...")
    request = ProvisioningRequest(level=level, disk_count=count, devices=collect_devices(count, ask, say))

    say("")
    info(f"Final disk selection: {' '.join(request.devices)}")
    for line in render_selection(level, request.devices, sizes):
        say(line)
    say("")
    if not confirm_destruction(ask, say):
        raise OperatorCancelled("Operation cancelled by user")

    info("Cleaning selected disks...")
    clean_reports = [clean_device(device) for device in request.devices]
    for report in clean_reports:
        for step in report.failures():
            trace("cli.clean_step_failed", device=step.device, step=step.step, rc=step.rc, err=step.error)
        ok(f"Device {report.device} cleaned")
    info("Verifying devices are clean...")
    verify_clean(request.devices)

    create_array(cfg, request)
    wait_until_ready(cfg.array_device, cfg.ready_attempts, cfg.ready_interval)
    info("Initial RAID status:")
    info(detail(cfg.array_device))
    if sync_in_progress():
        info("RAID sync in progress. You can monitor with: watch cat /proc/mdstat")
        say("Note: The script will continue without waiting for sync to complete.")
        say("This is safe - the array is usable during sync.")

    format_array(cfg.array_device, level, cfg.fstype)
    mount_point = mount_point_for(level, cfg.mount_root)
    mount_array(cfg.array_device, mount_point)
    fs_uuid = filesystem_uuid(cfg.array_device)

    persisted = _persist(cfg, request, mount_point, fs_uuid)
    _print_summary(cfg, request, mount_point, fs_uuid, say)
    return {
        "level": level,
        "devices": request.devices,
        "array_device": cfg.array_device,
        "mount_point": mount_point,
        "fs_uuid": fs_uuid,
        "clean_failures": sum(len(r.failures()) for r in clean_reports),
        **persisted,
    }


def _main_impl(argv: Optional[list[str]] = None, ask: Ask = input, say: Say = print) -> int:
    args = build_parser().parse_args(argv)
    cfg = config_from_args(args)
    cfg.log_path = start_run_log(args.log_dir)
    print("========== RAID Setup ==========")
    try:
        info(f"Script started by user: {os.environ.get('USER') or os.getuid()}")
        try:
            require_root()
            require_tools()
            os.makedirs(os.path.dirname(cfg.mdadm_conf), exist_ok=True)
            summary = run_workflow(cfg, ask, say)
        except ProvisionError as exc:
            fail(f"ERROR: {exc}")
            _emit_result(exc.result, extra={"why": str(exc), "state": exc.state})
        info("Script completed successfully")
        _emit_result("SETUP_OK", extra=summary)
    finally:
        _cleanup()
    return 0


def main(argv: Optional[list[str]] = None) -> int:  # pragma: no cover - exercised via manual CLI
    try:
        return _main_impl(argv)
    except SystemExit:
        raise
    except KeyboardInterrupt:
        fail("ERROR: interrupted by operator")
        _emit_result("FAIL_CANCELLED", extra={"why": "interrupted"})
    except Exception as exc:  # noqa: BLE001
        fail(f"ERROR: {exc}")
        _emit_result("FAIL_UNHANDLED", extra={"error": str(exc)})
    return 0


def build_notify_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="raidsetup-notify", add_help=True)
    parser.add_argument("event")
    parser.add_argument("device", nargs="?", default="")
    parser.add_argument("component", nargs="?", default="")
    parser.add_argument("--email", default=os.environ.get("RAIDSETUP_NOTIFY_EMAIL", ""))
    parser.add_argument("--event-log", default=None)
    parser.add_argument("--dry-run", action="store_true")
    return parser


def notify_main(argv: Optional[list[str]] = None) -> int:
    """Handle one ``mdadm --monitor`` event; always exits 0."""

    args = build_notify_parser().parse_args(argv)
    start_run_log(name="mdadm_notify")
    alert = make_alert(args.event, args.device, args.component)
    trace("notify.event", raid_event=alert.event, device=alert.device, component=alert.component)
    if args.email:
        message = render(alert, args.email, detail=device_detail(alert.device), mdstat=read_mdstat())
        if args.dry_run:
            print(message)
        if not send(message, args.email, dry_run=args.dry_run):
            warn(f"msmtp could not deliver {alert.event} alert to {args.email}")
    else:
        warn("no recipient configured (set RAIDSETUP_NOTIFY_EMAIL or pass --email); alert not mailed")
    record_event(args.event_log or paths.event_log_path(), alert)
    return 0


if __name__ == "__main__":
    sys.exit(main())
