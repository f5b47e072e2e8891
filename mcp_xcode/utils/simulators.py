#!/usr/bin/env python3
"""Simulator control via xcrun simctl"""

import json
import logging
import os
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from mcp_xcode.build.executor import CommandExecutor
from mcp_xcode.exceptions import SimulatorError, ValidationError
from mcp_xcode.platforms import PlatformInfo
from mcp_xcode.security import ensure_safe_argument, validate_app_bundle_path

logger = logging.getLogger(__name__)

SIMCTL_TIMEOUT = 60
BOOT_TIMEOUT = 5 * 60
BOOTED = "Booted"
SHUTDOWN = "Shutdown"
RUNTIME_PATTERN = re.compile(r"SimRuntime\.(?P<os>[A-Za-z]+)-(?P<version>[\d-]+)$")
BUNDLE_ID_PATTERN = re.compile(r"^[A-Za-z0-9.\-]+$")
LOG_WINDOW_PATTERN = re.compile(r"^\d+[smhd]$")
LOG_TIMEOUT = 2 * 60
LOG_TAIL_LINES = 100


@dataclass(frozen=True)
class SimulatorDevice:
    udid: str
    name: str
    state: str
    platform: PlatformInfo
    runtime: str
    runtime_version: Tuple[int, ...]
    is_available: bool

    @property
    def is_booted(self) -> bool:
        return self.state == BOOTED


def _parse_runtime(identifier: str) -> Optional[Tuple[PlatformInfo, str, Tuple[int, ...]]]:
    """'com.apple.CoreSimulator.SimRuntime.iOS-18-2' -> (IOS, 'iOS 18.2', (18, 2))"""
    match = RUNTIME_PATTERN.search(identifier)
    if not match:
        return None
    try:
        platform = PlatformInfo.parse(match.group("os"))
    except ValidationError:
        return None
    version = tuple(int(part) for part in match.group("version").split("-") if part)
    return platform, f"{platform.name} {'.'.join(str(v) for v in version)}", version


def parse_device_list(payload: str) -> List[SimulatorDevice]:
    """Parse `simctl list devices --json` output; unknown runtimes are skipped."""
    try:
        data = json.loads(payload)
    except ValueError as e:
        raise SimulatorError(f"Could not parse simctl device list: {e}")

    devices = []
    for runtime_id, entries in (data.get("devices") or {}).items():
        runtime = _parse_runtime(runtime_id)
        if runtime is None:
            logger.debug("Skipping unrecognized runtime %s", runtime_id)
            continue
        platform, runtime_name, version = runtime
        for entry in entries:
            devices.append(SimulatorDevice(
                udid=entry.get("udid", ""),
                name=entry.get("name", ""),
                state=entry.get("state", ""),
                platform=platform,
                runtime=runtime_name,
                runtime_version=version,
                is_available=bool(entry.get("isAvailable", False)),
            ))
    return devices


class SimulatorService:
    """Thin wrapper over single-shot simctl invocations."""

    def __init__(self, executor: Optional[CommandExecutor] = None):
        self.executor = executor or CommandExecutor(default_timeout=SIMCTL_TIMEOUT)

    def _simctl(self, *args: str, timeout: float = SIMCTL_TIMEOUT):
        return self.executor.execute(["xcrun", "simctl"] + list(args), timeout=timeout)

    def list_devices(self,
                     platform: Optional[PlatformInfo] = None,
                     include_unavailable: bool = False) -> List[SimulatorDevice]:
        """
        List simulators, newest runtime first.

        Args:
            platform: Only return devices for this platform
            include_unavailable: Include devices whose runtime is missing

        Returns:
            List of SimulatorDevice
        """
        outcome = self._simctl("list", "devices", "--json")
        if outcome.exit_code != 0:
            raise SimulatorError(f"Failed to list simulators: {outcome.stderr.strip()}")

        devices = parse_device_list(outcome.stdout)
        if platform is not None:
            devices = [d for d in devices if d.platform is platform]
        if not include_unavailable:
            devices = [d for d in devices if d.is_available]
        devices.sort(key=lambda d: (-_version_rank(d.runtime_version), d.platform.name, d.name))
        return devices

    def find_device(self, identifier: str, platform: Optional[PlatformInfo] = None) -> Optional[SimulatorDevice]:
        """
        Find a device by UDID or name.

        A booted device wins over a shut down one with the same name; after
        that the newest runtime wins.
        """
        wanted = identifier.strip().lower()
        matches = [d for d in self.list_devices(platform)
                   if d.udid.lower() == wanted or d.name.lower() == wanted]
        if not matches:
            return None
        matches.sort(key=lambda d: (not d.is_booted, -_version_rank(d.runtime_version)))
        return matches[0]

    def boot(self, device_id: str):
        """Boot a simulator. Booting an already booted device is not an error."""
        ensure_safe_argument(device_id, "device_id")
        outcome = self._simctl("boot", device_id, timeout=BOOT_TIMEOUT)
        if outcome.exit_code != 0 and f"current state: {BOOTED}" not in outcome.stderr:
            raise SimulatorError(f"Failed to boot simulator {device_id}: {outcome.stderr.strip()}")
        logger.info("Simulator %s booted", device_id)

    def shutdown(self, device_id: str):
        """Shut down a simulator. Shutting down a stopped device is not an error."""
        ensure_safe_argument(device_id, "device_id")
        outcome = self._simctl("shutdown", device_id)
        if outcome.exit_code != 0 and f"current state: {SHUTDOWN}" not in outcome.stderr:
            raise SimulatorError(f"Failed to shut down simulator {device_id}: {outcome.stderr.strip()}")
        logger.info("Simulator %s shut down", device_id)

    def ensure_booted(self, platform: PlatformInfo, device_id: Optional[str] = None) -> str:
        """
        Make sure a simulator for the platform is running.

        Args:
            platform: Platform the device must belong to
            device_id: UDID or name; the platform's default device when omitted

        Returns:
            UDID of the booted device
        """
        identifier = device_id or platform.default_device
        if not identifier:
            raise SimulatorError(f"{platform.name} does not run in a simulator")

        device = self.find_device(identifier, platform)
        if device is None:
            raise SimulatorError(f"No available {platform.name} simulator matches '{identifier}'. "
                                 "Use list_simulators to see the installed devices.")
        if not device.is_booted:
            self.boot(device.udid)
        return device.udid

    def resolve_device(self, device_id: Optional[str] = None) -> SimulatorDevice:
        """
        Find the simulator an app operation targets.

        Args:
            device_id: UDID or name; the first booted simulator when omitted

        Raises:
            SimulatorError: No device matches, or none is booted
        """
        if device_id and device_id.strip():
            device = self.find_device(ensure_safe_argument(device_id.strip(), "device_id"))
            if device is None:
                raise SimulatorError(f"No simulator matches '{device_id.strip()}'")
            return device

        booted = [d for d in self.list_devices() if d.is_booted]
        if not booted:
            raise SimulatorError("No booted simulator found. Boot one with boot_simulator first.")
        return booted[0]

    def install_app(self, app_path: str, device_id: Optional[str] = None) -> SimulatorDevice:
        """Install a built .app bundle; returns the device it went to."""
        app_path = validate_app_bundle_path(app_path)
        device = self.resolve_device(device_id)
        outcome = self._simctl("install", device.udid, app_path, timeout=BOOT_TIMEOUT)
        if outcome.exit_code != 0:
            raise SimulatorError(f"Failed to install {app_path} on {device.name}: {outcome.stderr.strip()}")
        logger.info("Installed %s on %s (%s)", app_path, device.name, device.udid)
        return device

    def uninstall_app(self, bundle_id: str, device_id: Optional[str] = None) -> SimulatorDevice:
        """Remove an app by bundle identifier; returns the device it was removed from."""
        if not isinstance(bundle_id, str) or not BUNDLE_ID_PATTERN.match(bundle_id.strip()):
            raise ValidationError(f"Invalid bundle identifier: {bundle_id!r}", field="bundle_id")
        bundle_id = bundle_id.strip()
        device = self.resolve_device(device_id)
        outcome = self._simctl("uninstall", device.udid, bundle_id)
        if outcome.exit_code != 0:
            raise SimulatorError(f"Failed to uninstall {bundle_id} from {device.name}: {outcome.stderr.strip()}")
        logger.info("Uninstalled %s from %s (%s)", bundle_id, device.name, device.udid)
        return device

    def capture_screenshot(self, output_path: str, device_id: Optional[str] = None) -> SimulatorDevice:
        """
        Save a PNG of a simulator's screen.

        Args:
            output_path: Where simctl writes the image
            device_id: UDID or name; the first booted simulator when omitted

        Returns:
            The device that was captured
        """
        device = self.resolve_device(device_id)
        outcome = self._simctl("io", device.udid, "screenshot", output_path)
        if outcome.exit_code != 0:
            error = outcome.stderr.strip()
            if "not booted" in error.lower():
                raise SimulatorError(f"Simulator {device.name} ({device.udid}) is not booted")
            raise SimulatorError(f"Failed to take screenshot: {error}")
        if not os.path.exists(output_path):
            raise SimulatorError("Screenshot file was not created")
        return device

    def get_logs(self,
                 device_id: Optional[str] = None,
                 predicate: Optional[str] = None,
                 last: str = "5m") -> Tuple[SimulatorDevice, List[str]]:
        """
        Read recent unified log entries from a simulator.

        Args:
            device_id: UDID or name; the first booted simulator when omitted
            predicate: NSPredicate filter passed to `log show`
            last: Time window such as 30s, 5m or 1h

        Returns:
            (device, the last LOG_TAIL_LINES log lines)
        """
        if not isinstance(last, str) or not LOG_WINDOW_PATTERN.match(last.strip()):
            raise ValidationError(f"last must look like 30s, 5m or 1h, got {last!r}", field="last")
        args = ["log", "show", "--style", "syslog", "--last", last.strip()]
        if predicate and predicate.strip():
            args += ["--predicate", ensure_safe_argument(predicate.strip(), "predicate")]

        device = self.resolve_device(device_id)
        outcome = self._simctl("spawn", device.udid, *args, timeout=LOG_TIMEOUT)
        if outcome.exit_code != 0:
            raise SimulatorError(f"Failed to read logs from {device.name}: {outcome.stderr.strip()}")
        lines = [line for line in outcome.stdout.splitlines() if line.strip()]
        return device, lines[-LOG_TAIL_LINES:]


def _version_rank(version: Tuple[int, ...]) -> int:
    padded = (tuple(version) + (0, 0, 0))[:3]
    return padded[0] * 10000 + padded[1] * 100 + padded[2]
