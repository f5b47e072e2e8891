#!/usr/bin/env python3
"""Simulator app tools - install and remove apps, capture the screen, read logs"""

import os
import re
import time
from typing import Optional

from mcp_xcode.server import mcp
from mcp_xcode.config_manager import get_config
from mcp_xcode.build.use_cases import get_toolchain


@mcp.tool()
def install_app(app_path: str, device_id: Optional[str] = None) -> str:
    """
    Install a built .app bundle on a simulator.

    Args:
        app_path: Path to the .app bundle (build_xcode reports it after a successful build).
        device_id: UDID or name of the simulator. If not provided, the first
                   booted simulator is used.

    Returns:
        Confirmation naming the app and the device.
    """
    device = get_toolchain().simulators.install_app(app_path, device_id)
    return f"✅ Successfully installed app: {os.path.basename(app_path.rstrip('/'))} on {device.name} ({device.udid})"


@mcp.tool()
def uninstall_app(bundle_id: str, device_id: Optional[str] = None) -> str:
    """
    Uninstall an app from a simulator.

    Args:
        bundle_id: Bundle identifier of the app, e.g. com.example.MyApp.
        device_id: UDID or name of the simulator. If not provided, the first
                   booted simulator is used.

    Returns:
        Confirmation naming the bundle identifier and the device.
    """
    device = get_toolchain().simulators.uninstall_app(bundle_id, device_id)
    return f"✅ Successfully uninstalled app: {bundle_id.strip()} from {device.name} ({device.udid})"


@mcp.tool()
def take_simulator_screenshot(device_id: Optional[str] = None) -> str:
    """
    Take a screenshot of a booted simulator.

    Args:
        device_id: UDID or name of the simulator. If not provided, the first
                   booted simulator is used. See list_simulators.

    Returns:
        The file path to the saved PNG screenshot.
    """
    simulators = get_toolchain().simulators
    device = simulators.resolve_device(device_id)

    screenshot_dir = get_config().screenshot_dir
    os.makedirs(screenshot_dir, exist_ok=True)
    timestamp = time.strftime("%Y%m%d_%H%M%S")
    safe_name = re.sub(r"[^a-zA-Z0-9_-]", "_", device.name)
    screenshot_path = os.path.join(screenshot_dir, f"simulator_{safe_name}_{timestamp}.png")

    simulators.capture_screenshot(screenshot_path, device.udid)
    return screenshot_path


@mcp.tool()
def get_device_logs(device_id: Optional[str] = None,
                    predicate: Optional[str] = None,
                    last: str = "5m") -> str:
    """
    Show recent log entries from a simulator.

    Args:
        device_id: UDID or name of the simulator. If not provided, the first
                   booted simulator is used.
        predicate: Optional NSPredicate filter, e.g. 'subsystem == "com.example.MyApp"'.
        last: How far back to read, e.g. 30s, 5m or 1h. Defaults to 5m.

    Returns:
        The last 100 matching log lines.
    """
    device, lines = get_toolchain().simulators.get_logs(device_id, predicate, last)
    if not lines:
        return f"No log entries from {device.name} in the last {last.strip()}"
    header = f"Logs from {device.name} ({device.udid}), last {len(lines)} line(s):"
    return "\n".join([header, ""] + lines)
