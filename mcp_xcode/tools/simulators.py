#!/usr/bin/env python3
"""Simulator tools - list, boot and shut down simulators"""

from typing import Optional

from mcp_xcode.server import mcp
from mcp_xcode.exceptions import SimulatorError, ValidationError
from mcp_xcode.platforms import PlatformInfo
from mcp_xcode.build.use_cases import get_toolchain


def _require_device_id(device_id: str) -> str:
    if not isinstance(device_id, str) or not device_id.strip():
        raise ValidationError("device_id cannot be empty", field="device_id")
    return device_id.strip()


@mcp.tool()
def list_simulators(platform: Optional[str] = None, show_all: bool = False) -> str:
    """
    List installed simulators.

    Args:
        platform: Only list devices for this platform (iOS, tvOS, watchOS, visionOS).
        show_all: Include devices whose runtime is unavailable.

    Returns:
        One entry per device with name, UDID, runtime and state.
    """
    platform_info = PlatformInfo.parse(platform) if platform else None
    devices = get_toolchain().simulators.list_devices(platform_info, include_unavailable=show_all)
    if not devices:
        return "No simulators found"

    lines = [f"Found {len(devices)} simulator(s):", ""]
    for device in devices:
        state = device.state + ("" if device.is_available else ", unavailable")
        lines.append(f"• {device.name} ({state})")
        lines.append(f"  UDID: {device.udid}")
        lines.append(f"  OS: {device.runtime}")
        lines.append("")
    return "\n".join(lines).rstrip()


@mcp.tool()
def boot_simulator(device_id: str) -> str:
    """
    Boot a simulator.

    Args:
        device_id: UDID or name of the simulator.

    Returns:
        Confirmation naming the booted device.
    """
    simulators = get_toolchain().simulators
    device = simulators.find_device(_require_device_id(device_id))
    if device is None:
        raise SimulatorError(f"No simulator matches '{device_id}'")
    if device.is_booted:
        return f"Simulator already booted: {device.name} ({device.udid})"
    simulators.boot(device.udid)
    return f"✅ Booted simulator: {device.name} ({device.udid})"


@mcp.tool()
def shutdown_simulator(device_id: str) -> str:
    """
    Shut down a simulator.

    Args:
        device_id: UDID or name of the simulator.

    Returns:
        Confirmation naming the device.
    """
    simulators = get_toolchain().simulators
    device = simulators.find_device(_require_device_id(device_id))
    if device is None:
        raise SimulatorError(f"No simulator matches '{device_id}'")
    if not device.is_booted:
        return f"Simulator already shut down: {device.name} ({device.udid})"
    simulators.shutdown(device.udid)
    return f"✅ Shut down simulator: {device.name} ({device.udid})"
