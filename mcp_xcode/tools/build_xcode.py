#!/usr/bin/env python3
"""build_xcode tool - Build an Xcode project or workspace with xcodebuild"""

from typing import Optional

from mcp_xcode.server import mcp
from mcp_xcode.config_manager import get_config
from mcp_xcode.exceptions import InvalidParameterError
from mcp_xcode.requests import BuildRequest
from mcp_xcode.build.use_cases import execute_request
from mcp_xcode.utils.presentation import format_build_result


@mcp.tool()
def build_xcode(project_path: str,
                scheme: Optional[str] = None,
                destination: str = "iOSSimulator",
                device_id: Optional[str] = None,
                configuration: str = "Debug",
                derived_data_path: Optional[str] = None,
                include_warnings: Optional[bool] = None) -> str:
    """
    Build the specified Xcode project or workspace.

    Args:
        project_path: Path to an Xcode project or workspace directory.
        scheme: Name of the scheme to build. If not provided, xcodebuild uses the default scheme.
        destination: One of iOSSimulator, iOSDevice, iOSSimulatorUniversal, macOS, macOSUniversal,
            tvOSSimulator, tvOSDevice, tvOSSimulatorUniversal, watchOSSimulator, watchOSDevice,
            watchOSSimulatorUniversal, visionOSSimulator, visionOSDevice, visionOSSimulatorUniversal.
            Simulator destinations build only for this Mac's architecture; the Universal variants
            build every architecture.
        device_id: Simulator UDID or name to build for. Ignored for macOS.
        configuration: Build configuration, e.g. Debug, Release or a custom one.
        derived_data_path: Where build products go. Defaults to a per-project directory.
        include_warnings: Include warnings in build output. If not provided, uses global setting.

    Returns:
        On success, the app path (or 'not found'). On failure, the error count and
        one file:line:col line per error. Ends with the path of the saved build log.
    """
    if include_warnings is not None and not isinstance(include_warnings, bool):
        raise InvalidParameterError("include_warnings must be a boolean value")

    request = BuildRequest.create(
        project_path,
        scheme=scheme,
        destination=destination,
        device_id=device_id,
        configuration=configuration,
        derived_data_path=derived_data_path,
    )
    result = execute_request(request)

    return format_build_result(
        result,
        title=request.scheme or request.project_path.name,
        platform=request.destination.platform.name,
        configuration=request.configuration,
        include_warnings=get_config().include_warnings(include_warnings),
    )
