#!/usr/bin/env python3
"""test_xcode tool - Run the tests of an Xcode project or workspace"""

from typing import Optional

from mcp_xcode.server import mcp
from mcp_xcode.requests import TestRequest
from mcp_xcode.build.use_cases import execute_request
from mcp_xcode.utils.presentation import format_test_result


@mcp.tool()
def test_xcode(project_path: str,
               scheme: Optional[str] = None,
               destination: str = "iOSSimulator",
               device_id: Optional[str] = None,
               configuration: str = "Debug",
               test_target: Optional[str] = None,
               test_filter: Optional[str] = None,
               derived_data_path: Optional[str] = None) -> str:
    """
    Run tests for the specified Xcode project or workspace.

    Args:
        project_path: Path to an Xcode project or workspace directory.
        scheme: Scheme whose test action should run.
        destination: Destination such as iOSSimulator or macOS. Simulator destinations
            boot the simulator first; without device_id the platform's default device is used.
        device_id: Simulator UDID or name.
        configuration: Build configuration for the test build.
        test_target: Test bundle to run, e.g. MyAppTests.
        test_filter: Class or Class/method to run, e.g. LoginTests/testLogout.
        derived_data_path: Where build products go. Defaults to a per-project directory.

    Returns:
        "N passed, M failed", then a "Failing tests:" block listing each failing test
        and its assertion message, and the path of the saved test log.
    """
    request = TestRequest.create(
        project_path,
        scheme=scheme,
        destination=destination,
        device_id=device_id,
        configuration=configuration,
        test_target=test_target,
        test_filter=test_filter,
        derived_data_path=derived_data_path,
    )
    result = execute_request(request)

    return format_test_result(
        result,
        title=request.scheme or request.project_path.name,
        platform=request.destination.platform.name,
        configuration=request.configuration,
    )
