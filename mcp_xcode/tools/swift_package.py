#!/usr/bin/env python3
"""Swift package tools - swift build, swift test and swift run"""

from typing import List, Optional

from mcp_xcode.server import mcp
from mcp_xcode.config_manager import get_config
from mcp_xcode.exceptions import InvalidParameterError
from mcp_xcode.requests import SwiftPackageRequest, SwiftPackageAction
from mcp_xcode.build.use_cases import execute_request
from mcp_xcode.utils.presentation import format_build_result, format_test_result, format_run_result


@mcp.tool()
def build_swift_package(package_path: str,
                        configuration: str = "Debug",
                        target: Optional[str] = None,
                        product: Optional[str] = None,
                        include_warnings: Optional[bool] = None) -> str:
    """
    Build a Swift package with `swift build`.

    Args:
        package_path: Package directory, or the path of its Package.swift.
        configuration: Debug or Release.
        target: Build only this target.
        product: Build only this product.
        include_warnings: Include warnings in build output. If not provided, uses global setting.

    Returns:
        Build status, errors as file:line:col lines on failure, and the saved log path.
    """
    if include_warnings is not None and not isinstance(include_warnings, bool):
        raise InvalidParameterError("include_warnings must be a boolean value")

    request = SwiftPackageRequest.create(package_path, SwiftPackageAction.BUILD,
                                         configuration=configuration, target=target, product=product)
    result = execute_request(request)
    return format_build_result(result, title=product or target or request.name,
                               configuration=request.configuration,
                               include_warnings=get_config().include_warnings(include_warnings),
                               show_app_path=False)


@mcp.tool()
def test_swift_package(package_path: str,
                       configuration: str = "Debug",
                       test_filter: Optional[str] = None) -> str:
    """
    Run the tests of a Swift package with `swift test`.

    Args:
        package_path: Package directory, or the path of its Package.swift.
        configuration: Debug or Release.
        test_filter: Run only tests matching this filter, e.g. MyTests.LoginTests/testLogout.

    Returns:
        "N passed, M failed", failing tests with their reasons, and the saved log path.
    """
    request = SwiftPackageRequest.create(package_path, SwiftPackageAction.TEST,
                                         configuration=configuration, test_filter=test_filter)
    result = execute_request(request)
    return format_test_result(result, title=request.name, configuration=request.configuration)


@mcp.tool()
def run_swift_package(package_path: str,
                      executable: Optional[str] = None,
                      arguments: Optional[List[str]] = None,
                      configuration: str = "Debug") -> str:
    """
    Build and run an executable product with `swift run`.

    Args:
        package_path: Package directory, or the path of its Package.swift.
        executable: Executable product to run. Required when the package has several.
        arguments: Arguments passed to the executable.
        configuration: Debug or Release.

    Returns:
        The program output (last 50 lines) and the saved log path.
    """
    request = SwiftPackageRequest.create(package_path, SwiftPackageAction.RUN,
                                         configuration=configuration, executable=executable,
                                         arguments=arguments)
    result = execute_request(request)
    return format_run_result(result, title=executable or request.name)
