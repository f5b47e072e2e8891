#!/usr/bin/env python3
"""MCP server instance shared by all tool modules"""

from mcp.server.fastmcp import FastMCP

mcp = FastMCP("mcp-xcode",
    instructions="""
        This server builds and tests Apple platform projects with xcodebuild
        and Swift packages with the swift toolchain, and manages simulators.

        Call `list_schemes` to find the schemes and configurations of an
        .xcodeproj or .xcworkspace before building with a specific scheme.

        Call `build_xcode` to build a project for a destination such as
        iOSSimulator, macOS or visionOSSimulator. Failed builds list each
        error as file:line:col with its message.

        Call `test_xcode` to run tests; use test_target and test_filter
        (Class or Class/method) to run a subset.

        After a successful simulator build, `install_app` installs the
        reported .app on a booted simulator; `take_simulator_screenshot` and
        `get_device_logs` show what it is doing.

        Available tools:
        - version: Server version
        - build_xcode: Build an Xcode project or workspace
        - test_xcode: Run tests of an Xcode project or workspace
        - build_swift_package: swift build
        - test_swift_package: swift test
        - run_swift_package: swift run
        - list_schemes: List schemes, configurations and targets
        - get_build_settings: Resolved build settings for a scheme
        - clean_build: Clean build products, derived data or test results
        - list_simulators: List installed simulators
        - boot_simulator: Boot a simulator
        - shutdown_simulator: Shut down a simulator
        - install_app: Install an .app on a simulator
        - uninstall_app: Remove an app from a simulator by bundle identifier
        - take_simulator_screenshot: Save a PNG of a simulator screen
        - get_device_logs: Recent log lines from a simulator
    """
)
