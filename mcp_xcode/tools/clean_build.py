#!/usr/bin/env python3
"""clean_build tool - Clean build products, derived data or test results"""

import logging
import os
import shutil
from typing import List, Optional

from mcp_xcode.server import mcp
from mcp_xcode.config_manager import get_derived_data_path
from mcp_xcode.exceptions import ValidationError, XCodeMCPError
from mcp_xcode.requests import ProjectPath
from mcp_xcode.security import ensure_safe_argument, ensure_safe_path
from mcp_xcode.build.use_cases import get_toolchain

logger = logging.getLogger(__name__)

CLEAN_TARGETS = ("build", "derivedData", "testResults", "all")
CLEAN_TIMEOUT = 5 * 60
SWIFT_BUILD_DIR = ".build"


def _remove_tree(path: str) -> bool:
    if not os.path.isdir(path):
        return False
    shutil.rmtree(path)
    logger.info("Removed %s", path)
    return True


def _clean_build_folder(project: ProjectPath,
                        scheme: Optional[str],
                        configuration: str,
                        derived_data: str) -> str:
    if project.is_package:
        build_dir = os.path.join(project.path, SWIFT_BUILD_DIR)
        if _remove_tree(build_dir):
            return f"Removed {SWIFT_BUILD_DIR} directory for {project.name}"
        return f"No {SWIFT_BUILD_DIR} directory to clean"

    toolchain = get_toolchain()
    argv = toolchain.xcodebuild.clean(project, scheme, configuration, derived_data)
    outcome = toolchain.executor.execute(argv, timeout=CLEAN_TIMEOUT)
    if outcome.exit_code != 0:
        raise XCodeMCPError(f"Clean failed: {outcome.output.strip()}")
    return f"Cleaned build folder for {scheme or project.name}"


@mcp.tool()
def clean_build(project_path: str,
                scheme: Optional[str] = None,
                configuration: str = "Debug",
                clean_target: str = "build",
                derived_data_path: Optional[str] = None) -> str:
    """
    Clean build artifacts of an Xcode project, workspace or Swift package.

    Args:
        project_path: Path to an Xcode project/workspace or a Swift package directory.
        scheme: Scheme to clean. If not provided, xcodebuild uses the default scheme.
        configuration: Build configuration to clean. Defaults to Debug.
        clean_target: What to remove:
            build - run xcodebuild clean (or delete a package's .build directory)
            derivedData - delete the derived data directory
            testResults - delete only the test logs under derived data
            all - build and derivedData together
        derived_data_path: Derived data directory. Defaults to the per-project
            directory used by build_xcode and test_xcode.

    Returns:
        One line per cleaning step.
    """
    if clean_target not in CLEAN_TARGETS:
        raise ValidationError(f"clean_target must be one of {', '.join(CLEAN_TARGETS)}", field="clean_target")

    project = ProjectPath.create(project_path, allow_package=True)
    configuration = ensure_safe_argument(configuration or "Debug", "configuration").strip() or "Debug"
    if scheme:
        scheme = ensure_safe_argument(scheme, "scheme").strip() or None
    if derived_data_path and derived_data_path.strip():
        derived_data = ensure_safe_path(derived_data_path.strip(), "derived_data_path")
    else:
        derived_data = get_derived_data_path(project.path)

    messages: List[str] = []
    if clean_target in ("build", "all"):
        messages.append(_clean_build_folder(project, scheme, configuration, derived_data))

    if clean_target in ("derivedData", "all"):
        if _remove_tree(derived_data):
            messages.append(f"Removed DerivedData at {derived_data}")
        else:
            messages.append(f"No DerivedData found at {derived_data}")
    elif clean_target == "testResults":
        if _remove_tree(os.path.join(derived_data, "Logs", "Test")):
            messages.append("Cleared test results")
        else:
            messages.append("No test results to clear")

    return "✅ " + "\n".join(messages)
