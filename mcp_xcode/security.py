#!/usr/bin/env python3
"""Input safety checks applied before any command is built"""

import os
from typing import Optional

from mcp_xcode.exceptions import ValidationError, ProjectNotFoundError

SHELL_METACHARACTERS = (";", "`", "$")
PATH_TRAVERSAL_SEQUENCES = ("..", "~")
PROJECT_SUFFIXES = (".xcodeproj", ".xcworkspace")
PACKAGE_MANIFEST = "Package.swift"
APP_SUFFIX = ".app"


def ensure_safe_argument(value: str, field: str) -> str:
    """
    Reject a value that carries shell metacharacters.

    Args:
        value: User supplied string that will end up on a command line
        field: Name of the parameter, used in the error message

    Returns:
        The unchanged value

    Raises:
        ValidationError: If the value is not a string or contains ';', '`' or '$'
    """
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)
    for char in SHELL_METACHARACTERS:
        if char in value:
            raise ValidationError(f"{field} contains a forbidden character '{char}'", field=field)
    return value


def ensure_safe_path(path: str, field: str = "project_path") -> str:
    """Reject path traversal sequences and shell metacharacters in a path."""
    ensure_safe_argument(path, field)
    for sequence in PATH_TRAVERSAL_SEQUENCES:
        if sequence in path:
            raise ValidationError(f"{field} must not contain '{sequence}': {path}", field=field)
    return path


def _clean(path: Optional[str], field: str) -> str:
    if path is None or not isinstance(path, str) or path.strip() == "":
        raise ValidationError(f"{field} cannot be empty", field=field)
    return ensure_safe_path(path.strip(), field)


def validate_and_normalize_project_path(project_path: str, allow_package: bool = False) -> str:
    """
    Validate and normalize a path to an Xcode project or workspace.

    Args:
        project_path: The project path to validate
        allow_package: Also accept a Swift package directory (or its Package.swift)

    Returns:
        Normalized project path with symlinks resolved

    Raises:
        ValidationError: If the path is empty, unsafe or of the wrong kind
        ProjectNotFoundError: If the path does not exist
    """
    project_path = _clean(project_path, "project_path").rstrip("/")

    is_xcode = project_path.endswith(PROJECT_SUFFIXES)
    if not is_xcode and not allow_package:
        raise ValidationError("project_path must end with '.xcodeproj' or '.xcworkspace'",
                              field="project_path")

    if not os.path.exists(project_path):
        raise ProjectNotFoundError(project_path)

    if is_xcode:
        return os.path.realpath(project_path)

    return _package_directory(project_path, "project_path")


def validate_and_normalize_package_path(package_path: str) -> str:
    """
    Validate a Swift package path and return the package directory.

    Accepts either the package directory or the path of its Package.swift.
    """
    package_path = _clean(package_path, "package_path").rstrip("/")
    if not os.path.exists(package_path):
        raise ProjectNotFoundError(package_path)
    return _package_directory(package_path, "package_path")


def _package_directory(path: str, field: str) -> str:
    if os.path.basename(path) == PACKAGE_MANIFEST and os.path.isfile(path):
        path = os.path.dirname(path) or "."
    if not os.path.isfile(os.path.join(path, PACKAGE_MANIFEST)):
        raise ValidationError(f"No {PACKAGE_MANIFEST} found in {path}", field=field)
    return os.path.realpath(path)


def validate_app_bundle_path(app_path: str) -> str:
    """
    Validate a path to a built .app bundle.

    Returns:
        The bundle path with symlinks resolved

    Raises:
        ValidationError: If the path is empty, unsafe, not a .app or missing
    """
    app_path = _clean(app_path, "app_path").rstrip("/")
    if not app_path.endswith(APP_SUFFIX):
        raise ValidationError(f"app_path must end with '{APP_SUFFIX}'", field="app_path")
    if not os.path.isdir(app_path):
        raise ValidationError(f"App bundle does not exist: {app_path}", field="app_path")
    return os.path.realpath(app_path)
