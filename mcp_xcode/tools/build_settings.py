#!/usr/bin/env python3
"""get_build_settings tool - Show resolved build settings for a scheme"""

import json
import re
from typing import Any, Dict, List

from mcp_xcode.server import mcp
from mcp_xcode.exceptions import SchemeOrConfigurationError, ValidationError, XCodeMCPError
from mcp_xcode.requests import ProjectPath
from mcp_xcode.security import ensure_safe_argument
from mcp_xcode.build.output_parser import detect_scheme_or_configuration_error
from mcp_xcode.build.use_cases import get_toolchain

SETTINGS_TIMEOUT = 2 * 60
JSON_START = re.compile(r"^\[", re.MULTILINE)

KEY_SETTINGS = (
    "PRODUCT_NAME",
    "PRODUCT_BUNDLE_IDENTIFIER",
    "CONFIGURATION",
    "SDK_NAME",
    "ARCHS",
    "SWIFT_VERSION",
    "IPHONEOS_DEPLOYMENT_TARGET",
    "MACOSX_DEPLOYMENT_TARGET",
    "TVOS_DEPLOYMENT_TARGET",
    "WATCHOS_DEPLOYMENT_TARGET",
    "XROS_DEPLOYMENT_TARGET",
    "BUILT_PRODUCTS_DIR",
)


def parse_build_settings(stdout: str) -> List[Dict[str, Any]]:
    """
    Parse `xcodebuild -showBuildSettings -json` output.

    Returns:
        One entry per target, each with 'target' and 'buildSettings' keys
    """
    match = JSON_START.search(stdout)
    if not match:
        raise XCodeMCPError("xcodebuild -showBuildSettings produced no JSON output")
    try:
        entries = json.loads(stdout[match.start():])
    except ValueError as e:
        raise XCodeMCPError(f"Could not parse build settings: {e}")
    return [e for e in entries if isinstance(e, dict) and isinstance(e.get("buildSettings"), dict)]


@mcp.tool()
def get_build_settings(project_path: str,
                       scheme: str,
                       configuration: str = "Debug",
                       show_all: bool = False) -> str:
    """
    Get the build settings xcodebuild resolves for a scheme.

    Args:
        project_path: Path to an Xcode project or workspace directory.
        scheme: Scheme whose targets are inspected. See list_schemes.
        configuration: Build configuration. Defaults to Debug.
        show_all: List every setting instead of the commonly needed ones.

    Returns:
        Settings per target, one 'NAME = value' line each.
    """
    project = ProjectPath.create(project_path)
    if not isinstance(scheme, str) or not scheme.strip():
        raise ValidationError("scheme cannot be empty", field="scheme")
    scheme = ensure_safe_argument(scheme, "scheme").strip()
    configuration = ensure_safe_argument(configuration or "Debug", "configuration").strip() or "Debug"

    toolchain = get_toolchain()
    argv = toolchain.xcodebuild.show_build_settings(project, scheme, configuration)
    outcome = toolchain.executor.execute(argv, timeout=SETTINGS_TIMEOUT)
    if outcome.exit_code != 0:
        rejection = detect_scheme_or_configuration_error(outcome.stdout, outcome.stderr)
        if rejection:
            kind, detail = rejection
            raise SchemeOrConfigurationError(detail, kind=kind)
        raise XCodeMCPError(f"Failed to get build settings for {scheme}: {outcome.stderr.strip()}")

    entries = parse_build_settings(outcome.stdout)
    if not entries:
        return f"No build settings reported for {scheme}"

    lines = []
    for entry in entries:
        settings = entry["buildSettings"]
        lines.append(f"Build settings for {entry.get('target', scheme)} ({configuration}):")
        names = sorted(settings) if show_all else [name for name in KEY_SETTINGS if name in settings]
        lines += [f"  {name} = {settings[name]}" for name in names]
        if not show_all:
            lines.append(f"  ({len(settings)} settings in total; pass show_all=true to list them)")
        lines.append("")
    return "\n".join(lines).rstrip()
