#!/usr/bin/env python3
"""list_schemes tool - List schemes, configurations and targets of a project"""

import json
import logging
from typing import Any, Dict

from mcp_xcode.server import mcp
from mcp_xcode.exceptions import XCodeMCPError
from mcp_xcode.requests import ProjectPath
from mcp_xcode.build.use_cases import get_toolchain

logger = logging.getLogger(__name__)

LIST_TIMEOUT = 60


def parse_list_output(stdout: str) -> Dict[str, Any]:
    """
    Parse `xcodebuild -list -json` output.

    xcodebuild may print log lines before the JSON document, so parsing
    starts at the first '{'.
    """
    start = stdout.find("{")
    if start < 0:
        raise XCodeMCPError("xcodebuild -list produced no JSON output")
    try:
        data = json.loads(stdout[start:])
    except ValueError as e:
        raise XCodeMCPError(f"Could not parse xcodebuild -list output: {e}")
    return data.get("workspace") or data.get("project") or {}


@mcp.tool()
def list_schemes(project_path: str) -> str:
    """
    Get the available schemes for the specified Xcode project or workspace.

    Args:
        project_path: Path to an Xcode project/workspace directory, which must
        end in '.xcodeproj' or '.xcworkspace' and must exist.

    Returns:
        The schemes, one per line, followed by the build configurations and
        targets when the project reports them.
    """
    project = ProjectPath.create(project_path)
    toolchain = get_toolchain()
    argv = toolchain.xcodebuild.list_schemes(project)
    outcome = toolchain.executor.execute(argv, timeout=LIST_TIMEOUT)
    if outcome.exit_code != 0:
        raise XCodeMCPError(f"Failed to list schemes for {project.path}: {outcome.stderr.strip()}")

    info = parse_list_output(outcome.stdout)
    schemes = info.get("schemes") or []
    if not schemes:
        return f"No schemes found in {project.name}"

    lines = [f"Schemes in {info.get('name', project.name)}:"]
    lines += [f"  • {scheme}" for scheme in schemes]
    for key, heading in (("configurations", "Configurations"), ("targets", "Targets")):
        values = info.get(key) or []
        if values:
            lines += ["", f"{heading}:"] + [f"  • {value}" for value in values]
    return "\n".join(lines)
