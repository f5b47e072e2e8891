#!/usr/bin/env python3
"""version tool - Report the server version"""

import mcp_xcode
from mcp_xcode.server import mcp


@mcp.tool()
def version() -> str:
    """
    Get the current version of the mcp-xcode server.

    Returns:
        The version string of the server
    """
    return f"mcp-xcode version {mcp_xcode.__version__}"
