"""Tool modules register themselves with the shared FastMCP instance on import"""

from mcp_xcode.tools import (  # noqa: F401
    build_settings,
    build_xcode,
    clean_build,
    list_schemes,
    simulator_apps,
    simulators,
    swift_package,
    test_xcode,
    version,
)
