#!/usr/bin/env python3
"""Server configuration - environment defaults overridden by command line flags"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_DERIVED_DATA_BASE = os.path.expanduser("~/Library/Developer/Xcode/DerivedData/MCP-Xcode")
DEFAULT_LOG_DIR = os.path.expanduser("~/.mcp-xcode-server/logs")
DEFAULT_SCREENSHOT_DIR = "/tmp/mcp-xcode/screenshots"

DEFAULT_BUILD_TIMEOUT = 30 * 60
DEFAULT_TEST_TIMEOUT = 30 * 60
DEFAULT_RUN_TIMEOUT = 10 * 60
DEFAULT_MAX_OUTPUT_MB = 50
LOG_RETENTION_DAYS = 7


@dataclass(frozen=True)
class ServerConfig:
    derived_data_base: str = DEFAULT_DERIVED_DATA_BASE
    log_dir: str = DEFAULT_LOG_DIR
    screenshot_dir: str = DEFAULT_SCREENSHOT_DIR
    build_timeout: float = DEFAULT_BUILD_TIMEOUT
    test_timeout: float = DEFAULT_TEST_TIMEOUT
    run_timeout: float = DEFAULT_RUN_TIMEOUT
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_MB * 1024 * 1024
    log_retention_days: int = LOG_RETENTION_DAYS
    log_level: str = "INFO"
    build_warnings_enabled: bool = True
    build_warnings_forced: Optional[bool] = None  # True if forced on, False if forced off, None if not forced

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """
        Build a configuration from MCP_XCODE_* environment variables.

        Invalid numeric values are reported and the default is kept.
        """
        environ = os.environ if environ is None else environ
        config = cls()
        values = {}

        if environ.get("MCP_XCODE_DERIVED_DATA"):
            values["derived_data_base"] = os.path.expanduser(environ["MCP_XCODE_DERIVED_DATA"])
        if environ.get("MCP_XCODE_LOG_DIR"):
            values["log_dir"] = os.path.expanduser(environ["MCP_XCODE_LOG_DIR"])
        if environ.get("MCP_XCODE_SCREENSHOT_DIR"):
            values["screenshot_dir"] = os.path.expanduser(environ["MCP_XCODE_SCREENSHOT_DIR"])
        if environ.get("MCP_XCODE_LOG_LEVEL"):
            values["log_level"] = environ["MCP_XCODE_LOG_LEVEL"].upper()

        for name, field in (("MCP_XCODE_BUILD_TIMEOUT", "build_timeout"),
                            ("MCP_XCODE_TEST_TIMEOUT", "test_timeout"),
                            ("MCP_XCODE_RUN_TIMEOUT", "run_timeout")):
            seconds = _positive_number(environ, name)
            if seconds is not None:
                values[field] = seconds

        megabytes = _positive_number(environ, "MCP_XCODE_MAX_OUTPUT_MB")
        if megabytes is not None:
            values["max_output_bytes"] = int(megabytes * 1024 * 1024)

        return replace(config, **values)

    def include_warnings(self, requested: Optional[bool]) -> bool:
        """Command-line flags override the tool parameter (user control > LLM control)."""
        if self.build_warnings_forced is not None:
            return self.build_warnings_forced
        return requested if requested is not None else self.build_warnings_enabled


def _positive_number(environ: Mapping[str, str], name: str) -> Optional[float]:
    raw = environ.get(name)
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return None
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive", name, raw)
        return None
    return value


_config = ServerConfig.from_env()


def get_config() -> ServerConfig:
    return _config


def set_config(config: ServerConfig):
    """Replace the active configuration (called once by the CLI, and by tests)"""
    global _config
    _config = config


def project_name(project_path: str) -> str:
    """Project name without the .xcodeproj/.xcworkspace suffix"""
    base = os.path.basename(project_path.rstrip("/"))
    name, ext = os.path.splitext(base)
    if ext in (".xcodeproj", ".xcworkspace"):
        return name
    return base


def get_derived_data_path(project_path: str) -> str:
    """
    Default derived data location for a project.

    Args:
        project_path: Path to the project, workspace or package directory

    Returns:
        <derived data base>/<project name>
    """
    return os.path.join(_config.derived_data_base, project_name(project_path))
