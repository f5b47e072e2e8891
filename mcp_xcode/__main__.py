#!/usr/bin/env python3
"""Command line entry point - configure and run the MCP server over stdio"""

import argparse
import logging
import os
import sys
from dataclasses import replace

import mcp_xcode
from mcp_xcode.config_manager import ServerConfig, set_config
from mcp_xcode.logging_setup import configure_logging

logger = logging.getLogger("mcp_xcode")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Apple platform build and test MCP server")
    parser.add_argument("--version", action="version", version=f"mcp-xcode {mcp_xcode.__version__}")
    parser.add_argument("--derived-data-path", help="Base directory for derived data (one subdirectory per project)")
    parser.add_argument("--log-dir", help="Directory for saved build and test logs")
    parser.add_argument("--build-timeout", type=float, help="Build timeout in seconds")
    parser.add_argument("--test-timeout", type=float, help="Test timeout in seconds")
    parser.add_argument("--max-output-mb", type=float, help="Maximum captured output per command, in MB")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], type=str.upper,
                        help="Logging level (logs go to stderr)")
    parser.add_argument("--no-build-warnings", action="store_true", help="Exclude warnings from build output")
    parser.add_argument("--always-include-build-warnings", action="store_true",
                        help="Always include warnings in build output")
    return parser


def config_from_args(args: argparse.Namespace, base: ServerConfig) -> ServerConfig:
    """Apply command line flags on top of the environment configuration"""
    values = {}
    if args.derived_data_path:
        values["derived_data_base"] = os.path.abspath(os.path.expanduser(args.derived_data_path))
    if args.log_dir:
        values["log_dir"] = os.path.abspath(os.path.expanduser(args.log_dir))
    if args.build_timeout:
        values["build_timeout"] = args.build_timeout
    if args.test_timeout:
        values["test_timeout"] = args.test_timeout
    if args.max_output_mb:
        values["max_output_bytes"] = int(args.max_output_mb * 1024 * 1024)
    if args.log_level:
        values["log_level"] = args.log_level

    if args.no_build_warnings:
        values.update(build_warnings_enabled=False, build_warnings_forced=False)
    elif args.always_include_build_warnings:
        values.update(build_warnings_enabled=True, build_warnings_forced=True)

    return replace(base, **values)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.no_build_warnings and args.always_include_build_warnings:
        parser.error("Cannot use both --no-build-warnings and --always-include-build-warnings")
    for name in ("build_timeout", "test_timeout", "max_output_mb"):
        value = getattr(args, name)
        if value is not None and value <= 0:
            parser.error(f"--{name.replace('_', '-')} must be positive")

    config = config_from_args(args, ServerConfig.from_env())
    configure_logging(config.log_level)
    set_config(config)

    if config.build_warnings_forced is True:
        logger.info("Build warnings forcibly enabled")
    elif config.build_warnings_forced is False:
        logger.info("Build warnings forcibly disabled")
    logger.info("Derived data: %s", config.derived_data_base)
    logger.info("Logs: %s", config.log_dir)

    # Imported after configuration so shared collaborators see the final settings
    from mcp_xcode.utils.logs import get_log_manager
    from mcp_xcode.server import mcp
    import mcp_xcode.tools  # noqa: F401

    get_log_manager().cleanup_old_logs()
    mcp.run()


if __name__ == "__main__":
    sys.exit(main())
