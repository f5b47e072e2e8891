"""Tests for configuration from the environment and the command line"""

import logging
import os
import sys

import pytest

from mcp_xcode.__main__ import build_parser, config_from_args, main
from mcp_xcode.config_manager import (
    ServerConfig,
    get_derived_data_path,
    project_name,
)
from mcp_xcode.logging_setup import FlushingStreamHandler, configure_logging


class TestFromEnv:

    def test_defaults(self):
        config = ServerConfig.from_env({})
        assert config == ServerConfig()
        assert config.build_timeout == 1800
        assert config.max_output_bytes == 50 * 1024 * 1024

    def test_overrides(self):
        config = ServerConfig.from_env({
            "MCP_XCODE_DERIVED_DATA": "/tmp/dd",
            "MCP_XCODE_LOG_DIR": "/tmp/logs",
            "MCP_XCODE_SCREENSHOT_DIR": "/tmp/shots",
            "MCP_XCODE_BUILD_TIMEOUT": "90",
            "MCP_XCODE_TEST_TIMEOUT": "120.5",
            "MCP_XCODE_MAX_OUTPUT_MB": "2",
            "MCP_XCODE_LOG_LEVEL": "debug",
        })
        assert config.derived_data_base == "/tmp/dd"
        assert config.log_dir == "/tmp/logs"
        assert config.screenshot_dir == "/tmp/shots"
        assert config.build_timeout == 90
        assert config.test_timeout == 120.5
        assert config.max_output_bytes == 2 * 1024 * 1024
        assert config.log_level == "DEBUG"

    @pytest.mark.parametrize("value", ["soon", "0", "-5"])
    def test_invalid_numbers_keep_the_default(self, value, caplog):
        with caplog.at_level(logging.WARNING):
            config = ServerConfig.from_env({"MCP_XCODE_BUILD_TIMEOUT": value})
        assert config.build_timeout == 1800
        assert "MCP_XCODE_BUILD_TIMEOUT" in caplog.text


class TestIncludeWarnings:

    def test_parameter_wins_when_not_forced(self):
        config = ServerConfig(build_warnings_enabled=True)
        assert config.include_warnings(None) is True
        assert config.include_warnings(False) is False

    def test_forced_setting_wins(self):
        assert ServerConfig(build_warnings_forced=False).include_warnings(True) is False
        assert ServerConfig(build_warnings_forced=True).include_warnings(False) is True


def test_derived_data_path_per_project(isolated_config):
    assert project_name("/src/MyApp/MyApp.xcworkspace/") == "MyApp"
    assert project_name("/src/ParserKit") == "ParserKit"
    assert get_derived_data_path("/src/MyApp/MyApp.xcodeproj") == \
        os.path.join(isolated_config.derived_data_base, "MyApp")


class TestCommandLine:

    def parse(self, *argv):
        return build_parser().parse_args(list(argv))

    def test_flags_override_environment(self, tmp_path):
        args = self.parse("--derived-data-path", str(tmp_path / "dd"), "--build-timeout", "60",
                          "--max-output-mb", "1", "--log-level", "debug", "--no-build-warnings")
        config = config_from_args(args, ServerConfig(build_timeout=300))

        assert config.derived_data_base == str(tmp_path / "dd")
        assert config.build_timeout == 60
        assert config.max_output_bytes == 1024 * 1024
        assert config.log_level == "DEBUG"
        assert config.build_warnings_enabled is False
        assert config.build_warnings_forced is False

    def test_no_flags_keep_base(self):
        base = ServerConfig(test_timeout=42)
        assert config_from_args(self.parse(), base) == base

    def test_always_include_warnings(self):
        config = config_from_args(self.parse("--always-include-build-warnings"), ServerConfig())
        assert config.build_warnings_forced is True

    def test_conflicting_warning_flags(self):
        with pytest.raises(SystemExit):
            main(["--no-build-warnings", "--always-include-build-warnings"])

    def test_non_positive_timeout(self):
        with pytest.raises(SystemExit):
            main(["--test-timeout", "0"])


def test_configure_logging_uses_stderr_handler(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    configure_logging("warning")

    (kwargs,) = calls
    assert kwargs["level"] == logging.WARNING
    assert kwargs["force"] is True
    (handler,) = kwargs["handlers"]
    assert isinstance(handler, FlushingStreamHandler)
    assert handler.stream is sys.stderr
