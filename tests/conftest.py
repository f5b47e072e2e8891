"""Pytest configuration and fixtures for mcp-xcode tests."""

import os
from pathlib import Path

import pytest

from mcp_xcode.build.commands import XcodeBuildCommandBuilder, SwiftPackageCommandBuilder
from mcp_xcode.build.executor import ExecutionOutcome, render_command
from mcp_xcode.build.use_cases import Toolchain, set_toolchain
from mcp_xcode.config_manager import ServerConfig, get_config, set_config
from mcp_xcode.utils.logs import LogManager, set_log_manager

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def outcome(exit_code: int = 0, stdout: str = "", stderr: str = "") -> ExecutionOutcome:
    return ExecutionOutcome(exit_code=exit_code, stdout=stdout, stderr=stderr)


class FakeExecutor:
    """Records argv lists and replays queued outcomes (or raises queued errors)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.timeouts = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def execute(self, argv, timeout=None, max_output_bytes=None, cwd=None):
        self.calls.append(list(argv))
        self.timeouts.append(timeout)
        response = self.responses.pop(0) if self.responses else outcome()
        if isinstance(response, Exception):
            raise response
        return ExecutionOutcome(response.exit_code, response.stdout, response.stderr,
                                command=render_command(argv))


class ScreenshotExecutor(FakeExecutor):
    """FakeExecutor that writes a PNG stub where `simctl io screenshot` would."""

    def execute(self, argv, timeout=None, max_output_bytes=None, cwd=None):
        result = super().execute(argv, timeout, max_output_bytes, cwd)
        if "screenshot" in argv and result.exit_code == 0:
            with open(argv[-1], "wb") as f:
                f.write(b"\x89PNG")
        return result


class FakeDetector:
    def __init__(self, arch="arm64"):
        self.arch = arch
        self.calls = 0

    def detect_native_arch(self):
        self.calls += 1
        return self.arch


class FakeSimulators:
    def __init__(self, udid="AAAAAAAA-BBBB-CCCC-DDDD-EEEEEEEEEEEE"):
        self.udid = udid
        self.ensure_booted_calls = []

    def ensure_booted(self, platform, device_id=None):
        self.ensure_booted_calls.append((platform, device_id))
        return self.udid


@pytest.fixture(autouse=True)
def isolated_config(tmp_path):
    """Point derived data and logs into the test's temporary directory."""
    previous = get_config()
    config = ServerConfig(derived_data_base=str(tmp_path / "DerivedData"),
                          log_dir=str(tmp_path / "logs"),
                          screenshot_dir=str(tmp_path / "screenshots"))
    set_config(config)
    set_log_manager(None)
    yield config
    set_config(previous)
    set_log_manager(None)
    set_toolchain(None)


@pytest.fixture
def xcode_project(tmp_path):
    """An empty MyApp.xcodeproj directory; returns its path."""
    project = tmp_path / "MyApp" / "MyApp.xcodeproj"
    project.mkdir(parents=True)
    return str(project)


@pytest.fixture
def xcode_workspace(tmp_path):
    workspace = tmp_path / "MyApp" / "MyApp.xcworkspace"
    workspace.mkdir(parents=True)
    return str(workspace)


@pytest.fixture
def swift_package(tmp_path):
    """A directory holding a Package.swift; returns the directory path."""
    package = tmp_path / "ParserKit"
    package.mkdir()
    (package / "Package.swift").write_text("// swift-tools-version:5.9\n")
    return str(package)


@pytest.fixture
def app_bundle(tmp_path):
    """A built MyApp.app directory; returns its path."""
    app = tmp_path / "Build" / "Products" / "Debug-iphonesimulator" / "MyApp.app"
    app.mkdir(parents=True)
    return str(app)


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def toolchain(executor, tmp_path):
    """Shared toolchain wired to fakes; installed for tools that use the default."""
    chain = Toolchain(
        executor=executor,
        detector=FakeDetector(),
        simulators=FakeSimulators(),
        log_manager=LogManager(log_dir=str(tmp_path / "logs")),
        xcodebuild=XcodeBuildCommandBuilder(),
        swift=SwiftPackageCommandBuilder(),
    )
    set_toolchain(chain)
    yield chain
    set_toolchain(None)


def realpath(path: str) -> str:
    return os.path.realpath(path)
