#!/usr/bin/env python3
"""
Build and test orchestration.

Each use case runs one request through
Validating -> Resolving -> Building-Command -> Executing -> Parsing
-> (Locating-Artifact) -> Done. A use case instance serves a single
invocation; nothing is carried over between calls.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from mcp_xcode.build.architecture import ArchitectureDetector, get_architecture_detector
from mcp_xcode.build.artifacts import find_app, detect_configuration_mismatch
from mcp_xcode.build.commands import XcodeBuildCommandBuilder, SwiftPackageCommandBuilder
from mcp_xcode.build.destination import (
    BuildFlavor,
    DestinationDescriptor,
    DeviceByIdDestination,
    DeviceByNameDestination,
    GenericDestination,
    build_settings,
    describe,
    destination_string,
    from_build_destination,
    restricts_architecture,
)
from mcp_xcode.build.executor import CommandExecutor, ExecutionOutcome, render_command
from mcp_xcode.build.output_parser import (
    detect_scheme_or_configuration_error,
    diagnose_build_failure,
    parse_build_issues,
    parse_test_output,
)
from mcp_xcode.config_manager import get_config
from mcp_xcode.exceptions import SchemeOrConfigurationError, XCodeMCPError
from mcp_xcode.requests import BuildRequest, TestRequest, SwiftPackageRequest, SwiftPackageAction, Request
from mcp_xcode.results import BuildResult, TestResult
from mcp_xcode.utils.logs import LogManager, get_log_manager
from mcp_xcode.utils.simulators import SimulatorService

logger = logging.getLogger(__name__)


class Stage(Enum):
    VALIDATING = "Validating"
    RESOLVING = "Resolving"
    BUILDING_COMMAND = "Building-Command"
    EXECUTING = "Executing"
    PARSING = "Parsing"
    LOCATING_ARTIFACT = "Locating-Artifact"
    DONE = "Done"


@dataclass
class Toolchain:
    """Collaborators shared by the use cases."""
    executor: CommandExecutor
    detector: ArchitectureDetector
    simulators: SimulatorService
    log_manager: LogManager
    xcodebuild: XcodeBuildCommandBuilder
    swift: SwiftPackageCommandBuilder

    @classmethod
    def default(cls) -> "Toolchain":
        config = get_config()
        executor = CommandExecutor(default_timeout=config.build_timeout,
                                   max_output_bytes=config.max_output_bytes)
        return cls(
            executor=executor,
            detector=get_architecture_detector(),
            simulators=SimulatorService(),
            log_manager=get_log_manager(),
            xcodebuild=XcodeBuildCommandBuilder(),
            swift=SwiftPackageCommandBuilder(),
        )


_toolchain: Optional[Toolchain] = None


def get_toolchain() -> Toolchain:
    global _toolchain
    if _toolchain is None:
        _toolchain = Toolchain.default()
    return _toolchain


def set_toolchain(toolchain: Optional[Toolchain]):
    """Replace the shared toolchain; None restores the default on next use"""
    global _toolchain
    _toolchain = toolchain


class _UseCase:
    kind = "build"

    def __init__(self, toolchain: Optional[Toolchain] = None):
        self.toolchain = toolchain or get_toolchain()
        self.stage: Optional[Stage] = None
        self.label = ""

    def _enter(self, stage: Stage):
        self.stage = stage
        logger.debug("[%s %s] %s", self.kind, self.label, stage.value)

    def _execute(self, argv: List[str], timeout: float) -> ExecutionOutcome:
        config = get_config()
        return self.toolchain.executor.execute(argv, timeout=timeout,
                                               max_output_bytes=config.max_output_bytes)

    def _save_snapshot(self, command: str, details: Dict[str, Any]):
        payload = dict(details)
        payload["command"] = command
        self.toolchain.log_manager.save_debug_data(f"{self.kind}-command", payload, self.label)

    def _save_log(self, outcome: ExecutionOutcome, details: Dict[str, Any], duration: float) -> Optional[str]:
        metadata = dict(details)
        metadata.update({
            "command": outcome.command,
            "exitCode": outcome.exit_code,
            "duration": round(duration, 3),
        })
        return self.toolchain.log_manager.save_log(self.kind, outcome.output, self.label, metadata)

    def _fail(self, error: XCodeMCPError):
        stage = self.stage.value if self.stage else "start"
        logger.error("[%s %s] failed while %s: %s", self.kind, self.label, stage, error.message)


class _XcodeUseCase(_UseCase):

    def _needs_booted_simulator(self, descriptor: DestinationDescriptor) -> bool:
        return isinstance(descriptor, (DeviceByIdDestination, DeviceByNameDestination)) \
            and descriptor.flavor is not BuildFlavor.DEVICE

    def _boot(self, descriptor: DestinationDescriptor, identifier: Optional[str]) -> DestinationDescriptor:
        udid = self.toolchain.simulators.ensure_booted(descriptor.platform, identifier)
        return DeviceByIdDestination(descriptor.platform, udid, descriptor.flavor)

    def _settings(self, descriptor: DestinationDescriptor) -> List[str]:
        if not restricts_architecture(descriptor):
            return []
        return build_settings(descriptor, self.toolchain.detector.detect_native_arch())

    def _details(self, request: BuildRequest, descriptor: DestinationDescriptor) -> Dict[str, Any]:
        platform, device = describe(descriptor)
        return {
            "project": request.project_path.path,
            "scheme": request.scheme,
            "configuration": request.configuration,
            "platform": platform,
            "device": device,
            "destination": destination_string(descriptor),
            "derivedDataPath": request.derived_data_path,
        }

    def _check_rejection(self, outcome: ExecutionOutcome, log_path: Optional[str]):
        rejection = detect_scheme_or_configuration_error(outcome.stdout, outcome.stderr)
        if rejection is not None:
            kind, detail = rejection
            raise SchemeOrConfigurationError(detail, kind=kind, log_path=log_path)


class BuildProjectUseCase(_XcodeUseCase):
    kind = "build"

    def execute(self, request: BuildRequest) -> BuildResult:
        """
        Build an Xcode project or workspace.

        Args:
            request: Validated build request

        Returns:
            BuildResult; a failed build is a result, not an exception

        Raises:
            SchemeOrConfigurationError: xcodebuild rejected the scheme or configuration
            ToolNotFoundError, CommandTimeoutError, OutputLimitExceededError: transport failures
        """
        self.label = request.project_path.name
        try:
            return self._run(request)
        except XCodeMCPError as e:
            self._fail(e)
            raise

    def _run(self, request: BuildRequest) -> BuildResult:
        self._enter(Stage.VALIDATING)
        if not isinstance(request, BuildRequest):
            raise TypeError(f"Expected BuildRequest, got {type(request).__name__}")

        self._enter(Stage.RESOLVING)
        descriptor = from_build_destination(request.destination, request.device_id)
        if self._needs_booted_simulator(descriptor):
            descriptor = self._boot(descriptor, request.device_id)
        settings = self._settings(descriptor)

        self._enter(Stage.BUILDING_COMMAND)
        argv = self.toolchain.xcodebuild.build(request, descriptor, settings)
        details = self._details(request, descriptor)
        details["buildSettings"] = settings

        self._enter(Stage.EXECUTING)
        self._save_snapshot(render_command(argv), details)
        started = time.monotonic()
        outcome = self._execute(argv, get_config().build_timeout)

        self._enter(Stage.PARSING)
        log_path = self._save_log(outcome, details, time.monotonic() - started)
        result = BuildResult(exit_code=outcome.exit_code, output=outcome.output, log_path=log_path)
        if not result.success:
            self._check_rejection(outcome, log_path)
            result.issues = parse_build_issues(outcome.exit_code, outcome.stdout, outcome.stderr)
            result.hints = diagnose_build_failure(outcome.stdout, outcome.stderr)
            self._enter(Stage.DONE)
            return result

        self._enter(Stage.LOCATING_ARTIFACT)
        result.app_path = find_app(request.derived_data_path)
        result.configuration_warning = detect_configuration_mismatch(result.app_path, request.configuration)
        if result.app_path is None:
            logger.info("[build %s] build succeeded but no app bundle was found", self.label)

        self._enter(Stage.DONE)
        return result


class TestProjectUseCase(_XcodeUseCase):
    __test__ = False
    kind = "test"

    def execute(self, request: TestRequest) -> TestResult:
        """
        Run the tests of an Xcode project or workspace.

        Simulator destinations are booted first; a generic simulator
        destination runs on the platform's default device.
        """
        self.label = request.project_path.name
        try:
            return self._run(request)
        except XCodeMCPError as e:
            self._fail(e)
            raise

    def _run(self, request: TestRequest) -> TestResult:
        self._enter(Stage.VALIDATING)
        if not isinstance(request, TestRequest):
            raise TypeError(f"Expected TestRequest, got {type(request).__name__}")

        self._enter(Stage.RESOLVING)
        descriptor = from_build_destination(request.destination, request.device_id)
        if isinstance(descriptor, GenericDestination) and descriptor.flavor is not BuildFlavor.DEVICE:
            # Tests need a concrete simulator to run on
            descriptor = self._boot(descriptor, descriptor.platform.default_device)
        elif self._needs_booted_simulator(descriptor):
            descriptor = self._boot(descriptor, request.device_id)
        settings = self._settings(descriptor)

        self._enter(Stage.BUILDING_COMMAND)
        argv = self.toolchain.xcodebuild.build_test(request, descriptor, settings)
        details = self._details(request, descriptor)
        details.update({"testTarget": request.test_target, "testFilter": request.test_filter})

        self._enter(Stage.EXECUTING)
        self._save_snapshot(render_command(argv), details)
        started = time.monotonic()
        outcome = self._execute(argv, get_config().test_timeout)

        self._enter(Stage.PARSING)
        log_path = self._save_log(outcome, details, time.monotonic() - started)
        result = parse_test_output(outcome.exit_code, outcome.stdout, outcome.stderr)
        result.log_path = log_path
        if outcome.exit_code != 0 and result.passed + result.failed == 0:
            self._check_rejection(outcome, log_path)

        self._enter(Stage.DONE)
        return result


class SwiftPackageUseCase(_UseCase):

    def execute(self, request: SwiftPackageRequest) -> Union[BuildResult, TestResult]:
        """
        Run swift build, test or run for a package.

        Returns:
            TestResult for the test action, BuildResult otherwise
        """
        self.kind = request.action.value
        self.label = request.name
        try:
            return self._run(request)
        except XCodeMCPError as e:
            self._fail(e)
            raise

    def _run(self, request: SwiftPackageRequest) -> Union[BuildResult, TestResult]:
        self._enter(Stage.VALIDATING)
        if not isinstance(request, SwiftPackageRequest):
            raise TypeError(f"Expected SwiftPackageRequest, got {type(request).__name__}")

        self._enter(Stage.BUILDING_COMMAND)
        argv = self.toolchain.swift.build(request)
        details = {
            "package": request.package_path,
            "action": request.action.value,
            "configuration": request.configuration,
            "target": request.target,
            "product": request.product,
            "testFilter": request.test_filter,
            "executable": request.executable,
        }

        self._enter(Stage.EXECUTING)
        self._save_snapshot(render_command(argv), details)
        config = get_config()
        timeout = {
            SwiftPackageAction.BUILD: config.build_timeout,
            SwiftPackageAction.TEST: config.test_timeout,
            SwiftPackageAction.RUN: config.run_timeout,
        }[request.action]
        started = time.monotonic()
        outcome = self._execute(argv, timeout)

        self._enter(Stage.PARSING)
        log_path = self._save_log(outcome, details, time.monotonic() - started)
        if request.action is SwiftPackageAction.TEST:
            result = parse_test_output(outcome.exit_code, outcome.stdout, outcome.stderr)
            result.log_path = log_path
        else:
            result = BuildResult(
                exit_code=outcome.exit_code,
                output=outcome.output,
                issues=parse_build_issues(outcome.exit_code, outcome.stdout, outcome.stderr),
                log_path=log_path,
            )

        self._enter(Stage.DONE)
        return result


def execute_request(request: Request, toolchain: Optional[Toolchain] = None) -> Union[BuildResult, TestResult]:
    """
    Dispatch a request to its use case.

    TestRequest is checked before BuildRequest because it extends it.
    """
    if isinstance(request, TestRequest):
        return TestProjectUseCase(toolchain).execute(request)
    elif isinstance(request, BuildRequest):
        return BuildProjectUseCase(toolchain).execute(request)
    elif isinstance(request, SwiftPackageRequest):
        return SwiftPackageUseCase(toolchain).execute(request)
    raise TypeError(f"Unsupported request type: {type(request).__name__}")
