#!/usr/bin/env python3
"""Command builders for xcodebuild and swift package invocations"""

from typing import List, Optional, Sequence

from mcp_xcode.build.destination import DestinationDescriptor, destination_string
from mcp_xcode.requests import BuildRequest, TestRequest, SwiftPackageRequest, SwiftPackageAction, ProjectPath
from mcp_xcode.security import ensure_safe_argument, ensure_safe_path


def only_testing_identifier(test_target: Optional[str], test_filter: Optional[str]) -> Optional[str]:
    """
    Combine a test target and filter into an -only-testing identifier.

    'MyAppTests' + 'LoginTests' -> 'MyAppTests/LoginTests'
    'MyAppTests' + 'LoginTests/testLogout' -> 'MyAppTests/LoginTests/testLogout'
    A filter that already starts with the target is used as-is.
    """
    if test_filter and test_target:
        if test_filter == test_target or test_filter.startswith(test_target + "/"):
            return test_filter
        return f"{test_target}/{test_filter}"
    return test_filter or test_target


class XcodeBuildCommandBuilder:
    """Assembles xcodebuild argument lists from validated requests."""

    def __init__(self, xcodebuild: str = "xcodebuild"):
        self.xcodebuild = xcodebuild

    def _project_flags(self, project: ProjectPath) -> List[str]:
        path = ensure_safe_path(project.path, "project_path")
        flag = "-workspace" if project.is_workspace else "-project"
        return [flag, path]

    def _common(self, request: BuildRequest, descriptor: DestinationDescriptor) -> List[str]:
        argv = [self.xcodebuild] + self._project_flags(request.project_path)
        if request.scheme:
            argv += ["-scheme", ensure_safe_argument(request.scheme, "scheme")]
        argv += ["-configuration", ensure_safe_argument(request.configuration, "configuration")]
        argv += ["-destination", ensure_safe_argument(destination_string(descriptor), "destination")]
        argv += ["-derivedDataPath", ensure_safe_path(request.derived_data_path, "derived_data_path")]
        return argv

    def build(self,
              request: BuildRequest,
              descriptor: DestinationDescriptor,
              settings: Sequence[str] = ()) -> List[str]:
        """
        xcodebuild build command.

        Args:
            request: Validated build request
            descriptor: Resolved destination
            settings: Extra build settings such as ARCHS=arm64

        Returns:
            Argument list, ready for the executor
        """
        argv = self._common(request, descriptor)
        argv += [ensure_safe_argument(s, "build setting") for s in settings]
        argv.append("build")
        return argv

    def build_test(self,
                   request: TestRequest,
                   descriptor: DestinationDescriptor,
                   settings: Sequence[str] = ()) -> List[str]:
        """xcodebuild test command, optionally limited with -only-testing"""
        argv = self._common(request, descriptor)
        identifier = only_testing_identifier(request.test_target, request.test_filter)
        if identifier:
            argv.append(f"-only-testing:{ensure_safe_argument(identifier, 'test_filter')}")
        # Parallel runs clone simulators and interleave output
        argv += ["-parallel-testing-enabled", "NO"]
        argv += [ensure_safe_argument(s, "build setting") for s in settings]
        argv.append("test")
        return argv

    def list_schemes(self, project: ProjectPath) -> List[str]:
        return [self.xcodebuild, "-list", "-json"] + self._project_flags(project)

    def clean(self,
              project: ProjectPath,
              scheme: Optional[str] = None,
              configuration: str = "Debug",
              derived_data_path: Optional[str] = None) -> List[str]:
        """xcodebuild clean for one scheme and configuration"""
        argv = [self.xcodebuild, "clean"] + self._project_flags(project)
        if scheme:
            argv += ["-scheme", ensure_safe_argument(scheme, "scheme")]
        argv += ["-configuration", ensure_safe_argument(configuration, "configuration")]
        if derived_data_path:
            argv += ["-derivedDataPath", ensure_safe_path(derived_data_path, "derived_data_path")]
        return argv

    def show_build_settings(self,
                            project: ProjectPath,
                            scheme: str,
                            configuration: str = "Debug") -> List[str]:
        """xcodebuild -showBuildSettings as JSON"""
        return ([self.xcodebuild, "-showBuildSettings", "-json"] + self._project_flags(project) +
                ["-scheme", ensure_safe_argument(scheme, "scheme"),
                 "-configuration", ensure_safe_argument(configuration, "configuration")])


class SwiftPackageCommandBuilder:
    """Assembles swift build/test/run argument lists."""

    def __init__(self, swift: str = "swift"):
        self.swift = swift

    def build(self, request: SwiftPackageRequest) -> List[str]:
        argv = [self.swift, request.action.value,
                "--package-path", ensure_safe_path(request.package_path, "package_path"),
                "-c", request.configuration.lower()]

        if request.action is SwiftPackageAction.BUILD:
            if request.product:
                argv += ["--product", ensure_safe_argument(request.product, "product")]
            if request.target:
                argv += ["--target", ensure_safe_argument(request.target, "target")]
        elif request.action is SwiftPackageAction.TEST:
            if request.test_filter:
                argv += ["--filter", ensure_safe_argument(request.test_filter, "test_filter")]
        elif request.action is SwiftPackageAction.RUN:
            if request.executable:
                argv.append(ensure_safe_argument(request.executable, "executable"))
            argv += [ensure_safe_argument(a, "arguments") for a in request.arguments]
        return argv
