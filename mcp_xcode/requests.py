#!/usr/bin/env python3
"""Validated request values for the build, test and Swift package operations"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

from mcp_xcode.build.destination import BuildDestination
from mcp_xcode.config_manager import get_derived_data_path, project_name
from mcp_xcode.exceptions import ValidationError
from mcp_xcode.security import (
    ensure_safe_argument,
    ensure_safe_path,
    validate_and_normalize_package_path,
    validate_and_normalize_project_path,
)

DEFAULT_CONFIGURATION = "Debug"


@dataclass(frozen=True)
class ProjectPath:
    """Normalized path of an existing .xcodeproj, .xcworkspace or Swift package directory"""
    path: str

    @classmethod
    def create(cls, value: str, allow_package: bool = False) -> "ProjectPath":
        return cls(validate_and_normalize_project_path(value, allow_package=allow_package))

    @property
    def name(self) -> str:
        return project_name(self.path)

    @property
    def is_workspace(self) -> bool:
        return self.path.endswith(".xcworkspace")

    @property
    def is_package(self) -> bool:
        return not self.path.endswith((".xcodeproj", ".xcworkspace"))

    def __str__(self):
        return self.path


def _optional(value: Optional[str], field: str) -> Optional[str]:
    """Treat None and blank strings as absent; reject unsafe characters otherwise."""
    if value is None:
        return None
    value = ensure_safe_argument(value, field).strip()
    return value or None


def _required(value: Optional[str], field: str, default: str) -> str:
    value = _optional(value, field)
    return value if value is not None else default


@dataclass(frozen=True)
class BuildRequest:
    project_path: ProjectPath
    destination: BuildDestination
    configuration: str
    derived_data_path: str
    scheme: Optional[str] = None
    device_id: Optional[str] = None

    @classmethod
    def create(cls,
               project_path: str,
               scheme: Optional[str] = None,
               destination: Union[str, BuildDestination] = BuildDestination.IOS_SIMULATOR,
               device_id: Optional[str] = None,
               configuration: Optional[str] = None,
               derived_data_path: Optional[str] = None,
               **extra) -> "BuildRequest":
        """
        Validate raw tool arguments into a request.

        Every string is checked for unsafe content before the project path is
        looked up on disk.

        Raises:
            ValidationError: Malformed or unsafe input
            ProjectNotFoundError: The project path does not exist
        """
        destination = BuildDestination.parse(destination)
        scheme = _optional(scheme, "scheme")
        configuration = _required(configuration, "configuration", DEFAULT_CONFIGURATION)
        if device_id is not None:
            device_id = ensure_safe_argument(device_id, "device_id").strip()
            if not device_id:
                raise ValidationError("device_id cannot be empty", field="device_id")
        if derived_data_path is not None:
            derived_data_path = ensure_safe_path(derived_data_path, "derived_data_path").strip() or None

        project = ProjectPath.create(project_path)

        return cls(
            project_path=project,
            destination=destination,
            configuration=configuration,
            derived_data_path=derived_data_path or get_derived_data_path(project.path),
            scheme=scheme,
            device_id=device_id,
            **extra,
        )


@dataclass(frozen=True)
class TestRequest(BuildRequest):
    __test__ = False

    test_target: Optional[str] = None
    test_filter: Optional[str] = None

    @classmethod
    def create(cls, project_path: str, test_target: Optional[str] = None,
               test_filter: Optional[str] = None, **kwargs) -> "TestRequest":
        return super().create(project_path,
                              test_target=_optional(test_target, "test_target"),
                              test_filter=_optional(test_filter, "test_filter"),
                              **kwargs)


class SwiftPackageAction(Enum):
    BUILD = "build"
    TEST = "test"
    RUN = "run"


SWIFT_CONFIGURATIONS = ("Debug", "Release")


@dataclass(frozen=True)
class SwiftPackageRequest:
    package_path: str
    action: SwiftPackageAction
    configuration: str = DEFAULT_CONFIGURATION
    target: Optional[str] = None
    product: Optional[str] = None
    test_filter: Optional[str] = None
    executable: Optional[str] = None
    arguments: Tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return os.path.basename(self.package_path)

    @classmethod
    def create(cls,
               package_path: str,
               action: Union[str, SwiftPackageAction] = SwiftPackageAction.BUILD,
               configuration: Optional[str] = None,
               target: Optional[str] = None,
               product: Optional[str] = None,
               test_filter: Optional[str] = None,
               executable: Optional[str] = None,
               arguments: Optional[Sequence[str]] = None) -> "SwiftPackageRequest":
        """
        Validate raw tool arguments for swift build/test/run.

        Swift packages only know the Debug and Release configurations.
        """
        try:
            action = SwiftPackageAction(action.value if isinstance(action, SwiftPackageAction) else str(action).lower())
        except ValueError:
            raise ValidationError(f"Unknown swift package action '{action}'", field="action")

        configuration = _required(configuration, "configuration", DEFAULT_CONFIGURATION)
        matches = [c for c in SWIFT_CONFIGURATIONS if c.lower() == configuration.lower()]
        if not matches:
            raise ValidationError("configuration must be 'Debug' or 'Release' for Swift packages",
                                  field="configuration")

        if isinstance(arguments, str):
            raise ValidationError("arguments must be a list of strings", field="arguments")
        checked_arguments = tuple(ensure_safe_argument(a, "arguments") for a in (arguments or ()))

        fields = dict(
            configuration=matches[0],
            target=_optional(target, "target"),
            product=_optional(product, "product"),
            test_filter=_optional(test_filter, "test_filter"),
            executable=_optional(executable, "executable"),
            arguments=checked_arguments,
        )
        return cls(package_path=validate_and_normalize_package_path(package_path), action=action, **fields)


# The closed set of requests the orchestration layer accepts
Request = Union[BuildRequest, TestRequest, SwiftPackageRequest]
