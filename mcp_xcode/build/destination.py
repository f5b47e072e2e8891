#!/usr/bin/env python3
"""Destination resolution - platform and device identifier to xcodebuild destination"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from mcp_xcode.exceptions import ValidationError
from mcp_xcode.platforms import PlatformInfo, IOS, MACOS, TVOS, WATCHOS, VISIONOS
from mcp_xcode.security import ensure_safe_argument

UDID_PATTERN = re.compile(
    r"^[0-9A-F]{8}-[0-9A-F]{4}-[0-9A-F]{4}-[0-9A-F]{4}-[0-9A-F]{12}$",
    re.IGNORECASE,
)


def is_udid(identifier: str) -> bool:
    return bool(UDID_PATTERN.match(identifier))


class BuildFlavor(Enum):
    HOST_ARCH = "host_arch"    # restrict to the host architecture (fast path)
    UNIVERSAL = "universal"    # every architecture the project declares
    DEVICE = "device"          # physical device SDK


@dataclass(frozen=True)
class GenericDestination:
    platform: PlatformInfo
    flavor: BuildFlavor = BuildFlavor.HOST_ARCH


@dataclass(frozen=True)
class DeviceByIdDestination:
    platform: PlatformInfo
    udid: str
    flavor: BuildFlavor = BuildFlavor.HOST_ARCH


@dataclass(frozen=True)
class DeviceByNameDestination:
    platform: PlatformInfo
    name: str
    flavor: BuildFlavor = BuildFlavor.HOST_ARCH


@dataclass(frozen=True)
class NativePlatformDestination:
    platform: PlatformInfo
    universal: bool = False


DestinationDescriptor = Union[GenericDestination, DeviceByIdDestination,
                              DeviceByNameDestination, NativePlatformDestination]


class BuildDestination(Enum):
    """Destinations accepted by the build and test tools."""
    IOS_SIMULATOR = "iOSSimulator"
    IOS_DEVICE = "iOSDevice"
    IOS_SIMULATOR_UNIVERSAL = "iOSSimulatorUniversal"
    MACOS = "macOS"
    MACOS_UNIVERSAL = "macOSUniversal"
    TVOS_SIMULATOR = "tvOSSimulator"
    TVOS_DEVICE = "tvOSDevice"
    TVOS_SIMULATOR_UNIVERSAL = "tvOSSimulatorUniversal"
    WATCHOS_SIMULATOR = "watchOSSimulator"
    WATCHOS_DEVICE = "watchOSDevice"
    WATCHOS_SIMULATOR_UNIVERSAL = "watchOSSimulatorUniversal"
    VISIONOS_SIMULATOR = "visionOSSimulator"
    VISIONOS_DEVICE = "visionOSDevice"
    VISIONOS_SIMULATOR_UNIVERSAL = "visionOSSimulatorUniversal"

    @classmethod
    def parse(cls, value: Union[str, "BuildDestination"]) -> "BuildDestination":
        """Accept the enum value itself or its string form, ignoring case."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            wanted = value.strip().lower()
            for destination in cls:
                if destination.value.lower() == wanted:
                    return destination
        valid = ", ".join(d.value for d in cls)
        raise ValidationError(f"Unknown destination '{value}'. Valid destinations: {valid}",
                              field="destination")

    @property
    def platform(self) -> PlatformInfo:
        return _DESTINATION_TABLE[self][0]

    @property
    def flavor(self) -> BuildFlavor:
        return _DESTINATION_TABLE[self][1]


_DESTINATION_TABLE = {
    BuildDestination.IOS_SIMULATOR: (IOS, BuildFlavor.HOST_ARCH),
    BuildDestination.IOS_DEVICE: (IOS, BuildFlavor.DEVICE),
    BuildDestination.IOS_SIMULATOR_UNIVERSAL: (IOS, BuildFlavor.UNIVERSAL),
    BuildDestination.MACOS: (MACOS, BuildFlavor.HOST_ARCH),
    BuildDestination.MACOS_UNIVERSAL: (MACOS, BuildFlavor.UNIVERSAL),
    BuildDestination.TVOS_SIMULATOR: (TVOS, BuildFlavor.HOST_ARCH),
    BuildDestination.TVOS_DEVICE: (TVOS, BuildFlavor.DEVICE),
    BuildDestination.TVOS_SIMULATOR_UNIVERSAL: (TVOS, BuildFlavor.UNIVERSAL),
    BuildDestination.WATCHOS_SIMULATOR: (WATCHOS, BuildFlavor.HOST_ARCH),
    BuildDestination.WATCHOS_DEVICE: (WATCHOS, BuildFlavor.DEVICE),
    BuildDestination.WATCHOS_SIMULATOR_UNIVERSAL: (WATCHOS, BuildFlavor.UNIVERSAL),
    BuildDestination.VISIONOS_SIMULATOR: (VISIONOS, BuildFlavor.HOST_ARCH),
    BuildDestination.VISIONOS_DEVICE: (VISIONOS, BuildFlavor.DEVICE),
    BuildDestination.VISIONOS_SIMULATOR_UNIVERSAL: (VISIONOS, BuildFlavor.UNIVERSAL),
}


def resolve(platform: PlatformInfo,
            device_identifier: Optional[str] = None,
            flavor: BuildFlavor = BuildFlavor.HOST_ARCH) -> DestinationDescriptor:
    """
    Classify a platform and optional device identifier into a destination.

    Args:
        platform: The target platform
        device_identifier: Simulator UDID or device name. Silently ignored for
            platforms that run natively (macOS).
        flavor: Architecture/SDK flavor of the build

    Returns:
        One of the DestinationDescriptor variants

    Raises:
        ValidationError: If the identifier is blank or unsafe
    """
    if not platform.requires_simulator:
        return NativePlatformDestination(platform, universal=flavor is BuildFlavor.UNIVERSAL)

    if device_identifier is None:
        return GenericDestination(platform, flavor)

    identifier = ensure_safe_argument(device_identifier, "device_id").strip()
    if not identifier:
        raise ValidationError("device_id cannot be empty", field="device_id")

    if is_udid(identifier):
        return DeviceByIdDestination(platform, identifier, flavor)
    return DeviceByNameDestination(platform, identifier, flavor)


def from_build_destination(destination: BuildDestination,
                           device_identifier: Optional[str] = None) -> DestinationDescriptor:
    return resolve(destination.platform, device_identifier, destination.flavor)


def _target_platform(platform: PlatformInfo, flavor: BuildFlavor) -> str:
    if flavor is BuildFlavor.DEVICE:
        return platform.internal_name
    return platform.simulator_platform


def destination_string(descriptor: DestinationDescriptor) -> str:
    """Render the -destination argument; the internal platform token only appears here."""
    if isinstance(descriptor, NativePlatformDestination):
        return f"platform={descriptor.platform.internal_name}"
    elif isinstance(descriptor, GenericDestination):
        return f"generic/platform={_target_platform(descriptor.platform, descriptor.flavor)}"
    elif isinstance(descriptor, DeviceByIdDestination):
        return f"platform={_target_platform(descriptor.platform, descriptor.flavor)},id={descriptor.udid}"
    elif isinstance(descriptor, DeviceByNameDestination):
        return f"platform={_target_platform(descriptor.platform, descriptor.flavor)},name={descriptor.name}"
    raise TypeError(f"Unsupported destination descriptor: {descriptor!r}")


def restricts_architecture(descriptor: DestinationDescriptor) -> bool:
    """True when the build should be limited to the host architecture."""
    if isinstance(descriptor, NativePlatformDestination):
        return not descriptor.universal
    if isinstance(descriptor, GenericDestination):
        return descriptor.flavor is BuildFlavor.HOST_ARCH
    # A concrete device already pins a single architecture
    return False


def build_settings(descriptor: DestinationDescriptor, native_arch: Optional[str]) -> List[str]:
    """
    Extra build settings for the destination.

    Args:
        descriptor: Resolved destination
        native_arch: Host architecture, or None when detection failed

    Returns:
        ['ARCHS=<arch>', 'ONLY_ACTIVE_ARCH=YES'] for host-architecture builds,
        otherwise an empty list (build every architecture)
    """
    if not native_arch or not restricts_architecture(descriptor):
        return []
    return [f"ARCHS={native_arch}", "ONLY_ACTIVE_ARCH=YES"]


def describe(descriptor: DestinationDescriptor) -> Tuple[str, Optional[str]]:
    """Caller-facing (platform name, device) pair; never uses the internal token."""
    if isinstance(descriptor, DeviceByIdDestination):
        return descriptor.platform.name, descriptor.udid
    if isinstance(descriptor, DeviceByNameDestination):
        return descriptor.platform.name, descriptor.name
    return descriptor.platform.name, None
