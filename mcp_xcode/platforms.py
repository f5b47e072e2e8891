#!/usr/bin/env python3
"""Apple platform registry - one shared PlatformInfo per logical platform"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional, Tuple

from mcp_xcode.exceptions import ValidationError


@dataclass(frozen=True, eq=False)
class PlatformInfo:
    """
    Facts about one Apple platform.

    Instances are shared: every alias of a platform resolves to the same
    object, so identity comparison (``is``) is the intended way to compare.
    """
    name: str
    internal_name: str
    requires_simulator: bool
    default_device: Optional[str]
    simulator_sdk: Optional[str]
    device_sdk: str
    aliases: Tuple[str, ...] = ()

    @property
    def simulator_platform(self) -> str:
        """Destination platform token for the simulator, e.g. 'xrOS Simulator'"""
        return f"{self.internal_name} Simulator"

    def generate_destination(self, device_identifier: Optional[str] = None) -> str:
        """
        Render an xcodebuild -destination value for this platform.

        Args:
            device_identifier: Simulator UDID or device name. Ignored for macOS.

        Returns:
            The destination string
        """
        from mcp_xcode.build.destination import resolve, destination_string
        return destination_string(resolve(self, device_identifier))

    @staticmethod
    def parse(alias: str) -> "PlatformInfo":
        """
        Look up a platform by canonical name or alias, ignoring case.

        Raises:
            ValidationError: If the alias is not recognized
        """
        if not isinstance(alias, str):
            raise ValidationError("platform must be a string", field="platform")
        platform = PLATFORMS_BY_ALIAS.get(alias.strip().lower())
        if platform is None:
            valid = ", ".join(p.name for p in ALL_PLATFORMS)
            raise ValidationError(f"Unknown platform '{alias}'. Valid platforms: {valid}", field="platform")
        return platform

    def __repr__(self):
        return f"PlatformInfo({self.name})"


IOS = PlatformInfo(
    name="iOS",
    internal_name="iOS",
    requires_simulator=True,
    default_device="iPhone 16 Pro",
    simulator_sdk="iphonesimulator",
    device_sdk="iphoneos",
    aliases=("ios", "iphonesimulator", "iphoneos"),
)
MACOS = PlatformInfo(
    name="macOS",
    internal_name="macOS",
    requires_simulator=False,
    default_device=None,
    simulator_sdk=None,
    device_sdk="macosx",
    aliases=("macos", "mac", "osx", "macosx"),
)
TVOS = PlatformInfo(
    name="tvOS",
    internal_name="tvOS",
    requires_simulator=True,
    default_device="Apple TV",
    simulator_sdk="appletvsimulator",
    device_sdk="appletvos",
    aliases=("tvos", "appletv", "appletvsimulator"),
)
WATCHOS = PlatformInfo(
    name="watchOS",
    internal_name="watchOS",
    requires_simulator=True,
    default_device="Apple Watch Series 10 (46mm)",
    simulator_sdk="watchsimulator",
    device_sdk="watchos",
    aliases=("watchos", "watch", "watchsimulator"),
)
VISIONOS = PlatformInfo(
    name="visionOS",
    internal_name="xrOS",
    requires_simulator=True,
    default_device="Apple Vision Pro",
    simulator_sdk="xrsimulator",
    device_sdk="xros",
    aliases=("visionos", "vision", "xros", "xrsimulator"),
)

ALL_PLATFORMS = (IOS, MACOS, TVOS, WATCHOS, VISIONOS)


def _build_alias_table():
    table = {}
    for platform in ALL_PLATFORMS:
        for alias in (platform.name, platform.internal_name) + platform.aliases:
            table[alias.lower()] = platform
    return MappingProxyType(table)


PLATFORMS_BY_ALIAS = _build_alias_table()
