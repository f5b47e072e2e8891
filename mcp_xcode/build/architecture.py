#!/usr/bin/env python3
"""Host CPU architecture detection"""

import logging
from typing import Optional

from mcp_xcode.build.executor import CommandExecutor
from mcp_xcode.exceptions import XCodeMCPError

logger = logging.getLogger(__name__)

DETECT_TIMEOUT = 5
KNOWN_ARCHITECTURES = ("arm64", "x86_64")

_UNSET = object()


class ArchitectureDetector:
    """
    Detects the host architecture once and caches the answer.

    ``detect_native_arch`` returns None when detection fails, which callers
    treat as "build every architecture". The cache holds that None too.
    """

    def __init__(self, executor: Optional[CommandExecutor] = None):
        self._executor = executor or CommandExecutor(default_timeout=DETECT_TIMEOUT)
        self._cached = _UNSET

    def detect_native_arch(self) -> Optional[str]:
        # Concurrent first callers may both detect; the answer is the same.
        if self._cached is _UNSET:
            self._cached = self._detect()
        return self._cached

    def reset(self):
        self._cached = _UNSET

    def _detect(self) -> Optional[str]:
        # sysctl first: under Rosetta, uname reports x86_64 on Apple silicon
        if self._run(["sysctl", "-n", "hw.optional.arm64"]) == "1":
            logger.debug("Host architecture: arm64 (sysctl)")
            return "arm64"

        machine = self._run(["uname", "-m"])
        if machine in KNOWN_ARCHITECTURES:
            logger.debug("Host architecture: %s (uname)", machine)
            return machine

        logger.warning("Could not detect host architecture; building all architectures")
        return None

    def _run(self, argv) -> Optional[str]:
        try:
            outcome = self._executor.execute(argv, timeout=DETECT_TIMEOUT)
        except XCodeMCPError as e:
            logger.debug("Architecture check %s failed: %s", argv[0], e.message)
            return None
        if outcome.exit_code != 0:
            return None
        return outcome.stdout.strip()


_shared_detector: Optional[ArchitectureDetector] = None


def get_architecture_detector() -> ArchitectureDetector:
    """Process-wide detector used by the default tool wiring"""
    global _shared_detector
    if _shared_detector is None:
        _shared_detector = ArchitectureDetector()
    return _shared_detector
