#!/usr/bin/env python3
"""Result values produced by the build and test pipeline"""

from dataclasses import dataclass, field
from typing import List, Optional

ERROR = "error"
WARNING = "warning"


@dataclass(frozen=True)
class Issue:
    """A compiler or tool diagnostic."""
    severity: str
    message: str
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    @property
    def is_error(self) -> bool:
        return self.severity == ERROR

    @property
    def location(self) -> Optional[str]:
        """file:line:col (or the parts that are known)"""
        if not self.file:
            return None
        parts = [self.file]
        if self.line is not None:
            parts.append(str(self.line))
            if self.column is not None:
                parts.append(str(self.column))
        return ":".join(parts)

    def __str__(self):
        location = self.location
        return f"{location}: {self.message}" if location else self.message


@dataclass(frozen=True)
class FailureHint:
    """A recognized failure category with a suggested remedy."""
    kind: str
    title: str
    details: str = ""
    suggestion: str = ""


@dataclass
class BuildResult:
    exit_code: int
    output: str
    issues: List[Issue] = field(default_factory=list)
    app_path: Optional[str] = None
    log_path: Optional[str] = None
    configuration_warning: Optional[str] = None
    hints: List[FailureHint] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def errors(self) -> List[Issue]:
        return [i for i in self.issues if i.is_error]

    @property
    def warnings(self) -> List[Issue]:
        return [i for i in self.issues if not i.is_error]


@dataclass(frozen=True)
class FailingTest:
    identifier: str
    reason: str = ""

    @property
    def method(self) -> str:
        """Last component of the identifier, e.g. 'testLogout'"""
        return self.identifier.rsplit("/", 1)[-1]


@dataclass
class TestResult:
    __test__ = False

    exit_code: int
    passed: int
    failed: int
    output: str
    failing_tests: List[FailingTest] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)
    log_path: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and self.failed == 0

    @property
    def summary(self) -> str:
        return f"{self.passed} passed, {self.failed} failed"
