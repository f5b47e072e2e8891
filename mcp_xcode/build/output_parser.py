#!/usr/bin/env python3
"""
Parsers for xcodebuild and swift output.

All matching of native tool text lives here. Every function is pure and
never raises on unrecognized text; it returns empty or partial results.
"""

import logging
import re
from collections import OrderedDict
from typing import Dict, List, Optional, Tuple

from mcp_xcode.results import ERROR, WARNING, Issue, FailureHint, FailingTest, TestResult

logger = logging.getLogger(__name__)

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")
LINE_MARKERS = (("❌", ERROR), ("⚠️", WARNING), ("⚠", WARNING))
ARCH_TAG = re.compile(r"^\[[\w\-]+\]\s*")
XCBEAUTIFY_HEADER = re.compile(r"xcbeautify|^---|^Version:")

LOCATED_ISSUE = re.compile(
    r"^(?P<file>.+?):(?P<line>\d+):(?:(?P<column>\d+):)?\s+"
    r"(?P<severity>(?:fatal )?error|warning):\s+(?P<message>.+)$"
)
TOOL_ISSUE = re.compile(
    r"^(?:(?P<tool>[\w.\-]+):\s+)?(?P<severity>(?:fatal )?error|warning):\s+(?P<message>.+)$"
)
# xcbeautify drops the severity keyword and keeps only its marker
MARKED_LOCATED_ISSUE = re.compile(r"^(?P<file>[^:\s][^:]*):(?P<line>\d+):(?:(?P<column>\d+):)?\s*(?P<message>.+)$")

# XCTest
XCTEST_TOP_SUMMARY = re.compile(
    r"Test Suite '(?:All tests|Selected tests)' (?:passed|failed)[^\n]*\n[^\n]*?"
    r"Executed (\d+) tests?, with (\d+) failures?"
)
XCTEST_EXECUTED = re.compile(r"Executed (\d+) tests?, with (\d+) failures?")
XCTEST_CASE_RESULT = re.compile(r"Test [Cc]ase '(?P<name>[^']+)' (?P<result>passed|failed)")
XCTEST_ASSERTION = re.compile(
    r"^(?P<file>.+?):(?P<line>\d+): error: (?P<name>-\[[^\]]+\]|[\w.]+) : (?P<reason>.+)$"
)

# Swift Testing
SWIFT_TESTING_PASSED = re.compile(r"✔ Test run with (\d+) tests? (?:in \d+ suites? )?passed")
SWIFT_TESTING_MIXED = re.compile(r"✘ Test run with \d+ tests? \((\d+) passed, (\d+) failed\)")
SWIFT_TESTING_FAILED = re.compile(r"✘ Test run with (\d+) tests? (?:in \d+ suites? )?failed")
SWIFT_TESTING_NAME = r'(?:"(?P<quoted>[^"]+)"|(?P<func>\w+)\(\))'
SWIFT_TESTING_TEST_PASSED = re.compile(r"✔ Test " + SWIFT_TESTING_NAME + r" passed")
SWIFT_TESTING_TEST_FAILED = re.compile(r"✘ Test " + SWIFT_TESTING_NAME + r" failed")
SWIFT_TESTING_ISSUE = re.compile(
    r"✘ Test " + SWIFT_TESTING_NAME + r" recorded an issue(?: at \S+?)?: (?P<reason>.+)$"
)

GENERIC_SUMMARY = re.compile(r"(\d+) passed, (\d+) failed")

# Rejections
SCHEME_REJECTION = re.compile(r'xcodebuild: error:.*scheme\s+(?:named\s+)?"([^"]+)"', re.IGNORECASE)
CONFIGURATION_REJECTION = re.compile(r"configuration.*not found|invalid configuration", re.IGNORECASE)
CONFIGURATION_NAME = re.compile(r'configuration\s+"([^"]+)"', re.IGNORECASE)


def _split_marker(line: str) -> Tuple[Optional[str], str]:
    """Strip colour codes, a leading xcbeautify marker and an architecture tag.

    Returns:
        (severity implied by the marker or None, cleaned line)
    """
    line = ANSI_ESCAPE.sub("", line).strip()
    marked = None
    for marker, severity in LINE_MARKERS:
        if line.startswith(marker):
            line = line[len(marker):].lstrip()
            marked = severity
            break
    return marked, ARCH_TAG.sub("", line)


def clean_line(line: str) -> str:
    """Strip colour codes, xcbeautify markers and architecture tags from a line."""
    return _split_marker(line)[1]


def _marked_lines(stdout: str, stderr: str) -> List[Tuple[Optional[str], str]]:
    text = "\n".join(part for part in (stdout, stderr) if part)
    return [_split_marker(line) for line in text.splitlines()]


def _lines(stdout: str, stderr: str) -> List[str]:
    return [line for _, line in _marked_lines(stdout, stderr)]


def _severity(keyword: str) -> str:
    # clang reports missing headers as "fatal error"
    return ERROR if "error" in keyword else WARNING


def _located(match, severity: str) -> Issue:
    return Issue(
        severity=severity,
        message=match.group("message").strip(),
        file=match.group("file"),
        line=int(match.group("line")),
        column=int(match.group("column")) if match.group("column") else None,
    )


def _parse_issue(line: str, marked: Optional[str] = None) -> Optional[Issue]:
    match = LOCATED_ISSUE.match(line)
    if match:
        return _located(match, _severity(match.group("severity")))
    match = TOOL_ISSUE.match(line)
    if match:
        return Issue(severity=_severity(match.group("severity")), message=match.group("message").strip())
    if marked is None or XCBEAUTIFY_HEADER.search(line):
        return None
    match = MARKED_LOCATED_ISSUE.match(line)
    if match:
        return _located(match, marked)
    return Issue(severity=marked, message=line)


def parse_build_issues(exit_code: int, stdout: str, stderr: str) -> List[Issue]:
    """
    Extract diagnostics from build output.

    Args:
        exit_code: Exit status of the build
        stdout: Captured standard output
        stderr: Captured standard error

    Returns:
        Issues in order of first appearance. Empty when the build succeeded,
        since successful logs can contain error-like text.

    The same (file, line, message) reported once per architecture is kept
    only once. Two genuinely different diagnostics that happen to share
    that tuple are collapsed as well.
    """
    if exit_code == 0:
        return []

    issues: "OrderedDict[Tuple[Optional[str], Optional[int], str], Issue]" = OrderedDict()
    for marked, line in _marked_lines(stdout, stderr):
        if not line:
            continue
        issue = _parse_issue(line, marked)
        if issue is None:
            continue
        key = (issue.file, issue.line, issue.message)
        if key not in issues:
            issues[key] = issue

    logger.debug("Parsed %d issue(s) from build output", len(issues))
    return list(issues.values())


def _xctest_identifier(name: str) -> str:
    """'-[MyAppTests.LoginTests testLogout]' -> 'MyAppTests/LoginTests/testLogout'"""
    if name.startswith("-[") and name.endswith("]"):
        name = name[2:-1].replace(" ", "/", 1)
    if name.endswith("()"):
        name = name[:-2]
    return name.replace(".", "/")


def _swift_testing_name(match) -> str:
    return match.group("quoted") or match.group("func")


def _failing_tests(lines: List[str]) -> List[FailingTest]:
    failures: "OrderedDict[str, str]" = OrderedDict()

    def record(identifier: str, reason: Optional[str]):
        if identifier not in failures:
            failures[identifier] = reason or ""
        elif reason and not failures[identifier]:
            failures[identifier] = reason

    for line in lines:
        match = XCTEST_ASSERTION.match(line)
        if match:
            record(_xctest_identifier(match.group("name")), match.group("reason").strip())
            continue
        match = XCTEST_CASE_RESULT.search(line)
        if match:
            if match.group("result") == "failed":
                record(_xctest_identifier(match.group("name")), None)
            continue
        match = SWIFT_TESTING_ISSUE.search(line)
        if match:
            record(_swift_testing_name(match), match.group("reason").strip())
            continue
        match = SWIFT_TESTING_TEST_FAILED.search(line)
        if match:
            record(_swift_testing_name(match), None)

    return [FailingTest(identifier, reason) for identifier, reason in failures.items()]


def _xctest_counts(text: str, lines: List[str]) -> Optional[Tuple[int, int]]:
    summaries = XCTEST_TOP_SUMMARY.findall(text) or XCTEST_EXECUTED.findall(text)
    case_results: Dict[str, str] = {}
    for line in lines:
        match = XCTEST_CASE_RESULT.search(line)
        if match:
            case_results[match.group("name")] = match.group("result")
    failed_cases = sum(1 for result in case_results.values() if result == "failed")

    if summaries:
        total, failures = (int(n) for n in summaries[-1])
        # One test can record several assertion failures; prefer the case count
        failed = failed_cases if 0 < failed_cases <= failures else failures
        return max(total - failed, 0), failed

    if case_results:
        return len(case_results) - failed_cases, failed_cases
    return None


def _swift_testing_counts(text: str) -> Optional[Tuple[int, int]]:
    match = SWIFT_TESTING_PASSED.search(text)
    if match:
        return int(match.group(1)), 0
    match = SWIFT_TESTING_MIXED.search(text)
    if match:
        return int(match.group(1)), int(match.group(2))

    passed = len(SWIFT_TESTING_TEST_PASSED.findall(text))
    match = SWIFT_TESTING_FAILED.search(text)
    if match:
        total = int(match.group(1))
        return passed, max(total - passed, 0)

    failed = len({_swift_testing_name(m) for m in SWIFT_TESTING_TEST_FAILED.finditer(text)})
    if passed or failed:
        return passed, failed
    return None


def parse_test_output(exit_code: int, stdout: str, stderr: str) -> TestResult:
    """
    Summarize a test run.

    XCTest and Swift Testing summaries are both recognized and added
    together when a run used both frameworks. Counts come from the
    summary lines; failing tests are listed in order of first appearance.
    Compile diagnostics are attached only when no test ran at all.
    """
    lines = _lines(stdout, stderr)
    text = "\n".join(lines)

    counts = [c for c in (_xctest_counts(text, lines), _swift_testing_counts(text)) if c is not None]
    if counts:
        passed = sum(c[0] for c in counts)
        failed = sum(c[1] for c in counts)
    else:
        generic = GENERIC_SUMMARY.findall(text)
        passed, failed = (int(n) for n in generic[-1]) if generic else (0, 0)

    failing_tests = _failing_tests(lines)
    issues = []
    if exit_code != 0 and passed + failed == 0:
        issues = parse_build_issues(exit_code, stdout, stderr)

    logger.debug("Parsed test output: %d passed, %d failed, %d failing test(s)",
                 passed, failed, len(failing_tests))
    return TestResult(
        exit_code=exit_code,
        passed=passed,
        failed=failed,
        output="\n".join(part for part in (stdout, stderr) if part),
        failing_tests=failing_tests,
        issues=issues,
    )


def detect_scheme_or_configuration_error(stdout: str, stderr: str) -> Optional[Tuple[str, str]]:
    """
    Recognize xcodebuild rejecting the scheme or configuration.

    Returns:
        ('scheme' | 'configuration', detail) or None
    """
    for line in _lines(stdout, stderr):
        match = SCHEME_REJECTION.search(line)
        if match:
            return "scheme", f'Scheme not found: "{match.group(1)}"'
        if line.startswith("xcodebuild: error:") and "scheme" in line.lower():
            return "scheme", line[len("xcodebuild: error:"):].strip()
        if "error" in line.lower() and CONFIGURATION_REJECTION.search(line):
            name = CONFIGURATION_NAME.search(line)
            if name:
                return "configuration", f'Configuration "{name.group(1)}" not found'
            return "configuration", line
    return None


_HINT_RULES = (
    (re.compile(r"code\s*sign(ing)?\s*error|no signing certificate", re.IGNORECASE),
     "signing", "Code signing failed",
     "Check your Keychain for valid certificates or use automatic signing"),
    (re.compile(r"provisioning profile.*not found|no provisioning profile|requires a provisioning profile",
                re.IGNORECASE),
     "provisioning", "Provisioning profile issue",
     "Check your Apple Developer account or use automatic provisioning"),
    (re.compile(r"no such module\s+'[^']+'", re.IGNORECASE),
     "dependency", "Missing dependency",
     "Run 'swift package resolve' or check your Package.swift/Podfile"),
    (re.compile(r"platform.*not supported|invalid destination|unable to find a destination", re.IGNORECASE),
     "destination", "Platform/Destination error",
     "Check the scheme's supported platforms or use a different destination"),
)


def diagnose_build_failure(stdout: str, stderr: str) -> List[FailureHint]:
    """Categorize well-known failure causes that have no file location."""
    text = "\n".join(_lines(stdout, stderr))
    hints = []
    for pattern, kind, title, suggestion in _HINT_RULES:
        match = pattern.search(text)
        if match:
            hints.append(FailureHint(kind=kind, title=title, details=match.group(0).strip(), suggestion=suggestion))
    return hints
