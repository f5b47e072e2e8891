#!/usr/bin/env python3
"""Plain text rendering of build and test results for tool responses"""

from typing import List, Optional

from mcp_xcode.results import BuildResult, Issue, TestResult

MAX_WARNING_LINES = 25
MAX_OUTPUT_LINES = 50
NOT_FOUND = "not found"


def _header_details(platform: Optional[str], configuration: Optional[str]) -> List[str]:
    lines = []
    if platform:
        lines.append(f"Platform: {platform}")
    if configuration:
        lines.append(f"Configuration: {configuration}")
    return lines


def _issue_lines(issues: List[Issue], limit: Optional[int] = None) -> List[str]:
    shown = issues if limit is None else issues[:limit]
    lines = [f"  • {issue}" for issue in shown]
    if limit is not None and len(issues) > limit:
        lines.append(f"  … and {len(issues) - limit} more")
    return lines


def _log_trailer(log_path: Optional[str]) -> List[str]:
    return ["", f"📁 Full logs saved to: {log_path}"] if log_path else []


def _tail(output: str, limit: int = MAX_OUTPUT_LINES) -> List[str]:
    lines = output.rstrip().splitlines()
    if len(lines) > limit:
        return [f"… ({len(lines) - limit} earlier lines omitted)"] + lines[-limit:]
    return lines


def format_build_result(result: BuildResult,
                        title: str,
                        platform: Optional[str] = None,
                        configuration: Optional[str] = None,
                        include_warnings: bool = True,
                        show_app_path: bool = True) -> str:
    """
    Render a build result.

    Args:
        result: The build result
        title: Scheme or project name shown in the first line
        platform: Platform display name
        configuration: Build configuration
        include_warnings: List warnings after the errors
        show_app_path: Report the located app bundle (not used for Swift packages)

    Returns:
        Response text. Failures start with ❌ and list one file:line:col
        line per error; successes show the app path or 'not found'.
    """
    if result.success:
        lines = [f"✅ Build succeeded: {title}", ""]
        lines += _header_details(platform, configuration)
        if show_app_path:
            lines.append(f"App path: {result.app_path or NOT_FOUND}")
        if result.configuration_warning:
            lines += ["", f"⚠️ {result.configuration_warning}"]
        return "\n".join(lines + _log_trailer(result.log_path))

    errors = result.errors
    lines = [f"❌ Build failed: {title}", ""]
    lines += _header_details(platform, configuration)
    lines += ["", f"❌ Errors ({len(errors)}):"]
    if errors:
        lines += _issue_lines(errors)
    else:
        lines.append(f"  No diagnostics recognized in the output (exit code {result.exit_code})")

    warnings = result.warnings
    if include_warnings and warnings:
        lines += ["", f"⚠️ Warnings ({len(warnings)}):"]
        lines += _issue_lines(warnings, MAX_WARNING_LINES)

    for hint in result.hints:
        lines += ["", f"📍 {hint.title}"]
        if hint.details:
            lines.append(f"   {hint.details}")
        if hint.suggestion:
            lines.append(f"   💡 {hint.suggestion}")

    return "\n".join(lines + _log_trailer(result.log_path))


def format_test_result(result: TestResult,
                       title: str,
                       platform: Optional[str] = None,
                       configuration: Optional[str] = None) -> str:
    """Render a test result with the 'N passed, M failed' summary and failing tests."""
    marker = "✅ Tests passed" if result.success else "❌ Tests failed"
    lines = [f"{marker}: {title}", ""]
    lines += _header_details(platform, configuration)
    lines.append(f"Results: {result.summary}")

    if result.failing_tests:
        lines += ["", "Failing tests:"]
        for test in result.failing_tests:
            lines.append(f"  • {test.identifier}")
            if test.reason:
                lines.append(f"    {test.reason}")

    if result.issues:
        errors = [i for i in result.issues if i.is_error]
        lines += ["", f"❌ Errors ({len(errors)}):"]
        lines += _issue_lines(errors)

    if not result.success and not result.failing_tests and not result.issues and result.failed == 0:
        lines += ["", f"No test results recognized in the output (exit code {result.exit_code})"]

    return "\n".join(lines + _log_trailer(result.log_path))


def format_run_result(result: BuildResult, title: str) -> str:
    """Render `swift run` output; build errors are listed like a failed build."""
    if not result.success and result.errors:
        return format_build_result(result, title)

    marker = "✅ Run completed" if result.success else f"❌ Run failed (exit code {result.exit_code})"
    lines = [f"{marker}: {title}"]
    if result.output.strip():
        lines += ["", "Output:"] + _tail(result.output)
    return "\n".join(lines + _log_trailer(result.log_path))
