"""Tests for build and test output parsing."""

import pytest

from mcp_xcode.build.output_parser import (
    clean_line,
    detect_scheme_or_configuration_error,
    diagnose_build_failure,
    parse_build_issues,
    parse_test_output,
)
from mcp_xcode.results import Issue

from tests.conftest import load_fixture


class TestBuildIssues:

    def test_single_compile_error(self):
        issues = parse_build_issues(65, load_fixture("build_one_error.txt"), "")

        assert issues == [Issue(
            severity="error",
            message="cannot find 'undefinedVariable' in scope",
            file="/Users/dev/MyApp/MyApp/ContentView.swift",
            line=12,
            column=17,
        )]
        assert issues[0].location == "/Users/dev/MyApp/MyApp/ContentView.swift:12:17"

    def test_exit_zero_is_trusted(self):
        output = "/Users/dev/MyApp/MyApp/A.swift:1:1: warning: deprecated\nerror: looks bad but is fine\n"
        assert parse_build_issues(0, output, "") == []

    def test_duplicates_across_architectures_are_collapsed(self):
        issues = parse_build_issues(65, load_fixture("build_multiarch.txt"), "")

        assert [(i.severity, i.line) for i in issues] == [("error", 8), ("warning", 20)]

    def test_identical_text_for_different_architectures_is_collapsed(self):
        # Known limitation: two architecture-specific diagnostics that share
        # file, line and message are reported once.
        output = (
            "CompileC normal arm64 /src/simd.c\n"
            "/src/simd.c:42:3: error: use of undeclared identifier 'vec'\n"
            "CompileC normal x86_64 /src/simd.c\n"
            "/src/simd.c:42:9: error: use of undeclared identifier 'vec'\n"
        )
        issues = parse_build_issues(65, output, "")

        assert len(issues) == 1
        assert issues[0].column == 3

    def test_same_message_on_different_lines_is_kept(self):
        output = ("/src/a.swift:1:1: error: expected expression\n"
                  "/src/a.swift:2:1: error: expected expression\n")
        assert len(parse_build_issues(1, output, "")) == 2

    def test_xcbeautify_markers_give_severity(self):
        issues = parse_build_issues(65, load_fixture("build_xcbeautify.txt"), "")

        assert [str(i) for i in issues] == [
            "/Users/dev/MyApp/MyApp/View.swift:3:1: expected declaration",
            "/Users/dev/MyApp/MyApp/View.swift:9:7: immutable value 'y' was never used; "
            "consider replacing with '_' or removing it",
            "ld: symbol(s) not found for architecture arm64",
            "linker command failed with exit code 1 (use -v to see invocation)",
        ]
        assert [i.severity for i in issues] == ["error", "warning", "error", "error"]

    def test_marker_with_keyword_uses_keyword(self):
        issues = parse_build_issues(65, "⚠️ /src/a.swift:1:1: error: real error\n", "")
        assert issues[0].severity == "error"
        assert issues[0].message == "real error"

    def test_fatal_error_is_an_error(self):
        issues = parse_build_issues(65, load_fixture("build_fatal_error.txt"), "")

        assert issues == [Issue(
            severity="error",
            message="'Missing.h' file not found",
            file="/Users/dev/App/Bridge.m",
            line=1,
            column=9,
        )]

    def test_fatal_error_without_location(self):
        issues = parse_build_issues(1, "", "<unknown>:0: fatal error: cannot open file\n"
                                           "clang: fatal error: no input files\n")
        assert [i.severity for i in issues] == ["error", "error"]
        assert issues[1].message == "no input files"

    def test_tool_errors_without_location(self):
        issues = parse_build_issues(70, "", "xcodebuild: error: Unable to find a destination matching the "
                                            "provided destination specifier\n")
        assert len(issues) == 1
        assert issues[0].file is None
        assert issues[0].message.startswith("Unable to find a destination")

    def test_order_follows_first_appearance_across_streams(self):
        issues = parse_build_issues(1, "/a.swift:1:1: error: first\n", "/b.swift:2:2: error: second\n")
        assert [i.message for i in issues] == ["first", "second"]

    def test_unparseable_output_yields_no_issues(self):
        assert parse_build_issues(1, "Segmentation fault\n\x00\xff garbage", "") == []

    def test_parsing_is_idempotent(self):
        output = load_fixture("build_multiarch.txt")
        assert parse_build_issues(65, output, "") == parse_build_issues(65, output, "")

    def test_clean_line(self):
        assert clean_line("\x1b[1;31m❌ error: boom\x1b[0m") == "error: boom"
        assert clean_line("[arm64] /a.c:1:1: error: x") == "/a.c:1:1: error: x"


class TestTestOutput:

    def test_xctest_class_filter_three_pass_two_fail(self):
        result = parse_test_output(65, load_fixture("test_xctest_class_filter.txt"), "")

        assert (result.passed, result.failed) == (3, 2)
        assert [t.identifier for t in result.failing_tests] == [
            "MyAppTests/CalculatorTests/testDivision",
            "MyAppTests/CalculatorTests/testSubtraction",
        ]
        assert [t.method for t in result.failing_tests] == ["testDivision", "testSubtraction"]
        assert result.failing_tests[0].reason == 'XCTAssertEqual failed: ("2.0") is not equal to ("2.5")'
        assert result.issues == []
        assert not result.success
        assert result.summary == "3 passed, 2 failed"

    def test_xctest_all_passed(self):
        output = ("Test Suite 'All tests' passed at 2025-01-15 10:00:00.000.\n"
                  "\t Executed 4 tests, with 0 failures (0 unexpected) in 0.010 (0.011) seconds\n")
        result = parse_test_output(0, output, "")
        assert (result.passed, result.failed) == (4, 0)
        assert result.success

    def test_several_assertions_in_one_test_count_once(self):
        output = (
            "/t/ATests.swift:5: error: -[Mod.ATests testA] : first\n"
            "/t/ATests.swift:6: error: -[Mod.ATests testA] : second\n"
            "Test Case '-[Mod.ATests testA]' failed (0.001 seconds).\n"
            "Test Case '-[Mod.ATests testB]' passed (0.001 seconds).\n"
            "Test Suite 'All tests' failed at 2025-01-15 10:00:00.000.\n"
            "\t Executed 2 tests, with 2 failures (0 unexpected) in 0.002 (0.003) seconds\n"
        )
        result = parse_test_output(65, output, "")
        assert (result.passed, result.failed) == (1, 1)
        assert result.failing_tests[0].reason == "first"

    def test_swift_testing(self):
        result = parse_test_output(1, load_fixture("test_swift_testing.txt"), "")

        assert (result.passed, result.failed) == (2, 1)
        assert len(result.failing_tests) == 1
        assert result.failing_tests[0].identifier == "parsesNumbers"
        assert result.failing_tests[0].reason == "Expectation failed: (result → 3) == 4"

    @pytest.mark.parametrize("line,expected", [
        ("✔ Test run with 7 tests passed after 0.010 seconds.", (7, 0)),
        ("✔ Test run with 7 tests in 2 suites passed after 0.010 seconds.", (7, 0)),
        ("✘ Test run with 7 tests (5 passed, 2 failed) after 0.010 seconds.", (5, 2)),
    ])
    def test_swift_testing_summaries(self, line, expected):
        result = parse_test_output(0, line + "\n", "")
        assert (result.passed, result.failed) == expected

    def test_quoted_swift_testing_names(self):
        output = ('✘ Test "Parses negative numbers" recorded an issue at P.swift:3:5: Expectation failed\n'
                  '✘ Test "Parses negative numbers" failed after 0.001 seconds with 1 issue.\n')
        result = parse_test_output(1, output, "")
        assert [t.identifier for t in result.failing_tests] == ["Parses negative numbers"]
        assert result.failed == 1

    def test_both_frameworks_are_combined(self):
        output = (
            "Test Suite 'All tests' failed at 2025-01-15 10:00:00.000.\n"
            "\t Executed 3 tests, with 1 failure (0 unexpected) in 0.002 (0.003) seconds\n"
            "✘ Test run with 4 tests (3 passed, 1 failed) after 0.004 seconds.\n"
        )
        result = parse_test_output(1, output, "")
        assert (result.passed, result.failed) == (5, 2)

    def test_generic_summary_fallback(self):
        result = parse_test_output(1, "Summary: 8 passed, 1 failed\n", "")
        assert (result.passed, result.failed) == (8, 1)

    def test_compile_failure_reports_issues(self):
        result = parse_test_output(65, load_fixture("build_one_error.txt"), "")
        assert (result.passed, result.failed) == (0, 0)
        assert len(result.issues) == 1
        assert not result.success

    def test_unrecognized_output(self):
        result = parse_test_output(1, "something went wrong\n", "")
        assert (result.passed, result.failed) == (0, 0)
        assert result.failing_tests == []


class TestRejections:

    def test_unknown_scheme(self):
        assert detect_scheme_or_configuration_error("", load_fixture("scheme_not_found.txt")) == \
            ("scheme", 'Scheme not found: "Missing"')

    def test_configuration_rejection(self):
        stderr = 'xcodebuild: error: The configuration "Staging" is not found in the project.\n'
        kind, detail = detect_scheme_or_configuration_error("", stderr)
        assert kind == "configuration"
        assert "Staging" in detail

    def test_compile_errors_are_not_rejections(self):
        assert detect_scheme_or_configuration_error(load_fixture("build_one_error.txt"), "") is None


def test_failure_hints():
    output = ("/src/App.swift:1:8: error: no such module 'Alamofire'\n"
              "error: No signing certificate \"iOS Development\" found\n")
    hints = diagnose_build_failure(output, "")
    assert [h.kind for h in hints] == ["signing", "dependency"]
    assert "Alamofire" in hints[1].details
