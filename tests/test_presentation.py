"""Tests for tool response rendering"""

from mcp_xcode.results import BuildResult, FailingTest, FailureHint, Issue, TestResult
from mcp_xcode.utils.presentation import format_build_result, format_run_result, format_test_result

ERROR = Issue("error", "cannot find 'x' in scope", "/src/App.swift", 12, 17)
WARNING = Issue("warning", "variable 'y' was never used", "/src/App.swift", 20, 9)


class TestBuildResultText:

    def test_success(self):
        result = BuildResult(exit_code=0, output="", app_path="/dd/Build/Products/Debug-iphonesimulator/App.app",
                             log_path="/logs/2025-01-15/10-00-00-build-App.log")
        text = format_build_result(result, "App", platform="iOS", configuration="Debug")

        assert text.splitlines()[0] == "✅ Build succeeded: App"
        assert "Platform: iOS" in text
        assert "Configuration: Debug" in text
        assert "App path: /dd/Build/Products/Debug-iphonesimulator/App.app" in text
        assert text.endswith("📁 Full logs saved to: /logs/2025-01-15/10-00-00-build-App.log")

    def test_success_without_app(self):
        text = format_build_result(BuildResult(exit_code=0, output=""), "App")
        assert "App path: not found" in text

    def test_success_without_app_line(self):
        text = format_build_result(BuildResult(exit_code=0, output=""), "ParserKit", show_app_path=False)
        assert "App path" not in text

    def test_configuration_warning(self):
        result = BuildResult(exit_code=0, output="", configuration_warning="Requested configuration 'Beta'")
        assert "⚠️ Requested configuration 'Beta'" in format_build_result(result, "App")

    def test_failure_lists_errors_and_warnings(self):
        result = BuildResult(exit_code=65, output="", issues=[ERROR, WARNING])
        text = format_build_result(result, "App")

        assert text.startswith("❌ Build failed: App")
        assert "❌ Errors (1):" in text
        assert "  • /src/App.swift:12:17: cannot find 'x' in scope" in text
        assert "⚠️ Warnings (1):" in text

    def test_warnings_can_be_hidden(self):
        result = BuildResult(exit_code=65, output="", issues=[ERROR, WARNING])
        text = format_build_result(result, "App", include_warnings=False)
        assert "never used" not in text

    def test_warnings_are_capped(self):
        warnings = [Issue("warning", f"w{i}", "/src/a.swift", i) for i in range(30)]
        text = format_build_result(BuildResult(exit_code=65, output="", issues=warnings), "App")
        assert "… and 5 more" in text

    def test_failure_without_diagnostics(self):
        text = format_build_result(BuildResult(exit_code=70, output=""), "App")
        assert "❌ Errors (0):" in text
        assert "exit code 70" in text

    def test_hints(self):
        hint = FailureHint("signing", "Code signing failed", "No signing certificate", "Check your Keychain")
        text = format_build_result(BuildResult(exit_code=65, output="", hints=[hint]), "App")
        assert "📍 Code signing failed" in text
        assert "💡 Check your Keychain" in text


class TestTestResultText:

    def test_failures(self):
        result = TestResult(
            exit_code=65, passed=3, failed=2, output="",
            failing_tests=[FailingTest("MyAppTests/CalculatorTests/testDivision", "XCTAssertEqual failed"),
                           FailingTest("MyAppTests/CalculatorTests/testSubtraction")],
            log_path="/logs/test.log",
        )
        lines = format_test_result(result, "MyApp", platform="iOS").splitlines()

        assert lines[0] == "❌ Tests failed: MyApp"
        assert "Results: 3 passed, 2 failed" in lines
        index = lines.index("Failing tests:")
        assert lines[index + 1:index + 4] == [
            "  • MyAppTests/CalculatorTests/testDivision",
            "    XCTAssertEqual failed",
            "  • MyAppTests/CalculatorTests/testSubtraction",
        ]
        assert lines[-1] == "📁 Full logs saved to: /logs/test.log"

    def test_all_passed(self):
        text = format_test_result(TestResult(exit_code=0, passed=4, failed=0, output=""), "MyApp")
        assert text.startswith("✅ Tests passed: MyApp")
        assert "Results: 4 passed, 0 failed" in text
        assert "Failing tests" not in text

    def test_nothing_recognized(self):
        text = format_test_result(TestResult(exit_code=1, passed=0, failed=0, output="boom"), "MyApp")
        assert "No test results recognized" in text


class TestRunResultText:

    def test_output_tail(self):
        output = "\n".join(f"line {i}" for i in range(60))
        text = format_run_result(BuildResult(exit_code=0, output=output), "parse")

        assert text.startswith("✅ Run completed: parse")
        assert "… (10 earlier lines omitted)" in text
        assert "line 9\n" not in text
        assert text.endswith("line 59")

    def test_program_failure(self):
        text = format_run_result(BuildResult(exit_code=2, output="usage: parse FILE\n"), "parse")
        assert text.startswith("❌ Run failed (exit code 2): parse")

    def test_build_errors_render_like_a_build(self):
        text = format_run_result(BuildResult(exit_code=1, output="", issues=[ERROR]), "parse")
        assert text.startswith("❌ Build failed: parse")
