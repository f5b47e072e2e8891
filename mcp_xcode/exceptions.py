#!/usr/bin/env python3
"""Exception classes for mcp-xcode"""

from typing import Optional


class XCodeMCPError(Exception):
    def __init__(self, message, code=None):
        self.message = message
        self.code = code
        super().__init__(self.message)


class InvalidParameterError(XCodeMCPError):
    pass


class ValidationError(InvalidParameterError):
    """Malformed or unsafe input, rejected before any subprocess is spawned."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message, code="validation_error")


class ProjectNotFoundError(XCodeMCPError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Project path does not exist: {path}", code="project_not_found")


class ToolNotFoundError(XCodeMCPError):
    """The native toolchain binary is missing from the host."""

    def __init__(self, tool: str, stderr: str = ""):
        self.tool = tool
        self.stderr = stderr
        message = f"Required tool '{tool}' was not found on this host."
        if stderr.strip():
            message += f"\n{stderr.strip()}"
        super().__init__(message, code="tool_not_found")


class SchemeOrConfigurationError(XCodeMCPError):
    """xcodebuild rejected the requested scheme or build configuration."""

    def __init__(self, detail: str, kind: str = "scheme", log_path: Optional[str] = None):
        self.detail = detail
        self.kind = kind
        self.log_path = log_path
        message = (f"{detail}\n"
                   "Use the list_schemes tool to see the valid schemes and configurations for this project.")
        if log_path:
            message += f"\n\n📁 Full logs saved to: {log_path}"
        super().__init__(message, code=f"{kind}_error")


class CommandTimeoutError(XCodeMCPError):
    def __init__(self, command: str, timeout: float):
        self.command = command
        self.timeout = timeout
        super().__init__(f"Command timed out after {timeout:g} seconds: {command}", code="timeout")


class OutputLimitExceededError(XCodeMCPError):
    def __init__(self, limit: int, size: Optional[int] = None):
        self.limit = limit
        self.size = size
        limit_mb = limit / (1024 * 1024)
        super().__init__(f"Command output exceeded the {limit_mb:g} MB capture limit", code="output_limit")


class SimulatorError(XCodeMCPError):
    def __init__(self, message: str):
        super().__init__(message, code="simulator_error")
