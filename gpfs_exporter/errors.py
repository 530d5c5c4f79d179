"""
Custom exceptions for the GPFS exporter.

This module provides exception classes with user-friendly messaging
that include:
- Clear error descriptions
- Technical details for debugging
- Actionable suggestions for resolution

Collectors raise these exceptions from ``collect()``; the dispatcher turns
them into the ``collect_error`` / ``collect_timeout`` indicator metrics so a
single failing collector never aborts a scrape.
"""

from dataclasses import dataclass, field
from typing import Optional, Any
from enum import Enum


class ErrorCode(Enum):
    """Machine-readable error codes for GPFS exporter errors."""
    # Configuration errors (1xx)
    CONFIG_MISSING_REQUIRED = "E101"
    CONFIG_INVALID_VALUE = "E102"
    CONFIG_FILE_NOT_FOUND = "E103"
    CONFIG_PARSE_ERROR = "E104"
    CONFIG_UNKNOWN_TARGET = "E105"

    # Command execution errors (2xx)
    COMMAND_FAILED = "E201"
    COMMAND_TIMEOUT = "E202"
    COMMAND_SPAWN_FAILED = "E203"

    # Parse errors (3xx)
    PARSE_MALFORMED = "E301"
    PARSE_EMPTY_OUTPUT = "E303"

    # File system errors (4xx)
    FS_PATH_NOT_FOUND = "E401"
    FS_PERMISSION_DENIED = "E402"
    FS_WRITE_FAILED = "E403"

    # Lock errors (5xx)
    LOCK_HELD = "E501"
    LOCK_OPEN_FAILED = "E502"

    # Internal errors (9xx)
    INTERNAL_ERROR = "E901"


@dataclass
class GPFSError:
    """
    Structured error information for the GPFS exporter.

    Attributes:
        code: Machine-readable error code.
        message: User-facing error message.
        details: Technical details for debugging.
        suggestion: How to fix the issue.
        context: Additional context information.
    """
    code: ErrorCode
    message: str
    details: str = ""
    suggestion: str = ""
    context: dict = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        lines = [f"[{self.code.value}] {self.message}"]
        if self.details:
            lines.append(f"  Details: {self.details}")
        if self.suggestion:
            lines.append(f"  Suggestion: {self.suggestion}")
        return "\n".join(lines)


class GPFSExporterException(Exception):
    """
    Base exception class for the GPFS exporter.

    All custom exceptions inherit from this class and provide
    structured error information.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INTERNAL_ERROR,
                 details: str = "", suggestion: str = "", **context):
        self.error = GPFSError(
            code=code,
            message=message,
            details=details,
            suggestion=suggestion,
            context=context
        )
        super().__init__(str(self.error))

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def suggestion(self) -> str:
        return self.error.suggestion


class ConfigurationError(GPFSExporterException):
    """
    Raised when configuration is invalid or missing.

    Examples:
        - Config file not found or not valid YAML
        - Target entry with a bad schema
        - Unknown target requested by a scrape
    """

    def __init__(self, message: str, parameter: str = None,
                 expected: Any = None, actual: Any = None,
                 suggestion: str = None,
                 code: ErrorCode = ErrorCode.CONFIG_INVALID_VALUE):
        details_parts = []
        if parameter:
            details_parts.append(f"Parameter: {parameter}")
        if expected is not None:
            details_parts.append(f"Expected: {expected}")
        if actual is not None:
            details_parts.append(f"Actual: {actual}")

        super().__init__(
            message=message,
            code=code,
            details="; ".join(details_parts) if details_parts else "",
            suggestion=suggestion or self._default_suggestion(code),
            parameter=parameter,
            expected=expected,
            actual=actual
        )

    @staticmethod
    def _default_suggestion(code: ErrorCode) -> str:
        suggestions = {
            ErrorCode.CONFIG_MISSING_REQUIRED: "Provide the required parameter via command line or config file",
            ErrorCode.CONFIG_INVALID_VALUE: "Check the parameter value and correct it",
            ErrorCode.CONFIG_FILE_NOT_FOUND: "Verify the --config.file path exists",
            ErrorCode.CONFIG_PARSE_ERROR: "Check config file syntax (YAML format)",
            ErrorCode.CONFIG_UNKNOWN_TARGET: "Add the target to the 'targets' list of the config file",
        }
        return suggestions.get(code, "Check the configuration and try again")


class CommandExecutionError(GPFSExporterException):
    """
    Raised when a GPFS administration command fails.

    Examples:
        - Command returns non-zero exit code
        - Binary missing or sudo not authorized
    """

    def __init__(self, message: str, command: str = None,
                 exit_code: int = None, stderr: str = None,
                 suggestion: str = None,
                 code: ErrorCode = ErrorCode.COMMAND_FAILED):
        details_parts = []
        if command:
            # Truncate long commands
            cmd_display = command[:200] + "..." if len(command) > 200 else command
            details_parts.append(f"Command: {cmd_display}")
        if exit_code is not None:
            details_parts.append(f"Exit code: {exit_code}")
        if stderr:
            stderr_display = stderr[:500] + "..." if len(stderr) > 500 else stderr
            details_parts.append(f"Error output: {stderr_display}")

        super().__init__(
            message=message,
            code=code,
            details="; ".join(details_parts) if details_parts else "",
            suggestion=suggestion or self._default_suggestion(code, exit_code),
            command=command,
            exit_code=exit_code,
            stderr=stderr
        )

    @staticmethod
    def _default_suggestion(code: ErrorCode, exit_code: int = None) -> str:
        suggestions = {
            ErrorCode.COMMAND_FAILED: "Check command output for specific errors",
            ErrorCode.COMMAND_TIMEOUT: "Increase the collector timeout or disable the collector",
            ErrorCode.COMMAND_SPAWN_FAILED: "Check that GPFS is installed and sudo is configured",
        }
        suggestion = suggestions.get(code, "Check exporter logs for details")

        if exit_code == 1 and code == ErrorCode.COMMAND_FAILED:
            suggestion = "Command failed - check that sudo allows the exporter user to run it without a password"
        elif exit_code == 127:
            suggestion = "Command not found - check --config.gpfs-bin-dir and the sudoers entry"
        elif exit_code == 137:
            suggestion = "Process killed - the command may be hanging on an unresponsive cluster"

        return suggestion


class CommandTimeoutError(CommandExecutionError):
    """Raised when a command is killed because its deadline expired."""

    def __init__(self, message: str, command: str = None, timeout: float = None,
                 suggestion: str = None):
        super().__init__(
            message=message,
            command=command,
            suggestion=suggestion,
            code=ErrorCode.COMMAND_TIMEOUT,
        )
        self.timeout = timeout


class ParseError(GPFSExporterException):
    """
    Raised when command output cannot be turned into records at all.

    Individual malformed lines are counted and skipped by the parsers; this
    exception is for output that yields nothing usable (for example an
    empty mmgetstate response).
    """

    def __init__(self, message: str, command: str = None, line: str = None,
                 suggestion: str = None,
                 code: ErrorCode = ErrorCode.PARSE_MALFORMED):
        details_parts = []
        if command:
            details_parts.append(f"Command: {command}")
        if line:
            line_display = line[:200] + "..." if len(line) > 200 else line
            details_parts.append(f"Line: {line_display}")

        super().__init__(
            message=message,
            code=code,
            details="; ".join(details_parts) if details_parts else "",
            suggestion=suggestion or "Run the command by hand and compare its output format",
            command=command,
            line=line
        )


class FileSystemError(GPFSExporterException):
    """
    Raised when file system operations fail.

    Examples:
        - /proc/mounts cannot be read
        - Textfile output directory not writable
    """

    def __init__(self, message: str, path: str = None,
                 operation: str = None, suggestion: str = None,
                 code: ErrorCode = ErrorCode.FS_PATH_NOT_FOUND):
        details_parts = []
        if path:
            details_parts.append(f"Path: {path}")
        if operation:
            details_parts.append(f"Operation: {operation}")

        super().__init__(
            message=message,
            code=code,
            details="; ".join(details_parts) if details_parts else "",
            suggestion=suggestion or self._default_suggestion(code),
            path=path,
            operation=operation
        )

    @staticmethod
    def _default_suggestion(code: ErrorCode) -> str:
        suggestions = {
            ErrorCode.FS_PATH_NOT_FOUND: "Verify the path exists and is accessible",
            ErrorCode.FS_PERMISSION_DENIED: "Check file/directory permissions",
            ErrorCode.FS_WRITE_FAILED: "Check free space and permissions of the output directory",
        }
        return suggestions.get(code, "Check file system and try again")


class LockError(GPFSExporterException):
    """Raised when the textfile lock file cannot be acquired."""

    def __init__(self, message: str, path: str = None, suggestion: str = None,
                 code: ErrorCode = ErrorCode.LOCK_HELD):
        super().__init__(
            message=message,
            code=code,
            details=f"Lock file: {path}" if path else "",
            suggestion=suggestion or (
                "Another run is still in progress; lengthen the cron interval"
                if code == ErrorCode.LOCK_HELD else "Check the --lock-file path"
            ),
            path=path
        )
