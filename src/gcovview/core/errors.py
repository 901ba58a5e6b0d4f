"""Structured errors raised by gcovview.

Every error carries a numeric code; the thousands digit names the area
(2 config, 3 scanning, 4 the gcov tool). Only the subclasses are raised,
each through one of its factory classmethods.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    SCAN_UNREADABLE = 3001
    SCAN_NO_CANDIDATES = 3002

    TOOL_NOT_FOUND = 4001
    TOOL_INCOMPATIBLE = 4002
    TOOL_INVOCATION_FAILED = 4003
    TOOL_INVALID_OUTPUT = 4004
    TOOL_TIMEOUT = 4005


@dataclass(frozen=True, slots=True)
class GcovViewError(Exception):
    """Base of all gcovview errors.

    `retryable` marks failures that may go away on the next reload, such
    as a gcov run that crashed or timed out. `details` holds the values the
    message was built from, for logs and ``--json`` output.
    """

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return dict(
            code=int(self.code),
            error=self.error_name,
            message=self.message,
            retryable=self.retryable,
            details=self.details,
        )

    def __str__(self) -> str:
        return f"[{int(self.code)}] {self.error_name}: {self.message}"


class ConfigError(GcovViewError):
    """A config file or value that cannot be used."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, setting: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{setting}': {reason}",
            details={"field": setting, "value": str(value), "reason": reason},
        )


class ScanError(GcovViewError):
    """Problems finding coverage data files."""

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "ScanError":
        return cls(
            code=ErrorCode.SCAN_UNREADABLE,
            message=f"Cannot read {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def no_candidates(cls, directories: list[str], extension: str = ".gcda") -> "ScanError":
        hints = (
            "the program was not built with --coverage; "
            "the build directory is somewhere else (set ingestion.build_directories); "
            "the program has not been run yet."
        )
        return cls(
            code=ErrorCode.SCAN_NO_CANDIDATES,
            message=(
                f"Cannot find any coverage data ({extension} files). Possible problems: {hints}"
            ),
            details={"directories": directories, "extension": extension},
        )


class ToolError(GcovViewError):
    """Failures of the external gcov executable."""

    @classmethod
    def not_found(cls, executable: str) -> "ToolError":
        return cls(
            code=ErrorCode.TOOL_NOT_FOUND,
            message=f"Executable not found: {executable}",
            details={"executable": executable},
        )

    @classmethod
    def incompatible(cls, executable: str, reason: str) -> "ToolError":
        return cls(
            code=ErrorCode.TOOL_INCOMPATIBLE,
            message=f"{executable} is not compatible: {reason}",
            details={"executable": executable, "reason": reason},
        )

    @classmethod
    def invocation_failed(
        cls, executable: str, returncode: int | None, diagnostic: str
    ) -> "ToolError":
        return cls(
            code=ErrorCode.TOOL_INVOCATION_FAILED,
            message=f"{executable} exited with status {returncode}",
            retryable=True,
            details={"executable": executable, "returncode": returncode, "diagnostic": diagnostic},
        )

    @classmethod
    def invalid_output(cls, executable: str, reason: str) -> "ToolError":
        return cls(
            code=ErrorCode.TOOL_INVALID_OUTPUT,
            message=f"Could not parse output of {executable}: {reason}",
            details={"executable": executable, "reason": reason},
        )

    @classmethod
    def timeout(cls, executable: str, timeout_sec: float) -> "ToolError":
        return cls(
            code=ErrorCode.TOOL_TIMEOUT,
            message=f"{executable} did not finish within {timeout_sec}s",
            retryable=True,
            details={"executable": executable, "timeout_sec": timeout_sec},
        )
