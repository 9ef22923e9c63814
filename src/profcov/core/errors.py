"""profcov error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Workspace
- 4xxx: Stage
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

# Shell status for "command not found"
EXIT_TOOL_NOT_FOUND = 127

# Shell status base for a child killed by a signal
EXIT_SIGNAL_BASE = 128


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Workspace (3xxx)
    WORKSPACE_CLEANUP_FAILED = 3001

    # Stage (4xxx)
    STAGE_FAILED = 4001
    TOOL_NOT_FOUND = 4002


@dataclass(frozen=True, slots=True)
class ProfcovError(Exception):
    """Base error with structured context for logs and JSON output."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'STAGE_FAILED')."""
        return self.code.name

    @property
    def exit_code(self) -> int:
        """Process exit status the CLI should terminate with."""
        return 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(ProfcovError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class WorkspaceError(ProfcovError):
    """Artifact workspace errors."""

    @classmethod
    def cleanup_failed(cls, path: str, reason: str) -> "WorkspaceError":
        return cls(
            code=ErrorCode.WORKSPACE_CLEANUP_FAILED,
            message=f"Failed to remove {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class StageFailedError(ProfcovError):
    """An external tool exited non-zero; the pipeline stops here."""

    @property
    def stage(self) -> str:
        return str(self.details.get("stage", ""))

    @property
    def exit_code(self) -> int:
        return int(self.details.get("exit_code", 1))

    @classmethod
    def from_exit(cls, stage: str, exit_code: int, command: list[str]) -> "StageFailedError":
        """Build from a child's return code.

        A negative return code means the child was killed by a signal; it is
        reported the way a shell does, as 128 + signal number.
        """
        details: dict[str, Any] = {"stage": stage, "command": command}
        if exit_code < 0:
            details["signal"] = -exit_code
            exit_code = EXIT_SIGNAL_BASE - exit_code
            message = f"Stage '{stage}' killed by signal {details['signal']}"
        else:
            message = f"Stage '{stage}' failed with exit code {exit_code}"
        details["exit_code"] = exit_code
        return cls(code=ErrorCode.STAGE_FAILED, message=message, details=details)


class ToolNotFoundError(ProfcovError):
    """A required external executable is not on PATH."""

    @property
    def exit_code(self) -> int:
        return EXIT_TOOL_NOT_FOUND

    @classmethod
    def missing(cls, tool: str, executable: str) -> "ToolNotFoundError":
        return cls(
            code=ErrorCode.TOOL_NOT_FOUND,
            message=f"Executable not found for {tool}: {executable}",
            details={"tool": tool, "executable": executable},
        )
