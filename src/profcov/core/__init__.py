"""Core module exports."""

from profcov.core.errors import (
    ConfigError,
    ErrorCode,
    ProfcovError,
    StageFailedError,
    ToolNotFoundError,
    WorkspaceError,
)
from profcov.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from profcov.core.progress import pluralize, status

__all__ = [
    # Errors
    "ConfigError",
    "ErrorCode",
    "ProfcovError",
    "StageFailedError",
    "ToolNotFoundError",
    "WorkspaceError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Progress
    "pluralize",
    "status",
]
