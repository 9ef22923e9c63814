"""Config module exports."""

from profcov.config.loader import load_config
from profcov.config.models import (
    LoggingConfig,
    PipelineConfig,
    ProfcovConfig,
    ToolsConfig,
    WorkspaceConfig,
)

__all__ = [
    "load_config",
    "LoggingConfig",
    "PipelineConfig",
    "ProfcovConfig",
    "ToolsConfig",
    "WorkspaceConfig",
]
