"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (PROFCOV__SECTION__KEY)
3. Repo YAML (.profcov/config.yaml)
4. Global YAML (~/.config/profcov/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    PROFCOV__<SECTION>__<KEY>=<VALUE>

Examples:
    PROFCOV__LOGGING__LEVEL=DEBUG
    PROFCOV__TOOLS__GRCOV=/opt/grcov/bin/grcov
    PROFCOV__WORKSPACE__PROFILE_PATTERN=cov-%p-%m.profraw
    PROFCOV__PIPELINE__RENDER=false
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from profcov.config.constants import (
    DEFAULT_BUILD_DIR,
    DEFAULT_CSS_FILE,
    DEFAULT_PROFILE_PATTERN,
    PROFILE_MODULE_PLACEHOLDER,
    PROFILE_PID_PLACEHOLDER,
    PROFRAW_SUFFIX,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        PROFCOV__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG also logs full child environments.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ToolsConfig(BaseModel):
    """External executables.

    Env vars:
        PROFCOV__TOOLS__CARGO: Build tool and test runner
        PROFCOV__TOOLS__GRCOV: Profile merge tool
        PROFCOV__TOOLS__GENHTML: HTML renderer
    """

    cargo: str = Field(default="cargo", description="Build tool; also drives the test runner.")
    grcov: str = Field(default="grcov", description="Merges raw profiles into an lcov report.")
    genhtml: str = Field(default="genhtml", description="Renders the lcov report to HTML.")


class WorkspaceConfig(BaseModel):
    """Artifact workspace layout.

    Env vars:
        PROFCOV__WORKSPACE__BUILD_DIR: Build output directory, relative to the root
        PROFCOV__WORKSPACE__PROFILE_PATTERN: Raw profile file name pattern
        PROFCOV__WORKSPACE__CSS_FILE: Stylesheet for the HTML report ("" to omit)
    """

    build_dir: str = Field(
        default=DEFAULT_BUILD_DIR,
        description="Build output directory. Deleted before every test stage.",
    )
    profile_pattern: str = Field(
        default=DEFAULT_PROFILE_PATTERN,
        description="Raw profile file name pattern. Must contain %p and %m so that "
        "concurrent test processes never write the same file.",
    )
    css_file: str | None = Field(
        default=DEFAULT_CSS_FILE,
        description="Custom stylesheet passed to the renderer, relative to the root.",
    )

    @field_validator("build_dir")
    @classmethod
    def validate_build_dir(cls, v: str) -> str:
        if not v.strip() or Path(v).is_absolute() or ".." in Path(v).parts:
            raise ValueError(f"Build dir must be a relative path inside the workspace: {v!r}")
        if Path(v) == Path("."):
            raise ValueError("Build dir must not be the workspace root")
        return v

    @field_validator("profile_pattern")
    @classmethod
    def validate_profile_pattern(cls, v: str) -> str:
        missing = [
            p for p in (PROFILE_PID_PLACEHOLDER, PROFILE_MODULE_PLACEHOLDER) if p not in v
        ]
        if missing:
            raise ValueError(f"Profile pattern must contain {' and '.join(missing)}: {v!r}")
        if not v.endswith(PROFRAW_SUFFIX):
            raise ValueError(f"Profile pattern must end with {PROFRAW_SUFFIX}: {v!r}")
        if "/" in v:
            raise ValueError(f"Profile pattern must be a bare file name: {v!r}")
        return v

    @field_validator("css_file")
    @classmethod
    def validate_css_file(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v


class PipelineConfig(BaseModel):
    """Stage toggles.

    Env vars:
        PROFCOV__PIPELINE__RENDER: Run the HTML render step
        PROFCOV__PIPELINE__RESET_BEFORE_BUILD: Also reset the workspace before building
        PROFCOV__PIPELINE__EXTRA_OPTIONS: Fallback when CARGO_OPTIONS is unset
    """

    render: bool = Field(default=True, description="Render the merged report to HTML.")
    reset_before_build: bool = Field(
        default=False,
        description="Reset the workspace before the build stage as well. "
        "Default keeps any existing build output for the build stage.",
    )
    extra_options: str = Field(
        default="",
        description="Extra cargo options. CARGO_OPTIONS in the environment takes precedence.",
    )


class ProfcovConfig(BaseModel):
    """Root configuration model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
