"""Configuration constants.

This module contains values that are NOT user-configurable: environment
variable names understood by the external toolchain and the fixed layout of
the artifact workspace.

For configurable values, see models.py (ToolsConfig, WorkspaceConfig, etc.).
"""

# =============================================================================
# Environment Variables
# =============================================================================

ENV_RUSTFLAGS = "RUSTFLAGS"
"""Flags passed to every rustc invocation."""

ENV_RUSTDOCFLAGS = "RUSTDOCFLAGS"
"""Flags passed to every rustdoc invocation (doc-tests)."""

ENV_CARGO_INCREMENTAL = "CARGO_INCREMENTAL"
ENV_RUSTC_BOOTSTRAP = "RUSTC_BOOTSTRAP"

ENV_PROFILE_FILE = "LLVM_PROFILE_FILE"
"""Raw profile file name pattern read by instrumented binaries at runtime."""

ENV_EXTRA_OPTIONS = "CARGO_OPTIONS"
"""Caller-supplied options appended verbatim to cargo build and cargo test."""

# =============================================================================
# Raw Profiling Files
# =============================================================================

PROFRAW_SUFFIX = ".profraw"

PROFILE_PID_PLACEHOLDER = "%p"
"""Expanded by the profiling runtime to the writing process id."""

PROFILE_MODULE_PLACEHOLDER = "%m"
"""Expanded by the profiling runtime to the instrumented module signature."""

DEFAULT_PROFILE_PATTERN = "prefix-%p-%m.profraw"

# =============================================================================
# Workspace Layout
# =============================================================================

MANIFEST_NAME = "Cargo.toml"
"""Marker file for workspace root detection."""

DEFAULT_BUILD_DIR = "target/debug"
LCOV_FILENAME = "lcov.info"
HTML_DIRNAME = "coverage"
DEFAULT_CSS_FILE = "cov.css"

CONFIG_DIRNAME = ".profcov"
