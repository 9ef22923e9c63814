"""External tool invocations.

Every external command the pipeline runs is described by a ``ToolInvocation``
(argv, working directory, environment overrides) built from the assembled
configuration, then handed to a ``ToolRunner``. The default runner executes
synchronously with ``subprocess.run`` and lets the tool's own output stream
straight to the terminal.
"""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from profcov.config.constants import ENV_EXTRA_OPTIONS, ENV_PROFILE_FILE
from profcov.config.models import ToolsConfig
from profcov.core.errors import ToolNotFoundError
from profcov.pipeline.flags import InstrumentationConfig
from profcov.pipeline.workspace import ArtifactWorkspace


@dataclass(frozen=True)
class ToolInvocation:
    """A single external command."""

    tool: str  # logical name: cargo, grcov, genhtml
    argv: tuple[str, ...]
    cwd: Path
    env: Mapping[str, str] = field(default_factory=dict)  # overrides on top of the base env

    def full_env(self, base_env: Mapping[str, str] | None = None) -> dict[str, str]:
        """Child environment: a copy of the base env with overrides applied."""
        env = dict(base_env) if base_env is not None else dict(os.environ)
        env.update(self.env)
        return env

    def render(self) -> str:
        """Shell-style rendering for dry runs and logs."""
        assignments = [f"{k}={shlex.quote(v)}" for k, v in self.env.items()]
        return " ".join([*assignments, shlex.join(self.argv)])


class ToolRunner(Protocol):
    """Executes an invocation and returns its exit code."""

    def __call__(self, invocation: ToolInvocation) -> int: ...


class SubprocessRunner:
    """Runs invocations with ``subprocess.run``, blocking until exit.

    No timeout: a hung tool hangs the pipeline.
    """

    def __init__(self, base_env: Mapping[str, str] | None = None) -> None:
        self._base_env = dict(base_env) if base_env is not None else None

    def __call__(self, invocation: ToolInvocation) -> int:
        completed = subprocess.run(  # noqa: S603
            list(invocation.argv),
            cwd=invocation.cwd,
            env=invocation.full_env(self._base_env),
            check=False,
        )
        return completed.returncode


def parse_extra_options(
    environ: Mapping[str, str] | None = None,
    fallback: str = "",
) -> tuple[str, ...]:
    """Split caller-supplied cargo options with shell word rules.

    ``CARGO_OPTIONS`` from the environment wins over the configured fallback,
    even when set to an empty string.
    """
    environ = os.environ if environ is None else environ
    raw = environ.get(ENV_EXTRA_OPTIONS)
    if raw is None:
        raw = fallback
    return tuple(shlex.split(raw))


def resolve_executable(tool: str, executable: str) -> str:
    """Resolve an executable on PATH or raise ToolNotFoundError."""
    resolved = shutil.which(executable)
    if resolved is None:
        raise ToolNotFoundError.missing(tool, executable)
    return resolved


# =============================================================================
# Command Builders
# =============================================================================


def cargo_build_command(
    tools: ToolsConfig,
    workspace: ArtifactWorkspace,
    instrumentation: InstrumentationConfig,
    extra_options: tuple[str, ...] = (),
) -> ToolInvocation:
    """``cargo build --verbose <extra>`` with the instrumentation env."""
    return ToolInvocation(
        tool="cargo",
        argv=(tools.cargo, "build", "--verbose", *extra_options),
        cwd=workspace.root,
        env=instrumentation.to_env(),
    )


def cargo_test_command(
    tools: ToolsConfig,
    workspace: ArtifactWorkspace,
    instrumentation: InstrumentationConfig,
    extra_options: tuple[str, ...] = (),
) -> ToolInvocation:
    """``cargo test --verbose <extra> -- --include-ignored``.

    Adds the raw profile name pattern to the instrumentation env.
    """
    env = instrumentation.to_env()
    env[ENV_PROFILE_FILE] = workspace.profile_pattern
    return ToolInvocation(
        tool="cargo",
        argv=(tools.cargo, "test", "--verbose", *extra_options, "--", "--include-ignored"),
        cwd=workspace.root,
        env=env,
    )


def merge_command(tools: ToolsConfig, workspace: ArtifactWorkspace) -> ToolInvocation:
    """grcov over the root, resolving binaries in the build output directory."""
    return ToolInvocation(
        tool="grcov",
        argv=(
            tools.grcov,
            ".",
            "--source-dir",
            ".",
            "--binary-path",
            f"{workspace.build_dir}/",
            "--output-type",
            "lcov",
            "--branch",
            "--ignore-not-existing",
            "--output-path",
            str(workspace.lcov_path),
        ),
        cwd=workspace.root,
    )


def render_command(tools: ToolsConfig, workspace: ArtifactWorkspace) -> ToolInvocation:
    """genhtml over the merged report.

    The merged report path follows ``--legend`` and is read by genhtml as its
    positional tracefile argument.
    """
    argv = [
        tools.genhtml,
        "--output",
        f"{workspace.html_dir}/",
        "--show-details",
        "--highlight",
        "--ignore-errors",
        "source",
        "--legend",
        str(workspace.lcov_path),
    ]
    if workspace.css_file is not None:
        argv += ["--css-file", str(workspace.css_file)]
    return ToolInvocation(tool="genhtml", argv=tuple(argv), cwd=workspace.root)
