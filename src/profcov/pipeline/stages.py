"""Pipeline stages.

Each stage wraps one or more external tool invocations. A stage succeeds only
when every tool it runs exits with status 0; otherwise it raises
``StageFailedError`` carrying the tool's exit code and nothing after it runs.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from profcov.core.errors import StageFailedError
from profcov.core.logging import get_logger
from profcov.core.progress import pluralize, status
from profcov.pipeline.tools import (
    ToolInvocation,
    cargo_build_command,
    cargo_test_command,
    merge_command,
    render_command,
)

if TYPE_CHECKING:
    from profcov.config.models import ToolsConfig
    from profcov.pipeline.flags import InstrumentationConfig
    from profcov.pipeline.tools import ToolRunner
    from profcov.pipeline.workspace import ArtifactWorkspace, ResetReport

log = get_logger(__name__)


@dataclass(frozen=True)
class StageContext:
    """Everything a stage needs, passed explicitly."""

    tools: ToolsConfig
    workspace: ArtifactWorkspace
    instrumentation: InstrumentationConfig
    extra_options: tuple[str, ...]
    run_tool: ToolRunner


@dataclass
class StageOutcome:
    """Record of a completed stage."""

    name: str
    commands: list[tuple[str, ...]] = field(default_factory=list)
    reset: ResetReport | None = None
    profiles_merged: int | None = None


def execute(ctx: StageContext, step: str, invocation: ToolInvocation) -> None:
    """Run one invocation; raise StageFailedError on non-zero exit."""
    log.info("step_started", step=step, tool=invocation.tool, command=list(invocation.argv))
    log.debug("step_env", step=step, env=dict(invocation.env))
    exit_code = ctx.run_tool(invocation)
    if exit_code != 0:
        log.error("step_failed", step=step, exit_code=exit_code)
        raise StageFailedError.from_exit(step, exit_code, list(invocation.argv))
    log.info("step_finished", step=step, exit_code=exit_code)


class Stage(abc.ABC):
    """Base class for pipeline stages."""

    name: str
    description: str

    @abc.abstractmethod
    def plan(self, ctx: StageContext) -> list[ToolInvocation]:
        """Invocations this stage would run, in order, without side effects."""

    @abc.abstractmethod
    def run(self, ctx: StageContext) -> StageOutcome:
        """Run the stage. Raises StageFailedError on the first failing tool."""


class BuildStage(Stage):
    """Compile instrumented artifacts."""

    name = "build"
    description = "Building instrumented artifacts"

    def plan(self, ctx: StageContext) -> list[ToolInvocation]:
        return [
            cargo_build_command(ctx.tools, ctx.workspace, ctx.instrumentation, ctx.extra_options)
        ]

    def run(self, ctx: StageContext) -> StageOutcome:
        outcome = StageOutcome(name=self.name)
        for invocation in self.plan(ctx):
            execute(ctx, self.name, invocation)
            outcome.commands.append(invocation.argv)
        return outcome


class TestStage(Stage):
    """Reset the workspace, then run every test including ignored ones.

    Reset order: stale raw profiles first, then the build output directory,
    so the test run relinks and starts from zeroed counters.
    """

    __test__ = False

    name = "test"
    description = "Running tests under instrumentation"

    def plan(self, ctx: StageContext) -> list[ToolInvocation]:
        return [
            cargo_test_command(ctx.tools, ctx.workspace, ctx.instrumentation, ctx.extra_options)
        ]

    def run(self, ctx: StageContext) -> StageOutcome:
        outcome = StageOutcome(name=self.name)
        outcome.reset = ctx.workspace.reset()
        for invocation in self.plan(ctx):
            execute(ctx, self.name, invocation)
            outcome.commands.append(invocation.argv)
        return outcome


class CoverageAggregationStage(Stage):
    """Merge raw profiles into one lcov report, then optionally render it.

    Zero raw profiles is not an error: the merge tool then writes an empty
    report, which is rendered as such.
    """

    name = "aggregate"
    description = "Merging raw profiles"

    def __init__(self, *, render: bool = True) -> None:
        self.render = render

    def plan(self, ctx: StageContext) -> list[ToolInvocation]:
        invocations = [merge_command(ctx.tools, ctx.workspace)]
        if self.render:
            invocations.append(render_command(ctx.tools, ctx.workspace))
        return invocations

    def run(self, ctx: StageContext) -> StageOutcome:
        outcome = StageOutcome(name=self.name)
        profiles = ctx.workspace.raw_profiles()
        outcome.profiles_merged = len(profiles)
        if not profiles:
            log.warning("no_raw_profiles", root=str(ctx.workspace.root))
            status("No raw profiles found; the report will be empty", style="warning", indent=2)
        else:
            status(f"Merging {pluralize(len(profiles), 'raw profile')}", indent=2)

        merge, *rest = self.plan(ctx)
        execute(ctx, "merge", merge)
        outcome.commands.append(merge.argv)

        for invocation in rest:
            status("Rendering HTML report", indent=2)
            execute(ctx, "render", invocation)
            outcome.commands.append(invocation.argv)
        return outcome
