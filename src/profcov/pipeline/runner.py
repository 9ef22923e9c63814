"""Coverage pipeline orchestration: build → test → merge → render.

Stages run strictly in sequence. The first failing stage raises and nothing
after it executes; there is no retry and no rollback.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from profcov.config.models import ProfcovConfig
from profcov.core.logging import get_logger, set_run_id
from profcov.core.progress import status
from profcov.pipeline.flags import InstrumentationConfig, assemble_instrumentation
from profcov.pipeline.stages import (
    BuildStage,
    CoverageAggregationStage,
    Stage,
    StageContext,
    StageOutcome,
    TestStage,
)
from profcov.pipeline.tools import (
    SubprocessRunner,
    ToolInvocation,
    ToolRunner,
    parse_extra_options,
    resolve_executable,
)
from profcov.pipeline.workspace import ArtifactWorkspace, ResetReport

log = get_logger(__name__)


@dataclass
class PipelineResult:
    """Summary of a successful pipeline run."""

    run_id: str
    lcov_path: Path
    html_dir: Path | None
    profiles_merged: int
    stages: list[StageOutcome] = field(default_factory=list)
    pre_build_reset: ResetReport | None = None

    @property
    def stage_names(self) -> list[str]:
        return [s.name for s in self.stages]


class CoveragePipeline:
    """One pipeline run over an artifact workspace.

    Args:
        config: Resolved configuration.
        root: Workspace root (directory holding Cargo.toml).
        runner: Executes tool invocations. Defaults to ``SubprocessRunner``.
        environ: Environment to read ``CARGO_OPTIONS`` from. Defaults to
            ``os.environ``.
        instrumentation: Pre-assembled flags. Defaults to the standard table.
    """

    def __init__(
        self,
        config: ProfcovConfig,
        root: Path,
        *,
        runner: ToolRunner | None = None,
        environ: Mapping[str, str] | None = None,
        instrumentation: InstrumentationConfig | None = None,
    ) -> None:
        self._config = config
        self._workspace = ArtifactWorkspace.from_config(root, config.workspace)
        self._instrumentation = instrumentation or assemble_instrumentation()
        self._context = StageContext(
            tools=config.tools,
            workspace=self._workspace,
            instrumentation=self._instrumentation,
            extra_options=parse_extra_options(environ, config.pipeline.extra_options),
            run_tool=runner or SubprocessRunner(),
        )
        self._stages: list[Stage] = [
            BuildStage(),
            TestStage(),
            CoverageAggregationStage(render=config.pipeline.render),
        ]

    @property
    def workspace(self) -> ArtifactWorkspace:
        return self._workspace

    @property
    def instrumentation(self) -> InstrumentationConfig:
        return self._instrumentation

    @property
    def stages(self) -> list[Stage]:
        return list(self._stages)

    def required_tools(self) -> dict[str, str]:
        """Logical tool name → configured executable, for enabled steps only."""
        tools = self._config.tools
        required = {"cargo": tools.cargo, "grcov": tools.grcov}
        if self._config.pipeline.render:
            required["genhtml"] = tools.genhtml
        return required

    def preflight(self) -> dict[str, str]:
        """Resolve every required executable before touching the workspace.

        Raises:
            ToolNotFoundError: For the first executable not found on PATH.
        """
        resolved = {
            tool: resolve_executable(tool, executable)
            for tool, executable in self.required_tools().items()
        }
        log.debug("preflight_ok", tools=resolved)
        return resolved

    def plan(self) -> list[ToolInvocation]:
        """All invocations a run would perform, in order."""
        return [inv for stage in self._stages for inv in stage.plan(self._context)]

    def run(self) -> PipelineResult:
        """Run every stage in order.

        Raises:
            StageFailedError: When a tool exits non-zero. Later stages never run.
            WorkspaceError: When stale artifacts cannot be removed.
        """
        run_id = set_run_id()
        log.info(
            "pipeline_started",
            root=str(self._workspace.root),
            extra_options=list(self._context.extra_options),
        )

        pre_build_reset = None
        if self._config.pipeline.reset_before_build:
            pre_build_reset = self._workspace.reset()

        outcomes: list[StageOutcome] = []
        for stage in self._stages:
            status(stage.description, style="stage")
            outcomes.append(stage.run(self._context))

        profiles_merged = outcomes[-1].profiles_merged or 0
        result = PipelineResult(
            run_id=run_id,
            lcov_path=self._workspace.lcov_path,
            html_dir=self._workspace.html_dir if self._config.pipeline.render else None,
            profiles_merged=profiles_merged,
            stages=outcomes,
            pre_build_reset=pre_build_reset,
        )
        log.info("pipeline_finished", stages=result.stage_names, profiles=profiles_merged)
        return result
