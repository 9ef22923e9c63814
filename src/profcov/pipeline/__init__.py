"""Coverage pipeline: flag assembly, workspace handling, stages, orchestration."""

from profcov.pipeline.flags import (
    FLAG_TABLE,
    FlagCategory,
    FlagSpec,
    InstrumentationConfig,
    assemble_instrumentation,
)
from profcov.pipeline.runner import CoveragePipeline, PipelineResult
from profcov.pipeline.stages import (
    BuildStage,
    CoverageAggregationStage,
    Stage,
    StageContext,
    StageOutcome,
    TestStage,
)
from profcov.pipeline.tools import SubprocessRunner, ToolInvocation, ToolRunner
from profcov.pipeline.workspace import ArtifactWorkspace, ResetReport, find_workspace_root

__all__ = [
    # Flags
    "FLAG_TABLE",
    "FlagCategory",
    "FlagSpec",
    "InstrumentationConfig",
    "assemble_instrumentation",
    # Workspace
    "ArtifactWorkspace",
    "ResetReport",
    "find_workspace_root",
    # Tools
    "SubprocessRunner",
    "ToolInvocation",
    "ToolRunner",
    # Stages
    "BuildStage",
    "CoverageAggregationStage",
    "Stage",
    "StageContext",
    "StageOutcome",
    "TestStage",
    # Orchestration
    "CoveragePipeline",
    "PipelineResult",
]
