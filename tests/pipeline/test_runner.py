"""Tests for pipeline orchestration.

Covers:
- Stage ordering and fail-fast behaviour
- Staleness freedom across consecutive runs
- Raw profile name disambiguation
- Zero-test runs, preflight, reset_before_build
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from profcov.config.models import PipelineConfig, ProfcovConfig, WorkspaceConfig
from profcov.core.errors import StageFailedError, ToolNotFoundError
from profcov.core.logging import get_run_id
from profcov.pipeline.runner import CoveragePipeline
from tests.pipeline.fakes import FakeToolRunner


def make_pipeline(
    root: Path,
    runner: FakeToolRunner,
    config: ProfcovConfig | None = None,
    environ: dict[str, str] | None = None,
) -> CoveragePipeline:
    return CoveragePipeline(
        config or ProfcovConfig(),
        root,
        runner=runner,
        environ=environ if environ is not None else {},
    )


class TestOrdering:
    """Stage sequencing tests."""

    def test_given_all_tools_succeed_when_run_then_steps_in_order(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        # Given
        pipeline = make_pipeline(crate_root, fake_runner)

        # When
        result = pipeline.run()

        # Then
        assert fake_runner.steps == ["build", "test", "merge", "render"]
        assert result.stage_names == ["build", "test", "aggregate"]
        assert result.lcov_path == crate_root.resolve() / "target" / "debug" / "lcov.info"
        assert result.html_dir == crate_root.resolve() / "target" / "debug" / "coverage"
        assert result.run_id == get_run_id()

    def test_given_build_fails_when_run_then_test_and_aggregate_never_run(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        # Given
        fake_runner.exit_codes["build"] = 101
        pipeline = make_pipeline(crate_root, fake_runner)

        # When
        with pytest.raises(StageFailedError) as exc_info:
            pipeline.run()

        # Then
        assert exc_info.value.exit_code == 101
        assert fake_runner.steps == ["build"]

    def test_given_test_fails_when_run_then_no_report_is_written(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        # Given - a report from an earlier successful run
        make_pipeline(crate_root, fake_runner).run()
        fake_runner.calls.clear()
        fake_runner.exit_codes["test"] = 101

        # When
        with pytest.raises(StageFailedError) as exc_info:
            make_pipeline(crate_root, fake_runner).run()

        # Then
        assert exc_info.value.stage == "test"
        assert exc_info.value.exit_code == 101
        assert fake_runner.steps == ["build", "test"]
        workspace = make_pipeline(crate_root, fake_runner).workspace
        assert not workspace.lcov_path.exists()

    def test_given_render_disabled_when_run_then_stops_after_merge(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        config = ProfcovConfig(pipeline=PipelineConfig(render=False))

        result = make_pipeline(crate_root, fake_runner, config).run()

        assert fake_runner.steps == ["build", "test", "merge"]
        assert result.html_dir is None


class TestStaleness:
    """Raw profiles from run N never reach run N+1's merge."""

    def test_given_two_runs_when_second_merges_then_only_fresh_profiles_present(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        # Given - run 1 produces modules a and b
        fake_runner.modules = ("a", "b")
        make_pipeline(crate_root, fake_runner).run()
        first = set(fake_runner.profiles_at_merge or [])

        # When - run 2 produces only module c
        fake_runner.modules = ("c",)
        make_pipeline(crate_root, fake_runner).run()
        second = set(fake_runner.profiles_at_merge or [])

        # Then
        assert first and second
        assert first.isdisjoint(second)
        assert all("-c.profraw" in name for name in second)

    def test_stale_profiles_from_manual_runs_are_removed(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        (crate_root / "default_123.profraw").write_bytes(b"")

        make_pipeline(crate_root, fake_runner).run()

        assert "default_123.profraw" not in (fake_runner.profiles_at_merge or [])


class TestProfileDisambiguation:
    """Concurrent test processes never share a raw profile name."""

    def test_given_ten_profiles_when_merged_then_all_are_consumed(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        # Given - 5 processes x 2 modules
        fake_runner.test_processes = 5
        fake_runner.modules = ("lib", "bin")
        fake_runner.source_files = ("src/lib.rs", "src/main.rs")

        # When
        result = make_pipeline(crate_root, fake_runner).run()

        # Then
        assert result.profiles_merged == 10
        assert len(fake_runner.profiles_at_merge or []) == 10
        assert result.lcov_path.read_text().count("end_of_record") == 2
        assert result.html_dir is not None
        assert len(list(result.html_dir.rglob("*.gcov.html"))) >= 2

    def test_distinct_pids_give_distinct_names(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        fake_runner.test_processes = 2
        fake_runner.modules = ("same",)

        make_pipeline(crate_root, fake_runner).run()

        names = fake_runner.profiles_at_merge or []
        assert len(names) == 2
        assert len(set(names)) == 2


class TestZeroTests:
    """Pipeline with no tests defined."""

    def test_given_no_profiles_when_run_then_report_and_html_still_produced(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        fake_runner.test_processes = 0

        result = make_pipeline(crate_root, fake_runner).run()

        assert result.profiles_merged == 0
        assert result.lcov_path.exists()
        assert result.html_dir is not None and result.html_dir.is_dir()


class TestResetBeforeBuild:
    """Optional pre-build reset."""

    def test_default_keeps_build_output_for_build_stage(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        marker = crate_root / "target" / "debug" / "marker"
        marker.parent.mkdir(parents=True)
        marker.write_text("")
        seen: list[bool] = []
        fake_runner.on_call = lambda inv: seen.append(marker.exists())

        result = make_pipeline(crate_root, fake_runner).run()

        assert seen[0] is True  # build saw existing output
        assert result.pre_build_reset is None

    def test_enabled_resets_before_build(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        # Given
        (crate_root / "target" / "debug").mkdir(parents=True)
        (crate_root / "old-1-x.profraw").write_bytes(b"")
        config = ProfcovConfig(pipeline=PipelineConfig(reset_before_build=True))
        seen: list[bool] = []
        fake_runner.on_call = lambda inv: seen.append((crate_root / "target" / "debug").exists())

        # When
        result = make_pipeline(crate_root, fake_runner, config).run()

        # Then
        assert seen[0] is False
        assert result.pre_build_reset is not None
        assert result.pre_build_reset.removed_profiles == 1
        assert result.pre_build_reset.removed_build_dir is True


class TestExtraOptions:
    """CARGO_OPTIONS threading."""

    def test_extra_options_reach_build_and_test_only(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        pipeline = make_pipeline(
            crate_root, fake_runner, environ={"CARGO_OPTIONS": "--features cov"}
        )

        pipeline.run()

        build, test, merge, render = fake_runner.calls
        assert build.argv[-2:] == ("--features", "cov")
        assert test.argv[3:5] == ("--features", "cov")
        assert "--features" not in merge.argv
        assert "--features" not in render.argv

    def test_config_fallback_used_when_env_unset(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        config = ProfcovConfig(pipeline=PipelineConfig(extra_options="--offline"))

        make_pipeline(crate_root, fake_runner, config).run()

        assert fake_runner.calls[0].argv[-1] == "--offline"


class TestPlan:
    """Dry-run planning."""

    def test_plan_lists_every_invocation_without_running(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        (crate_root / "keep-1-x.profraw").write_bytes(b"")
        pipeline = make_pipeline(crate_root, fake_runner)

        plan = pipeline.plan()

        assert [inv.tool for inv in plan] == ["cargo", "cargo", "grcov", "genhtml"]
        assert fake_runner.calls == []
        assert (crate_root / "keep-1-x.profraw").exists()

    def test_custom_profile_pattern_flows_to_test_env(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        config = ProfcovConfig(workspace=WorkspaceConfig(profile_pattern="cov-%m-%p.profraw"))

        plan = make_pipeline(crate_root, fake_runner, config).plan()

        assert plan[1].env["LLVM_PROFILE_FILE"] == "cov-%m-%p.profraw"


class TestPreflight:
    """Executable resolution before any stage runs."""

    def test_required_tools_skip_genhtml_without_render(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        config = ProfcovConfig(pipeline=PipelineConfig(render=False))
        pipeline = make_pipeline(crate_root, fake_runner, config)
        assert set(pipeline.required_tools()) == {"cargo", "grcov"}

    def test_missing_tool_raises_before_anything_runs(
        self, crate_root: Path, fake_runner: FakeToolRunner
    ) -> None:
        pipeline = make_pipeline(crate_root, fake_runner)

        def fake_which(name: str) -> str | None:
            return None if name == "grcov" else f"/usr/bin/{name}"

        with patch("profcov.pipeline.tools.shutil.which", side_effect=fake_which):
            with pytest.raises(ToolNotFoundError) as exc_info:
                pipeline.preflight()

        assert exc_info.value.details["tool"] == "grcov"
        assert fake_runner.calls == []

    def test_all_tools_present(self, crate_root: Path, fake_runner: FakeToolRunner) -> None:
        pipeline = make_pipeline(crate_root, fake_runner)

        with patch("profcov.pipeline.tools.shutil.which", side_effect=lambda n: f"/bin/{n}"):
            resolved = pipeline.preflight()

        assert resolved == {
            "cargo": "/bin/cargo",
            "grcov": "/bin/grcov",
            "genhtml": "/bin/genhtml",
        }
