"""profcov run command - build, test, merge and render coverage."""

from __future__ import annotations

from pathlib import Path

import click

from profcov.cli.utils import load_workspace
from profcov.core.errors import ProfcovError, StageFailedError
from profcov.core.logging import get_log_file_path
from profcov.core.progress import pluralize, status
from profcov.pipeline.runner import CoveragePipeline


@click.command()
@click.argument("path", default=None, required=False, type=click.Path(exists=True, path_type=Path))
@click.option("--dry-run", is_flag=True, help="Print the planned commands and exit")
@click.option("--no-render", is_flag=True, help="Stop after writing the lcov report")
@click.option(
    "--reset-before-build",
    is_flag=True,
    help="Remove raw profiles and build output before building too",
)
@click.pass_context
def run_command(
    ctx: click.Context,
    path: Path | None,
    dry_run: bool,
    no_render: bool,
    reset_before_build: bool,
) -> None:
    """Run the coverage pipeline.

    PATH is the crate or workspace root. If not specified, walks up from the
    current directory to the nearest Cargo.toml.

    Exits with the status of the first failing tool.
    """
    root, config = load_workspace(ctx, path)

    pipeline_overrides: dict[str, bool] = {}
    if no_render:
        pipeline_overrides["render"] = False
    if reset_before_build:
        pipeline_overrides["reset_before_build"] = True
    if pipeline_overrides:
        config = config.model_copy(
            update={"pipeline": config.pipeline.model_copy(update=pipeline_overrides)}
        )

    pipeline = CoveragePipeline(config, root)

    if dry_run:
        for invocation in pipeline.plan():
            click.echo(invocation.render())
        return

    try:
        pipeline.preflight()
        result = pipeline.run()
    except StageFailedError as e:
        status(f"{e.stage} failed with exit code {e.exit_code}", style="error")
        raise SystemExit(e.exit_code) from e
    except ProfcovError as e:
        status(e.message, style="error")
        if log_path := get_log_file_path():
            status(f"See {log_path} for details", indent=2)
        raise SystemExit(e.exit_code) from e

    status(
        f"Coverage report: {result.lcov_path} "
        f"({pluralize(result.profiles_merged, 'raw profile')})",
        style="success",
    )
    if result.html_dir is not None:
        status(f"HTML report: {result.html_dir}", style="success")
