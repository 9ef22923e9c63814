"""profcov clean command - remove stale raw profiles and build output."""

from pathlib import Path

import click

from profcov.cli.utils import load_workspace
from profcov.core.errors import WorkspaceError
from profcov.core.progress import pluralize, status
from profcov.pipeline.workspace import ArtifactWorkspace


@click.command()
@click.argument("path", default=None, required=False, type=click.Path(exists=True, path_type=Path))
@click.pass_context
def clean_command(ctx: click.Context, path: Path | None) -> None:
    """Reset the artifact workspace.

    Deletes every raw profile file in the workspace root and the build output
    directory, exactly as the test stage does before running tests.
    """
    root, config = load_workspace(ctx, path)
    workspace = ArtifactWorkspace.from_config(root, config.workspace)

    try:
        report = workspace.reset()
    except WorkspaceError as e:
        status(e.message, style="error")
        raise SystemExit(e.exit_code) from e

    status(f"Removed {pluralize(report.removed_profiles, 'raw profile')}", style="success")
    if report.removed_build_dir:
        status(f"Removed {workspace.build_dir}", style="success")
    else:
        status(f"No build output at {workspace.build_dir}", style="info")
