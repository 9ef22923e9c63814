"""CLI utilities."""

from __future__ import annotations

from pathlib import Path

import click

from profcov.config.loader import load_config
from profcov.config.models import ProfcovConfig
from profcov.core.errors import ConfigError
from profcov.core.logging import configure_logging
from profcov.pipeline.workspace import find_workspace_root


def load_workspace(ctx: click.Context, path: Path | None) -> tuple[Path, ProfcovConfig]:
    """Resolve the workspace root and its configuration.

    Reconfigures logging from the loaded config; ``--verbose`` on the group
    forces DEBUG.

    Raises:
        click.ClickException: If the configuration is invalid.
    """
    root = find_workspace_root(path)
    try:
        config = load_config(root)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    logging_config = config.logging
    if ctx.obj and ctx.obj.get("verbose"):
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)
    return root, config
