"""profcov CLI - profcov command."""

import click

from profcov import __version__
from profcov.cli.clean import clean_command
from profcov.cli.flags import flags_command
from profcov.cli.run import run_command
from profcov.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="profcov")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """profcov - instrumented coverage pipeline for Cargo projects."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(run_command, name="run")
cli.add_command(flags_command, name="flags")
cli.add_command(clean_command, name="clean")


if __name__ == "__main__":
    cli()
