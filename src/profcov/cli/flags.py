"""profcov flags command - show the assembled instrumentation configuration."""

import click
from rich.console import Console
from rich.table import Table

from profcov.pipeline.flags import FLAG_TABLE, FlagCategory, assemble_instrumentation


@click.command()
@click.option("--shell", "as_shell", is_flag=True, help="Print export lines for a POSIX shell")
def flags_command(as_shell: bool) -> None:
    """Show the compiler flags used for instrumented builds.

    With --shell, prints ``export`` lines that can be sourced to reproduce
    the build environment by hand:

        eval "$(profcov flags --shell)"
    """
    instrumentation = assemble_instrumentation()

    if as_shell:
        click.echo(instrumentation.to_shell())
        return

    table = Table(title="Instrumentation flags", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Flag", style="cyan")
    table.add_column("Effect")
    for category in FlagCategory:
        table.add_column(category.value, justify="center")

    for index, row in enumerate(FLAG_TABLE, start=1):
        marks = [str(row.positions.get(category, "")) for category in FlagCategory]
        table.add_row(str(index), row.flag, row.effect, *marks)

    console = Console()
    console.print(table)
    for name, value in instrumentation.to_env().items():
        console.print(f"[bold]{name}[/bold]={value}", highlight=False)
