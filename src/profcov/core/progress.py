"""User-facing status lines for CLI operations.

Tool output (cargo, grcov, genhtml) streams straight to the terminal; the
pipeline only adds one short line per stage through this module.

Usage::

    from profcov.core.progress import status

    status("Building instrumented artifacts")
    status("Coverage report written", style="success")  # ✓ Coverage report written
    status("Test stage failed", style="error")  # ✗ Test stage failed
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

_console = Console(stderr=True)

_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "stage": "[cyan]▸[/cyan] ",
    "info": "  ",
}


def _get_logger() -> BoundLogger:
    """Get logger lazily to respect runtime config."""
    from profcov.core.logging import get_logger

    return get_logger("progress")


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print a styled status message to stderr."""
    prefix = _STYLES.get(style, "")
    padding = " " * indent
    _console.print(f"{padding}{prefix}{message}", highlight=False, soft_wrap=True)

    _get_logger().debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return grammatically correct singular/plural form.

    Args:
        count: The number of items
        singular: Singular form (e.g., "file")
        plural: Plural form (default: singular + "s")

    Returns:
        Formatted string like "1 file" or "3 files"
    """
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count} {word}"
