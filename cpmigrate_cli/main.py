#!/usr/bin/env python3
"""
cpmigrate CLI - checkpoint topic migration

Main entrypoint for the cpmigrate command-line tool.
"""

import typer
from rich.console import Console
from rich.table import Table

from cpmigrate_cli.commands import inspect, migrate

# Initialize Typer app
app = typer.Typer(
    name="cpmigrate",
    help="Extract, replace or patch stream job checkpoints in their checkpoint topic",
    add_completion=False,
)

console = Console()

app.command()(migrate.extract)
app.command()(migrate.replace)
app.command()(migrate.patch)
app.command(name="inspect")(inspect.inspect_command)


@app.command()
def version():
    """Show version information."""
    from cpmigrate_cli import __version__
    from cpmigrate import __version__ as engine_version

    table = Table(show_header=False, box=None)
    table.add_row("[bold]cpmigrate CLI[/bold]", f"v{__version__}")
    table.add_row("Engine", f"v{engine_version}")
    table.add_row("Topic format", "__checkpoint_ver_1_for_<job>_1")

    console.print(table)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
