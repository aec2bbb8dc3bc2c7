"""
Inspect command: show a checkpoints file without touching the broker.
"""

import json
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from cpmigrate.core.errors import CheckpointToolError
from cpmigrate.core.snapshot import count_checkpoints, filter_snapshot, sorted_tasks, streams_of
from cpmigrate.files.codec import read_snapshot_file
from cpmigrate.migrate.config import parse_csv

console = Console()


def inspect_command(
    file_path: str = typer.Argument(..., help="Checkpoints file path"),
    only: Optional[str] = typer.Option(None, "--only", help="Show only these streams (comma separated)"),
    exclude: Optional[str] = typer.Option(None, "--except", help="Hide these streams (comma separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Show checkpoints stored in a file.

    Examples:
        cpmigrate inspect cp.tsv
        cpmigrate inspect cp.tsv --only clicks
        cpmigrate inspect cp.tsv --json
    """
    try:
        snapshot = read_snapshot_file(file_path)
    except FileNotFoundError:
        if json_output:
            print(json.dumps({"error": "File not found", "path": file_path}))
        else:
            console.print(f"[red]Error: File not found:[/red] {file_path}")
        raise typer.Exit(2)
    except CheckpointToolError as e:
        if json_output:
            print(json.dumps({"error": str(e)}))
        else:
            console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    snapshot = filter_snapshot(snapshot, frozenset(parse_csv(only)), frozenset(parse_csv(exclude)))
    tasks, checkpoints = count_checkpoints(snapshot)

    if json_output:
        out = {
            "tasks": [
                {
                    "key": key.to_dict(),
                    "checkpoints": {label: cp.to_dict() for label, cp in sorted(streams.items())},
                }
                for key, streams in sorted_tasks(snapshot)
            ],
            "task_count": tasks,
            "checkpoint_count": checkpoints,
        }
        print(json.dumps(out, indent=2))
        return

    if not tasks:
        console.print("[yellow]Checkpoints file is empty[/yellow]")
        return

    table = Table(title=f"Checkpoints: {file_path}")
    table.add_column("Task", style="cyan")
    table.add_column("Stream partition", style="dim")
    table.add_column("System")
    table.add_column("Stream", style="green")
    table.add_column("Partition", justify="right")
    table.add_column("Offset", style="yellow", justify="right")

    for key, streams in sorted_tasks(snapshot):
        if not streams:
            table.add_row(key.task_name, "-", "-", "-", "-", "-")
            continue
        for label, cp in sorted(streams.items()):
            table.add_row(key.task_name, label, cp.system, cp.stream, cp.partition, cp.offset)

    console.print(table)
    console.print(f"\n[bold]Tasks:[/bold] {tasks}  [bold]Checkpoints:[/bold] {checkpoints}")
    console.print(f"[bold]Streams:[/bold] {', '.join(streams_of(snapshot)) or '-'}")
