"""
Migration commands: extract, replace, patch
"""

import sys
from typing import Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn

from cpmigrate.broker.client import BrokerClient
from cpmigrate.broker.kafka_client import KafkaBrokerClient
from cpmigrate.core.errors import CheckpointToolError
from cpmigrate.core.snapshot import count_checkpoints
from cpmigrate.logging_config import get_logger, setup_logging
from cpmigrate.migrate import MigrationConfig, MigrationResult, Mode, run_migration

# Status and progress go to stderr; stdout carries test-run output
console = Console(stderr=True)

BROKERS_OPTION = typer.Option(
    None,
    "--brokers",
    "-b",
    envvar="KAFKA_BROKERS",
    help="The Kafka brokers to connect to, as a comma separated list",
)
JOB_OPTION = typer.Option(None, "--job", "-j", help="Stream job name")
FILE_OPTION = typer.Option(None, "--file", "-f", help="Checkpoints file path")
ONLY_OPTION = typer.Option(
    None, "--only", help="Include only these streams from input source (a comma separated list)"
)
EXCEPT_OPTION = typer.Option(
    None, "--except", help="Exclude streams from input source (a comma separated list)"
)
COMMIT_OPTION = typer.Option(
    False, "--commit", help="Commit data to file/topic, otherwise just print result"
)
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="More logging")


def open_broker_client(config: MigrationConfig) -> BrokerClient:
    """Connect to the configured brokers."""
    return KafkaBrokerClient(config.brokers, verbose=config.verbose)


def _drain_progress() -> Progress:
    # stdout stays unredirected so test-run lines are not routed to stderr
    return Progress(
        TextColumn("[bold]Restoring from topic[/bold]"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
        redirect_stdout=False,
        redirect_stderr=False,
    )


def _run(
    mode: Mode,
    brokers: Optional[str],
    job: Optional[str],
    file_path: Optional[str],
    only: Optional[str],
    exclude: Optional[str],
    commit: bool,
    verbose: bool,
) -> MigrationResult:
    setup_logging(verbose=verbose)

    try:
        config = MigrationConfig.build(
            mode,
            brokers=brokers,
            job_name=job,
            file_path=file_path,
            only=only,
            exclude=exclude,
            commit=commit,
            verbose=verbose,
        )
    except CheckpointToolError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    logger = get_logger(__name__, job=config.job_name)
    logger.info("Kafka brokers: %s", ", ".join(config.brokers))
    if config.commit:
        logger.warning("WARNING! This run will result in persistent changes!")
    else:
        logger.warning("WARNING! This is a TEST run. No changes will be committed to file/topic.")

    try:
        with open_broker_client(config) as client:
            if mode is Mode.REPLACE:
                result = run_migration(config, client, sys.stdout)
            else:
                with _drain_progress() as bar:
                    task_id = bar.add_task("drain", total=None)

                    def on_record(offset: int, high_water_mark: int) -> None:
                        bar.update(task_id, completed=offset + 1, total=high_water_mark)

                    result = run_migration(config, client, sys.stdout, progress=on_record)
    except FileNotFoundError as e:
        console.print(f"[red]Error: File not found:[/red] {e}")
        raise typer.Exit(2)
    except CheckpointToolError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    tasks, checkpoints = count_checkpoints(result.snapshot)
    if result.persisted:
        target = config.file_path if mode is Mode.EXTRACT else config.topic
        console.print(f"[green]✓ {mode.value.capitalize()} complete[/green]")
        console.print(f"  Target: [cyan]{target}[/cyan]")
        console.print(f"  Records written: {result.written}")
    else:
        console.print("[yellow]Test run, nothing persisted (use --commit)[/yellow]")
    console.print(f"  Tasks: {tasks}, checkpoints: {checkpoints}")
    if result.skipped:
        console.print(f"  [yellow]Skipped non-checkpoint records: {result.skipped}[/yellow]")

    return result


def extract(
    brokers: Optional[str] = BROKERS_OPTION,
    job: Optional[str] = JOB_OPTION,
    file_path: Optional[str] = FILE_OPTION,
    only: Optional[str] = ONLY_OPTION,
    exclude: Optional[str] = EXCEPT_OPTION,
    commit: bool = COMMIT_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """
    Extract checkpoints from topic to file.

    Examples:
        cpmigrate extract --job page-views --file cp.tsv
        cpmigrate extract --job page-views --file cp.tsv --only clicks --commit
    """
    _run(Mode.EXTRACT, brokers, job, file_path, only, exclude, commit, verbose)


def replace(
    brokers: Optional[str] = BROKERS_OPTION,
    job: Optional[str] = JOB_OPTION,
    file_path: Optional[str] = FILE_OPTION,
    only: Optional[str] = ONLY_OPTION,
    exclude: Optional[str] = EXCEPT_OPTION,
    commit: bool = COMMIT_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """
    Replace checkpoints in topic with data from file.

    Examples:
        cpmigrate replace --job page-views --file cp.tsv
        cpmigrate replace --job page-views --file cp.tsv --commit
    """
    _run(Mode.REPLACE, brokers, job, file_path, only, exclude, commit, verbose)


def patch(
    brokers: Optional[str] = BROKERS_OPTION,
    job: Optional[str] = JOB_OPTION,
    file_path: Optional[str] = FILE_OPTION,
    only: Optional[str] = ONLY_OPTION,
    exclude: Optional[str] = EXCEPT_OPTION,
    commit: bool = COMMIT_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """
    Patch (merge) checkpoints in topic with data from file.

    Examples:
        cpmigrate patch --job page-views --file cp.tsv --except impressions
        cpmigrate patch --job page-views --file cp.tsv --commit
    """
    _run(Mode.PATCH, brokers, job, file_path, only, exclude, commit, verbose)
