"""
CLI for the Pokedex submission pipeline
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich import box

from pokedex_sync.config import CatalogConfig, ConfigurationError, PipelineConfig
from pokedex_sync.pipeline.base import PipelineError, SubjectNotFoundError
from pokedex_sync.pipeline.canonicalize import Canonicalizer
from pokedex_sync.pipeline.orchestrator import PipelineOrchestrator, RunOutcome
from pokedex_sync.sources.pokeapi import CatalogClient
from pokedex_sync.transformers.submission_parser import SubmissionParser
from pokedex_sync.utils.logger import configure_logging

console = Console()


def _print_error(error: Exception):
    if isinstance(error, SubjectNotFoundError):
        console.print(f"[bold red]Submission rejected:[/] {escape(str(error))}")
    else:
        console.print(f"[bold red]{type(error).__name__}:[/] {escape(str(error))}")


def _report(outcome: RunOutcome, output: str):
    if output == "json":
        click.echo(json.dumps(outcome.to_dict(), indent=2))
        return

    if not outcome.success:
        _print_error(outcome.error)
        return

    if not outcome.submissions:
        console.print(f"[yellow]PR #{outcome.change_proposal_id} has no submissions to process[/]")
        return

    prefix = "[dim](dry run)[/] " if outcome.dry_run else ""
    console.print(
        f"{prefix}[green]PR #{outcome.change_proposal_id}: "
        f"{outcome.added} new entries from {len(outcome.submissions)} submissions[/]"
    )
    for name in outcome.skipped:
        console.print(f"[yellow]Skipped {escape(name)}: no sprite available[/]")


@click.group()
def main():
    """Community Pokedex submission pipeline"""
    pass


@main.command()
@click.argument("pr_number", type=click.IntRange(min=1))
@click.option("--dry-run", is_flag=True, help="Validate and merge in memory without writing the dataset")
@click.option(
    "--workspace",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Repository checkout root (default: POKEDEX_WORKSPACE or current directory)",
)
@click.option("--log-level", default=None, help="DEBUG, INFO, WARN, ERROR (default: LOG_LEVEL or INFO)")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.option("--output", type=click.Choice(["text", "json"]), default="text", help="Output format")
def update(pr_number, dry_run, workspace, log_level, json_logs, output):
    """Validate the submissions of a pull request and merge them into the dataset.

    Exits non-zero when the pull request must not be auto-merged.
    """
    configure_logging(level=log_level, json_format=json_logs)

    try:
        config = PipelineConfig.from_env(workspace=workspace, dry_run=dry_run)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/] {escape(str(e))}")
        sys.exit(e.exit_code)

    try:
        outcome = asyncio.run(PipelineOrchestrator(config).run(pr_number))
    except Exception:
        console.print_exception()
        sys.exit(1)

    _report(outcome, output)
    sys.exit(outcome.exit_code)


async def _validate_files(
    files: Tuple[str, ...], workspace: Path, catalog_config: CatalogConfig
) -> List[Tuple[str, str, str]]:
    parser = SubmissionParser(workspace)
    contributions = [parser.parse(path) for path in files]

    rows = []
    async with CatalogClient(catalog_config) as catalog:
        canonicalizer = Canonicalizer(catalog)
        for raw in contributions:
            entry = await canonicalizer.canonicalize(raw)
            if entry is None:
                rows.append((raw.source_path, raw.subject_name, "skipped: no sprite"))
            else:
                rows.append((raw.source_path, entry.name, f"ok (ID {entry.id})"))
    return rows


@main.command()
@click.argument("files", nargs=-1, required=True)
@click.option(
    "--workspace",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory the file paths are relative to (default: current directory)",
)
@click.option("--log-level", default="WARN", help="Log level (default: WARN)")
def validate(files, workspace: Optional[Path], log_level):
    """Check submission files locally without touching the dataset."""
    configure_logging(level=log_level)

    try:
        catalog_config = CatalogConfig.from_env()
        rows = asyncio.run(_validate_files(files, workspace or Path.cwd(), catalog_config))
    except (PipelineError, ConfigurationError) as e:
        _print_error(e)
        sys.exit(e.exit_code)

    table = Table(title="Submission check", box=box.ROUNDED)
    table.add_column("File", style="cyan")
    table.add_column("Pokemon")
    table.add_column("Result", style="green")
    for path, name, status in rows:
        table.add_row(escape(path), escape(name), status)
    console.print(table)


if __name__ == "__main__":
    main()
