import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from classsplit.config import get_config
from classsplit.discovery import discover_sources
from classsplit.exceptions import ConfigurationError
from classsplit.splitter import ClassSplitter, SplitStatus, SplitSummary

console = Console()
app = typer.Typer(
    name='classsplit',
    help='Split oversized C# classes into partial classes across several files',
    no_args_is_help=True,
)

STATUS_STYLES = {
    SplitStatus.SPLIT: 'green',
    SplitStatus.UNCHANGED: 'dim',
    SplitStatus.SKIPPED: 'yellow',
    SplitStatus.FAILED: 'red',
}


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(message)s',
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def print_summary(summary: SplitSummary, dry_run: bool) -> None:
    table = Table(title='Dry run (nothing written)' if dry_run else None)
    table.add_column('File')
    table.add_column('Status')
    table.add_column('Lines', justify='right')
    table.add_column('Output')

    for outcome in summary.outcomes:
        style = STATUS_STYLES[outcome.status]
        if outcome.containers:
            output = ', '.join(
                f'{c.path.name} ({c.line_count}{"!" if c.oversized else ""})'
                for c in outcome.containers
            )
        else:
            output = escape(outcome.error or '')
        table.add_row(
            escape(str(outcome.path)),
            f'[{style}]{outcome.status.value}[/{style}]',
            str(outcome.total_lines or ''),
            output,
        )

    console.print(table)
    console.print(
        f'Processed {summary.processed} file(s): {summary.split} split, '
        f'{summary.unchanged} unchanged, {summary.skipped} skipped, '
        f'{summary.errors} error(s)'
    )


@app.command()
def split(
    paths: Annotated[
        list[Path],
        typer.Argument(help='Files or directories containing the classes to split'),
    ],
    max_lines: Annotated[
        int | None,
        typer.Option(
            '--max-lines', '-m', min=1, help='Maximum number of lines per file'
        ),
    ] = None,
    recursive: Annotated[
        bool, typer.Option('--recursive', '-r', help='Search directories recursively')
    ] = False,
    jobs: Annotated[
        int | None,
        typer.Option('--jobs', '-j', min=1, help='Number of files processed at once'),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option('--dry-run', help='Show what would be written without writing'),
    ] = False,
    config: Annotated[
        str | None,
        typer.Option(
            '--config', '-c', help='Path to configuration file (YAML or JSON)'
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option('--verbose', '-v', help='Show debug output')
    ] = False,
) -> None:
    """Split every class over the line budget into partial classes.

    The original file keeps the first members; the rest go to new files
    named after it with the next free number, e.g. Foo2.cs, Foo3.cs.

    Examples:
        classsplit split Services/Engine.cs
        classsplit split src --recursive --max-lines 800
        classsplit split A.cs B.cs --dry-run
    """
    configure_logging(verbose)

    try:
        settings = get_config(config)
    except ConfigurationError as e:
        console.print(f'[red]Error:[/red] {escape(str(e))}')
        raise typer.Exit(1)

    overrides = {
        'max_lines': max_lines,
        'recursive': recursive or None,
        'jobs': jobs,
        'dry_run': dry_run or None,
    }
    settings = settings.model_copy(
        update={key: value for key, value in overrides.items() if value is not None}
    )

    sources = discover_sources(
        paths,
        recursive=settings.recursive,
        extensions=settings.extensions,
        exclude=settings.exclude,
    )
    if not sources:
        console.print('[yellow]No files to process.[/yellow]')
        return

    summary = ClassSplitter(settings).run(sources)
    print_summary(summary, settings.dry_run)

    if summary.errors:
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show the version of classsplit."""
    from classsplit import __version__

    console.print(f'classsplit version: {__version__}')


if __name__ == '__main__':
    app()
