"""Command-line interface for inspecting saved coverage reports."""

import logging
from pathlib import Path

import typer

from . import __version__
from .logging_utils import setup_logging
from .reporting import calculate_metrics, log_summary, read_json_report, write_csv_report

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="PageCov: inspect JavaScript and CSS coverage reports collected from browser pages.",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"PageCov {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show the version number and exit.", callback=_version_callback, is_eager=True
    ),
) -> None:
    """PageCov command-line interface."""


@app.command()
def summary(
    report: Path = typer.Argument(..., help="Path to a JSON coverage report.", exists=True, file_okay=True, dir_okay=False, resolve_path=True),
    fail_under: float | None = typer.Option(
        None, "--fail-under", help="Exit with status 1 if the used share of bytes is below this percentage."
    ),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug mode with verbose logging."),
    log_file: Path | None = typer.Option(None, "--log-file", help="Write a detailed debug log to this file (with --debug)."),
) -> None:
    """Log the used and unused bytes of every resource in a coverage report."""
    setup_logging(__version__, debug=debug, log_file=log_file)

    try:
        entries = read_json_report(report)
    except ValueError as e:
        logger.error("%s", e)  # noqa: TRY400
        raise typer.Exit(code=1) from e

    metrics = calculate_metrics(entries)
    log_summary(metrics)

    if fail_under is not None and metrics["usage_ratio"] * 100 < fail_under:
        logger.error("Coverage %.2f%% is below the required %.2f%%.", metrics["usage_ratio"] * 100, fail_under)
        raise typer.Exit(code=1)


@app.command()
def export(
    report: Path = typer.Argument(..., help="Path to a JSON coverage report.", exists=True, file_okay=True, dir_okay=False, resolve_path=True),
    output: Path = typer.Argument(..., help="Path of the CSV file to write."),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug mode with verbose logging."),
) -> None:
    """Convert a JSON coverage report to CSV."""
    setup_logging(__version__, debug=debug)

    try:
        entries = read_json_report(report)
    except ValueError as e:
        logger.error("%s", e)  # noqa: TRY400
        raise typer.Exit(code=1) from e

    write_csv_report(entries, output)
