"""Command line entry point for gitmon."""

import logging
import os
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from gitmon.core.config import load_config
from gitmon.core.errors import ConfigError
from gitmon.core.monitor import GitMonitor
from gitmon.core.notifier import EmailDestination, FileDestination
from gitmon.models.result import RunReport

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    """Route log records through rich on stderr."""
    if verbose:
        level = logging.DEBUG
    else:
        name = os.environ.get("GITMON_LOG", "WARNING").upper()
        level = logging.getLevelNamesMapping().get(name, logging.WARNING)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    # GitPython is chatty at DEBUG
    logging.getLogger("git").setLevel(logging.WARNING)


def print_summary(report: RunReport) -> None:
    """Show what the run found and where it went."""
    if not report.aggregate:
        console.print("[yellow]No new commits found[/yellow]")
    else:
        table = Table(title="New commits")
        table.add_column("Repository")
        table.add_column("Commits", justify="right")
        table.add_column("Newest")
        for url, commits in report.aggregate.items():
            table.add_row(escape(url), str(len(commits)), commits[0].id[:12])
        console.print(table)

        if report.delivered and report.output_path is not None:
            path = escape(str(report.output_path))
            console.print(f"[green]✅ Report written to {path}[/green]")
        elif report.delivered:
            console.print("[green]✅ Email sent[/green]")
        else:
            error = escape(report.delivery_error or "")
            console.print(f"[red]Delivery failed: {error}[/red]")

    for url, error in report.failures.items():
        console.print(f"[yellow]⚠️  Skipped {escape(url)}: {escape(error)}[/yellow]")


@click.command()
@click.version_option(package_name="gitmon")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to config.toml (default: ~/.config/gitmon/config.toml)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the HTML report to this file instead of sending email",
)
def main(verbose: bool, config_path: Optional[Path], output: Optional[Path]):
    """Monitor git repositories and report new commits."""
    setup_logging(verbose)

    try:
        config = load_config(config_path)
        monitor = GitMonitor.from_config(config)
    except ConfigError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise click.Abort() from e

    if output is not None:
        destination = FileDestination(output)
    else:
        destination = EmailDestination(
            from_addr=config.from_addr,
            to=config.to,
            token=config.token,
            smtp_host=config.smtp_host,
            smtp_port=config.smtp_port,
            subject=config.subject,
        )

    report = monitor.run(destination)

    if verbose:
        print_summary(report)


if __name__ == "__main__":
    main()
