"""gcovview summary command - line coverage per file and function."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from gcovview.cli.utils import load_project, run_reload
from gcovview.coverage.report import build_summary


def _summary_table(summary: dict) -> Table:
    table = Table(show_header=True, box=None, padding=(0, 1), pad_edge=False)
    table.add_column("file", style="cyan")
    table.add_column("lines", justify="right")
    table.add_column("coverage", justify="right")
    for file_stats in summary["files"]:
        table.add_row(
            file_stats["path"],
            f"{file_stats['called']}/{file_stats['total']}",
            f"{file_stats['coverage_percent']:.1f}%",
        )
    totals = summary["summary"]
    table.add_row(
        "[bold]total[/bold]",
        f"{totals['called_lines']}/{totals['total_lines']}",
        f"{totals['line_coverage_percent']:.1f}%",
    )
    return table


@click.command()
@click.argument("root", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output the full report as JSON")
@click.pass_context
def summary_command(ctx: click.Context, root: Path, as_json: bool) -> None:
    """Show called/total lines of every file (and, with --json, every function)."""
    root = root.resolve()
    config = load_project(root, verbose=ctx.obj.get("verbose", False))
    cache, _ = run_reload(root, config)
    summary = build_summary(cache)

    if as_json:
        click.echo(json.dumps(summary, indent=2))
        return
    Console().print(_summary_table(summary))
