"""gcovview functions command - functions of one file by call count."""

from pathlib import Path

import click

from gcovview.cli.utils import find_file, load_project, run_reload
from gcovview.coverage.analysis import ensure_analyzed
from gcovview.coverage.report import functions_by_call_count


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--root",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Project root (default: current directory)",
)
@click.pass_context
def functions_command(ctx: click.Context, file: Path, root: Path) -> None:
    """List the functions of FILE, most executed first."""
    root = root.resolve()
    config = load_project(root, verbose=ctx.obj.get("verbose", False))
    cache, _ = run_reload(root, config)
    analysis = ensure_analyzed(find_file(cache, file))

    for function in functions_by_call_count(analysis):
        click.echo(
            f"{function.execution_count:,}x {function.base_name}"
            f"  (lines {function.start_line + 1}-{function.end_line + 1},"
            f" {function.called_lines}/{function.total_lines} called)"
        )
