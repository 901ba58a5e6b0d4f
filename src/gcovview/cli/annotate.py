"""gcovview annotate command - source listing with execution counts."""

from pathlib import Path

import click

from gcovview.cli.utils import find_file, load_project, run_reload
from gcovview.coverage.analysis import ensure_analyzed
from gcovview.coverage.report import annotate_lines, build_text_summary

_MISSED_MARKER = "#####"


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--root",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Project root (default: current directory)",
)
@click.option("--missed/--no-missed", default=True, help="Mark lines that never executed")
@click.option("--calls", is_flag=True, help="Break counts down by calling function")
@click.pass_context
def annotate_command(ctx: click.Context, file: Path, root: Path, missed: bool, calls: bool) -> None:
    """Print FILE with the execution count of every instrumented line."""
    root = root.resolve()
    config = load_project(root, verbose=ctx.obj.get("verbose", False))
    cache, _ = run_reload(root, config)
    analysis = ensure_analyzed(find_file(cache, file))
    annotations = {a.line_index: a for a in annotate_lines(analysis, cache)}

    source = file.read_text(errors="replace").splitlines()
    for idx, text in enumerate(source):
        annotation = annotations.get(idx)
        if annotation is None:
            marker = ""
        elif annotation.called:
            marker = annotation.text
        else:
            marker = _MISSED_MARKER if missed else ""
        click.echo(f"{marker:>16} | {idx + 1:>5} | {text}")
        if calls and annotation is not None and annotation.called and annotation.tooltip:
            for call in annotation.tooltip.splitlines():
                click.echo(f"{'':>16} | {'':>5} |   {call}")

    click.echo(build_text_summary(analysis))
