"""gcovview paths command - list source files with coverage data."""

from pathlib import Path

import click

from gcovview.cli.utils import load_project, run_reload


@click.command()
@click.argument("root", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.pass_context
def paths_command(ctx: click.Context, root: Path) -> None:
    """Print every source path that has coverage data, sorted."""
    root = root.resolve()
    config = load_project(root, verbose=ctx.obj.get("verbose", False))
    cache, _ = run_reload(root, config)
    for path in cache.all_known_paths():
        click.echo(path)
