"""gcovview reload command - ingest all coverage data and report the outcome."""

import json
from pathlib import Path

import click

from gcovview.cli.utils import load_project, run_reload
from gcovview.core.progress import pluralize, status


@click.command()
@click.argument("root", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output the reload result as JSON")
@click.pass_context
def reload_command(ctx: click.Context, root: Path, as_json: bool) -> None:
    """Reload coverage data below the build directories of ROOT.

    ROOT is the project root (default: current directory).
    """
    root = root.resolve()
    config = load_project(root, verbose=ctx.obj.get("verbose", False))
    cache, result = run_reload(root, config)

    if as_json:
        payload = result.to_dict()
        payload["source_files"] = len(cache)
        click.echo(json.dumps(payload, indent=2))
    else:
        status(
            f"Absorbed {result.absorbed}/{pluralize(result.requested, 'data file')} "
            f"covering {pluralize(len(cache), 'source file')} ({result.duration_seconds:.1f}s)",
            style="success" if result.ok else "warning",
        )
