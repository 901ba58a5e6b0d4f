"""gcovview clean command - delete coverage data files."""

from pathlib import Path

import click
import questionary

from gcovview.cli.utils import load_project
from gcovview.config import resolve_build_directories
from gcovview.core.progress import pluralize, spinner, status
from gcovview.ingest.scanning import delete_data_files, find_data_files


@click.command()
@click.argument("root", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def clean_command(ctx: click.Context, root: Path, yes: bool) -> None:
    """Delete all coverage data files below the build directories of ROOT."""
    root = root.resolve()
    config = load_project(root, verbose=ctx.obj.get("verbose", False))
    directories = resolve_build_directories(config, root)

    with spinner("Searching data files"):
        paths = find_data_files(directories, extension=config.ingestion.data_extension)
    if not paths:
        status("Nothing to delete", style="warning")
        return

    if not yes:
        answer = questionary.select(
            f"Delete {pluralize(len(paths), 'data file')}? This cannot be undone.",
            choices=[
                questionary.Choice("No, keep them", value=False),
                questionary.Choice("Yes, delete", value=True),
            ],
        ).ask()
        if not answer:
            status("Cancelled", style="none")
            return

    deleted = delete_data_files(paths)
    status(f"Deleted {pluralize(deleted, 'data file')}", style="success")
