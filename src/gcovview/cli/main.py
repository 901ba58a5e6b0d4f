"""gcovview CLI - gcov coverage ingestion and reports."""

import click

from gcovview.cli.annotate import annotate_command
from gcovview.cli.clean import clean_command
from gcovview.cli.functions import functions_command
from gcovview.cli.paths import paths_command
from gcovview.cli.reload import reload_command
from gcovview.cli.summary import summary_command
from gcovview.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="gcovview")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """gcovview - merge gcov coverage data and report it per file and function."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(reload_command, name="reload")
cli.add_command(paths_command, name="paths")
cli.add_command(summary_command, name="summary")
cli.add_command(functions_command, name="functions")
cli.add_command(annotate_command, name="annotate")
cli.add_command(clean_command, name="clean")


if __name__ == "__main__":
    cli()
