"""CLI utilities shared by the data commands."""

from __future__ import annotations

import asyncio
import contextlib
import signal
from pathlib import Path

import click

from gcovview.config import GcovViewConfig, load_config, resolve_build_directories
from gcovview.core.errors import ConfigError
from gcovview.core.logging import configure_logging
from gcovview.core.progress import pluralize, reload_display, status
from gcovview.coverage.cache import CacheHandle, CoverageCache
from gcovview.coverage.models import FileRecordSet
from gcovview.ingest.base import CoverageTool
from gcovview.ingest.coordinator import IngestionCoordinator, ReloadResult, ReloadState
from gcovview.ingest.gcov import GcovTool


def load_project(root: Path, *, verbose: bool = False) -> GcovViewConfig:
    """Load the project config and configure logging from it."""
    try:
        config = load_config(root)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    logging_config = config.logging
    if verbose:
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)
    return config


def make_tool(config: GcovViewConfig) -> CoverageTool:
    return GcovTool(config.tool)


async def _reload_with_sigint(
    coordinator: IngestionCoordinator, directories: list[Path]
) -> ReloadResult:
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    # Not available on Windows event loops; Ctrl+C then aborts instead of cancelling.
    with contextlib.suppress(NotImplementedError, RuntimeError):
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
    try:
        with reload_display("Reload Coverage Data") as display:
            return await coordinator.reload(
                directories, cancel_event=cancel_event, on_progress=display.update
            )
    finally:
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.remove_signal_handler(signal.SIGINT)


def run_reload(root: Path, config: GcovViewConfig) -> tuple[CoverageCache, ReloadResult]:
    """Run one full reload cycle and report its outcome on stderr.

    Raises:
        click.ClickException: If the tool is incompatible or no data exists.
    """
    handle = CacheHandle()
    coordinator = IngestionCoordinator(
        handle,
        make_tool(config),
        config=config.ingestion,
        base_directory=str(root),
    )
    directories = resolve_build_directories(config, root)
    result = asyncio.run(_reload_with_sigint(coordinator, directories))

    if result.error is not None:
        raise click.ClickException(result.error.message)
    for failure in result.failures:
        status(
            f"{failure.error.message} ({pluralize(len(failure.paths), 'data file')} skipped)",
            style="error",
        )
        diagnostic = failure.error.details.get("diagnostic")
        if diagnostic:
            status(diagnostic, indent=4)
    if result.state is ReloadState.CANCELLED:
        status(
            f"Reload cancelled after {result.absorbed}/{result.requested} data files",
            style="warning",
        )
    return handle.current, result


def find_file(cache: CoverageCache, path: Path) -> FileRecordSet:
    records = cache.lookup(str(path.resolve()))
    if records is None:
        raise click.ClickException(f"No coverage data for {path}")
    return records
