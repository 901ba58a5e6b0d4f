"""Terminal feedback for the gcovview commands.

Everything here writes to stderr so command output on stdout stays
machine-readable. Live displays (spinner, reload bar) only appear on a
TTY; while one is shown, console log handlers are muted.

Usage::

    with reload_display("Reload Coverage Data") as display:
        await coordinator.reload(roots, on_progress=display.update)
    status("Reload finished", style="success")
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from types import TracebackType
from typing import TYPE_CHECKING

from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TaskProgressColumn, TextColumn

if TYPE_CHECKING:
    from gcovview.ingest.coordinator import ProgressEvent

_console = Console(stderr=True)

_PREFIXES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}

# Shared by all threads; the scan runs in a worker thread.
_live_display = threading.Event()


def is_console_suppressed() -> bool:
    """True while a spinner or progress bar owns the terminal."""
    return _live_display.is_set()


def _set_suppressed(active: bool) -> None:
    if active:
        _live_display.set()
    else:
        _live_display.clear()


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Mute console log handlers for the duration; file handlers keep logging."""
    _set_suppressed(True)
    try:
        yield
    finally:
        _set_suppressed(False)


def _on_tty() -> bool:
    return sys.stderr.isatty() if hasattr(sys.stderr, "isatty") else False


def _log_debug(event: str, **fields: object) -> None:
    # looked up per call so a later configure_logging() applies
    from gcovview.core.logging import get_logger

    get_logger("progress").debug(event, **fields)


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print one prefixed line to stderr, e.g. ``✓ Deleted 3 data files``."""
    _console.print(" " * indent + _PREFIXES.get(style, "") + message, highlight=False)
    _log_debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """``pluralize(1, "file")`` -> "1 file", ``pluralize(2, "file")`` -> "2 files"."""
    if count == 1:
        return f"{count} {singular}"
    return f"{count} {plural or singular + 's'}"


@contextmanager
def spinner(message: str, *, indent: int = 0) -> Iterator[None]:
    """Spinner while a blocking step runs; a plain line when not on a TTY."""
    text = " " * indent + message
    if not _on_tty():
        _console.print(f"{text}...")
        yield
        return
    with suppress_console_logs(), _console.status(f"[cyan]{text}[/cyan]", spinner="dots"):
        yield


class ReloadDisplay:
    """Progress bar fed with the coordinator's ProgressEvents.

    Event increments are percentage points, so the bar runs to 100. The
    bar disappears when the display closes. Without a TTY, events are only
    logged at DEBUG.
    """

    def __init__(self, title: str, *, console: Console | None = None, live: bool | None = None):
        self.title = title
        self.last_event: ProgressEvent | None = None
        self._target = console if console is not None else _console
        self._live = _on_tty() if live is None else live
        self._bar: Progress | None = None
        self._task: TaskID | None = None

    def update(self, event: ProgressEvent) -> None:
        self.last_event = event
        if self._bar is None or self._task is None:
            _log_debug(
                "reload_progress",
                completed=event.completed,
                total=event.total,
                message=event.message,
            )
            return
        self._bar.update(self._task, advance=event.increment, message=event.message)

    def __enter__(self) -> ReloadDisplay:
        if not self._live:
            return self
        _set_suppressed(True)
        self._bar = Progress(
            TextColumn("{task.description}"),
            BarColumn(bar_width=30, style="cyan", complete_style="cyan"),
            TaskProgressColumn(),
            TextColumn("[dim]{task.fields[message]}[/dim]"),
            console=self._target,
            transient=True,
        )
        self._bar.start()
        self._task = self._bar.add_task(self.title, total=100, message="")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._bar is not None:
            self._bar.stop()
            self._bar = None
            self._task = None
        _set_suppressed(False)


def reload_display(title: str, *, console: Console | None = None) -> ReloadDisplay:
    """Progress display for one reload cycle; live only on a TTY."""
    return ReloadDisplay(title, console=console)
