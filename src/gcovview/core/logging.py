"""structlog setup for gcovview.

Events go through stdlib logging so that every configured output (stderr,
stdout or a log file) gets its own handler, level and renderer. Console
handlers go quiet while a rich live display owns the terminal. Events
emitted during a reload carry that reload's ``cycle_id``.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from gcovview.config.models import LoggingConfig, LogOutputConfig

# Third-party loggers that are too chatty below WARNING.
_QUIET_LOGGERS = ("asyncio",)

_cycle_id: ContextVar[str | None] = ContextVar("cycle_id", default=None)


def get_cycle_id() -> str | None:
    return _cycle_id.get()


def set_cycle_id(cycle_id: str | None = None) -> str:
    """Start a reload cycle; returns the (possibly generated) correlation ID."""
    cid = cycle_id or uuid4().hex[:12]
    _cycle_id.set(cid)
    return cid


def clear_cycle_id() -> None:
    _cycle_id.set(None)


def _add_cycle_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    cid = _cycle_id.get()
    if cid is not None:
        event_dict["cycle_id"] = cid
    return event_dict


def _level(name: str | None, fallback: int = logging.INFO) -> int:
    if name is None:
        return fallback
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else fallback


class ConsoleSuppressingFilter(logging.Filter):
    """Drops records while a progress bar or spinner is on screen."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: ARG002
        # progress imports this module
        from gcovview.core.progress import is_console_suppressed

        return not is_console_suppressed()


def _processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_cycle_id,  # type: ignore[list-item]
    ]


def _stream(destination: str) -> TextIO | None:
    """The current sys stream for "stderr"/"stdout", None for file paths."""
    if destination == "stderr":
        return sys.stderr
    if destination == "stdout":
        return sys.stdout
    return None


def _open_handler(output: LogOutputConfig) -> logging.Handler:
    stream = _stream(output.destination)
    if stream is not None:
        handler: logging.Handler = logging.StreamHandler(stream)
        handler.addFilter(ConsoleSuppressingFilter())
        return handler
    log_file = Path(output.destination)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(log_file, mode="a")


def _formatter(
    output: LogOutputConfig,
    pre_chain: list[structlog.types.Processor],
) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        stream = _stream(output.destination)
        renderer = structlog.dev.ConsoleRenderer(
            colors=stream is not None and stream.isatty(),
            pad_event_to=0,
            pad_level=False,
        )
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """(Re)configure logging. Safe to call more than once.

    Args:
        config: Full logging section; wins over the simple parameters.
        json_format: Single stderr output rendered as JSON lines.
        level: Level of the single stderr output.
    """
    from gcovview.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    root_level = _level(config.level)
    processors = _processors()

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # uncached so that a later configure_logging() takes effect everywhere
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
        if isinstance(old, logging.FileHandler):
            old.close()
    root.setLevel(root_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for output in config.outputs:
        handler = _open_handler(output)
        handler.setLevel(_level(output.level, root_level))
        handler.setFormatter(_formatter(output, processors))
        root.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger for one gcovview component; `name` ends up in the ``logger`` key."""
    if name is None:
        return structlog.get_logger()  # type: ignore[no-any-return]
    return structlog.get_logger().bind(logger=name)  # type: ignore[no-any-return]
