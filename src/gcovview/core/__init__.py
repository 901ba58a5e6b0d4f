"""Core module exports."""

from gcovview.core.errors import (
    ConfigError,
    ErrorCode,
    GcovViewError,
    ScanError,
    ToolError,
)
from gcovview.core.logging import (
    clear_cycle_id,
    configure_logging,
    get_cycle_id,
    get_logger,
    set_cycle_id,
)
from gcovview.core.progress import pluralize, reload_display, status

__all__ = [
    # Errors
    "ConfigError",
    "ErrorCode",
    "GcovViewError",
    "ScanError",
    "ToolError",
    # Logging
    "clear_cycle_id",
    "configure_logging",
    "get_cycle_id",
    "get_logger",
    "set_cycle_id",
    # Progress
    "pluralize",
    "reload_display",
    "status",
]
