"""Config module exports."""

from gcovview.config.loader import load_config, resolve_build_directories
from gcovview.config.models import (
    GcovViewConfig,
    IngestionConfig,
    LoggingConfig,
    ToolConfig,
)

__all__ = [
    "load_config",
    "resolve_build_directories",
    "GcovViewConfig",
    "IngestionConfig",
    "LoggingConfig",
    "ToolConfig",
]
