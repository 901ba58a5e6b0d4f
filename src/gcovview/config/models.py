"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (GCOVVIEW__SECTION__KEY)
3. Project YAML (<root>/.gcovview/config.yaml)
4. Global YAML (~/.config/gcovview/config.yaml)
5. Built-in defaults (this file)

Examples:
    GCOVVIEW__LOGGING__LEVEL=DEBUG
    GCOVVIEW__INGESTION__WORKERS=4
    GCOVVIEW__TOOL__EXECUTABLE=gcov-13
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        GCOVVIEW__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every merged chunk.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class IngestionConfig(BaseModel):
    """Coverage data discovery and batching.

    Env vars:
        GCOVVIEW__INGESTION__WORKERS: Parallel tool invocations (default: CPU count)
        GCOVVIEW__INGESTION__MAX_CHUNK_SIZE: Data files per tool invocation
        GCOVVIEW__INGESTION__DATA_EXTENSION: Coverage data file extension
    """

    build_directories: list[str] = Field(
        default_factory=list,
        description="Directories searched for coverage data. ${workspaceFolder} is "
        "replaced with the project root. Empty means the project root itself.",
    )
    data_extension: str = Field(
        default=".gcda",
        description="File name suffix of coverage data files.",
    )
    workers: int | None = Field(
        default=None,
        description="Number of batches processed concurrently. None uses the CPU count.",
    )
    max_chunk_size: int = Field(
        default=30,
        description="Upper bound of data files passed to one tool invocation. "
        "TRADEOFF: Larger chunks amortize process start-up but make progress coarser.",
    )

    @field_validator("data_extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if not v.startswith("."):
            raise ValueError(f"Extension must start with '.', got {v!r}")
        return v

    @field_validator("workers")
    @classmethod
    def validate_workers(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError(f"Workers must be >= 1, got {v}")
        return v

    @field_validator("max_chunk_size")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Chunk size must be >= 1, got {v}")
        return v


class ToolConfig(BaseModel):
    """External coverage tool configuration.

    Env vars:
        GCOVVIEW__TOOL__EXECUTABLE: gcov binary (default: gcov)
        GCOVVIEW__TOOL__TIMEOUT_SEC: Timeout of a single invocation
    """

    executable: str = Field(
        default="gcov",
        description="gcov executable. Must support --json-format (gcc >= 9).",
    )
    timeout_sec: float = Field(
        default=300.0,
        description="Timeout of one invocation. "
        "RISK: Too low fails chunks containing large translation units.",
    )
    extra_args: list[str] = Field(
        default_factory=list,
        description="Extra arguments inserted before the data file paths.",
    )


class GcovViewConfig(BaseModel):
    """Root configuration for gcovview."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    tool: ToolConfig = Field(default_factory=ToolConfig)
