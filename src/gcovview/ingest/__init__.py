"""Coverage data ingestion: discovery, gcov invocation, parallel reload."""

from gcovview.ingest.base import CoverageTool, DataFileScanner
from gcovview.ingest.coordinator import (
    ChunkFailure,
    IngestionCoordinator,
    ProgressEvent,
    ReloadResult,
    ReloadState,
)
from gcovview.ingest.gcov import GcovTool, parse_gcov_output
from gcovview.ingest.partition import partition_into, shuffle_paths, split_bounded
from gcovview.ingest.scanning import delete_data_files, find_data_files

__all__ = [
    "ChunkFailure",
    "CoverageTool",
    "DataFileScanner",
    "GcovTool",
    "IngestionCoordinator",
    "ProgressEvent",
    "ReloadResult",
    "ReloadState",
    "delete_data_files",
    "find_data_files",
    "parse_gcov_output",
    "partition_into",
    "shuffle_paths",
    "split_bounded",
]
