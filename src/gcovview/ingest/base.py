"""Collaborator protocols of the ingestion coordinator."""

from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Protocol

from gcovview.coverage.models import FileRecordSet


class CoverageTool(Protocol):
    """External tool turning coverage data files into raw records."""

    @property
    def executable(self) -> str:
        """Name shown in errors and logs."""
        ...

    async def is_compatible(self) -> bool:
        """Whether the tool can produce the structured output we parse."""
        ...

    async def invoke(self, paths: Sequence[str]) -> list[FileRecordSet]:
        """Process data files; one FileRecordSet per distinct source file.

        Raises:
            ToolError: If the tool fails or its output cannot be parsed.
        """
        ...


class DataFileScanner(Protocol):
    """Finds candidate data files; see `find_data_files`."""

    def __call__(
        self,
        roots: Iterable[str | Path],
        *,
        extension: str = ...,
        cancelled: Callable[[], bool] | None = ...,
        on_path: Callable[[int, int, str], None] | None = ...,
    ) -> list[str]: ...
