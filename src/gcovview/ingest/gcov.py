"""gcov invocation and JSON output parsing.

gcov (gcc >= 9) prints one JSON document per data file with
``--stdout --json-format``::

    {"current_working_directory": "/build", "data_file": "main.gcda",
     "files": [{"file": "../src/main.cc",
                "functions": [{"name": "_Z3fooi", "demangled_name": "foo(int)",
                               "start_line": 3, "end_line": 7,
                               "execution_count": 2, "blocks": 4,
                               "blocks_executed": 3, ...}],
                "lines": [{"line_number": 4, "function_name": "_Z3fooi",
                           "count": 2, "unexecuted_block": false, ...}]}]}

Documents are separated by newlines; unknown keys are ignored.
"""

from __future__ import annotations

import asyncio
import json
import shutil
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gcovview.config.models import ToolConfig
from gcovview.core.errors import ToolError
from gcovview.core.logging import get_logger
from gcovview.coverage.models import FileRecordSet, FunctionRecord, LineRecord

logger = get_logger("ingest.gcov")

JSON_FORMAT_FLAG = "--json-format"


class _GcovLine(BaseModel):
    model_config = ConfigDict(extra="ignore")

    line_number: int
    function_name: str = ""
    count: int
    unexecuted_block: bool = False


class _GcovFunction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    demangled_name: str
    start_line: int
    end_line: int
    execution_count: int
    blocks: int = 0
    blocks_executed: int = 0


class _GcovFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    file: str
    functions: list[_GcovFunction] = Field(default_factory=list)
    lines: list[_GcovLine] = Field(default_factory=list)


class _GcovDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current_working_directory: str | None = None
    data_file: str | None = None
    files: list[_GcovFile] = Field(default_factory=list)


def _iter_documents(text: str) -> list[dict[str, object]]:
    """Decode a stream of concatenated JSON documents."""
    decoder = json.JSONDecoder()
    documents: list[dict[str, object]] = []
    pos = 0
    end = len(text)
    while True:
        while pos < end and text[pos].isspace():
            pos += 1
        if pos >= end:
            return documents
        document, pos = decoder.raw_decode(text, pos)
        if not isinstance(document, dict):
            raise ValueError(f"expected a JSON object, got {type(document).__name__}")
        documents.append(document)


def parse_gcov_output(text: str, *, executable: str = "gcov") -> list[FileRecordSet]:
    """Parse gcov JSON output into one FileRecordSet per reported source file.

    Records of a file mentioned by several documents are concatenated in
    output order. Paths are kept as reported; `base_directory` carries the
    working directory gcov reported for resolving relative ones.

    Raises:
        ToolError: If the output is not valid gcov JSON.
    """
    try:
        documents = [_GcovDocument.model_validate(d) for d in _iter_documents(text)]
    except (ValueError, ValidationError) as e:
        logger.warning("gcov_output_invalid", executable=executable, error=str(e))
        raise ToolError.invalid_output(executable, str(e)) from e

    by_file: dict[tuple[str | None, str], FileRecordSet] = {}
    for document in documents:
        base = document.current_working_directory
        for entry in document.files:
            key = (base, entry.file)
            records = by_file.get(key)
            if records is None:
                records = FileRecordSet(path=entry.file, base_directory=base)
                by_file[key] = records
            records.lines.extend(
                LineRecord(
                    line_number=line.line_number,
                    owning_function=line.function_name,
                    execution_count=line.count,
                    unexecuted_block=line.unexecuted_block,
                )
                for line in entry.lines
            )
            records.functions.extend(
                FunctionRecord(
                    mangled_name=fn.name,
                    demangled_name=fn.demangled_name,
                    start_line=fn.start_line,
                    end_line=fn.end_line,
                    execution_count=fn.execution_count,
                    blocks=fn.blocks,
                    blocks_executed=fn.blocks_executed,
                )
                for fn in entry.functions
            )
    return list(by_file.values())


class GcovTool:
    """Runs gcov as a subprocess."""

    def __init__(self, config: ToolConfig | None = None) -> None:
        self._config = config or ToolConfig()

    @property
    def executable(self) -> str:
        return self._config.executable

    def build_command(self, paths: Sequence[str]) -> list[str]:
        return [
            self.executable,
            "--stdout",
            JSON_FORMAT_FLAG,
            *self._config.extra_args,
            *paths,
        ]

    async def _run(self, cmd: list[str]) -> tuple[int | None, str, str]:
        if not shutil.which(self.executable):
            raise ToolError.not_found(self.executable)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ToolError.invocation_failed(self.executable, None, str(e)) from e
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(), timeout=self._config.timeout_sec
            )
        except TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise ToolError.timeout(self.executable, self._config.timeout_sec) from e
        return (
            proc.returncode,
            stdout_bytes.decode(errors="replace"),
            stderr_bytes.decode(errors="replace"),
        )

    async def is_compatible(self) -> bool:
        """gcov must know --json-format (gcc 9 or newer)."""
        try:
            _, stdout, stderr = await self._run([self.executable, "--help"])
        except ToolError as e:
            logger.debug("gcov_probe_failed", executable=self.executable, error=str(e))
            return False
        return JSON_FORMAT_FLAG in stdout or JSON_FORMAT_FLAG in stderr

    async def invoke(self, paths: Sequence[str]) -> list[FileRecordSet]:
        cmd = self.build_command(paths)
        logger.debug("gcov_invoked", executable=self.executable, files=len(paths))
        returncode, stdout, stderr = await self._run(cmd)
        if returncode != 0:
            raise ToolError.invocation_failed(self.executable, returncode, stderr.strip())
        return parse_gcov_output(stdout, executable=self.executable)
