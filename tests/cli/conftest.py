"""Fixtures for CLI tests: a small project tree and a stand-in for gcov."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

from gcovview.coverage.models import FileRecordSet, FunctionRecord, LineRecord

SOURCE = """\
int main() {
    int x = 1;
    if (x == 0)
        return 1;
    return 0;
}
"""


class StubGcov:
    """Reports main.cc for every chunk: lines 2 and 5 ran, line 4 did not."""

    executable = "gcov"

    def __init__(self, source: Path, *, compatible: bool = True) -> None:
        self.source = source
        self.compatible = compatible
        self.calls: list[list[str]] = []

    async def is_compatible(self) -> bool:
        return self.compatible

    async def invoke(self, paths: Sequence[str]) -> list[FileRecordSet]:
        self.calls.append(list(paths))
        return [
            FileRecordSet(
                path=str(self.source),
                lines=[
                    LineRecord(2, "main", 3),
                    LineRecord(4, "main", 0),
                    LineRecord(5, "main", 3),
                ],
                functions=[FunctionRecord("main", "main()", 1, 6, 3)],
            )
        ]


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Project root with src/main.cc and build/main.gcda."""
    root = tmp_path.resolve() / "project"
    (root / "src").mkdir(parents=True)
    (root / "src" / "main.cc").write_text(SOURCE)
    (root / "build").mkdir()
    (root / "build" / "main.gcda").write_bytes(b"adcg")
    monkeypatch.setenv("GCOVVIEW__LOGGING__LEVEL", "WARNING")
    with patch("gcovview.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml"):
        yield root


@pytest.fixture
def stub_gcov(project: Path) -> Iterator[StubGcov]:
    tool = StubGcov(project / "src" / "main.cc")
    with patch("gcovview.cli.utils.make_tool", return_value=tool):
        yield tool


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Commands attach handlers to CliRunner's streams; drop them afterwards."""
    yield
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()
