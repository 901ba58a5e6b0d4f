"""Tests for the reload coordinator.

Uses an in-memory tool and scanner so no gcov binary or build tree is needed.
"""

from __future__ import annotations

import asyncio
import os
import random
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

import pytest

from gcovview.config.models import IngestionConfig
from gcovview.core.errors import ErrorCode, ToolError
from gcovview.core.logging import get_cycle_id
from gcovview.coverage.analysis import ensure_analyzed
from gcovview.coverage.cache import CacheHandle, CoverageCache
from gcovview.coverage.models import FileRecordSet, LineRecord
from gcovview.ingest.coordinator import (
    IngestionCoordinator,
    ProgressEvent,
    ReloadState,
)

COMMON_HEADER = "/src/common.h"


class FakeTool:
    """Turns every x.gcda into records of /src/x.cc plus one shared header line."""

    executable = "fake-gcov"

    def __init__(
        self,
        *,
        compatible: bool = True,
        fail_on: set[str] | None = None,
        after_invoke: Callable[[Sequence[str]], None] | None = None,
    ) -> None:
        self.compatible = compatible
        self.fail_on = fail_on or set()
        self.after_invoke = after_invoke
        self.calls: list[list[str]] = []

    async def is_compatible(self) -> bool:
        return self.compatible

    async def invoke(self, paths: Sequence[str]) -> list[FileRecordSet]:
        self.calls.append(list(paths))
        await asyncio.sleep(0)
        if self.fail_on.intersection(paths):
            raise ToolError.invocation_failed(self.executable, 3, "corrupt data file")
        record_sets = [
            FileRecordSet(
                path=f"/src/{Path(p).stem}.cc",
                lines=[LineRecord(1, "main", 1)],
            )
            for p in paths
        ]
        record_sets.append(
            FileRecordSet(path=COMMON_HEADER, lines=[LineRecord(1, "inl", len(paths))])
        )
        if self.after_invoke is not None:
            self.after_invoke(paths)
        return record_sets


def make_scanner(
    paths: list[str],
    *,
    on_scan: Callable[[], None] | None = None,
) -> Callable[..., list[str]]:
    def scanner(
        roots: Iterable[str | Path],
        *,
        extension: str = ".gcda",
        cancelled: Callable[[], bool] | None = None,
        on_path: Callable[[int, int, str], None] | None = None,
    ) -> list[str]:
        for i, path in enumerate(paths, start=1):
            if on_path is not None:
                on_path(i, i, path)
        if on_scan is not None:
            on_scan()
        return list(paths)

    return scanner


def data_files(count: int) -> list[str]:
    return [f"/build/f{i}.gcda" for i in range(count)]


def make_coordinator(
    tool: FakeTool,
    paths: list[str],
    *,
    handle: CacheHandle | None = None,
    workers: int = 2,
    max_chunk_size: int = 30,
    on_scan: Callable[[], None] | None = None,
) -> IngestionCoordinator:
    return IngestionCoordinator(
        handle or CacheHandle(),
        tool,
        config=IngestionConfig(workers=workers, max_chunk_size=max_chunk_size),
        scanner=make_scanner(paths, on_scan=on_scan),
        rng=random.Random(0),
    )


class TestReloadCompleted:
    @pytest.mark.asyncio
    async def test_all_files_absorbed(self) -> None:
        tool = FakeTool()
        paths = data_files(5)
        coordinator = make_coordinator(tool, paths, workers=2, max_chunk_size=2)

        result = await coordinator.reload(["/build"])

        assert result.state is ReloadState.COMPLETED
        assert result.ok
        assert result.requested == 5
        assert result.absorbed == 5
        assert coordinator.state is ReloadState.COMPLETED
        assert sorted(coordinator.cache.absorbed_batches) == sorted(paths)

    @pytest.mark.asyncio
    async def test_every_path_in_exactly_one_bounded_chunk(self) -> None:
        tool = FakeTool()
        paths = data_files(23)
        coordinator = make_coordinator(tool, paths, workers=3, max_chunk_size=4)

        await coordinator.reload(["/build"])

        invoked = [p for call in tool.calls for p in call]
        assert sorted(invoked) == sorted(paths)
        assert all(len(call) <= 4 for call in tool.calls)

    @pytest.mark.asyncio
    async def test_single_worker_chunks_balanced(self) -> None:
        tool = FakeTool()
        coordinator = make_coordinator(tool, data_files(70), workers=1, max_chunk_size=30)

        await coordinator.reload(["/build"])

        assert [len(call) for call in tool.calls] == [24, 24, 22]

    @pytest.mark.asyncio
    async def test_shared_file_accumulates_across_chunks(self) -> None:
        tool = FakeTool()
        coordinator = make_coordinator(tool, data_files(9), workers=3, max_chunk_size=2)

        await coordinator.reload(["/build"])

        header = coordinator.cache.lookup(COMMON_HEADER)
        assert header is not None
        analysis = ensure_analyzed(header)
        assert analysis.lines[0].execution_count == 9
        assert len(analysis.lines[0].raw) == len(tool.calls)
        assert len(coordinator.cache) == 10

    @pytest.mark.asyncio
    async def test_more_workers_than_files(self) -> None:
        tool = FakeTool()
        coordinator = make_coordinator(tool, data_files(2), workers=8)

        result = await coordinator.reload(["/build"])

        assert result.absorbed == 2
        assert len(tool.calls) == 2

    @pytest.mark.asyncio
    async def test_cycle_id_cleared(self) -> None:
        coordinator = make_coordinator(FakeTool(), data_files(1))
        await coordinator.reload(["/build"])
        assert get_cycle_id() is None


class TestReloadProgress:
    @pytest.mark.asyncio
    async def test_increments_sum_to_hundred(self) -> None:
        events: list[ProgressEvent] = []
        coordinator = make_coordinator(FakeTool(), data_files(10), workers=2, max_chunk_size=3)

        await coordinator.reload(["/build"], on_progress=events.append)

        parse_events = [e for e in events if e.total]
        assert sum(e.increment for e in events) == pytest.approx(100.0)
        assert [e.completed for e in parse_events] == sorted(e.completed for e in parse_events)
        assert parse_events[-1].completed == 10
        assert parse_events[-1].message == "[10/10] Parsing"

    @pytest.mark.asyncio
    async def test_scan_events_reported(self) -> None:
        events: list[ProgressEvent] = []
        coordinator = make_coordinator(FakeTool(), data_files(3))

        await coordinator.reload(["/build"], on_progress=events.append)

        assert events[0].message == "Searching data files"
        scan_events = [e for e in events if "Scanning" in e.message]
        assert len(scan_events) == 3
        assert all(e.increment == 0 for e in scan_events)


class TestReloadReplacesCache:
    @pytest.mark.asyncio
    async def test_old_cache_untouched(self) -> None:
        old = CoverageCache()
        old.merge(FileRecordSet(path="/src/stale.cc", lines=[LineRecord(1, "f", 1)]))
        handle = CacheHandle(old)
        coordinator = make_coordinator(FakeTool(), data_files(2), handle=handle)

        await coordinator.reload(["/build"])

        assert handle.current is not old
        assert handle.current.lookup("/src/stale.cc") is None
        assert old.all_known_paths() == ["/src/stale.cc"]

    @pytest.mark.asyncio
    async def test_base_directory_passed_to_new_cache(self) -> None:
        handle = CacheHandle()
        coordinator = IngestionCoordinator(
            handle,
            FakeTool(),
            scanner=make_scanner(data_files(1)),
            base_directory="/proj",
        )

        await coordinator.reload(["/build"])

        assert handle.current.base_directory == "/proj"


class TestReloadFailures:
    @pytest.mark.asyncio
    async def test_no_candidates(self) -> None:
        tool = FakeTool()
        handle = CacheHandle()
        coordinator = make_coordinator(tool, [], handle=handle)

        result = await coordinator.reload(["/build"])

        assert result.state is ReloadState.FAILED
        assert result.error is not None
        assert result.error.code == ErrorCode.SCAN_NO_CANDIDATES
        assert "--coverage" in result.error.message
        assert tool.calls == []
        assert handle.current.has_data() is False

    @pytest.mark.asyncio
    async def test_incompatible_tool_keeps_cache(self) -> None:
        old = CoverageCache()
        handle = CacheHandle(old)
        scanned: list[bool] = []
        coordinator = make_coordinator(
            FakeTool(compatible=False),
            data_files(3),
            handle=handle,
            on_scan=lambda: scanned.append(True),
        )

        result = await coordinator.reload(["/build"])

        assert result.state is ReloadState.FAILED
        assert result.error is not None
        assert result.error.code == ErrorCode.TOOL_INCOMPATIBLE
        assert handle.current is old
        assert scanned == []

    @pytest.mark.asyncio
    async def test_failed_chunk_isolated(self) -> None:
        paths = data_files(6)
        tool = FakeTool(fail_on={paths[0]})
        coordinator = make_coordinator(tool, paths, workers=2, max_chunk_size=1)

        result = await coordinator.reload(["/build"])

        assert result.state is ReloadState.COMPLETED
        assert result.ok is False
        assert result.absorbed == 5
        assert len(result.failures) == 1
        failure = result.failures[0]
        assert failure.paths == (paths[0],)
        assert failure.error.details["diagnostic"] == "corrupt data file"
        assert paths[0] not in coordinator.cache.absorbed_batches
        assert coordinator.cache.lookup("/src/f0.cc") is None

    @pytest.mark.asyncio
    async def test_result_serializes(self) -> None:
        paths = data_files(2)
        coordinator = make_coordinator(FakeTool(fail_on={paths[1]}), paths, max_chunk_size=1)

        payload = (await coordinator.reload(["/build"])).to_dict()

        assert payload["state"] == "completed"
        assert payload["requested"] == 2
        assert payload["absorbed"] == 1
        assert payload["failures"][0]["paths"] == [paths[1]]
        assert payload["failures"][0]["error"] == "TOOL_INVOCATION_FAILED"
        assert payload["error"] is None


class TestReloadCancellation:
    @pytest.mark.asyncio
    async def test_cancel_after_first_chunk_keeps_partial_data(self) -> None:
        cancel_event = asyncio.Event()
        tool = FakeTool(after_invoke=lambda _paths: cancel_event.set())
        coordinator = make_coordinator(tool, data_files(4), workers=1, max_chunk_size=1)

        result = await coordinator.reload(["/build"], cancel_event=cancel_event)

        assert result.state is ReloadState.CANCELLED
        assert result.requested == 4
        assert result.absorbed == 1
        assert len(tool.calls) == 1
        assert coordinator.cache.has_data() is True
        assert len(coordinator.cache.absorbed_batches) == 1

    @pytest.mark.asyncio
    async def test_cancel_during_scan(self) -> None:
        cancel_event = asyncio.Event()
        tool = FakeTool()
        coordinator = make_coordinator(tool, data_files(4), on_scan=cancel_event.set)

        result = await coordinator.reload(["/build"], cancel_event=cancel_event)

        assert result.state is ReloadState.CANCELLED
        assert result.absorbed == 0
        assert tool.calls == []


class TestWorkers:
    def test_configured(self) -> None:
        coordinator = make_coordinator(FakeTool(), [], workers=3)
        assert coordinator.workers == 3

    def test_defaults_to_cpu_count(self) -> None:
        coordinator = IngestionCoordinator(CacheHandle(), FakeTool())
        assert coordinator.workers == (os.cpu_count() or 1)

    def test_initial_state(self) -> None:
        assert IngestionCoordinator(CacheHandle(), FakeTool()).state is ReloadState.IDLE
