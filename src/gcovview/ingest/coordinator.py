"""Reload cycle: scan for data files, run gcov on them in parallel, fill a cache.

State machine of one reload::

    IDLE -> SCANNING -> DISPATCHING -> MERGING -> COMPLETED | CANCELLED | FAILED

The shuffled candidate list is split into one batch per worker; batches
run concurrently, the chunks of one batch run one after the other. Every
finished chunk is merged into the new cache right away, so a cancelled or
partly failed reload keeps whatever was merged before.
"""

from __future__ import annotations

import asyncio
import os
import random
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from gcovview.config.models import IngestionConfig
from gcovview.core.errors import GcovViewError, ScanError, ToolError
from gcovview.core.logging import clear_cycle_id, get_logger, set_cycle_id
from gcovview.coverage.cache import CacheHandle, CoverageCache
from gcovview.ingest.base import CoverageTool, DataFileScanner
from gcovview.ingest.partition import partition_into, shuffle_paths, split_bounded
from gcovview.ingest.scanning import find_data_files

logger = get_logger("ingest.coordinator")


class ReloadState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    DISPATCHING = "dispatching"
    MERGING = "merging"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Progress of a reload.

    `increment` is the share of the whole reload (in percent) finished by
    the step this event reports; scan events carry 0.
    """

    completed: int
    total: int
    message: str
    increment: float = 0.0


ProgressCallback = Callable[[ProgressEvent], None]


@dataclass(frozen=True, slots=True)
class ChunkFailure:
    """A chunk whose tool invocation failed; its records are missing."""

    paths: tuple[str, ...]
    error: GcovViewError

    def to_dict(self) -> dict[str, Any]:
        return {"paths": list(self.paths), **self.error.to_dict()}


@dataclass(slots=True)
class ReloadResult:
    """Outcome of one reload cycle."""

    state: ReloadState
    requested: int = 0
    absorbed: int = 0
    failures: list[ChunkFailure] = field(default_factory=list)
    error: GcovViewError | None = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.state is ReloadState.COMPLETED and not self.failures

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "requested": self.requested,
            "absorbed": self.absorbed,
            "failures": [f.to_dict() for f in self.failures],
            "error": self.error.to_dict() if self.error else None,
            "duration_seconds": round(self.duration_seconds, 3),
        }


def _default_workers() -> int:
    """One batch per CPU; gcov is CPU bound."""
    return os.cpu_count() or 1


class IngestionCoordinator:
    """Drives reload cycles into a CacheHandle.

    Args:
        handle: Receives a fresh cache at the start of every reload.
        tool: External tool turning data files into records.
        config: Batching configuration.
        scanner: Candidate discovery; runs in a worker thread.
        base_directory: Resolves relative source paths gcov reports
            without a working directory.
        rng: Random source for shuffling (tests pass a seeded one).
    """

    def __init__(
        self,
        handle: CacheHandle,
        tool: CoverageTool,
        *,
        config: IngestionConfig | None = None,
        scanner: DataFileScanner = find_data_files,
        base_directory: str | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._handle = handle
        self._tool = tool
        self._config = config or IngestionConfig()
        self._scanner = scanner
        self._base_directory = base_directory
        self._rng = rng
        self._state = ReloadState.IDLE
        self._completed = 0

    @property
    def state(self) -> ReloadState:
        return self._state

    @property
    def cache(self) -> CoverageCache:
        return self._handle.current

    @property
    def workers(self) -> int:
        return self._config.workers or _default_workers()

    async def reload(
        self,
        roots: Iterable[str | Path],
        *,
        cancel_event: asyncio.Event | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ReloadResult:
        """Discard the current cache and ingest every data file below `roots`.

        Never raises for tool incompatibility, missing data or failed
        chunks; those are reported in the returned ReloadResult.
        """
        cancel_event = cancel_event or asyncio.Event()
        emit = on_progress or (lambda _event: None)
        roots = [str(r) for r in roots]
        start_time = time.time()
        set_cycle_id()
        self._state = ReloadState.IDLE
        self._completed = 0
        logger.info("reload_started", roots=roots, workers=self.workers)

        try:
            if not await self._tool.is_compatible():
                error = ToolError.incompatible(
                    self._tool.executable, f"{self._tool.executable} does not support --json-format"
                )
                logger.error("tool_incompatible", executable=self._tool.executable)
                return self._finish(ReloadResult(ReloadState.FAILED, error=error), start_time)

            cache = self._handle.replace(CoverageCache(base_directory=self._base_directory))
            paths = await self._scan(roots, cancel_event, emit)

            if cancel_event.is_set():
                return self._finish(
                    ReloadResult(ReloadState.CANCELLED, requested=len(paths)), start_time
                )
            if not paths:
                error = ScanError.no_candidates(roots, self._config.data_extension)
                logger.warning("no_candidates", roots=roots)
                return self._finish(ReloadResult(ReloadState.FAILED, error=error), start_time)

            failures = await self._dispatch(cache, paths, cancel_event, emit)
            state = ReloadState.CANCELLED if cancel_event.is_set() else ReloadState.COMPLETED
            result = ReloadResult(
                state,
                requested=len(paths),
                absorbed=len(cache.absorbed_batches),
                failures=failures,
            )
            return self._finish(result, start_time)
        finally:
            clear_cycle_id()

    def _finish(self, result: ReloadResult, start_time: float) -> ReloadResult:
        result.duration_seconds = time.time() - start_time
        self._state = result.state
        logger.info(
            "reload_finished",
            state=result.state.value,
            requested=result.requested,
            absorbed=result.absorbed,
            failures=len(result.failures),
            duration_s=round(result.duration_seconds, 3),
        )
        return result

    async def _scan(
        self,
        roots: list[str],
        cancel_event: asyncio.Event,
        emit: ProgressCallback,
    ) -> list[str]:
        self._state = ReloadState.SCANNING
        emit(ProgressEvent(0, 0, "Searching data files"))
        loop = asyncio.get_running_loop()

        def on_path(seen: int, found: int, path: str) -> None:
            event = ProgressEvent(0, 0, f"[{seen}] Scanning (found {found}): {path}")
            loop.call_soon_threadsafe(emit, event)

        paths = await asyncio.to_thread(
            self._scanner,
            roots,
            extension=self._config.data_extension,
            cancelled=cancel_event.is_set,
            on_path=on_path,
        )
        logger.info("scan_completed", candidates=len(paths), cancelled=cancel_event.is_set())
        return paths

    async def _dispatch(
        self,
        cache: CoverageCache,
        paths: list[str],
        cancel_event: asyncio.Event,
        emit: ProgressCallback,
    ) -> list[ChunkFailure]:
        self._state = ReloadState.DISPATCHING
        shuffle_paths(paths, self._rng)
        batches = [b for b in partition_into(paths, self.workers) if b]
        failures: list[ChunkFailure] = []
        tasks = [
            asyncio.create_task(
                self._run_batch(i, cache, batch, len(paths), cancel_event, emit, failures)
            )
            for i, batch in enumerate(batches)
        ]

        self._state = ReloadState.MERGING
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for t in tasks:
                t.cancel()
            raise
        return failures

    async def _run_batch(
        self,
        batch_id: int,
        cache: CoverageCache,
        batch: list[str],
        total: int,
        cancel_event: asyncio.Event,
        emit: ProgressCallback,
        failures: list[ChunkFailure],
    ) -> None:
        chunks = split_bounded(batch, self._config.max_chunk_size)
        logger.debug("batch_started", batch=batch_id, files=len(batch), chunks=len(chunks))
        for done, chunk in enumerate(chunks):
            if cancel_event.is_set():
                logger.info("batch_cancelled", batch=batch_id, remaining_chunks=len(chunks) - done)
                return
            try:
                record_sets = await self._tool.invoke(chunk)
            except ToolError as e:
                failures.append(ChunkFailure(tuple(chunk), e))
                logger.warning("chunk_failed", batch=batch_id, files=len(chunk), error=str(e))
                continue

            cache.merge_all(record_sets)
            cache.absorb(chunk)
            self._completed += len(chunk)
            logger.debug("chunk_merged", batch=batch_id, files=len(chunk), sources=len(record_sets))
            emit(
                ProgressEvent(
                    completed=self._completed,
                    total=total,
                    message=f"[{self._completed}/{total}] Parsing",
                    increment=100 * len(chunk) / total,
                )
            )
