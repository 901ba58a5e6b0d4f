"""Coverage cache: raw records of every source file seen in one reload.

The cache is append-only. A reload never clears it; it builds a new cache
and swaps it into the CacheHandle, so a reader holding the old instance
keeps a consistent snapshot.
"""

from __future__ import annotations

import os
import sys
import threading
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from gcovview.core.logging import get_logger
from gcovview.coverage.models import FileRecordSet

logger = get_logger("coverage.cache")


def _platform_is_case_insensitive() -> bool:
    return sys.platform == "win32"


def _normalize(path: str) -> str:
    return path.replace("\\", "/").lower()


class CoverageCache:
    """Raw coverage records grouped by source file path.

    Safe to merge into from several threads or tasks at once; reads take
    the same lock and work on a snapshot of the entries.
    """

    def __init__(
        self,
        *,
        base_directory: str | None = None,
        case_insensitive: bool | None = None,
    ) -> None:
        self.base_directory = base_directory
        self.case_insensitive = (
            _platform_is_case_insensitive() if case_insensitive is None else case_insensitive
        )
        self._lock = threading.Lock()
        self._files: dict[str, FileRecordSet] = {}
        self._demangled: dict[str, str] = {}
        self._absorbed: list[str] = []

    def resolve_path(self, records: FileRecordSet) -> str:
        """Absolute storage key for a reported path, if a base is known."""
        path = records.path
        if os.path.isabs(path):
            return path
        base = records.base_directory or self.base_directory
        if base is None:
            return path
        return os.path.normpath(os.path.join(base, path))

    def merge(self, records: FileRecordSet) -> FileRecordSet:
        """Add one file's records; appends when the file is already cached."""
        key = self.resolve_path(records)
        with self._lock:
            existing = self._files.get(key)
            if existing is None:
                existing = FileRecordSet(path=key, base_directory=records.base_directory)
                self._files[key] = existing
            existing.extend(records)
            for function in records.functions:
                self._demangled[function.mangled_name] = function.demangled_name
        return existing

    def merge_all(self, record_sets: Iterable[FileRecordSet]) -> None:
        for records in record_sets:
            self.merge(records)

    def absorb(self, batch: Iterable[str]) -> None:
        """Record input data files whose records have been merged."""
        with self._lock:
            self._absorbed.extend(batch)

    def has_data(self) -> bool:
        with self._lock:
            return len(self._absorbed) > 0

    @property
    def absorbed_batches(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._absorbed)

    @property
    def files(self) -> Mapping[str, FileRecordSet]:
        """Read-only view of the files cached at the time of the call."""
        with self._lock:
            return MappingProxyType(dict(self._files))

    def demangled_name(self, mangled_name: str) -> str | None:
        with self._lock:
            return self._demangled.get(mangled_name)

    def all_known_paths(self) -> list[str]:
        with self._lock:
            return sorted(self._files)

    def lookup(self, absolute_path: str) -> FileRecordSet | None:
        """Find the records of a file by the path an editor knows it by.

        Tried in order: exact key, case/separator-normalized key (only on
        case-insensitive platforms), then any stored path that is a suffix
        of `absolute_path`. The first suffix match in insertion order wins.
        Concurrent merges are not seen by a lookup already in progress.
        """
        with self._lock:
            records = self._files.get(absolute_path)
            if records is not None:
                return records
            entries = list(self._files.items())

        if self.case_insensitive:
            wanted = _normalize(absolute_path)
            for stored_path, records in entries:
                if _normalize(stored_path) == wanted:
                    return records

        # TODO: pick the longest suffix instead of the first once callers can
        # tell same-named files in different directories apart.
        matches = [(p, r) for p, r in entries if absolute_path.endswith(p)]
        if not matches:
            return None
        if len(matches) > 1:
            logger.debug(
                "suffix_match_ambiguous", path=absolute_path, candidates=[p for p, _ in matches]
            )
        return matches[0][1]

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)


class CacheHandle:
    """Owner of the current CoverageCache.

    `replace` is a single reference assignment; readers that fetched
    `current` earlier keep using the old instance untouched.
    """

    def __init__(self, cache: CoverageCache | None = None) -> None:
        self._cache = cache if cache is not None else CoverageCache()

    @property
    def current(self) -> CoverageCache:
        return self._cache

    def replace(self, cache: CoverageCache | None = None) -> CoverageCache:
        new = cache if cache is not None else CoverageCache()
        self._cache = new
        logger.debug("cache_replaced", files=len(new))
        return new
