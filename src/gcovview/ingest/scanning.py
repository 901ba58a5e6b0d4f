"""Finding and deleting coverage data files."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from gcovview.core.errors import ScanError
from gcovview.core.logging import get_logger

logger = get_logger("ingest.scanning")

Cancelled = Callable[[], bool]
OnPath = Callable[[int, int, str], None]


def _walk_files(directory: str, cancelled: Cancelled | None) -> Iterator[str]:
    """Yield every regular file below `directory`; unreadable entries are skipped."""
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        logger.debug("scan_entry_unreadable", **ScanError.unreadable(directory, str(e)).details)
        return

    for entry in entries:
        if cancelled is not None and cancelled():
            return
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError as e:
            error = ScanError.unreadable(entry.path, str(e))
            logger.debug("scan_entry_unreadable", **error.details)
            continue
        if is_dir:
            yield from _walk_files(entry.path, cancelled)
            continue
        yield entry.path


def find_data_files(
    roots: Iterable[str | Path],
    *,
    extension: str = ".gcda",
    cancelled: Cancelled | None = None,
    on_path: OnPath | None = None,
) -> list[str]:
    """Absolute paths of all files ending in `extension` below `roots`.

    Duplicates across overlapping roots are reported once. When
    `cancelled()` turns true the scan stops and returns what it found so
    far. `on_path(seen, found, path)` is called for every file looked at.
    """
    found: dict[str, None] = {}
    seen = 0
    for root in roots:
        for path in _walk_files(os.path.abspath(root), cancelled):
            seen += 1
            if path.endswith(extension):
                found.setdefault(path, None)
            if on_path is not None:
                on_path(seen, len(found), path)
        if cancelled is not None and cancelled():
            break
    return list(found)


def delete_data_files(
    paths: Iterable[str],
    *,
    cancelled: Cancelled | None = None,
    on_deleted: Callable[[int, str], None] | None = None,
) -> int:
    """Delete the given data files; returns how many were removed."""
    deleted = 0
    for path in paths:
        if cancelled is not None and cancelled():
            break
        try:
            os.unlink(path)
        except FileNotFoundError:
            continue
        deleted += 1
        logger.debug("data_file_deleted", path=path)
        if on_deleted is not None:
            on_deleted(deleted, path)
    return deleted
