"""Builders for raw coverage records."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from gcovview.coverage.models import FileRecordSet, FunctionRecord, LineRecord

RecordsFactory = Callable[..., FileRecordSet]


def _make_records(
    path: str,
    lines: list[tuple[int, str, int]],
    functions: list[tuple[str, str, int, int, int]] | None = None,
    *,
    base_directory: str | None = None,
) -> FileRecordSet:
    return FileRecordSet(
        path=path,
        lines=[LineRecord(n, fn, count) for n, fn, count in lines],
        functions=[FunctionRecord(m, d, s, e, c) for m, d, s, e, c in functions or []],
        base_directory=base_directory,
    )


@pytest.fixture
def make_records() -> RecordsFactory:
    """Build a FileRecordSet from 1-based tuples.

    lines: (line_number, mangled_function, count)
    functions: (mangled, demangled, start_line, end_line, count)
    """
    return _make_records


@pytest.fixture
def two_function_file() -> FileRecordSet:
    """foo() spans lines 1-3 and ran twice; bar() spans lines 5-6 and never ran."""
    return _make_records(
        "/src/a.cc",
        [
            (1, "_Z3foov", 2),
            (2, "_Z3foov", 2),
            (3, "_Z3foov", 0),
            (5, "_Z3barv", 0),
            (6, "_Z3barv", 0),
        ],
        [
            ("_Z3foov", "foo()", 1, 3, 2),
            ("_Z3barv", "bar()", 5, 6, 0),
        ],
    )
