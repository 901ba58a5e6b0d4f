"""Lazy per-file coverage analysis.

`ensure_analyzed` turns the raw records of a FileRecordSet into line,
function and whole-file metrics. The result is stored on the record set
(`Analyzed` state) and returned as-is on every later call; a reload
replaces the record sets and with them the memoized results.
"""

from __future__ import annotations

from gcovview.coverage.models import (
    Analyzed,
    FileAnalysis,
    FileRecordSet,
    FunctionCoverage,
    FunctionRecord,
    LineCoverage,
    LineRecord,
    line_index,
)
from gcovview.coverage.names import canonicalize_function_name


def ensure_analyzed(records: FileRecordSet) -> FileAnalysis:
    """Return the memoized analysis of `records`, computing it on first use."""
    state = records.analysis
    if isinstance(state, Analyzed):
        return state.data
    analysis = analyze(records.lines, records.functions)
    records.analysis = Analyzed(analysis)
    return analysis


def analyze(lines: list[LineRecord], functions: list[FunctionRecord]) -> FileAnalysis:
    """Aggregate raw records into a FileAnalysis (no memoization)."""
    by_line, max_line = aggregate_lines(lines)
    by_start = aggregate_functions(functions, by_line)
    called = sum(1 for lc in by_line.values() if lc.execution_count > 0)
    return FileAnalysis(
        lines=by_line,
        functions=by_start,
        total_lines=len(by_line),
        called_lines=called,
        max_line=max_line,
    )


def aggregate_lines(lines: list[LineRecord]) -> tuple[dict[int, LineCoverage], int]:
    """Group line records by line index and sum their counts."""
    by_line: dict[int, LineCoverage] = {}
    max_line = -1
    for raw in lines:
        idx = line_index(raw.line_number)
        coverage = by_line.get(idx)
        if coverage is None:
            coverage = LineCoverage(line_index=idx)
            by_line[idx] = coverage
        coverage.raw.append(raw)
        coverage.execution_count += raw.execution_count
        if idx > max_line:
            max_line = idx
    return by_line, max_line


def aggregate_functions(
    functions: list[FunctionRecord],
    by_line: dict[int, LineCoverage],
) -> dict[int, FunctionCoverage]:
    """Group function records by start line and count their covered lines."""
    by_start: dict[int, FunctionCoverage] = {}
    for raw in functions:
        start = line_index(raw.start_line)
        coverage = by_start.get(start)
        if coverage is None:
            coverage = FunctionCoverage(
                start_line=start,
                end_line=line_index(raw.end_line),
                base_name=canonicalize_function_name(raw.demangled_name),
            )
            by_start[start] = coverage
        coverage.raw.append(raw)
        coverage.execution_count += raw.execution_count

    for coverage in by_start.values():
        for idx in range(coverage.start_line, coverage.end_line + 1):
            line = by_line.get(idx)
            if line is None:
                continue
            coverage.total_lines += 1
            if line.execution_count > 0:
                coverage.called_lines += 1
    return by_start
