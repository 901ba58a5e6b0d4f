"""Structured coverage views for consumers.

Output schema for build_summary:
{
    "summary": {
        "total_files": int,
        "total_lines": int,
        "called_lines": int,
        "line_coverage_percent": float,
        "total_functions": int,
        "called_functions": int
    },
    "files": [
        {
            "path": str,
            "total": int,
            "called": int,
            "coverage_percent": float,
            "functions": [{"name": str, "total": int, "called": int,
                           "execution_count": int, "start_line": int}, ...]
        },
        ...
    ]
}

Line numbers in this output are 1-based again, matching what an editor or
a human reading the source expects.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from gcovview.coverage.analysis import ensure_analyzed
from gcovview.coverage.cache import CoverageCache
from gcovview.coverage.models import FileAnalysis, FunctionCoverage, LineCoverage


def _percent(called: int, total: int) -> float:
    """Coverage percent; a file without instrumented lines counts as fully covered."""
    if total == 0:
        return 100.0
    return called / total * 100.0


def compute_file_stats(cache: CoverageCache) -> list[dict[str, Any]]:
    """Per-file and per-function line statistics, sorted by path."""
    file_stats = []
    for path in cache.all_known_paths():
        analysis = ensure_analyzed(cache.files[path])
        functions = [
            {
                "name": fc.base_name,
                "total": fc.total_lines,
                "called": fc.called_lines,
                "execution_count": fc.execution_count,
                "start_line": fc.start_line + 1,
            }
            for fc in analysis.functions.values()
        ]
        file_stats.append(
            {
                "path": path,
                "total": analysis.total_lines,
                "called": analysis.called_lines,
                "coverage_percent": round(_percent(analysis.called_lines, analysis.total_lines), 2),
                "functions": functions,
            }
        )
    return file_stats


def build_summary(cache: CoverageCache, *, include_files: bool = True) -> dict[str, Any]:
    """Build the structured summary of everything in the cache."""
    file_stats = compute_file_stats(cache)

    total_lines = sum(f["total"] for f in file_stats)
    called_lines = sum(f["called"] for f in file_stats)
    total_functions = sum(len(f["functions"]) for f in file_stats)
    called_functions = sum(
        1 for f in file_stats for fn in f["functions"] if fn["execution_count"] > 0
    )

    result: dict[str, Any] = {
        "summary": {
            "total_files": len(file_stats),
            "total_lines": total_lines,
            "called_lines": called_lines,
            "line_coverage_percent": round(_percent(called_lines, total_lines), 2),
            "total_functions": total_functions,
            "called_functions": called_functions,
        },
    }
    if include_files:
        result["files"] = file_stats
    return result


def build_text_summary(analysis: FileAnalysis) -> str:
    """One-line summary of a file, e.g. ``Coverage: 12/20 [60.0%]``."""
    percent = _percent(analysis.called_lines, analysis.total_lines)
    return f"Coverage: {analysis.called_lines}/{analysis.total_lines} [{percent:.1f}%]"


def functions_by_call_count(analysis: FileAnalysis) -> list[FunctionCoverage]:
    """Functions of a file, most executed first."""
    return sorted(analysis.functions.values(), key=lambda fc: fc.execution_count, reverse=True)


def calls_by_function(line: LineCoverage, cache: CoverageCache) -> list[tuple[str, int]]:
    """Executions of one line split by the function they happened in.

    Functions are shown by demangled name when known; functions that never
    executed the line are left out. Most executed first.
    """
    counts: dict[str, int] = {}
    for raw in line.raw:
        counts[raw.owning_function] = counts.get(raw.owning_function, 0) + raw.execution_count
    named = [
        (cache.demangled_name(mangled) or mangled, count)
        for mangled, count in counts.items()
        if count > 0
    ]
    named.sort(key=lambda item: item[1], reverse=True)
    return named


@dataclass(frozen=True, slots=True)
class LineAnnotation:
    """What to show next to one instrumented source line."""

    line_index: int
    execution_count: int
    text: str
    tooltip: str

    @property
    def called(self) -> bool:
        return self.execution_count > 0


def annotate_lines(analysis: FileAnalysis, cache: CoverageCache) -> list[LineAnnotation]:
    """Annotations for every instrumented line, in line order."""
    annotations: list[LineAnnotation] = []
    for idx in sorted(analysis.lines):
        line = analysis.lines[idx]
        if line.execution_count == 0:
            annotations.append(
                LineAnnotation(idx, 0, text="", tooltip="Line has not been executed")
            )
            continue
        text = f"{line.execution_count:,}x"
        function = analysis.functions.get(idx)
        if function is not None:
            text += f"[{_percent(function.called_lines, function.total_lines):.1f}%]"
        tooltip = "\n".join(
            f"{count:,}x in `{name}`" for name, count in calls_by_function(line, cache)
        )
        annotations.append(LineAnnotation(idx, line.execution_count, text=text, tooltip=tooltip))
    return annotations
