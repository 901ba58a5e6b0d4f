"""Coverage records, aggregation and derived views.

Usage:
    from gcovview.coverage import CoverageCache, ensure_analyzed

    cache = CoverageCache(base_directory="/build")
    cache.merge(records)
    analysis = ensure_analyzed(cache.lookup("/src/project/main.cc"))
    print(analysis.called_lines, analysis.total_lines)
"""

from gcovview.coverage.analysis import analyze, ensure_analyzed
from gcovview.coverage.cache import CacheHandle, CoverageCache
from gcovview.coverage.models import (
    Analyzed,
    FileAnalysis,
    FileRecordSet,
    FunctionCoverage,
    FunctionRecord,
    LineCoverage,
    LineRecord,
    Unanalyzed,
    line_index,
)
from gcovview.coverage.names import canonicalize_function_name
from gcovview.coverage.report import (
    LineAnnotation,
    annotate_lines,
    build_summary,
    build_text_summary,
    calls_by_function,
    compute_file_stats,
    functions_by_call_count,
)

__all__ = [
    # Models
    "Analyzed",
    "FileAnalysis",
    "FileRecordSet",
    "FunctionCoverage",
    "FunctionRecord",
    "LineCoverage",
    "LineRecord",
    "Unanalyzed",
    "line_index",
    # Cache
    "CacheHandle",
    "CoverageCache",
    # Analysis
    "analyze",
    "canonicalize_function_name",
    "ensure_analyzed",
    # Report
    "LineAnnotation",
    "annotate_lines",
    "build_summary",
    "build_text_summary",
    "calls_by_function",
    "compute_file_stats",
    "functions_by_call_count",
]
