"""Coverage data model.

Raw records are what gcov reports, one translation unit at a time. They are
appended to a FileRecordSet per source file and never edited. Derived views
(LineCoverage, FunctionCoverage, FileAnalysis) are computed on demand from
the raw records.

Line numbers in raw records are 1-based, exactly as gcov prints them.
Every derived structure is 0-based: the single conversion point is
`line_index()`.
"""

from __future__ import annotations

from dataclasses import dataclass, field


def line_index(line_number: int) -> int:
    """Convert a 1-based gcov line number to a 0-based line index."""
    return line_number - 1


@dataclass(frozen=True, slots=True)
class LineRecord:
    """Execution count of one line within one function (basic-block context)."""

    line_number: int
    owning_function: str  # mangled
    execution_count: int
    unexecuted_block: bool = False


@dataclass(frozen=True, slots=True)
class FunctionRecord:
    """Execution data of one function as reported for one translation unit."""

    mangled_name: str
    demangled_name: str
    start_line: int
    end_line: int  # inclusive
    execution_count: int
    blocks: int = 0
    blocks_executed: int = 0


@dataclass(slots=True)
class LineCoverage:
    """All raw records of one line, summed."""

    line_index: int
    raw: list[LineRecord] = field(default_factory=list)
    execution_count: int = 0


@dataclass(slots=True)
class FunctionCoverage:
    """All raw records of functions starting at one line, summed.

    Overloads and template instantiations sharing a start line collapse
    into one entry named by their canonical base name.
    """

    start_line: int  # 0-based
    end_line: int  # 0-based, inclusive
    base_name: str
    raw: list[FunctionRecord] = field(default_factory=list)
    execution_count: int = 0
    total_lines: int = 0
    called_lines: int = 0

    @property
    def line_rate(self) -> float:
        """Fraction of instrumented lines executed (0.0 to 1.0)."""
        if not self.total_lines:
            return 0.0
        return self.called_lines / self.total_lines


@dataclass(frozen=True, slots=True)
class FileAnalysis:
    """Derived coverage view of one source file."""

    lines: dict[int, LineCoverage]  # line index → coverage
    functions: dict[int, FunctionCoverage]  # start line index → coverage
    total_lines: int
    called_lines: int
    max_line: int  # -1 when no line data

    @property
    def line_rate(self) -> float:
        if not self.total_lines:
            return 0.0
        return self.called_lines / self.total_lines

    @property
    def missed_lines(self) -> list[int]:
        """Sorted line indices with zero executions."""
        return sorted(idx for idx, lc in self.lines.items() if lc.execution_count == 0)


@dataclass(frozen=True, slots=True)
class Unanalyzed:
    """Analysis state: derived view not computed yet."""


@dataclass(frozen=True, slots=True)
class Analyzed:
    """Analysis state: derived view computed and memoized."""

    data: FileAnalysis


AnalysisState = Unanalyzed | Analyzed

UNANALYZED = Unanalyzed()


@dataclass(slots=True, eq=False)
class FileRecordSet:
    """Accumulated raw records of one source file.

    `path` is the file name as reported by gcov; it may be relative to
    `base_directory` (the working directory gcov reported).
    """

    path: str
    lines: list[LineRecord] = field(default_factory=list)
    functions: list[FunctionRecord] = field(default_factory=list)
    base_directory: str | None = None
    analysis: AnalysisState = UNANALYZED

    def extend(self, other: FileRecordSet) -> None:
        """Append another record set's records (same source file)."""
        self.lines.extend(other.lines)
        self.functions.extend(other.functions)

    @property
    def is_analyzed(self) -> bool:
        return isinstance(self.analysis, Analyzed)
