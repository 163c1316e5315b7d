"""Markdown table rendering for per-file coverage."""

from __future__ import annotations

from typing import TYPE_CHECKING

from jacocomment.analyzers.coverage import join_path

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from jacocomment.models.coverage import CoverageCounter, FileCoverageReport

NOT_AVAILABLE = "N/A"
REPORT_TITLE = "### Jacoco report"
NO_RELEVANT_FILES = "_No coverage data for the files changed in this revision._"

_FILE_COLUMN = "FILE"
_SEPARATOR_CELL = ":-------"


def _row(cells: Iterable[str]) -> str:
    return "|" + "|".join(f" {cell} " for cell in cells) + "|\n"


def display_path(file_path: str, source_root: str) -> str:
    """Strip the ``<source_root>/`` prefix from a file path, if present."""
    root = join_path(source_root)
    if root and file_path.startswith(root + "/"):
        return file_path[len(root) + 1 :]
    return file_path


def format_percentage(counter: CoverageCounter | None) -> str:
    """Return ``"80.00%"``, or ``N/A`` for a missing or empty counter."""
    if counter is None:
        return NOT_AVAILABLE
    percentage = counter.percentage
    if percentage is None:
        return NOT_AVAILABLE
    return f"{percentage:.2f}%"


def render_table(
    coverage_types: Sequence[str],
    reports: Iterable[FileCoverageReport],
    source_root: str = "",
) -> str:
    """Render a markdown table with one row per file and one column per coverage type.

    Columns follow ``coverage_types`` exactly; rows follow ``reports``.
    """
    columns = [_FILE_COLUMN, *coverage_types]
    lines = [_row(columns), _row(_SEPARATOR_CELL for _ in columns)]

    for report in reports:
        cells = [f"`{display_path(report.file_path, source_root)}`"]
        cells.extend(format_percentage(report.counter(t)) for t in coverage_types)
        lines.append(_row(cells))

    return "".join(lines)


def render_comment(
    coverage_types: Sequence[str],
    reports: Sequence[FileCoverageReport],
    source_root: str = "",
    marker: str | None = None,
) -> str:
    """Render the full comment body: title, then the table (or a note if empty)."""
    sections: list[str] = []
    if marker:
        sections.append(marker + "\n")
    sections.append(REPORT_TITLE + "\n\n")
    if reports:
        sections.append(render_table(coverage_types, reports, source_root))
    else:
        sections.append(NO_RELEVANT_FILES + "\n")
    return "".join(sections)
