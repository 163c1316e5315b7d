"""Coverage aggregation: raw report entries to typed per-file coverage."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from jacocomment.errors import ReportParseError
from jacocomment.models.coverage import CoverageCounter, FileCoverageReport

if TYPE_CHECKING:
    from collections.abc import Iterable

    from jacocomment.models.coverage import RawCounter, SourceFileNode

logger = logging.getLogger(__name__)


def join_path(*parts: str) -> str:
    """Join path parts with ``/``, normalising backslashes and dropping empty segments."""
    return "/".join(
        segment for part in parts for segment in part.replace("\\", "/").split("/") if segment
    )


def build_file_path(source_root: str, package_name: str, source_file_name: str) -> str:
    """Join source root, package and file name with ``/``.

    The default package (``name=""``) contributes no segment, so no ``//``
    appears.
    """
    return join_path(source_root, package_name, source_file_name)


def _count(raw: str | None, attribute: str, file_path: str) -> int:
    if raw is None:
        raise ReportParseError(f"Counter in {file_path} is missing the '{attribute}' attribute")
    try:
        value = int(raw.strip())
    except ValueError as e:
        raise ReportParseError(
            f"Counter in {file_path} has a non-integer '{attribute}' value: {raw!r}"
        ) from e
    if value < 0:
        raise ReportParseError(f"Counter in {file_path} has a negative '{attribute}' value: {value}")
    return value


def to_counter(raw: RawCounter, file_path: str) -> CoverageCounter:
    """Validate a raw counter and convert it.

    Raises:
        ReportParseError: If ``type`` is absent or ``missed``/``covered`` are
            absent, non-integer or negative.
    """
    if not raw.type:
        raise ReportParseError(f"Counter in {file_path} is missing the 'type' attribute")
    return CoverageCounter(
        type=raw.type,
        missed=_count(raw.missed, "missed", file_path),
        covered=_count(raw.covered, "covered", file_path),
    )


def _merge_counters(
    existing: Iterable[CoverageCounter], incoming: Iterable[CoverageCounter]
) -> tuple[CoverageCounter, ...]:
    # dicts keep insertion order, so first-seen type order survives the merge
    by_type: dict[str, CoverageCounter] = {}
    for counter in (*existing, *incoming):
        current = by_type.get(counter.type)
        by_type[counter.type] = counter if current is None else current.merged(counter)
    return tuple(by_type.values())


def aggregate(nodes: Iterable[SourceFileNode], source_root: str) -> list[FileCoverageReport]:
    """Turn parsed source file entries into one report per file path.

    Counters of the same type within a file are summed; this covers both the
    line-nested counter layout and files that appear more than once in the
    report. A repeated file keeps the position of its first occurrence.

    Raises:
        ReportParseError: If any counter is invalid. No partial result is returned.
    """
    reports: dict[str, FileCoverageReport] = {}

    for node in nodes:
        file_path = build_file_path(source_root, node.package_name, node.source_file_name)
        counters = [to_counter(raw, file_path) for raw in node.counters]

        existing = reports.get(file_path)
        if existing is not None:
            logger.debug("Merging repeated report entry for %s", file_path)
            reports[file_path] = FileCoverageReport(
                file_path=file_path,
                counters=_merge_counters(existing.counters, counters),
            )
        else:
            reports[file_path] = FileCoverageReport(
                file_path=file_path,
                counters=_merge_counters((), counters),
            )

    logger.debug("Aggregated coverage for %d files", len(reports))
    return list(reports.values())
