"""Relevance filter: keep only coverage for files of interest."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Set

    from jacocomment.models.coverage import FileCoverageReport

logger = logging.getLogger(__name__)


def filter_relevant(
    reports: Iterable[FileCoverageReport], files_of_interest: Set[str]
) -> list[FileCoverageReport]:
    """Return reports whose path is in ``files_of_interest``, in input order.

    Matching is exact string equality. An empty set yields an empty list.
    """
    if not files_of_interest:
        logger.info("No files of interest; coverage table will be empty")
        return []

    relevant = [report for report in reports if report.file_path in files_of_interest]
    logger.debug(
        "%d of %d files of interest have coverage data", len(relevant), len(files_of_interest)
    )
    return relevant
