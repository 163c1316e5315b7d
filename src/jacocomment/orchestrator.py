"""Report pipeline: build, parse, aggregate, filter, render, publish.

Any failure before rendering aborts the run; nothing is published unless the
whole table could be built.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from jacocomment.adapters.jacoco import JaCoCoAdapter
from jacocomment.analyzers.coverage import aggregate
from jacocomment.analyzers.relevance import filter_relevant
from jacocomment.errors import ReportNotFoundError
from jacocomment.reporters.markdown import render_comment
from jacocomment.utils.gradle import run_gradle_task
from jacocomment.utils.subprocess_runner import SubprocessError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence, Set

    from jacocomment.config import JacocoConfig
    from jacocomment.models.coverage import (
        FileCoverageReport,
        RenderConfiguration,
        SourceFileNode,
    )

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of a successful pipeline run."""

    markdown: str
    """Published comment body."""

    reports: list[FileCoverageReport]
    """Rows of the table, in report order."""

    total_files: int
    """Number of source file entries in the coverage report."""


def build_rows(
    nodes: Sequence[SourceFileNode], render_config: RenderConfiguration
) -> list[FileCoverageReport]:
    """Aggregate parsed report entries and keep the files of interest."""
    reports = aggregate(nodes, render_config.source_root)
    return filter_relevant(reports, render_config.files_of_interest)


class CoverageReportPipeline:
    """Runs one coverage report from build invocation to publication.

    ``changed_files`` supplies the files of interest and ``publish`` receives
    the final markdown; both are plain callables so that git and GitHub can be
    swapped out.
    """

    def __init__(
        self,
        config: JacocoConfig,
        project_root: Path,
        *,
        changed_files: Callable[[], Set[str]],
        publish: Callable[[str], object],
        skip_build: bool = False,
        marker: str | None = None,
    ) -> None:
        self._config = config
        self._project_root = project_root
        self._changed_files = changed_files
        self._publish = publish
        self._skip_build = skip_build
        self._marker = marker
        self._adapter = JaCoCoAdapter()

    @property
    def report_path(self) -> Path:
        path = Path(self._config.report_file)
        return path if path.is_absolute() else self._project_root / path

    async def run(self) -> PipelineResult:
        """Run the pipeline.

        Raises:
            BuildWrapperNotFoundError: If the Gradle wrapper is missing.
            ReportNotFoundError: If no report exists after the build.
            ReportParseError: If the report or one of its counters is invalid.
        """
        if self._skip_build:
            logger.info("Skipping Gradle task, using existing report")
        else:
            await self._build()

        if not self.report_path.is_file():
            raise ReportNotFoundError(self._config.report_file)

        nodes = self._adapter.parse_coverage_file(self.report_path)
        render_config = self._config.render_configuration(frozenset(self._changed_files()))
        rows = build_rows(nodes, render_config)

        markdown = render_comment(
            render_config.coverage_types,
            rows,
            render_config.source_root,
            marker=self._marker,
        )
        self._publish(markdown)

        logger.info("Published coverage for %d of %d files", len(rows), len(nodes))
        return PipelineResult(markdown=markdown, reports=rows, total_files=len(nodes))

    async def _build(self) -> None:
        try:
            await run_gradle_task(
                self._project_root,
                self._config.gradle_task,
                wrapper=self._config.gradle_wrapper,
                timeout=self._config.build_timeout,
            )
        except SubprocessError as e:
            # The report check that follows decides whether the run fails.
            logger.error("Gradle task could not be run: %s", e)
