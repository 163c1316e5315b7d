"""JaCoCo XML report parser.

JaCoCo is the standard coverage tool for JVM projects. Its XML report nests
``package`` elements holding ``sourcefile`` elements, which carry ``counter``
elements either directly or beneath their ``line`` children.

This module is the only place that touches XML elements: it turns the report
into a flat list of :class:`SourceFileNode` entries that the aggregator works on.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from defusedxml import DefusedXmlException, ElementTree
from defusedxml.ElementTree import ParseError as DefusedParseError

from jacocomment.errors import ReportNotFoundError, ReportParseError
from jacocomment.models.coverage import RawCounter, SourceFileNode
from jacocomment.utils.gradle import DEFAULT_GRADLE_WRAPPER, gradle_wrapper_exists

if TYPE_CHECKING:
    from xml.etree.ElementTree import Element as XmlElement

logger = logging.getLogger(__name__)

DEFAULT_REPORT_FILE = "build/reports/jacoco/jacoco/jacoco.xml"

_ROOT_TAG = "report"


def _required_name(element: XmlElement, kind: str) -> str:
    name = element.get("name")
    if name is None:
        raise ReportParseError(f"<{kind}> element without a 'name' attribute")
    return name


def _counter_elements(sourcefile: XmlElement) -> list[XmlElement]:
    """Return direct counters, falling back to counters nested under ``line``."""
    counters = sourcefile.findall("counter")
    if not counters:
        counters = sourcefile.findall("line/counter")
    return counters


def _to_raw_counter(counter: XmlElement) -> RawCounter:
    return RawCounter(
        type=counter.get("type"),
        missed=counter.get("missed"),
        covered=counter.get("covered"),
    )


def _collect_source_files(root: XmlElement) -> list[SourceFileNode]:
    if root.tag != _ROOT_TAG:
        raise ReportParseError(f"JaCoCo XML root is not <{_ROOT_TAG}>: <{root.tag}>")

    nodes: list[SourceFileNode] = []
    # Packages may sit inside <group> elements for multi-module reports.
    for package in root.iter("package"):
        package_name = _required_name(package, "package")
        for sourcefile in package.findall("sourcefile"):
            file_name = _required_name(sourcefile, "sourcefile")
            counters = tuple(_to_raw_counter(c) for c in _counter_elements(sourcefile))
            nodes.append(
                SourceFileNode(
                    package_name=package_name,
                    source_file_name=file_name,
                    counters=counters,
                )
            )

    logger.debug("Parsed %d source files from JaCoCo report", len(nodes))
    return nodes


def parse_report_text(text: str | bytes) -> list[SourceFileNode]:
    """Parse JaCoCo XML content into source file entries.

    Raises:
        ReportParseError: If the document is not well-formed or not a JaCoCo report.
    """
    try:
        root = ElementTree.fromstring(text)
    except (DefusedParseError, DefusedXmlException) as e:
        raise ReportParseError(f"Malformed JaCoCo XML: {e}") from e
    return _collect_source_files(root)


def parse_report(report_file: Path | str) -> list[SourceFileNode]:
    """Parse a JaCoCo XML report file into source file entries.

    Raises:
        ReportNotFoundError: If ``report_file`` does not exist.
        ReportParseError: If the report cannot be read or is malformed.
    """
    path = Path(report_file)
    if not path.is_file():
        raise ReportNotFoundError(str(report_file))

    try:
        tree = ElementTree.parse(path)
    except (DefusedParseError, DefusedXmlException) as e:
        raise ReportParseError(f"Malformed JaCoCo XML {path}: {e}") from e
    except OSError as e:
        raise ReportParseError(f"Cannot read JaCoCo XML {path}: {e}") from e

    return _collect_source_files(tree.getroot())


class JaCoCoAdapter:
    """JaCoCo coverage adapter for Gradle projects."""

    @property
    def name(self) -> str:
        return "jacoco"

    def parse_coverage_file(self, coverage_file: Path) -> list[SourceFileNode]:
        """Parse JaCoCo XML report into source file entries."""
        logger.info("Parsing JaCoCo report %s", coverage_file)
        return parse_report(coverage_file)

    def detect(
        self,
        project_root: Path,
        *,
        report_file: str = DEFAULT_REPORT_FILE,
        wrapper: str = DEFAULT_GRADLE_WRAPPER,
    ) -> bool:
        """Return True if a report already exists or a Gradle wrapper can produce one."""
        report = Path(report_file)
        if not report.is_absolute():
            report = project_root / report
        return report.is_file() or gradle_wrapper_exists(project_root, wrapper)
