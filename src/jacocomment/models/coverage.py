"""Coverage report models."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_COVERAGE_TYPES: tuple[str, ...] = ("INSTRUCTION", "BRANCH")
DEFAULT_GRADLE_MODULE = "app"
SOURCE_ROOT_SUFFIX = "src/main/java"


def default_source_root(gradle_module: str = DEFAULT_GRADLE_MODULE) -> str:
    """Return ``<module>/src/main/java``, or the bare suffix for an empty module."""
    module = gradle_module.strip("/")
    return f"{module}/{SOURCE_ROOT_SUFFIX}" if module else SOURCE_ROOT_SUFFIX


@dataclass(frozen=True)
class RawCounter:
    """Counter attributes exactly as read from the report (``None`` when absent)."""

    type: str | None
    missed: str | None
    covered: str | None


@dataclass(frozen=True)
class SourceFileNode:
    """A ``sourcefile`` entry of the report with its raw counters."""

    package_name: str
    """Package name as written in the report (``com/example``)."""

    source_file_name: str
    """Source file name (``Foo.java``)."""

    counters: tuple[RawCounter, ...] = ()
    """Counters found for this file, in report order."""


@dataclass(frozen=True)
class CoverageCounter:
    """A single coverage measurement for one coverage type."""

    type: str
    """Coverage type (INSTRUCTION, BRANCH, LINE, ...)."""

    missed: int
    """Number of missed units."""

    covered: int
    """Number of covered units."""

    @property
    def found(self) -> int:
        """Total number of units."""
        return self.covered + self.missed

    @property
    def percentage(self) -> float | None:
        """Return coverage percentage (0.0-100.0), or None when nothing was found."""
        if self.found == 0:
            return None
        return 100.0 * self.covered / self.found

    @property
    def is_defined(self) -> bool:
        return self.found > 0

    def merged(self, other: CoverageCounter) -> CoverageCounter:
        """Return the sum of two counters of the same type."""
        return CoverageCounter(
            type=self.type,
            missed=self.missed + other.missed,
            covered=self.covered + other.covered,
        )


@dataclass(frozen=True)
class FileCoverageReport:
    """Aggregated coverage for a single source file."""

    file_path: str
    """Project-relative path, ``/`` separated (``app/src/main/java/com/example/Foo.java``)."""

    counters: tuple[CoverageCounter, ...] = ()
    """One counter per coverage type, in report order."""

    def counter(self, coverage_type: str) -> CoverageCounter | None:
        """Return the counter for ``coverage_type`` or None if the file has none."""
        for counter in self.counters:
            if counter.type == coverage_type:
                return counter
        return None


@dataclass(frozen=True)
class RenderConfiguration:
    """Inputs controlling which files and columns end up in the table."""

    coverage_types: tuple[str, ...] = DEFAULT_COVERAGE_TYPES
    """Columns to display, in display order."""

    source_root: str = field(default_factory=default_source_root)
    """Prefix used to rebuild file paths from package and file names."""

    files_of_interest: frozenset[str] = frozenset()
    """Paths (same convention as ``FileCoverageReport.file_path``) to keep."""
