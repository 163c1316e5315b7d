"""Data models for jacocomment."""

from jacocomment.models.coverage import (
    CoverageCounter,
    FileCoverageReport,
    RawCounter,
    RenderConfiguration,
    SourceFileNode,
)

__all__ = [
    "CoverageCounter",
    "FileCoverageReport",
    "RawCounter",
    "RenderConfiguration",
    "SourceFileNode",
]
