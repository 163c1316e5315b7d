"""Analyzers that turn parsed report data and git changes into table rows."""

from jacocomment.analyzers.coverage import aggregate, build_file_path, join_path
from jacocomment.analyzers.diff import ChangeType, DiffAnalyzer, FileChange, files_of_interest
from jacocomment.analyzers.relevance import filter_relevant

__all__ = [
    "ChangeType",
    "DiffAnalyzer",
    "FileChange",
    "aggregate",
    "build_file_path",
    "files_of_interest",
    "filter_relevant",
    "join_path",
]
