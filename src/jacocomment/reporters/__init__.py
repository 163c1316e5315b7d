"""Reporters for rendering and publishing coverage tables."""

from __future__ import annotations

from jacocomment.reporters.github_comment import GitHubCommentReporter
from jacocomment.reporters.markdown import render_comment, render_table
from jacocomment.reporters.terminal import reporter

__all__ = [
    "GitHubCommentReporter",
    "render_comment",
    "render_table",
    "reporter",
]
