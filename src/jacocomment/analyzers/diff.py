"""DiffAnalyzer: lists the files changed in the current revision.

The resulting paths are repo-relative and ``/`` separated, the same convention
the aggregator uses for report paths, so they can be matched directly.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from jacocomment.utils.git import GitOperationError, git_executable, validate_git_ref

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

# Git diff parsing constants
MIN_DIFF_PARTS = 2
RENAMED_PARTS = 3


class ChangeType(Enum):
    """Type of change detected in git diff."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


@dataclass
class FileChange:
    """Represents a changed file in git diff."""

    path: str
    """Path to the changed file."""

    change_type: ChangeType
    """Type of change (added, modified, deleted, renamed)."""

    old_path: str | None = None
    """Original path if renamed."""


def files_of_interest(changes: Iterable[FileChange]) -> frozenset[str]:
    """Return ``(modified - deleted) + added`` as a set of paths.

    Renamed files count as added under their new path.
    """
    modified: set[str] = set()
    deleted: set[str] = set()
    added: set[str] = set()
    for change in changes:
        path = change.path.replace("\\", "/")
        if change.change_type is ChangeType.MODIFIED:
            modified.add(path)
        elif change.change_type is ChangeType.DELETED:
            deleted.add(path)
        else:
            added.add(path)
    return frozenset((modified - deleted) | added)


class DiffAnalyzer:
    """Reads the change set of a revision from git.

    Without a ``base_ref`` the range is picked from the checkout: the pull
    request base (``origin/$GITHUB_BASE_REF...HEAD``) on GitHub Actions,
    otherwise the last commit plus uncommitted edits (``HEAD~1``), or the
    whole tree on a root commit.
    """

    def __init__(
        self,
        project_root: Path | str,
        base_ref: str | None = None,
        compare_ref: str | None = None,
    ) -> None:
        if base_ref:
            validate_git_ref(base_ref)
        if compare_ref:
            validate_git_ref(compare_ref)
        self._project_root = Path(project_root)
        self._base_ref = base_ref or None
        self._compare_ref = compare_ref or None

    def resolve_range(self) -> tuple[str, str | None]:
        """Return the ``(base, compare)`` refs to diff; ``None`` compares the working tree.

        Raises:
            GitOperationError: If git is unavailable or the refs are invalid.
        """
        if self._base_ref:
            return self._base_ref, self._compare_ref

        pr_base = os.environ.get("GITHUB_BASE_REF")
        if pr_base:
            base = f"origin/{pr_base}"
            validate_git_ref(base)
            return base, self._compare_ref or "HEAD"

        if self._has_commit("HEAD~1"):
            return "HEAD~1", self._compare_ref

        return self._git("hash-object", "-w", "-t", "tree", "--stdin").strip(), self._compare_ref

    def get_changed_files(self) -> list[FileChange]:
        """Get changed files from ``git diff --name-status``.

        Raises:
            GitOperationError: If git is unavailable or the diff fails.
        """
        base_ref, compare_ref = self.resolve_range()
        target = f"{base_ref}...{compare_ref}" if compare_ref else base_ref
        output = self._git("diff", "--name-status", target)

        changed_files: list[FileChange] = []
        for line in output.strip().split("\n"):
            if not line:
                continue
            file_change = self._parse_status_line(line)
            if file_change:
                changed_files.append(file_change)

        logger.info("Detected %d changed files against %s", len(changed_files), target)
        return changed_files

    def files_of_interest(self) -> frozenset[str]:
        """Return the non-deleted changed paths of this revision."""
        return files_of_interest(self.get_changed_files())

    def _git(self, *args: str) -> str:
        cmd = [git_executable(), *args]
        logger.debug("Running %s in %s", " ".join(cmd), self._project_root)
        try:
            result = subprocess.run(  # noqa: S603
                cmd,
                cwd=self._project_root,
                capture_output=True,
                text=True,
                input="",
                check=True,
            )
        except subprocess.CalledProcessError as exc:
            raise GitOperationError(f"git {args[0]} failed: {exc.stderr.strip()}") from exc
        except FileNotFoundError as exc:
            raise GitOperationError("git executable not found") from exc
        return result.stdout

    def _has_commit(self, ref: str) -> bool:
        try:
            result = subprocess.run(  # noqa: S603
                [git_executable(), "rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
                cwd=self._project_root,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise GitOperationError("git executable not found") from exc
        return result.returncode == 0

    def _parse_status_line(self, line: str) -> FileChange | None:
        """Parse one ``<status>\\t<path>`` (or ``R<score>\\t<old>\\t<new>``) line."""
        parts = line.split("\t")
        if len(parts) < MIN_DIFF_PARTS or not parts[0]:
            return None

        status = parts[0][0].upper()
        status_map = {
            "A": ChangeType.ADDED,
            "M": ChangeType.MODIFIED,
            "D": ChangeType.DELETED,
            "T": ChangeType.MODIFIED,
        }

        if status in status_map:
            return FileChange(path=parts[1], change_type=status_map[status])

        if status in {"R", "C"} and len(parts) >= RENAMED_PARTS:
            return FileChange(
                path=parts[2],
                old_path=parts[1],
                change_type=ChangeType.RENAMED,
            )

        logger.debug("Ignoring git diff line: %s", line)
        return None
