"""Tests for the DiffAnalyzer (analyzers/diff.py)."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest import mock

import pytest

from jacocomment.analyzers.diff import ChangeType, DiffAnalyzer, FileChange, files_of_interest
from jacocomment.config import load_config
from jacocomment.utils.git import GitOperationError

_NAME_STATUS = (
    "M\tapp/src/main/java/com/example/Foo.java\n"
    "A\tapp/src/main/java/com/example/New.java\n"
    "D\tapp/src/main/java/com/example/Old.java\n"
    "R087\tapp/src/main/java/com/example/Before.java\tapp/src/main/java/com/example/After.java\n"
    "X\tweird\n"
)


def _completed(stdout: str) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=[], returncode=0, stdout=stdout, stderr="")


@pytest.fixture(autouse=True)
def _no_pull_request(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GITHUB_BASE_REF", raising=False)


# ── files_of_interest ────────────────────────────────────────────


class TestFilesOfInterest:
    def test_modified_minus_deleted_plus_added(self) -> None:
        changes = [
            FileChange("a/Mod.java", ChangeType.MODIFIED),
            FileChange("a/Gone.java", ChangeType.DELETED),
            FileChange("a/Gone.java", ChangeType.MODIFIED),
            FileChange("a/New.java", ChangeType.ADDED),
            FileChange("a/Moved.java", ChangeType.RENAMED, old_path="a/Was.java"),
        ]
        assert files_of_interest(changes) == {"a/Mod.java", "a/New.java", "a/Moved.java"}

    def test_empty(self) -> None:
        assert files_of_interest([]) == frozenset()

    def test_backslashes_normalised(self) -> None:
        changes = [FileChange("app\\src\\A.java", ChangeType.MODIFIED)]
        assert files_of_interest(changes) == {"app/src/A.java"}


# ── git diff ─────────────────────────────────────────────────────


class TestDiffAnalyzer:
    @mock.patch("jacocomment.analyzers.diff.subprocess.run")
    def test_parses_name_status(self, mock_run: mock.Mock, tmp_path: Path) -> None:
        mock_run.return_value = _completed(_NAME_STATUS)

        changes = DiffAnalyzer(tmp_path).get_changed_files()

        assert [(c.change_type, c.path) for c in changes] == [
            (ChangeType.MODIFIED, "app/src/main/java/com/example/Foo.java"),
            (ChangeType.ADDED, "app/src/main/java/com/example/New.java"),
            (ChangeType.DELETED, "app/src/main/java/com/example/Old.java"),
            (ChangeType.RENAMED, "app/src/main/java/com/example/After.java"),
        ]
        assert changes[3].old_path == "app/src/main/java/com/example/Before.java"

    @mock.patch("jacocomment.analyzers.diff.subprocess.run")
    def test_files_of_interest(self, mock_run: mock.Mock, tmp_path: Path) -> None:
        mock_run.return_value = _completed(_NAME_STATUS)

        assert DiffAnalyzer(tmp_path).files_of_interest() == {
            "app/src/main/java/com/example/Foo.java",
            "app/src/main/java/com/example/New.java",
            "app/src/main/java/com/example/After.java",
        }

    @mock.patch("jacocomment.analyzers.diff.subprocess.run")
    def test_diff_against_base_ref(self, mock_run: mock.Mock, tmp_path: Path) -> None:
        mock_run.return_value = _completed("")

        DiffAnalyzer(tmp_path, base_ref="origin/main").get_changed_files()

        cmd = mock_run.call_args.args[0]
        assert cmd[1:] == ["diff", "--name-status", "origin/main"]
        assert mock_run.call_args.kwargs["cwd"] == tmp_path

    @mock.patch("jacocomment.analyzers.diff.subprocess.run")
    def test_diff_between_refs(self, mock_run: mock.Mock, tmp_path: Path) -> None:
        mock_run.return_value = _completed("")

        DiffAnalyzer(tmp_path, base_ref="main", compare_ref="feature").get_changed_files()

        assert mock_run.call_args.args[0][-1] == "main...feature"


    @mock.patch("jacocomment.analyzers.diff.subprocess.run")
    def test_git_failure_raises(self, mock_run: mock.Mock, tmp_path: Path) -> None:
        mock_run.side_effect = subprocess.CalledProcessError(
            128, ["git"], stderr="fatal: not a git repository"
        )

        with pytest.raises(GitOperationError, match="not a git repository"):
            DiffAnalyzer(tmp_path, base_ref="origin/main").get_changed_files()

    def test_unsafe_ref_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(GitOperationError):
            DiffAnalyzer(tmp_path, base_ref="--output=/tmp/x")

    def test_relative_ref_accepted(self, tmp_path: Path) -> None:
        DiffAnalyzer(tmp_path, base_ref="HEAD~1")


# ── Default range ────────────────────────────────────────────────


class TestResolveRange:
    def test_explicit_base_ref_wins(self, tmp_path: Path) -> None:
        assert DiffAnalyzer(tmp_path, base_ref="main").resolve_range() == ("main", None)

    def test_pull_request_base(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_BASE_REF", "develop")

        assert DiffAnalyzer(tmp_path).resolve_range() == ("origin/develop", "HEAD")

    def test_unsafe_pull_request_base_rejected(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GITHUB_BASE_REF", "main; rm -rf /")

        with pytest.raises(GitOperationError):
            DiffAnalyzer(tmp_path).resolve_range()

    @mock.patch("jacocomment.analyzers.diff.subprocess.run")
    def test_parent_commit(self, mock_run: mock.Mock, tmp_path: Path) -> None:
        mock_run.return_value = _completed("")

        assert DiffAnalyzer(tmp_path).resolve_range() == ("HEAD~1", None)
        assert mock_run.call_args.args[0][1:3] == ["rev-parse", "--verify"]


# ── Real repository ──────────────────────────────────────────────


def _git(repo: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True)  # noqa: S607


@pytest.fixture
def temp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with one committed source file."""
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init")
    _git(repo, "config", "user.email", "test@example.com")
    _git(repo, "config", "user.name", "Test User")

    source = repo / "app" / "src" / "main" / "java" / "com" / "example"
    source.mkdir(parents=True)
    (source / "Foo.java").write_text("class Foo {}\n")
    _git(repo, "add", ".")
    _git(repo, "commit", "-m", "Add Foo")
    return repo


class TestCommittedChanges:
    def test_root_commit_lists_committed_files(self, temp_git_repo: Path) -> None:
        base_ref = load_config(temp_git_repo).git.base_ref

        changed = DiffAnalyzer(temp_git_repo, base_ref).files_of_interest()

        assert "app/src/main/java/com/example/Foo.java" in changed

    def test_last_commit_is_the_change_set(self, temp_git_repo: Path) -> None:
        source = temp_git_repo / "app" / "src" / "main" / "java" / "com" / "example"
        (source / "Bar.java").write_text("class Bar {}\n")
        (source / "Foo.java").write_text("class Foo { int x; }\n")
        _git(temp_git_repo, "add", ".")
        _git(temp_git_repo, "commit", "-m", "Add Bar, touch Foo")

        changed = DiffAnalyzer(temp_git_repo).files_of_interest()

        assert changed == {
            "app/src/main/java/com/example/Bar.java",
            "app/src/main/java/com/example/Foo.java",
        }

    def test_uncommitted_edits_are_included(self, temp_git_repo: Path) -> None:
        (temp_git_repo / "README.md").write_text("# Readme\n")
        _git(temp_git_repo, "add", ".")
        _git(temp_git_repo, "commit", "-m", "Add readme")
        source = temp_git_repo / "app" / "src" / "main" / "java" / "com" / "example"
        (source / "Foo.java").write_text("class Foo { int y; }\n")

        changed = DiffAnalyzer(temp_git_repo).files_of_interest()

        assert changed == {"README.md", "app/src/main/java/com/example/Foo.java"}
