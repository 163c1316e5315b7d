"""Tests for the relevance filter (analyzers/relevance.py)."""

from __future__ import annotations

from jacocomment.analyzers.relevance import filter_relevant
from jacocomment.models.coverage import CoverageCounter, FileCoverageReport


def _report(path: str) -> FileCoverageReport:
    return FileCoverageReport(
        file_path=path, counters=(CoverageCounter(type="LINE", missed=0, covered=1),)
    )


_A = _report("app/src/main/java/p/A.java")
_B = _report("app/src/main/java/p/B.java")
_C = _report("app/src/main/java/p/C.java")


class TestFilterRelevant:
    def test_keeps_only_files_of_interest(self) -> None:
        assert filter_relevant([_A, _B, _C], {"app/src/main/java/p/B.java"}) == [_B]

    def test_preserves_input_order(self) -> None:
        interesting = {_C.file_path, _A.file_path}
        assert filter_relevant([_A, _B, _C], interesting) == [_A, _C]

    def test_empty_set_gives_empty_result(self) -> None:
        assert filter_relevant([_A, _B, _C], frozenset()) == []

    def test_no_substring_match(self) -> None:
        assert filter_relevant([_A], {"p/A.java", "app/src/main/java/p/A"}) == []

    def test_case_sensitive(self) -> None:
        assert filter_relevant([_A], {"app/src/main/java/p/a.java"}) == []

    def test_unknown_files_are_ignored(self) -> None:
        assert filter_relevant([_A], {_A.file_path, "README.md"}) == [_A]
