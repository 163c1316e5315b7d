"""Tests for the markdown table renderer (reporters/markdown.py)."""

from __future__ import annotations

import pytest
from rich.console import Console

from jacocomment.models.coverage import CoverageCounter, FileCoverageReport
from jacocomment.reporters.markdown import (
    NO_RELEVANT_FILES,
    NOT_AVAILABLE,
    REPORT_TITLE,
    display_path,
    format_percentage,
    render_comment,
    render_table,
)
from jacocomment.reporters.terminal import CLIReporter

_ROOT = "app/src/main/java"

_FOO = FileCoverageReport(
    file_path="app/src/main/java/com/example/Foo.java",
    counters=(
        CoverageCounter(type="INSTRUCTION", missed=2, covered=8),
        CoverageCounter(type="BRANCH", missed=1, covered=1),
    ),
)

_BAR = FileCoverageReport(
    file_path="app/src/main/java/com/example/Bar.java",
    counters=(
        CoverageCounter(type="BRANCH", missed=0, covered=0),
        CoverageCounter(type="INSTRUCTION", missed=1, covered=2),
    ),
)


# ── Cells ────────────────────────────────────────────────────────


class TestFormatPercentage:
    def test_two_decimals(self) -> None:
        assert format_percentage(CoverageCounter("BRANCH", 3, 7)) == "70.00%"

    def test_rounding(self) -> None:
        assert format_percentage(CoverageCounter("LINE", 1, 2)) == "66.67%"

    def test_full_coverage(self) -> None:
        assert format_percentage(CoverageCounter("LINE", 0, 3)) == "100.00%"

    def test_zero_found(self) -> None:
        assert format_percentage(CoverageCounter("BRANCH", 0, 0)) == NOT_AVAILABLE == "N/A"

    def test_missing_counter(self) -> None:
        assert format_percentage(None) == "N/A"


class TestDisplayPath:
    def test_strips_source_root(self) -> None:
        assert display_path(_FOO.file_path, _ROOT) == "com/example/Foo.java"

    def test_other_prefix_kept(self) -> None:
        assert display_path("lib/src/main/java/A.java", _ROOT) == "lib/src/main/java/A.java"

    def test_empty_root(self) -> None:
        assert display_path("a/B.java", "") == "a/B.java"

    @pytest.mark.parametrize(
        "root", ["app\\src\\main\\java", "app//src/main/java", "/app/src/main/java/"]
    )
    def test_unnormalised_root_still_stripped(self, root: str) -> None:
        assert display_path(_FOO.file_path, root) == "com/example/Foo.java"

    def test_table_with_windows_style_root(self) -> None:
        table = render_table(["INSTRUCTION"], [_FOO], "app\\src\\main\\java")
        assert table.splitlines()[2] == "| `com/example/Foo.java` | 80.00% |"


# ── Table ────────────────────────────────────────────────────────


class TestRenderTable:
    def test_end_to_end_example(self) -> None:
        expected = (
            "| FILE | INSTRUCTION | BRANCH |\n"
            "| :------- | :------- | :------- |\n"
            "| `com/example/Foo.java` | 80.00% | 50.00% |\n"
        )
        assert render_table(["INSTRUCTION", "BRANCH"], [_FOO], _ROOT) == expected

    def test_column_order_follows_configuration(self) -> None:
        table = render_table(["BRANCH", "INSTRUCTION"], [_FOO, _BAR], _ROOT)
        lines = table.splitlines()
        assert lines[0] == "| FILE | BRANCH | INSTRUCTION |"
        assert lines[2] == "| `com/example/Foo.java` | 50.00% | 80.00% |"
        assert lines[3] == "| `com/example/Bar.java` | N/A | 66.67% |"

    def test_missing_type_renders_placeholder(self) -> None:
        table = render_table(["INSTRUCTION", "LINE"], [_FOO], _ROOT)
        assert table.splitlines()[2] == "| `com/example/Foo.java` | 80.00% | N/A |"

    def test_no_nan_in_output(self) -> None:
        table = render_table(["BRANCH"], [_BAR], _ROOT)
        assert "nan" not in table.lower()
        assert "inf" not in table.lower()

    def test_header_only_without_rows(self) -> None:
        assert render_table(["LINE"], [], _ROOT) == "| FILE | LINE |\n| :------- | :------- |\n"

    def test_deterministic(self) -> None:
        first = render_table(["INSTRUCTION", "BRANCH"], [_FOO, _BAR], _ROOT)
        second = render_table(["INSTRUCTION", "BRANCH"], [_FOO, _BAR], _ROOT)
        assert first == second

    def test_row_order_follows_input(self) -> None:
        table = render_table(["LINE"], [_BAR, _FOO], _ROOT)
        rows = table.splitlines()[2:]
        assert rows[0].startswith("| `com/example/Bar.java`")
        assert rows[1].startswith("| `com/example/Foo.java`")


# ── Comment ──────────────────────────────────────────────────────


class TestRenderComment:
    def test_title_then_table(self) -> None:
        body = render_comment(["INSTRUCTION", "BRANCH"], [_FOO], _ROOT)
        assert body.startswith(REPORT_TITLE + "\n\n| FILE | INSTRUCTION | BRANCH |\n")

    def test_marker_first(self) -> None:
        body = render_comment(["LINE"], [_FOO], _ROOT, marker="<!-- m -->")
        assert body.splitlines()[0] == "<!-- m -->"

    def test_no_relevant_files(self) -> None:
        body = render_comment(["LINE"], [], _ROOT)
        assert NO_RELEVANT_FILES in body
        assert "| FILE |" not in body


# ── Terminal preview ─────────────────────────────────────────────


class TestTerminalPreview:
    def test_rich_table_uses_same_cells(self) -> None:
        output = Console(record=True, width=120)
        CLIReporter(output).print_coverage_table(["INSTRUCTION", "BRANCH"], [_FOO], _ROOT)

        text = output.export_text()
        assert "com/example/Foo.java" in text
        assert "80.00%" in text
        assert "50.00%" in text

    def test_info_line(self) -> None:
        output = Console(record=True, width=120)
        CLIReporter(output).print_info("1 of 3 report entries changed in this revision")

        assert output.export_text() == "1 of 3 report entries changed in this revision\n"
