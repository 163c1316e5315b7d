"""jacocomment CLI: top-level command group."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import asdict, replace
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn

import click
import yaml
from rich.logging import RichHandler
from rich.markup import escape

from jacocomment import __version__
from jacocomment.adapters.jacoco import JaCoCoAdapter
from jacocomment.analyzers.diff import DiffAnalyzer
from jacocomment.config import (
    JacocommentConfig,
    load_config,
    parse_coverage_types,
    validate_config,
)
from jacocomment.errors import JacocommentError
from jacocomment.orchestrator import CoverageReportPipeline
from jacocomment.reporters.github_comment import create_reporter_from_env
from jacocomment.reporters.terminal import console, reporter
from jacocomment.utils.git import GitHubAPIError, GitOperationError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

# Masking thresholds
_MIN_MASKED_VALUE_LENGTH = 8


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _config_to_dict(config: JacocommentConfig) -> dict[str, Any]:
    """Convert JacocommentConfig to a dictionary for display."""
    result = asdict(config)
    result.pop("raw", None)
    result["jacoco"]["source_root"] = config.jacoco.resolved_source_root
    token = result["github"].get("token", "")
    if token:
        result["github"]["token"] = (
            f"{token[:4]}...{token[-4:]}" if len(token) > _MIN_MASKED_VALUE_LENGTH else "***"
        )
    return result


def _fail(message: str, exit_code: int) -> NoReturn:
    reporter.print_error(escape(message))
    sys.exit(exit_code)


def _load_config_or_abort(path: str) -> JacocommentConfig:
    try:
        return load_config(path)
    except JacocommentError as e:
        _fail(f"{e.code}: {e}", e.exit_code)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="jacocomment")
def cli(*, verbose: bool) -> None:
    """jacocomment: report JaCoCo coverage of changed files."""
    _configure_logging(verbose=verbose)


@cli.command()
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory (where gradlew lives).",
)
@click.option("--gradle-module", default=None, help="Gradle module holding the sources.")
@click.option("--gradle-task", default=None, help="Gradle task that writes the report.")
@click.option("--report-file", default=None, help="Report location relative to --path.")
@click.option(
    "--coverage-type",
    "coverage_types",
    multiple=True,
    help="Coverage column (repeatable, order kept). Defaults to INSTRUCTION, BRANCH.",
)
@click.option("--source-root", default=None, help="Source root prefix of file paths.")
@click.option("--base-ref", default=None, help="Git ref to diff against.")
@click.option("--compare-ref", default=None, help="Git ref to compare (default: working tree).")
@click.option(
    "--changed-file",
    "changed_files",
    multiple=True,
    help="File of interest (repeatable). Skips git change detection.",
)
@click.option("--skip-build", is_flag=True, help="Use the existing report without running Gradle.")
@click.option(
    "--github-comment/--stdout",
    "github_comment",
    default=None,
    help="Post the table as a pull request comment, or print it.",
)
@click.option("--preview", is_flag=True, help="Also show the table in the terminal.")
def report(  # noqa: PLR0913
    path: str,
    gradle_module: str | None,
    gradle_task: str | None,
    report_file: str | None,
    coverage_types: tuple[str, ...],
    source_root: str | None,
    base_ref: str | None,
    compare_ref: str | None,
    changed_files: tuple[str, ...],
    *,
    skip_build: bool,
    github_comment: bool | None,
    preview: bool,
) -> None:
    """Run the JaCoCo task and publish coverage for the files changed in this revision.

    Example:
      jacocomment report --coverage-type INSTRUCTION --coverage-type LINE
      jacocomment report --skip-build --changed-file app/src/main/java/com/example/Foo.java
    """
    project_root = Path(path)
    config = _load_config_or_abort(path)

    overrides: dict[str, Any] = {
        key: value
        for key, value in {
            "gradle_module": gradle_module,
            "gradle_task": gradle_task,
            "report_file": report_file,
            "source_root": source_root,
        }.items()
        if value is not None
    }
    if coverage_types:
        overrides["coverage_types"] = parse_coverage_types(list(coverage_types))
    jacoco = replace(config.jacoco, **overrides)
    git = replace(
        config.git,
        **{k: v for k, v in {"base_ref": base_ref, "compare_ref": compare_ref}.items() if v},
    )

    errors = validate_config(replace(config, jacoco=jacoco, git=git))
    if errors:
        for error in errors:
            reporter.print_error(escape(error))
        sys.exit(2)

    post_to_github = config.github.comment if github_comment is None else github_comment

    changed: Callable[[], frozenset[str]]
    if changed_files:
        changed = partial(frozenset, {f.replace("\\", "/") for f in changed_files})
    else:
        try:
            changed = DiffAnalyzer(
                project_root, git.base_ref or None, git.compare_ref or None
            ).files_of_interest
        except GitOperationError as e:
            _fail(str(e), 1)

    publish: Callable[[str], object]
    marker: str | None = None
    if post_to_github:
        try:
            github = create_reporter_from_env(config.github.token or None)
        except GitHubAPIError as e:
            _fail(str(e), 1)
        publish = github.publish
        marker = github.marker
    else:
        publish = partial(click.echo, nl=False)

    pipeline = CoverageReportPipeline(
        jacoco,
        project_root,
        changed_files=changed,
        publish=publish,
        skip_build=skip_build,
        marker=marker,
    )

    try:
        result = asyncio.run(pipeline.run())
    except JacocommentError as e:
        _fail(f"{e.code}: {e}", e.exit_code)
    except (GitOperationError, GitHubAPIError) as e:
        _fail(str(e), 1)

    if not result.reports:
        reporter.print_warning(
            f"None of the changed files appear in the report ({result.total_files} entries)"
        )
    else:
        reporter.print_info(
            f"{len(result.reports)} of {result.total_files} report entries changed in this revision"
        )
    if preview:
        reporter.print_coverage_table(
            jacoco.coverage_types, result.reports, jacoco.resolved_source_root
        )
    if post_to_github:
        reporter.print_success(f"Posted coverage for {len(result.reports)} file(s)")


@cli.group("config")
def config_group() -> None:
    """Inspect `.jacocomment.yml` configuration."""


@config_group.command("show")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of YAML.",
)
def config_show(path: str, *, as_json: bool) -> None:
    """Display the resolved configuration, defaults included."""
    config_dict = _config_to_dict(_load_config_or_abort(path))

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
def config_validate(path: str) -> None:
    """Validate `.jacocomment.yml`."""
    config = _load_config_or_abort(path)
    errors = validate_config(config)

    jacoco = config.jacoco
    if not JaCoCoAdapter().detect(
        Path(config.root), report_file=jacoco.report_file, wrapper=jacoco.gradle_wrapper
    ):
        reporter.print_warning(
            f"No {escape(jacoco.gradle_wrapper)} or JaCoCo report found in {escape(config.root)}"
        )

    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{escape(error)}[/red]")
    sys.exit(2)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
