"""Configuration parsing from ``.jacocomment.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from jacocomment.adapters.jacoco import DEFAULT_REPORT_FILE
from jacocomment.analyzers.coverage import join_path
from jacocomment.errors import ConfigError
from jacocomment.models.coverage import (
    DEFAULT_COVERAGE_TYPES,
    DEFAULT_GRADLE_MODULE,
    RenderConfiguration,
    default_source_root,
)
from jacocomment.utils.gradle import (
    DEFAULT_BUILD_TIMEOUT,
    DEFAULT_GRADLE_TASK,
    DEFAULT_GRADLE_WRAPPER,
)

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".jacocomment.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

# Counter types JaCoCo writes; other names are accepted but flagged.
KNOWN_COVERAGE_TYPES = frozenset(
    {"INSTRUCTION", "BRANCH", "LINE", "COMPLEXITY", "METHOD", "CLASS"}
)


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw.get(name, {})
    return section if isinstance(section, dict) else {}


def _lookup(section: dict[str, Any], key: str, default: Any) -> Any:
    """Read ``key`` in snake_case or camelCase (``gradle_module`` / ``gradleModule``)."""
    if key in section:
        return section[key]
    head, *rest = key.split("_")
    camel = head + "".join(part.capitalize() for part in rest)
    return section.get(camel, default)


def parse_coverage_types(value: Any) -> list[str]:
    """Accept a list or a comma separated string of coverage type names."""
    if isinstance(value, str):
        items: list[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        return list(DEFAULT_COVERAGE_TYPES)
    return [str(item).strip() for item in items if str(item).strip()]


@dataclass
class JacocoConfig:
    """Where the report comes from and what the table shows."""

    gradle_module: str = DEFAULT_GRADLE_MODULE
    """Gradle module holding the sources (default: ``app``)."""

    gradle_task: str = DEFAULT_GRADLE_TASK
    """Gradle task producing the report (default: ``jacoco``)."""

    report_file: str = DEFAULT_REPORT_FILE
    """Report location, relative to the project root."""

    coverage_types: list[str] = field(default_factory=lambda: list(DEFAULT_COVERAGE_TYPES))
    """Coverage columns, in display order."""

    source_root: str = ""
    """Path prefix for source files (empty = ``<gradle_module>/src/main/java``)."""

    gradle_wrapper: str = DEFAULT_GRADLE_WRAPPER
    """Wrapper script expected in the project root."""

    build_timeout: float = DEFAULT_BUILD_TIMEOUT
    """Seconds to wait for the Gradle task."""

    @property
    def resolved_source_root(self) -> str:
        return join_path(self.source_root) or default_source_root(self.gradle_module)

    def render_configuration(self, files_of_interest: frozenset[str]) -> RenderConfiguration:
        """Build the immutable render inputs for one run."""
        return RenderConfiguration(
            coverage_types=tuple(self.coverage_types),
            source_root=self.resolved_source_root,
            files_of_interest=files_of_interest,
        )


@dataclass
class GitConfig:
    """Change-set detection configuration."""

    base_ref: str = ""
    """Git ref to diff against (empty = pull request base, else the last commit)."""

    compare_ref: str = ""
    """Ref to compare (empty = working tree)."""


@dataclass
class GitHubConfig:
    """Pull request comment configuration."""

    comment: bool = False
    """Post the table as a PR comment instead of printing it."""

    token: str = ""
    """API token (supports ${ENV_VAR} expansion; empty = GITHUB_TOKEN)."""


@dataclass
class JacocommentConfig:
    """Complete configuration for a run."""

    root: str
    """Project root directory."""

    jacoco: JacocoConfig = field(default_factory=JacocoConfig)
    git: GitConfig = field(default_factory=GitConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)

    raw: dict[str, Any] = field(default_factory=dict)
    """Resolved YAML content, for display."""


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return _resolve_dict(parsed)


def load_config(root: str | Path) -> JacocommentConfig:
    """Load ``.jacocomment.yml`` from ``root``.

    Falls back to ``JACOCOMMENT_*`` environment variables, then to defaults,
    when the file or a key is missing.

    Raises:
        ConfigError: If the file exists but is not valid YAML.
    """
    root_path = Path(root).resolve()
    raw = _load_yaml(root_path / CONFIG_FILE_NAME)

    jacoco_raw = _section(raw, "jacoco")
    coverage_types = _lookup(
        jacoco_raw, "coverage_types", os.environ.get("JACOCOMMENT_COVERAGE_TYPES")
    )

    try:
        jacoco = JacocoConfig(
            gradle_module=str(
                _lookup(
                    jacoco_raw,
                    "gradle_module",
                    os.environ.get("JACOCOMMENT_GRADLE_MODULE", DEFAULT_GRADLE_MODULE),
                )
            ),
            gradle_task=str(
                _lookup(
                    jacoco_raw,
                    "gradle_task",
                    os.environ.get("JACOCOMMENT_GRADLE_TASK", DEFAULT_GRADLE_TASK),
                )
            ),
            report_file=str(
                _lookup(
                    jacoco_raw,
                    "report_file",
                    os.environ.get("JACOCOMMENT_REPORT_FILE", DEFAULT_REPORT_FILE),
                )
            ),
            coverage_types=parse_coverage_types(coverage_types),
            source_root=str(_lookup(jacoco_raw, "source_root", "")),
            gradle_wrapper=str(_lookup(jacoco_raw, "gradle_wrapper", DEFAULT_GRADLE_WRAPPER)),
            build_timeout=float(_lookup(jacoco_raw, "build_timeout", DEFAULT_BUILD_TIMEOUT)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value in jacoco section: {e}") from e

    git_raw = _section(raw, "git")
    git = GitConfig(
        base_ref=str(_lookup(git_raw, "base_ref", "")),
        compare_ref=str(_lookup(git_raw, "compare_ref", "")),
    )

    github_raw = _section(raw, "github")
    github = GitHubConfig(
        comment=bool(_lookup(github_raw, "comment", False)),
        token=str(_lookup(github_raw, "token", "")),
    )

    return JacocommentConfig(root=str(root_path), jacoco=jacoco, git=git, github=github, raw=raw)


def validate_config(config: JacocommentConfig) -> list[str]:
    """Return a list of configuration errors (empty when valid)."""
    errors: list[str] = []
    jacoco = config.jacoco

    if not jacoco.coverage_types:
        errors.append("jacoco.coverage_types must list at least one coverage type")

    seen: set[str] = set()
    for coverage_type in jacoco.coverage_types:
        if coverage_type in seen:
            errors.append(f"jacoco.coverage_types lists '{coverage_type}' more than once")
        seen.add(coverage_type)
        if coverage_type not in KNOWN_COVERAGE_TYPES:
            logger.warning("Coverage type '%s' is not written by JaCoCo", coverage_type)

    if not jacoco.gradle_task.strip():
        errors.append("jacoco.gradle_task must not be empty")
    if not jacoco.report_file.strip():
        errors.append("jacoco.report_file must not be empty")
    if not jacoco.gradle_wrapper.strip():
        errors.append("jacoco.gradle_wrapper must not be empty")
    if jacoco.build_timeout <= 0:
        errors.append(f"jacoco.build_timeout must be positive, got {jacoco.build_timeout}")

    return errors
