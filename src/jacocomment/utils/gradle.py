"""Gradle wrapper helpers: locate ``gradlew`` and run the report task."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from jacocomment.errors import BuildWrapperNotFoundError
from jacocomment.utils.subprocess_runner import SubprocessResult, run_subprocess

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_GRADLE_WRAPPER = "gradlew"
DEFAULT_GRADLE_TASK = "jacoco"
DEFAULT_BUILD_TIMEOUT = 600.0

# Trailing output kept in the log when the build fails
_STDERR_TAIL_CHARS = 2000


def gradle_wrapper_exists(project_root: Path, wrapper: str = DEFAULT_GRADLE_WRAPPER) -> bool:
    """Return True if the wrapper script is present in ``project_root``."""
    return (project_root / wrapper).is_file()


def require_gradle_wrapper(project_root: Path, wrapper: str = DEFAULT_GRADLE_WRAPPER) -> Path:
    """Return the wrapper path.

    Raises:
        BuildWrapperNotFoundError: If the wrapper script is missing.
    """
    if not gradle_wrapper_exists(project_root, wrapper):
        raise BuildWrapperNotFoundError(wrapper)
    return project_root / wrapper


async def run_gradle_task(
    project_root: Path,
    task: str = DEFAULT_GRADLE_TASK,
    *,
    wrapper: str = DEFAULT_GRADLE_WRAPPER,
    timeout: float = DEFAULT_BUILD_TIMEOUT,
) -> SubprocessResult:
    """Run ``./<wrapper> <task>`` in ``project_root``.

    A failing build is logged, not raised: whether the run can continue is
    decided by the presence of the report afterwards.

    Raises:
        BuildWrapperNotFoundError: If the wrapper script is missing.
        SubprocessError: If the wrapper cannot be executed at all.
    """
    require_gradle_wrapper(project_root, wrapper)
    command = [f"./{wrapper}", *task.split()]

    logger.info("Running %s", " ".join(command))
    result = await run_subprocess(command, cwd=project_root, timeout=timeout)

    if result.timed_out:
        logger.warning("Gradle task '%s' timed out after %ss", task, timeout)
    elif not result.success:
        logger.warning(
            "Gradle task '%s' exited with %d: %s",
            task,
            result.returncode,
            result.stderr[-_STDERR_TAIL_CHARS:],
        )
    return result
