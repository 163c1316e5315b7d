"""Error taxonomy for jacocomment.

Every fatal failure carries a stable ``code`` and a process ``exit_code`` so
that automation can branch on the kind of failure without parsing messages.
"""

from __future__ import annotations


class JacocommentError(Exception):
    """Base class for all fatal jacocomment errors."""

    code = "error"
    exit_code = 1


class ConfigError(JacocommentError):
    """Raised when the configuration file cannot be loaded."""

    code = "config_error"
    exit_code = 2


class BuildWrapperNotFoundError(JacocommentError):
    """Raised when the Gradle wrapper script is missing from the working directory."""

    code = "build_wrapper_not_found"
    exit_code = 3

    def __init__(self, wrapper: str) -> None:
        super().__init__(f"Build wrapper '{wrapper}' not found in working directory")
        self.wrapper = wrapper


class ReportNotFoundError(JacocommentError):
    """Raised when the coverage report artifact does not exist."""

    code = "report_not_found"
    exit_code = 4

    def __init__(self, report_file: str) -> None:
        super().__init__(f"Coverage report '{report_file}' not found")
        self.report_file = report_file


class ReportParseError(JacocommentError):
    """Raised when the report is malformed or a counter lacks numeric attributes."""

    code = "report_parse_error"
    exit_code = 5


ParseError = ReportParseError
