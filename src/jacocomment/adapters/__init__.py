"""Report adapters that turn native coverage reports into jacocomment models."""

from jacocomment.adapters.jacoco import JaCoCoAdapter, parse_report, parse_report_text

__all__ = [
    "JaCoCoAdapter",
    "parse_report",
    "parse_report_text",
]
