"""jacocomment: JaCoCo coverage tables for pull-request comments."""

__version__ = "0.1.0"
