"""
Exception types raised by tabdiff.

Data-quality problems that do not stop processing are reported as
ValidationIssue objects instead (see tabdiff.models).
"""

__all__ = ["TabDiffError", "FormatError", "ComparisonError", "LoadError"]


class TabDiffError(Exception):
    """Base class for all tabdiff errors"""


class FormatError(TabDiffError, ValueError):
    """Malformed or oversized CSV input"""


class ComparisonError(TabDiffError, ValueError):
    """No key column could be resolved for a comparison"""


class LoadError(TabDiffError):
    """A CSV file could not be read from disk"""
