"""
tabdiff - Key-based comparison of CSV datasets with merge suggestions

This library parses two CSV files, aligns their rows on a key column,
classifies every row as identical, modified, added or deleted, and ranks
merge suggestions by confidence.

Basic Usage:
    >>> from tabdiff import parse_csv, compare_datasets, serialize_rows
    >>>
    >>> before = parse_csv(open('before.csv').read(), 'before.csv')
    >>> after = parse_csv(open('after.csv').read(), 'after.csv')
    >>>
    >>> result = compare_datasets(before, after, key_column='id')
    >>> print(result.summary)
    >>>
    >>> # Ranked merge suggestions
    >>> for suggestion in result.suggestions:
    ...     print(suggestion.confidence, suggestion.description)
    >>>
    >>> # Export one category
    >>> csv_text = serialize_rows(result.added)
"""

from .errors import (
    TabDiffError,
    FormatError,
    ComparisonError,
    LoadError,
)
from .models import (
    Dataset,
    ModifiedRow,
    ComparisonResult,
    MergeSuggestion,
    SuggestionType,
    ConfidenceLevel,
    ValidationIssue,
    Severity,
)
from .parser import CSVParser, parse_csv, parse_dataframe
from .similarity import calculate_confidence, levenshtein_distance, string_similarity
from .comparator import (
    DatasetComparator,
    diff_rows,
    compare_datasets,
    quick_diff,
    are_datasets_equal,
    available_key_columns,
)
from .suggestions import generate_suggestions
from .export import serialize_rows, sanitize_filename, export_rows, export_category
from .validation import validate_dataset, find_duplicate_keys
from .loader import read_dataset, load_datasets

__version__ = "0.1.0"

__all__ = [
    # Errors
    "TabDiffError",
    "FormatError",
    "ComparisonError",
    "LoadError",

    # Data model
    "Dataset",
    "ModifiedRow",
    "ComparisonResult",
    "MergeSuggestion",
    "SuggestionType",
    "ConfidenceLevel",
    "ValidationIssue",
    "Severity",

    # Parsing and loading
    "CSVParser",
    "parse_csv",
    "parse_dataframe",
    "read_dataset",
    "load_datasets",

    # Comparison
    "DatasetComparator",
    "diff_rows",
    "compare_datasets",
    "quick_diff",
    "are_datasets_equal",
    "available_key_columns",

    # Suggestions and similarity
    "generate_suggestions",
    "calculate_confidence",
    "levenshtein_distance",
    "string_similarity",

    # Export
    "serialize_rows",
    "sanitize_filename",
    "export_rows",
    "export_category",

    # Validation
    "validate_dataset",
    "find_duplicate_keys",

    # Version
    "__version__",
]
