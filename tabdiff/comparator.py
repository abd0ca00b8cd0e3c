"""
Key-based comparison of two datasets.

Rows of both datasets are aligned on the stringified value of a key column
and partitioned into identical, modified, added and deleted rows. Merge
suggestions for the differences are attached to the result.

Basic Usage:
    >>> result = compare_datasets(dataset_a, dataset_b, key_column='id')
    >>> result.summary
    >>> for suggestion in result.suggestions:
    ...     print(suggestion.description, suggestion.confidence)
"""

import logging
import warnings
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import ComparisonError
from .models import ComparisonResult, Dataset, ModifiedRow, Row, key_string
from .suggestions import generate_suggestions


__all__ = [
    "DatasetComparator",
    "diff_rows",
    "compare_datasets",
    "quick_diff",
    "are_datasets_equal",
    "available_key_columns",
]

logger = logging.getLogger(__name__)

_MISSING = object()


def diff_rows(row_a: Row, row_b: Row, headers: Sequence[str]) -> List[str]:
    """
    Return the headers whose values differ between two rows.

    Equality is type-sensitive: the number 5 and the string "5" differ.
    A header missing from only one of the rows counts as a difference.
    """
    return [
        header for header in headers
        if row_a.get(header, _MISSING) != row_b.get(header, _MISSING)
    ]


def available_key_columns(dataset_a: Dataset, dataset_b: Dataset) -> List[str]:
    """Union of both datasets' headers, in order of first appearance"""
    return list(dict.fromkeys(list(dataset_a.headers) + list(dataset_b.headers)))


class DatasetComparator:
    """
    Compares two datasets row by row using a key column.

    Example:
        >>> comparator = DatasetComparator()
        >>> result = comparator.compare(dataset_a, dataset_b, key_column='id')
        >>> print(result.summary)
    """

    def __init__(self, warn_on_duplicates: bool = True):
        """
        Initialize DatasetComparator

        Args:
            warn_on_duplicates: If True, emit a warning when a dataset holds
                the same key value more than once. The last occurrence is
                compared either way.
        """
        self.warn_on_duplicates = warn_on_duplicates

    def compare(
        self,
        dataset_a: Dataset,
        dataset_b: Dataset,
        key_column: Optional[str] = None
    ) -> ComparisonResult:
        """
        Compare two datasets and return the partitioned rows with suggestions

        Args:
            dataset_a: First dataset (considered as "before" / original)
            dataset_b: Second dataset (considered as "after" / current)
            key_column: Column whose values identify a row. Defaults to the
                first header of dataset_a, then of dataset_b.

        Returns:
            ComparisonResult. Identical, modified and deleted rows follow the
            order of dataset_a; added rows follow the order of dataset_b.

        Raises:
            ComparisonError: If no key column can be resolved
        """
        key = self.resolve_key_column(dataset_a, dataset_b, key_column)

        map_a, index_a, duplicates_a = self._build_lookup(dataset_a, key)
        map_b, _, duplicates_b = self._build_lookup(dataset_b, key)
        self._report_duplicates(dataset_a, duplicates_a)
        self._report_duplicates(dataset_b, duplicates_b)

        identical: List[Row] = []
        modified: List[ModifiedRow] = []
        added: List[Row] = []
        deleted: List[Row] = []

        for key_value, row_a in map_a.items():
            row_b = map_b.get(key_value)
            if row_b is None:
                deleted.append(row_a)
                continue
            differences = diff_rows(row_a, row_b, dataset_a.headers)
            if not differences:
                identical.append(row_a)
            else:
                modified.append(ModifiedRow(
                    original=row_a,
                    current=row_b,
                    differences=differences,
                    row_index=index_a[key_value]
                ))

        for key_value, row_b in map_b.items():
            if key_value not in map_a:
                added.append(row_b)

        partitions = ComparisonResult(
            identical=tuple(identical),
            modified=tuple(modified),
            added=tuple(added),
            deleted=tuple(deleted),
            key_column=key
        )
        suggestions = generate_suggestions(partitions)

        logger.info(
            "Compared %s with %s on %r: %d identical, %d modified, %d added, %d deleted",
            dataset_a.name, dataset_b.name, key,
            len(identical), len(modified), len(added), len(deleted)
        )
        return ComparisonResult(
            identical=partitions.identical,
            modified=partitions.modified,
            added=partitions.added,
            deleted=partitions.deleted,
            suggestions=tuple(suggestions),
            key_column=key
        )

    @staticmethod
    def resolve_key_column(
        dataset_a: Dataset,
        dataset_b: Dataset,
        key_column: Optional[str] = None
    ) -> str:
        """Pick the explicit key, else the first header of either dataset"""
        key = key_column or next(iter(dataset_a.headers + dataset_b.headers), None)
        if key:
            logger.debug("Using key column %r", key)
            return key
        raise ComparisonError("Could not identify a key column for the comparison")

    @staticmethod
    def _build_lookup(
        dataset: Dataset,
        key: str
    ) -> Tuple[Dict[str, Row], Dict[str, int], Dict[str, int]]:
        """
        Index a dataset by key value.

        Returns the key -> row map (last row wins, first-seen order), the
        key -> first row position map, and key -> occurrence count for keys
        seen more than once.
        """
        rows_by_key: Dict[str, Row] = {}
        first_index: Dict[str, int] = {}
        counts: Dict[str, int] = {}
        for position, row in enumerate(dataset.rows):
            key_value = key_string(row.get(key))
            if key_value not in first_index:
                first_index[key_value] = position
            rows_by_key[key_value] = row
            counts[key_value] = counts.get(key_value, 0) + 1
        duplicates = {k: n for k, n in counts.items() if n > 1}
        return rows_by_key, first_index, duplicates

    def _report_duplicates(self, dataset: Dataset, duplicates: Dict[str, int]) -> None:
        if not duplicates:
            return
        extra = sum(n - 1 for n in duplicates.values())
        logger.warning("%s has %d duplicate key row(s); last occurrence wins", dataset.name, extra)
        if self.warn_on_duplicates:
            warnings.warn(f"{dataset.name} has {extra} duplicate key(s). "
                          "Only the last occurrence will be compared.")


# Convenience functions for quick comparisons
def compare_datasets(
    dataset_a: Dataset,
    dataset_b: Dataset,
    key_column: Optional[str] = None,
    **kwargs
) -> ComparisonResult:
    """
    Convenience function to compare two datasets.

    Args:
        dataset_a: First dataset (before)
        dataset_b: Second dataset (after)
        key_column: Column used to align rows
        **kwargs: Additional arguments passed to DatasetComparator

    Returns:
        ComparisonResult with partitions and ranked suggestions
    """
    comparator = DatasetComparator(**kwargs)
    return comparator.compare(dataset_a, dataset_b, key_column=key_column)


def quick_diff(
    dataset_a: Dataset,
    dataset_b: Dataset,
    key_column: Optional[str] = None
) -> Dict[str, Any]:
    """
    Get a quick summary of differences between two datasets.

    Example:
        >>> quick_diff(a, b, key_column='id')
        {'identical': 0, 'modified': 1, 'added': 1, 'deleted': 1, 'equal': False}
    """
    result = compare_datasets(dataset_a, dataset_b, key_column=key_column)
    return {
        'identical': len(result.identical),
        'modified': len(result.modified),
        'added': len(result.added),
        'deleted': len(result.deleted),
        'equal': not result.has_changes()
    }


def are_datasets_equal(
    dataset_a: Dataset,
    dataset_b: Dataset,
    key_column: Optional[str] = None
) -> bool:
    """Check if two datasets hold the same rows for every key"""
    return not compare_datasets(dataset_a, dataset_b, key_column=key_column).has_changes()
