"""
Data model for tabdiff

- Dataset: an immutable parsed CSV file (headers + rows)
- ModifiedRow: a row present in both datasets whose fields differ
- MergeSuggestion: a ranked, non-applied merge proposal
- ComparisonResult: the four row partitions plus the suggestions
- ValidationIssue: non-fatal data-quality diagnostics
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd


__all__ = [
    "Row",
    "Dataset",
    "ModifiedRow",
    "SuggestionType",
    "ConfidenceLevel",
    "MergeSuggestion",
    "ComparisonResult",
    "Severity",
    "ValidationIssue",
    "key_string",
    "CATEGORIES",
]

Scalar = Union[int, float, str]
Row = Dict[str, Scalar]

CATEGORIES = ("identical", "modified", "added", "deleted", "suggestions")


def key_string(value: Any) -> str:
    """Stringify a key value so that rows of both datasets can be aligned.

    Integral floats render without a fraction (1.0 -> "1") so that "1" and
    "1.0" in the source files align, and a missing value renders as "".
    """
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Severity(Enum):
    """Severity of a ValidationIssue"""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ValidationIssue:
    """A data-quality problem found in a dataset; never raised"""
    row: int
    column: Optional[str]
    value: Any
    message: str
    severity: Severity = Severity.WARNING

    def __str__(self) -> str:
        return f"[{self.severity.value}] row {self.row}, column {self.column!r}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'row': self.row,
            'column': self.column,
            'value': self.value,
            'message': self.message,
            'severity': self.severity.value
        }


@dataclass(frozen=True)
class Dataset:
    """A parsed CSV file. Created once by the parser and never mutated."""
    id: str
    name: str
    headers: Tuple[str, ...]
    rows: Tuple[Row, ...]
    uploaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    issues: Tuple[ValidationIssue, ...] = ()

    def __str__(self) -> str:
        return f"Dataset({self.name!r}: {len(self.rows)} rows, {len(self.headers)} columns)"

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_dataframe(self) -> pd.DataFrame:
        """Get the rows as a DataFrame with one column per header"""
        return pd.DataFrame(list(self.rows), columns=list(self.headers))


@dataclass(frozen=True)
class ModifiedRow:
    """A row matched by key in both datasets whose values differ"""
    original: Row
    current: Row
    differences: List[str]
    row_index: int

    def __str__(self) -> str:
        return f"ModifiedRow(index {self.row_index}: {', '.join(self.differences)})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'original': dict(self.original),
            'current': dict(self.current),
            'differences': list(self.differences),
            'row_index': self.row_index
        }


class SuggestionType(Enum):
    """Kinds of merge suggestion"""
    UPDATE = "update"
    ADD = "add"
    DELETE = "delete"
    RESOLVE_CONFLICT = "resolve_conflict"


class ConfidenceLevel(Enum):
    """Coarse confidence bands used when presenting suggestions"""
    HIGH = "high"         # >= 0.8
    MEDIUM = "medium"     # 0.6 - 0.8
    LOW = "low"           # < 0.6

    @classmethod
    def from_confidence(cls, confidence: float) -> "ConfidenceLevel":
        if confidence >= 0.8:
            return cls.HIGH
        if confidence >= 0.6:
            return cls.MEDIUM
        return cls.LOW


@dataclass(frozen=True)
class MergeSuggestion:
    """A single merge suggestion derived from a ComparisonResult"""
    type: SuggestionType
    description: str
    confidence: float
    row_index: Optional[int] = None
    field: Optional[str] = None
    original_value: Any = None
    suggested_value: Any = None

    def __str__(self) -> str:
        return f"MergeSuggestion({self.type.value}, {self.confidence:.2f}: {self.description})"

    @property
    def level(self) -> ConfidenceLevel:
        return ConfidenceLevel.from_confidence(self.confidence)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'type': self.type.value,
            'description': self.description,
            'row_index': self.row_index,
            'field': self.field,
            'original_value': self.original_value,
            'suggested_value': self.suggested_value,
            'confidence': self.confidence
        }


@dataclass(frozen=True)
class ComparisonResult:
    """Container for the outcome of comparing two datasets.

    Built once per comparison and never mutated; a new comparison produces
    a new result.
    """
    identical: Tuple[Row, ...]
    modified: Tuple[ModifiedRow, ...]
    added: Tuple[Row, ...]
    deleted: Tuple[Row, ...]
    suggestions: Tuple[MergeSuggestion, ...] = ()
    key_column: Optional[str] = None

    def __str__(self) -> str:
        return (f"ComparisonResult(identical: {len(self.identical)}, modified: {len(self.modified)}, "
                f"added: {len(self.added)}, deleted: {len(self.deleted)})")

    def __repr__(self) -> str:
        return self.__str__()

    @property
    def summary(self) -> Dict[str, Any]:
        """Row counts per category and whether the datasets match"""
        return {
            'key_column': self.key_column,
            'identical_rows': len(self.identical),
            'modified_rows': len(self.modified),
            'added_rows': len(self.added),
            'deleted_rows': len(self.deleted),
            'total_cell_changes': sum(len(m.differences) for m in self.modified),
            'suggestions': len(self.suggestions),
            'identical': not self.has_changes()
        }

    def has_changes(self) -> bool:
        """Check if there are any changes between the datasets"""
        return bool(self.modified or self.added or self.deleted)

    def has_added_rows(self) -> bool:
        return len(self.added) > 0

    def has_deleted_rows(self) -> bool:
        return len(self.deleted) > 0

    def has_modified_rows(self) -> bool:
        return len(self.modified) > 0

    def get_rows(self, category: str) -> List[Dict[str, Any]]:
        """
        Get the records of one category as plain dictionaries.

        Modified rows are returned as every original row tagged
        ``_status: original`` followed by every current row tagged
        ``_status: modified``. Suggestions use their to_dict() form.

        Raises:
            ValueError: If category is not one of CATEGORIES
        """
        if category == 'identical':
            return [dict(row) for row in self.identical]
        if category == 'modified':
            return (
                [{**mod.original, '_status': 'original'} for mod in self.modified]
                + [{**mod.current, '_status': 'modified'} for mod in self.modified]
            )
        if category == 'added':
            return [dict(row) for row in self.added]
        if category == 'deleted':
            return [dict(row) for row in self.deleted]
        if category == 'suggestions':
            return [s.to_dict() for s in self.suggestions]
        raise ValueError(f"Unknown category {category!r}. Expected one of: {', '.join(CATEGORIES)}")

    def to_dataframe(self, category: str) -> pd.DataFrame:
        """Get the records of one category as a DataFrame"""
        return pd.DataFrame(self.get_rows(category))

    def get_detailed_modifications(self) -> pd.DataFrame:
        """
        Get detailed modifications showing old and new values side by side.

        Returns a DataFrame with columns: row_key, row_index, column, old_value, new_value
        """
        records = []
        for mod in self.modified:
            row_key = key_string(mod.original.get(self.key_column)) if self.key_column else None
            for column in mod.differences:
                records.append({
                    'row_key': row_key,
                    'row_index': mod.row_index,
                    'column': column,
                    'old_value': mod.original.get(column),
                    'new_value': mod.current.get(column)
                })
        return pd.DataFrame(records, columns=['row_key', 'row_index', 'column', 'old_value', 'new_value'])

    def to_dict(self) -> Dict[str, Any]:
        """Convert the entire result to a dictionary"""
        return {
            'summary': self.summary,
            'identical': [dict(row) for row in self.identical],
            'modified': [mod.to_dict() for mod in self.modified],
            'added': [dict(row) for row in self.added],
            'deleted': [dict(row) for row in self.deleted],
            'suggestions': [s.to_dict() for s in self.suggestions]
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert the entire result to a JSON string"""
        def json_serializer(obj):
            if isinstance(obj, (pd.Timestamp, np.datetime64, datetime)):
                return str(obj)
            if isinstance(obj, np.integer):
                return int(obj)
            if isinstance(obj, np.floating):
                return float(obj)
            if isinstance(obj, Enum):
                return obj.value
            return str(obj)

        return json.dumps(self.to_dict(), default=json_serializer, indent=indent, ensure_ascii=False)

    def export_to_excel(self, filename: str) -> None:
        """Export the summary and every non-empty category to separate sheets"""
        try:
            with pd.ExcelWriter(filename, engine='openpyxl') as writer:
                summary_df = pd.DataFrame(list(self.summary.items()), columns=['Metric', 'Value'])
                summary_df.to_excel(writer, sheet_name='Summary', index=False)

                for category in CATEGORIES:
                    df = self.to_dataframe(category)
                    if len(df) == 0:
                        continue
                    if category == 'suggestions':
                        # Row-valued cells do not fit in a spreadsheet cell
                        df = df.astype({'original_value': str, 'suggested_value': str})
                    df.to_excel(writer, sheet_name=category.capitalize(), index=False)

                details = self.get_detailed_modifications()
                if len(details) > 0:
                    details.to_excel(writer, sheet_name='Detailed_Changes', index=False)

        except ImportError:
            raise ImportError("openpyxl is required for Excel export. Install with: pip install openpyxl")
