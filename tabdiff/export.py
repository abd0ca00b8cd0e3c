"""
CSV export of rows and comparison categories.

Every field is double-quoted and fields starting with a formula character
(=, +, -, @) are prefixed with an apostrophe so spreadsheet software shows
them as text.
"""

import csv
import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd

from .models import CATEGORIES, ComparisonResult


__all__ = [
    "serialize_rows",
    "sanitize_filename",
    "export_rows",
    "export_category",
    "DEFAULT_EXPORT_NAME",
]

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_NAME = "export.csv"
MAX_FILENAME_LENGTH = 100

_FORMULA_PREFIX = re.compile(r'^[=+\-@]')
_UNSAFE_FILENAME_CHARS = re.compile(r'[^a-zA-Z0-9._-]')
_REPEATED_UNDERSCORES = re.compile(r'_{2,}')


def _cell_text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str, ensure_ascii=False)
    return str(value)


def _neutralize(text: str) -> str:
    if _FORMULA_PREFIX.match(text):
        return "'" + text
    return text


def serialize_rows(rows: Sequence[Mapping[str, Any]]) -> str:
    """
    Render rows as CSV text.

    The header line holds the keys of the first row; values missing from a
    row are written empty. Returns an empty string when there are no rows.
    Lines are separated by newlines with no trailing newline.
    """
    if not rows:
        return ''

    headers = list(rows[0].keys())
    records = [
        [_neutralize(_cell_text(row.get(header))) for header in headers]
        for row in rows
    ]
    df = pd.DataFrame(records, columns=[_neutralize(str(h)) for h in headers], dtype=object)
    text = df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator='\n')
    return text.rstrip('\n')


def sanitize_filename(filename: Optional[str]) -> str:
    """Make a file name safe for writing, falling back to DEFAULT_EXPORT_NAME"""
    if not filename or not isinstance(filename, str):
        return DEFAULT_EXPORT_NAME
    safe = _UNSAFE_FILENAME_CHARS.sub('_', filename)
    safe = _REPEATED_UNDERSCORES.sub('_', safe)
    return safe[:MAX_FILENAME_LENGTH] or DEFAULT_EXPORT_NAME


def export_rows(
    rows: Sequence[Mapping[str, Any]],
    filename: str,
    directory: Union[str, Path] = "."
) -> Optional[Path]:
    """
    Write rows to a CSV file

    Args:
        rows: Rows to export
        filename: Requested file name; sanitized before use
        directory: Destination directory, created if missing

    Returns:
        Path of the written file, or None when there was nothing to export
    """
    if not rows:
        logger.info("Nothing to export for %s", filename)
        return None

    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / sanitize_filename(filename)
    path.write_text(serialize_rows(rows), encoding='utf-8')
    logger.info("Exported %d row(s) to %s", len(rows), path)
    return path


def export_category(
    result: ComparisonResult,
    category: str,
    directory: Union[str, Path] = ".",
    timestamp: Optional[str] = None
) -> Optional[Path]:
    """
    Export one category of a comparison to comparison_<category>_<timestamp>.csv

    Args:
        result: Comparison to export from
        category: One of identical, modified, added, deleted, suggestions
        directory: Destination directory
        timestamp: File name suffix, defaults to the current time

    Returns:
        Path of the written file, or None when the category is empty

    Raises:
        ValueError: If category is unknown
    """
    if category not in CATEGORIES:
        raise ValueError(f"Unknown category {category!r}. Expected one of: {', '.join(CATEGORIES)}")
    rows: List[Dict[str, Any]] = result.get_rows(category)
    stamp = timestamp or datetime.now().strftime('%Y%m%d_%H%M%S')
    return export_rows(rows, f"comparison_{category}_{stamp}.csv", directory)
