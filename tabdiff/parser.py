"""
CSV parsing for tabdiff

Turns raw delimited text into an immutable Dataset:
- size, line, column and value-length limits (FormatError when exceeded)
- sanitizing of control characters and script-like markup
- best-effort numeric coercion of each field

Fields are split on every comma; quoted fields containing commas are not
supported.
"""

import logging
import math
import re
import uuid
from datetime import datetime, timezone
from typing import Any, List

import numpy as np
import pandas as pd

from .errors import FormatError
from .models import Dataset, Row, Scalar, Severity, ValidationIssue


__all__ = [
    "CSVParser",
    "parse_csv",
    "parse_dataframe",
    "sanitize_value",
    "coerce_value",
    "MAX_CONTENT_SIZE",
    "MAX_LINES",
    "MAX_COLUMNS",
    "MAX_VALUE_LENGTH",
    "MAX_NAME_LENGTH",
]

logger = logging.getLogger(__name__)

MAX_CONTENT_SIZE = 10 * 1024 * 1024
MAX_LINES = 50000
MAX_COLUMNS = 100
MAX_VALUE_LENGTH = 1000
MAX_NAME_LENGTH = 255

_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')
_SCRIPT_TAGS = re.compile(r'<script[^>]*>.*?</script>', re.IGNORECASE)
_JS_PROTOCOL = re.compile(r'javascript:', re.IGNORECASE)
_NUMBER = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?', re.ASCII)
_INTEGER = re.compile(r'[+-]?\d+', re.ASCII)


def sanitize_value(value: str) -> str:
    """Strip control characters, script tags and javascript: prefixes"""
    if not value:
        return ''
    value = _CONTROL_CHARS.sub('', value)
    value = _SCRIPT_TAGS.sub('', value)
    value = _JS_PROTOCOL.sub('', value)
    return value.strip()


def coerce_value(text: str) -> Scalar:
    """Return text as an int or float if the whole token is a number, else unchanged"""
    token = text.strip()
    if _INTEGER.fullmatch(token):
        number = int(token)
        try:
            float(number)
        except OverflowError:
            return text
        return number
    if _NUMBER.fullmatch(token):
        number = float(token)
        if math.isfinite(number):
            return number
    return text


def _clean_field(raw: str) -> str:
    return sanitize_value(raw.strip().replace('"', ''))


class CSVParser:
    """
    Parser for CSV text with configurable limits.

    Example:
        >>> parser = CSVParser(max_lines=1000)
        >>> dataset = parser.parse("id,name\\n1,Ana", "people.csv")
        >>> dataset.rows
        ({'id': 1, 'name': 'Ana'},)
    """

    def __init__(
        self,
        max_content_size: int = MAX_CONTENT_SIZE,
        max_lines: int = MAX_LINES,
        max_columns: int = MAX_COLUMNS,
        max_value_length: int = MAX_VALUE_LENGTH,
        max_name_length: int = MAX_NAME_LENGTH
    ):
        """
        Initialize CSVParser

        Args:
            max_content_size: Maximum content length in characters
            max_lines: Maximum number of lines, header line included
            max_columns: Maximum number of header columns
            max_value_length: Maximum length of a single field value
            max_name_length: Maximum length of the dataset name
        """
        self.max_content_size = max_content_size
        self.max_lines = max_lines
        self.max_columns = max_columns
        self.max_value_length = max_value_length
        self.max_name_length = max_name_length

    def parse(self, content: str, name: str) -> Dataset:
        """
        Parse CSV text into a Dataset

        Args:
            content: Raw CSV text
            name: Display name of the dataset, usually the file name

        Returns:
            Dataset with typed rows. Rows whose field count differs from the
            header count are dropped and listed in Dataset.issues.

        Raises:
            FormatError: If the content or name violates a limit, the content
                is empty, or a header is empty or duplicated
        """
        if len(content) > self.max_content_size:
            raise FormatError(
                f"File too large. Maximum size is {self.max_content_size // (1024 * 1024)}MB"
            )
        self._validate_name(name)

        stripped = content.strip()
        if not stripped:
            raise FormatError("CSV content is empty")

        lines = stripped.split('\n')
        if len(lines) > self.max_lines:
            raise FormatError(f"Too many lines. Maximum is {self.max_lines:,}")

        headers = self._parse_headers(lines[0])

        rows: List[Row] = []
        issues: List[ValidationIssue] = []
        for line_number in range(1, len(lines)):
            values = [_clean_field(v) for v in lines[line_number].split(',')]
            if len(values) != len(headers):
                logger.debug("%s: dropping line %d with %d fields (expected %d)",
                             name, line_number + 1, len(values), len(headers))
                issues.append(ValidationIssue(
                    row=line_number,
                    column=None,
                    value=lines[line_number],
                    message=f"Row skipped: expected {len(headers)} fields, found {len(values)}",
                    severity=Severity.INFO
                ))
                continue

            row: Row = {}
            for header, value in zip(headers, values):
                if len(value) > self.max_value_length:
                    raise FormatError(f"Value too long on line {line_number + 1}, column {header}")
                row[header] = coerce_value(value)
            rows.append(row)

        dataset = Dataset(
            id=uuid.uuid4().hex,
            name=name,
            headers=tuple(headers),
            rows=tuple(rows),
            uploaded_at=datetime.now(timezone.utc),
            issues=tuple(issues)
        )
        logger.info("Parsed %s: %d rows, %d columns (%d rows skipped)",
                    name, len(rows), len(headers), len(issues))
        return dataset

    def parse_dataframe(self, df: pd.DataFrame, name: str) -> Dataset:
        """
        Build a Dataset from an existing DataFrame.

        Column names become headers; string cells are sanitized and coerced
        like parsed text, numpy scalars become Python scalars and missing
        cells become empty strings.
        """
        if not isinstance(df, pd.DataFrame):
            raise TypeError(f"Expected a pandas DataFrame, got {type(df).__name__}")
        self._validate_name(name)
        if len(df) + 1 > self.max_lines:
            raise FormatError(f"Too many lines. Maximum is {self.max_lines:,}")

        headers = self._check_headers([sanitize_value(str(col)) for col in df.columns])

        rows: List[Row] = []
        for position, record in enumerate(df.itertuples(index=False, name=None)):
            row: Row = {}
            for header, cell in zip(headers, record):
                value = self._convert_cell(cell)
                if isinstance(value, str) and len(value) > self.max_value_length:
                    raise FormatError(f"Value too long on line {position + 2}, column {header}")
                row[header] = value
            rows.append(row)

        logger.info("Loaded %s from DataFrame: %d rows, %d columns", name, len(rows), len(headers))
        return Dataset(
            id=uuid.uuid4().hex,
            name=name,
            headers=tuple(headers),
            rows=tuple(rows),
            uploaded_at=datetime.now(timezone.utc)
        )

    def _validate_name(self, name: str) -> None:
        if not name or len(name) > self.max_name_length:
            raise FormatError("Invalid file name")

    def _parse_headers(self, line: str) -> List[str]:
        return self._check_headers([_clean_field(h) for h in line.split(',')])

    def _check_headers(self, headers: List[str]) -> List[str]:
        if any(len(h) == 0 for h in headers):
            raise FormatError("Headers cannot be empty")
        if len(headers) > self.max_columns:
            raise FormatError(f"Too many columns. Maximum is {self.max_columns}")
        seen = set()
        for header in headers:
            if header in seen:
                raise FormatError(f"Duplicate header: {header}")
            seen.add(header)
        return headers

    @staticmethod
    def _convert_cell(cell: Any) -> Scalar:
        if isinstance(cell, np.generic):
            cell = cell.item()
        if cell is None or (np.ndim(cell) == 0 and pd.isna(cell)):
            return ''
        if isinstance(cell, bool):
            return str(cell)
        if isinstance(cell, (int, float)):
            return cell
        return coerce_value(sanitize_value(str(cell)))


def parse_csv(content: str, name: str) -> Dataset:
    """
    Convenience function to parse CSV text with the default limits.

    Example:
        >>> dataset = parse_csv("id,age\\n1,30\\n2,25", "a.csv")
        >>> dataset.headers
        ('id', 'age')
    """
    return CSVParser().parse(content, name)


def parse_dataframe(df: pd.DataFrame, name: str) -> Dataset:
    """Convenience function to build a Dataset from a DataFrame with the default limits"""
    return CSVParser().parse_dataframe(df, name)
