"""
Data-quality checks for parsed datasets.

Checks never raise; they return ValidationIssue objects for the caller to
display. Row numbers are 1-based positions in Dataset.rows.
"""

import logging
import re
from typing import Dict, List, Optional

from .models import Dataset, Severity, ValidationIssue, key_string


__all__ = ["validate_dataset", "find_duplicate_keys"]

logger = logging.getLogger(__name__)

_EMAIL = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def find_duplicate_keys(dataset: Dataset, key_column: str) -> List[ValidationIssue]:
    """Report every row whose key value was already used by an earlier row"""
    issues: List[ValidationIssue] = []
    first_seen: Dict[str, int] = {}
    for number, row in enumerate(dataset.rows, start=1):
        value = row.get(key_column)
        key_value = key_string(value)
        if key_value in first_seen:
            issues.append(ValidationIssue(
                row=number,
                column=key_column,
                value=value,
                message=f"Duplicate key (first seen on row {first_seen[key_value]}); "
                        "only the last occurrence is compared",
                severity=Severity.WARNING
            ))
        else:
            first_seen[key_value] = number
    return issues


def validate_dataset(dataset: Dataset, key_column: Optional[str] = None) -> List[ValidationIssue]:
    """
    Check a dataset for empty values, malformed e-mail addresses and,
    when key_column is given, duplicate keys.

    Args:
        dataset: Dataset to check
        key_column: Optional key column to check for duplicates

    Returns:
        List of issues in row order, followed by duplicate-key issues
    """
    issues: List[ValidationIssue] = []
    email_columns = [h for h in dataset.headers if 'email' in h.lower()]

    for number, row in enumerate(dataset.rows, start=1):
        for header in dataset.headers:
            value = row.get(header)
            if value is None or value == '':
                issues.append(ValidationIssue(
                    row=number,
                    column=header,
                    value=value,
                    message="Empty value",
                    severity=Severity.WARNING
                ))
            if header in email_columns and isinstance(value, str) and not _EMAIL.match(value):
                issues.append(ValidationIssue(
                    row=number,
                    column=header,
                    value=value,
                    message="Invalid email format",
                    severity=Severity.ERROR
                ))

    if key_column is not None:
        issues.extend(find_duplicate_keys(dataset, key_column))

    logger.debug("Validated %s: %d issue(s)", dataset.name, len(issues))
    return issues
