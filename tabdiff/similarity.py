"""
Similarity scoring between two field values.

Every score is a confidence in [0, 1]: 1.0 for equal values, lower the
further apart the values are.
"""

import math
from typing import Any

import numpy as np


__all__ = [
    "levenshtein_distance",
    "string_similarity",
    "numeric_confidence",
    "calculate_confidence",
    "DEFAULT_CONFIDENCE",
]

# Used when the two values are not both numbers or both strings
DEFAULT_CONFIDENCE = 0.5


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, np.number)) and not isinstance(value, (bool, np.bool_))


def levenshtein_distance(a: str, b: str) -> int:
    """
    Edit distance between two strings.

    Insertions, deletions and substitutions each cost 1; transpositions are
    not special. Keeps only two rows of the DP table, sized by the shorter
    string.
    """
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                current[j - 1] + 1,      # insertion
                previous[j] + 1,         # deletion
                previous[j - 1] + cost   # substitution
            ))
        previous = current
    return previous[-1]


def string_similarity(a: str, b: str) -> float:
    """Normalized Levenshtein similarity; 1.0 when both strings are empty"""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(a, b)) / longest


def numeric_confidence(old: float, new: float) -> float:
    """
    Relative-difference confidence between two numbers.

    1 - |old - new| / |mean|, floored at 0. A zero sum (or a non-finite
    value) leaves no usable mean, so the result is 1.0 for equal values and
    0.0 otherwise.
    """
    try:
        old = float(old)
        new = float(new)
    except OverflowError:
        return 1.0 if old == new else 0.0
    if not (math.isfinite(old) and math.isfinite(new)) or old + new == 0:
        return 1.0 if old == new else 0.0
    mean = abs(old / 2 + new / 2)
    return max(0.0, 1.0 - abs(old - new) / mean)


def calculate_confidence(old_value: Any, new_value: Any) -> float:
    """
    Confidence that new_value is a sensible replacement for old_value.

    Args:
        old_value: Value in the first dataset
        new_value: Value in the second dataset

    Returns:
        numeric_confidence for two numbers, string_similarity for two
        strings, DEFAULT_CONFIDENCE for anything else
    """
    if _is_number(old_value) and _is_number(new_value):
        return numeric_confidence(old_value, new_value)
    if isinstance(old_value, str) and isinstance(new_value, str):
        return string_similarity(old_value, new_value)
    return DEFAULT_CONFIDENCE
