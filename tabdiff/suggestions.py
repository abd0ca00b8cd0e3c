"""
Merge suggestion generation.

Turns the modified, added and deleted rows of a comparison into merge
suggestions ranked by confidence. Suggestions are proposals only; nothing
here changes a dataset.
"""

import logging
from typing import Any, List

from .models import MergeSuggestion, Row, SuggestionType
from .similarity import calculate_confidence


__all__ = ["generate_suggestions", "ADD_CONFIDENCE", "DELETE_CONFIDENCE"]

logger = logging.getLogger(__name__)

ADD_CONFIDENCE = 0.8
DELETE_CONFIDENCE = 0.7

# Number of leading values shown in add/delete descriptions
_PREVIEW_VALUES = 3


def _preview(row: Row) -> str:
    return ', '.join(str(value) for value in list(row.values())[:_PREVIEW_VALUES])


def generate_suggestions(result: Any) -> List[MergeSuggestion]:
    """
    Build ranked merge suggestions for a comparison.

    Args:
        result: A ComparisonResult, or any object with ``modified``,
            ``added`` and ``deleted`` sequences shaped like one

    Returns:
        Suggestions sorted by descending confidence. The sort is stable, so
        equal confidences keep the order update, add, delete and the row
        order within each group.
    """
    suggestions: List[MergeSuggestion] = []

    for mod in result.modified:
        for field_name in mod.differences:
            old_value = mod.original.get(field_name)
            new_value = mod.current.get(field_name)
            suggestions.append(MergeSuggestion(
                type=SuggestionType.UPDATE,
                description=f'Update {field_name} from "{old_value}" to "{new_value}"',
                confidence=calculate_confidence(old_value, new_value),
                row_index=mod.row_index,
                field=field_name,
                original_value=old_value,
                suggested_value=new_value
            ))

    for row in result.added:
        suggestions.append(MergeSuggestion(
            type=SuggestionType.ADD,
            description=f"Add new row: {_preview(row)}...",
            confidence=ADD_CONFIDENCE,
            suggested_value=row
        ))

    for row in result.deleted:
        suggestions.append(MergeSuggestion(
            type=SuggestionType.DELETE,
            description=f"Remove row: {_preview(row)}...",
            confidence=DELETE_CONFIDENCE,
            original_value=row
        ))

    logger.debug("Generated %d merge suggestion(s)", len(suggestions))
    return sorted(suggestions, key=lambda s: s.confidence, reverse=True)
