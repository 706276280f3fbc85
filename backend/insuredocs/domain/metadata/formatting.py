"""Audit description formatting for metadata edits.

Pure string building over FieldChange triples; no lookups happen here.
"""

from typing import Iterable, Optional

from .models import FieldChange

EMPTY_VALUE = "(empty)"
DEFAULT_EDIT_DESCRIPTION = "Document updated"
CLAUSE_SEPARATOR = ", "


def _display(value: Optional[str]) -> str:
    if value is None or value == "":
        return EMPTY_VALUE
    return value


def format_change(change: FieldChange) -> str:
    """Format one change as "<Label> changed from '<old>' to '<new>'".

    Example:
        >>> format_change(FieldChange("description", "Document Description", None, "Invoice"))
        "Document Description changed from '(empty)' to 'Invoice'"
    """
    return f"{change.label} changed from '{_display(change.old_value)}' to '{_display(change.new_value)}'"


def format_changes_description(changes: Iterable[FieldChange]) -> str:
    """Join formatted changes into a single audit description."""
    clauses = [format_change(change) for change in changes]
    if not clauses:
        return DEFAULT_EDIT_DESCRIPTION
    return CLAUSE_SEPARATOR.join(clauses)
