"""Metadata domain module - hierarchy validation and change diffing"""

from .models import (
    ASSIGNMENT_FIELDS,
    FIELD_LABELS,
    METADATA_FIELDS,
    RELATIONSHIP_FIELDS,
    FieldChange,
    FieldError,
    normalize_proposed_fields,
)
from .port import MetadataLookupPort
from .formatting import format_change, format_changes_description, EMPTY_VALUE, DEFAULT_EDIT_DESCRIPTION
from .validator import MetadataValidator, split_errors, LOSS_NOT_IN_POLICY, CLAIMANT_NOT_IN_LOSS

__all__ = [
    "ASSIGNMENT_FIELDS",
    "FIELD_LABELS",
    "METADATA_FIELDS",
    "RELATIONSHIP_FIELDS",
    "FieldChange",
    "FieldError",
    "normalize_proposed_fields",
    "MetadataLookupPort",
    "format_change",
    "format_changes_description",
    "EMPTY_VALUE",
    "DEFAULT_EDIT_DESCRIPTION",
    "MetadataValidator",
    "split_errors",
    "LOSS_NOT_IN_POLICY",
    "CLAIMANT_NOT_IN_LOSS",
]
