"""Metadata domain models: proposed fields, field errors and change triples"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple


# Relationship fields that point into the hierarchy
RELATIONSHIP_FIELDS: Tuple[str, ...] = ("policy_id", "loss_id", "claimant_id", "producer_id")

# Membership fields synced as whole sets
ASSIGNMENT_FIELDS: Tuple[str, ...] = ("assigned_users", "assigned_groups")

METADATA_FIELDS: Tuple[str, ...] = RELATIONSHIP_FIELDS + ("description",) + ASSIGNMENT_FIELDS

# Human labels in the order changes are reported
FIELD_LABELS: Dict[str, str] = {
    "policy_id": "Policy Number",
    "loss_id": "Loss Sequence",
    "claimant_id": "Claimant",
    "producer_id": "Producer Number",
    "description": "Document Description",
    "assigned_users": "Assigned Users",
    "assigned_groups": "Assigned Groups",
}


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation failure."""
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True)
class FieldChange:
    """One changed field, with display values captured at diff time."""
    field: str
    label: str
    old_value: Optional[str]
    new_value: Optional[str]


def _normalize_id(value: Any) -> Optional[int]:
    if value in (None, "", 0, "0"):
        return None
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"Invalid id: {value!r}")
    return int(value)


def _normalize_id_list(values: Any) -> List[int]:
    if not values:
        return []
    seen: List[int] = []
    for value in values:
        normalized = _normalize_id(value)
        if normalized is not None and normalized not in seen:
            seen.append(normalized)
    return seen


def normalize_proposed_fields(proposed: Mapping[str, Any]) -> Dict[str, Any]:
    """Reduce a proposed update to the metadata fields, normalized.

    Keys that are absent stay absent (partial update). A relationship field
    present with an empty value (None, "", 0) means "clear it". Assignment
    lists are de-duplicated with their order preserved.

    Raises:
        ValueError: If an id cannot be interpreted as an integer
    """
    normalized: Dict[str, Any] = {}
    for field in METADATA_FIELDS:
        if field not in proposed:
            continue
        value = proposed[field]
        if field in RELATIONSHIP_FIELDS:
            normalized[field] = _normalize_id(value)
        elif field in ASSIGNMENT_FIELDS:
            normalized[field] = _normalize_id_list(value)
        else:
            normalized[field] = value
    return normalized
