"""MetadataValidator - hierarchy membership rules and change diffing

Validation failures are returned as data (a list of FieldError). The
lifecycle service decides whether a non-empty list aborts the operation.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from .models import (
    ASSIGNMENT_FIELDS,
    FIELD_LABELS,
    METADATA_FIELDS,
    RELATIONSHIP_FIELDS,
    FieldChange,
    FieldError,
)
from .port import MetadataLookupPort


logger = logging.getLogger(__name__)

LOSS_NOT_IN_POLICY = "The selected loss does not belong to the selected policy."
CLAIMANT_NOT_IN_LOSS = "The selected claimant does not belong to the selected loss."

_ENTITY_NAMES = {
    "policy_id": "policy",
    "loss_id": "loss",
    "claimant_id": "claimant",
    "producer_id": "producer",
    "assigned_users": "user",
    "assigned_groups": "user group",
}


def _current_assignees(document: Any, field: str) -> List[int]:
    members = document.users if field == "assigned_users" else document.user_groups
    return [member.id for member in members]


class MetadataValidator:
    """Checks proposed metadata against the Policy → Loss → Claimant hierarchy.

    Rules are evaluated only when both sides of a pair are proposed
    together; a partial update that touches one side only is valid here.
    """

    def __init__(self, lookup: MetadataLookupPort):
        self.lookup = lookup

    def validate_relationships(self, proposed: Mapping[str, Any]) -> List[FieldError]:
        """Validate parent/child membership of the proposed fields.

        Args:
            proposed: Normalized proposed fields

        Returns:
            List of FieldError, empty if valid
        """
        errors: List[FieldError] = []

        policy_id = proposed.get("policy_id")
        loss_id = proposed.get("loss_id")
        claimant_id = proposed.get("claimant_id")

        if policy_id and loss_id and not self.lookup.policy_has_loss(policy_id, loss_id):
            errors.append(FieldError("loss_id", LOSS_NOT_IN_POLICY))

        if loss_id and claimant_id and not self.lookup.loss_has_claimant(loss_id, claimant_id):
            errors.append(FieldError("claimant_id", CLAIMANT_NOT_IN_LOSS))

        if errors:
            logger.debug(f"Relationship validation failed: {[e.field for e in errors]}")

        return errors

    def find_missing_references(self, proposed: Mapping[str, Any]) -> List[FieldError]:
        """Report proposed ids that reference entities which do not exist."""
        errors: List[FieldError] = []

        for field in RELATIONSHIP_FIELDS:
            entity_id = proposed.get(field)
            if entity_id and self.lookup.missing_ids(field, [entity_id]):
                errors.append(FieldError(field, f"The selected {_ENTITY_NAMES[field]} does not exist."))

        for field in ASSIGNMENT_FIELDS:
            ids = proposed.get(field) or []
            missing = self.lookup.missing_ids(field, ids) if ids else set()
            if missing:
                listed = ", ".join(str(i) for i in sorted(missing))
                errors.append(FieldError(field, f"Unknown {_ENTITY_NAMES[field]} ids: {listed}"))

        return errors

    def diff_changes(self, document: Any, proposed: Mapping[str, Any]) -> List[FieldChange]:
        """Compute the changes a proposed update would make.

        Compares against the persisted values on document and resolves ids
        to display strings now, so the audit description stays accurate
        even if a referenced entity is later removed.

        Args:
            document: Current document (policy_id, loss_id, claimant_id,
                producer_id, description, users, user_groups)
            proposed: Normalized proposed fields

        Returns:
            FieldChange list in label order, only for fields that change
        """
        changes: List[FieldChange] = []

        for field in METADATA_FIELDS:
            if field not in proposed:
                continue
            new = proposed[field]

            if field in RELATIONSHIP_FIELDS:
                old = getattr(document, field)
                if old == new:
                    continue
                old_parent, new_parent = self._sequence_parents(document, proposed, field)
                changes.append(FieldChange(
                    field=field,
                    label=FIELD_LABELS[field],
                    old_value=self._display(field, old, old_parent),
                    new_value=self._display(field, new, new_parent),
                ))

            elif field in ASSIGNMENT_FIELDS:
                old_ids = _current_assignees(document, field)
                if set(old_ids) == set(new):
                    continue
                changes.append(FieldChange(
                    field=field,
                    label=FIELD_LABELS[field],
                    old_value=", ".join(self.lookup.assignee_names(field, old_ids)) or None,
                    new_value=", ".join(self.lookup.assignee_names(field, new)) or None,
                ))

            else:
                old = document.description
                if (old or None) == (new or None):
                    continue
                changes.append(FieldChange(
                    field=field,
                    label=FIELD_LABELS[field],
                    old_value=old,
                    new_value=new,
                ))

        return changes

    def _display(self, field: str, entity_id: Optional[int], parent_id: Optional[int]) -> Optional[str]:
        if entity_id is None:
            return None
        return self.lookup.display_value(field, entity_id, parent_id)

    @staticmethod
    def _sequence_parents(document: Any, proposed: Mapping[str, Any], field: str) -> tuple:
        """Parents that old and new values are sequenced against."""
        parent_field = {"loss_id": "policy_id", "claimant_id": "loss_id"}.get(field)
        if parent_field is None:
            return None, None
        old_parent = getattr(document, parent_field)
        new_parent = proposed[parent_field] if parent_field in proposed else old_parent
        return old_parent, new_parent


def split_errors(errors: List[FieldError]) -> Dict[str, str]:
    """Collapse a FieldError list into a field → message mapping."""
    return {error.field: error.message for error in errors}
