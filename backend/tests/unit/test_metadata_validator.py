"""Unit tests for MetadataValidator against an in-memory lookup"""

from types import SimpleNamespace
from typing import Iterable, List, Optional, Set

import pytest

from insuredocs.domain.metadata import (
    CLAIMANT_NOT_IN_LOSS,
    LOSS_NOT_IN_POLICY,
    FieldError,
    MetadataLookupPort,
    MetadataValidator,
    normalize_proposed_fields,
    split_errors,
)


class InMemoryLookup(MetadataLookupPort):
    """Hierarchy lookups over plain dicts.

    policy_losses / loss_claimants map a parent id to its ordered child ids;
    the display sequence is the child's 1-based position under that parent.
    """

    def __init__(self):
        self.policies = {1: "PLC10001", 2: "PLC10002"}
        self.losses = {10: "Water Damage", 11: "Kitchen Fire"}
        self.claimants = {20: "Jane Doe", 21: "Acme Plumbing LLC"}
        self.producers = {30: "AG-001 - Acme Brokers"}
        self.users = {100: "alice", 101: "bob"}
        self.groups = {200: "Claims", 201: "Underwriting"}
        self.policy_losses = {1: [10, 11], 2: [11]}
        self.loss_claimants = {10: [20, 21]}

    def policy_has_loss(self, policy_id: int, loss_id: int) -> bool:
        return loss_id in self.policy_losses.get(policy_id, [])

    def loss_has_claimant(self, loss_id: int, claimant_id: int) -> bool:
        return claimant_id in self.loss_claimants.get(loss_id, [])

    def _table(self, field: str) -> dict:
        return {
            "policy_id": self.policies,
            "loss_id": self.losses,
            "claimant_id": self.claimants,
            "producer_id": self.producers,
            "assigned_users": self.users,
            "assigned_groups": self.groups,
        }[field]

    def missing_ids(self, field: str, ids: Iterable[int]) -> Set[int]:
        return set(ids) - set(self._table(field))

    def display_value(self, field: str, entity_id: int, parent_id: Optional[int] = None) -> Optional[str]:
        name = self._table(field).get(entity_id)
        if name is None:
            return None
        if field == "loss_id":
            children = self.policy_losses.get(parent_id, [])
            sequence = children.index(entity_id) + 1 if entity_id in children else 1
            return f"{sequence} - {name}"
        if field == "claimant_id":
            children = self.loss_claimants.get(parent_id, [])
            sequence = children.index(entity_id) + 1 if entity_id in children else 1
            return f"{sequence} - {name}"
        return name

    def assignee_names(self, field: str, ids: Iterable[int]) -> List[str]:
        table = self._table(field)
        return [table[i] for i in ids if i in table]


def make_document(**overrides):
    values = dict(
        policy_id=1,
        loss_id=10,
        claimant_id=20,
        producer_id=None,
        description="First notice of loss",
        users=[],
        user_groups=[],
    )
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def validator():
    return MetadataValidator(InMemoryLookup())


class TestValidateRelationships:
    """Hierarchy membership rules"""

    def test_valid_full_hierarchy(self, validator):
        assert validator.validate_relationships({"policy_id": 1, "loss_id": 10, "claimant_id": 20}) == []

    def test_loss_not_in_policy(self, validator):
        errors = validator.validate_relationships({"policy_id": 2, "loss_id": 10})

        assert errors == [FieldError("loss_id", LOSS_NOT_IN_POLICY)]

    def test_claimant_not_in_loss(self, validator):
        errors = validator.validate_relationships({"loss_id": 11, "claimant_id": 20})

        assert errors == [FieldError("claimant_id", CLAIMANT_NOT_IN_LOSS)]

    def test_rules_evaluated_independently(self, validator):
        errors = validator.validate_relationships({"policy_id": 2, "loss_id": 10, "claimant_id": 99})

        assert split_errors(errors) == {
            "loss_id": LOSS_NOT_IN_POLICY,
            "claimant_id": CLAIMANT_NOT_IN_LOSS,
        }

    def test_policy_only_is_not_checked(self, validator):
        """Changing the policy alone never fails here (partial update)"""
        assert validator.validate_relationships({"policy_id": 2}) == []

    def test_claimant_without_loss_is_not_checked(self, validator):
        """No direct Claimant/Policy rule: it is transitive through Loss"""
        assert validator.validate_relationships({"policy_id": 2, "claimant_id": 21}) == []

    def test_cleared_side_skips_rule(self, validator):
        assert validator.validate_relationships({"policy_id": 2, "loss_id": None}) == []


class TestFindMissingReferences:

    def test_all_present(self, validator):
        proposed = {"policy_id": 1, "producer_id": 30, "assigned_users": [100], "assigned_groups": [200]}

        assert validator.find_missing_references(proposed) == []

    def test_unknown_relationship_id(self, validator):
        errors = validator.find_missing_references({"policy_id": 999})

        assert errors == [FieldError("policy_id", "The selected policy does not exist.")]

    def test_unknown_assignees_listed_sorted(self, validator):
        errors = validator.find_missing_references({"assigned_users": [100, 999, 555]})

        assert errors == [FieldError("assigned_users", "Unknown user ids: 555, 999")]

    def test_cleared_fields_are_not_references(self, validator):
        assert validator.find_missing_references({"policy_id": None, "assigned_groups": []}) == []


class TestDiffChanges:
    """Change detection and display resolution"""

    def test_identical_values_produce_no_changes(self, validator):
        document = make_document()

        changes = validator.diff_changes(document, {"policy_id": 1, "loss_id": 10, "description": "First notice of loss"})

        assert changes == []

    def test_absent_fields_are_ignored(self, validator):
        assert validator.diff_changes(make_document(), {}) == []

    def test_relationship_change_resolves_display_values(self, validator):
        changes = validator.diff_changes(make_document(), {"policy_id": 2})

        assert len(changes) == 1
        assert changes[0].label == "Policy Number"
        assert changes[0].old_value == "PLC10001"
        assert changes[0].new_value == "PLC10002"

    def test_loss_sequence_relative_to_each_side_policy(self, validator):
        """Old loss sequenced under the old policy, new loss under the new one"""
        changes = validator.diff_changes(make_document(), {"policy_id": 2, "loss_id": 11})

        by_field = {change.field: change for change in changes}
        assert by_field["loss_id"].old_value == "1 - Water Damage"
        assert by_field["loss_id"].new_value == "1 - Kitchen Fire"

    def test_loss_sequence_uses_current_policy_when_not_proposed(self, validator):
        changes = validator.diff_changes(make_document(), {"loss_id": 11})

        assert changes[0].new_value == "2 - Kitchen Fire"

    def test_cleared_field_has_no_new_value(self, validator):
        changes = validator.diff_changes(make_document(), {"claimant_id": None})

        assert changes[0].label == "Claimant"
        assert changes[0].old_value == "1 - Jane Doe"
        assert changes[0].new_value is None

    def test_changes_follow_label_order(self, validator):
        proposed = {
            "assigned_groups": [200],
            "description": "Updated",
            "producer_id": 30,
            "policy_id": 2,
        }

        labels = [change.label for change in validator.diff_changes(make_document(), proposed)]

        assert labels == ["Policy Number", "Producer Number", "Document Description", "Assigned Groups"]

    def test_empty_and_missing_description_are_equal(self, validator):
        document = make_document(description=None)

        assert validator.diff_changes(document, {"description": ""}) == []

    def test_assignment_compared_as_set(self, validator):
        document = make_document(users=[SimpleNamespace(id=100), SimpleNamespace(id=101)])

        assert validator.diff_changes(document, {"assigned_users": [101, 100]}) == []

    def test_assignment_change_lists_names(self, validator):
        document = make_document(users=[SimpleNamespace(id=100)])

        changes = validator.diff_changes(document, {"assigned_users": [100, 101]})

        assert changes[0].label == "Assigned Users"
        assert changes[0].old_value == "alice"
        assert changes[0].new_value == "alice, bob"

    def test_unassigning_everyone(self, validator):
        document = make_document(user_groups=[SimpleNamespace(id=200)])

        changes = validator.diff_changes(document, {"assigned_groups": []})

        assert changes[0].old_value == "Claims"
        assert changes[0].new_value is None


class TestNormalizeProposedFields:

    def test_absent_keys_stay_absent(self):
        assert normalize_proposed_fields({"description": "x"}) == {"description": "x"}

    def test_empty_ids_mean_clear(self):
        normalized = normalize_proposed_fields({"policy_id": "", "loss_id": 0, "claimant_id": "0", "producer_id": None})

        assert normalized == {"policy_id": None, "loss_id": None, "claimant_id": None, "producer_id": None}

    def test_string_ids_are_converted(self):
        assert normalize_proposed_fields({"policy_id": "7"}) == {"policy_id": 7}

    def test_assignment_lists_deduplicated_in_order(self):
        normalized = normalize_proposed_fields({"assigned_users": [3, "1", 3, 2, None]})

        assert normalized == {"assigned_users": [3, 1, 2]}

    def test_unknown_keys_are_dropped(self):
        assert normalize_proposed_fields({"status": "PROCESSED", "name": "x"}) == {}

    def test_garbage_id_raises(self):
        with pytest.raises(ValueError):
            normalize_proposed_fields({"loss_id": "abc"})
