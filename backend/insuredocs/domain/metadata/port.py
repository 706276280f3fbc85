"""MetadataLookupPort interface (hexagonal port for hierarchy lookups)"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Set


class MetadataLookupPort(ABC):
    """Port interface for the data the metadata validator needs.

    Keeps the validation rules and diff computation independent of the
    persistence layer. The SQL implementation lives in
    insuredocs.hierarchy.repository.
    """

    @abstractmethod
    def policy_has_loss(self, policy_id: int, loss_id: int) -> bool:
        """Return True if a Policy↔Loss association exists for the pair."""
        pass

    @abstractmethod
    def loss_has_claimant(self, loss_id: int, claimant_id: int) -> bool:
        """Return True if a Loss↔Claimant association exists for the pair."""
        pass

    @abstractmethod
    def missing_ids(self, field: str, ids: Iterable[int]) -> Set[int]:
        """Return the ids referenced by field that do not exist."""
        pass

    @abstractmethod
    def display_value(self, field: str, entity_id: int, parent_id: Optional[int] = None) -> Optional[str]:
        """Human display string for a referenced entity.

        Args:
            field: Relationship field name (policy_id, loss_id, ...)
            entity_id: Id of the referenced entity
            parent_id: Parent the display sequence is relative to (the
                policy for a loss, the loss for a claimant)
        """
        pass

    @abstractmethod
    def assignee_names(self, field: str, ids: Iterable[int]) -> List[str]:
        """Display names for assigned users or groups, in the given order."""
        pass
