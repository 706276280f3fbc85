"""SQLAlchemy implementation of MetadataLookupPort"""

from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from ..domain.metadata.port import MetadataLookupPort
from ..models.policy import Policy
from ..models.producer import Producer
from ..models.loss import Loss, MapPolicyLoss
from ..models.claimant import Claimant, MapLossClaimant
from ..models.user import User, UserGroup
from .display import loss_display_name, claimant_display_name


_FIELD_MODELS: Dict[str, type] = {
    "policy_id": Policy,
    "loss_id": Loss,
    "claimant_id": Claimant,
    "producer_id": Producer,
    "assigned_users": User,
    "assigned_groups": UserGroup,
}


class SqlMetadataLookup(MetadataLookupPort):
    """Hierarchy lookups against the relational store.

    Reads run on the caller's session so they see the same transaction as
    the lifecycle operation they serve.
    """

    def __init__(self, db: Session):
        self.db = db

    def policy_has_loss(self, policy_id: int, loss_id: int) -> bool:
        return self.db.query(MapPolicyLoss.id).filter(
            MapPolicyLoss.policy_id == policy_id,
            MapPolicyLoss.loss_id == loss_id,
        ).first() is not None

    def loss_has_claimant(self, loss_id: int, claimant_id: int) -> bool:
        return self.db.query(MapLossClaimant.id).filter(
            MapLossClaimant.loss_id == loss_id,
            MapLossClaimant.claimant_id == claimant_id,
        ).first() is not None

    def missing_ids(self, field: str, ids: Iterable[int]) -> Set[int]:
        wanted = set(ids)
        if not wanted:
            return set()
        model = _FIELD_MODELS[field]
        found = {row[0] for row in self.db.query(model.id).filter(model.id.in_(wanted)).all()}
        return wanted - found

    def display_value(self, field: str, entity_id: int, parent_id: Optional[int] = None) -> Optional[str]:
        entity = self.db.get(_FIELD_MODELS[field], entity_id)
        if entity is None:
            return None
        if field == "policy_id":
            return entity.formatted_number
        if field == "loss_id":
            return loss_display_name(self.db, entity, parent_id)
        if field == "claimant_id":
            return claimant_display_name(self.db, entity, parent_id)
        return entity.display_name

    def assignee_names(self, field: str, ids: Iterable[int]) -> List[str]:
        ids = list(ids)
        if not ids:
            return []
        model = _FIELD_MODELS[field]
        rows = {row.id: row for row in self.db.query(model).filter(model.id.in_(ids)).all()}
        if model is User:
            return [rows[i].username for i in ids if i in rows]
        return [rows[i].name for i in ids if i in rows]
