"""Human display strings for hierarchy entities.

Loss and claimant sequence numbers are the position of an association row
among all rows for the same parent, ordered by creation time (ties broken
by id). They are derived on every read and never stored.
"""

from typing import Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from ..models.loss import Loss, MapPolicyLoss
from ..models.claimant import Claimant, MapLossClaimant

DEFAULT_SEQUENCE = 1


def association_sequence(db: Session, model, parent_column: str, association) -> int:
    """Position of association among the rows sharing its parent (1-based)."""
    parent_attr = getattr(model, parent_column)
    parent_id = getattr(association, parent_column)
    return db.query(func.count(model.id)).filter(
        parent_attr == parent_id,
        or_(
            model.created_at < association.created_at,
            and_(model.created_at == association.created_at, model.id <= association.id),
        ),
    ).scalar() or DEFAULT_SEQUENCE


def loss_sequence(db: Session, loss: Loss, policy_id: Optional[int] = None) -> int:
    """Sequence number of a loss within a policy.

    Uses the association with policy_id when given and present, otherwise
    the loss's oldest association. Defaults to 1 when none exists.
    """
    association = None
    if policy_id is not None:
        association = db.query(MapPolicyLoss).filter(
            MapPolicyLoss.policy_id == policy_id,
            MapPolicyLoss.loss_id == loss.id,
        ).first()
    if association is None and loss.policy_losses:
        association = loss.policy_losses[0]
    if association is None:
        return DEFAULT_SEQUENCE
    return association_sequence(db, MapPolicyLoss, "policy_id", association)


def claimant_sequence(db: Session, claimant: Claimant, loss_id: Optional[int] = None) -> int:
    """Sequence number of a claimant within a loss (see loss_sequence)."""
    association = None
    if loss_id is not None:
        association = db.query(MapLossClaimant).filter(
            MapLossClaimant.loss_id == loss_id,
            MapLossClaimant.claimant_id == claimant.id,
        ).first()
    if association is None and claimant.loss_claimants:
        association = claimant.loss_claimants[0]
    if association is None:
        return DEFAULT_SEQUENCE
    return association_sequence(db, MapLossClaimant, "loss_id", association)


def loss_display_name(db: Session, loss: Loss, policy_id: Optional[int] = None) -> str:
    """Display string such as '2 - Water Damage (03/14/2024)'."""
    sequence = loss_sequence(db, loss, policy_id)
    return f"{sequence} - {loss.name} ({loss.formatted_date})"


def claimant_display_name(db: Session, claimant: Claimant, loss_id: Optional[int] = None) -> str:
    """Display string such as '1 - Jane Doe'."""
    sequence = claimant_sequence(db, claimant, loss_id)
    return f"{sequence} - {claimant.full_name}"
