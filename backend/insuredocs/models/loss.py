"""Loss and Policy↔Loss association SQLAlchemy models"""

from sqlalchemy import Column, Integer, Text, Date, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from .base import Base, utc_now


class Loss(Base):
    """Loss event reported against one or more policies."""
    __tablename__ = "loss"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    date = Column(Date, nullable=True)
    description = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="ACTIVE", server_default="ACTIVE")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    # Ordered so the first association is the oldest one
    policy_losses = relationship(
        "MapPolicyLoss",
        back_populates="loss",
        order_by=lambda: [MapPolicyLoss.created_at, MapPolicyLoss.id],
    )
    loss_claimants = relationship("MapLossClaimant", back_populates="loss")

    @property
    def formatted_date(self) -> str:
        """Loss date as MM/DD/YYYY, or an empty string."""
        return self.date.strftime("%m/%d/%Y") if self.date else ""


class MapPolicyLoss(Base):
    """Association row that makes a loss valid for a policy.

    created_at drives the loss sequence number shown to users; the
    sequence is derived on read and never stored.
    """
    __tablename__ = "map_policy_loss"
    __table_args__ = (
        UniqueConstraint("policy_id", "loss_id", name="uq_map_policy_loss"),
        Index("ix_map_policy_loss_policy_created", "policy_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    policy_id = Column(Integer, ForeignKey("policy.id", ondelete="CASCADE"), nullable=False)
    loss_id = Column(Integer, ForeignKey("loss.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    policy = relationship("Policy", back_populates="policy_losses")
    loss = relationship("Loss", back_populates="policy_losses")
