"""Claimant and Loss↔Claimant association SQLAlchemy models"""

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from .base import Base, utc_now


class Claimant(Base):
    """Person or organisation claiming against a loss."""
    __tablename__ = "claimant"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(Text, nullable=True)
    last_name = Column(Text, nullable=True)
    organization_name = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="ACTIVE", server_default="ACTIVE")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    loss_claimants = relationship(
        "MapLossClaimant",
        back_populates="claimant",
        order_by=lambda: [MapLossClaimant.created_at, MapLossClaimant.id],
    )

    @property
    def full_name(self) -> str:
        """Organisation name, or first and last name joined."""
        if self.organization_name:
            return self.organization_name
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class MapLossClaimant(Base):
    """Association row that makes a claimant valid for a loss."""
    __tablename__ = "map_loss_claimant"
    __table_args__ = (
        UniqueConstraint("loss_id", "claimant_id", name="uq_map_loss_claimant"),
        Index("ix_map_loss_claimant_loss_created", "loss_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    loss_id = Column(Integer, ForeignKey("loss.id", ondelete="CASCADE"), nullable=False)
    claimant_id = Column(Integer, ForeignKey("claimant.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    loss = relationship("Loss", back_populates="loss_claimants")
    claimant = relationship("Claimant", back_populates="loss_claimants")
