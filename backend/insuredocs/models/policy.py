"""Policy and PolicyPrefix SQLAlchemy models"""

from sqlalchemy import Column, Integer, Text, Date, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from .base import Base, utc_now


class PolicyPrefix(Base):
    """Prefix prepended to policy numbers for display (e.g. "PLC")."""
    __tablename__ = "policy_prefix"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("name", name="uq_policy_prefix_name"),
    )


class Policy(Base):
    """Insurance policy, the root of the Policy → Loss → Claimant hierarchy."""
    __tablename__ = "policy"
    __table_args__ = (
        Index("ix_policy_number", "number"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    policy_prefix_id = Column(Integer, ForeignKey("policy_prefix.id", ondelete="RESTRICT"), nullable=True)
    number = Column(Text, nullable=False)
    effective_date = Column(Date, nullable=True)
    expiration_date = Column(Date, nullable=True)
    status = Column(Text, nullable=False, default="ACTIVE", server_default="ACTIVE")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    # Relationships
    policy_prefix = relationship("PolicyPrefix")
    policy_losses = relationship("MapPolicyLoss", back_populates="policy")

    @property
    def formatted_number(self) -> str:
        """Policy number with its prefix, e.g. "PLC12345"."""
        if self.policy_prefix is not None:
            return f"{self.policy_prefix.name}{self.number}"
        return self.number
