"""Producer and Producer↔Policy association SQLAlchemy models"""

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base, utc_now


class Producer(Base):
    """Producer (agent/broker) that writes policies."""
    __tablename__ = "producer"

    id = Column(Integer, primary_key=True, autoincrement=True)
    number = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="ACTIVE", server_default="ACTIVE")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("number", name="uq_producer_number"),
    )

    @property
    def display_name(self) -> str:
        """Human display string, e.g. "AG-001 - Acme Brokers"."""
        return f"{self.number} - {self.name}"


class MapProducerPolicy(Base):
    """Association of a producer to a policy it wrote."""
    __tablename__ = "map_producer_policy"

    id = Column(Integer, primary_key=True, autoincrement=True)
    producer_id = Column(Integer, ForeignKey("producer.id", ondelete="CASCADE"), nullable=False)
    policy_id = Column(Integer, ForeignKey("policy.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("producer_id", "policy_id", name="uq_map_producer_policy"),
    )

    producer = relationship("Producer")
    policy = relationship("Policy")
