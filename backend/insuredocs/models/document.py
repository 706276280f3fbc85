"""Document SQLAlchemy model

Document is the subject of the lifecycle: it carries the metadata links into
the Policy → Loss → Claimant hierarchy, the processing status and the
soft-delete marker used by trash/restore.
"""

from sqlalchemy import (
    Column, Integer, Text, Date, DateTime, ForeignKey, Table, Index,
    Enum as SQLEnum, CheckConstraint,
)
from sqlalchemy.orm import relationship

from .base import Base, utc_now
from ..domain.documents.document_status import DocumentStatus


map_user_document = Table(
    "map_user_document",
    Base.metadata,
    Column("document_id", Integer, ForeignKey("document.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("user.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utc_now),
)

map_user_group_document = Table(
    "map_user_group_document",
    Base.metadata,
    Column("document_id", Integer, ForeignKey("document.id", ondelete="CASCADE"), primary_key=True),
    Column("user_group_id", Integer, ForeignKey("user_group.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utc_now),
)


class Document(Base):
    """Document model.

    Status is the single source of truth for the lifecycle; is_processed and
    is_trashed are derived from it. A TRASHED document always has deleted_at
    set, and the version column is the optimistic concurrency token bumped
    by every UPDATE of the row.
    """
    __tablename__ = "document"
    __table_args__ = (
        Index("ix_document_status", "status"),
        Index("ix_document_policy_id", "policy_id"),
        Index("ix_document_loss_id", "loss_id"),
        CheckConstraint(
            "status <> 'TRASHED' OR deleted_at IS NOT NULL",
            name="ck_document_trashed_has_deleted_at",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    date_received = Column(Date, nullable=True)
    policy_id = Column(Integer, ForeignKey("policy.id", ondelete="SET NULL"), nullable=True)
    loss_id = Column(Integer, ForeignKey("loss.id", ondelete="SET NULL"), nullable=True)
    claimant_id = Column(Integer, ForeignKey("claimant.id", ondelete="SET NULL"), nullable=True)
    producer_id = Column(Integer, ForeignKey("producer.id", ondelete="SET NULL"), nullable=True)
    status = Column(
        SQLEnum(DocumentStatus, name="documentstatus", native_enum=False, length=20),
        nullable=False,
        default=DocumentStatus.UNPROCESSED,
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)
    created_by = Column(Integer, ForeignKey("user.id", ondelete="RESTRICT"), nullable=True)
    updated_by = Column(Integer, ForeignKey("user.id", ondelete="RESTRICT"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    policy = relationship("Policy")
    loss = relationship("Loss")
    claimant = relationship("Claimant")
    producer = relationship("Producer")
    users = relationship("User", secondary=map_user_document, order_by="User.id")
    user_groups = relationship("UserGroup", secondary=map_user_group_document, order_by="UserGroup.id")
    action_links = relationship("MapDocumentAction", back_populates="document", passive_deletes="all")

    @property
    def is_processed(self) -> bool:
        return self.status == DocumentStatus.PROCESSED

    @property
    def is_trashed(self) -> bool:
        return self.status == DocumentStatus.TRASHED
