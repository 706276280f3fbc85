"""Action, ActionType and MapDocumentAction SQLAlchemy models

Action rows form the append-only action log. They are entity-agnostic;
MapDocumentAction links an action to the document it describes and is the
join point for document history queries.
"""

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint, Index, event
from sqlalchemy.orm import relationship

from .base import Base, utc_now


class ImmutableRecordError(Exception):
    """Raised when an UPDATE or DELETE is attempted on an audit row."""
    pass


class ActionType(Base):
    """Closed vocabulary of action kinds (view, edit, process, ...)."""
    __tablename__ = "action_type"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("name", name="uq_action_type_name"),
    )


class Action(Base):
    """A single recorded activity.

    Entries are append-only and must never be updated or deleted.
    """
    __tablename__ = "action"
    __table_args__ = (
        Index("ix_action_created_at_id", "created_at", "id"),
        Index("ix_action_action_type_id", "action_type_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    action_type_id = Column(Integer, ForeignKey("action_type.id", ondelete="RESTRICT"), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="ACTIVE", server_default="ACTIVE")
    created_by = Column(Integer, ForeignKey("user.id", ondelete="RESTRICT"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    # Relationships
    action_type = relationship("ActionType")
    actor = relationship("User")


class MapDocumentAction(Base):
    """Link between one action and one document.

    Carries its own copy of the description and status plus actor
    attribution. Links are never deleted while the document exists.
    """
    __tablename__ = "map_document_action"
    __table_args__ = (
        UniqueConstraint("document_id", "action_id", name="uq_map_document_action"),
        Index("ix_map_document_action_document_id", "document_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(Integer, ForeignKey("document.id", ondelete="RESTRICT"), nullable=False)
    action_id = Column(Integer, ForeignKey("action.id", ondelete="RESTRICT"), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="ACTIVE", server_default="ACTIVE")
    created_by = Column(Integer, ForeignKey("user.id", ondelete="RESTRICT"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    # Relationships
    document = relationship("Document", back_populates="action_links")
    action = relationship("Action")


@event.listens_for(Action, "before_update")
@event.listens_for(MapDocumentAction, "before_update")
def _reject_audit_update(mapper, connection, target):
    raise ImmutableRecordError(
        f"{target.__tablename__} rows are append-only (id={target.id})"
    )


@event.listens_for(Action, "before_delete")
@event.listens_for(MapDocumentAction, "before_delete")
def _reject_audit_delete(mapper, connection, target):
    raise ImmutableRecordError(
        f"{target.__tablename__} rows cannot be deleted (id={target.id})"
    )
