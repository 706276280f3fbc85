"""Action kind vocabulary and canonical audit descriptions.

The six lifecycle kinds are always present; ensure_action_types seeds them
idempotently. Additional kinds can be registered at runtime.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..models.action import ActionType


logger = logging.getLogger(__name__)


class ActionKind(str, Enum):
    """Lifecycle action kinds"""
    VIEW = "view"
    EDIT = "edit"
    PROCESS = "process"
    UNPROCESS = "unprocess"
    TRASH = "trash"
    RESTORE = "restore"


ACTION_KIND_DESCRIPTIONS: Dict[ActionKind, str] = {
    ActionKind.VIEW: "User viewed a document",
    ActionKind.EDIT: "User edited document metadata",
    ActionKind.PROCESS: "User marked a document as processed",
    ActionKind.UNPROCESS: "User marked a document as unprocessed",
    ActionKind.TRASH: "User moved a document to trash",
    ActionKind.RESTORE: "User restored a document from trash",
}

# Audit descriptions written for each lifecycle kind. Edit descriptions are
# built from the change diff instead.
CANONICAL_DESCRIPTIONS: Dict[ActionKind, str] = {
    ActionKind.VIEW: "Document viewed",
    ActionKind.PROCESS: "Marked as processed",
    ActionKind.UNPROCESS: "Marked as unprocessed",
    ActionKind.TRASH: "Moved to trash",
    ActionKind.RESTORE: "Restored from trash",
}


def canonical_description(kind: str) -> Optional[str]:
    """Canonical description for a lifecycle kind name, None for other kinds."""
    try:
        return CANONICAL_DESCRIPTIONS.get(ActionKind(kind))
    except ValueError:
        return None


def normalize_action_type_name(name: str) -> str:
    """Action type names are stored trimmed and lowercase."""
    return name.strip().lower()


def get_action_type(db: Session, name: str) -> Optional[ActionType]:
    """Look up an action type by name, ignoring case and surrounding spaces."""
    return db.query(ActionType).filter(ActionType.name == normalize_action_type_name(name)).first()


def register_action_type(db: Session, name: str, description: Optional[str] = None) -> ActionType:
    """Register an action kind, returning the existing row if already present.

    Flushes but does not commit; the caller owns the transaction.
    """
    name = normalize_action_type_name(name)
    if not name:
        raise ValueError("Action type name must not be empty")

    existing = get_action_type(db, name)
    if existing is not None:
        return existing

    action_type = ActionType(name=name, description=description)
    db.add(action_type)
    db.flush()
    logger.info(f"Registered action type '{name}'", extra={"action_type_id": action_type.id})
    return action_type


def ensure_action_types(db: Session) -> List[ActionType]:
    """Seed the six lifecycle action kinds (idempotent)."""
    return [
        register_action_type(db, kind.value, ACTION_KIND_DESCRIPTIONS[kind])
        for kind in ActionKind
    ]
