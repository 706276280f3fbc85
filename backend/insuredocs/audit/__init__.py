"""Audit trail module - append-only action log and document history"""

from .action_types import (
    ACTION_KIND_DESCRIPTIONS,
    CANONICAL_DESCRIPTIONS,
    ActionKind,
    canonical_description,
    ensure_action_types,
    get_action_type,
    normalize_action_type_name,
    register_action_type,
)
from .schemas import HistoryActor, HistoryEntry, HistoryPage, SortDirection
from .service import AuditTrailService

__all__ = [
    "ACTION_KIND_DESCRIPTIONS",
    "CANONICAL_DESCRIPTIONS",
    "ActionKind",
    "canonical_description",
    "ensure_action_types",
    "get_action_type",
    "normalize_action_type_name",
    "register_action_type",
    "HistoryActor",
    "HistoryEntry",
    "HistoryPage",
    "SortDirection",
    "AuditTrailService",
]
