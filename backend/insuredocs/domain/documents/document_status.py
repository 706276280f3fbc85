"""DocumentStatus state machine for the document lifecycle

State flow:
    UNPROCESSED ⇄ PROCESSED
    UNPROCESSED | PROCESSED → TRASHED
    TRASHED → UNPROCESSED (restore, never straight to PROCESSED)

Lifecycle operations are named transitions. Repeating an operation on a
document already in its target state is a legal no-op so callers can retry.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, List, FrozenSet


class DocumentStatus(str, Enum):
    """Document lifecycle status enum"""
    UNPROCESSED = "UNPROCESSED"  # Initial state, metadata editable
    PROCESSED = "PROCESSED"      # Metadata locked
    TRASHED = "TRASHED"          # Soft-deleted, reversible via restore


class LifecycleTransition(str, Enum):
    """Named lifecycle operations"""
    PROCESS = "process"
    UNPROCESS = "unprocess"
    TRASH = "trash"
    RESTORE = "restore"


# Status each transition lands in
TRANSITION_TARGETS: Dict[LifecycleTransition, DocumentStatus] = {
    LifecycleTransition.PROCESS: DocumentStatus.PROCESSED,
    LifecycleTransition.UNPROCESS: DocumentStatus.UNPROCESSED,
    LifecycleTransition.TRASH: DocumentStatus.TRASHED,
    LifecycleTransition.RESTORE: DocumentStatus.UNPROCESSED,
}

# Statuses each transition may start from (target included for idempotent retries)
TRANSITION_SOURCES: Dict[LifecycleTransition, FrozenSet[DocumentStatus]] = {
    LifecycleTransition.PROCESS: frozenset({DocumentStatus.UNPROCESSED, DocumentStatus.PROCESSED}),
    LifecycleTransition.UNPROCESS: frozenset({DocumentStatus.PROCESSED, DocumentStatus.UNPROCESSED}),
    LifecycleTransition.TRASH: frozenset({
        DocumentStatus.UNPROCESSED,
        DocumentStatus.PROCESSED,
        DocumentStatus.TRASHED,
    }),
    LifecycleTransition.RESTORE: frozenset({DocumentStatus.TRASHED, DocumentStatus.UNPROCESSED}),
}

# Status-changing edges of the graph
ALLOWED_TRANSITIONS: Dict[DocumentStatus, List[DocumentStatus]] = {
    DocumentStatus.UNPROCESSED: [DocumentStatus.PROCESSED, DocumentStatus.TRASHED],
    DocumentStatus.PROCESSED: [DocumentStatus.UNPROCESSED, DocumentStatus.TRASHED],
    DocumentStatus.TRASHED: [DocumentStatus.UNPROCESSED],
}


class StateTransitionError(Exception):
    """Raised when an invalid lifecycle transition is attempted."""

    def __init__(self, current_status: DocumentStatus, transition: LifecycleTransition):
        self.current_status = current_status
        self.transition = transition
        allowed = sorted(s.value for s in TRANSITION_SOURCES[transition])
        super().__init__(
            f"Cannot {transition.value} a document in status {current_status.value}. "
            f"Allowed from: {allowed}"
        )


def can_transition(from_status: DocumentStatus, to_status: DocumentStatus) -> bool:
    """Check whether a status change is an edge of the lifecycle graph.

    Example:
        >>> can_transition(DocumentStatus.TRASHED, DocumentStatus.UNPROCESSED)
        True
        >>> can_transition(DocumentStatus.TRASHED, DocumentStatus.PROCESSED)
        False
    """
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


def get_allowed_transitions(from_status: DocumentStatus) -> List[DocumentStatus]:
    """Get the statuses reachable from from_status in one step."""
    return ALLOWED_TRANSITIONS.get(from_status, [])


def validate_transition(
    current_status: DocumentStatus,
    transition: LifecycleTransition
) -> DocumentStatus:
    """Validate a named transition and return the resulting status.

    Args:
        current_status: Status the document is in now
        transition: Operation being applied

    Returns:
        DocumentStatus the document ends up in (equal to current_status for
        a no-op retry)

    Raises:
        StateTransitionError: If the operation is not legal from current_status
    """
    if current_status not in TRANSITION_SOURCES[transition]:
        raise StateTransitionError(current_status, transition)
    return TRANSITION_TARGETS[transition]


def apply_transition(document, transition: LifecycleTransition, now: datetime) -> bool:
    """Apply a lifecycle transition to a document in place.

    Keeps the soft-delete marker in step with the status: entering TRASHED
    stamps deleted_at (unless already set), leaving it clears deleted_at.

    Args:
        document: Object with status and deleted_at attributes
        transition: Operation to apply
        now: Timestamp used for the soft-delete marker

    Returns:
        True if the status changed, False for a no-op

    Raises:
        StateTransitionError: If the operation is not legal
    """
    current = DocumentStatus(document.status)
    target = validate_transition(current, transition)

    if target == DocumentStatus.TRASHED:
        if document.deleted_at is None:
            document.deleted_at = now
    else:
        document.deleted_at = None

    document.status = target
    return target != current


def is_metadata_locked(status: Optional[DocumentStatus]) -> bool:
    """Metadata edits are rejected while a document is PROCESSED."""
    return status == DocumentStatus.PROCESSED
