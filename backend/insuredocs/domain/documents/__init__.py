"""Documents domain module - lifecycle status and transitions"""

from .document_status import (
    DocumentStatus,
    LifecycleTransition,
    ALLOWED_TRANSITIONS,
    TRANSITION_SOURCES,
    TRANSITION_TARGETS,
    StateTransitionError,
    can_transition,
    get_allowed_transitions,
    validate_transition,
    apply_transition,
    is_metadata_locked,
)

__all__ = [
    "DocumentStatus",
    "LifecycleTransition",
    "ALLOWED_TRANSITIONS",
    "TRANSITION_SOURCES",
    "TRANSITION_TARGETS",
    "StateTransitionError",
    "can_transition",
    "get_allowed_transitions",
    "validate_transition",
    "apply_transition",
    "is_metadata_locked",
]
