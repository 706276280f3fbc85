"""Document lifecycle orchestration"""

from .errors import (
    AuditWriteError,
    DocumentConflictError,
    DocumentLifecycleError,
    DocumentLockedError,
    DocumentNotFoundError,
    InvalidTransitionError,
    MetadataValidationError,
    PersistenceError,
    RelatedEntityNotFoundError,
)
from .notifications import LoggingNotifier, NotificationEvent, NotificationPort
from .service import DocumentLifecycleService, MetadataUpdateResult

__all__ = [
    "AuditWriteError",
    "DocumentConflictError",
    "DocumentLifecycleError",
    "DocumentLockedError",
    "DocumentNotFoundError",
    "InvalidTransitionError",
    "MetadataValidationError",
    "PersistenceError",
    "RelatedEntityNotFoundError",
    "LoggingNotifier",
    "NotificationEvent",
    "NotificationPort",
    "DocumentLifecycleService",
    "MetadataUpdateResult",
]
