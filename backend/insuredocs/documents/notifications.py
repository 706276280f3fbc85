"""Notification collaborator for committed lifecycle changes.

The lifecycle service calls notify() only after its transaction has
committed. Delivery (email to assignees etc.) belongs to the implementation;
failures are logged by the caller and never undo the committed change.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum


logger = logging.getLogger(__name__)


class NotificationEvent(str, Enum):
    """Events dispatched after a lifecycle operation commits"""
    PROCESSED = "processed"
    UNPROCESSED = "unprocessed"
    TRASHED = "trashed"
    RESTORED = "restored"
    UPDATED = "updated"
    ASSIGNED = "assigned"


class NotificationPort(ABC):
    """Interface for notification delivery."""

    @abstractmethod
    def notify(self, event: NotificationEvent, document_id: int, actor_id: int) -> None:
        """Dispatch a notification for a committed lifecycle event.

        Args:
            event: What happened to the document
            document_id: Document the event concerns
            actor_id: User who performed the operation
        """
        pass


class LoggingNotifier(NotificationPort):
    """Default notifier: records the dispatch in the application log."""

    def notify(self, event: NotificationEvent, document_id: int, actor_id: int) -> None:
        logger.info(
            f"Document notification: {event.value}",
            extra={"document_id": document_id, "actor_id": actor_id, "operation": f"notify:{event.value}"},
        )
