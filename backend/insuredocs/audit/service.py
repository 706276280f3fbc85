"""Audit trail service for document actions.

Every lifecycle operation writes exactly one Action row plus one
Document-Action Link row through this service. The pair is written inside a
SAVEPOINT: either both rows exist afterwards or neither does. Failures are
reported to the caller as False rather than raised, so the calling operation
decides whether to abort its own transaction.

History is read by joining links to actions, action types and the acting
user. Entries are ordered by action creation time with the action id as a
tie-break, both in the requested direction.
"""

import logging
import math
from datetime import datetime
from typing import Callable, Optional, Union

from sqlalchemy.orm import Session

from ..config import settings
from ..models.action import Action, ActionType, MapDocumentAction
from ..models.base import utc_now
from ..models.document import Document
from ..models.user import User
from .action_types import ActionKind, canonical_description, get_action_type, normalize_action_type_name
from .schemas import HistoryActor, HistoryEntry, HistoryPage, SortDirection


class AuditTrailService:
    """Writes and reads the append-only action log of documents.

    Args:
        db: Session shared with the calling lifecycle operation
        logger: Logger for audit failures (defaults to the module logger)
        clock: Callable returning the current UTC time
    """

    def __init__(
        self,
        db: Session,
        logger: Optional[logging.Logger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock or utc_now

    def record_action(
        self,
        document_id: int,
        actor_id: int,
        action_kind: Union[ActionKind, str],
        description: Optional[str] = None,
    ) -> bool:
        """Record one action against a document.

        Trashed documents are still valid targets (trash and restore are
        themselves recorded).

        Args:
            document_id: Document the action applies to
            actor_id: User performing the action
            action_kind: Action kind (view, edit, process, ...)
            description: Description to store; the canonical description
                for the kind is used when omitted

        Returns:
            True when both rows were written, False otherwise
        """
        if isinstance(action_kind, ActionKind):
            kind_name = action_kind.value
        else:
            kind_name = normalize_action_type_name(str(action_kind))
        log_extra = {"document_id": document_id, "actor_id": actor_id, "action_type": kind_name}

        try:
            if self.db.get(Document, document_id) is None:
                self.logger.error("Cannot record action: document not found", extra=log_extra)
                return False

            action_type = get_action_type(self.db, kind_name)
            if action_type is None:
                self.logger.error("Cannot record action: unknown action type", extra=log_extra)
                return False

            if description is None:
                description = canonical_description(kind_name) or action_type.description or kind_name

            with self.db.begin_nested():
                self._write_action_pair(document_id, actor_id, action_type.id, description)

        except Exception as e:
            self.logger.error(
                f"Failed to record document action: {e}",
                extra=log_extra,
                exc_info=True,
            )
            return False

        self.logger.debug("Recorded document action", extra=log_extra)
        return True

    def _write_action_pair(
        self,
        document_id: int,
        actor_id: int,
        action_type_id: int,
        description: str,
    ) -> MapDocumentAction:
        """Insert the Action row and its link to the document."""
        now = self.clock()

        action = Action(
            action_type_id=action_type_id,
            description=description,
            created_by=actor_id,
            created_at=now,
        )
        self.db.add(action)
        self.db.flush()  # Get action.id for the link

        link = MapDocumentAction(
            document_id=document_id,
            action_id=action.id,
            description=description,
            created_by=actor_id,
            created_at=now,
        )
        self.db.add(link)
        self.db.flush()

        return link

    def get_history(
        self,
        document_id: int,
        per_page: Optional[int] = None,
        direction: Union[SortDirection, str] = SortDirection.DESC,
        page: int = 1,
    ) -> Optional[HistoryPage]:
        """Paginated history of a document.

        Args:
            document_id: Document to read history for (trashed included)
            per_page: Page size, clamped to 1..HISTORY_MAX_PER_PAGE
            direction: "asc" (oldest first) or "desc" (newest first)
            page: Page number (1-indexed)

        Returns:
            HistoryPage, or None if the document does not exist
        """
        return self._history_page(document_id, None, per_page, direction, page)

    def filter_by_action_kind(
        self,
        document_id: int,
        action_type_id: int,
        per_page: Optional[int] = None,
        direction: Union[SortDirection, str] = SortDirection.DESC,
        page: int = 1,
    ) -> Optional[HistoryPage]:
        """Paginated history restricted to one action kind."""
        return self._history_page(document_id, action_type_id, per_page, direction, page)

    def document_exists(self, document_id: int) -> bool:
        """Whether the document exists, trashed documents included."""
        return self.db.get(Document, document_id) is not None

    def get_last_action(self, document_id: int) -> Optional[HistoryEntry]:
        """Most recent action recorded for a document, or None."""
        history = self.get_history(document_id, per_page=1, direction=SortDirection.DESC)
        if history is None or not history.entries:
            return None
        return history.entries[0]

    def _history_page(
        self,
        document_id: int,
        action_type_id: Optional[int],
        per_page: Optional[int],
        direction: Union[SortDirection, str],
        page: int,
    ) -> Optional[HistoryPage]:
        if not self.document_exists(document_id):
            self.logger.warning("History requested for unknown document", extra={"document_id": document_id})
            return None

        direction = SortDirection(direction.lower() if isinstance(direction, str) else direction)
        per_page = per_page or settings.HISTORY_DEFAULT_PER_PAGE
        per_page = max(1, min(per_page, settings.HISTORY_MAX_PER_PAGE))
        page = max(1, page)

        query = self.db.query(MapDocumentAction, Action, ActionType, User).join(
            Action, MapDocumentAction.action_id == Action.id
        ).join(
            ActionType, Action.action_type_id == ActionType.id
        ).outerjoin(
            User, Action.created_by == User.id
        ).filter(MapDocumentAction.document_id == document_id)

        if action_type_id is not None:
            query = query.filter(Action.action_type_id == action_type_id)

        total = query.count()

        if direction == SortDirection.ASC:
            query = query.order_by(Action.created_at.asc(), Action.id.asc())
        else:
            query = query.order_by(Action.created_at.desc(), Action.id.desc())

        rows = query.offset((page - 1) * per_page).limit(per_page).all()

        return HistoryPage(
            entries=[self._to_entry(*row) for row in rows],
            total=total,
            page=page,
            per_page=per_page,
            last_page=max(1, math.ceil(total / per_page)),
            direction=direction,
        )

    @staticmethod
    def _to_entry(link: MapDocumentAction, action: Action, action_type: ActionType, user: Optional[User]) -> HistoryEntry:
        return HistoryEntry(
            id=link.id,
            action_id=action.id,
            action_type_id=action_type.id,
            action_type=action_type.name,
            description=action.description,
            timestamp=action.created_at,
            user=HistoryActor(
                id=action.created_by,
                username=user.username if user else None,
                name=user.full_name if user else None,
            ),
        )
