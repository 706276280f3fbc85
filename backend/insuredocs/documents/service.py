"""Document lifecycle service

Coordinates every document mutation as one unit of work: load the document,
check state and hierarchy preconditions, apply the change, record the audit
action, commit. Any failure rolls the whole unit back, including field
changes already applied to the document. Notifications go out only after a
successful commit and can never undo it.
"""

import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..audit.action_types import ActionKind
from ..audit.service import AuditTrailService
from ..config import settings
from ..domain.documents.document_status import (
    DocumentStatus,
    LifecycleTransition,
    StateTransitionError,
    apply_transition,
    is_metadata_locked,
)
from ..domain.metadata import (
    ASSIGNMENT_FIELDS,
    FieldChange,
    FieldError,
    MetadataValidator,
    format_changes_description,
    normalize_proposed_fields,
)
from ..hierarchy.display import claimant_display_name, loss_display_name
from ..hierarchy.repository import SqlMetadataLookup
from ..models.base import utc_now
from ..models.document import Document, map_user_document, map_user_group_document
from ..models.user import User, UserGroup
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
from .schemas import (
    DocumentFilters,
    DocumentListResponse,
    DocumentListStatus,
    DocumentMetadata,
    DocumentSortField,
    DocumentSummary,
)


logger = logging.getLogger(__name__)


TRANSITION_ACTIONS: Dict[LifecycleTransition, ActionKind] = {
    LifecycleTransition.PROCESS: ActionKind.PROCESS,
    LifecycleTransition.UNPROCESS: ActionKind.UNPROCESS,
    LifecycleTransition.TRASH: ActionKind.TRASH,
    LifecycleTransition.RESTORE: ActionKind.RESTORE,
}

TRANSITION_EVENTS: Dict[LifecycleTransition, NotificationEvent] = {
    LifecycleTransition.PROCESS: NotificationEvent.PROCESSED,
    LifecycleTransition.UNPROCESS: NotificationEvent.UNPROCESSED,
    LifecycleTransition.TRASH: NotificationEvent.TRASHED,
    LifecycleTransition.RESTORE: NotificationEvent.RESTORED,
}

_STATUS_FILTERS: Dict[DocumentListStatus, DocumentStatus] = {
    DocumentListStatus.PROCESSED: DocumentStatus.PROCESSED,
    DocumentListStatus.UNPROCESSED: DocumentStatus.UNPROCESSED,
    DocumentListStatus.TRASHED: DocumentStatus.TRASHED,
}


@dataclass
class MetadataUpdateResult:
    """Outcome of update_metadata.

    changes is empty (and description None) for a no-op edit, in which case
    nothing was written.
    """
    document: Document
    changes: List[FieldChange] = field(default_factory=list)
    description: Optional[str] = None


class DocumentLifecycleService:
    """Lifecycle orchestrator for documents.

    Args:
        db: Session owning the unit of work
        audit: Audit trail engine (defaults to one bound to db)
        validator: Metadata validator (defaults to SQL-backed lookups)
        notifier: Post-commit notification collaborator
        clock: Callable returning the current UTC time
    """

    def __init__(
        self,
        db: Session,
        audit: Optional[AuditTrailService] = None,
        validator: Optional[MetadataValidator] = None,
        notifier: Optional[NotificationPort] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.clock = clock or utc_now
        self.audit = audit or AuditTrailService(db, clock=self.clock)
        self.validator = validator or MetadataValidator(SqlMetadataLookup(db))
        self.notifier = notifier or LoggingNotifier()

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def update_metadata(
        self,
        document_id: int,
        actor_id: int,
        proposed: Mapping[str, Any],
        expected_version: Optional[int] = None,
    ) -> MetadataUpdateResult:
        """Validate and apply a partial metadata update.

        Checks run in order: existence, processed lock, expected version,
        referenced entities exist, hierarchy membership. An edit that
        changes nothing writes nothing and is not audited.

        Args:
            document_id: Document to edit
            actor_id: User performing the edit
            proposed: Fields to change; absent keys are left untouched
            expected_version: Optional optimistic concurrency token

        Returns:
            MetadataUpdateResult with the changes applied

        Raises:
            DocumentNotFoundError: Document missing or trashed
            DocumentLockedError: Document is processed
            DocumentConflictError: Version mismatch or concurrent write
            RelatedEntityNotFoundError: A proposed id does not exist
            MetadataValidationError: Hierarchy membership rules failed
            AuditWriteError: The edit could not be audited
            PersistenceError: Storage failure
        """
        try:
            fields = normalize_proposed_fields(proposed)
        except (TypeError, ValueError) as e:
            raise MetadataValidationError([FieldError("metadata", f"Invalid identifier: {e}")]) from e

        with self._unit_of_work("update_metadata", document_id, actor_id):
            document = self._load_document(document_id)

            if is_metadata_locked(document.status):
                raise DocumentLockedError(document_id)

            if expected_version is not None and document.version != expected_version:
                raise DocumentConflictError(document_id, expected_version, document.version)

            missing = self.validator.find_missing_references(fields)
            if missing:
                raise RelatedEntityNotFoundError(missing)

            errors = self.validator.validate_relationships(fields)
            if errors:
                raise MetadataValidationError(errors)

            changes = self.validator.diff_changes(document, fields)
            if not changes:
                logger.debug(
                    "Metadata update is a no-op",
                    extra={"document_id": document_id, "actor_id": actor_id, "operation": "update_metadata"},
                )
                return MetadataUpdateResult(document=document)

            self._apply_fields(document, fields)
            self._touch(document, actor_id)
            self.db.flush()

            description = format_changes_description(changes)
            self._record(document.id, actor_id, ActionKind.EDIT, description)

        self._notify(NotificationEvent.UPDATED, document_id, actor_id)
        if any(change.field in ASSIGNMENT_FIELDS for change in changes):
            self._notify(NotificationEvent.ASSIGNED, document_id, actor_id)

        logger.info(
            f"Document metadata updated ({len(changes)} field(s))",
            extra={"document_id": document_id, "actor_id": actor_id, "operation": "update_metadata"},
        )
        return MetadataUpdateResult(document=document, changes=changes, description=description)

    def _apply_fields(self, document: Document, fields: Mapping[str, Any]) -> None:
        for name, value in fields.items():
            if name == "assigned_users":
                document.users = self._load_members(User, value)
            elif name == "assigned_groups":
                document.user_groups = self._load_members(UserGroup, value)
            else:
                setattr(document, name, value)

    def _load_members(self, model, ids: List[int]) -> list:
        if not ids:
            return []
        return self.db.query(model).filter(model.id.in_(ids)).order_by(model.id).all()

    # ------------------------------------------------------------------
    # Lifecycle transitions
    # ------------------------------------------------------------------

    def set_processed(self, document_id: int, actor_id: int, processed: bool) -> Document:
        """Mark a document processed (True) or unprocessed (False).

        Raises:
            DocumentNotFoundError: Document missing or trashed
            InvalidTransitionError: Transition not legal from current status
            AuditWriteError: The change could not be audited
        """
        transition = LifecycleTransition.PROCESS if processed else LifecycleTransition.UNPROCESS
        return self._transition(document_id, actor_id, transition, include_trashed=False)

    def trash_document(self, document_id: int, actor_id: int) -> Document:
        """Soft-delete a document (status TRASHED, deleted_at stamped)."""
        return self._transition(document_id, actor_id, LifecycleTransition.TRASH, include_trashed=True)

    def restore_document(self, document_id: int, actor_id: int) -> Document:
        """Restore a trashed document. Always lands in UNPROCESSED."""
        return self._transition(document_id, actor_id, LifecycleTransition.RESTORE, include_trashed=True)

    def _transition(
        self,
        document_id: int,
        actor_id: int,
        transition: LifecycleTransition,
        include_trashed: bool,
    ) -> Document:
        operation = f"{transition.value}_document"

        with self._unit_of_work(operation, document_id, actor_id):
            document = self._load_document(document_id, include_trashed=include_trashed)
            now = self.clock()

            try:
                changed = apply_transition(document, transition, now)
            except StateTransitionError as e:
                raise InvalidTransitionError(document_id, e) from e

            if changed:
                self._touch(document, actor_id, now)
                self.db.flush()

            self._record(document.id, actor_id, TRANSITION_ACTIONS[transition])

        self._notify(TRANSITION_EVENTS[transition], document_id, actor_id)

        logger.info(
            f"Document {transition.value} -> {document.status.value}"
            + ("" if changed else " (no state change)"),
            extra={"document_id": document_id, "actor_id": actor_id, "operation": operation},
        )
        return document

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def record_view(self, document_id: int, actor_id: int) -> bool:
        """Record that a user viewed a document.

        Every call is logged; there is no de-duplication.

        Returns:
            True if a view action was recorded, False when view logging is
            disabled by configuration

        Raises:
            DocumentNotFoundError: Document missing or trashed
            AuditWriteError: The view could not be recorded
        """
        with self._unit_of_work("record_view", document_id, actor_id):
            document = self._load_document(document_id)
            if not settings.AUDIT_LOG_DOCUMENT_VIEWS:
                return False
            self._record(document.id, actor_id, ActionKind.VIEW)
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_document_metadata(self, document_id: int) -> DocumentMetadata:
        """Document with resolved display values. Trashed documents included."""
        document = self._load_document(document_id, include_trashed=True)
        return self.to_metadata(document)

    def to_metadata(self, document: Document) -> DocumentMetadata:
        """Build the read model for a loaded document."""
        assignee_names = [user.username for user in document.users] + [group.name for group in document.user_groups]

        return DocumentMetadata(
            id=document.id,
            name=document.name,
            description=document.description,
            date_received=document.date_received,
            status=document.status,
            policy_id=document.policy_id,
            loss_id=document.loss_id,
            claimant_id=document.claimant_id,
            producer_id=document.producer_id,
            version=document.version,
            created_at=document.created_at,
            updated_at=document.updated_at,
            created_by=document.created_by,
            updated_by=document.updated_by,
            is_processed=document.is_processed,
            is_trashed=document.is_trashed,
            deleted_at=document.deleted_at,
            policy_number=document.policy.formatted_number if document.policy else None,
            loss_sequence=(
                loss_display_name(self.db, document.loss, document.policy_id) if document.loss else None
            ),
            claimant_name=(
                claimant_display_name(self.db, document.claimant, document.loss_id) if document.claimant else None
            ),
            producer_number=document.producer.display_name if document.producer else None,
            assigned_users=[user.id for user in document.users],
            assigned_groups=[group.id for group in document.user_groups],
            assigned_to=", ".join(assignee_names),
        )

    def list_documents(
        self,
        filters: Optional[DocumentFilters] = None,
        page: int = 1,
        per_page: Optional[int] = None,
        sort_by: DocumentSortField = DocumentSortField.CREATED_AT,
        sort_direction: str = "desc",
    ) -> DocumentListResponse:
        """Paginated, filtered document listing.

        Trashed documents are excluded unless filters.status is "trashed".
        """
        filters = filters or DocumentFilters()
        per_page = per_page or settings.DOCUMENTS_DEFAULT_PER_PAGE
        per_page = max(1, min(per_page, settings.DOCUMENTS_MAX_PER_PAGE))
        page = max(1, page)

        query = self.db.query(Document)

        if filters.status is not None:
            query = query.filter(Document.status == _STATUS_FILTERS[filters.status])
        else:
            query = query.filter(Document.status != DocumentStatus.TRASHED)

        for column in ("policy_id", "loss_id", "claimant_id", "producer_id", "created_by", "updated_by"):
            value = getattr(filters, column)
            if value is not None:
                query = query.filter(getattr(Document, column) == value)

        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            query = query.filter(or_(Document.name.ilike(pattern), Document.description.ilike(pattern)))

        if filters.date_received_from is not None:
            query = query.filter(Document.date_received >= filters.date_received_from)
        if filters.date_received_to is not None:
            query = query.filter(Document.date_received <= filters.date_received_to)

        if filters.assigned_user_id is not None:
            query = query.filter(Document.id.in_(
                self.db.query(map_user_document.c.document_id).filter(
                    map_user_document.c.user_id == filters.assigned_user_id
                )
            ))
        if filters.assigned_group_id is not None:
            query = query.filter(Document.id.in_(
                self.db.query(map_user_group_document.c.document_id).filter(
                    map_user_group_document.c.user_group_id == filters.assigned_group_id
                )
            ))

        total = query.count()

        sort_column = getattr(Document, DocumentSortField(sort_by).value)
        if sort_direction.lower() == "asc":
            query = query.order_by(sort_column.asc(), Document.id.asc())
        else:
            query = query.order_by(sort_column.desc(), Document.id.desc())

        documents = query.offset((page - 1) * per_page).limit(per_page).all()

        return DocumentListResponse(
            items=[DocumentSummary.model_validate(document) for document in documents],
            total=total,
            page=page,
            per_page=per_page,
            last_page=max(1, math.ceil(total / per_page)),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_document(self, document_id: int, include_trashed: bool = False) -> Document:
        document = self.db.get(Document, document_id)
        if document is None or (document.is_trashed and not include_trashed):
            raise DocumentNotFoundError(document_id)
        return document

    def _touch(self, document: Document, actor_id: int, now: Optional[datetime] = None) -> None:
        document.updated_at = now or self.clock()
        document.updated_by = actor_id

    def _record(self, document_id: int, actor_id: int, kind: ActionKind, description: Optional[str] = None) -> None:
        if not self.audit.record_action(document_id, actor_id, kind, description):
            raise AuditWriteError()

    @contextmanager
    def _unit_of_work(self, operation: str, document_id: int, actor_id: int) -> Iterator[None]:
        """Commit on success; roll back and translate storage errors on failure."""
        log_extra = {"document_id": document_id, "actor_id": actor_id, "operation": operation}
        try:
            yield
            self.db.commit()
        except DocumentLifecycleError as e:
            self.db.rollback()
            if isinstance(e, PersistenceError):
                logger.error(f"{operation} failed: {e.error_code}", extra=log_extra)
            raise
        except StaleDataError as e:
            self.db.rollback()
            logger.warning(f"{operation} lost a concurrent update", extra=log_extra)
            raise DocumentConflictError(document_id) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{operation} failed: {e}", extra=log_extra, exc_info=True)
            raise PersistenceError() from e

    def _notify(self, event: NotificationEvent, document_id: int, actor_id: int) -> None:
        if not settings.NOTIFICATIONS_ENABLED:
            return
        try:
            self.notifier.notify(event, document_id, actor_id)
        except Exception as e:
            logger.warning(
                f"Notification dispatch failed: {e}",
                extra={"document_id": document_id, "actor_id": actor_id, "operation": f"notify:{event.value}"},
                exc_info=True,
            )

