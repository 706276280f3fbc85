"""Document lifecycle and history endpoints.

Thin adapter over DocumentLifecycleService and AuditTrailService. The acting
user is taken from the X-User-Id header; authentication happens upstream.
Lifecycle errors are translated to responses by the handler registered in
main.py.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session

from ..audit.schemas import HistoryEntry, HistoryPage, SortDirection
from ..audit.service import AuditTrailService
from ..database import get_db
from .errors import DocumentNotFoundError
from .schemas import (
    DocumentFilters,
    DocumentListResponse,
    DocumentListStatus,
    DocumentMetadata,
    DocumentSortField,
    FieldChangeResponse,
    MetadataUpdateRequest,
    MetadataUpdateResponse,
    ProcessRequest,
)
from .service import DocumentLifecycleService


router = APIRouter(prefix="/documents", tags=["Documents"])


def get_actor_id(
    x_user_id: int = Header(..., ge=1, description="Id of the user performing the request")
) -> int:
    """Acting user id from the X-User-Id header."""
    return x_user_id


def get_lifecycle_service(db: Session = Depends(get_db)) -> DocumentLifecycleService:
    return DocumentLifecycleService(db)


def get_audit_service(db: Session = Depends(get_db)) -> AuditTrailService:
    return AuditTrailService(db)


@router.get(
    "",
    response_model=DocumentListResponse,
    summary="List documents",
    description="Paginated document listing. Trashed documents are only returned with status=trashed.",
)
def list_documents(
    status_filter: Optional[DocumentListStatus] = Query(None, alias="status", description="processed, unprocessed or trashed"),
    policy_id: Optional[int] = Query(None),
    loss_id: Optional[int] = Query(None),
    claimant_id: Optional[int] = Query(None),
    producer_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Match on name or description"),
    date_received_from: Optional[date] = Query(None),
    date_received_to: Optional[date] = Query(None),
    assigned_user_id: Optional[int] = Query(None),
    assigned_group_id: Optional[int] = Query(None),
    created_by: Optional[int] = Query(None),
    updated_by: Optional[int] = Query(None),
    sort_by: DocumentSortField = Query(DocumentSortField.CREATED_AT),
    sort_direction: SortDirection = Query(SortDirection.DESC),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    per_page: Optional[int] = Query(None, ge=1, le=100, description="Documents per page (max 100)"),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
) -> DocumentListResponse:
    filters = DocumentFilters(
        status=status_filter,
        policy_id=policy_id,
        loss_id=loss_id,
        claimant_id=claimant_id,
        producer_id=producer_id,
        search=search,
        date_received_from=date_received_from,
        date_received_to=date_received_to,
        assigned_user_id=assigned_user_id,
        assigned_group_id=assigned_group_id,
        created_by=created_by,
        updated_by=updated_by,
    )
    return service.list_documents(
        filters=filters,
        page=page,
        per_page=per_page,
        sort_by=sort_by,
        sort_direction=sort_direction.value,
    )


@router.get("/{document_id}", response_model=DocumentMetadata, summary="Get document metadata")
def get_document(
    document_id: int,
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
) -> DocumentMetadata:
    return service.get_document_metadata(document_id)


@router.put(
    "/{document_id}/metadata",
    response_model=MetadataUpdateResponse,
    summary="Update document metadata",
    description="Partial update. Returns 409 when the document is processed, 422 when the hierarchy is inconsistent.",
)
def update_metadata(
    document_id: int,
    request: MetadataUpdateRequest,
    actor_id: int = Depends(get_actor_id),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
) -> MetadataUpdateResponse:
    result = service.update_metadata(
        document_id,
        actor_id,
        request.proposed_fields(),
        expected_version=request.expected_version,
    )
    return MetadataUpdateResponse(
        document=service.to_metadata(result.document),
        changes=[FieldChangeResponse.model_validate(change) for change in result.changes],
        description=result.description,
    )


@router.post("/{document_id}/process", response_model=DocumentMetadata, summary="Mark processed or unprocessed")
def set_processed(
    document_id: int,
    request: ProcessRequest,
    actor_id: int = Depends(get_actor_id),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
) -> DocumentMetadata:
    document = service.set_processed(document_id, actor_id, request.processed)
    return service.to_metadata(document)


@router.post("/{document_id}/trash", response_model=DocumentMetadata, summary="Move document to trash")
def trash_document(
    document_id: int,
    actor_id: int = Depends(get_actor_id),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
) -> DocumentMetadata:
    document = service.trash_document(document_id, actor_id)
    return service.to_metadata(document)


@router.post("/{document_id}/restore", response_model=DocumentMetadata, summary="Restore document from trash")
def restore_document(
    document_id: int,
    actor_id: int = Depends(get_actor_id),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
) -> DocumentMetadata:
    document = service.restore_document(document_id, actor_id)
    return service.to_metadata(document)


@router.post("/{document_id}/views", status_code=status.HTTP_204_NO_CONTENT, summary="Record a document view")
def record_view(
    document_id: int,
    actor_id: int = Depends(get_actor_id),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
) -> None:
    service.record_view(document_id, actor_id)


@router.get(
    "/{document_id}/history",
    response_model=HistoryPage,
    summary="Document history",
    description="Paginated action history, newest first by default. Optionally filtered by action kind.",
)
def get_history(
    document_id: int,
    action_type_id: Optional[int] = Query(None, description="Only actions of this kind"),
    direction: SortDirection = Query(SortDirection.DESC),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    per_page: Optional[int] = Query(None, ge=1, le=100, description="Entries per page (max 100)"),
    audit: AuditTrailService = Depends(get_audit_service),
) -> HistoryPage:
    if action_type_id is None:
        history = audit.get_history(document_id, per_page=per_page, direction=direction, page=page)
    else:
        history = audit.filter_by_action_kind(
            document_id, action_type_id, per_page=per_page, direction=direction, page=page
        )

    if history is None:
        raise DocumentNotFoundError(document_id)
    return history


@router.get(
    "/{document_id}/history/last",
    response_model=Optional[HistoryEntry],
    summary="Most recent action",
)
def get_last_action(
    document_id: int,
    audit: AuditTrailService = Depends(get_audit_service),
) -> Optional[HistoryEntry]:
    if not audit.document_exists(document_id):
        raise DocumentNotFoundError(document_id)
    return audit.get_last_action(document_id)
