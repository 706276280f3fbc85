"""Pydantic schemas for document lifecycle endpoints

Request/response models for metadata edits, lifecycle transitions and
document listings.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..domain.documents.document_status import DocumentStatus


# ============================================================================
# Requests
# ============================================================================

class MetadataUpdateRequest(BaseModel):
    """Schema for PUT /documents/{id}/metadata.

    Only fields present in the request body are applied. A field sent as
    null clears it; assignment lists replace the current set.
    """
    policy_id: Optional[int] = Field(None, description="Policy the document belongs to")
    loss_id: Optional[int] = Field(None, description="Loss within the policy")
    claimant_id: Optional[int] = Field(None, description="Claimant within the loss")
    producer_id: Optional[int] = Field(None, description="Producer")
    description: Optional[str] = Field(None, max_length=1000, description="Free-text document description")
    assigned_users: Optional[List[int]] = Field(None, description="User ids the document is assigned to")
    assigned_groups: Optional[List[int]] = Field(None, description="User group ids the document is assigned to")
    expected_version: Optional[int] = Field(
        None, ge=1, description="Reject the edit if the document version differs"
    )

    model_config = ConfigDict(extra='forbid')

    def proposed_fields(self) -> Dict[str, Any]:
        """Fields explicitly sent by the client, excluding the version token."""
        sent = self.model_fields_set - {"expected_version"}
        return self.model_dump(include=sent)


class ProcessRequest(BaseModel):
    """Schema for POST /documents/{id}/process"""
    processed: bool = Field(True, description="True to mark processed, False to mark unprocessed")

    model_config = ConfigDict(extra='forbid')


class DocumentListStatus(str, Enum):
    """Status filter values for document listings"""
    PROCESSED = "processed"
    UNPROCESSED = "unprocessed"
    TRASHED = "trashed"


class DocumentSortField(str, Enum):
    """Sortable document columns"""
    ID = "id"
    NAME = "name"
    DATE_RECEIVED = "date_received"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class DocumentFilters(BaseModel):
    """Listing filters. Trashed documents appear only with status=trashed."""
    status: Optional[DocumentListStatus] = None
    policy_id: Optional[int] = None
    loss_id: Optional[int] = None
    claimant_id: Optional[int] = None
    producer_id: Optional[int] = None
    search: Optional[str] = Field(None, description="Case-insensitive match on name or description")
    date_received_from: Optional[date] = None
    date_received_to: Optional[date] = None
    assigned_user_id: Optional[int] = None
    assigned_group_id: Optional[int] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None


# ============================================================================
# Responses
# ============================================================================

class FieldChangeResponse(BaseModel):
    """One changed metadata field with display values"""
    field: str
    label: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class DocumentSummary(BaseModel):
    """Document row in listings"""
    id: int
    name: str
    description: Optional[str] = None
    date_received: Optional[date] = None
    status: DocumentStatus
    policy_id: Optional[int] = None
    loss_id: Optional[int] = None
    claimant_id: Optional[int] = None
    producer_id: Optional[int] = None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentMetadata(DocumentSummary):
    """Document with resolved display values (GET /documents/{id})"""
    is_processed: bool
    is_trashed: bool
    deleted_at: Optional[datetime] = None
    policy_number: Optional[str] = Field(None, description="Prefix + policy number")
    loss_sequence: Optional[str] = Field(None, description="'<seq> - <name> (<MM/DD/YYYY>)'")
    claimant_name: Optional[str] = Field(None, description="'<seq> - <full name>'")
    producer_number: Optional[str] = Field(None, description="'<number> - <name>'")
    assigned_users: List[int] = Field(default_factory=list)
    assigned_groups: List[int] = Field(default_factory=list)
    assigned_to: str = Field("", description="Assigned usernames and group names, comma separated")
    created_by: Optional[int] = None
    updated_by: Optional[int] = None


class MetadataUpdateResponse(BaseModel):
    """Result of a metadata edit"""
    document: DocumentMetadata
    changes: List[FieldChangeResponse] = Field(default_factory=list)
    description: Optional[str] = Field(None, description="Audit description, None for a no-op edit")


class DocumentListResponse(BaseModel):
    """Paginated document listing"""
    items: List[DocumentSummary]
    total: int = Field(..., description="Total matching documents")
    page: int = Field(..., description="Current page number (1-indexed)")
    per_page: int = Field(..., description="Documents per page")
    last_page: int = Field(..., description="Number of the last page (at least 1)")
