"""Pydantic schemas for document history.

History entries are read-only projections of Action + Document-Action Link
rows; there is no create/update/delete contract for them.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SortDirection(str, Enum):
    """History ordering by action creation time"""
    ASC = "asc"
    DESC = "desc"


class HistoryActor(BaseModel):
    """User who performed an action."""
    id: int = Field(..., description="User identifier")
    username: Optional[str] = Field(None, description="Login name")
    name: Optional[str] = Field(None, description="Full display name")


class HistoryEntry(BaseModel):
    """One entry of a document's history."""
    id: int = Field(..., description="Document-action link identifier")
    action_id: int = Field(..., description="Action identifier")
    action_type_id: int = Field(..., description="Action kind identifier")
    action_type: str = Field(..., description="Action kind name (view, edit, process, ...)")
    description: str = Field(..., description="Human readable description of the action")
    timestamp: datetime = Field(..., description="When the action was recorded")
    user: HistoryActor = Field(..., description="Acting user")

    class Config:
        json_schema_extra = {
            "example": {
                "id": 42,
                "action_id": 42,
                "action_type_id": 2,
                "action_type": "edit",
                "description": "Document Description changed from '(empty)' to 'Invoice'",
                "timestamp": "2025-01-04T12:00:00Z",
                "user": {"id": 7, "username": "jdoe", "name": "Jane Doe"},
            }
        }


class HistoryPage(BaseModel):
    """Paginated document history."""
    entries: list[HistoryEntry] = Field(..., description="History entries for this page")
    total: int = Field(..., description="Total number of entries for the document")
    page: int = Field(..., description="Current page number (1-indexed)")
    per_page: int = Field(..., description="Entries per page")
    last_page: int = Field(..., description="Number of the last page (at least 1)")
    direction: SortDirection = Field(..., description="Ordering by action time")
