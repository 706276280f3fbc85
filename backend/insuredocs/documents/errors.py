"""Document lifecycle error taxonomy.

Every error carries the HTTP-equivalent status code and a stable error code so
adapters can translate them without inspecting message text. Persistence
errors always carry a generic message; storage detail is only logged.
"""

from typing import Any, Dict, List, Optional

from ..domain.documents.document_status import StateTransitionError
from ..domain.metadata.models import FieldError


class DocumentLifecycleError(Exception):
    """Base class for lifecycle operation failures."""

    status_code: int = 500
    error_code: str = "lifecycle_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class DocumentNotFoundError(DocumentLifecycleError):
    status_code = 404
    error_code = "document_not_found"

    def __init__(self, document_id: int):
        super().__init__(f"Document {document_id} not found", {"document_id": document_id})
        self.document_id = document_id


class RelatedEntityNotFoundError(DocumentLifecycleError):
    """A proposed policy/loss/claimant/producer/user/group id does not exist."""

    status_code = 404
    error_code = "related_entity_not_found"

    def __init__(self, errors: List[FieldError]):
        super().__init__(
            "One or more referenced records do not exist",
            {"errors": [error.to_dict() for error in errors]},
        )
        self.errors = errors


class DocumentLockedError(DocumentLifecycleError):
    """Metadata edit attempted on a Processed document."""

    status_code = 409
    error_code = "document_locked"

    def __init__(self, document_id: int):
        super().__init__(
            "Document is processed and its metadata is locked. Mark it as unprocessed to edit.",
            {"document_id": document_id},
        )
        self.document_id = document_id


class InvalidTransitionError(DocumentLifecycleError):
    status_code = 409
    error_code = "invalid_transition"

    def __init__(self, document_id: int, cause: StateTransitionError):
        super().__init__(
            str(cause),
            {
                "document_id": document_id,
                "current_status": cause.current_status.value,
                "transition": cause.transition.value,
            },
        )
        self.document_id = document_id


class DocumentConflictError(DocumentLifecycleError):
    """The document was modified by another writer."""

    status_code = 409
    error_code = "version_conflict"

    def __init__(self, document_id: int, expected_version: Optional[int] = None, actual_version: Optional[int] = None):
        details: Dict[str, Any] = {"document_id": document_id}
        if expected_version is not None:
            details["expected_version"] = expected_version
        if actual_version is not None:
            details["actual_version"] = actual_version
        super().__init__("Document was modified concurrently. Reload and try again.", details)
        self.document_id = document_id


class MetadataValidationError(DocumentLifecycleError):
    """Hierarchy membership rules failed for the proposed metadata."""

    status_code = 422
    error_code = "validation_error"

    def __init__(self, errors: List[FieldError]):
        super().__init__(
            "The proposed metadata is invalid",
            {"errors": [error.to_dict() for error in errors]},
        )
        self.errors = errors

    @property
    def field_errors(self) -> Dict[str, str]:
        return {error.field: error.message for error in self.errors}


class PersistenceError(DocumentLifecycleError):
    status_code = 500
    error_code = "persistence_error"

    def __init__(self, message: str = "The operation could not be completed. Please try again."):
        super().__init__(message)


class AuditWriteError(PersistenceError):
    error_code = "audit_write_failed"

    def __init__(self):
        super().__init__("The operation could not be recorded and was not applied.")
