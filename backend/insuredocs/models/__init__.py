"""SQLAlchemy Models for the document lifecycle service"""

from .base import Base
from .user import User, UserGroup
from .policy import Policy, PolicyPrefix
from .producer import Producer, MapProducerPolicy
from .loss import Loss, MapPolicyLoss
from .claimant import Claimant, MapLossClaimant
from .document import Document, map_user_document, map_user_group_document
from .action import Action, ActionType, MapDocumentAction, ImmutableRecordError
from ..domain.documents.document_status import DocumentStatus

__all__ = [
    "Base",
    "User",
    "UserGroup",
    "Policy",
    "PolicyPrefix",
    "Producer",
    "MapProducerPolicy",
    "Loss",
    "MapPolicyLoss",
    "Claimant",
    "MapLossClaimant",
    "Document",
    "DocumentStatus",
    "map_user_document",
    "map_user_group_document",
    "Action",
    "ActionType",
    "MapDocumentAction",
    "ImmutableRecordError",
]
