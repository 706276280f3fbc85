"""Policy → Loss → Claimant hierarchy lookups and display formatting"""

from .repository import SqlMetadataLookup
from .display import (
    association_sequence,
    loss_sequence,
    claimant_sequence,
    loss_display_name,
    claimant_display_name,
)

__all__ = [
    "SqlMetadataLookup",
    "association_sequence",
    "loss_sequence",
    "claimant_sequence",
    "loss_display_name",
    "claimant_display_name",
]
