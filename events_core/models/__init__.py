# events_core/models/__init__.py

from .core import (
    TimeStampedModel,
    Organization,
    UserRole,
    Event,
)
from .approval_entry import ApprovalEntry

__all__ = [
    "TimeStampedModel",
    "Organization",
    "UserRole",
    "Event",
    "ApprovalEntry",
]
