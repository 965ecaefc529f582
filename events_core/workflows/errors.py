# events_core/workflows/errors.py
"""
Typed workflow failures.

Every error is a DRF APIException so views can let them propagate and the
default exception handler maps them to the right status code. Nothing in the
workflow engine recovers from these.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.exceptions import APIException


class WorkflowError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Workflow operation failed."
    default_code = "workflow_error"


class InvalidTransition(WorkflowError):
    """No rule leads out of the current state for the requested action."""

    default_detail = "Transition is not valid from the current state."
    default_code = "invalid_transition"

    def __init__(self, current=None, action=None, detail=None):
        self.current = current
        self.action = action
        if detail is None and current is not None:
            detail = f"Cannot perform '{action}' on an event in state '{current}'."
        super().__init__(detail=detail)


class PermissionDenied(WorkflowError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to perform this workflow action."
    default_code = "permission_denied"


class ValidationError(WorkflowError):
    default_detail = "Invalid workflow input."
    default_code = "validation_error"

    def __init__(self, detail=None, field: str = "comment"):
        if isinstance(detail, str):
            detail = {field: detail}
        super().__init__(detail=detail)


class Conflict(WorkflowError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The event changed state concurrently. Reload and retry."
    default_code = "conflict"


class NotFound(WorkflowError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Event not found."
    default_code = "not_found"


__all__ = [
    "WorkflowError",
    "InvalidTransition",
    "PermissionDenied",
    "ValidationError",
    "Conflict",
    "NotFound",
]
