# events_core/workflows/__init__.py
"""
Event publication workflow engine.

Model-free modules are re-exported here. The audit trail and the
persistence helpers touch the ORM and are imported from their own modules
(events_core.workflows.audit / .persistence).
"""

from __future__ import annotations

from .errors import (
    WorkflowError,
    InvalidTransition,
    PermissionDenied,
    ValidationError,
    Conflict,
    NotFound,
)
from .rules import (
    WorkflowState,
    WorkflowAction,
    Role,
    APPROVE,
    TERMINAL_STATES,
    TRANSITION_TABLE,
    PERMISSION_MATRIX,
    COMMENT_MIN_LENGTH,
    TransitionRule,
    normalize_state,
    normalize_action,
    resolve_next_state,
    resolve_approve_action,
    validate_comment,
    allowed_next_actions,
    workflow_definition,
)
from .authorization import Actor, AuthorizationGuard, default_guard, normalize_role
from .machine import AuditRecord, apply_transition
from .categorizer import (
    BUCKETS,
    categorize,
    build_summary_counts,
    query_filter,
)

__all__ = [
    "WorkflowError",
    "InvalidTransition",
    "PermissionDenied",
    "ValidationError",
    "Conflict",
    "NotFound",
    "WorkflowState",
    "WorkflowAction",
    "Role",
    "APPROVE",
    "TERMINAL_STATES",
    "TRANSITION_TABLE",
    "PERMISSION_MATRIX",
    "COMMENT_MIN_LENGTH",
    "TransitionRule",
    "normalize_state",
    "normalize_action",
    "resolve_next_state",
    "resolve_approve_action",
    "validate_comment",
    "allowed_next_actions",
    "workflow_definition",
    "Actor",
    "AuthorizationGuard",
    "default_guard",
    "normalize_role",
    "AuditRecord",
    "apply_transition",
    "BUCKETS",
    "categorize",
    "build_summary_counts",
    "query_filter",
]
