"""
Authoritative publication workflow rules for calendar events.

Defines:
- State and action universes
- The fixed transition table (keyed by (state, action))
- The role permission matrix and per-role organization scope
- Comment requirements per action
- Introspection helpers used by UI and API

Rules are data. Adding or auditing a transition is an edit to the tables
below, never to control flow.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from django.db import models

from .errors import InvalidTransition, ValidationError


# ===============================================================
# STATES / ACTIONS / ROLES
# ===============================================================
class WorkflowState(models.TextChoices):
    DRAFT = "draft", "Draft"
    PENDING_INTERNAL_APPROVAL = "pending_internal_approval", "Pending internal approval"
    APPROVED_INTERNAL = "approved_internal", "Approved internal"
    PENDING_PUBLIC_APPROVAL = "pending_public_approval", "Pending public approval"
    PUBLISHED = "published", "Published"
    REQUIRES_CHANGES = "requires_changes", "Requires changes"
    REJECTED = "rejected", "Rejected"
    CANCELLED = "cancelled", "Cancelled"


class WorkflowAction(models.TextChoices):
    SUBMIT = "submit", "Submit"
    APPROVE_INTERNAL = "approve_internal", "Approve internally"
    REQUEST_PUBLIC_APPROVAL = "request_public_approval", "Request public approval"
    APPROVE_PUBLIC = "approve_public", "Approve for public"
    PUBLISH = "publish", "Publish"
    REQUEST_CHANGES = "request_changes", "Request changes"
    REJECT = "reject", "Reject"
    RESUBMIT = "resubmit", "Resubmit"


# Pseudo-action: resolved to a concrete action from the current state.
APPROVE = "approve"


class Role(models.TextChoices):
    PLATFORM_ADMIN = "platform_admin", "Platform admin"
    ENTITY_ADMIN = "entity_admin", "Entity admin"
    ENTITY_STAFF = "entity_staff", "Entity staff"
    ORGANIZER_ADMIN = "organizer_admin", "Organizer admin"


S = WorkflowState
A = WorkflowAction
R = Role

# No request_changes / reject out of these, for any role.
TERMINAL_STATES: FrozenSet[str] = frozenset({S.REJECTED.value, S.PUBLISHED.value, S.CANCELLED.value})

# Initial states an event may be created in.
INITIAL_STATES: FrozenSet[str] = frozenset({S.DRAFT.value, S.PENDING_INTERNAL_APPROVAL.value})


# ===============================================================
# COMMENT REQUIREMENTS
# ===============================================================
COMMENT_MIN_LENGTH: Dict[str, int] = {
    A.REJECT.value: 10,
    A.REQUEST_CHANGES.value: 20,
}

COMMENT_MAX_LENGTH = 1000


# ===============================================================
# PERMISSION MATRIX
# ===============================================================
PERMISSION_MATRIX: Dict[str, FrozenSet[str]] = {
    A.SUBMIT.value: frozenset({R.ORGANIZER_ADMIN.value, R.ENTITY_STAFF.value, R.ENTITY_ADMIN.value}),
    A.APPROVE_INTERNAL.value: frozenset({R.ENTITY_ADMIN.value, R.ENTITY_STAFF.value, R.PLATFORM_ADMIN.value}),
    A.REQUEST_PUBLIC_APPROVAL.value: frozenset({R.ENTITY_STAFF.value, R.ENTITY_ADMIN.value}),
    A.APPROVE_PUBLIC.value: frozenset({R.ENTITY_ADMIN.value, R.PLATFORM_ADMIN.value}),
    A.PUBLISH.value: frozenset({R.ENTITY_ADMIN.value, R.PLATFORM_ADMIN.value}),
    A.REQUEST_CHANGES.value: frozenset({R.ENTITY_ADMIN.value, R.ENTITY_STAFF.value, R.PLATFORM_ADMIN.value}),
    A.REJECT.value: frozenset({R.ENTITY_ADMIN.value, R.ENTITY_STAFF.value, R.PLATFORM_ADMIN.value}),
    A.RESUBMIT.value: frozenset({R.ORGANIZER_ADMIN.value}),
}

# Which organization on the event the actor must belong to.
SCOPE_GLOBAL = "global"
SCOPE_SUPERVISING_ENTITY = "supervising_entity"
SCOPE_OWNER = "owner"

ROLE_SCOPE: Dict[str, str] = {
    R.PLATFORM_ADMIN.value: SCOPE_GLOBAL,
    R.ENTITY_ADMIN.value: SCOPE_SUPERVISING_ENTITY,
    R.ENTITY_STAFF.value: SCOPE_SUPERVISING_ENTITY,
    R.ORGANIZER_ADMIN.value: SCOPE_OWNER,
}


# ===============================================================
# TRANSITION TABLE
# ===============================================================
@dataclass(frozen=True)
class TransitionRule:
    from_state: str
    action: str
    to_state: str
    allowed_roles: FrozenSet[str]
    requires_comment: bool = False
    min_comment_length: int = 0


def _rule(from_state: str, action: str, to_state: str) -> TransitionRule:
    min_len = COMMENT_MIN_LENGTH.get(action, 0)
    return TransitionRule(
        from_state=str(from_state),
        action=str(action),
        to_state=str(to_state),
        allowed_roles=PERMISSION_MATRIX[action],
        requires_comment=min_len > 0,
        min_comment_length=min_len,
    )


_HAPPY_PATH: Tuple[Tuple[str, str, str], ...] = (
    (S.DRAFT.value, A.SUBMIT.value, S.PENDING_INTERNAL_APPROVAL.value),
    (S.PENDING_INTERNAL_APPROVAL.value, A.APPROVE_INTERNAL.value, S.APPROVED_INTERNAL.value),
    (S.APPROVED_INTERNAL.value, A.REQUEST_PUBLIC_APPROVAL.value, S.PENDING_PUBLIC_APPROVAL.value),
    (S.PENDING_PUBLIC_APPROVAL.value, A.APPROVE_PUBLIC.value, S.PUBLISHED.value),
    (S.PENDING_PUBLIC_APPROVAL.value, A.PUBLISH.value, S.PUBLISHED.value),
    (S.REQUIRES_CHANGES.value, A.RESUBMIT.value, S.PENDING_INTERNAL_APPROVAL.value),
)

# Branch actions available from every non-terminal state.
_BRANCHES: Tuple[Tuple[str, str], ...] = (
    (A.REQUEST_CHANGES.value, S.REQUIRES_CHANGES.value),
    (A.REJECT.value, S.REJECTED.value),
)


def _build_table() -> Dict[Tuple[str, str], TransitionRule]:
    table: Dict[Tuple[str, str], TransitionRule] = {}
    for from_state, action, to_state in _HAPPY_PATH:
        table[(str(from_state), str(action))] = _rule(from_state, action, to_state)
    for state in S.values:
        if state in TERMINAL_STATES:
            continue
        for action, to_state in _BRANCHES:
            table[(state, str(action))] = _rule(state, action, to_state)
    return table


TRANSITION_TABLE: Dict[Tuple[str, str], TransitionRule] = _build_table()

# Unified approve: the happy-path step implied by the current state.
APPROVE_SEQUENCE: Dict[str, str] = {
    S.PENDING_INTERNAL_APPROVAL.value: A.APPROVE_INTERNAL.value,
    S.APPROVED_INTERNAL.value: A.REQUEST_PUBLIC_APPROVAL.value,
    S.PENDING_PUBLIC_APPROVAL.value: A.APPROVE_PUBLIC.value,
}


# ===============================================================
# NORMALIZATION
# ===============================================================
def normalize_state(value) -> str:
    return str(value or "").strip().lower()


def normalize_action(value) -> str:
    """
    Canonicalize action names so "approveInternal", "approve-internal" and
    "APPROVE_INTERNAL" all map to "approve_internal".
    """
    raw = str(value or "").strip()
    raw = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", raw)
    raw = re.sub(r"[\s\-]+", "_", raw)
    return re.sub(r"_+", "_", raw).lower()


# ===============================================================
# RESOLUTION / VALIDATION
# ===============================================================
def resolve_approve_action(current: str) -> str:
    cur = normalize_state(current)
    action = APPROVE_SEQUENCE.get(cur)
    if action is None:
        raise InvalidTransition(cur, APPROVE)
    return str(action)


def resolve_action(current: str, action: str) -> str:
    """
    Returns the concrete action for a request, expanding the unified
    "approve" from the current state.
    """
    act = normalize_action(action)
    if act == APPROVE:
        return resolve_approve_action(current)
    return act


def get_rule(current: str, action: str) -> TransitionRule:
    cur = normalize_state(current)
    act = resolve_action(cur, action)
    rule = TRANSITION_TABLE.get((cur, act))
    if rule is None:
        raise InvalidTransition(cur, act)
    return rule


def resolve_next_state(current: str, action: str) -> str:
    """
    Raises InvalidTransition if no rule matches (current, action).
    """
    return get_rule(current, action).to_state


def validate_comment(action: str, comment: Optional[str]) -> Optional[str]:
    """
    Returns the cleaned comment (or None) and raises ValidationError when an
    action that needs a reason gets none, or one that is too short or long.
    """
    act = normalize_action(action)
    text = (comment or "").strip()
    min_len = COMMENT_MIN_LENGTH.get(act, 0)

    if min_len and not text:
        raise ValidationError(f"A comment is required to {act.replace('_', ' ')}.")

    if min_len and len(text) < min_len:
        raise ValidationError(
            f"Comment must be at least {min_len} characters to {act.replace('_', ' ')}."
        )

    if len(text) > COMMENT_MAX_LENGTH:
        raise ValidationError(f"Comment must be at most {COMMENT_MAX_LENGTH} characters.")

    return text or None


# ===============================================================
# INTROSPECTION HELPERS
# ===============================================================
def allowed_next_actions(current: str) -> List[str]:
    """
    Actions structurally valid from a state, independent of role.
    """
    cur = normalize_state(current)
    return sorted(action for (state, action) in TRANSITION_TABLE if state == cur)


def is_terminal(state: str) -> bool:
    return normalize_state(state) in TERMINAL_STATES


def workflow_definition() -> Dict:
    transitions: Dict[str, Dict[str, str]] = {}
    for (state, action), rule in TRANSITION_TABLE.items():
        transitions.setdefault(state, {})[action] = rule.to_state

    return {
        "states": list(S.values),
        "actions": list(A.values),
        "initial_states": sorted(INITIAL_STATES),
        "terminal_states": sorted(TERMINAL_STATES),
        "transitions": {state: dict(sorted(t.items())) for state, t in sorted(transitions.items())},
        "approve_sequence": {str(k): str(v) for k, v in APPROVE_SEQUENCE.items()},
        "permissions": {str(a): sorted(roles) for a, roles in PERMISSION_MATRIX.items()},
        "comment_min_length": {str(a): n for a, n in COMMENT_MIN_LENGTH.items()},
        "comment_max_length": COMMENT_MAX_LENGTH,
    }


__all__ = [
    "WorkflowState",
    "WorkflowAction",
    "Role",
    "APPROVE",
    "TERMINAL_STATES",
    "INITIAL_STATES",
    "COMMENT_MIN_LENGTH",
    "COMMENT_MAX_LENGTH",
    "PERMISSION_MATRIX",
    "ROLE_SCOPE",
    "SCOPE_GLOBAL",
    "SCOPE_SUPERVISING_ENTITY",
    "SCOPE_OWNER",
    "TransitionRule",
    "TRANSITION_TABLE",
    "APPROVE_SEQUENCE",
    "normalize_state",
    "normalize_action",
    "resolve_approve_action",
    "resolve_action",
    "get_rule",
    "resolve_next_state",
    "validate_comment",
    "allowed_next_actions",
    "is_terminal",
    "workflow_definition",
]
