# events_core/workflows/authorization.py
"""
Role and organization gating for workflow actions.

The permission matrix and role scopes live in rules.py. This module is the
only place that interprets them; views and services never compare role
strings themselves.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from django.db.models import Q

from .errors import NotFound, PermissionDenied
from .rules import (
    PERMISSION_MATRIX,
    ROLE_SCOPE,
    SCOPE_GLOBAL,
    SCOPE_OWNER,
    SCOPE_SUPERVISING_ENTITY,
    TRANSITION_TABLE,
    Role,
    normalize_action,
    normalize_state,
)


# ===============================================================
# ROLE NORMALIZATION
# ===============================================================
# Examples handled:
# - "Entity Admin" -> entity_admin
# - "entity-staff" -> entity_staff
# - "entity_manager" -> entity_staff (legacy code)
ROLE_ALIASES: Dict[str, str] = {
    "PLATFORM_ADMIN": Role.PLATFORM_ADMIN.value,
    "SUPERUSER": Role.PLATFORM_ADMIN.value,
    "ENTITY_ADMIN": Role.ENTITY_ADMIN.value,
    "ENTITY_STAFF": Role.ENTITY_STAFF.value,
    "ENTITY_MANAGER": Role.ENTITY_STAFF.value,
    "ORGANIZER_ADMIN": Role.ORGANIZER_ADMIN.value,
    "ORGANIZER": Role.ORGANIZER_ADMIN.value,
}


def normalize_role(role) -> str:
    r = str(role or "").strip().upper()
    if not r:
        return ""
    r = re.sub(r"[\s\-]+", "_", r)
    r = re.sub(r"_+", "_", r)
    return ROLE_ALIASES.get(r, r.lower())


# ===============================================================
# ACTOR
# ===============================================================
@dataclass(frozen=True)
class Actor:
    """
    The authenticated identity executing a transition.
    Resolved once per request, before any write.
    """

    id: int
    name: str
    role: str
    organization_id: Optional[int]

    def __post_init__(self):
        object.__setattr__(self, "role", normalize_role(self.role))


# ===============================================================
# GUARD
# ===============================================================
class AuthorizationGuard:
    """
    Decides whether an actor may execute an action on an event.

    Two checks, both required:
    - role is listed for the action in PERMISSION_MATRIX
    - actor belongs to the organization the role is scoped to
    """

    def __init__(self, matrix=None, scopes=None):
        self.matrix = matrix if matrix is not None else PERMISSION_MATRIX
        self.scopes = scopes if scopes is not None else ROLE_SCOPE

    def allowed_roles(self, action: str) -> frozenset:
        return self.matrix.get(normalize_action(action), frozenset())

    def _in_scope(self, actor: Actor, event) -> bool:
        scope = self.scopes.get(actor.role)

        if scope == SCOPE_GLOBAL:
            return True

        if actor.organization_id is None:
            return False

        if scope == SCOPE_SUPERVISING_ENTITY:
            return actor.organization_id == getattr(event, "supervising_entity_id", None)

        if scope == SCOPE_OWNER:
            return actor.organization_id == getattr(event, "owner_organization_id", None)

        return False

    def is_authorized(self, actor: Actor, action: str, event) -> bool:
        if actor is None:
            return False
        if actor.role not in self.allowed_roles(action):
            return False
        return self._in_scope(actor, event)

    def authorize(self, actor: Actor, action: str, event) -> None:
        """
        Raises PermissionDenied. Does not look at the event state.
        """
        act = normalize_action(action)

        if actor is None:
            raise PermissionDenied("No authenticated actor.")

        if actor.role not in self.allowed_roles(act):
            required = ", ".join(sorted(self.allowed_roles(act))) or "none"
            raise PermissionDenied(
                f"Role '{actor.role or 'unknown'}' cannot {act.replace('_', ' ')}. "
                f"Required: {required}"
            )

        if not self._in_scope(actor, event):
            raise PermissionDenied(
                f"Actor does not belong to the organization responsible for event "
                f"{getattr(event, 'pk', None)}."
            )

    # -----------------------------------------------------------
    # Read scope
    # -----------------------------------------------------------
    def is_global(self, actor: Optional[Actor]) -> bool:
        return actor is not None and self.scopes.get(actor.role) == SCOPE_GLOBAL

    def can_view(self, actor: Optional[Actor], event) -> bool:
        """
        Platform scope sees every event; any other membership sees events
        its organization owns or supervises.
        """
        if actor is None:
            return False
        if self.is_global(actor):
            return True
        if actor.organization_id is None:
            return False
        return actor.organization_id in (
            getattr(event, "supervising_entity_id", None),
            getattr(event, "owner_organization_id", None),
        )

    def ensure_can_view(self, actors: Iterable[Actor], event) -> None:
        """
        Raises NotFound so events outside the caller's organizations are
        indistinguishable from missing ones.
        """
        if not any(self.can_view(actor, event) for actor in actors):
            raise NotFound(f"Event {getattr(event, 'pk', None)} does not exist.")

    @staticmethod
    def organization_filter(organization_id: int) -> Q:
        return Q(owner_organization_id=organization_id) | Q(supervising_entity_id=organization_id)

    def visibility_filter(self, actors: Iterable[Actor]) -> Optional[Q]:
        """
        ORM counterpart of can_view() over several memberships.
        None means unrestricted.
        """
        actors = list(actors)
        if any(self.is_global(actor) for actor in actors):
            return None
        org_ids = sorted({a.organization_id for a in actors if a.organization_id is not None})
        return Q(owner_organization_id__in=org_ids) | Q(supervising_entity_id__in=org_ids)

    def allowed_actions(self, actor: Actor, event) -> List[str]:
        """
        Actions the actor could perform right now: structurally valid from the
        event's state AND authorized.
        """
        current = normalize_state(getattr(event, "status", None))
        return sorted(
            action
            for (state, action) in TRANSITION_TABLE
            if state == current and self.is_authorized(actor, action, event)
        )


default_guard = AuthorizationGuard()


__all__ = [
    "ROLE_ALIASES",
    "normalize_role",
    "Actor",
    "AuthorizationGuard",
    "default_guard",
]
