# events_core/permissions.py
from __future__ import annotations

from typing import List, Optional

from rest_framework.exceptions import NotAuthenticated
from rest_framework.permissions import BasePermission

from .models import UserRole
from .workflows.authorization import Actor, default_guard
from .workflows.errors import InvalidTransition, PermissionDenied
from .workflows.rules import Role, resolve_action


# Preferred membership when a user holds several.
ROLE_PRIORITY = (
    Role.PLATFORM_ADMIN.value,
    Role.ENTITY_ADMIN.value,
    Role.ENTITY_STAFF.value,
    Role.ORGANIZER_ADMIN.value,
)


# ------------------------------------------------------------------
# Utilities
# ------------------------------------------------------------------
def _parse_int(value) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def requested_organization_id(request) -> Optional[int]:
    """
    Priority:
      1) ?organization=<id>
      2) X-Organization header
    """
    org_id = _parse_int(getattr(request, "query_params", {}).get("organization"))
    if org_id is None:
        org_id = _parse_int(getattr(request, "headers", {}).get("X-Organization"))
    return org_id


def _display_name(user) -> str:
    full = (user.get_full_name() or "").strip() if hasattr(user, "get_full_name") else ""
    return full or user.get_username()


def actors_for_user(user, *, organization_id: Optional[int] = None) -> List[Actor]:
    """
    One Actor per calendar membership of a Django user.

    Superusers act as platform_admin. An explicit organization keeps only
    memberships in that organization (platform memberships always stay).
    May return an empty list.
    """
    if not user or not getattr(user, "is_authenticated", False):
        raise NotAuthenticated("Authentication credentials were not provided.")

    name = _display_name(user)

    if getattr(user, "is_superuser", False):
        return [Actor(id=user.pk, name=name, role=Role.PLATFORM_ADMIN, organization_id=organization_id)]

    actors = [
        Actor(id=user.pk, name=name, role=role, organization_id=org)
        for role, org in UserRole.objects.filter(user=user).values_list("role", "organization_id")
    ]

    if organization_id is not None:
        actors = [
            a for a in actors
            if a.organization_id == organization_id or default_guard.is_global(a)
        ]
    return actors


def _rank(actor: Actor) -> int:
    return ROLE_PRIORITY.index(actor.role) if actor.role in ROLE_PRIORITY else len(ROLE_PRIORITY)


def actor_for_user(
    user,
    *,
    organization_id: Optional[int] = None,
    event=None,
    action: Optional[str] = None,
) -> Actor:
    """
    Build the Actor for a Django user.

    Membership choice:
      - an explicit organization narrows memberships to that organization
      - with an event and an action, memberships authorized for that action
        on that event are preferred
      - with an event, memberships in its supervising entity or owning
        organization are preferred
      - ties resolve by ROLE_PRIORITY
    """
    actors = actors_for_user(user, organization_id=organization_id)

    if event is not None and action is not None:
        try:
            concrete = resolve_action(getattr(event, "status", None), action)
        except InvalidTransition:
            concrete = None
        if concrete:
            authorized = [a for a in actors if default_guard.is_authorized(a, concrete, event)]
            actors = authorized or actors

    if event is not None and organization_id is None:
        related = [a for a in actors if default_guard.can_view(a, event)]
        actors = related or actors

    if not actors:
        raise PermissionDenied("You have no role in this organization.")

    return sorted(actors, key=_rank)[0]


def actors_from_request(request) -> List[Actor]:
    return actors_for_user(request.user, organization_id=requested_organization_id(request))


def actor_from_request(request, event=None, action: Optional[str] = None) -> Actor:
    return actor_for_user(
        request.user,
        organization_id=requested_organization_id(request),
        event=event,
        action=action,
    )


# ------------------------------------------------------------------
# Permission class
# ------------------------------------------------------------------
class HasCalendarRole(BasePermission):
    """
    Authenticated users holding at least one calendar role (or superusers).
    Action-level checks happen in the workflow guard.
    """

    message = "A calendar role is required."

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        if user.is_superuser:
            return True
        return UserRole.objects.filter(user=user).exists()
