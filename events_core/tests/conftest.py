# events_core/tests/conftest.py

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Callable, Optional

import pytest
from django.contrib.auth import authenticate, get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from events_core.models import Event, Organization, UserRole
from events_core.workflows.authorization import Actor
from events_core.workflows.rules import Role, WorkflowState


def _rand(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class AuthAPIClient(APIClient):
    """
    Test client that uses force_authenticate for predictable DRF auth.
    """

    _user = None

    def login(self, username: str, password: str, **kwargs) -> bool:  # type: ignore[override]
        user = authenticate(username=username, password=password)
        if not user:
            return False
        self.force_authenticate(user=user)
        self._user = user
        return True

    def logout(self) -> None:  # type: ignore[override]
        super().logout()
        self.handler._force_user = None
        self.handler._force_token = None
        self._user = None


@pytest.fixture
def api_client() -> AuthAPIClient:
    return AuthAPIClient()


# ------------------------------------------------------------------
# Organizations
# ------------------------------------------------------------------
@pytest.fixture
def entity(db) -> Organization:
    return Organization.objects.create(
        name=_rand("Ente Turismo"),
        kind=Organization.GOVERNMENT_ENTITY,
        email="entity@example.com",
    )


@pytest.fixture
def other_entity(db) -> Organization:
    return Organization.objects.create(
        name=_rand("Other Entity"),
        kind=Organization.GOVERNMENT_ENTITY,
    )


@pytest.fixture
def organizer(db) -> Organization:
    return Organization.objects.create(
        name=_rand("Festival Org"),
        kind=Organization.ORGANIZER,
        email="organizer@example.com",
    )


@pytest.fixture
def other_organizer(db) -> Organization:
    return Organization.objects.create(
        name=_rand("Other Organizer"),
        kind=Organization.ORGANIZER,
    )


# ------------------------------------------------------------------
# Users & memberships
# ------------------------------------------------------------------
@pytest.fixture
def make_member(db) -> Callable:
    """
    make_member(role, organization) -> User with that calendar role.
    Password is always "pass123".
    """
    User = get_user_model()

    def _make(role: str, organization: Optional[Organization] = None, username: Optional[str] = None):
        user = User.objects.create_user(
            username=username or _rand(str(role)),
            password="pass123",
            first_name=str(role).replace("_", " ").title(),
        )
        UserRole.objects.create(user=user, organization=organization, role=role)
        return user

    return _make


@pytest.fixture
def platform_admin_user(make_member):
    return make_member(Role.PLATFORM_ADMIN.value, None, username="platform")


@pytest.fixture
def entity_admin_user(make_member, entity):
    return make_member(Role.ENTITY_ADMIN.value, entity, username="entity_admin")


@pytest.fixture
def entity_staff_user(make_member, entity):
    return make_member(Role.ENTITY_STAFF.value, entity, username="entity_staff")


@pytest.fixture
def organizer_user(make_member, organizer):
    return make_member(Role.ORGANIZER_ADMIN.value, organizer, username="organizer")


def actor_for(user, role: str, organization: Optional[Organization] = None) -> Actor:
    return Actor(
        id=user.pk,
        name=user.get_full_name() or user.get_username(),
        role=role,
        organization_id=organization.pk if organization else None,
    )


@pytest.fixture
def platform_admin(platform_admin_user) -> Actor:
    return actor_for(platform_admin_user, Role.PLATFORM_ADMIN.value)


@pytest.fixture
def entity_admin(entity_admin_user, entity) -> Actor:
    return actor_for(entity_admin_user, Role.ENTITY_ADMIN.value, entity)


@pytest.fixture
def entity_staff(entity_staff_user, entity) -> Actor:
    return actor_for(entity_staff_user, Role.ENTITY_STAFF.value, entity)


@pytest.fixture
def organizer_admin(organizer_user, organizer) -> Actor:
    return actor_for(organizer_user, Role.ORGANIZER_ADMIN.value, organizer)


@pytest.fixture
def actors(platform_admin, entity_admin, entity_staff, organizer_admin):
    """Role value -> in-scope Actor for events of (organizer, entity)."""
    return {
        Role.PLATFORM_ADMIN.value: platform_admin,
        Role.ENTITY_ADMIN.value: entity_admin,
        Role.ENTITY_STAFF.value: entity_staff,
        Role.ORGANIZER_ADMIN.value: organizer_admin,
    }


# ------------------------------------------------------------------
# Events
# ------------------------------------------------------------------
@pytest.fixture
def event_factory(db, organizer, entity) -> Callable:
    """
    event_factory(status="draft", starts_in=days, lasts=days, **overrides)

    Inserts directly (new rows are not workflow-guarded), so any state can
    be set up.
    """

    def _make(
        status: str = WorkflowState.DRAFT.value,
        *,
        starts_in: float = 10,
        lasts: float = 1,
        now=None,
        **overrides,
    ) -> Event:
        now = now or timezone.now()
        start = now + timedelta(days=starts_in)
        kwargs = {
            "title": _rand("Event"),
            "description": "Test event",
            "start_date": start,
            "end_date": start + timedelta(days=lasts),
            "owner_organization": organizer,
            "supervising_entity": entity,
            "status": str(status),
        }
        kwargs.update(overrides)
        return Event.objects.create(**kwargs)

    return _make


@pytest.fixture
def event(event_factory) -> Event:
    return event_factory()
