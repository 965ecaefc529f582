# events_core/tests/test_dashboard_api.py

from datetime import timedelta

import pytest
from django.utils import timezone

from events_core.models import Event, UserRole
from events_core.workflows.rules import Role as R, WorkflowState as S


@pytest.fixture
def board(event_factory, other_organizer, other_entity):
    """
    Events supervised by `entity`, plus one that belongs to someone else.
    """
    return {
        "action": event_factory(S.PENDING_INTERNAL_APPROVAL.value, title="Wine Fest", starts_in=20),
        "action_soon": event_factory(S.REQUIRES_CHANGES.value, title="Craft Fair", starts_in=5),
        "draft": event_factory(S.DRAFT.value, title="Jazz Night"),
        "published": event_factory(S.PUBLISHED.value, title="Marathon"),
        "ended": event_factory(S.PUBLISHED.value, title="Old Parade", starts_in=-10),
        "rejected": event_factory(S.REJECTED.value, title="Cancelled Expo"),
        "foreign": event_factory(
            S.PENDING_INTERNAL_APPROVAL.value,
            title="Elsewhere",
            owner_organization=other_organizer,
            supervising_entity=other_entity,
        ),
    }


@pytest.mark.django_db
def test_summary_counts_for_entity(api_client, board, entity_admin_user):
    api_client.force_authenticate(user=entity_admin_user)
    resp = api_client.get("/calendar/dashboard/summary/")

    assert resp.status_code == 200
    assert resp.json() == {"requires-action": 2, "pending": 1, "published": 1, "historic": 2}


@pytest.mark.django_db
def test_platform_admin_summary_can_pick_organization(api_client, board, platform_admin_user, other_entity):
    api_client.force_authenticate(user=platform_admin_user)

    everyone = api_client.get("/calendar/dashboard/summary/").json()
    assert everyone["requires-action"] == 3

    scoped = api_client.get(f"/calendar/dashboard/summary/?organization={other_entity.pk}").json()
    assert scoped == {"requires-action": 1, "pending": 0, "published": 0, "historic": 0}


@pytest.mark.django_db
def test_tab_listing_matches_summary(api_client, board, entity_staff_user):
    api_client.force_authenticate(user=entity_staff_user)
    summary = api_client.get("/calendar/dashboard/summary/").json()

    for tab, count in summary.items():
        resp = api_client.get(f"/calendar/dashboard/events/?tab={tab}")
        assert resp.status_code == 200, tab
        assert resp.json()["count"] == count, tab


@pytest.mark.django_db
def test_requires_action_is_ordered_by_start_date(api_client, board, entity_staff_user):
    api_client.force_authenticate(user=entity_staff_user)
    resp = api_client.get("/calendar/dashboard/events/?tab=requires-action")

    titles = [row["title"] for row in resp.json()["results"]]
    assert titles == ["Craft Fair", "Wine Fest"]


@pytest.mark.django_db
def test_default_tab_is_requires_action(api_client, board, entity_staff_user):
    api_client.force_authenticate(user=entity_staff_user)
    resp = api_client.get("/calendar/dashboard/events/")
    assert resp.json()["count"] == 2


@pytest.mark.django_db
def test_historic_is_ordered_by_last_update(api_client, board, entity_staff_user):
    now = timezone.now()
    Event.objects.filter(pk=board["ended"].pk).update(updated_at=now - timedelta(days=2))
    Event.objects.filter(pk=board["rejected"].pk).update(updated_at=now - timedelta(hours=1))

    api_client.force_authenticate(user=entity_staff_user)
    resp = api_client.get("/calendar/dashboard/events/?tab=historic")

    titles = [row["title"] for row in resp.json()["results"]]
    assert titles == ["Cancelled Expo", "Old Parade"]


@pytest.mark.django_db
def test_search_by_title_and_organization(api_client, board, entity_staff_user, organizer):
    api_client.force_authenticate(user=entity_staff_user)

    resp = api_client.get("/calendar/dashboard/events/?tab=requires-action&search=wine")
    assert [row["title"] for row in resp.json()["results"]] == ["Wine Fest"]

    resp = api_client.get(f"/calendar/dashboard/events/?tab=requires-action&search={organizer.name[:8]}")
    assert resp.json()["count"] == 2


@pytest.mark.django_db
def test_rows_carry_duration_and_time_flags(api_client, board, entity_staff_user):
    api_client.force_authenticate(user=entity_staff_user)
    resp = api_client.get("/calendar/dashboard/events/?tab=requires-action")

    row = resp.json()["results"][0]
    assert row["current_state_duration"]["unit"] in {"minute", "minutes", "hour", "hours", "day", "days"}
    assert row["is_upcoming"] is True
    assert row["has_ended"] is False
    assert row["is_urgent"] is False
    assert row["supervising_entity"]["id"] == board["action"].supervising_entity_id


@pytest.mark.django_db
def test_unknown_tab_is_400(api_client, board, entity_staff_user):
    api_client.force_authenticate(user=entity_staff_user)
    resp = api_client.get("/calendar/dashboard/events/?tab=archive")
    assert resp.status_code == 400
    assert "tab" in resp.json()


@pytest.mark.django_db
def test_pagination(api_client, event_factory, entity_staff_user):
    for _ in range(5):
        event_factory(S.DRAFT.value)

    api_client.force_authenticate(user=entity_staff_user)
    resp = api_client.get("/calendar/dashboard/events/?tab=pending&per_page=2&page=2")

    body = resp.json()
    assert body["count"] == 5
    assert len(body["results"]) == 2
    assert body["next"] is not None
    assert body["previous"] is not None


@pytest.mark.django_db
def test_statistics(api_client, board, entity_admin_user):
    api_client.force_authenticate(user=entity_admin_user)
    resp = api_client.get("/calendar/dashboard/statistics/")

    body = resp.json()
    assert body["total"] == 6
    assert set(body["by_state"]) == set(S.values)
    assert body["by_state"][S.PUBLISHED.value] == 2
    assert body["by_state"][S.CANCELLED.value] == 0


@pytest.mark.django_db
def test_dashboard_covers_every_membership(api_client, board, make_member, entity, other_entity):
    user = make_member(R.ENTITY_STAFF.value, entity)
    UserRole.objects.create(user=user, organization=other_entity, role=R.ENTITY_STAFF.value)
    api_client.force_authenticate(user=user)

    summary = api_client.get("/calendar/dashboard/summary/").json()
    assert summary["requires-action"] == 3
    assert api_client.get("/calendar/dashboard/events/").json()["count"] == 3
    assert api_client.get("/calendar/dashboard/statistics/").json()["total"] == len(board)

    narrowed = api_client.get(f"/calendar/dashboard/summary/?organization={other_entity.pk}").json()
    assert narrowed == {"requires-action": 1, "pending": 0, "published": 0, "historic": 0}


@pytest.mark.django_db
def test_dashboard_for_unrelated_organization_is_empty(api_client, board, entity_staff_user, other_entity):
    api_client.force_authenticate(user=entity_staff_user)
    resp = api_client.get(f"/calendar/dashboard/summary/?organization={other_entity.pk}")

    assert resp.status_code == 200
    assert resp.json() == {"requires-action": 0, "pending": 0, "published": 0, "historic": 0}
