# events_core/tests/test_workflow_api.py

import pytest
from django.contrib.auth import get_user_model

from events_core.models import ApprovalEntry, Event, UserRole
from events_core.workflows.rules import Role as R, WorkflowState as S


def _transition_url(event, action):
    return f"/calendar/events/{event.pk}/workflow/{action}/"


def _status(event):
    return Event.objects.values_list("status", flat=True).get(pk=event.pk)


# ---------------------------------------------------------------
# Open endpoints / auth
# ---------------------------------------------------------------
@pytest.mark.django_db
def test_health_is_public(api_client):
    resp = api_client.get("/calendar/health/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.django_db
def test_transition_requires_authentication(api_client, event):
    resp = api_client.post(_transition_url(event, "submit"), {}, format="json")
    assert resp.status_code in (401, 403)
    assert _status(event) == S.DRAFT.value


@pytest.mark.django_db
def test_user_without_calendar_role_is_forbidden(api_client, event):
    nobody = get_user_model().objects.create_user(username="nobody", password="pass123")
    api_client.force_authenticate(user=nobody)

    resp = api_client.post(_transition_url(event, "submit"), {}, format="json")
    assert resp.status_code == 403


@pytest.mark.django_db
def test_workflow_definition(api_client, organizer_user):
    api_client.force_authenticate(user=organizer_user)
    resp = api_client.get("/calendar/workflows/definition/")
    assert resp.status_code == 200
    assert "draft" in resp.json()["states"]


# ---------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------
@pytest.mark.django_db
def test_organizer_submits_and_entity_approves(api_client, event, organizer_user, entity_admin_user):
    api_client.force_authenticate(user=organizer_user)
    resp = api_client.post(_transition_url(event, "submit"), {}, format="json")
    assert resp.status_code == 200, resp.content
    assert resp.json()["status"] == S.PENDING_INTERNAL_APPROVAL.value

    api_client.force_authenticate(user=entity_admin_user)
    resp = api_client.post(
        _transition_url(event, "approve"),
        {"comment": "Looks good", "expected_status": S.PENDING_INTERNAL_APPROVAL.value},
        format="json",
    )
    assert resp.status_code == 200, resp.content
    body = resp.json()
    assert body["status"] == S.APPROVED_INTERNAL.value
    assert body["approved_by"] == entity_admin_user.pk
    assert body["approval_comments"] == "Looks good"
    assert ApprovalEntry.objects.filter(event=event).count() == 2


@pytest.mark.django_db
def test_camel_case_action_in_url(api_client, event_factory, entity_staff_user):
    event = event_factory(S.PENDING_INTERNAL_APPROVAL.value)
    api_client.force_authenticate(user=entity_staff_user)

    resp = api_client.post(_transition_url(event, "approveInternal"), {}, format="json")
    assert resp.status_code == 200
    assert _status(event) == S.APPROVED_INTERNAL.value


@pytest.mark.django_db
def test_short_reject_reason_is_400(api_client, event_factory, entity_admin_user):
    event = event_factory(S.PENDING_INTERNAL_APPROVAL.value)
    api_client.force_authenticate(user=entity_admin_user)

    resp = api_client.post(_transition_url(event, "reject"), {"comment": "short"}, format="json")
    assert resp.status_code == 400
    assert "comment" in resp.json()
    assert _status(event) == S.PENDING_INTERNAL_APPROVAL.value
    assert not ApprovalEntry.objects.filter(event=event).exists()


@pytest.mark.django_db
def test_terminal_event_is_400(api_client, event_factory, entity_admin_user):
    event = event_factory(S.PUBLISHED.value)
    api_client.force_authenticate(user=entity_admin_user)

    resp = api_client.post(
        _transition_url(event, "request_changes"),
        {"comment": "too short"},
        format="json",
    )
    assert resp.status_code == 400
    assert "published" in str(resp.json()["detail"])


@pytest.mark.django_db
def test_wrong_role_is_403(api_client, event_factory, organizer_user):
    event = event_factory(S.PENDING_PUBLIC_APPROVAL.value)
    api_client.force_authenticate(user=organizer_user)

    resp = api_client.post(_transition_url(event, "publish"), {}, format="json")
    assert resp.status_code == 403
    assert _status(event) == S.PENDING_PUBLIC_APPROVAL.value


@pytest.mark.django_db
def test_stale_expected_status_is_409(api_client, event, organizer_user):
    api_client.force_authenticate(user=organizer_user)

    resp = api_client.post(
        _transition_url(event, "submit"),
        {"expected_status": S.REQUIRES_CHANGES.value},
        format="json",
    )
    assert resp.status_code == 409
    assert _status(event) == S.DRAFT.value


@pytest.mark.django_db
def test_unknown_event_is_404(api_client, organizer_user):
    api_client.force_authenticate(user=organizer_user)
    resp = api_client.post("/calendar/events/987654/workflow/submit/", {}, format="json")
    assert resp.status_code == 404


@pytest.mark.django_db
def test_superuser_acts_as_platform_admin(api_client, event_factory):
    event = event_factory(S.PENDING_PUBLIC_APPROVAL.value)
    root = get_user_model().objects.create_superuser(username="root", password="pass123", email="r@x.org")
    api_client.force_authenticate(user=root)

    resp = api_client.post(_transition_url(event, "publish"), {}, format="json")
    assert resp.status_code == 200
    assert _status(event) == S.PUBLISHED.value


# ---------------------------------------------------------------
# Introspection
# ---------------------------------------------------------------
@pytest.mark.django_db
def test_allowed_actions_endpoint(api_client, event, organizer_user, entity_staff_user):
    api_client.force_authenticate(user=organizer_user)
    resp = api_client.get(f"/calendar/events/{event.pk}/workflow/allowed/")
    assert resp.status_code == 200
    assert resp.json()["allowed"] == ["submit"]
    assert resp.json()["role"] == R.ORGANIZER_ADMIN.value

    api_client.force_authenticate(user=entity_staff_user)
    resp = api_client.get(f"/calendar/events/{event.pk}/workflow/allowed/")
    assert resp.json()["allowed"] == ["reject", "request_changes", "submit"]


@pytest.mark.django_db
def test_history_endpoint(api_client, event, organizer_user, entity_staff_user):
    api_client.force_authenticate(user=organizer_user)
    api_client.post(_transition_url(event, "submit"), {}, format="json")

    api_client.force_authenticate(user=entity_staff_user)
    api_client.post(
        _transition_url(event, "request_changes"),
        {"comment": "Add the ticket prices, please."},
        format="json",
    )

    resp = api_client.get(f"/calendar/events/{event.pk}/workflow/history/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["current"] == S.REQUIRES_CHANGES.value
    assert [e["action"] for e in body["entries"]] == ["submit", "request_changes"]
    assert body["entries"][1]["comment"] == "Add the ticket prices, please."
    assert S.REQUIRES_CHANGES.value in body["time_in_states"]


@pytest.mark.django_db
def test_history_and_allowed_are_hidden_from_other_organizations(
    api_client, event_factory, entity_admin_user, make_member, other_entity, other_organizer
):
    event = event_factory(S.PENDING_INTERNAL_APPROVAL.value)
    api_client.force_authenticate(user=entity_admin_user)
    resp = api_client.post(
        _transition_url(event, "reject"),
        {"comment": "Venue permit was withdrawn by the council."},
        format="json",
    )
    assert resp.status_code == 200

    for outsider in (
        make_member(R.ENTITY_STAFF.value, other_entity),
        make_member(R.ENTITY_ADMIN.value, other_entity),
        make_member(R.ORGANIZER_ADMIN.value, other_organizer),
    ):
        api_client.force_authenticate(user=outsider)
        for path in ("history", "allowed"):
            resp = api_client.get(f"/calendar/events/{event.pk}/workflow/{path}/")
            assert resp.status_code == 404, (outsider.username, path)
            assert "withdrawn" not in resp.content.decode()


@pytest.mark.django_db
def test_history_is_visible_to_owner_supervisor_and_platform(
    api_client, event, organizer_user, entity_staff_user, platform_admin_user
):
    api_client.force_authenticate(user=organizer_user)
    api_client.post(_transition_url(event, "submit"), {}, format="json")

    for user in (organizer_user, entity_staff_user, platform_admin_user):
        api_client.force_authenticate(user=user)
        resp = api_client.get(f"/calendar/events/{event.pk}/workflow/history/")
        assert resp.status_code == 200, user.username
        assert len(resp.json()["entries"]) == 1


@pytest.mark.django_db
def test_membership_is_chosen_per_action(api_client, event_factory, make_member, entity, organizer):
    # staff of the supervising entity who also runs the owning organizer
    user = make_member(R.ENTITY_STAFF.value, entity)
    UserRole.objects.create(user=user, organization=organizer, role=R.ORGANIZER_ADMIN.value)
    event = event_factory(S.REQUIRES_CHANGES.value)
    api_client.force_authenticate(user=user)

    resp = api_client.get(f"/calendar/events/{event.pk}/workflow/allowed/")
    assert resp.json()["role"] == R.ENTITY_STAFF.value

    resp = api_client.post(_transition_url(event, "resubmit"), {}, format="json")
    assert resp.status_code == 200, resp.content
    assert _status(event) == S.PENDING_INTERNAL_APPROVAL.value

    resp = api_client.post(_transition_url(event, "approve"), {}, format="json")
    assert resp.status_code == 200, resp.content
    entry = ApprovalEntry.objects.filter(event=event).order_by("-id").first()
    assert entry.action == "approve_internal"
    assert Event.objects.get(pk=event.pk).approved_by_id == user.pk


# ---------------------------------------------------------------
# Read-only events endpoint
# ---------------------------------------------------------------
@pytest.mark.django_db
def test_events_list_is_scoped(api_client, event_factory, organizer_user, make_member, other_organizer, other_entity):
    mine = event_factory()
    event_factory(owner_organization=other_organizer, supervising_entity=other_entity)

    api_client.force_authenticate(user=organizer_user)
    resp = api_client.get("/calendar/events/")
    assert resp.status_code == 200
    assert [row["id"] for row in resp.json()["results"]] == [mine.pk]

    stranger = make_member(R.ORGANIZER_ADMIN.value, other_organizer)
    api_client.force_authenticate(user=stranger)
    resp = api_client.get(f"/calendar/events/{mine.pk}/")
    assert resp.status_code == 404


@pytest.mark.django_db
def test_events_cannot_be_written_through_the_api(api_client, event, organizer_user):
    api_client.force_authenticate(user=organizer_user)
    resp = api_client.patch(f"/calendar/events/{event.pk}/", {"status": "published"}, format="json")
    assert resp.status_code == 405
    assert _status(event) == S.DRAFT.value
