# events_core/tests/test_audit_and_guards.py

from datetime import timedelta

import pytest
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone

from events_core.models import ApprovalEntry, Event
from events_core.services.workflow_service import workflow_service
from events_core.workflows import audit
from events_core.workflows.rules import WorkflowState as S


@pytest.fixture
def recorded_entry(event, organizer_admin):
    workflow_service.submit(event.pk, organizer_admin, comment="first submission")
    return ApprovalEntry.objects.get(event=event)


# ---------------------------------------------------------------
# Append-only audit trail
# ---------------------------------------------------------------
@pytest.mark.django_db
def test_entries_cannot_be_changed(recorded_entry):
    recorded_entry.comment = "rewritten"
    with pytest.raises(DjangoPermissionDenied):
        recorded_entry.save()

    recorded_entry.refresh_from_db()
    assert recorded_entry.comment == "first submission"


@pytest.mark.django_db
def test_entries_cannot_be_deleted(recorded_entry):
    with pytest.raises(DjangoPermissionDenied):
        recorded_entry.delete()

    with pytest.raises(DjangoPermissionDenied):
        ApprovalEntry.objects.filter(pk=recorded_entry.pk).delete()

    assert ApprovalEntry.objects.filter(pk=recorded_entry.pk).exists()


@pytest.mark.django_db
def test_entries_cannot_be_bulk_updated(recorded_entry):
    with pytest.raises(DjangoPermissionDenied):
        ApprovalEntry.objects.filter(pk=recorded_entry.pk).update(comment="x")


@pytest.mark.django_db
def test_history_is_chronological_and_restartable(event, organizer_admin, entity_staff):
    workflow_service.submit(event.pk, organizer_admin)
    workflow_service.request_changes(event.pk, entity_staff, "The description needs the full schedule.")
    workflow_service.resubmit(event.pk, organizer_admin)

    history = audit.history(event)

    assert isinstance(history, tuple)
    assert [r.action for r in history] == ["submit", "request_changes", "resubmit"]
    assert list(history) == list(history)
    assert history[0].to_state == history[1].from_state
    assert history[1].to_state == history[2].from_state
    assert audit.history(event.pk) == history


@pytest.mark.django_db
def test_record_from_entry_maps_blank_comment_to_none(event, organizer_admin):
    workflow_service.submit(event.pk, organizer_admin)
    entry = ApprovalEntry.objects.get(event=event)

    assert entry.comment == ""
    assert audit.record_from_entry(entry).comment is None


# ---------------------------------------------------------------
# Status write guard
# ---------------------------------------------------------------
@pytest.mark.django_db
def test_direct_status_save_is_blocked(event):
    event.status = S.PUBLISHED.value
    with pytest.raises(DjangoPermissionDenied):
        event.save()

    assert Event.objects.get(pk=event.pk).status == S.DRAFT.value


@pytest.mark.django_db
def test_other_fields_save_normally(event):
    event.title = "Renamed"
    event.save()
    assert Event.objects.get(pk=event.pk).title == "Renamed"


@pytest.mark.django_db
def test_bypass_flag_allows_repairs(event):
    event.status = S.CANCELLED.value
    event.save(_workflow_bypass=True)
    assert Event.objects.get(pk=event.pk).status == S.CANCELLED.value


# ---------------------------------------------------------------
# Model validation
# ---------------------------------------------------------------
@pytest.mark.django_db
def test_end_before_start_is_invalid(event_factory):
    event = event_factory()
    event.end_date = event.start_date - timedelta(hours=1)
    with pytest.raises(DjangoValidationError):
        event.clean()


@pytest.mark.django_db
def test_new_events_start_in_initial_states(organizer, entity):
    start = timezone.now()
    event = Event(
        title="Feria",
        start_date=start,
        end_date=start,
        owner_organization=organizer,
        supervising_entity=entity,
        status=S.PUBLISHED.value,
    )
    with pytest.raises(DjangoValidationError):
        event.clean()

    event.status = S.PENDING_INTERNAL_APPROVAL.value
    event.clean()
