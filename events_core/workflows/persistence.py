# events_core/workflows/persistence.py
"""
Event load/save contract used by the workflow service.

save_event() is an optimistic compare-and-set on the status column:
the row is only written if its status still equals the state the caller
read. A zero-row update means someone else moved the event first.
"""

from __future__ import annotations

from typing import Any

from django.utils import timezone

from events_core.models import Event

from .errors import Conflict, NotFound
from .rules import normalize_state


def load_event(event_id) -> Event:
    try:
        return Event.objects.select_related(
            "owner_organization",
            "supervising_entity",
        ).get(pk=event_id)
    except (Event.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"Event {event_id} does not exist.")


def save_event(event: Event, expected_prior_state: str, **fields: Any) -> None:
    """
    Write fields (including the new status) if and only if the stored status
    is still expected_prior_state. Raises Conflict otherwise.

    The in-memory instance is left alone; callers refresh it once the
    surrounding transaction has committed.
    """
    expected = normalize_state(expected_prior_state)
    fields.setdefault("updated_at", timezone.now())

    updated = (
        Event.objects
        .filter(pk=event.pk, status=expected)
        .update(**fields)
    )

    if updated != 1:
        if not Event.objects.filter(pk=event.pk).exists():
            raise NotFound(f"Event {event.pk} does not exist.")
        raise Conflict(
            f"Event {event.pk} is no longer '{expected}'. Reload and retry."
        )


__all__ = ["load_event", "save_event"]
