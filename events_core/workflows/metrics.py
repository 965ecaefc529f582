from datetime import timedelta
from typing import Dict

from django.utils.timezone import now as tz_now

from events_core.models import ApprovalEntry
from events_core.workflows.rules import is_terminal


def state_entered_at(event):
    """
    When the event entered its current state: the latest transition,
    or creation time if it never moved.
    """
    last = (
        ApprovalEntry.objects
        .filter(event_id=event.pk)
        .order_by("-id")
        .values_list("timestamp", flat=True)
        .first()
    )
    return last or event.created_at


def compute_time_in_states(*, event, now=None) -> Dict[str, timedelta]:
    """
    Returns time spent in each workflow state.

    Example output:
    {
        "draft": timedelta(hours=2),
        "pending_internal_approval": timedelta(days=1),
        "approved_internal": timedelta(hours=3),
    }
    """
    now = now or tz_now()

    entries = list(
        ApprovalEntry.objects
        .filter(event_id=event.pk)
        .order_by("id")
    )

    durations: Dict[str, timedelta] = {}

    if not entries:
        durations[str(event.status)] = now - event.created_at
        return durations

    # Time before the first recorded transition
    first = entries[0]
    durations[first.from_state] = first.timestamp - event.created_at

    for i, current in enumerate(entries):
        start = current.timestamp

        if i + 1 < len(entries):
            end = entries[i + 1].timestamp
        else:
            end = now

        durations[current.to_state] = (
            durations.get(current.to_state, timedelta()) + (end - start)
        )

    return durations


def current_state_duration(event, now=None, entered_at=None) -> Dict[str, object]:
    """
    Human-sized age of the current state: whole days, else hours, else
    minutes (never less than one minute).
    """
    now = now or tz_now()
    entered_at = entered_at or state_entered_at(event)
    delta = max(now - entered_at, timedelta())

    days = delta.days
    hours = int(delta.total_seconds() // 3600)
    minutes = int(delta.total_seconds() // 60)

    if days > 0:
        value, unit = days, "day" if days == 1 else "days"
    elif hours > 0:
        value, unit = hours, "hour" if hours == 1 else "hours"
    else:
        value = max(1, minutes)
        unit = "minute" if value == 1 else "minutes"

    return {
        "value": value,
        "unit": unit,
        "formatted": f"{value} {unit}",
        "seconds": int(delta.total_seconds()),
    }


def total_cycle_time(*, event, now=None) -> timedelta:
    """
    Time from creation to the last transition (or now, if still moving).
    """
    now = now or tz_now()
    last = (
        ApprovalEntry.objects
        .filter(event_id=event.pk)
        .order_by("-id")
        .first()
    )
    if last and is_terminal(last.to_state):
        return last.timestamp - event.created_at
    return now - event.created_at
