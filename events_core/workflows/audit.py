# events_core/workflows/audit.py
"""
Append-only approval trail attached to each event.
"""

from __future__ import annotations

from typing import Tuple

from events_core.models import ApprovalEntry

from .machine import AuditRecord


def record_from_entry(entry: ApprovalEntry) -> AuditRecord:
    return AuditRecord(
        timestamp=entry.timestamp,
        actor_id=entry.actor_id,
        actor_name=entry.actor_name,
        from_state=entry.from_state,
        to_state=entry.to_state,
        action=entry.action,
        comment=entry.comment or None,
    )


def append(event, record: AuditRecord) -> ApprovalEntry:
    """
    Insert exactly one entry. Callers run this inside the same atomic block
    as the status write.
    """
    return ApprovalEntry.objects.create(
        event_id=event.pk,
        timestamp=record.timestamp,
        actor_id=record.actor_id,
        actor_name=record.actor_name,
        from_state=record.from_state,
        to_state=record.to_state,
        action=record.action,
        comment=record.comment or "",
    )


def history(event) -> Tuple[AuditRecord, ...]:
    """
    Chronological (insertion) order. Returns a tuple so callers can iterate
    it any number of times and cannot modify it.
    """
    event_id = getattr(event, "pk", event)
    entries = ApprovalEntry.objects.filter(event_id=event_id).order_by("id")
    return tuple(record_from_entry(e) for e in entries)


def history_length(event) -> int:
    event_id = getattr(event, "pk", event)
    return ApprovalEntry.objects.filter(event_id=event_id).count()


__all__ = ["record_from_entry", "append", "history", "history_length"]
