# events_core/services/dashboard.py
"""
Entity dashboard reads: tab listing, per-row payload, approval statistics.

Tab membership always goes through categorizer.query_filter(), the same
predicate the summary counters use.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from django.db.models import Q
from django.utils import timezone

from events_core.workflows.categorizer import HISTORIC, query_filter
from events_core.workflows.metrics import current_state_duration

from .workflow_service import events_for_organization, workflow_service


def tab_queryset(
    tab: str,
    *,
    organization_id: Optional[int] = None,
    events=None,
    search: str = "",
    now: Optional[datetime] = None,
):
    """
    Events for one dashboard tab.

    `events` is an already-scoped queryset; without it the listing covers
    `organization_id` (or everything when that is None).

    Raises ValidationError (field "tab") for an unknown tab.
    """
    now = now or timezone.now()
    if events is None:
        events = events_for_organization(organization_id)
    qs = (
        events
        .filter(query_filter(tab, now))
        .select_related("owner_organization", "supervising_entity")
    )

    term = (search or "").strip()
    if term:
        qs = qs.filter(
            Q(title__icontains=term)
            | Q(owner_organization__name__icontains=term)
            | Q(supervising_entity__name__icontains=term)
        )

    if str(tab).strip().lower() == HISTORIC:
        return qs.order_by("-updated_at", "-id")
    return qs.order_by("start_date", "updated_at", "id")


def dashboard_row(event, now: Optional[datetime] = None) -> Dict:
    now = now or timezone.now()
    return {
        "id": event.pk,
        "title": event.title,
        "start_date": event.start_date,
        "end_date": event.end_date,
        "status": str(event.status),
        "status_display": event.get_status_display(),
        "owner_organization": {
            "id": event.owner_organization_id,
            "name": event.owner_organization.name,
        },
        "supervising_entity": {
            "id": event.supervising_entity_id,
            "name": event.supervising_entity.name,
        },
        "current_state_duration": current_state_duration(event, now=now),
        "is_happening": event.is_happening(now),
        "has_ended": event.has_ended(now),
        "is_upcoming": event.is_upcoming(now),
        "is_urgent": event.is_urgent(now),
        "created_at": event.created_at,
        "updated_at": event.updated_at,
    }


def approval_statistics(organization_id: Optional[int] = None, events=None) -> Dict:
    by_state = workflow_service.approval_statistics(organization_id, events=events)
    return {
        "total": sum(by_state.values()),
        "by_state": by_state,
    }


__all__ = ["tab_queryset", "dashboard_row", "approval_statistics"]
