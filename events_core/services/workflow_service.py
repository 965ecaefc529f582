# events_core/services/workflow_service.py
"""
Authoritative workflow execution service.

All event status transitions MUST go through this service.
Never update status directly in views, serializers or admin.

Per call:
  1. resolve the rule for (current state, action)    -> InvalidTransition
  2. authorize the actor for the concrete action      -> PermissionDenied
  3. validate the comment and build the audit record  -> ValidationError
  4. compare-and-set the status + append the record   -> Conflict
Steps 4a/4b share one transaction; a failure anywhere leaves status and
history untouched.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Iterable, Optional, Tuple

from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from events_core.models import Event
from events_core.workflows import audit
from events_core.workflows.authorization import Actor, AuthorizationGuard, default_guard
from events_core.workflows.categorizer import categorize, summary_counts_for_queryset
from events_core.workflows.errors import Conflict, WorkflowError
from events_core.workflows.machine import AuditRecord, apply_transition
from events_core.workflows.persistence import load_event, save_event
from events_core.workflows.rules import (
    WorkflowAction,
    WorkflowState,
    get_rule,
    normalize_state,
)

logger = logging.getLogger(__name__)


# Targets that stamp approved_by / approved_at.
APPROVAL_TARGETS = frozenset({
    WorkflowState.APPROVED_INTERNAL.value,
    WorkflowState.PUBLISHED.value,
})


def events_for_organization(organization_id: Optional[int] = None):
    """
    Events an organization is involved in, as owner or supervisor.
    None means every event (platform scope).
    """
    qs = Event.objects.all()
    if organization_id is None:
        return qs
    return qs.filter(AuthorizationGuard.organization_filter(organization_id))


def visible_events(
    actors: Iterable[Actor],
    organization_id: Optional[int] = None,
    guard: Optional[AuthorizationGuard] = None,
):
    """
    Events any of the given memberships may read, optionally narrowed to
    one organization.
    """
    qs = events_for_organization(organization_id)
    visible = (guard or default_guard).visibility_filter(actors)
    if visible is not None:
        qs = qs.filter(visible)
    return qs


class WorkflowService:
    def __init__(self, guard: Optional[AuthorizationGuard] = None):
        self.guard = guard or default_guard

    # -----------------------------------------------------------
    # Writes
    # -----------------------------------------------------------
    def transition(
        self,
        event_id,
        action: str,
        actor: Actor,
        comment: Optional[str] = None,
        *,
        expected_status: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Event:
        event = load_event(event_id)
        return self.transition_event(
            event,
            action,
            actor,
            comment,
            expected_status=expected_status,
            now=now,
        )

    def transition_event(
        self,
        event: Event,
        action: str,
        actor: Actor,
        comment: Optional[str] = None,
        *,
        expected_status: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Event:
        """
        Apply one transition to an already-loaded event. The state read from
        `event` is the optimistic snapshot: if the stored row has moved on by
        commit time the call fails with Conflict.
        """
        now = now or timezone.now()
        read_state = normalize_state(event.status)

        try:
            if expected_status is not None and normalize_state(expected_status) != read_state:
                raise Conflict(
                    f"Event {event.pk} is '{read_state}', not '{normalize_state(expected_status)}'."
                )

            rule = get_rule(read_state, action)
            self.guard.authorize(actor, rule.action, event)
            new_state, record = apply_transition(event, rule.action, actor, comment, now)

            fields = {"status": new_state, "updated_at": now}
            if record.comment:
                fields["approval_comments"] = record.comment
            if new_state in APPROVAL_TARGETS:
                fields["approved_by_id"] = actor.id
                fields["approved_at"] = now

            with transaction.atomic():
                save_event(event, read_state, **fields)
                audit.append(event, record)

        except WorkflowError as exc:
            logger.warning(
                "Workflow %s rejected for event %s (%s) by actor %s: %s",
                action,
                event.pk,
                read_state,
                getattr(actor, "id", None),
                exc.__class__.__name__,
            )
            raise

        logger.info(
            "Event %s %s: %s -> %s by actor %s",
            event.pk,
            record.action,
            record.from_state,
            record.to_state,
            record.actor_id,
        )

        event.refresh_from_db()
        return event

    def submit(self, event_id, actor: Actor, comment: Optional[str] = None, **kwargs) -> Event:
        return self.transition(event_id, WorkflowAction.SUBMIT, actor, comment, **kwargs)

    def approve(self, event_id, actor: Actor, comment: Optional[str] = None, **kwargs) -> Event:
        """Unified approve: the next happy-path step for the current state."""
        return self.transition(event_id, "approve", actor, comment, **kwargs)

    def approve_internal(self, event_id, actor: Actor, comment: Optional[str] = None, **kwargs) -> Event:
        return self.transition(event_id, WorkflowAction.APPROVE_INTERNAL, actor, comment, **kwargs)

    def request_public_approval(self, event_id, actor: Actor, comment: Optional[str] = None, **kwargs) -> Event:
        return self.transition(event_id, WorkflowAction.REQUEST_PUBLIC_APPROVAL, actor, comment, **kwargs)

    def approve_public(self, event_id, actor: Actor, comment: Optional[str] = None, **kwargs) -> Event:
        return self.transition(event_id, WorkflowAction.APPROVE_PUBLIC, actor, comment, **kwargs)

    def publish(self, event_id, actor: Actor, comment: Optional[str] = None, **kwargs) -> Event:
        return self.transition(event_id, WorkflowAction.PUBLISH, actor, comment, **kwargs)

    def request_changes(self, event_id, actor: Actor, comment: str, **kwargs) -> Event:
        return self.transition(event_id, WorkflowAction.REQUEST_CHANGES, actor, comment, **kwargs)

    def reject(self, event_id, actor: Actor, comment: str, **kwargs) -> Event:
        return self.transition(event_id, WorkflowAction.REJECT, actor, comment, **kwargs)

    def resubmit(self, event_id, actor: Actor, comment: Optional[str] = None, **kwargs) -> Event:
        return self.transition(event_id, WorkflowAction.RESUBMIT, actor, comment, **kwargs)

    # -----------------------------------------------------------
    # Reads
    # -----------------------------------------------------------
    def get_bucket(self, event_id, now: Optional[datetime] = None) -> str:
        return categorize(load_event(event_id), now)

    def get_summary_counts(
        self,
        organization_id: Optional[int],
        now: Optional[datetime] = None,
        *,
        events=None,
    ) -> Dict[str, int]:
        if events is None:
            events = events_for_organization(organization_id)
        return summary_counts_for_queryset(events, now)

    def visible_events(self, actors, organization_id: Optional[int] = None):
        return visible_events(actors, organization_id, self.guard)

    def get_history(self, event_id) -> Tuple[AuditRecord, ...]:
        return audit.history(load_event(event_id))

    def allowed_actions(self, event_id, actor: Actor):
        return self.guard.allowed_actions(actor, load_event(event_id))

    def approval_statistics(self, organization_id: Optional[int] = None, *, events=None) -> Dict[str, int]:
        """
        Event count per workflow state, every state present.
        """
        if events is None:
            events = events_for_organization(organization_id)
        stats = {state: 0 for state in WorkflowState.values}
        rows = (
            events
            .values("status")
            .annotate(total=Count("pk"))
            .order_by()
        )
        for row in rows:
            stats[row["status"]] = row["total"]
        return stats


workflow_service = WorkflowService()


__all__ = [
    "APPROVAL_TARGETS",
    "WorkflowService",
    "events_for_organization",
    "visible_events",
    "workflow_service",
]
