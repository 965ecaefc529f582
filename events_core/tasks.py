# events_core/tasks.py
from __future__ import annotations

import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from events_core.models import ApprovalEntry

logger = logging.getLogger(__name__)


def notification_recipients(entry: ApprovalEntry) -> list[str]:
    """
    Configured addresses plus the e-mail of both organizations on the event,
    de-duplicated, order preserved.
    """
    event = entry.event
    candidates = list(getattr(settings, "WORKFLOW_NOTIFY_EMAILS", None) or [])
    candidates += [event.owner_organization.email, event.supervising_entity.email]

    seen = set()
    out = []
    for email in candidates:
        email = (email or "").strip()
        if email and email.lower() not in seen:
            seen.add(email.lower())
            out.append(email)
    return out


@shared_task
def notify_transition(entry_id: int) -> int:
    """
    E-mail a recorded transition. Returns the number of messages sent.
    """
    if not getattr(settings, "WORKFLOW_EMAIL_NOTIFICATIONS", False):
        return 0

    entry = (
        ApprovalEntry.objects
        .select_related("event__owner_organization", "event__supervising_entity")
        .filter(pk=entry_id)
        .first()
    )
    if entry is None:
        logger.warning("notify_transition: approval entry %s not found", entry_id)
        return 0

    recipients = notification_recipients(entry)
    if not recipients:
        return 0

    event = entry.event
    subject = f"[Calendar] {event.title}: {entry.from_state} -> {entry.to_state}"

    lines = [
        "Event workflow transition recorded.",
        "",
        f"Event: {event.title} (#{event.pk})",
        f"Organizer: {event.owner_organization.name}",
        f"Supervising entity: {event.supervising_entity.name}",
        f"Action: {entry.action}",
        f"From: {entry.from_state}",
        f"To: {entry.to_state}",
        f"By: {entry.actor_name or 'system'}",
        f"At: {entry.timestamp}",
    ]
    if entry.comment:
        lines += ["", "Comment:", entry.comment]

    return send_mail(
        subject=subject,
        message="\n".join(lines),
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=recipients,
        fail_silently=True,
    )
