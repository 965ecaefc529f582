# events_core/signals.py
from __future__ import annotations

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from events_core.models import ApprovalEntry
from events_core.tasks import notify_transition


# ===============================================================
# WORKFLOW TRANSITIONS
# ===============================================================
@receiver(post_save, sender=ApprovalEntry)
def queue_transition_notification(sender, instance: ApprovalEntry, created: bool, **kwargs):
    """
    Queue the e-mail notification once the transition has committed.
    Nothing is sent for a rolled-back transition.
    """
    if not created:
        return

    entry_id = instance.pk
    transaction.on_commit(lambda: notify_transition.delay(entry_id))
