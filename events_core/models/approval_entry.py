from django.db import models
from django.conf import settings

from events_core.workflows.guards import AppendOnlyModelMixin
from events_core.workflows.rules import WorkflowAction, WorkflowState


class ApprovalEntry(AppendOnlyModelMixin, models.Model):
    """
    Immutable audit log for event workflow transitions.
    Insertion order is chronological order.
    """

    event = models.ForeignKey(
        "events_core.Event",
        on_delete=models.PROTECT,
        related_name="approval_entries",
    )

    timestamp = models.DateTimeField(db_index=True)

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="approval_entries",
    )
    actor_name = models.CharField(max_length=255, blank=True)

    from_state = models.CharField(max_length=32, choices=WorkflowState.choices)
    to_state = models.CharField(max_length=32, choices=WorkflowState.choices)
    action = models.CharField(max_length=32, choices=WorkflowAction.choices)

    comment = models.TextField(blank=True)

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["event", "timestamp"], name="approval_event_ts_idx"),
        ]

    def __str__(self):
        return (
            f"EVENT {self.event_id}: "
            f"{self.from_state} → {self.to_state} "
            f"by {self.actor_name or 'system'}"
        )
