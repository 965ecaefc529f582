# events_core/models/core.py

from datetime import timedelta

from django.db import models
from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.conf import settings
from django.utils import timezone

from events_core.workflows.guards import WorkflowWriteGuardMixin
from events_core.workflows.rules import INITIAL_STATES, Role, WorkflowState


# Events starting within this many days are flagged as urgent.
URGENT_WITHIN_DAYS = 3


# ============================================================
# Base
# ============================================================
class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


# ============================================================
# Organization
# ============================================================
class Organization(TimeStampedModel):
    """
    Either a government entity that supervises events, or an external
    organizer that submits them.
    """

    GOVERNMENT_ENTITY = "government_entity"
    ORGANIZER = "organizer"

    KIND_CHOICES = [
        (GOVERNMENT_ENTITY, "Government entity"),
        (ORGANIZER, "Organizer"),
    ]

    name = models.CharField(max_length=255, unique=True)
    kind = models.CharField(max_length=32, choices=KIND_CHOICES, default=ORGANIZER)
    email = models.EmailField(blank=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return self.name


# ============================================================
# User Roles
# ============================================================
class UserRole(TimeStampedModel):
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="calendar_roles",
    )
    organization = models.ForeignKey(
        Organization,
        on_delete=models.PROTECT,
        related_name="user_roles",
        null=True,
        blank=True,
    )
    role = models.CharField(max_length=32, choices=Role.choices)

    class Meta:
        unique_together = ("user", "organization", "role")

    def clean(self):
        if self.role != Role.PLATFORM_ADMIN and self.organization_id is None:
            raise ValidationError("Only platform admins may hold a role without an organization.")

    def __str__(self):
        return f"{self.user.username} - {self.role}"


# ============================================================
# Event
# ============================================================
class Event(WorkflowWriteGuardMixin, TimeStampedModel):
    WORKFLOW_FIELD = "status"

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    start_date = models.DateTimeField(db_index=True)
    end_date = models.DateTimeField(db_index=True)

    owner_organization = models.ForeignKey(
        Organization,
        on_delete=models.PROTECT,
        related_name="owned_events",
    )
    supervising_entity = models.ForeignKey(
        Organization,
        on_delete=models.PROTECT,
        related_name="supervised_events",
    )

    status = models.CharField(
        max_length=32,
        choices=WorkflowState.choices,
        default=WorkflowState.DRAFT.value,
        editable=False,
        db_index=True,
    )

    approval_comments = models.TextField(blank=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_events",
    )
    approved_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_events",
    )

    class Meta:
        ordering = ["start_date", "id"]

    def clean(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError("Event end date must not be before its start date.")

        if self.pk is None and str(self.status) not in INITIAL_STATES:
            raise ValidationError(
                f"Events are created as {' or '.join(sorted(INITIAL_STATES))}."
            )

    # --------------------------------------------------------
    # Time flags
    # --------------------------------------------------------
    def has_ended(self, now=None) -> bool:
        now = now or timezone.now()
        return self.end_date < now

    def is_happening(self, now=None) -> bool:
        now = now or timezone.now()
        return self.start_date <= now <= self.end_date

    def is_upcoming(self, now=None) -> bool:
        now = now or timezone.now()
        return self.start_date > now

    def days_until_start(self, now=None) -> int:
        now = now or timezone.now()
        delta = self.start_date - now
        # ceil to whole days
        return -((-delta) // timedelta(days=1))

    def is_urgent(self, now=None) -> bool:
        if self.has_ended(now):
            return False
        return 0 < self.days_until_start(now) <= URGENT_WITHIN_DAYS

    def is_in_approval_workflow(self) -> bool:
        return str(self.status) in {
            WorkflowState.PENDING_INTERNAL_APPROVAL.value,
            WorkflowState.APPROVED_INTERNAL.value,
            WorkflowState.PENDING_PUBLIC_APPROVAL.value,
            WorkflowState.REQUIRES_CHANGES.value,
        }

    def __str__(self):
        return self.title
