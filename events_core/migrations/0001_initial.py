from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


STATE_CHOICES = [
    ("draft", "Draft"),
    ("pending_internal_approval", "Pending internal approval"),
    ("approved_internal", "Approved internal"),
    ("pending_public_approval", "Pending public approval"),
    ("published", "Published"),
    ("requires_changes", "Requires changes"),
    ("rejected", "Rejected"),
    ("cancelled", "Cancelled"),
]

ACTION_CHOICES = [
    ("submit", "Submit"),
    ("approve_internal", "Approve internally"),
    ("request_public_approval", "Request public approval"),
    ("approve_public", "Approve for public"),
    ("publish", "Publish"),
    ("request_changes", "Request changes"),
    ("reject", "Reject"),
    ("resubmit", "Resubmit"),
]

ROLE_CHOICES = [
    ("platform_admin", "Platform admin"),
    ("entity_admin", "Entity admin"),
    ("entity_staff", "Entity staff"),
    ("organizer_admin", "Organizer admin"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Organization",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=255, unique=True)),
                (
                    "kind",
                    models.CharField(
                        choices=[("government_entity", "Government entity"), ("organizer", "Organizer")],
                        default="organizer",
                        max_length=32,
                    ),
                ),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("start_date", models.DateTimeField(db_index=True)),
                ("end_date", models.DateTimeField(db_index=True)),
                (
                    "status",
                    models.CharField(
                        choices=STATE_CHOICES,
                        db_index=True,
                        default="draft",
                        editable=False,
                        max_length=32,
                    ),
                ),
                ("approval_comments", models.TextField(blank=True)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="approved_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "owner_organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="owned_events",
                        to="events_core.organization",
                    ),
                ),
                (
                    "supervising_entity",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="supervised_events",
                        to="events_core.organization",
                    ),
                ),
            ],
            options={
                "ordering": ["start_date", "id"],
            },
        ),
        migrations.CreateModel(
            name="ApprovalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("timestamp", models.DateTimeField(db_index=True)),
                ("actor_name", models.CharField(blank=True, max_length=255)),
                ("from_state", models.CharField(choices=STATE_CHOICES, max_length=32)),
                ("to_state", models.CharField(choices=STATE_CHOICES, max_length=32)),
                ("action", models.CharField(choices=ACTION_CHOICES, max_length=32)),
                ("comment", models.TextField(blank=True)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="approval_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="approval_entries",
                        to="events_core.event",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "indexes": [
                    models.Index(fields=["event", "timestamp"], name="approval_event_ts_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="UserRole",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("role", models.CharField(choices=ROLE_CHOICES, max_length=32)),
                (
                    "organization",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="user_roles",
                        to="events_core.organization",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="calendar_roles",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "unique_together": {("user", "organization", "role")},
            },
        ),
    ]
