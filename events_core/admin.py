# events_core/admin.py

from django.contrib import admin

from .models import (
    ApprovalEntry,
    Event,
    Organization,
    UserRole,
)


# =============================================================
# Approval entries (READ-ONLY AUDIT LOG)
# =============================================================

@admin.register(ApprovalEntry)
class ApprovalEntryAdmin(admin.ModelAdmin):
    list_display = (
        "event",
        "action",
        "from_state",
        "to_state",
        "actor_name",
        "timestamp",
    )
    list_filter = (
        "action",
        "from_state",
        "to_state",
    )
    search_fields = (
        "event__title",
        "actor_name",
    )
    ordering = ("-id",)

    readonly_fields = [f.name for f in ApprovalEntry._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class ApprovalEntryInline(admin.TabularInline):
    model = ApprovalEntry
    extra = 0
    can_delete = False
    fields = ("timestamp", "action", "from_state", "to_state", "actor_name", "comment")
    readonly_fields = fields
    ordering = ("id",)

    def has_add_permission(self, request, obj=None):
        return False


# =============================================================
# Events (status is workflow-controlled)
# =============================================================

@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "status",
        "owner_organization",
        "supervising_entity",
        "start_date",
        "end_date",
    )
    list_filter = ("status", "supervising_entity")
    search_fields = ("title", "owner_organization__name", "supervising_entity__name")
    ordering = ("start_date",)
    inlines = [ApprovalEntryInline]

    readonly_fields = (
        "status",
        "approval_comments",
        "approved_by",
        "approved_at",
        "created_at",
        "updated_at",
    )


# =============================================================
# Organizations & memberships
# =============================================================

@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ("name", "kind", "email", "is_active")
    list_filter = ("kind", "is_active")
    search_fields = ("name",)
    ordering = ("name",)


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ("user", "organization", "role")
    list_filter = ("role", "organization")
    search_fields = ("user__username", "organization__name")
