# events_core/serializers.py
from __future__ import annotations

from typing import Any, Dict

from rest_framework import serializers

from events_core.models import ApprovalEntry, Event
from events_core.workflows.rules import COMMENT_MAX_LENGTH, WorkflowState


class EventSerializer(serializers.ModelSerializer):
    """
    Read shape for an event. Status is always read-only here; it changes
    only through the workflow endpoints.
    """

    owner_organization_name = serializers.CharField(source="owner_organization.name", read_only=True)
    supervising_entity_name = serializers.CharField(source="supervising_entity.name", read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    is_in_approval_workflow = serializers.BooleanField(read_only=True)

    class Meta:
        model = Event
        fields = [
            "id",
            "title",
            "description",
            "start_date",
            "end_date",
            "owner_organization",
            "owner_organization_name",
            "supervising_entity",
            "supervising_entity_name",
            "status",
            "status_display",
            "is_in_approval_workflow",
            "approval_comments",
            "approved_by",
            "approved_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ApprovalEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = ApprovalEntry
        fields = [
            "id",
            "timestamp",
            "actor",
            "actor_name",
            "from_state",
            "to_state",
            "action",
            "comment",
        ]
        read_only_fields = fields


class WorkflowTransitionSerializer(serializers.Serializer):
    """
    Body of POST /calendar/events/<pk>/workflow/<action>/

    comment          : reason text (required for reject / request_changes,
                       length rules enforced by the workflow engine)
    expected_status  : status the client last saw; a mismatch is a Conflict
    """

    comment = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        trim_whitespace=True,
        max_length=COMMENT_MAX_LENGTH,
    )
    expected_status = serializers.ChoiceField(
        choices=WorkflowState.choices,
        required=False,
        allow_null=True,
    )

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        attrs["comment"] = attrs.get("comment") or None
        attrs["expected_status"] = attrs.get("expected_status") or None
        return attrs
