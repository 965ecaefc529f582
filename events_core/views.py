# events_core/views.py
from __future__ import annotations

from datetime import timedelta

from django.utils import timezone

from drf_spectacular.utils import extend_schema
from rest_framework import viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from events_core.filters import EventFilter
from events_core.permissions import (
    HasCalendarRole,
    actor_from_request,
    actors_from_request,
    requested_organization_id,
)
from events_core.serializers import (
    ApprovalEntrySerializer,
    EventSerializer,
    WorkflowTransitionSerializer,
)
from events_core.services.dashboard import approval_statistics, dashboard_row, tab_queryset
from events_core.services.workflow_service import workflow_service
from events_core.workflows.categorizer import REQUIRES_ACTION
from events_core.workflows.metrics import compute_time_in_states
from events_core.workflows.persistence import load_event
from events_core.workflows.rules import normalize_state, workflow_definition
from tourism_calendar.pagination import DefaultPagination


# =============================================================
# Helpers
# =============================================================
def _scoped_events(request):
    """
    Events readable by any of the caller's memberships. ?organization=
    (or X-Organization) narrows the result to one organization.
    """
    return workflow_service.visible_events(
        actors_from_request(request),
        requested_organization_id(request),
    )


def _visible_event(request, pk):
    event = load_event(pk)
    workflow_service.guard.ensure_can_view(actors_from_request(request), event)
    return event


def _seconds(durations):
    return {state: int(delta / timedelta(seconds=1)) for state, delta in durations.items()}


# =============================================================
# System
# =============================================================
class HealthCheckView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(tags=["System"])
    def get(self, request):
        return Response({"status": "ok", "service": "tourism-calendar"})


# =============================================================
# Events (read-only; status moves through workflow endpoints)
# =============================================================
class EventViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = EventSerializer
    permission_classes = [IsAuthenticated, HasCalendarRole]
    filterset_class = EventFilter

    def get_queryset(self):
        return (
            _scoped_events(self.request)
            .select_related("owner_organization", "supervising_entity")
            .order_by("start_date", "id")
        )


# =============================================================
# Workflow
# =============================================================
class WorkflowDefinitionView(APIView):
    """
    GET /calendar/workflows/definition/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Workflow"])
    def get(self, request):
        return Response(workflow_definition())


class WorkflowAllowedView(APIView):
    """
    GET /calendar/events/<pk>/workflow/allowed/

    Actions the caller could perform right now (state-valid AND authorized).
    """

    permission_classes = [IsAuthenticated, HasCalendarRole]

    @extend_schema(tags=["Workflow"])
    def get(self, request, pk: int):
        event = _visible_event(request, pk)
        actor = actor_from_request(request, event=event)
        return Response(
            {
                "event_id": event.pk,
                "current": normalize_state(event.status),
                "role": actor.role,
                "allowed": workflow_service.guard.allowed_actions(actor, event),
            }
        )


class WorkflowTransitionView(APIView):
    """
    POST /calendar/events/<pk>/workflow/<action>/

    Body:
        { "comment": "...", "expected_status": "pending_internal_approval" }

    The ONLY API entry point that changes an event's status. Workflow
    errors propagate to DRF's handler (400 / 403 / 404 / 409).
    """

    permission_classes = [IsAuthenticated, HasCalendarRole]

    @extend_schema(tags=["Workflow"], request=WorkflowTransitionSerializer, responses=EventSerializer)
    def post(self, request, pk: int, action: str):
        event = load_event(pk)
        actor = actor_from_request(request, event=event, action=action)

        serializer = WorkflowTransitionSerializer(data=request.data or {})
        serializer.is_valid(raise_exception=True)

        event = workflow_service.transition_event(
            event,
            action,
            actor,
            serializer.validated_data["comment"],
            expected_status=serializer.validated_data["expected_status"],
        )
        return Response(EventSerializer(event).data)


class WorkflowHistoryView(APIView):
    """
    GET /calendar/events/<pk>/workflow/history/
    """

    permission_classes = [IsAuthenticated, HasCalendarRole]

    @extend_schema(tags=["Workflow"])
    def get(self, request, pk: int):
        event = _visible_event(request, pk)
        entries = event.approval_entries.order_by("id")
        return Response(
            {
                "event_id": event.pk,
                "current": normalize_state(event.status),
                "entries": ApprovalEntrySerializer(entries, many=True).data,
                "time_in_states": _seconds(compute_time_in_states(event=event)),
            }
        )


# =============================================================
# Dashboard
# =============================================================
class DashboardSummaryView(APIView):
    """
    GET /calendar/dashboard/summary/
    """

    permission_classes = [IsAuthenticated, HasCalendarRole]

    @extend_schema(tags=["Dashboard"])
    def get(self, request):
        events = _scoped_events(request)
        return Response(workflow_service.get_summary_counts(None, events=events))


class DashboardEventsView(APIView):
    """
    GET /calendar/dashboard/events/?tab=<bucket>&search=<q>&page=<n>
    """

    permission_classes = [IsAuthenticated, HasCalendarRole]

    @extend_schema(tags=["Dashboard"])
    def get(self, request):
        now = timezone.now()
        events = _scoped_events(request)
        tab = request.query_params.get("tab") or REQUIRES_ACTION

        qs = tab_queryset(
            tab,
            events=events,
            search=request.query_params.get("search", ""),
            now=now,
        )

        paginator = DefaultPagination()
        page = paginator.paginate_queryset(qs, request, view=self)
        rows = [dashboard_row(event, now=now) for event in page]
        return paginator.get_paginated_response(rows)


class DashboardStatisticsView(APIView):
    """
    GET /calendar/dashboard/statistics/
    """

    permission_classes = [IsAuthenticated, HasCalendarRole]

    @extend_schema(tags=["Dashboard"])
    def get(self, request):
        return Response(approval_statistics(events=_scoped_events(request)))
