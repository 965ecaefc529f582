# events_core/urls.py

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    HealthCheckView,
    EventViewSet,
    WorkflowDefinitionView,
    WorkflowAllowedView,
    WorkflowTransitionView,
    WorkflowHistoryView,
    DashboardSummaryView,
    DashboardEventsView,
    DashboardStatisticsView,
)

app_name = "events_core"

router = DefaultRouter()
router.register(r"events", EventViewSet, basename="event")

urlpatterns = [
    # -------------------------------------------------
    # Health
    # -------------------------------------------------
    path("health/", HealthCheckView.as_view(), name="health"),

    # -------------------------------------------------
    # Workflow
    # -------------------------------------------------
    path(
        "workflows/definition/",
        WorkflowDefinitionView.as_view(),
        name="workflow-definition",
    ),
    path(
        "events/<int:pk>/workflow/allowed/",
        WorkflowAllowedView.as_view(),
        name="workflow-allowed",
    ),
    path(
        "events/<int:pk>/workflow/history/",
        WorkflowHistoryView.as_view(),
        name="workflow-history",
    ),
    path(
        "events/<int:pk>/workflow/<str:action>/",
        WorkflowTransitionView.as_view(),
        name="workflow-transition",
    ),

    # -------------------------------------------------
    # Dashboard
    # -------------------------------------------------
    path("dashboard/summary/", DashboardSummaryView.as_view(), name="dashboard-summary"),
    path("dashboard/events/", DashboardEventsView.as_view(), name="dashboard-events"),
    path("dashboard/statistics/", DashboardStatisticsView.as_view(), name="dashboard-statistics"),

    # -------------------------------------------------
    # Events (read-only)
    # -------------------------------------------------
    path("", include(router.urls)),
]
