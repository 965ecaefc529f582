# events_core/filters.py
import django_filters as df
from .models import Event


class EventFilter(df.FilterSet):
    title = df.CharFilter(field_name="title", lookup_expr="icontains")
    status = df.CharFilter(field_name="status", lookup_expr="iexact")
    owner_organization = df.NumberFilter(field_name="owner_organization_id")
    supervising_entity = df.NumberFilter(field_name="supervising_entity_id")
    start_date = df.DateFromToRangeFilter()
    end_date = df.DateFromToRangeFilter()

    class Meta:
        model = Event
        fields = ["title", "status", "owner_organization", "supervising_entity", "start_date", "end_date"]
