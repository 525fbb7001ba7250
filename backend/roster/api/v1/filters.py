import django_filters

from roster.domain.models import Service


class ServiceFilter(django_filters.FilterSet):
    start = django_filters.DateFilter(field_name="date", lookup_expr="gte")
    end = django_filters.DateFilter(field_name="date", lookup_expr="lte")
    event_type = django_filters.UUIDFilter(field_name="event_type_id")

    class Meta:
        model = Service
        fields = ["start", "end", "event_type"]
