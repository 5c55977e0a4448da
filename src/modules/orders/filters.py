import django_filters

from modules.orders.constants import FulfillmentMode
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    fulfillment_mode = django_filters.ChoiceFilter(choices=FulfillmentMode.choices)
    created_after = django_filters.DateFilter(
        field_name="created_at", lookup_expr="date__gte"
    )
    created_before = django_filters.DateFilter(
        field_name="created_at", lookup_expr="date__lte"
    )

    class Meta:
        model = Order
        fields = ["status", "fulfillment_mode", "created_after", "created_before"]
