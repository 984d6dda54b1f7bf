import django_filters

from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    phone = django_filters.CharFilter(field_name="customer_phone")
    email = django_filters.CharFilter(field_name="customer_email", lookup_expr="iexact")
    florist = django_filters.NumberFilter(field_name="assigned_florist_id")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")
    delivery_on = django_filters.DateFilter(field_name="delivery_date", lookup_expr="date")
    min_total = django_filters.NumberFilter(
        field_name="final_amount", lookup_expr="gte"
    )
    max_total = django_filters.NumberFilter(
        field_name="final_amount", lookup_expr="lte"
    )

    class Meta:
        model = Order
        fields = [
            "status",
            "phone",
            "email",
            "florist",
            "start_date",
            "end_date",
            "delivery_on",
            "min_total",
            "max_total",
        ]
