import django_filters

from modules.freshness.constants import FreshnessStatus
from modules.freshness.models import FreshnessBatch


class FreshnessBatchFilter(django_filters.FilterSet):
    flower = django_filters.UUIDFilter(field_name="flower_id")
    status = django_filters.ChoiceFilter(choices=FreshnessStatus.choices)
    batch_number = django_filters.CharFilter(lookup_expr="iexact")
    delivered_on = django_filters.DateFilter(field_name="delivery_date")
    expires_before = django_filters.DateFilter(field_name="expiry_date", lookup_expr="lte")
    sold_from = django_filters.DateFilter(field_name="sold_date", lookup_expr="gte")
    sold_to = django_filters.DateFilter(field_name="sold_date", lookup_expr="lte")

    class Meta:
        model = FreshnessBatch
        fields = ["flower", "status", "batch_number", "is_sold"]
