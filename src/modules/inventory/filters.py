import django_filters

from modules.inventory.constants import FlowerColor, FlowerType, MaterialType
from modules.inventory.models import Flower, Material


class FlowerFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    sku = django_filters.CharFilter(field_name="sku", lookup_expr="iexact")
    type = django_filters.ChoiceFilter(choices=FlowerType.choices)
    color = django_filters.ChoiceFilter(choices=FlowerColor.choices)
    min_price = django_filters.NumberFilter(field_name="unit_price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="unit_price", lookup_expr="lte")
    expires_before = django_filters.DateFilter(
        field_name="expiry_date", lookup_expr="lte"
    )

    class Meta:
        model = Flower
        fields = ["name", "sku", "type", "color", "is_active"]


class MaterialFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    sku = django_filters.CharFilter(field_name="sku", lookup_expr="iexact")
    type = django_filters.ChoiceFilter(choices=MaterialType.choices)
    min_price = django_filters.NumberFilter(field_name="unit_price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="unit_price", lookup_expr="lte")

    class Meta:
        model = Material
        fields = ["name", "sku", "type", "color", "is_active"]
