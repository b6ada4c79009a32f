# inventory/filters.py

import django_filters

from inventory.models import InventoryItem, StockMovement


class StockMovementFilter(django_filters.FilterSet):
    """
    GET /api/inventory/movements/?inventory_item=&warehouse=&movement_type=&date_from=&date_to=&reference_number=
    """

    date_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")
    reference_number = django_filters.CharFilter(lookup_expr="iexact")

    class Meta:
        model = StockMovement
        fields = ["inventory_item", "warehouse", "movement_type"]


class InventoryItemFilter(django_filters.FilterSet):
    q = django_filters.CharFilter(method="filter_q")

    class Meta:
        model = InventoryItem
        fields = ["warehouse", "product", "status", "category"]

    def filter_q(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(name__icontains=value) | queryset.filter(code__icontains=value)
