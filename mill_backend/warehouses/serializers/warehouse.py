from rest_framework import serializers

from warehouses.models import Warehouse


class WarehouseSerializer(serializers.ModelSerializer):
    """
    Serializer for mill warehouses.

    current_usage / available_capacity are computed from inventory stock.
    """

    current_usage = serializers.SerializerMethodField()
    available_capacity = serializers.SerializerMethodField()

    class Meta:
        model = Warehouse
        fields = [
            "id",
            "warehouse_number",
            "name",
            "location",
            "status",
            "capacity",
            "capacity_unit",
            "current_usage",
            "available_capacity",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "warehouse_number",
            "created_at",
            "updated_at",
        ]

    def get_current_usage(self, obj):
        return str(obj.current_usage())

    def get_available_capacity(self, obj):
        available = obj.available_capacity()
        return None if available is None else str(available)
