# inventory/serializers/stock_movement.py

from decimal import Decimal

from rest_framework import serializers

from inventory.models import StockMovement


class StockMovementSerializer(serializers.ModelSerializer):
    """
    Read-only ledger row (movements are immutable).
    """

    inventory_item_name = serializers.CharField(source="inventory_item.name", read_only=True)
    warehouse_name = serializers.CharField(source="warehouse.name", read_only=True)
    created_by_email = serializers.SerializerMethodField()

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "inventory_item",
            "inventory_item_name",
            "warehouse",
            "warehouse_name",
            "movement_type",
            "quantity",
            "reason",
            "reference_number",
            "created_by",
            "created_by_email",
            "created_at",
        ]
        read_only_fields = fields

    def get_created_by_email(self, obj):
        return getattr(obj.created_by, "email", None)


class StockMovementCreateSerializer(serializers.Serializer):
    inventory_item_id = serializers.UUIDField()
    movement_type = serializers.ChoiceField(choices=StockMovement.MovementType.choices)
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")
    reference_number = serializers.CharField(required=False, allow_blank=True, max_length=64, default="")
    warehouse_id = serializers.UUIDField(required=False, allow_null=True)

    def validate_quantity(self, value):
        if value <= Decimal("0"):
            raise serializers.ValidationError("quantity must be greater than zero")
        return value
