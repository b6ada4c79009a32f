# inventory/serializers/stock_transfer.py

from decimal import Decimal

from rest_framework import serializers

from inventory.models import StockTransfer, StockTransferItem


class StockTransferItemSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="source_item.name", read_only=True)
    shortfall = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True, allow_null=True)

    class Meta:
        model = StockTransferItem
        fields = [
            "id",
            "source_item",
            "destination_item",
            "name",
            "quantity",
            "received_quantity",
            "shortfall",
        ]
        read_only_fields = fields


class StockTransferSerializer(serializers.ModelSerializer):
    items = StockTransferItemSerializer(many=True, read_only=True)
    from_warehouse_name = serializers.CharField(source="from_warehouse.name", read_only=True)
    to_warehouse_name = serializers.CharField(source="to_warehouse.name", read_only=True)

    class Meta:
        model = StockTransfer
        fields = [
            "id",
            "transfer_number",
            "from_warehouse",
            "from_warehouse_name",
            "to_warehouse",
            "to_warehouse_name",
            "status",
            "notes",
            "items",
            "created_by",
            "created_at",
            "approved_by",
            "approved_at",
            "dispatched_by",
            "dispatched_at",
            "received_by",
            "received_at",
            "completed_at",
            "cancelled_by",
            "cancelled_at",
            "cancel_reason",
        ]
        read_only_fields = fields


class TransferLineSerializer(serializers.Serializer):
    inventory_item_id = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))


class StockTransferCreateSerializer(serializers.Serializer):
    from_warehouse_id = serializers.UUIDField()
    to_warehouse_id = serializers.UUIDField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = TransferLineSerializer(many=True)
    # False: moved and completed at once; True: stays PENDING for approval
    requires_approval = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if attrs["from_warehouse_id"] == attrs["to_warehouse_id"]:
            raise serializers.ValidationError("Source and destination warehouse must differ")
        if not attrs.get("items"):
            raise serializers.ValidationError({"items": "At least one item is required"})
        return attrs


class ReceivedLineSerializer(serializers.Serializer):
    inventory_item_id = serializers.UUIDField()
    received_quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0"))


class TransferReceiveSerializer(serializers.Serializer):
    """Lines left out arrive in full."""

    items = ReceivedLineSerializer(many=True, required=False, default=list)

    def validate_items(self, value):
        ids = [str(line["inventory_item_id"]) for line in value]
        if len(ids) != len(set(ids)):
            raise serializers.ValidationError("Each item may be listed once")
        return value


class TransferCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)
