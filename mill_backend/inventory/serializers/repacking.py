# inventory/serializers/repacking.py

from decimal import Decimal

from rest_framework import serializers

from inventory.models import Repacking, RepackingTarget


class RepackingTargetSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="inventory_item.name", read_only=True)
    unit = serializers.CharField(source="inventory_item.unit", read_only=True)

    class Meta:
        model = RepackingTarget
        fields = ["id", "inventory_item", "name", "unit", "quantity", "unit_weight", "bag_type", "bag_size"]
        read_only_fields = fields


class RepackingSerializer(serializers.ModelSerializer):
    targets = RepackingTargetSerializer(many=True, read_only=True)
    source_item_name = serializers.CharField(source="source_item.name", read_only=True)
    warehouse_name = serializers.CharField(source="warehouse.name", read_only=True)
    weight_difference_kg = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True)

    class Meta:
        model = Repacking
        fields = [
            "id",
            "repacking_number",
            "warehouse",
            "warehouse_name",
            "source_item",
            "source_item_name",
            "source_quantity",
            "repacking_type",
            "reason",
            "pre_weight_kg",
            "post_weight_kg",
            "weight_difference_kg",
            "notes",
            "targets",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields


class RepackingTargetInputSerializer(serializers.Serializer):
    inventory_item_id = serializers.UUIDField(required=False)
    product_id = serializers.UUIDField(required=False)
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))
    unit_weight = serializers.DecimalField(
        max_digits=10,
        decimal_places=3,
        min_value=Decimal("0.001"),
        required=False,
        allow_null=True,
    )
    bag_type = serializers.ChoiceField(choices=RepackingTarget.BagType.choices, required=False)
    bag_size = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if not attrs.get("inventory_item_id") and not attrs.get("product_id"):
            raise serializers.ValidationError("inventory_item_id or product_id is required")
        return attrs


class RepackingCreateSerializer(serializers.Serializer):
    warehouse_id = serializers.UUIDField()
    source_item_id = serializers.UUIDField()
    source_quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))
    source_unit_weight = serializers.DecimalField(
        max_digits=10,
        decimal_places=3,
        min_value=Decimal("0.001"),
        required=False,
        allow_null=True,
    )
    repacking_type = serializers.ChoiceField(
        choices=Repacking.RepackingType.choices,
        default=Repacking.RepackingType.BULK_TO_BAGS,
    )
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    targets = RepackingTargetInputSerializer(many=True)

    def validate_targets(self, value):
        if not value:
            raise serializers.ValidationError("At least one target is required")
        return value
