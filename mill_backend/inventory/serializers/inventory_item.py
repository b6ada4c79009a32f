# inventory/serializers/inventory_item.py

"""
INVENTORY ITEM SERIALIZERS

- current_stock and status are ALWAYS read-only (ledger-managed).
- Creation goes through get_or_create_inventory_item(); an optional
  opening_stock is recorded as an IN movement, never written directly.
"""

from decimal import Decimal

from rest_framework import serializers

from inventory.models import InventoryItem


class InventoryItemSerializer(serializers.ModelSerializer):
    warehouse_name = serializers.CharField(source="warehouse.name", read_only=True)
    product_code = serializers.SerializerMethodField()

    class Meta:
        model = InventoryItem
        fields = [
            "id",
            "product",
            "product_code",
            "warehouse",
            "warehouse_name",
            "name",
            "code",
            "category",
            "subcategory",
            "unit",
            "price",
            "current_stock",
            "minimum_stock",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "product",
            "warehouse",
            "current_stock",
            "status",
            "created_at",
            "updated_at",
        ]

    def get_product_code(self, obj):
        p = getattr(obj, "product", None)
        return getattr(p, "code", None)

    def validate_minimum_stock(self, value):
        if value is not None and value < Decimal("0"):
            raise serializers.ValidationError("minimum_stock cannot be negative")
        return value


class InventoryItemCreateSerializer(serializers.Serializer):
    """
    POST /api/inventory/items/

    Either product_id (catalog item) or name (name-only item) is required.
    """

    warehouse_id = serializers.UUIDField()
    product_id = serializers.UUIDField(required=False, allow_null=True)
    name = serializers.CharField(required=False, allow_blank=True, max_length=255)

    code = serializers.CharField(required=False, allow_blank=True, max_length=32)
    category = serializers.CharField(required=False, allow_blank=True, max_length=32)
    subcategory = serializers.CharField(required=False, allow_blank=True, max_length=100)
    unit = serializers.CharField(required=False, max_length=10)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=Decimal("0"))
    minimum_stock = serializers.DecimalField(
        max_digits=14, decimal_places=3, required=False, min_value=Decimal("0")
    )

    opening_stock = serializers.DecimalField(
        max_digits=14, decimal_places=3, required=False, min_value=Decimal("0")
    )

    DEFAULT_FIELDS = ("code", "category", "subcategory", "unit", "price", "minimum_stock")

    def validate(self, attrs):
        if not attrs.get("product_id") and not (attrs.get("name") or "").strip():
            raise serializers.ValidationError("product_id or name is required")
        return attrs

    def item_defaults(self) -> dict:
        return {k: self.validated_data[k] for k in self.DEFAULT_FIELDS if k in self.validated_data}
