# purchases/api/serializers.py

from decimal import Decimal

from rest_framework import serializers

from purchases.models import Purchase, Supplier


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = "__all__"
        read_only_fields = ("id", "created_at")


class PurchaseItemCreateSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))
    unit_cost = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        required=False,
        allow_null=True,
        min_value=Decimal("0.00"),
        help_text="Defaults to the product purchase_price",
    )


class PurchaseCreateSerializer(serializers.Serializer):
    supplier_id = serializers.UUIDField()
    warehouse_id = serializers.UUIDField()
    purchase_type = serializers.ChoiceField(choices=Purchase.TYPES, default=Purchase.TYPE_WHEAT)
    purchase_date = serializers.DateField(required=False)
    supplier_reference = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = PurchaseItemCreateSerializer(many=True)


class PurchaseSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    warehouse_name = serializers.CharField(source="warehouse.name", read_only=True)
    items = serializers.SerializerMethodField()

    class Meta:
        model = Purchase
        fields = "__all__"

    def get_items(self, obj):
        qs = obj.items.select_related("product").all()
        return [
            {
                "id": str(it.id),
                "product_id": str(it.product_id),
                "product_name": getattr(it.product, "name", ""),
                "unit": getattr(it.product, "unit", ""),
                "quantity": str(it.quantity),
                "unit_cost": str(it.unit_cost),
                "line_total": str(it.line_total),
            }
            for it in qs
        ]
