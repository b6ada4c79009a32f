# production/api/serializers.py

from decimal import Decimal

from rest_framework import serializers

from production.models import ProductionOutput, ProductionRun


class ProductionOutputSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    unit = serializers.CharField(source="product.unit", read_only=True)

    class Meta:
        model = ProductionOutput
        fields = ["id", "product", "product_name", "unit", "inventory_item", "quantity", "unit_weight"]
        read_only_fields = fields


class ProductionRunSerializer(serializers.ModelSerializer):
    outputs = ProductionOutputSerializer(many=True, read_only=True)
    raw_material_name = serializers.CharField(source="raw_material.name", read_only=True)
    source_warehouse_name = serializers.CharField(source="source_warehouse.name", read_only=True)
    destination_warehouse_name = serializers.CharField(source="destination_warehouse.name", read_only=True)

    class Meta:
        model = ProductionRun
        fields = [
            "id",
            "batch_number",
            "status",
            "production_date",
            "source_warehouse",
            "source_warehouse_name",
            "destination_warehouse",
            "destination_warehouse_name",
            "raw_material",
            "raw_material_name",
            "raw_material_quantity",
            "raw_material_kg",
            "wastage_quantity",
            "wastage_reason",
            "notes",
            "created_by",
            "created_at",
            "outputs",
        ]
        read_only_fields = fields


class ProductionOutputInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))
    unit_weight = serializers.DecimalField(
        max_digits=10,
        decimal_places=3,
        min_value=Decimal("0.001"),
        required=False,
        allow_null=True,
    )


class ProductionRunCreateSerializer(serializers.Serializer):
    source_warehouse_id = serializers.UUIDField()
    destination_warehouse_id = serializers.UUIDField(required=False, allow_null=True)
    raw_material_id = serializers.UUIDField()
    raw_material_quantity = serializers.DecimalField(
        max_digits=14,
        decimal_places=3,
        min_value=Decimal("0.001"),
    )
    wastage_quantity = serializers.DecimalField(
        max_digits=14,
        decimal_places=3,
        min_value=Decimal("0"),
        required=False,
        default=Decimal("0"),
    )
    wastage_reason = serializers.ChoiceField(
        choices=[choice for choice, _ in ProductionRun.WASTAGE_REASONS],
        required=False,
        default=ProductionRun.WASTAGE_PROCESSING,
    )
    production_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    outputs = ProductionOutputInputSerializer(many=True, allow_empty=False)
