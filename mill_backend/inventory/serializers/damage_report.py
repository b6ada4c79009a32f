# inventory/serializers/damage_report.py

from decimal import Decimal

from rest_framework import serializers

from inventory.models import DamageReport


class DamageReportSerializer(serializers.ModelSerializer):
    inventory_item_name = serializers.CharField(source="inventory_item.name", read_only=True)

    class Meta:
        model = DamageReport
        fields = [
            "id",
            "inventory_item",
            "inventory_item_name",
            "warehouse",
            "movement",
            "quantity",
            "reason",
            "severity",
            "description",
            "estimated_loss",
            "damage_date",
            "reported_by",
            "created_at",
        ]
        read_only_fields = fields


class DamageReportCreateSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))
    reason = serializers.ChoiceField(choices=DamageReport.Reason.choices)
    severity = serializers.ChoiceField(
        choices=DamageReport.Severity.choices,
        required=False,
        default=DamageReport.Severity.MEDIUM,
    )
    description = serializers.CharField(required=False, allow_blank=True, default="")
    damage_date = serializers.DateField(required=False, allow_null=True)
    estimated_loss = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True, min_value=Decimal("0")
    )
