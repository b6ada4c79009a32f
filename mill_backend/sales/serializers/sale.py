# sales/serializers/sale.py

from decimal import Decimal

from rest_framework import serializers

from sales.models import Sale, SaleItem


class SaleItemSerializer(serializers.ModelSerializer):
    """
    Sale line item serializer (read-only).
    Designed for invoices + UI display.
    """

    class Meta:
        model = SaleItem
        fields = [
            "id",
            "product",
            "inventory_item",
            "product_name",
            "unit",
            "quantity",
            "unit_price",
            "total_price",
        ]
        read_only_fields = fields


class SaleSerializer(serializers.ModelSerializer):
    """
    CANONICAL SALE SERIALIZER (read-only)

    balance_due is derived: total_amount - paid_amount.
    """

    items = SaleItemSerializer(many=True, read_only=True)
    warehouse_name = serializers.CharField(source="warehouse.name", read_only=True)
    balance_due = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = Sale
        fields = [
            "id",
            "invoice_number",
            "customer",
            "customer_name",
            "warehouse",
            "warehouse_name",
            "user",
            "subtotal_amount",
            "discount_amount",
            "total_amount",
            "paid_amount",
            "balance_due",
            "payment_method",
            "payment_status",
            "status",
            "notes",
            "created_at",
            "cancelled_at",
            "cancelled_by",
            "cancel_reason",
            "items",
        ]
        read_only_fields = fields


# ==========================================================
# INPUT
# ==========================================================

class SaleLineInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.DecimalField(
        max_digits=14,
        decimal_places=3,
        min_value=Decimal("0.001"),
    )
    unit_price = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0.00"),
        required=False,
        allow_null=True,
    )


class SaleCreateSerializer(serializers.Serializer):
    warehouse_id = serializers.UUIDField()
    customer_id = serializers.UUIDField(required=False, allow_null=True)
    customer_name = serializers.CharField(required=False, allow_blank=True, default="")
    discount_amount = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=Decimal("0.00"),
        required=False,
        allow_null=True,
    )
    paid_amount = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=Decimal("0.00"),
        required=False,
        allow_null=True,
    )
    payment_method = serializers.ChoiceField(
        choices=[choice for choice, _ in Sale.PAYMENT_METHODS],
        required=False,
        default=Sale.METHOD_CASH,
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = SaleLineInputSerializer(many=True, allow_empty=False)


class SaleCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class PaymentInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=Decimal("0.01"),
    )
