# products/serializers/product.py

"""
PRODUCT SERIALIZER

Purpose:
- Catalog CRUD for raw materials, finished goods and packaging.
- total_stock is read-only and comes from InventoryItem balances
  (annotated by the viewset to avoid N+1 on lists).
"""

from decimal import Decimal

from rest_framework import serializers

from products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    total_stock = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "code",
            "name",
            "category",
            "subcategory",
            "unit",
            "price",
            "purchase_price",
            "minimum_stock",
            "description",
            "is_active",
            "total_stock",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "total_stock",
            "created_at",
            "updated_at",
        ]
        extra_kwargs = {
            "code": {"required": False, "allow_blank": True},
        }

    def validate_code(self, value):
        return (value or "").strip().upper()

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("name is required")
        return value

    def get_total_stock(self, obj):
        annotated = getattr(obj, "stock_total", None)
        if annotated is not None:
            return str(annotated)
        return str(obj.total_stock or Decimal("0"))
