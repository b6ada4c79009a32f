# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules:
- Product is catalog master data only.
- Stock is NOT editable here; it lives on InventoryItem and is changed
  only by recording StockMovement rows (see inventory admin).
"""

from django.contrib import admin

from products.models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "category", "unit", "price", "purchase_price", "minimum_stock", "is_active")
    list_filter = ("category", "unit", "is_active")
    search_fields = ("code", "name", "subcategory")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("name",)
