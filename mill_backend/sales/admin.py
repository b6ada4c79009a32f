# sales/admin.py

from django.contrib import admin

from sales.models import Customer, Sale, SaleItem


class SaleItemInline(admin.TabularInline):
    model = SaleItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "product",
        "inventory_item",
        "product_name",
        "unit",
        "quantity",
        "unit_price",
        "total_price",
    )

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = (
        "invoice_number",
        "customer_name",
        "warehouse",
        "status",
        "payment_status",
        "total_amount",
        "paid_amount",
        "created_at",
    )
    readonly_fields = (
        "invoice_number",
        "subtotal_amount",
        "discount_amount",
        "total_amount",
        "paid_amount",
        "payment_status",
        "status",
        "created_at",
        "cancelled_at",
        "cancelled_by",
    )
    search_fields = ("invoice_number", "customer_name")
    list_filter = ("status", "payment_status", "payment_method", "created_at")
    inlines = [SaleItemInline]


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "customer_type", "phone", "is_active")
    search_fields = ("name", "phone", "email")
    list_filter = ("customer_type", "is_active")
