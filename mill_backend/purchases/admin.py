# purchases/admin.py

from django.contrib import admin

from purchases.models import Purchase, PurchaseItem, Supplier


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "contact_person", "phone", "is_active")
    search_fields = ("name", "phone", "email")
    list_filter = ("is_active",)


class PurchaseItemInline(admin.TabularInline):
    model = PurchaseItem
    extra = 0


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = ("purchase_number", "supplier", "purchase_type", "warehouse", "status", "total_amount", "purchase_date")
    list_filter = ("status", "purchase_type", "warehouse")
    search_fields = ("purchase_number", "supplier__name", "supplier_reference")
    readonly_fields = ("purchase_number", "status", "received_at", "received_by", "created_by", "created_at")
    inlines = [PurchaseItemInline]
