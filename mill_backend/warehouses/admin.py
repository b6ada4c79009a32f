# warehouses/admin.py

from django.contrib import admin

from warehouses.models import Warehouse


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ("warehouse_number", "name", "location", "status", "capacity", "capacity_unit")
    list_filter = ("status",)
    search_fields = ("warehouse_number", "name", "location")
    readonly_fields = ("warehouse_number", "created_at", "updated_at")
