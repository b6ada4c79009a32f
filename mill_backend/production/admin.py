# production/admin.py

from django.contrib import admin

from production.models import ProductionOutput, ProductionRun


class ProductionOutputInline(admin.TabularInline):
    model = ProductionOutput
    extra = 0
    can_delete = False
    readonly_fields = ("product", "inventory_item", "quantity", "unit_weight")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(ProductionRun)
class ProductionRunAdmin(admin.ModelAdmin):
    list_display = (
        "batch_number",
        "production_date",
        "raw_material",
        "raw_material_quantity",
        "raw_material_kg",
        "wastage_quantity",
        "source_warehouse",
        "destination_warehouse",
    )
    search_fields = ("batch_number",)
    list_filter = ("production_date", "wastage_reason")
    inlines = [ProductionOutputInline]

    def has_change_permission(self, request, obj=None):
        return False
