# inventory/admin.py

from django.contrib import admin

from inventory.models import (
    DamageReport,
    InventoryItem,
    Notification,
    Repacking,
    RepackingTarget,
    StockMovement,
    StockTransfer,
    StockTransferItem,
)


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ("name", "warehouse", "current_stock", "minimum_stock", "unit", "status")
    list_filter = ("status", "warehouse", "category")
    search_fields = ("name", "code")
    # Ledger-managed
    readonly_fields = ("current_stock", "status", "created_at", "updated_at")


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    """
    Read-only ledger view. Movements are appended by services only.
    """

    list_display = ("created_at", "inventory_item", "warehouse", "movement_type", "quantity", "reason")
    list_filter = ("movement_type", "warehouse")
    search_fields = ("reason", "reference_number", "inventory_item__name")
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class StockTransferItemInline(admin.TabularInline):
    model = StockTransferItem
    extra = 0
    can_delete = False
    readonly_fields = ("source_item", "destination_item", "quantity", "received_quantity")


@admin.register(StockTransfer)
class StockTransferAdmin(admin.ModelAdmin):
    """
    Status only changes through the transfer services (stock moves with it).
    """

    list_display = ("transfer_number", "from_warehouse", "to_warehouse", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("transfer_number",)
    readonly_fields = (
        "transfer_number",
        "from_warehouse",
        "to_warehouse",
        "status",
        "created_by",
        "created_at",
        "approved_by",
        "approved_at",
        "dispatched_by",
        "dispatched_at",
        "received_by",
        "received_at",
        "completed_at",
        "cancelled_by",
        "cancelled_at",
        "cancel_reason",
    )
    inlines = [StockTransferItemInline]

    def has_add_permission(self, request):
        return False


class RepackingTargetInline(admin.TabularInline):
    model = RepackingTarget
    extra = 0
    can_delete = False
    readonly_fields = ("inventory_item", "quantity", "unit_weight", "bag_type", "bag_size")


@admin.register(Repacking)
class RepackingAdmin(admin.ModelAdmin):
    list_display = ("repacking_number", "warehouse", "source_item", "source_quantity", "repacking_type", "created_at")
    list_filter = ("repacking_type", "warehouse")
    search_fields = ("repacking_number", "source_item__name")
    inlines = [RepackingTargetInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(DamageReport)
class DamageReportAdmin(admin.ModelAdmin):
    list_display = ("inventory_item", "quantity", "reason", "severity", "damage_date", "estimated_loss")
    list_filter = ("reason", "severity")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "type", "priority", "status", "created_at")
    list_filter = ("type", "priority", "status")
