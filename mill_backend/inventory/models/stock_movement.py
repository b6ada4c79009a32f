# inventory/models/stock_movement.py

"""
CANONICAL STOCK LEDGER

Immutable ledger entry: one signed quantity change to one InventoryItem.

GUARANTEES:
- Append-only (no updates, no deletes)
- quantity > 0; direction carried by movement_type (in / out)
- warehouse always equals the inventory item's warehouse
- Appending a movement applies its delta to InventoryItem.current_stock
  exactly once, in the same transaction, under a row lock on the item.
  No other code path may add to or subtract from the balance.
- Outgoing movements larger than the current balance are rejected
  (InsufficientStockError) and nothing is written.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone

from inventory.services.exceptions import InsufficientStockError

from .inventory_item import InventoryItem


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        IN = "in", "Stock In"
        OUT = "out", "Stock Out"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    inventory_item = models.ForeignKey(
        InventoryItem,
        on_delete=models.PROTECT,
        related_name="movements",
    )
    warehouse = models.ForeignKey(
        "warehouses.Warehouse",
        on_delete=models.PROTECT,
        related_name="stock_movements",
    )

    movement_type = models.CharField(max_length=3, choices=MovementType.choices)
    quantity = models.DecimalField(max_digits=14, decimal_places=3)

    reason = models.CharField(max_length=255, blank=True, default="")
    reference_number = models.CharField(max_length=64, blank=True, default="", db_index=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    # Replay order; default (not auto_now_add) so imports can keep source timestamps.
    created_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=Decimal("0")),
                name="stock_movement_quantity_gt_zero",
            ),
        ]
        indexes = [
            models.Index(fields=["created_at"], name="stock_mv_created_idx"),
            models.Index(fields=["movement_type"], name="stock_mv_type_idx"),
            models.Index(fields=["inventory_item", "created_at"], name="stock_mv_item_created_idx"),
            models.Index(fields=["warehouse", "created_at"], name="stock_mv_wh_created_idx"),
        ]

    @property
    def signed_quantity(self) -> Decimal:
        qty = Decimal(str(self.quantity or 0))
        return qty if self.movement_type == self.MovementType.IN else -qty

    def clean(self):
        if self.quantity is None or Decimal(str(self.quantity)) <= Decimal("0"):
            raise ValidationError({"quantity": "quantity must be greater than zero"})

        if self.movement_type not in self.MovementType.values:
            raise ValidationError({"movement_type": "movement_type must be 'in' or 'out'"})

        if self.inventory_item_id and self.warehouse_id:
            item_wh = (
                InventoryItem.objects.filter(pk=self.inventory_item_id)
                .values_list("warehouse_id", flat=True)
                .first()
            )
            if item_wh is not None and item_wh != self.warehouse_id:
                raise ValidationError(
                    {"warehouse": "warehouse must match the inventory item's warehouse"}
                )

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")

        if self.inventory_item_id and not self.warehouse_id:
            self.warehouse_id = (
                InventoryItem.objects.filter(pk=self.inventory_item_id)
                .values_list("warehouse_id", flat=True)
                .first()
            )

        self.full_clean()

        with transaction.atomic():
            item = InventoryItem.objects.select_for_update().get(pk=self.inventory_item_id)

            delta = self.signed_quantity
            if delta < 0 and item.current_stock + delta < 0:
                raise InsufficientStockError(
                    item_name=item.name,
                    available=item.current_stock,
                    requested=self.quantity,
                )

            result = super().save(*args, **kwargs)
            self.inventory_item = InventoryItem.objects.apply_delta(item_id=item.pk, delta=delta)

        return result

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockMovement records are immutable and cannot be deleted"
        )

    def __str__(self):
        item_name = getattr(self.inventory_item, "name", "Item")
        return f"{item_name} | {self.movement_type} | {self.quantity} | {self.reason}"
