# inventory/models/stock_transfer.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class StockTransfer(models.Model):
    """
    Warehouse-to-warehouse stock transfer header.

    Lifecycle (inventory.services.transfers):
        PENDING -> APPROVED -> IN_TRANSIT -> DELIVERED -> COMPLETED
        PENDING / APPROVED -> CANCELLED

    Stock only moves at two points:
    - dispatch: OUT from each source item
    - receive:  IN to each destination item (actual received quantity)
    A direct transfer walks every step in one transaction.
    """

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        APPROVED = "APPROVED", "Approved"
        IN_TRANSIT = "IN_TRANSIT", "In Transit"
        DELIVERED = "DELIVERED", "Delivered"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    transfer_number = models.CharField(max_length=32, unique=True, blank=True)

    from_warehouse = models.ForeignKey(
        "warehouses.Warehouse",
        on_delete=models.PROTECT,
        related_name="outgoing_transfers",
    )
    to_warehouse = models.ForeignKey(
        "warehouses.Warehouse",
        on_delete=models.PROTECT,
        related_name="incoming_transfers",
    )

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_transfers",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    approved_at = models.DateTimeField(null=True, blank=True)

    dispatched_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    dispatched_at = models.DateTimeField(null=True, blank=True)

    received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    received_at = models.DateTimeField(null=True, blank=True)

    completed_at = models.DateTimeField(null=True, blank=True)

    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancel_reason = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="stock_transfer_status_idx"),
        ]

    def clean(self):
        if self.from_warehouse_id and self.from_warehouse_id == self.to_warehouse_id:
            raise ValidationError("Source and destination warehouse must differ")

    def save(self, *args, **kwargs):
        if not self.transfer_number:
            self.transfer_number = f"TR-{uuid.uuid4().hex[:8].upper()}"
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return self.transfer_number


class StockTransferItem(models.Model):
    """
    One transfer line. destination_item and received_quantity are filled on
    receipt; quantity - received_quantity is the transit shortfall.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    transfer = models.ForeignKey(
        StockTransfer,
        on_delete=models.CASCADE,
        related_name="items",
    )
    source_item = models.ForeignKey(
        "inventory.InventoryItem",
        on_delete=models.PROTECT,
        related_name="+",
    )
    destination_item = models.ForeignKey(
        "inventory.InventoryItem",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    received_quantity = models.DecimalField(max_digits=14, decimal_places=3, null=True, blank=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=Decimal("0")),
                name="stock_transfer_item_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(received_quantity__isnull=True)
                | models.Q(received_quantity__gte=Decimal("0"), received_quantity__lte=models.F("quantity")),
                name="stock_transfer_item_received_in_range",
            ),
        ]

    @property
    def shortfall(self):
        if self.received_quantity is None:
            return None
        return self.quantity - self.received_quantity

    def __str__(self):
        return f"{self.transfer_id}: {self.quantity}"
