# inventory/models/notification.py

import uuid

from django.db import models


class Notification(models.Model):
    """
    In-app alert (bell icon). Low-stock alerts are raised by the ledger
    after outgoing movements; other types are raised by their flows.
    """

    class Type(models.TextChoices):
        LOW_STOCK = "low_stock", "Low Stock"
        INVENTORY = "inventory", "Inventory"
        PRODUCTION = "production", "Production"
        SALES = "sales", "Sales"

    class Priority(models.TextChoices):
        LOW = "low", "Low"
        MEDIUM = "medium", "Medium"
        HIGH = "high", "High"
        CRITICAL = "critical", "Critical"

    class Status(models.TextChoices):
        UNREAD = "unread", "Unread"
        READ = "read", "Read"
        RESOLVED = "resolved", "Resolved"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    type = models.CharField(max_length=20, choices=Type.choices)
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.MEDIUM)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.UNREAD)

    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, default="")

    inventory_item = models.ForeignKey(
        "inventory.InventoryItem",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="notifications",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="notification_status_idx"),
            models.Index(fields=["type"], name="notification_type_idx"),
        ]

    def __str__(self):
        return f"[{self.type}] {self.title}"
