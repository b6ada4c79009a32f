# inventory/models/damage_report.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class DamageReport(models.Model):
    """
    Write-off of damaged stock.

    Created ONLY by inventory.services.damage.report_damage(), which records the
    matching OUT movement in the same transaction.
    """

    class Reason(models.TextChoices):
        WATER = "Water Damage", "Water Damage"
        FIRE = "Fire Damage", "Fire Damage"
        PHYSICAL = "Physical Damage", "Physical Damage"
        EXPIRED = "Expired", "Expired"
        CONTAMINATION = "Contamination", "Contamination"
        PEST = "Pest Damage", "Pest Damage"
        TEMPERATURE = "Temperature Damage", "Temperature Damage"
        HANDLING = "Handling Error", "Handling Error"
        TRANSPORTATION = "Transportation Damage", "Transportation Damage"
        OTHER = "Other", "Other"

    class Severity(models.TextChoices):
        LOW = "Low", "Low"
        MEDIUM = "Medium", "Medium"
        HIGH = "High", "High"
        CRITICAL = "Critical", "Critical"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    inventory_item = models.ForeignKey(
        "inventory.InventoryItem",
        on_delete=models.PROTECT,
        related_name="damage_reports",
    )
    warehouse = models.ForeignKey(
        "warehouses.Warehouse",
        on_delete=models.PROTECT,
        related_name="damage_reports",
    )
    movement = models.OneToOneField(
        "inventory.StockMovement",
        on_delete=models.PROTECT,
        related_name="damage_report",
    )

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    reason = models.CharField(max_length=32, choices=Reason.choices)
    severity = models.CharField(max_length=10, choices=Severity.choices, default=Severity.MEDIUM)
    description = models.TextField(blank=True, default="")

    estimated_loss = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    damage_date = models.DateField(default=timezone.localdate)

    reported_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="damage_reports",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=Decimal("0")),
                name="damage_report_quantity_gt_zero",
            ),
        ]

    def clean(self):
        if self.quantity is None or self.quantity <= Decimal("0"):
            raise ValidationError({"quantity": "quantity must be greater than zero"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"Damage {self.quantity} of {self.inventory_item_id} ({self.reason})"
