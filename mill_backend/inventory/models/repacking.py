# inventory/models/repacking.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

ZERO = Decimal("0")


class Repacking(models.Model):
    """
    Stock taken out of one item and packed into other items in the same
    warehouse (bulk flour into 10kg bags, 50kg bags into 5kg bags, ...).

    Stock effects go through the ledger (one OUT, one IN per target);
    this row records what was repacked and the weight check.
    Immutable once recorded.
    """

    class RepackingType(models.TextChoices):
        BULK_TO_BAGS = "Bulk to Bags", "Bulk to Bags"
        BAG_SIZE_CHANGE = "Bag Size Change", "Bag Size Change"
        QUALITY_SEPARATION = "Quality Separation", "Quality Separation"
        CUSTOM = "Custom", "Custom"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    repacking_number = models.CharField(max_length=32, unique=True, blank=True)

    warehouse = models.ForeignKey(
        "warehouses.Warehouse",
        on_delete=models.PROTECT,
        related_name="repackings",
    )
    source_item = models.ForeignKey(
        "inventory.InventoryItem",
        on_delete=models.PROTECT,
        related_name="repackings_out",
    )
    source_quantity = models.DecimalField(max_digits=14, decimal_places=3)

    repacking_type = models.CharField(
        max_length=32,
        choices=RepackingType.choices,
        default=RepackingType.BULK_TO_BAGS,
    )
    reason = models.CharField(max_length=255, blank=True, default="")

    pre_weight_kg = models.DecimalField(max_digits=14, decimal_places=3)
    post_weight_kg = models.DecimalField(max_digits=14, decimal_places=3)

    notes = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="repackings",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(source_quantity__gt=ZERO),
                name="repacking_source_qty_gt_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(post_weight_kg__lte=models.F("pre_weight_kg")),
                name="repacking_post_weight_lte_pre",
            ),
        ]

    @property
    def weight_difference_kg(self) -> Decimal:
        return self.pre_weight_kg - self.post_weight_kg

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Repacking records are immutable once recorded")
        if not self.repacking_number:
            self.repacking_number = f"RPK-{uuid.uuid4().hex[:8].upper()}"
        super().save(*args, **kwargs)

    def __str__(self):
        return self.repacking_number


class RepackingTarget(models.Model):
    class BagType(models.TextChoices):
        ATA = "ATA", "Ata"
        MAIDA = "MAIDA", "Maida"
        SUJI = "SUJI", "Suji"
        FINE = "FINE", "Fine"
        CUSTOM = "CUSTOM", "Custom"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    repacking = models.ForeignKey(Repacking, on_delete=models.CASCADE, related_name="targets")
    inventory_item = models.ForeignKey(
        "inventory.InventoryItem",
        on_delete=models.PROTECT,
        related_name="repackings_in",
    )
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    # kg per unit for bag / pcs targets
    unit_weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    bag_type = models.CharField(max_length=10, choices=BagType.choices, default=BagType.CUSTOM)
    bag_size = models.CharField(max_length=20, blank=True, default="")

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=ZERO),
                name="repacking_target_qty_gt_zero",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Repacking targets are immutable once recorded")
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.inventory_item_id} x {self.quantity}"
