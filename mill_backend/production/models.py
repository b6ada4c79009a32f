# production/models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL

ZERO = Decimal("0")


class ProductionRun(models.Model):
    """
    One milling batch: raw material (wheat) leaves the source warehouse,
    finished products (flour, bran, ...) enter the destination warehouse.

    Stock effects are recorded through the ledger by the production service;
    this row is the batch record (quantities, wastage, who / when).
    Runs are immutable once recorded.
    """

    STATUS_COMPLETED = "COMPLETED"

    STATUS_CHOICES = [
        (STATUS_COMPLETED, "Completed"),
    ]

    WASTAGE_PROCESSING = "Processing Loss"
    WASTAGE_QUALITY = "Quality Issue"
    WASTAGE_MACHINE = "Machine Error"
    WASTAGE_HUMAN = "Human Error"
    WASTAGE_OTHER = "Other"

    WASTAGE_REASONS = [
        (WASTAGE_PROCESSING, "Processing Loss"),
        (WASTAGE_QUALITY, "Quality Issue"),
        (WASTAGE_MACHINE, "Machine Error"),
        (WASTAGE_HUMAN, "Human Error"),
        (WASTAGE_OTHER, "Other"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    batch_number = models.CharField(max_length=32, unique=True, blank=True)

    source_warehouse = models.ForeignKey(
        "warehouses.Warehouse",
        on_delete=models.PROTECT,
        related_name="production_runs_out",
    )
    destination_warehouse = models.ForeignKey(
        "warehouses.Warehouse",
        on_delete=models.PROTECT,
        related_name="production_runs_in",
    )

    raw_material = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="production_runs",
    )
    raw_material_item = models.ForeignKey(
        "inventory.InventoryItem",
        on_delete=models.PROTECT,
        related_name="production_runs",
    )
    raw_material_quantity = models.DecimalField(max_digits=14, decimal_places=3)
    # raw_material_quantity in kg (raw material may be stocked in tons)
    raw_material_kg = models.DecimalField(max_digits=14, decimal_places=3, default=ZERO)

    wastage_quantity = models.DecimalField(max_digits=14, decimal_places=3, default=ZERO)
    wastage_reason = models.CharField(
        max_length=32,
        choices=WASTAGE_REASONS,
        default=WASTAGE_PROCESSING,
    )

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_COMPLETED)
    production_date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="production_runs",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-production_date", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(raw_material_quantity__gt=ZERO),
                name="production_raw_qty_gt_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(wastage_quantity__gte=ZERO),
                name="production_wastage_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["production_date"], name="production_date_idx"),
        ]

    @property
    def total_output_quantity(self) -> Decimal:
        return sum((o.quantity for o in self.outputs.all()), ZERO)

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Production runs are immutable once recorded")

        if not self.batch_number:
            self.batch_number = f"PRD-BATCH-{uuid.uuid4().hex[:8].upper()}"

        super().save(*args, **kwargs)

    def __str__(self):
        return self.batch_number


class ProductionOutput(models.Model):
    """
    Finished product produced by a run.
    unit_weight is the kg content of one unit (e.g. 20 for a 20kg bag).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    run = models.ForeignKey(ProductionRun, on_delete=models.CASCADE, related_name="outputs")
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="production_outputs",
    )
    inventory_item = models.ForeignKey(
        "inventory.InventoryItem",
        on_delete=models.PROTECT,
        related_name="production_outputs",
    )

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit_weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=ZERO),
                name="production_output_qty_gt_zero",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Production outputs are immutable once recorded")
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.product} x {self.quantity}"
