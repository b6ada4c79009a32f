# warehouses/models/warehouse.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q, Sum

from products.units import convert_quantity, totals_by_unit


class Warehouse(models.Model):
    """
    Represents a physical storage location (godown, silo, bag store).

    Guarantees:
    - warehouse_number is unique and auto-assigned (WH0001, WH0002, ...)
    - capacity is optional; when set it must be > 0
    - current usage is always computed from inventory (never stored)
    """

    class Status(models.TextChoices):
        ACTIVE = "Active", "Active"
        INACTIVE = "Inactive", "Inactive"

    NUMBER_PREFIX = "WH"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    warehouse_number = models.CharField(max_length=20, unique=True, blank=True)
    name = models.CharField(max_length=255)
    location = models.CharField(max_length=255, blank=True, default="")

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)

    capacity = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        null=True,
        blank=True,
        help_text="Total storage capacity (optional). Used to block transfers that would overflow.",
    )
    capacity_unit = models.CharField(max_length=20, blank=True, default="kg")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(capacity__isnull=True) | Q(capacity__gt=Decimal("0")),
                name="warehouse_capacity_positive_when_set",
            ),
        ]
        indexes = [
            models.Index(fields=["status"], name="warehouse_status_idx"),
        ]

    @classmethod
    def next_warehouse_number(cls) -> str:
        last = (
            cls.objects.filter(warehouse_number__startswith=cls.NUMBER_PREFIX)
            .order_by("-warehouse_number")
            .values_list("warehouse_number", flat=True)
            .first()
        )
        seq = 0
        if last:
            try:
                seq = int(last[len(cls.NUMBER_PREFIX):])
            except ValueError:
                seq = cls.objects.count()
        return f"{cls.NUMBER_PREFIX}{seq + 1:04d}"

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE

    def usage_by_unit(self) -> dict[str, Decimal]:
        """Positive stock held here, summed per unit (kg, tons, bags, ...)."""
        rows = (
            self.inventory_items.filter(current_stock__gt=0)
            .values("unit")
            .annotate(total=Sum("current_stock"))
            .values_list("unit", "total")
        )
        return totals_by_unit(rows)

    def current_usage(self) -> Decimal:
        """
        Stock held here expressed in capacity_unit.
        Items whose unit does not convert (bags against a kg capacity) are not counted.
        """
        total = Decimal("0")
        for unit, quantity in self.usage_by_unit().items():
            converted = convert_quantity(quantity, unit, self.capacity_unit)
            if converted is not None:
                total += converted
        return total

    def available_capacity(self):
        if self.capacity is None:
            return None
        return self.capacity - self.current_usage()

    def clean(self):
        if not (self.name or "").strip():
            raise ValidationError({"name": "name is required"})

    def save(self, *args, **kwargs):
        self.name = (self.name or "").strip()
        if not (self.warehouse_number or "").strip():
            self.warehouse_number = self.next_warehouse_number()
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.warehouse_number})"
