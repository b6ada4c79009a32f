# inventory/models/inventory_item.py

"""
======================================================
PATH: inventory/models/inventory_item.py
======================================================
INVENTORY ITEM (STOCK AGGREGATE)

One row per stockable thing at one warehouse.

GUARANTEES:
- current_stock is a CACHE of the signed sum of this item's StockMovement rows
- current_stock is written by exactly one code path:
    InventoryItem.objects.apply_delta()  (called while a movement is appended)
  plus the offline ledger replay (recalculate_all)
- save() never writes current_stock on existing rows, so stale instances
  cannot clobber a balance another request just changed
- status is a pure function of (current_stock, minimum_stock), re-derived on
  every mutation
- unique per (product, warehouse); name-only legacy items unique per (name, warehouse)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone


ZERO = Decimal("0")


def derive_status(current_stock, minimum_stock) -> str:
    """
    Out of Stock when stock <= 0, Low Stock when 0 < stock <= minimum, else Active.
    """
    stock = Decimal(str(current_stock or 0))
    minimum = Decimal(str(minimum_stock or 0))

    if stock <= ZERO:
        return InventoryItem.Status.OUT_OF_STOCK
    if stock <= minimum:
        return InventoryItem.Status.LOW_STOCK
    return InventoryItem.Status.ACTIVE


class InventoryItemQuerySet(models.QuerySet):
    def low_stock(self):
        return self.filter(
            status__in=[InventoryItem.Status.LOW_STOCK, InventoryItem.Status.OUT_OF_STOCK]
        )

    def apply_delta(self, *, item_id, delta: Decimal) -> "InventoryItem":
        """
        THE single aggregate mutator.

        - Increment happens in SQL (F expression), never read-modify-write in Python.
        - Caller must hold the row lock inside the transaction that appends the movement.
        - Returns a fresh instance with the post-update balance and status.
        """
        updated = self.filter(pk=item_id).update(
            current_stock=F("current_stock") + delta,
            updated_at=timezone.now(),
        )
        if updated != 1:
            raise ValidationError(f"Inventory item {item_id} not found while applying stock delta")

        item = self.get(pk=item_id)
        new_status = derive_status(item.current_stock, item.minimum_stock)
        if item.status != new_status:
            self.filter(pk=item_id).update(status=new_status)
            item.status = new_status
        return item


class InventoryItem(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "Active", "Active"
        LOW_STOCK = "Low Stock", "Low Stock"
        OUT_OF_STOCK = "Out of Stock", "Out of Stock"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="inventory_items",
    )
    warehouse = models.ForeignKey(
        "warehouses.Warehouse",
        on_delete=models.PROTECT,
        related_name="inventory_items",
    )

    # Snapshot of catalog data (name-only items have no product)
    name = models.CharField(max_length=255)
    code = models.CharField(max_length=32, blank=True, default="")
    category = models.CharField(max_length=32, blank=True, default="")
    subcategory = models.CharField(max_length=100, blank=True, default="")
    unit = models.CharField(max_length=10, default="kg")
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    # Ledger-managed (see module docstring)
    current_stock = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0"))
    minimum_stock = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0"))

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.OUT_OF_STOCK,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = InventoryItemQuerySet.as_manager()

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "warehouse"],
                condition=Q(product__isnull=False),
                name="uniq_inventory_item_product_warehouse",
            ),
            models.UniqueConstraint(
                fields=["name", "warehouse"],
                condition=Q(product__isnull=True),
                name="uniq_inventory_item_name_warehouse",
            ),
            models.CheckConstraint(
                condition=Q(minimum_stock__gte=Decimal("0")),
                name="inventory_item_minimum_stock_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["status"], name="inv_item_status_idx"),
            models.Index(fields=["warehouse", "status"], name="inv_item_wh_status_idx"),
        ]

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_current_stock = instance.__dict__.get("current_stock")
        return instance

    def refresh_from_db(self, *args, **kwargs):
        super().refresh_from_db(*args, **kwargs)
        self._loaded_current_stock = self.__dict__.get("current_stock")

    def clean(self):
        if not (self.name or "").strip():
            raise ValidationError({"name": "name is required"})

        if self.minimum_stock is not None and Decimal(self.minimum_stock) < ZERO:
            raise ValidationError({"minimum_stock": "minimum_stock cannot be negative"})

        if self.price is not None and Decimal(self.price) < ZERO:
            raise ValidationError({"price": "price cannot be negative"})

    def save(self, *args, **kwargs):
        self.name = (self.name or "").strip()

        if self._state.adding:
            if Decimal(str(self.current_stock or 0)) != ZERO:
                raise ValidationError(
                    {"current_stock": "New inventory items start at 0. Record an opening stock movement instead."}
                )
            self.status = derive_status(self.current_stock, self.minimum_stock)
            self.full_clean()
            result = super().save(*args, **kwargs)
            self._loaded_current_stock = self.current_stock
            return result

        loaded = getattr(self, "_loaded_current_stock", None)
        if loaded is not None and Decimal(str(self.current_stock)) != Decimal(str(loaded)):
            raise ValidationError(
                {"current_stock": "current_stock is ledger-managed. Record a StockMovement instead."}
            )

        # Re-read the balance so status is derived from what is actually stored.
        persisted = (
            type(self).objects.filter(pk=self.pk).values_list("current_stock", flat=True).first()
        )
        if persisted is not None:
            self.current_stock = persisted
            self._loaded_current_stock = persisted

        self.status = derive_status(self.current_stock, self.minimum_stock)
        self.full_clean()

        update_fields = kwargs.get("update_fields")
        if update_fields is None:
            update_fields = [
                f.name
                for f in self._meta.concrete_fields
                if not f.primary_key and f.name != "current_stock"
            ]
        else:
            update_fields = [f for f in update_fields if f != "current_stock"]
            update_fields = list({*update_fields, "status", "updated_at"})
        kwargs["update_fields"] = update_fields

        return super().save(*args, **kwargs)

    @property
    def is_low_stock(self) -> bool:
        return self.status in {self.Status.LOW_STOCK, self.Status.OUT_OF_STOCK}

    def __str__(self):
        wh = getattr(self.warehouse, "name", "Warehouse")
        return f"{self.name} @ {wh} ({self.current_stock} {self.unit})"
