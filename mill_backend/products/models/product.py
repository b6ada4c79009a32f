# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Sum


class Product(models.Model):
    """
    Catalog entry for anything the mill buys, makes or sells
    (wheat, flour grades, bran, empty bags, ...).

    STOCK MODEL (IMPORTANT):
    - Product itself does NOT store stock
    - Stock lives in InventoryItem (one per product + warehouse)
    - InventoryItem.current_stock is maintained by the stock ledger only

    The catalog supplies defaults (name, code, unit, price, minimum_stock)
    when an InventoryItem is created lazily by a purchase/production/transfer.
    """

    class Category(models.TextChoices):
        RAW_MATERIALS = "Raw Materials", "Raw Materials"
        FINISHED_GOODS = "Finished Goods", "Finished Goods"
        PACKAGING_MATERIALS = "Packaging Materials", "Packaging Materials"

    class Unit(models.TextChoices):
        KG = "kg", "Kilogram"
        TONS = "tons", "Tons"
        BAGS = "bags", "Bags"
        PCS = "pcs", "Pieces"

    CODE_PREFIX = "PRD-"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=32, unique=True, blank=True)
    name = models.CharField(max_length=255, db_index=True)

    category = models.CharField(max_length=32, choices=Category.choices)
    subcategory = models.CharField(max_length=100, blank=True, default="")
    unit = models.CharField(max_length=10, choices=Unit.choices, default=Unit.KG)

    # Current/default selling price per unit
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    purchase_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    minimum_stock = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        default=Decimal("0"),
        help_text="Default low-stock threshold copied onto new inventory items.",
    )

    description = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gte=Decimal("0.00")),
                name="product_price_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(purchase_price__gte=Decimal("0.00")),
                name="product_purchase_price_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(minimum_stock__gte=Decimal("0")),
                name="product_minimum_stock_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["category"], name="product_category_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"

    @classmethod
    def next_code(cls) -> str:
        last = (
            cls.objects.filter(code__startswith=cls.CODE_PREFIX)
            .order_by("-code")
            .values_list("code", flat=True)
            .first()
        )
        seq = 0
        if last:
            try:
                seq = int(last[len(cls.CODE_PREFIX):])
            except ValueError:
                seq = cls.objects.count()
        return f"{cls.CODE_PREFIX}{seq + 1:04d}"

    def clean(self):
        if not (self.name or "").strip():
            raise ValidationError({"name": "name is required"})

        if self.price is not None and Decimal(self.price) < 0:
            raise ValidationError({"price": "price cannot be negative"})

        if self.purchase_price is not None and Decimal(self.purchase_price) < 0:
            raise ValidationError({"purchase_price": "purchase_price cannot be negative"})

        if self.minimum_stock is not None and Decimal(self.minimum_stock) < 0:
            raise ValidationError({"minimum_stock": "minimum_stock cannot be negative"})

    def save(self, *args, **kwargs):
        self.name = (self.name or "").strip()
        self.code = (self.code or "").strip().upper()
        if not self.code:
            self.code = self.next_code()
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def total_stock(self) -> Decimal:
        """
        Stock across all warehouses (sum of ledger-maintained item balances).
        """
        total = self.inventory_items.aggregate(total=Sum("current_stock"))["total"]
        return total or Decimal("0")
