# purchases/models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from products.models.product import Product
from warehouses.models import Warehouse

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES)


User = settings.AUTH_USER_MODEL


class Supplier(models.Model):
    """
    Supplier master (wheat growers, government depots, bag vendors).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    contact_person = models.CharField(max_length=200, blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"], name="supplier_name_idx"),
            models.Index(fields=["is_active"], name="supplier_active_idx"),
        ]

    def clean(self):
        if not (self.name or "").strip():
            raise ValidationError({"name": "name is required"})

    def save(self, *args, **kwargs):
        self.name = (self.name or "").strip()
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return self.name


class Purchase(models.Model):
    """
    Purchase header (wheat intake, bag purchase, other supplies).

    Receiving is performed by purchases.services.receiving_service:
    - one IN stock movement per line into the purchase warehouse
    - marks the purchase RECEIVED
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    STATUS_DRAFT = "DRAFT"
    STATUS_RECEIVED = "RECEIVED"
    STATUS_CANCELLED = "CANCELLED"

    STATUSES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_RECEIVED, "Received"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    TYPE_WHEAT = "wheat"
    TYPE_BAGS = "bags"
    TYPE_OTHER = "other"

    TYPES = [
        (TYPE_WHEAT, "Wheat"),
        (TYPE_BAGS, "Bags"),
        (TYPE_OTHER, "Other"),
    ]

    purchase_number = models.CharField(max_length=32, unique=True, blank=True)
    purchase_type = models.CharField(max_length=10, choices=TYPES, default=TYPE_WHEAT)

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="purchases",
    )
    warehouse = models.ForeignKey(
        Warehouse,
        on_delete=models.PROTECT,
        related_name="purchases",
    )

    purchase_date = models.DateField(default=timezone.localdate)
    supplier_reference = models.CharField(max_length=64, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_DRAFT)

    subtotal_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    received_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchases_created",
    )
    received_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchases_received",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(subtotal_amount__gte=Decimal("0.00")),
                name="purchase_subtotal_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=Decimal("0.00")),
                name="purchase_total_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "created_at"], name="purchase_status_created_idx"),
            models.Index(fields=["supplier", "purchase_date"], name="purchase_supplier_date_idx"),
            models.Index(fields=["warehouse", "created_at"], name="purchase_wh_created_idx"),
        ]

    def clean(self):
        if self.subtotal_amount is not None and self.subtotal_amount < Decimal("0.00"):
            raise ValidationError({"subtotal_amount": "subtotal_amount cannot be negative"})

        if self.total_amount is not None and self.total_amount < Decimal("0.00"):
            raise ValidationError({"total_amount": "total_amount cannot be negative"})

        if self.status == self.STATUS_RECEIVED and not self.received_at:
            raise ValidationError({"received_at": "received_at is required when status is RECEIVED"})

        if self.status == self.STATUS_CANCELLED and self.received_at:
            raise ValidationError({"received_at": "received_at must be empty when status is CANCELLED"})

    def save(self, *args, **kwargs):
        if not self.purchase_number:
            self.purchase_number = f"PUR-{uuid.uuid4().hex[:8].upper()}"
        self.supplier_reference = (self.supplier_reference or "").strip()
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.purchase_number} ({self.supplier.name})"


class PurchaseItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    purchase = models.ForeignKey(
        Purchase,
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="purchase_items",
    )

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=Decimal("0")),
                name="purchase_item_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_cost__gte=Decimal("0.00")),
                name="purchase_item_unit_cost_nonnegative",
            ),
        ]

    def clean(self):
        if self.quantity is None or self.quantity <= Decimal("0"):
            raise ValidationError({"quantity": "quantity must be greater than zero"})

        if self.unit_cost is not None and self.unit_cost < Decimal("0.00"):
            raise ValidationError({"unit_cost": "unit_cost cannot be negative"})

    @property
    def line_total(self) -> Decimal:
        return _money(Decimal(str(self.quantity)) * Decimal(str(self.unit_cost)))

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} x {self.quantity}"
