# sales/models/sale.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class Sale(models.Model):
    """
    Represents a confirmed sale invoice (flour, bran, by-products).

    GUARANTEES:
    - Financial figures are immutable once confirmed
    - Stock leaves the warehouse ONLY via the stock ledger (one OUT per line)
    - Cancellation returns stock with compensating IN movements

    PAYMENT:
    - payment_status is derived from (total_amount, paid_amount), never set by clients
    - paid_amount may grow later (credit customers settling their balance)
    """

    STATUS_CONFIRMED = "CONFIRMED"
    STATUS_CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    PAYMENT_PAID = "Paid"
    PAYMENT_PARTIAL = "Partial"
    PAYMENT_PENDING = "Pending"

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PAID, "Paid"),
        (PAYMENT_PARTIAL, "Partial"),
        (PAYMENT_PENDING, "Pending"),
    ]

    METHOD_CASH = "cash"
    METHOD_BANK = "bank"
    METHOD_CHEQUE = "cheque"
    METHOD_CREDIT = "credit"

    PAYMENT_METHODS = [
        (METHOD_CASH, "Cash"),
        (METHOD_BANK, "Bank Transfer"),
        (METHOD_CHEQUE, "Cheque"),
        (METHOD_CREDIT, "Credit"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice_number = models.CharField(
        max_length=64,
        unique=True,
        blank=True,
        help_text="System-generated invoice number",
    )

    customer = models.ForeignKey(
        "sales.Customer",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sales",
    )
    customer_name = models.CharField(max_length=200, blank=True, default="")

    warehouse = models.ForeignKey(
        "warehouses.Warehouse",
        on_delete=models.PROTECT,
        related_name="sales",
    )

    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name="sales",
        help_text="Staff member who recorded the sale",
    )

    subtotal_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    payment_method = models.CharField(max_length=16, choices=PAYMENT_METHODS, default=METHOD_CASH)
    payment_status = models.CharField(
        max_length=16,
        choices=PAYMENT_STATUS_CHOICES,
        default=PAYMENT_PENDING,
    )

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_CONFIRMED)
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cancelled_sales",
    )
    cancel_reason = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(discount_amount__gte=Decimal("0.00")),
                name="sale_discount_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=Decimal("0.00")),
                name="sale_total_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(paid_amount__gte=Decimal("0.00")),
                name="sale_paid_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["created_at"], name="sale_created_idx"),
            models.Index(fields=["status"], name="sale_status_idx"),
            models.Index(fields=["payment_status"], name="sale_payment_status_idx"),
        ]

    _IMMUTABLE_FIELDS = (
        "customer_id",
        "warehouse_id",
        "subtotal_amount",
        "discount_amount",
        "total_amount",
        "payment_method",
        "created_at",
    )

    @classmethod
    def derive_payment_status(cls, total_amount, paid_amount) -> str:
        total = Decimal(str(total_amount or 0))
        paid = Decimal(str(paid_amount or 0))
        if paid >= total:
            return cls.PAYMENT_PAID
        if paid > Decimal("0"):
            return cls.PAYMENT_PARTIAL
        return cls.PAYMENT_PENDING

    @property
    def balance_due(self) -> Decimal:
        return max(Decimal(str(self.total_amount)) - Decimal(str(self.paid_amount)), Decimal("0.00"))

    def _validate_immutable(self, previous: "Sale"):
        if previous.status == self.STATUS_CANCELLED and self.status != previous.status:
            raise ValueError("Sale is cancelled and cannot change status")

        for field in self._IMMUTABLE_FIELDS:
            if getattr(self, field) != getattr(previous, field):
                raise ValueError(f"Sale is immutable once confirmed. Field '{field}' cannot be changed.")

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            previous = Sale.objects.filter(pk=self.pk).first()
            if previous is not None:
                self._validate_immutable(previous)

        if not self.invoice_number:
            prefix = timezone.now().strftime("INV-%Y%m%d")
            self.invoice_number = f"{prefix}-{uuid.uuid4().hex[:8].upper()}"

        self.payment_status = self.derive_payment_status(self.total_amount, self.paid_amount)

        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "paid_amount" in update_fields:
            kwargs["update_fields"] = list({*update_fields, "payment_status"})

        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.invoice_number} | {self.total_amount}"
