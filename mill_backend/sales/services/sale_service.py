# sales/services/sale_service.py

"""
======================================================
PATH: sales/services/sale_service.py
======================================================
CORE SALES DOMAIN SERVICE

SINGLE SOURCE OF TRUTH for:
- Sale + SaleItem creation
- Stock exit for sold goods (one OUT movement per line via the ledger)
- Totals and payment status
- Cancellation (compensating IN movements)

GUARANTEES:
- Every line is checked against stock BEFORE anything is written
- Fully atomic: a failure on any line rolls back the whole sale
- The ledger remains the only stock authority (record_movement re-checks
  under row lock, so a race after the pre-check still cannot go negative)
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from inventory.models import InventoryItem, StockMovement
from inventory.services.exceptions import InsufficientStockError
from inventory.services.ledger import record_movement
from products.models import Product
from sales.models import Customer, Sale, SaleItem
from sales.services.sale_lifecycle import validate_transition
from warehouses.models import Warehouse

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
QTY_PLACES = Decimal("0.001")


class SaleError(ValueError):
    pass


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _to_decimal(value, *, field_name: str) -> Decimal:
    if value is None or value == "":
        raise SaleError(f"{field_name} is required")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise SaleError(f"{field_name} must be a valid decimal") from exc


def _sale_reason(sale: Sale) -> str:
    return f"Sale - Invoice {sale.invoice_number}"


def _cancel_reason(sale: Sale) -> str:
    return f"Sale Cancelled - Invoice {sale.invoice_number}"


def _prepare_lines(*, warehouse: Warehouse, items) -> list[dict]:
    """
    Resolve each requested line to (product, inventory item, qty, price).
    Lines for the same product are merged so the stock check sees the total.
    """
    merged: dict = {}

    for line in items:
        product = Product.objects.filter(id=line.get("product_id")).first()
        if product is None:
            raise SaleError(f"Product not found: {line.get('product_id')}")
        if not product.is_active:
            raise SaleError(f"Product {product.name} is inactive")

        qty = _to_decimal(line.get("quantity"), field_name="quantity")
        if not qty.is_finite() or qty <= Decimal("0"):
            raise SaleError("quantity must be greater than zero")
        qty = qty.quantize(QTY_PLACES)

        unit_price = line.get("unit_price")
        if unit_price in (None, ""):
            unit_price = product.price
        unit_price = _money(_to_decimal(unit_price, field_name="unit_price"))
        if unit_price < Decimal("0.00"):
            raise SaleError("unit_price cannot be negative")

        existing = merged.get(product.pk)
        if existing is not None:
            if existing["unit_price"] != unit_price:
                raise SaleError(f"Conflicting unit_price for {product.name}")
            existing["quantity"] += qty
            continue

        item = InventoryItem.objects.filter(product=product, warehouse=warehouse).first()
        if item is None:
            raise InsufficientStockError(
                item_name=product.name,
                available=Decimal("0"),
                requested=qty,
            )

        merged[product.pk] = {
            "product": product,
            "inventory_item": item,
            "quantity": qty,
            "unit_price": unit_price,
        }

    lines = list(merged.values())

    # All-or-nothing stock check before any write.
    for line in lines:
        item = line["inventory_item"]
        if line["quantity"] > item.current_stock:
            raise InsufficientStockError(
                item_name=item.name,
                available=item.current_stock,
                requested=line["quantity"],
            )

    return lines


@transaction.atomic
def create_sale(
    *,
    warehouse_id,
    items,
    customer_id=None,
    customer_name: str = "",
    discount_amount=None,
    paid_amount=None,
    payment_method: str = Sale.METHOD_CASH,
    notes: str = "",
    user=None,
) -> Sale:
    """
    Record a confirmed sale.

    paid_amount defaults to the full total, except for credit sales
    where it defaults to zero (Pending).
    """
    if not items:
        raise SaleError("At least one item is required")

    warehouse = Warehouse.objects.filter(id=warehouse_id).first()
    if warehouse is None:
        raise SaleError("Warehouse not found")
    if not warehouse.is_active:
        raise SaleError(f"Warehouse {warehouse.warehouse_number} is inactive")

    customer = None
    if customer_id:
        customer = Customer.objects.filter(id=customer_id, is_active=True).first()
        if customer is None:
            raise SaleError("Customer not found")

    method = (payment_method or Sale.METHOD_CASH).strip().lower()
    if method not in dict(Sale.PAYMENT_METHODS):
        raise SaleError(f"Unsupported payment_method: {payment_method}")

    lines = _prepare_lines(warehouse=warehouse, items=items)

    subtotal = _money(sum((ln["quantity"] * ln["unit_price"] for ln in lines), Decimal("0")))

    discount = _money(discount_amount) if discount_amount not in (None, "") else Decimal("0.00")
    if discount < Decimal("0.00"):
        raise SaleError("discount_amount cannot be negative")
    if discount > subtotal:
        raise SaleError("discount_amount cannot exceed the subtotal")

    total = subtotal - discount

    if paid_amount in (None, ""):
        paid = Decimal("0.00") if method == Sale.METHOD_CREDIT else total
    else:
        paid = _money(_to_decimal(paid_amount, field_name="paid_amount"))
    if paid < Decimal("0.00"):
        raise SaleError("paid_amount cannot be negative")
    if paid > total:
        raise SaleError("paid_amount cannot exceed the total")

    sale = Sale.objects.create(
        customer=customer,
        customer_name=(customer.name if customer else (customer_name or "").strip()),
        warehouse=warehouse,
        user=user if getattr(user, "is_authenticated", False) else None,
        subtotal_amount=subtotal,
        discount_amount=discount,
        total_amount=total,
        paid_amount=paid,
        payment_method=method,
        status=Sale.STATUS_CONFIRMED,
        notes=(notes or "").strip(),
    )

    for ln in lines:
        product = ln["product"]
        item = ln["inventory_item"]

        SaleItem.objects.create(
            sale=sale,
            product=product,
            inventory_item=item,
            product_name=product.name,
            unit=product.unit,
            quantity=ln["quantity"],
            unit_price=ln["unit_price"],
        )

        # Single stock exit point
        record_movement(
            inventory_item=item,
            movement_type=StockMovement.MovementType.OUT,
            quantity=ln["quantity"],
            reason=_sale_reason(sale),
            reference_number=sale.invoice_number,
            user=user,
        )

    logger.info(
        "sale recorded",
        extra={
            "sale_id": str(sale.id),
            "invoice_number": sale.invoice_number,
            "warehouse_id": str(warehouse.pk),
            "total_amount": str(sale.total_amount),
            "payment_status": sale.payment_status,
            "line_count": len(lines),
        },
    )
    return sale


@transaction.atomic
def cancel_sale(*, sale_id, user=None, reason: str = "") -> Sale:
    """
    CONFIRMED -> CANCELLED. Sold quantities go back to the warehouse
    through compensating IN movements.
    """
    sale = Sale.objects.select_for_update().filter(id=sale_id).first()
    if sale is None:
        raise SaleError("Sale not found")

    validate_transition(sale=sale, target_status=Sale.STATUS_CANCELLED)

    for line in sale.items.select_related("inventory_item").order_by("id"):
        record_movement(
            inventory_item=line.inventory_item_id,
            movement_type=StockMovement.MovementType.IN,
            quantity=line.quantity,
            reason=_cancel_reason(sale),
            reference_number=sale.invoice_number,
            user=user,
        )

    sale.status = Sale.STATUS_CANCELLED
    sale.cancelled_at = timezone.now()
    sale.cancelled_by = user if getattr(user, "is_authenticated", False) else None
    sale.cancel_reason = (reason or "").strip()[:255]
    sale.save(update_fields=["status", "cancelled_at", "cancelled_by", "cancel_reason"])

    logger.info(
        "sale cancelled",
        extra={"sale_id": str(sale.id), "invoice_number": sale.invoice_number},
    )
    return sale


@transaction.atomic
def record_payment(*, sale_id, amount) -> Sale:
    """
    Apply a later payment (credit / partial sales). Never overpays.
    """
    sale = Sale.objects.select_for_update().filter(id=sale_id).first()
    if sale is None:
        raise SaleError("Sale not found")
    if sale.status != Sale.STATUS_CONFIRMED:
        raise SaleError("Payments can only be recorded on confirmed sales")

    amt = _money(_to_decimal(amount, field_name="amount"))
    if amt <= Decimal("0.00"):
        raise SaleError("amount must be greater than zero")
    if amt > sale.balance_due:
        raise SaleError(f"amount exceeds the balance due ({sale.balance_due})")

    sale.paid_amount = _money(sale.paid_amount + amt)
    sale.save(update_fields=["paid_amount"])
    return sale
