# purchases/services/purchase_service.py

"""
PURCHASE DRAFTS

- create_purchase(): header + lines in one transaction, status DRAFT.
  Nothing touches stock until the purchase is received.
- cancel_purchase(): DRAFT -> CANCELLED. Received purchases cannot be
  cancelled here (reverse with an OUT movement instead).
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.db import transaction

from products.models import Product
from purchases.models import Purchase, PurchaseItem, Supplier, _money
from warehouses.models import Warehouse


class PurchaseError(ValueError):
    pass


def _to_decimal(value, *, field_name: str) -> Decimal:
    if value is None or value == "":
        raise PurchaseError(f"{field_name} is required")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise PurchaseError(f"{field_name} must be a valid decimal") from exc


@transaction.atomic
def create_purchase(
    *,
    supplier_id,
    warehouse_id,
    items,
    purchase_type: str = Purchase.TYPE_WHEAT,
    purchase_date=None,
    supplier_reference: str = "",
    notes: str = "",
    user=None,
) -> Purchase:
    if not items:
        raise PurchaseError("At least one item is required")

    supplier = Supplier.objects.filter(id=supplier_id, is_active=True).first()
    if supplier is None:
        raise PurchaseError("Supplier not found")

    warehouse = Warehouse.objects.filter(id=warehouse_id).first()
    if warehouse is None:
        raise PurchaseError("Warehouse not found")
    if not warehouse.is_active:
        raise PurchaseError(f"Warehouse {warehouse.warehouse_number} is inactive")

    header = {
        "supplier": supplier,
        "warehouse": warehouse,
        "purchase_type": purchase_type,
        "supplier_reference": supplier_reference or "",
        "notes": (notes or "").strip(),
        "status": Purchase.STATUS_DRAFT,
        "created_by": user if getattr(user, "is_authenticated", False) else None,
    }
    if purchase_date:
        header["purchase_date"] = purchase_date

    try:
        purchase = Purchase.objects.create(**header)
    except ValidationError as exc:
        raise PurchaseError("; ".join(exc.messages)) from exc

    subtotal = Decimal("0.00")
    for line in items:
        product = Product.objects.filter(id=line.get("product_id")).first()
        if product is None:
            raise PurchaseError(f"Product not found: {line.get('product_id')}")

        qty = _to_decimal(line.get("quantity"), field_name="quantity")
        if qty <= Decimal("0"):
            raise PurchaseError("quantity must be greater than zero")

        unit_cost = line.get("unit_cost")
        if unit_cost in (None, ""):
            unit_cost = product.purchase_price
        unit_cost = _money(_to_decimal(unit_cost, field_name="unit_cost"))
        if unit_cost < Decimal("0.00"):
            raise PurchaseError("unit_cost cannot be negative")

        it = PurchaseItem.objects.create(
            purchase=purchase,
            product=product,
            quantity=qty,
            unit_cost=unit_cost,
        )
        subtotal += it.line_total

    purchase.subtotal_amount = _money(subtotal)
    purchase.total_amount = purchase.subtotal_amount
    purchase.save(update_fields=["subtotal_amount", "total_amount"])
    return purchase


@transaction.atomic
def cancel_purchase(*, purchase_id) -> Purchase:
    purchase = Purchase.objects.select_for_update().filter(id=purchase_id).first()
    if purchase is None:
        raise PurchaseError("Purchase not found")

    if purchase.status == Purchase.STATUS_CANCELLED:
        return purchase

    if purchase.status != Purchase.STATUS_DRAFT:
        raise PurchaseError("Only DRAFT purchases can be cancelled")

    purchase.status = Purchase.STATUS_CANCELLED
    purchase.save(update_fields=["status"])
    return purchase
