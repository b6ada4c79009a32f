# purchases/services/receiving_service.py


"""
======================================================
PATH: purchases/services/receiving_service.py
======================================================
PURCHASE RECEIVING SERVICE

Receive a Purchase atomically:

1) Lock purchase
2) Validate status + items
3) For each line: get-or-create the (product, warehouse) inventory item,
   then record an IN movement ("Purchase - <purchase_number>")
4) Compute totals, mark purchase RECEIVED

Idempotency rule:
- Receiving an already RECEIVED purchase returns its current state and
  records nothing (safe client retries).
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from inventory.services.exceptions import LedgerError, error_detail
from inventory.services.ledger import get_or_create_inventory_item, record_movement
from purchases.models import Purchase

logger = logging.getLogger(__name__)


class PurchaseReceivingError(ValueError):
    pass


TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _result(purchase: Purchase, *, already_received: bool = False) -> dict:
    return {
        "purchase_id": str(purchase.id),
        "purchase_number": purchase.purchase_number,
        "status": purchase.status,
        "subtotal_amount": str(purchase.subtotal_amount),
        "total_amount": str(purchase.total_amount),
        "received_at": purchase.received_at.isoformat() if purchase.received_at else None,
        "already_received": already_received,
    }


@transaction.atomic
def receive_purchase(*, purchase_id, user=None) -> dict:
    """
    RECEIVE PURCHASE (atomic)
    """
    try:
        purchase = (
            Purchase.objects.select_for_update()
            .select_related("warehouse")
            .get(id=purchase_id)
        )
    except (Purchase.DoesNotExist, ValidationError) as exc:
        raise PurchaseReceivingError("Purchase not found") from exc

    if purchase.status == Purchase.STATUS_RECEIVED:
        return _result(purchase, already_received=True)

    if purchase.status != Purchase.STATUS_DRAFT:
        raise PurchaseReceivingError("Only DRAFT purchases can be received")

    items = list(purchase.items.select_related("product").all())
    if not items:
        raise PurchaseReceivingError("Purchase has no items")

    # ------------------------------
    # Validate lines + compute totals
    # ------------------------------
    subtotal = Decimal("0.00")

    for it in items:
        if it.quantity is None or it.quantity <= Decimal("0"):
            raise PurchaseReceivingError("Item quantity must be > 0")

        if it.unit_cost is None or Decimal(str(it.unit_cost)) < Decimal("0.00"):
            raise PurchaseReceivingError("Item unit_cost cannot be negative")

        subtotal += it.line_total

    subtotal = _money(subtotal)
    total = subtotal

    # ------------------------------
    # Stock intake through the ledger
    # ------------------------------
    reason = f"Purchase - {purchase.purchase_number}"

    try:
        for it in items:
            item, _created = get_or_create_inventory_item(
                warehouse=purchase.warehouse,
                product=it.product,
            )
            record_movement(
                inventory_item=item,
                movement_type="in",
                quantity=it.quantity,
                reason=reason,
                reference_number=purchase.purchase_number,
                user=user,
            )
    except (ValidationError, LedgerError) as exc:
        raise PurchaseReceivingError(f"Stock intake failed: {error_detail(exc)}") from exc

    # ------------------------------
    # Mark purchase received
    # ------------------------------
    purchase.subtotal_amount = subtotal
    purchase.total_amount = total
    purchase.status = Purchase.STATUS_RECEIVED
    purchase.received_at = timezone.now()
    purchase.received_by = user if getattr(user, "is_authenticated", False) else None
    purchase.save(update_fields=["subtotal_amount", "total_amount", "status", "received_at", "received_by"])

    logger.info(
        "purchase received",
        extra={
            "purchase_number": purchase.purchase_number,
            "warehouse_id": str(purchase.warehouse_id),
            "lines": len(items),
            "total_amount": str(total),
        },
    )

    return _result(purchase)
