# inventory/services/transfers.py

"""
======================================================
PATH: inventory/services/transfers.py
======================================================
WAREHOUSE-TO-WAREHOUSE TRANSFER

Lifecycle:
    create   -> PENDING     (lines validated, stock checked, nothing moves)
    approve  -> APPROVED    (stock re-checked)
    dispatch -> IN_TRANSIT  (OUT from every source item)
    receive  -> DELIVERED   (IN to destination items, actual quantities)
    complete -> COMPLETED
    cancel   -> CANCELLED   (only before dispatch, so no stock to return)

transfer_stock() is the direct path: every step in one transaction.

Rules:
- warehouses distinct and active
- capacity check on the destination (if it declares a capacity), in the
  destination capacity unit; lines in non-convertible units are not counted
- each step is atomic; a failure leaves status and stock untouched
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from inventory.models import InventoryItem, StockMovement, StockTransfer, StockTransferItem
from inventory.services.exceptions import (
    CapacityExceededError,
    InsufficientStockError,
    MovementReferenceError,
    TransferStateError,
)
from inventory.services.ledger import (
    _require_positive_quantity,
    _to_decimal,
    get_or_create_inventory_item,
    record_movement,
    resolve_inventory_item,
    resolve_warehouse,
)
from products.units import convert_quantity
from warehouses.models import Warehouse

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

Status = StockTransfer.Status

ALLOWED_TRANSITIONS = {
    Status.PENDING: {Status.APPROVED, Status.CANCELLED},
    Status.APPROVED: {Status.IN_TRANSIT, Status.CANCELLED},
    Status.IN_TRANSIT: {Status.DELIVERED},
    Status.DELIVERED: {Status.COMPLETED},
}


def _actor(user):
    return user if getattr(user, "is_authenticated", False) else None


def _normalize_lines(items) -> "OrderedDict[str, tuple[InventoryItem, Decimal]]":
    if not items:
        raise ValidationError("At least one item is required")

    merged: "OrderedDict[str, tuple[InventoryItem, Decimal]]" = OrderedDict()
    for raw in items:
        item = resolve_inventory_item(raw.get("inventory_item") or raw.get("inventory_item_id"))
        qty = _require_positive_quantity(raw.get("quantity"))
        key = str(item.pk)
        if key in merged:
            merged[key] = (item, merged[key][1] + qty)
        else:
            merged[key] = (item, qty)
    return merged


def _in_capacity_unit(rows, dest: Warehouse) -> Decimal:
    # rows: (item, qty); rows that cannot be expressed in the capacity unit do not count
    total = ZERO
    for item, qty in rows:
        converted = convert_quantity(qty, item.unit, dest.capacity_unit)
        if converted is not None:
            total += converted
    return total


def _check_capacity(dest: Warehouse, rows) -> None:
    available = dest.available_capacity()
    if available is None:
        return
    incoming = _in_capacity_unit(rows, dest)
    if incoming > available:
        raise CapacityExceededError(
            f"{dest.name} can take {available} {dest.capacity_unit} more; transfer needs {incoming}"
        )


def _check_stock(rows) -> None:
    for item, qty in rows:
        current = InventoryItem.objects.filter(pk=item.pk).values_list("current_stock", flat=True).first()
        if current is None or current < qty:
            raise InsufficientStockError(item_name=item.name, available=current or ZERO, requested=qty)


def _active(*warehouses) -> None:
    for wh in warehouses:
        if wh.status != Warehouse.Status.ACTIVE:
            raise MovementReferenceError(f"Warehouse {wh.warehouse_number} is inactive")


def _lock(transfer) -> StockTransfer:
    pk = transfer.pk if isinstance(transfer, StockTransfer) else transfer
    try:
        locked = StockTransfer.objects.select_for_update().filter(pk=pk).first()
    except (ValidationError, ValueError) as exc:
        raise MovementReferenceError(f"Transfer not found: {pk}") from exc
    if locked is None:
        raise MovementReferenceError(f"Transfer not found: {pk}")
    return locked


def _advance(transfer: StockTransfer, target: str) -> None:
    if target not in ALLOWED_TRANSITIONS.get(transfer.status, set()):
        raise TransferStateError(
            f"Transfer {transfer.transfer_number} cannot go from {transfer.status} to {target}"
        )
    transfer.status = target


def _destination_item(item: InventoryItem, dest: Warehouse) -> InventoryItem:
    if item.product_id:
        destination, _ = get_or_create_inventory_item(warehouse=dest, product=item.product_id)
        return destination

    destination, _ = get_or_create_inventory_item(
        warehouse=dest,
        name=item.name,
        defaults={
            "code": item.code,
            "category": item.category,
            "subcategory": item.subcategory,
            "unit": item.unit,
            "price": item.price,
            "minimum_stock": item.minimum_stock,
        },
    )
    return destination


def _reason(transfer: StockTransfer) -> str:
    return f"Transfer - {transfer.transfer_number}"


# =====================================================
# LIFECYCLE STEPS
# =====================================================

@transaction.atomic
def create_transfer(*, from_warehouse, to_warehouse, items, notes: str = "", user=None) -> StockTransfer:
    """
    items: [{"inventory_item": <id>, "quantity": <decimal>}, ...]
    Every item must live in from_warehouse. Creates a PENDING transfer.
    """
    source = resolve_warehouse(from_warehouse)
    dest = resolve_warehouse(to_warehouse)

    if source.pk == dest.pk:
        raise ValidationError("Source and destination warehouse must differ")
    _active(source, dest)

    lines = _normalize_lines(items)

    for item, _qty in lines.values():
        if item.warehouse_id != source.pk:
            raise MovementReferenceError(
                f"Inventory item {item.name} is not stored in {source.name}"
            )

    _check_stock(lines.values())
    _check_capacity(dest, lines.values())

    transfer = StockTransfer.objects.create(
        from_warehouse=source,
        to_warehouse=dest,
        notes=(notes or "").strip(),
        created_by=_actor(user),
    )
    StockTransferItem.objects.bulk_create(
        [StockTransferItem(transfer=transfer, source_item=item, quantity=qty) for item, qty in lines.values()]
    )

    logger.info(
        "stock transfer created",
        extra={
            "transfer_number": transfer.transfer_number,
            "from_warehouse_id": str(source.pk),
            "to_warehouse_id": str(dest.pk),
            "lines": len(lines),
        },
    )
    return transfer


@transaction.atomic
def approve_transfer(*, transfer, user=None) -> StockTransfer:
    transfer = _lock(transfer)
    _advance(transfer, Status.APPROVED)

    lines = transfer.items.select_related("source_item")
    _check_stock((line.source_item, line.quantity) for line in lines)

    transfer.approved_by = _actor(user)
    transfer.approved_at = timezone.now()
    transfer.save(update_fields=["status", "approved_by", "approved_at"])
    return transfer


@transaction.atomic
def dispatch_transfer(*, transfer, user=None) -> StockTransfer:
    """OUT from every source item. Fails as a whole if any line lacks stock."""
    transfer = _lock(transfer)
    _advance(transfer, Status.IN_TRANSIT)
    _active(transfer.from_warehouse)

    for line in transfer.items.select_related("source_item"):
        record_movement(
            inventory_item=line.source_item,
            movement_type=StockMovement.MovementType.OUT,
            quantity=line.quantity,
            reason=_reason(transfer),
            reference_number=transfer.transfer_number,
            user=user,
        )

    transfer.dispatched_by = _actor(user)
    transfer.dispatched_at = timezone.now()
    transfer.save(update_fields=["status", "dispatched_by", "dispatched_at"])

    logger.info(
        "stock transfer dispatched",
        extra={"transfer_number": transfer.transfer_number},
    )
    return transfer


@transaction.atomic
def receive_transfer(*, transfer, received=None, user=None) -> StockTransfer:
    """
    IN to the destination warehouse.

    received: optional {source_item_id: actual_quantity}. Lines not listed
    arrive in full. 0 <= actual <= dispatched quantity; the difference is
    the transit shortfall and stays out of stock.
    """
    transfer = _lock(transfer)
    _advance(transfer, Status.DELIVERED)
    dest = transfer.to_warehouse
    _active(dest)

    lines = list(transfer.items.select_related("source_item"))
    known = {str(line.source_item_id) for line in lines}

    actual_by_item: dict[str, Decimal] = {}
    for key, value in (received or {}).items():
        key = str(key)
        if key not in known:
            raise MovementReferenceError(f"Inventory item {key} is not part of {transfer.transfer_number}")
        qty = _to_decimal(value, field_name="received_quantity")
        if not qty.is_finite() or qty < ZERO:
            raise ValidationError("received_quantity cannot be negative")
        actual_by_item[key] = qty

    arrivals = []
    for line in lines:
        actual = actual_by_item.get(str(line.source_item_id), line.quantity)
        if actual > line.quantity:
            raise ValidationError(
                f"received_quantity for {line.source_item.name} exceeds the dispatched {line.quantity}"
            )
        arrivals.append((line, actual))

    _check_capacity(dest, [(line.source_item, actual) for line, actual in arrivals])

    for line, actual in arrivals:
        destination = _destination_item(line.source_item, dest)
        if actual > ZERO:
            record_movement(
                inventory_item=destination,
                movement_type=StockMovement.MovementType.IN,
                quantity=actual,
                reason=_reason(transfer),
                reference_number=transfer.transfer_number,
                user=user,
            )
        line.destination_item = destination
        line.received_quantity = actual
        line.save(update_fields=["destination_item", "received_quantity"])

        if actual < line.quantity:
            logger.warning(
                "stock transfer shortfall",
                extra={
                    "transfer_number": transfer.transfer_number,
                    "inventory_item_id": str(line.source_item_id),
                    "dispatched": str(line.quantity),
                    "received": str(actual),
                },
            )

    transfer.received_by = _actor(user)
    transfer.received_at = timezone.now()
    transfer.save(update_fields=["status", "received_by", "received_at"])
    return transfer


@transaction.atomic
def complete_transfer(*, transfer, user=None) -> StockTransfer:
    transfer = _lock(transfer)
    _advance(transfer, Status.COMPLETED)
    transfer.completed_at = timezone.now()
    transfer.save(update_fields=["status", "completed_at"])

    logger.info(
        "stock transfer completed",
        extra={
            "transfer_number": transfer.transfer_number,
            "from_warehouse_id": str(transfer.from_warehouse_id),
            "to_warehouse_id": str(transfer.to_warehouse_id),
        },
    )
    return transfer


@transaction.atomic
def cancel_transfer(*, transfer, reason: str, user=None) -> StockTransfer:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A cancellation reason is required")
    if len(reason) > 255:
        raise ValidationError("reason cannot exceed 255 characters")

    transfer = _lock(transfer)
    _advance(transfer, Status.CANCELLED)
    transfer.cancel_reason = reason
    transfer.cancelled_by = _actor(user)
    transfer.cancelled_at = timezone.now()
    transfer.save(update_fields=["status", "cancel_reason", "cancelled_by", "cancelled_at"])
    return transfer


# =====================================================
# DIRECT TRANSFER
# =====================================================

@transaction.atomic
def transfer_stock(*, from_warehouse, to_warehouse, items, notes: str = "", user=None) -> StockTransfer:
    """
    Create, approve, dispatch, receive in full and complete in one transaction.
    Any failure rolls the whole transfer back.
    """
    transfer = create_transfer(
        from_warehouse=from_warehouse,
        to_warehouse=to_warehouse,
        items=items,
        notes=notes,
        user=user,
    )
    approve_transfer(transfer=transfer, user=user)
    dispatch_transfer(transfer=transfer, user=user)
    receive_transfer(transfer=transfer, user=user)
    return complete_transfer(transfer=transfer, user=user)
