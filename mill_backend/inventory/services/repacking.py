# inventory/services/repacking.py

"""
REPACKING

Stock from one item is packed into one or more items of the same warehouse
(bulk flour into 10kg bags, 50kg bags into 5kg bags, ...).

Ledger effect, in one transaction:
- one OUT from the source item
- one IN per target item
all with reason "Repacking - <number>" and the repacking number as reference.

Weight check: every quantity is expressed in kg (mass units directly, bags
and pcs through unit_weight); packed weight may not exceed the source weight.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction

from inventory.models import InventoryItem, Repacking, RepackingTarget, StockMovement
from inventory.services.exceptions import InsufficientStockError, MovementReferenceError
from inventory.services.ledger import (
    QTY_PLACES,
    REASON_MAX_LENGTH,
    _bounded_text,
    _require_positive_quantity,
    get_or_create_inventory_item,
    record_movement,
    resolve_inventory_item,
    resolve_warehouse,
)
from products.units import to_kg
from warehouses.models import Warehouse

logger = logging.getLogger(__name__)


def _optional_unit_weight(value) -> Decimal | None:
    if value in (None, ""):
        return None
    return _require_positive_quantity(value, field_name="unit_weight")


def _weight_kg(quantity: Decimal, item: InventoryItem, unit_weight: Decimal | None) -> Decimal:
    kg = to_kg(quantity, item.unit)
    if kg is None:
        if unit_weight is None:
            raise ValidationError(f"unit_weight (kg per {item.unit}) is required for {item.name}")
        kg = quantity * unit_weight
    return kg.quantize(QTY_PLACES)


def _target_item(raw: dict, warehouse: Warehouse) -> InventoryItem:
    ref = raw.get("inventory_item") or raw.get("inventory_item_id")
    if ref not in (None, ""):
        item = resolve_inventory_item(ref)
        if item.warehouse_id != warehouse.pk:
            raise MovementReferenceError(f"Inventory item {item.name} is not stored in {warehouse.name}")
        return item

    product = raw.get("product") or raw.get("product_id")
    if product in (None, ""):
        raise ValidationError("Each target needs inventory_item_id or product_id")
    item, _ = get_or_create_inventory_item(warehouse=warehouse, product=product)
    return item


@transaction.atomic
def repack_stock(
    *,
    warehouse,
    source_item,
    source_quantity,
    targets,
    repacking_type: str = Repacking.RepackingType.BULK_TO_BAGS,
    reason: str = "",
    notes: str = "",
    source_unit_weight=None,
    user=None,
) -> Repacking:
    """
    targets: [{"inventory_item_id" | "product_id", "quantity",
               "unit_weight"?, "bag_type"?, "bag_size"?}, ...]

    Errors:
    - ValidationError: bad quantities, unknown type, missing unit_weight,
      packed weight above source weight, duplicate or self target
    - MovementReferenceError: unknown / foreign item, inactive warehouse
    - InsufficientStockError: source balance below source_quantity
    """
    wh = resolve_warehouse(warehouse)
    if wh.status != Warehouse.Status.ACTIVE:
        raise MovementReferenceError(f"Warehouse {wh.warehouse_number} is inactive")

    source = resolve_inventory_item(source_item)
    if source.warehouse_id != wh.pk:
        raise MovementReferenceError(f"Inventory item {source.name} is not stored in {wh.name}")

    qty = _require_positive_quantity(source_quantity, field_name="source_quantity")

    if repacking_type not in Repacking.RepackingType.values:
        raise ValidationError(f"Unknown repacking type: {repacking_type}")
    reason = _bounded_text(reason, field_name="reason", max_length=REASON_MAX_LENGTH)

    pre_kg = _weight_kg(qty, source, _optional_unit_weight(source_unit_weight))

    if not targets:
        raise ValidationError("At least one target is required")

    lines = []
    seen = set()
    for raw in targets:
        item = _target_item(raw, wh)
        if item.pk == source.pk:
            raise ValidationError("A target cannot be the source item")
        if item.pk in seen:
            raise ValidationError(f"{item.name} is listed more than once")
        seen.add(item.pk)

        bag_type = raw.get("bag_type") or RepackingTarget.BagType.CUSTOM
        if bag_type not in RepackingTarget.BagType.values:
            raise ValidationError(f"Unknown bag type: {bag_type}")

        target_qty = _require_positive_quantity(raw.get("quantity"))
        unit_weight = _optional_unit_weight(raw.get("unit_weight"))
        lines.append(
            {
                "item": item,
                "quantity": target_qty,
                "unit_weight": unit_weight,
                "bag_type": bag_type,
                "bag_size": _bounded_text(raw.get("bag_size"), field_name="bag_size", max_length=20),
                "kg": _weight_kg(target_qty, item, unit_weight),
            }
        )

    post_kg = sum((line["kg"] for line in lines), Decimal("0"))
    if post_kg > pre_kg:
        raise ValidationError(f"Packed weight {post_kg} kg exceeds source weight {pre_kg} kg")

    current = InventoryItem.objects.filter(pk=source.pk).values_list("current_stock", flat=True).first()
    if current < qty:
        raise InsufficientStockError(item_name=source.name, available=current, requested=qty)

    repacking = Repacking.objects.create(
        warehouse=wh,
        source_item=source,
        source_quantity=qty,
        repacking_type=repacking_type,
        reason=reason,
        pre_weight_kg=pre_kg,
        post_weight_kg=post_kg,
        notes=(notes or "").strip(),
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )
    ledger_reason = f"Repacking - {repacking.repacking_number}"

    record_movement(
        inventory_item=source,
        movement_type=StockMovement.MovementType.OUT,
        quantity=qty,
        reason=ledger_reason,
        reference_number=repacking.repacking_number,
        user=user,
    )

    for line in lines:
        RepackingTarget.objects.create(
            repacking=repacking,
            inventory_item=line["item"],
            quantity=line["quantity"],
            unit_weight=line["unit_weight"],
            bag_type=line["bag_type"],
            bag_size=line["bag_size"],
        )
        record_movement(
            inventory_item=line["item"],
            movement_type=StockMovement.MovementType.IN,
            quantity=line["quantity"],
            reason=ledger_reason,
            reference_number=repacking.repacking_number,
            user=user,
        )

    if repacking.weight_difference_kg > Decimal("0"):
        logger.warning(
            "repacking weight loss",
            extra={
                "repacking_number": repacking.repacking_number,
                "pre_weight_kg": str(pre_kg),
                "post_weight_kg": str(post_kg),
            },
        )

    logger.info(
        "stock repacked",
        extra={
            "repacking_number": repacking.repacking_number,
            "source_item_id": str(source.pk),
            "source_quantity": str(qty),
            "targets": len(lines),
        },
    )
    return repacking
