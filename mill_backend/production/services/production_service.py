# production/services/production_service.py

"""
======================================================
PATH: production/services/production_service.py
======================================================
PRODUCTION RUN SERVICE

record_production() in one transaction:

1) Validate warehouses, raw material, outputs, wastage
2) Check raw material stock in the source warehouse
3) Create the run (batch number PRD-BATCH-XXXXXXXX)
4) OUT raw material from the source ("Production - <batch>")
5) For each output: get-or-create the destination item, IN the quantity
6) Raise a production notification

Mass balance (kg):
    sum(output kg) + wastage kg <= raw material kg
Raw material must be measured in kg or tons. Outputs in bags / pcs need a
unit_weight (kg per unit); kg / tons outputs convert directly.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.db.models import Sum

from inventory.models import InventoryItem, Notification, StockMovement
from inventory.services.exceptions import InsufficientStockError
from inventory.services.ledger import get_or_create_inventory_item, record_movement
from inventory.services.notifications import notify
from production.models import ProductionOutput, ProductionRun
from products.models import Product
from products.units import KG_PER_UNIT
from warehouses.models import Warehouse

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
QTY_PLACES = Decimal("0.001")


class ProductionError(ValueError):
    pass


def _to_quantity(value, *, field_name: str, allow_zero: bool = False) -> Decimal:
    if value is None or value == "":
        if allow_zero:
            return ZERO
        raise ProductionError(f"{field_name} is required")
    try:
        qty = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ProductionError(f"{field_name} must be a valid decimal") from exc

    if not qty.is_finite() or qty < ZERO or (qty == ZERO and not allow_zero):
        raise ProductionError(f"{field_name} must be greater than zero")
    return qty.quantize(QTY_PLACES)


def _warehouse(warehouse_id, *, label: str) -> Warehouse:
    wh = Warehouse.objects.filter(id=warehouse_id).first()
    if wh is None:
        raise ProductionError(f"{label} warehouse not found")
    if not wh.is_active:
        raise ProductionError(f"{label} warehouse {wh.warehouse_number} is inactive")
    return wh


def _output_kg(product: Product, quantity: Decimal, unit_weight) -> Decimal:
    if unit_weight not in (None, ""):
        return quantity * _to_quantity(unit_weight, field_name="unit_weight")
    factor = KG_PER_UNIT.get(product.unit)
    if factor is None:
        raise ProductionError(f"unit_weight is required for {product.name} ({product.unit})")
    return quantity * factor


@transaction.atomic
def record_production(
    *,
    source_warehouse_id,
    raw_material_id,
    raw_material_quantity,
    outputs,
    destination_warehouse_id=None,
    wastage_quantity=None,
    wastage_reason: str = ProductionRun.WASTAGE_PROCESSING,
    production_date=None,
    notes: str = "",
    user=None,
) -> ProductionRun:
    if not outputs:
        raise ProductionError("At least one output product is required")

    source = _warehouse(source_warehouse_id, label="Source")
    destination = (
        _warehouse(destination_warehouse_id, label="Destination")
        if destination_warehouse_id
        else source
    )

    raw = Product.objects.filter(id=raw_material_id).first()
    if raw is None:
        raise ProductionError(f"Raw material not found: {raw_material_id}")
    if raw.unit not in KG_PER_UNIT:
        raise ProductionError("Raw material must be measured in kg or tons")

    raw_qty = _to_quantity(raw_material_quantity, field_name="raw_material_quantity")
    wastage = _to_quantity(wastage_quantity, field_name="wastage_quantity", allow_zero=True)

    if wastage_reason not in dict(ProductionRun.WASTAGE_REASONS):
        raise ProductionError(f"Unsupported wastage_reason: {wastage_reason}")

    lines = []
    seen = set()
    output_kg = ZERO
    for line in outputs:
        product = Product.objects.filter(id=line.get("product_id")).first()
        if product is None:
            raise ProductionError(f"Output product not found: {line.get('product_id')}")
        if product.pk == raw.pk:
            raise ProductionError("Raw material cannot be listed as an output")
        if product.pk in seen:
            raise ProductionError(f"Duplicate output product: {product.name}")
        seen.add(product.pk)

        qty = _to_quantity(line.get("quantity"), field_name="quantity")
        unit_weight = line.get("unit_weight")
        output_kg += _output_kg(product, qty, unit_weight)
        lines.append((product, qty, unit_weight))

    raw_kg = raw_qty * KG_PER_UNIT[raw.unit]
    if output_kg + wastage > raw_kg:
        raise ProductionError(
            f"Output ({output_kg} kg) plus wastage ({wastage} kg) exceeds raw material ({raw_kg} kg)"
        )

    raw_item = InventoryItem.objects.filter(product=raw, warehouse=source).first()
    if raw_item is None or raw_item.current_stock < raw_qty:
        raise InsufficientStockError(
            item_name=raw.name,
            available=raw_item.current_stock if raw_item else ZERO,
            requested=raw_qty,
        )

    run_kwargs = {
        "source_warehouse": source,
        "destination_warehouse": destination,
        "raw_material": raw,
        "raw_material_item": raw_item,
        "raw_material_quantity": raw_qty,
        "raw_material_kg": raw_kg,
        "wastage_quantity": wastage,
        "wastage_reason": wastage_reason,
        "notes": (notes or "").strip(),
        "created_by": user if getattr(user, "is_authenticated", False) else None,
    }
    if production_date:
        run_kwargs["production_date"] = production_date
    run = ProductionRun.objects.create(**run_kwargs)

    reason = f"Production - {run.batch_number}"

    record_movement(
        inventory_item=raw_item,
        movement_type=StockMovement.MovementType.OUT,
        quantity=raw_qty,
        reason=reason,
        reference_number=run.batch_number,
        user=user,
    )

    for product, qty, unit_weight in lines:
        item, _ = get_or_create_inventory_item(warehouse=destination, product=product)

        record_movement(
            inventory_item=item,
            movement_type=StockMovement.MovementType.IN,
            quantity=qty,
            reason=reason,
            reference_number=run.batch_number,
            user=user,
        )

        ProductionOutput.objects.create(
            run=run,
            product=product,
            inventory_item=item,
            quantity=qty,
            unit_weight=None if unit_weight in (None, "") else Decimal(str(unit_weight)),
        )

    notify(
        type=Notification.Type.PRODUCTION,
        title="Production Completed",
        message=f"Production batch {run.batch_number} has been completed",
    )

    logger.info(
        "production run recorded",
        extra={
            "run_id": str(run.id),
            "batch_number": run.batch_number,
            "raw_material_quantity": str(raw_qty),
            "raw_material_kg": str(raw_kg),
            "wastage_quantity": str(wastage),
            "output_count": len(lines),
        },
    )
    return run


def production_summary(*, date_from=None, date_to=None) -> dict:
    """
    Totals for runs in [date_from, date_to] (production_date, inclusive).

    raw_material_kg and wastage_quantity are kg across all runs; raw_materials
    keeps each material in its own unit.
    """
    runs = ProductionRun.objects.all()
    if date_from:
        runs = runs.filter(production_date__gte=date_from)
    if date_to:
        runs = runs.filter(production_date__lte=date_to)

    totals = runs.aggregate(
        raw_kg=Sum("raw_material_kg"),
        wastage=Sum("wastage_quantity"),
    )

    raw_materials = (
        runs.values("raw_material_id", "raw_material__name", "raw_material__unit")
        .annotate(quantity=Sum("raw_material_quantity"), kg=Sum("raw_material_kg"))
        .order_by("raw_material__name")
    )

    outputs = (
        ProductionOutput.objects.filter(run__in=runs)
        .values("product_id", "product__name", "product__unit")
        .annotate(quantity=Sum("quantity"))
        .order_by("product__name")
    )

    return {
        "date_from": date_from,
        "date_to": date_to,
        "run_count": runs.count(),
        "raw_material_kg": totals["raw_kg"] or ZERO,
        "wastage_quantity": totals["wastage"] or ZERO,
        "raw_materials": [
            {
                "product_id": str(row["raw_material_id"]),
                "product_name": row["raw_material__name"],
                "unit": row["raw_material__unit"],
                "quantity": row["quantity"],
                "kg": row["kg"],
            }
            for row in raw_materials
        ],
        "outputs": [
            {
                "product_id": str(row["product_id"]),
                "product_name": row["product__name"],
                "unit": row["product__unit"],
                "quantity": row["quantity"],
            }
            for row in outputs
        ],
    }
