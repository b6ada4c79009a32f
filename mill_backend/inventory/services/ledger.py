# inventory/services/ledger.py

"""
======================================================
PATH: inventory/services/ledger.py
======================================================
STOCK LEDGER SERVICES

Purpose:
- record_movement(): the ONLY entrypoint flows use to change stock.
- get_or_create_inventory_item(): idempotent lazy creation of the
  (product, warehouse) aggregate, persisted before any movement references it.
- recalculate_all(): offline full-ledger replay (repair after drift).
- audit_consistency(): read-only drift report.

Rules:
- Callers never write InventoryItem.current_stock themselves.
  Appending a StockMovement applies the delta exactly once (see StockMovement.save()).
- Negative stock is rejected: an OUT larger than the balance raises
  InsufficientStockError and nothing is persisted.
- Quantities are Decimal (kg / bags / pcs), 3 decimal places.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from inventory.models import InventoryItem, StockMovement, derive_status
from inventory.services.exceptions import MovementReferenceError
from inventory.services.notifications import notify_if_low_stock
from products.models import Product
from warehouses.models import Warehouse

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
QTY_PLACES = Decimal("0.001")

REASON_MAX_LENGTH = 255
REFERENCE_MAX_LENGTH = 64

ITEM_DEFAULT_FIELDS = {
    "name",
    "code",
    "category",
    "subcategory",
    "unit",
    "price",
    "minimum_stock",
}


# =====================================================
# RESULTS
# =====================================================

@dataclass(frozen=True)
class MovementResult:
    movement: StockMovement
    current_stock: Decimal
    status: str


@dataclass(frozen=True)
class StockCorrection:
    item_id: str
    item_name: str
    before: Decimal
    after: Decimal


@dataclass(frozen=True)
class RecalculationSummary:
    items_processed: int
    movements_replayed: int
    movements_skipped: int
    dry_run: bool
    corrections: list[StockCorrection] = field(default_factory=list)
    negative_items: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DriftRecord:
    item_id: str
    item_name: str
    warehouse_id: str
    recorded: Decimal
    expected: Decimal

    @property
    def drift(self) -> Decimal:
        return self.recorded - self.expected


# =====================================================
# NORMALIZERS
# =====================================================

def _to_decimal(value, *, field_name="value") -> Decimal:
    if value is None or value == "" or value == "null":
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValidationError(f"{field_name} must be a valid decimal") from exc


def _require_positive_quantity(value, *, field_name="quantity") -> Decimal:
    qty = _to_decimal(value, field_name=field_name)
    if not qty.is_finite() or qty <= ZERO:
        raise ValidationError(f"{field_name} must be greater than zero")
    return qty.quantize(QTY_PLACES)


def _bounded_text(value, *, field_name: str, max_length: int) -> str:
    text = (value or "").strip()
    if len(text) > max_length:
        raise ValidationError(f"{field_name} cannot exceed {max_length} characters")
    return text


def normalize_movement_type(value) -> str:
    raw = (str(value or "")).strip().lower()
    if raw not in StockMovement.MovementType.values:
        raise ValidationError("movement_type must be 'in' or 'out'")
    return raw


def _resolve(model, value, *, label: str):
    if value is None or value == "":
        raise MovementReferenceError(f"{label} is required")
    if isinstance(value, model):
        return value
    try:
        obj = model.objects.filter(pk=value).first()
    except (ValidationError, ValueError) as exc:
        raise MovementReferenceError(f"{label} not found: {value}") from exc
    if obj is None:
        raise MovementReferenceError(f"{label} not found: {value}")
    return obj


def resolve_warehouse(value) -> Warehouse:
    return _resolve(Warehouse, value, label="Warehouse")


def resolve_inventory_item(value) -> InventoryItem:
    return _resolve(InventoryItem, value, label="Inventory item")


# =====================================================
# RECORD MOVEMENT (single write path)
# =====================================================

@transaction.atomic
def record_movement(
    *,
    inventory_item,
    movement_type: str,
    quantity,
    reason: str = "",
    reference_number: str = "",
    warehouse=None,
    user=None,
) -> MovementResult:
    """
    Append one ledger entry and apply it to the item balance exactly once.

    Errors:
    - ValidationError: quantity <= 0, unknown movement_type
    - MovementReferenceError: unknown item / warehouse, or item not in that warehouse
    - InsufficientStockError: OUT above the current balance
    """
    mtype = normalize_movement_type(movement_type)
    qty = _require_positive_quantity(quantity)

    item = resolve_inventory_item(inventory_item)

    if warehouse not in (None, ""):
        wh = resolve_warehouse(warehouse)
        if wh.pk != item.warehouse_id:
            raise MovementReferenceError(
                f"Inventory item {item.pk} does not belong to warehouse {wh.pk}"
            )

    movement = StockMovement(
        inventory_item_id=item.pk,
        warehouse_id=item.warehouse_id,
        movement_type=mtype,
        quantity=qty,
        reason=_bounded_text(reason, field_name="reason", max_length=REASON_MAX_LENGTH),
        reference_number=_bounded_text(
            reference_number,
            field_name="reference_number",
            max_length=REFERENCE_MAX_LENGTH,
        ),
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )
    movement.save()

    updated = movement.inventory_item

    logger.info(
        "stock movement recorded",
        extra={
            "movement_id": str(movement.id),
            "inventory_item_id": str(updated.pk),
            "warehouse_id": str(updated.warehouse_id),
            "movement_type": mtype,
            "quantity": str(qty),
            "current_stock": str(updated.current_stock),
            "reference_number": movement.reference_number,
        },
    )

    if mtype == StockMovement.MovementType.OUT:
        notify_if_low_stock(updated)

    return MovementResult(
        movement=movement,
        current_stock=updated.current_stock,
        status=updated.status,
    )


# =====================================================
# GET OR CREATE ITEM (lazy, idempotent)
# =====================================================

def _item_values(*, product: Product | None, name: str | None, defaults: dict | None) -> dict:
    values: dict = {}
    if product is not None:
        values.update(
            name=product.name,
            code=product.code,
            category=product.category,
            subcategory=product.subcategory,
            unit=product.unit,
            price=product.price,
            minimum_stock=product.minimum_stock,
        )
    if name:
        values.setdefault("name", name.strip())

    for key, value in (defaults or {}).items():
        if key == "current_stock":
            raise ValidationError(
                "current_stock cannot be set on creation. Record an opening stock movement instead."
            )
        if key not in ITEM_DEFAULT_FIELDS:
            raise ValidationError(f"Unsupported inventory item default: {key}")
        values[key] = value

    return values


def get_or_create_inventory_item(
    *,
    warehouse,
    product=None,
    name: str | None = None,
    defaults: dict | None = None,
) -> tuple[InventoryItem, bool]:
    """
    Idempotent lookup-or-create for the (product, warehouse) aggregate.

    - product given   -> keyed by (product, warehouse); catalog supplies defaults
    - only name given -> keyed by (name, warehouse) among product-less items
    - The new row is saved (and its id known) before this returns, so callers
      can reference it in a movement immediately.
    - A concurrent create of the same key resolves to the existing row.
    """
    wh = resolve_warehouse(warehouse)

    if product in (None, "") and not (name or "").strip():
        raise ValidationError("product or name is required")

    if product not in (None, ""):
        product = _resolve(Product, product, label="Product")
        lookup = {"warehouse": wh, "product": product}
    else:
        product = None
        lookup = {"warehouse": wh, "product__isnull": True, "name": name.strip()}

    existing = InventoryItem.objects.filter(**lookup).first()
    if existing is not None:
        return existing, False

    if wh.status != Warehouse.Status.ACTIVE:
        raise MovementReferenceError(f"Warehouse {wh.warehouse_number} is inactive")

    item = InventoryItem(
        warehouse=wh,
        product=product,
        **_item_values(product=product, name=name, defaults=defaults),
    )

    try:
        with transaction.atomic():
            item.save()
    except (IntegrityError, ValidationError):
        existing = InventoryItem.objects.filter(**lookup).first()
        if existing is None:
            raise
        return existing, False

    logger.info(
        "inventory item created",
        extra={
            "inventory_item_id": str(item.pk),
            "warehouse_id": str(wh.pk),
            "product_id": str(product.pk) if product else None,
        },
    )
    return item, True


# =====================================================
# LEDGER REPLAY (offline repair)
# =====================================================

@transaction.atomic
def recalculate_all(*, dry_run: bool = False) -> RecalculationSummary:
    """
    Full ledger replay.

    - Every item starts from 0.
    - All movements are folded in creation order (+in / -out).
    - Final sums and re-derived statuses are persisted (unless dry_run).

    Idempotent: a second run changes nothing. Intended for maintenance windows
    (no concurrent writers); item rows are locked for the duration anyway.
    """
    items = list(InventoryItem.objects.select_for_update().order_by("id"))
    totals: dict = {item.pk: ZERO for item in items}

    replayed = 0
    movements = (
        StockMovement.objects.order_by("created_at", "id")
        .values_list("inventory_item_id", "movement_type", "quantity")
        .iterator()
    )
    skipped = 0
    for item_id, mtype, qty in movements:
        if item_id not in totals:
            skipped += 1
            continue
        replayed += 1
        qty = Decimal(str(qty))
        totals[item_id] += qty if mtype == StockMovement.MovementType.IN else -qty

    corrections: list[StockCorrection] = []
    negative: list[str] = []
    to_update: list[InventoryItem] = []

    for item in items:
        new_stock = totals[item.pk]
        new_status = derive_status(new_stock, item.minimum_stock)

        if new_stock < ZERO:
            negative.append(str(item.pk))

        if new_stock != item.current_stock:
            corrections.append(
                StockCorrection(
                    item_id=str(item.pk),
                    item_name=item.name,
                    before=item.current_stock,
                    after=new_stock,
                )
            )

        if new_stock != item.current_stock or new_status != item.status:
            item.current_stock = new_stock
            item.status = new_status
            to_update.append(item)

    if to_update and not dry_run:
        # bulk_update bypasses save() and auto_now: this is the sanctioned replay write.
        now = timezone.now()
        for item in to_update:
            item.updated_at = now
        InventoryItem.objects.bulk_update(
            to_update,
            ["current_stock", "status", "updated_at"],
            batch_size=500,
        )

    for c in corrections:
        logger.warning(
            "stock corrected by ledger replay" if not dry_run else "stock drift found by ledger replay (dry run)",
            extra={
                "inventory_item_id": c.item_id,
                "before": str(c.before),
                "after": str(c.after),
            },
        )

    return RecalculationSummary(
        items_processed=len(items),
        movements_replayed=replayed,
        movements_skipped=skipped,
        dry_run=dry_run,
        corrections=corrections,
        negative_items=negative,
    )


# =====================================================
# CONSISTENCY AUDIT (read-only)
# =====================================================

def _audit_epsilon(epsilon) -> Decimal:
    raw = epsilon if epsilon is not None else getattr(settings, "INVENTORY_AUDIT_EPSILON", "0.01")
    eps = _to_decimal(raw, field_name="epsilon")
    if not eps.is_finite() or eps < ZERO:
        raise ValidationError("epsilon must be a non-negative number")
    return eps


def audit_consistency(*, epsilon=None, warehouse=None) -> list[DriftRecord]:
    """
    Recompute each item's expected balance from its movements and report
    items where |recorded - expected| > epsilon. Never writes.
    """
    eps = _audit_epsilon(epsilon)

    items = InventoryItem.objects.all().order_by("name")
    movements = StockMovement.objects.all()
    if warehouse not in (None, ""):
        wh = resolve_warehouse(warehouse)
        items = items.filter(warehouse=wh)
        movements = movements.filter(warehouse=wh)

    expected: dict = {}
    for row in movements.values("inventory_item_id", "movement_type").annotate(total=Sum("quantity")):
        total = Decimal(str(row["total"] or 0))
        signed = total if row["movement_type"] == StockMovement.MovementType.IN else -total
        expected[row["inventory_item_id"]] = expected.get(row["inventory_item_id"], ZERO) + signed

    drift: list[DriftRecord] = []
    for item in items.values("id", "name", "warehouse_id", "current_stock"):
        exp = expected.get(item["id"], ZERO)
        recorded = Decimal(str(item["current_stock"]))
        if abs(recorded - exp) > eps:
            record = DriftRecord(
                item_id=str(item["id"]),
                item_name=item["name"],
                warehouse_id=str(item["warehouse_id"]),
                recorded=recorded,
                expected=exp,
            )
            drift.append(record)
            logger.warning(
                "stock drift detected",
                extra={
                    "inventory_item_id": record.item_id,
                    "recorded": str(record.recorded),
                    "expected": str(record.expected),
                },
            )

    return drift
