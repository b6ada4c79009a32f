# inventory/services/damage.py

"""
DAMAGE WRITE-OFF

A damage report is always paired with exactly one OUT movement
(reason "Damage - <reason>") created in the same transaction.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError
from django.db import transaction

from inventory.models import DamageReport, StockMovement
from inventory.services.ledger import _require_positive_quantity, record_movement, resolve_inventory_item

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")


@transaction.atomic
def report_damage(
    *,
    inventory_item,
    quantity,
    reason: str,
    severity: str = DamageReport.Severity.MEDIUM,
    description: str = "",
    damage_date=None,
    estimated_loss=None,
    user=None,
) -> DamageReport:
    item = resolve_inventory_item(inventory_item)
    qty = _require_positive_quantity(quantity)

    if reason not in DamageReport.Reason.values:
        raise ValidationError(f"Unknown damage reason: {reason}")
    if severity not in DamageReport.Severity.values:
        raise ValidationError(f"Unknown damage severity: {severity}")

    if estimated_loss in (None, ""):
        loss = (qty * Decimal(str(item.price or 0))).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    else:
        loss = Decimal(str(estimated_loss)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
        if loss < Decimal("0"):
            raise ValidationError("estimated_loss cannot be negative")

    result = record_movement(
        inventory_item=item,
        movement_type=StockMovement.MovementType.OUT,
        quantity=qty,
        reason=f"Damage - {reason}",
        user=user,
    )

    report_kwargs = {}
    if damage_date:
        report_kwargs["damage_date"] = damage_date

    report = DamageReport.objects.create(
        inventory_item=item,
        warehouse_id=item.warehouse_id,
        movement=result.movement,
        quantity=qty,
        reason=reason,
        severity=severity,
        description=(description or "").strip(),
        estimated_loss=loss,
        reported_by=user if getattr(user, "is_authenticated", False) else None,
        **report_kwargs,
    )

    logger.info(
        "damage reported",
        extra={
            "damage_report_id": str(report.pk),
            "inventory_item_id": str(item.pk),
            "quantity": str(qty),
            "reason": reason,
        },
    )
    return report
