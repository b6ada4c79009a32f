# reports/services/summary.py

"""
======================================================
PATH: reports/services/summary.py
======================================================
DASHBOARD / REPORT AGGREGATES (read-only)

- financial_summary(start, end): confirmed sales vs received purchases
  in a date range (inclusive, local dates).
- inventory_summary(warehouse_id=None): item counts per status, stock per
  warehouse (one total per unit; kg and bags never add up), low-stock list.

No writes. Amounts are Decimal; callers serialize.
"""

from __future__ import annotations

from decimal import Decimal

from django.db.models import Count, DecimalField, ExpressionWrapper, F, Sum

from inventory.models import InventoryItem
from products.units import normalize_unit
from purchases.models import Purchase
from sales.models import Sale

ZERO = Decimal("0.00")

LOW_STOCK_LIMIT = 50


def _sum(qs, field_name) -> Decimal:
    return qs.aggregate(total=Sum(field_name))["total"] or ZERO


def financial_summary(*, start=None, end=None) -> dict:
    sales = Sale.objects.all()
    purchases = Purchase.objects.filter(status=Purchase.STATUS_RECEIVED)

    if start:
        sales = sales.filter(created_at__date__gte=start)
        purchases = purchases.filter(received_at__date__gte=start)
    if end:
        sales = sales.filter(created_at__date__lte=end)
        purchases = purchases.filter(received_at__date__lte=end)

    confirmed = sales.filter(status=Sale.STATUS_CONFIRMED)

    sales_total = _sum(confirmed, "total_amount")
    paid_total = _sum(confirmed, "paid_amount")
    discount_total = _sum(confirmed, "discount_amount")
    purchases_total = _sum(purchases, "total_amount")

    by_method = {
        row["payment_method"]: {"count": row["n"], "total": row["total"] or ZERO}
        for row in confirmed.values("payment_method")
        .annotate(n=Count("id"), total=Sum("total_amount"))
        .order_by("payment_method")
    }

    by_payment_status = {
        row["payment_status"]: row["n"]
        for row in confirmed.values("payment_status").annotate(n=Count("id")).order_by("payment_status")
    }

    return {
        "start": start,
        "end": end,
        "sales": {
            "count": confirmed.count(),
            "cancelled_count": sales.filter(status=Sale.STATUS_CANCELLED).count(),
            "total": sales_total,
            "discount": discount_total,
            "paid": paid_total,
            "outstanding": sales_total - paid_total,
            "by_payment_method": by_method,
            "by_payment_status": by_payment_status,
        },
        "purchases": {
            "count": purchases.count(),
            "total": purchases_total,
        },
        "gross_margin": sales_total - purchases_total,
    }


def inventory_summary(*, warehouse_id=None) -> dict:
    items = InventoryItem.objects.all()
    if warehouse_id:
        items = items.filter(warehouse_id=warehouse_id)

    by_status = {s: 0 for s in InventoryItem.Status.values}
    for row in items.values("status").annotate(n=Count("id")):
        by_status[row["status"]] = row["n"]

    value_expr = ExpressionWrapper(
        F("current_stock") * F("price"),
        output_field=DecimalField(max_digits=20, decimal_places=5),
    )

    stock_by_unit: dict = {}
    for row in items.values("warehouse_id", "unit").annotate(total=Sum("current_stock")).order_by("unit"):
        units = stock_by_unit.setdefault(row["warehouse_id"], {})
        key = normalize_unit(row["unit"])
        units[key] = units.get(key, Decimal("0")) + (row["total"] or Decimal("0"))

    per_warehouse = [
        {
            "warehouse_id": str(row["warehouse_id"]),
            "warehouse_name": row["warehouse__name"],
            "item_count": row["item_count"],
            "stock_by_unit": stock_by_unit.get(row["warehouse_id"], {}),
            "stock_value": (row["stock_value"] or ZERO).quantize(ZERO),
        }
        for row in items.values("warehouse_id", "warehouse__name")
        .annotate(
            item_count=Count("id"),
            stock_value=Sum(value_expr),
        )
        .order_by("warehouse__name")
    ]

    low = items.low_stock().select_related("warehouse").order_by("current_stock", "name")[:LOW_STOCK_LIMIT]

    return {
        "warehouse_id": str(warehouse_id) if warehouse_id else None,
        "item_count": items.count(),
        "by_status": by_status,
        "warehouses": per_warehouse,
        "low_stock": [
            {
                "id": str(item.pk),
                "name": item.name,
                "warehouse_name": item.warehouse.name,
                "current_stock": item.current_stock,
                "minimum_stock": item.minimum_stock,
                "unit": item.unit,
                "status": item.status,
            }
            for item in low
        ],
    }
