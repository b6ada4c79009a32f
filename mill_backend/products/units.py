# products/units.py

"""
UNIT CONVERSION

Stock is kept in each product's own unit (kg, tons, bags, pcs).
Only mass units convert between each other; bags and pcs are counts and
only compare with the same unit.
"""

from __future__ import annotations

from decimal import Decimal

from products.models import Product

KG_PER_UNIT = {
    Product.Unit.KG: Decimal("1"),
    Product.Unit.TONS: Decimal("1000"),
}

_ALIASES = {
    "kgs": Product.Unit.KG,
    "kilogram": Product.Unit.KG,
    "kilograms": Product.Unit.KG,
    "ton": Product.Unit.TONS,
    "tonne": Product.Unit.TONS,
    "tonnes": Product.Unit.TONS,
    "bag": Product.Unit.BAGS,
    "pc": Product.Unit.PCS,
}


def normalize_unit(unit) -> str:
    raw = str(unit or "").strip().lower()
    return _ALIASES.get(raw, raw)


def is_mass_unit(unit) -> bool:
    return normalize_unit(unit) in KG_PER_UNIT


def to_kg(quantity, unit) -> Decimal | None:
    factor = KG_PER_UNIT.get(normalize_unit(unit))
    if factor is None:
        return None
    return Decimal(str(quantity)) * factor


def convert_quantity(quantity, from_unit, to_unit) -> Decimal | None:
    """
    quantity expressed in to_unit, or None when the units don't compare
    (e.g. bags into a kg capacity).
    """
    src = normalize_unit(from_unit)
    dst = normalize_unit(to_unit)
    if src == dst:
        return Decimal(str(quantity))
    if src in KG_PER_UNIT and dst in KG_PER_UNIT:
        return Decimal(str(quantity)) * KG_PER_UNIT[src] / KG_PER_UNIT[dst]
    return None


def totals_by_unit(rows) -> dict[str, Decimal]:
    """
    rows: iterable of (unit, quantity). Sums per normalized unit.
    """
    totals: dict[str, Decimal] = {}
    for unit, quantity in rows:
        key = normalize_unit(unit)
        totals[key] = totals.get(key, Decimal("0")) + Decimal(str(quantity or 0))
    return totals
