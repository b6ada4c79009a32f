"""
PATH: inventory/models/__init__.py

Inventory models export surface.
"""

from .inventory_item import InventoryItem, derive_status
from .stock_movement import StockMovement
from .damage_report import DamageReport
from .stock_transfer import StockTransfer, StockTransferItem
from .notification import Notification
from .repacking import Repacking, RepackingTarget

__all__ = [
    "InventoryItem",
    "derive_status",
    "StockMovement",
    "DamageReport",
    "StockTransfer",
    "StockTransferItem",
    "Notification",
    "Repacking",
    "RepackingTarget",
]
