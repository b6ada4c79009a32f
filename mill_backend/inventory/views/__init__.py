from .inventory_item import InventoryItemViewSet
from .stock_movement import StockMovementViewSet
from .stock_transfer import StockTransferViewSet
from .repacking import RepackingViewSet
from .notification import NotificationViewSet
from .audit import DamageReportViewSet, StockAuditView

__all__ = [
    "InventoryItemViewSet",
    "StockMovementViewSet",
    "StockTransferViewSet",
    "RepackingViewSet",
    "NotificationViewSet",
    "DamageReportViewSet",
    "StockAuditView",
]
