from .inventory_item import InventoryItemSerializer, InventoryItemCreateSerializer
from .stock_movement import StockMovementSerializer, StockMovementCreateSerializer
from .damage_report import DamageReportSerializer, DamageReportCreateSerializer
from .stock_transfer import (
    StockTransferSerializer,
    StockTransferCreateSerializer,
    TransferCancelSerializer,
    TransferReceiveSerializer,
)
from .repacking import RepackingSerializer, RepackingCreateSerializer
from .notification import NotificationSerializer

__all__ = [
    "InventoryItemSerializer",
    "InventoryItemCreateSerializer",
    "StockMovementSerializer",
    "StockMovementCreateSerializer",
    "DamageReportSerializer",
    "DamageReportCreateSerializer",
    "StockTransferSerializer",
    "StockTransferCreateSerializer",
    "TransferCancelSerializer",
    "TransferReceiveSerializer",
    "RepackingSerializer",
    "RepackingCreateSerializer",
    "NotificationSerializer",
]
