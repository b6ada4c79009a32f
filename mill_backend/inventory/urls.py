from django.urls import path
from rest_framework.routers import DefaultRouter

from inventory.views import (
    DamageReportViewSet,
    InventoryItemViewSet,
    NotificationViewSet,
    RepackingViewSet,
    StockAuditView,
    StockMovementViewSet,
    StockTransferViewSet,
)

router = DefaultRouter()
router.register(r"items", InventoryItemViewSet, basename="inventory-item")
router.register(r"movements", StockMovementViewSet, basename="stock-movement")
router.register(r"transfers", StockTransferViewSet, basename="stock-transfer")
router.register(r"repackings", RepackingViewSet, basename="repacking")
router.register(r"damage-reports", DamageReportViewSet, basename="damage-report")
router.register(r"notifications", NotificationViewSet, basename="notification")

urlpatterns = [
    path("audit/", StockAuditView.as_view(), name="inventory-audit"),
] + router.urls
