# warehouses/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from warehouses.views.warehouse import WarehouseViewSet

# Single resource mounted at /api/warehouses/ (no router root view needed).
router = SimpleRouter()
router.register(r"", WarehouseViewSet, basename="warehouses")

urlpatterns = [
    path("", include(router.urls)),
]
