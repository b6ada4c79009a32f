# sales/api/urls.py

"""
SALES API URLS

Rules:
- "customers" MUST be registered BEFORE the root sale routes,
  otherwise the router will treat "customers" as a <pk>.

Provides:
    /api/sales/                     (list, create)
    /api/sales/<uuid>/              (retrieve)
    /api/sales/<uuid>/cancel/       (POST)
    /api/sales/<uuid>/payments/     (POST)
    /api/sales/customers/           (customer master)
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from sales.api.viewsets.sale import CustomerViewSet, SaleViewSet

router = SimpleRouter()
router.register(r"customers", CustomerViewSet, basename="customers")
router.register(r"", SaleViewSet, basename="sales")

urlpatterns = [
    path("", include(router.urls)),
]
