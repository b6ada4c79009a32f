# production/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from production.api.views import ProductionRunViewSet

router = DefaultRouter()
router.register(r"runs", ProductionRunViewSet, basename="production-runs")

urlpatterns = [
    path("", include(router.urls)),
]
