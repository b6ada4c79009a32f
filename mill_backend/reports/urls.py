# reports/urls.py

from django.urls import path

from reports.views import FinancialSummaryView, InventorySummaryView

urlpatterns = [
    path("financial/", FinancialSummaryView.as_view(), name="reports-financial"),
    path("inventory/", InventorySummaryView.as_view(), name="reports-inventory"),
]
