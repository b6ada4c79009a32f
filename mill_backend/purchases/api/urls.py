# purchases/api/urls.py

from django.urls import path

from purchases.api.views import (
    PurchaseCancelView,
    PurchaseDetailView,
    PurchaseListCreateView,
    PurchaseReceiveView,
    SupplierListCreateView,
)

urlpatterns = [
    path("suppliers/", SupplierListCreateView.as_view(), name="purchase-suppliers"),
    path("", PurchaseListCreateView.as_view(), name="purchases"),
    path("<uuid:purchase_id>/", PurchaseDetailView.as_view(), name="purchase-detail"),
    path(
        "<uuid:purchase_id>/receive/",
        PurchaseReceiveView.as_view(),
        name="purchase-receive",
    ),
    path(
        "<uuid:purchase_id>/cancel/",
        PurchaseCancelView.as_view(),
        name="purchase-cancel",
    ),
]
