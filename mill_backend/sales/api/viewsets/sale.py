# sales/api/viewsets/sale.py

"""
======================================================
PATH: sales/api/viewsets/sale.py
======================================================
SALE VIEWSET (STAFF)

Purpose:
- Record sales (stock leaves through the ledger).
- Sales history: list + retrieve with basic filters.
- Cancel a sale (stock comes back through compensating IN movements).
- Record later payments against credit / partial sales.

Security:
- list / retrieve: ANY of sales.sell, sales.cancel, reports.view
- create / payments: sales.sell
- cancel: sales.cancel
======================================================
"""

from __future__ import annotations

from datetime import datetime

from django.core.exceptions import ValidationError
from django.db.models import Q
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.services.exceptions import LedgerError, error_detail
from permissions.roles import (
    CAP_REPORTS_VIEW,
    CAP_SALES_CANCEL,
    CAP_SALES_SELL,
    HasAnyCapability,
    HasCapability,
)
from sales.models import Customer, Sale
from sales.serializers import (
    CustomerSerializer,
    PaymentInputSerializer,
    SaleCancelSerializer,
    SaleCreateSerializer,
    SaleSerializer,
)
from sales.services.sale_lifecycle import SaleLifecycleError
from sales.services.sale_service import SaleError, cancel_sale, create_sale, record_payment

SALES_READ_CAPABILITIES = {CAP_SALES_SELL, CAP_SALES_CANCEL, CAP_REPORTS_VIEW}


def _parse_date(s: str):
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        return None


class SaleViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = SaleSerializer
    permission_classes = [IsAuthenticated]

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        self.required_capability = None
        self.required_any_capabilities = None

        if self.action in ("create", "payments"):
            self.required_capability = CAP_SALES_SELL
            return [IsAuthenticated(), HasCapability()]

        if self.action == "cancel":
            self.required_capability = CAP_SALES_CANCEL
            return [IsAuthenticated(), HasCapability()]

        self.required_any_capabilities = SALES_READ_CAPABILITIES
        return [IsAuthenticated(), HasAnyCapability()]

    # ======================================================
    # QUERYSET
    # ======================================================

    def get_queryset(self):
        qs = (
            Sale.objects.all()
            .select_related("warehouse", "customer")
            .prefetch_related("items")
            .order_by("-created_at")
        )

        params = self.request.query_params

        for param, lookup in (
            ("status", "status"),
            ("payment_status", "payment_status"),
            ("warehouse", "warehouse_id"),
            ("customer", "customer_id"),
        ):
            value = (params.get(param) or "").strip()
            if value:
                qs = qs.filter(**{lookup: value})

        pm = (params.get("payment_method") or "").strip().lower()
        if pm:
            qs = qs.filter(payment_method__iexact=pm)

        q = (params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(invoice_number__icontains=q) | Q(customer_name__icontains=q))

        date_from = _parse_date((params.get("date_from") or "").strip())
        if date_from:
            qs = qs.filter(created_at__date__gte=date_from)

        date_to = _parse_date((params.get("date_to") or "").strip())
        if date_to:
            qs = qs.filter(created_at__date__lte=date_to)

        return qs

    # ======================================================
    # CREATE
    # POST /api/sales/
    # ======================================================

    @extend_schema(request=SaleCreateSerializer, responses={201: SaleSerializer})
    def create(self, request, *args, **kwargs):
        ser = SaleCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        try:
            sale = create_sale(
                warehouse_id=data["warehouse_id"],
                customer_id=data.get("customer_id"),
                customer_name=data.get("customer_name", ""),
                items=data["items"],
                discount_amount=data.get("discount_amount"),
                paid_amount=data.get("paid_amount"),
                payment_method=data.get("payment_method", Sale.METHOD_CASH),
                notes=data.get("notes", ""),
                user=request.user,
            )
        except (SaleError, ValidationError, LedgerError) as exc:
            return Response({"detail": error_detail(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(SaleSerializer(sale).data, status=status.HTTP_201_CREATED)

    # ======================================================
    # CANCEL
    # POST /api/sales/<id>/cancel/
    # ======================================================

    @extend_schema(request=SaleCancelSerializer, responses={200: SaleSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        sale: Sale = self.get_object()

        ser = SaleCancelSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            sale = cancel_sale(
                sale_id=sale.pk,
                user=request.user,
                reason=ser.validated_data.get("reason", ""),
            )
        except (SaleError, SaleLifecycleError, ValidationError, LedgerError) as exc:
            return Response({"detail": error_detail(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(SaleSerializer(sale).data, status=status.HTTP_200_OK)

    # ======================================================
    # PAYMENTS
    # POST /api/sales/<id>/payments/
    # ======================================================

    @extend_schema(request=PaymentInputSerializer, responses={200: SaleSerializer})
    @action(detail=True, methods=["post"], url_path="payments")
    def payments(self, request, pk=None):
        sale: Sale = self.get_object()

        ser = PaymentInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            sale = record_payment(sale_id=sale.pk, amount=ser.validated_data["amount"])
        except SaleError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(SaleSerializer(sale).data, status=status.HTTP_200_OK)


class CustomerViewSet(viewsets.ModelViewSet):
    """
    Customer master data.
    Deleting a customer with sales is refused (PROTECT); deactivate instead.
    """

    serializer_class = CustomerSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ["get", "post", "patch", "head", "options"]
    filterset_fields = ["customer_type", "is_active"]

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        self.required_capability = None
        self.required_any_capabilities = None

        if self.action in ("create", "partial_update", "update"):
            self.required_capability = CAP_SALES_SELL
            return [IsAuthenticated(), HasCapability()]

        self.required_any_capabilities = SALES_READ_CAPABILITIES
        return [IsAuthenticated(), HasAnyCapability()]

    def get_queryset(self):
        qs = Customer.objects.all().order_by("name")
        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(name__icontains=q) | Q(phone__icontains=q))
        return qs
