# purchases/api/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from permissions.roles import CAP_PURCHASES_MANAGE, HasCapability
from purchases.api.serializers import (
    PurchaseCreateSerializer,
    PurchaseSerializer,
    SupplierSerializer,
)
from purchases.models import Purchase, Supplier
from purchases.services.purchase_service import PurchaseError, cancel_purchase, create_purchase
from purchases.services.receiving_service import PurchaseReceivingError, receive_purchase


class PurchasesPermissionMixin:
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_PURCHASES_MANAGE


def _purchase_qs():
    return (
        Purchase.objects.select_related("supplier", "warehouse")
        .prefetch_related("items", "items__product")
        .order_by("-created_at")
    )


class SupplierListCreateView(PurchasesPermissionMixin, GenericAPIView):
    serializer_class = SupplierSerializer

    @extend_schema(tags=["purchases"], responses=SupplierSerializer(many=True))
    def get(self, request):
        qs = Supplier.objects.filter(is_active=True).order_by("name")
        return Response(SupplierSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["purchases"],
        request=SupplierSerializer,
        responses={201: SupplierSerializer},
    )
    def post(self, request):
        s = SupplierSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        supplier = s.save()
        return Response(SupplierSerializer(supplier).data, status=status.HTTP_201_CREATED)


class PurchaseListCreateView(PurchasesPermissionMixin, GenericAPIView):
    serializer_class = PurchaseSerializer

    @extend_schema(tags=["purchases"], responses=PurchaseSerializer(many=True))
    def get(self, request):
        qs = _purchase_qs()

        purchase_status = (request.query_params.get("status") or "").strip().upper()
        if purchase_status:
            qs = qs.filter(status=purchase_status)

        purchase_type = (request.query_params.get("purchase_type") or "").strip().lower()
        if purchase_type:
            qs = qs.filter(purchase_type=purchase_type)

        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(PurchaseSerializer(page, many=True).data)
        return Response(PurchaseSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["purchases"],
        request=PurchaseCreateSerializer,
        responses={201: PurchaseSerializer},
    )
    def post(self, request):
        s = PurchaseCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            purchase = create_purchase(
                supplier_id=data["supplier_id"],
                warehouse_id=data["warehouse_id"],
                items=data["items"],
                purchase_type=data["purchase_type"],
                purchase_date=data.get("purchase_date"),
                supplier_reference=data.get("supplier_reference", ""),
                notes=data.get("notes", ""),
                user=request.user,
            )
        except PurchaseError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        purchase = _purchase_qs().get(id=purchase.id)
        return Response(PurchaseSerializer(purchase).data, status=status.HTTP_201_CREATED)


class PurchaseDetailView(PurchasesPermissionMixin, GenericAPIView):
    serializer_class = PurchaseSerializer

    @extend_schema(tags=["purchases"], responses=PurchaseSerializer)
    def get(self, request, purchase_id):
        purchase = _purchase_qs().filter(id=purchase_id).first()
        if purchase is None:
            return Response({"detail": "Purchase not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(PurchaseSerializer(purchase).data, status=status.HTTP_200_OK)


class PurchaseReceiveView(PurchasesPermissionMixin, GenericAPIView):
    @extend_schema(tags=["purchases"], request=None)
    def post(self, request, purchase_id):
        try:
            result = receive_purchase(purchase_id=purchase_id, user=request.user)
        except PurchaseReceivingError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        code = status.HTTP_200_OK if result["already_received"] else status.HTTP_201_CREATED
        return Response(result, status=code)


class PurchaseCancelView(PurchasesPermissionMixin, GenericAPIView):
    @extend_schema(tags=["purchases"], request=None, responses=PurchaseSerializer)
    def post(self, request, purchase_id):
        try:
            purchase = cancel_purchase(purchase_id=purchase_id)
        except PurchaseError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(PurchaseSerializer(_purchase_qs().get(id=purchase.id)).data, status=status.HTTP_200_OK)
