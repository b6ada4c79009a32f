# inventory/views/stock_transfer.py

from django.core.exceptions import ValidationError
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.models import StockTransfer
from inventory.serializers import (
    StockTransferCreateSerializer,
    StockTransferSerializer,
    TransferCancelSerializer,
    TransferReceiveSerializer,
)
from inventory.services import transfers as transfer_service
from inventory.services.exceptions import LedgerError, error_detail
from permissions.roles import (
    CAP_INVENTORY_ADJUST,
    CAP_INVENTORY_TRANSFER,
    CAP_INVENTORY_VIEW,
    HasAnyCapability,
    HasCapability,
)

# moving stock needs transfer rights; sign-off steps need adjust rights
ACTION_CAPABILITIES = {
    "create": CAP_INVENTORY_TRANSFER,
    "dispatch_stock": CAP_INVENTORY_TRANSFER,
    "receive": CAP_INVENTORY_TRANSFER,
    "approve": CAP_INVENTORY_ADJUST,
    "complete": CAP_INVENTORY_ADJUST,
    "cancel": CAP_INVENTORY_ADJUST,
}


class StockTransferViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Warehouse transfers.

    POST /api/inventory/transfers/
    {
      "from_warehouse_id": "...",
      "to_warehouse_id": "...",
      "notes": "",
      "requires_approval": false,
      "items": [{"inventory_item_id": "...", "quantity": "100.000"}]
    }

    requires_approval=false moves the stock at once (COMPLETED).
    requires_approval=true leaves the transfer PENDING; then
    POST .../<id>/approve/, dispatch/, receive/, complete/ (or cancel/).
    """

    serializer_class = StockTransferSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["from_warehouse", "to_warehouse", "status"]

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        self.required_capability = None
        self.required_any_capabilities = None

        if self.action in ACTION_CAPABILITIES:
            self.required_capability = ACTION_CAPABILITIES[self.action]
            return [IsAuthenticated(), HasCapability()]

        self.required_any_capabilities = {CAP_INVENTORY_VIEW, CAP_INVENTORY_TRANSFER}
        return [IsAuthenticated(), HasAnyCapability()]

    def get_queryset(self):
        return (
            StockTransfer.objects.select_related("from_warehouse", "to_warehouse")
            .prefetch_related("items__source_item")
            .order_by("-created_at")
        )

    def _respond(self, transfer, code=status.HTTP_200_OK):
        transfer = self.get_queryset().get(pk=transfer.pk)
        return Response(StockTransferSerializer(transfer).data, status=code)

    @extend_schema(request=StockTransferCreateSerializer, responses={201: StockTransferSerializer})
    def create(self, request, *args, **kwargs):
        serializer = StockTransferCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        run = transfer_service.create_transfer if data["requires_approval"] else transfer_service.transfer_stock
        try:
            transfer = run(
                from_warehouse=data["from_warehouse_id"],
                to_warehouse=data["to_warehouse_id"],
                items=[
                    {"inventory_item": line["inventory_item_id"], "quantity": line["quantity"]}
                    for line in data["items"]
                ],
                notes=data.get("notes", ""),
                user=request.user,
            )
        except (ValidationError, LedgerError) as exc:
            return Response({"detail": error_detail(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return self._respond(transfer, status.HTTP_201_CREATED)

    # ======================================================
    # LIFECYCLE
    # POST /api/inventory/transfers/<id>/<step>/
    # ======================================================

    def _step(self, func, **kwargs):
        transfer = self.get_object()
        try:
            transfer = func(transfer=transfer, user=self.request.user, **kwargs)
        except (ValidationError, LedgerError) as exc:
            return Response({"detail": error_detail(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return self._respond(transfer)

    @extend_schema(request=None, responses={200: StockTransferSerializer})
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        return self._step(transfer_service.approve_transfer)

    @extend_schema(request=None, responses={200: StockTransferSerializer})
    # APIView.dispatch is taken
    @action(detail=True, methods=["post"], url_path="dispatch")
    def dispatch_stock(self, request, pk=None):
        return self._step(transfer_service.dispatch_transfer)

    @extend_schema(request=TransferReceiveSerializer, responses={200: StockTransferSerializer})
    @action(detail=True, methods=["post"])
    def receive(self, request, pk=None):
        ser = TransferReceiveSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        received = {
            str(line["inventory_item_id"]): line["received_quantity"]
            for line in ser.validated_data["items"]
        }
        return self._step(transfer_service.receive_transfer, received=received)

    @extend_schema(request=None, responses={200: StockTransferSerializer})
    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        return self._step(transfer_service.complete_transfer)

    @extend_schema(request=TransferCancelSerializer, responses={200: StockTransferSerializer})
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        ser = TransferCancelSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return self._step(transfer_service.cancel_transfer, reason=ser.validated_data["reason"])
