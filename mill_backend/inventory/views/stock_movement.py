# inventory/views/stock_movement.py

"""
STOCK MOVEMENT ENDPOINTS (LEDGER)

- GET  /api/inventory/movements/        ledger history (filters: inventory_item, warehouse,
                                         movement_type, date_from, date_to, reference_number)
- GET  /api/inventory/movements/<id>/
- POST /api/inventory/movements/        record one movement -> {movement, current_stock, status}

No update / delete: the ledger is append-only.
"""

from django.core.exceptions import ValidationError
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.filters import StockMovementFilter
from inventory.models import StockMovement
from inventory.serializers import StockMovementCreateSerializer, StockMovementSerializer
from inventory.services.exceptions import LedgerError, error_detail
from inventory.services.ledger import record_movement
from permissions.roles import (
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_VIEW,
    HasAnyCapability,
    HasCapability,
)


class StockMovementViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = StockMovementSerializer
    filterset_class = StockMovementFilter
    permission_classes = [IsAuthenticated]

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        self.required_capability = None
        self.required_any_capabilities = None

        if self.action == "create":
            self.required_capability = CAP_INVENTORY_EDIT
            return [IsAuthenticated(), HasCapability()]

        self.required_any_capabilities = {CAP_INVENTORY_VIEW, CAP_INVENTORY_EDIT}
        return [IsAuthenticated(), HasAnyCapability()]

    def get_queryset(self):
        return (
            StockMovement.objects.select_related("inventory_item", "warehouse", "created_by")
            .order_by("-created_at", "-id")
        )

    @extend_schema(
        request=StockMovementCreateSerializer,
        responses={201: StockMovementSerializer},
        description="Append a stock movement and apply it to the item balance.",
    )
    def create(self, request, *args, **kwargs):
        serializer = StockMovementCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            result = record_movement(
                inventory_item=data["inventory_item_id"],
                movement_type=data["movement_type"],
                quantity=data["quantity"],
                reason=data.get("reason", ""),
                reference_number=data.get("reference_number", ""),
                warehouse=data.get("warehouse_id"),
                user=request.user,
            )
        except (ValidationError, LedgerError) as exc:
            return Response({"detail": error_detail(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                "movement": StockMovementSerializer(result.movement).data,
                "current_stock": str(result.current_stock),
                "status": result.status,
            },
            status=status.HTTP_201_CREATED,
        )
