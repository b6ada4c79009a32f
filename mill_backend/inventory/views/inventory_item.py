# inventory/views/inventory_item.py

"""
======================================================
PATH: inventory/views/inventory_item.py
======================================================
INVENTORY ITEM VIEWSET

Endpoints:
- GET   /api/inventory/items/                 list (filters: warehouse, product, status, category, q)
- POST  /api/inventory/items/                 get-or-create (+ optional opening_stock)
- GET   /api/inventory/items/<id>/
- PATCH /api/inventory/items/<id>/            metadata only (stock is read-only)
- GET   /api/inventory/items/low-stock/
- POST  /api/inventory/items/<id>/damage/     damage write-off

Stock never changes here except through the ledger services.
"""

from django.core.exceptions import ValidationError
from django.db import transaction
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.filters import InventoryItemFilter
from inventory.models import InventoryItem, StockMovement
from inventory.serializers import (
    DamageReportCreateSerializer,
    DamageReportSerializer,
    InventoryItemCreateSerializer,
    InventoryItemSerializer,
)
from inventory.services.damage import report_damage
from inventory.services.exceptions import LedgerError, error_detail
from inventory.services.ledger import get_or_create_inventory_item, record_movement
from permissions.roles import (
    CAP_INVENTORY_ADJUST,
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_VIEW,
    HasAnyCapability,
    HasCapability,
)

OPENING_STOCK_REASON = "Opening Stock"


class InventoryItemViewSet(viewsets.ModelViewSet):
    serializer_class = InventoryItemSerializer
    filterset_class = InventoryItemFilter
    permission_classes = [IsAuthenticated]
    http_method_names = ["get", "post", "patch", "head", "options"]

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        self.required_capability = None
        self.required_any_capabilities = None

        if self.action in {"list", "retrieve", "low_stock"}:
            self.required_any_capabilities = {CAP_INVENTORY_VIEW, CAP_INVENTORY_EDIT}
            return [IsAuthenticated(), HasAnyCapability()]

        if self.action == "damage":
            self.required_capability = CAP_INVENTORY_ADJUST
            return [IsAuthenticated(), HasCapability()]

        self.required_capability = CAP_INVENTORY_EDIT
        return [IsAuthenticated(), HasCapability()]

    def get_queryset(self):
        return InventoryItem.objects.select_related("warehouse", "product").order_by("name")

    @extend_schema(
        request=InventoryItemCreateSerializer,
        responses={201: InventoryItemSerializer, 200: InventoryItemSerializer},
        description="Get or create an inventory item. opening_stock is recorded as an IN movement.",
    )
    def create(self, request, *args, **kwargs):
        serializer = InventoryItemCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        opening = data.get("opening_stock")

        try:
            with transaction.atomic():
                item, created = get_or_create_inventory_item(
                    warehouse=data["warehouse_id"],
                    product=data.get("product_id"),
                    name=data.get("name"),
                    defaults=serializer.item_defaults(),
                )

                if opening:
                    if not created:
                        raise ValidationError(
                            "Item already exists in this warehouse. Record a stock movement instead of opening stock."
                        )
                    result = record_movement(
                        inventory_item=item,
                        movement_type=StockMovement.MovementType.IN,
                        quantity=opening,
                        reason=OPENING_STOCK_REASON,
                        user=request.user,
                    )
                    item = result.movement.inventory_item
        except (ValidationError, LedgerError) as exc:
            return Response({"detail": error_detail(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            InventoryItemSerializer(item).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def perform_update(self, serializer):
        try:
            serializer.save()
        except ValidationError as exc:
            raise DRFValidationError({"detail": error_detail(exc)})

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        """
        GET /api/inventory/items/low-stock/?warehouse=<id>
        """
        qs = self.filter_queryset(self.get_queryset()).low_stock()
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(InventoryItemSerializer(page, many=True).data)
        return Response(InventoryItemSerializer(qs, many=True).data)

    @extend_schema(
        request=DamageReportCreateSerializer,
        responses={201: DamageReportSerializer},
        description="Write off damaged stock (records an OUT movement).",
    )
    @action(detail=True, methods=["post"], url_path="damage")
    def damage(self, request, pk=None):
        item = self.get_object()

        serializer = DamageReportCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            report = report_damage(
                inventory_item=item,
                quantity=data["quantity"],
                reason=data["reason"],
                severity=data.get("severity"),
                description=data.get("description", ""),
                damage_date=data.get("damage_date"),
                estimated_loss=data.get("estimated_loss"),
                user=request.user,
            )
        except (ValidationError, LedgerError) as exc:
            return Response({"detail": error_detail(exc)}, status=status.HTTP_400_BAD_REQUEST)

        item.refresh_from_db()
        return Response(
            {
                "damage_report": DamageReportSerializer(report).data,
                "current_stock": str(item.current_stock),
                "status": item.status,
            },
            status=status.HTTP_201_CREATED,
        )
