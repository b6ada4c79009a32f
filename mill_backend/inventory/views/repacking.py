# inventory/views/repacking.py

from django.core.exceptions import ValidationError
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.models import Repacking
from inventory.serializers import RepackingCreateSerializer, RepackingSerializer
from inventory.services.exceptions import LedgerError, error_detail
from inventory.services.repacking import repack_stock
from permissions.roles import (
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_VIEW,
    HasAnyCapability,
    HasCapability,
)


class RepackingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Repacking within one warehouse.

    POST /api/inventory/repackings/
    {
      "warehouse_id": "...",
      "source_item_id": "...",
      "source_quantity": "500",
      "repacking_type": "Bulk to Bags",
      "targets": [
        {"product_id": "...", "quantity": "50", "unit_weight": "10", "bag_type": "ATA", "bag_size": "10kg"}
      ]
    }
    """

    serializer_class = RepackingSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["warehouse", "source_item", "repacking_type"]

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
            Repacking.objects.select_related("warehouse", "source_item")
            .prefetch_related("targets__inventory_item")
            .order_by("-created_at")
        )

    @extend_schema(request=RepackingCreateSerializer, responses={201: RepackingSerializer})
    def create(self, request, *args, **kwargs):
        serializer = RepackingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            repacking = repack_stock(
                warehouse=data["warehouse_id"],
                source_item=data["source_item_id"],
                source_quantity=data["source_quantity"],
                source_unit_weight=data.get("source_unit_weight"),
                repacking_type=data["repacking_type"],
                reason=data.get("reason", ""),
                notes=data.get("notes", ""),
                targets=[
                    {
                        "inventory_item_id": line.get("inventory_item_id"),
                        "product_id": line.get("product_id"),
                        "quantity": line["quantity"],
                        "unit_weight": line.get("unit_weight"),
                        "bag_type": line.get("bag_type"),
                        "bag_size": line.get("bag_size", ""),
                    }
                    for line in data["targets"]
                ],
                user=request.user,
            )
        except (ValidationError, LedgerError) as exc:
            return Response({"detail": error_detail(exc)}, status=status.HTTP_400_BAD_REQUEST)

        repacking = self.get_queryset().get(pk=repacking.pk)
        return Response(RepackingSerializer(repacking).data, status=status.HTTP_201_CREATED)
