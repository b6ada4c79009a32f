# warehouses/views/warehouse.py

"""
WAREHOUSE VIEWSET

Purpose:
- Warehouse registry (the set of valid warehouse ids the stock ledger accepts)
- Read for anyone with inventory visibility, write for catalog editors

Deletion:
- Blocked while inventory items exist (PROTECT); deactivate instead.
"""

from django.db.models.deletion import ProtectedError
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from permissions.roles import (
    CAP_CATALOG_EDIT,
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_VIEW,
    HasAnyCapability,
    HasCapability,
)
from warehouses.models import Warehouse
from warehouses.serializers.warehouse import WarehouseSerializer


class WarehouseViewSet(viewsets.ModelViewSet):
    """
    Warehouse API
    """

    serializer_class = WarehouseSerializer
    permission_classes = [IsAuthenticated]

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        self.required_capability = None
        self.required_any_capabilities = None

        if self.action in {"list", "retrieve", "active"}:
            self.required_any_capabilities = {CAP_INVENTORY_VIEW, CAP_INVENTORY_EDIT}
            return [IsAuthenticated(), HasAnyCapability()]

        self.required_capability = CAP_CATALOG_EDIT
        return [IsAuthenticated(), HasCapability()]

    def get_queryset(self):
        qs = Warehouse.objects.all().order_by("name")
        wh_status = (self.request.query_params.get("status") or "").strip()
        if wh_status:
            qs = qs.filter(status=wh_status)
        return qs

    def destroy(self, request, *args, **kwargs):
        warehouse = self.get_object()
        try:
            warehouse.delete()
        except ProtectedError:
            return Response(
                {"detail": "Warehouse holds inventory and cannot be deleted. Set status to Inactive instead."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path="active")
    def active(self, request):
        """
        GET /api/warehouses/active/

        Unpaginated list of active warehouses (dropdown source).
        """
        qs = Warehouse.objects.filter(status=Warehouse.Status.ACTIVE).order_by("name")
        data = WarehouseSerializer(qs, many=True).data
        return Response({"count": len(data), "results": data}, status=status.HTTP_200_OK)
