# inventory/views/audit.py

"""
LEDGER AUDIT + DAMAGE HISTORY (read-only)

GET /api/inventory/audit/?epsilon=0.01&warehouse=<id>
  -> items whose cached stock differs from the replayed ledger.
  Never corrects anything; repairs go through `manage.py recalculate_stock`.
"""

from django.core.exceptions import ValidationError
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from inventory.models import DamageReport
from inventory.serializers import DamageReportSerializer
from inventory.services.exceptions import LedgerError, error_detail
from inventory.services.ledger import audit_consistency
from permissions.roles import (
    CAP_INVENTORY_ADJUST,
    CAP_INVENTORY_VIEW,
    CAP_REPORTS_VIEW,
    HasAnyCapability,
    HasCapability,
)


class StockAuditView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_INVENTORY_ADJUST

    @extend_schema(
        tags=["inventory"],
        parameters=[
            OpenApiParameter(name="epsilon", type=str, required=False),
            OpenApiParameter(name="warehouse", type=str, required=False),
        ],
        description="Compare cached stock with the ledger and list drifted items.",
    )
    def get(self, request):
        epsilon = (request.query_params.get("epsilon") or "").strip() or None
        warehouse = (request.query_params.get("warehouse") or "").strip() or None

        try:
            drift = audit_consistency(epsilon=epsilon, warehouse=warehouse)
        except (ValidationError, LedgerError) as exc:
            return Response({"detail": error_detail(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                "consistent": not drift,
                "count": len(drift),
                "results": [
                    {
                        "inventory_item_id": d.item_id,
                        "name": d.item_name,
                        "warehouse_id": d.warehouse_id,
                        "recorded": str(d.recorded),
                        "expected": str(d.expected),
                        "drift": str(d.drift),
                    }
                    for d in drift
                ],
            },
            status=status.HTTP_200_OK,
        )


class DamageReportViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = DamageReportSerializer
    permission_classes = [IsAuthenticated, HasAnyCapability]
    required_any_capabilities = {CAP_INVENTORY_ADJUST, CAP_INVENTORY_VIEW, CAP_REPORTS_VIEW}
    filterset_fields = ["inventory_item", "warehouse", "reason", "severity"]

    def get_queryset(self):
        return DamageReport.objects.select_related("inventory_item").order_by("-created_at")
