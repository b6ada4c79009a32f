# reports/views.py

"""
REPORT ENDPOINTS (read-only)

- GET /api/reports/financial/?start=YYYY-MM-DD&end=YYYY-MM-DD   (reports.view)
- GET /api/reports/inventory/?warehouse=<uuid>                   (reports.view or inventory.view)
"""

from django.core.exceptions import ValidationError
from django.utils.dateparse import parse_date
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from permissions.roles import CAP_INVENTORY_VIEW, CAP_REPORTS_VIEW, HasAnyCapability, HasCapability
from reports.services.summary import financial_summary, inventory_summary
from warehouses.models import Warehouse


def _date_param(request, name):
    raw = (request.query_params.get(name) or "").strip()
    if not raw:
        return None, None
    try:
        parsed = parse_date(raw)
    except ValueError:
        parsed = None
    if parsed is None:
        return None, f"{name} must be YYYY-MM-DD"
    return parsed, None


class FinancialSummaryView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_REPORTS_VIEW

    @extend_schema(
        tags=["reports"],
        parameters=[
            OpenApiParameter("start", str, description="YYYY-MM-DD"),
            OpenApiParameter("end", str, description="YYYY-MM-DD"),
        ],
    )
    def get(self, request):
        start, err = _date_param(request, "start")
        if err:
            return Response({"detail": err}, status=status.HTTP_400_BAD_REQUEST)
        end, err = _date_param(request, "end")
        if err:
            return Response({"detail": err}, status=status.HTTP_400_BAD_REQUEST)
        if start and end and start > end:
            return Response({"detail": "start must be on or before end"}, status=status.HTTP_400_BAD_REQUEST)

        return Response(financial_summary(start=start, end=end), status=status.HTTP_200_OK)


class InventorySummaryView(APIView):
    permission_classes = [IsAuthenticated, HasAnyCapability]
    required_any_capabilities = {CAP_REPORTS_VIEW, CAP_INVENTORY_VIEW}

    @extend_schema(tags=["reports"], parameters=[OpenApiParameter("warehouse", str)])
    def get(self, request):
        warehouse_id = (request.query_params.get("warehouse") or "").strip() or None
        if warehouse_id:
            try:
                exists = Warehouse.objects.filter(pk=warehouse_id).exists()
            except (ValidationError, ValueError):
                exists = False
            if not exists:
                return Response({"detail": "Warehouse not found"}, status=status.HTTP_404_NOT_FOUND)

        return Response(inventory_summary(warehouse_id=warehouse_id), status=status.HTTP_200_OK)
