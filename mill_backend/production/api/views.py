# production/api/views.py

from django.core.exceptions import ValidationError
from django.utils.dateparse import parse_date
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.services.exceptions import LedgerError, error_detail
from permissions.roles import (
    CAP_PRODUCTION_MANAGE,
    CAP_REPORTS_VIEW,
    HasAnyCapability,
    HasCapability,
)
from production.api.serializers import ProductionRunCreateSerializer, ProductionRunSerializer
from production.models import ProductionRun
from production.services.production_service import (
    ProductionError,
    production_summary,
    record_production,
)


class ProductionRunViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Milling batches.

    - GET  /api/production/runs/
    - POST /api/production/runs/
    - GET  /api/production/runs/<id>/
    - GET  /api/production/runs/summary/?date_from=YYYY-MM-DD&date_to=YYYY-MM-DD
    """

    serializer_class = ProductionRunSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["source_warehouse", "destination_warehouse", "raw_material", "production_date"]

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        self.required_capability = None
        self.required_any_capabilities = None

        if self.action == "create":
            self.required_capability = CAP_PRODUCTION_MANAGE
            return [IsAuthenticated(), HasCapability()]

        self.required_any_capabilities = {CAP_PRODUCTION_MANAGE, CAP_REPORTS_VIEW}
        return [IsAuthenticated(), HasAnyCapability()]

    def get_queryset(self):
        return (
            ProductionRun.objects.select_related("source_warehouse", "destination_warehouse", "raw_material")
            .prefetch_related("outputs__product")
            .order_by("-production_date", "-created_at")
        )

    @extend_schema(request=ProductionRunCreateSerializer, responses={201: ProductionRunSerializer})
    def create(self, request, *args, **kwargs):
        ser = ProductionRunCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        try:
            run = record_production(
                source_warehouse_id=data["source_warehouse_id"],
                destination_warehouse_id=data.get("destination_warehouse_id"),
                raw_material_id=data["raw_material_id"],
                raw_material_quantity=data["raw_material_quantity"],
                outputs=data["outputs"],
                wastage_quantity=data.get("wastage_quantity"),
                wastage_reason=data.get("wastage_reason", ProductionRun.WASTAGE_PROCESSING),
                production_date=data.get("production_date"),
                notes=data.get("notes", ""),
                user=request.user,
            )
        except (ProductionError, ValidationError, LedgerError) as exc:
            return Response({"detail": error_detail(exc)}, status=status.HTTP_400_BAD_REQUEST)

        run = self.get_queryset().get(pk=run.pk)
        return Response(ProductionRunSerializer(run).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        parameters=[
            OpenApiParameter("date_from", str, description="YYYY-MM-DD"),
            OpenApiParameter("date_to", str, description="YYYY-MM-DD"),
        ],
    )
    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request):
        date_from = parse_date((request.query_params.get("date_from") or "").strip())
        date_to = parse_date((request.query_params.get("date_to") or "").strip())
        return Response(production_summary(date_from=date_from, date_to=date_to))
