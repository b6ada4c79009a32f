# products/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Catalog management endpoints (CRUD)
- Per-warehouse stock breakdown for a product

Key rule alignment:
- Stock figures are read from InventoryItem (ledger-maintained), never edited here.
- Products referenced by inventory cannot be deleted; deactivate instead.
"""

from decimal import Decimal

from django.db.models import DecimalField, Q, Sum, Value
from django.db.models.deletion import ProtectedError
from django.db.models.functions import Coalesce
from drf_spectacular.utils import OpenApiParameter, extend_schema
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
from products.models import Product
from products.serializers.product import ProductSerializer


class ProductViewSet(viewsets.ModelViewSet):
    """
    Product endpoints.

    Filters (query params):
    - category=<Raw Materials|Finished Goods|Packaging Materials>
    - q=<search in name/code/subcategory>
    - include_inactive=true|false (default false)
    """

    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticated]

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        self.required_capability = None
        self.required_any_capabilities = None

        if self.action in {"list", "retrieve", "stock"}:
            self.required_any_capabilities = {CAP_INVENTORY_VIEW, CAP_INVENTORY_EDIT}
            return [IsAuthenticated(), HasAnyCapability()]

        self.required_capability = CAP_CATALOG_EDIT
        return [IsAuthenticated(), HasCapability()]

    def get_queryset(self):
        qs = Product.objects.annotate(
            stock_total=Coalesce(
                Sum("inventory_items__current_stock"),
                Value(Decimal("0")),
                output_field=DecimalField(max_digits=16, decimal_places=3),
            )
        )

        category = (self.request.query_params.get("category") or "").strip()
        if category:
            qs = qs.filter(category=category)

        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(
                Q(name__icontains=q) | Q(code__icontains=q) | Q(subcategory__icontains=q)
            )

        include_inactive = (self.request.query_params.get("include_inactive") or "false").strip().lower() in (
            "1", "true", "yes"
        )
        if not include_inactive and self.action == "list":
            qs = qs.filter(is_active=True)

        return qs.order_by("name")

    def destroy(self, request, *args, **kwargs):
        product = self.get_object()
        try:
            product.delete()
        except ProtectedError:
            return Response(
                {"detail": "Product is referenced by inventory or documents. Deactivate it instead."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=["products"],
        parameters=[
            OpenApiParameter(name="id", type=str, location=OpenApiParameter.PATH),
        ],
        description="Stock of this product per warehouse (from the inventory ledger).",
    )
    @action(detail=True, methods=["get"], url_path="stock")
    def stock(self, request, pk=None):
        """
        GET /api/products/<id>/stock/
        """
        product = self.get_object()
        rows = (
            product.inventory_items.select_related("warehouse")
            .order_by("warehouse__name")
        )
        data = [
            {
                "inventory_item_id": str(it.id),
                "warehouse_id": str(it.warehouse_id),
                "warehouse_name": it.warehouse.name,
                "current_stock": str(it.current_stock),
                "minimum_stock": str(it.minimum_stock),
                "status": it.status,
            }
            for it in rows
        ]
        return Response(
            {
                "product_id": str(product.id),
                "product_name": product.name,
                "unit": product.unit,
                "total_stock": str(product.total_stock),
                "warehouses": data,
            },
            status=status.HTTP_200_OK,
        )
