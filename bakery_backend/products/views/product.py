# products/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Public, read-only catalog browsing (AllowAny).
- Product create/update lives in Django admin.

Query params:
- q         : case-insensitive name search
- category  : exact category match
- in_stock  : "true" to hide sold-out items
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import viewsets
from rest_framework.permissions import AllowAny

from products.models import Product
from products.serializers import ProductSerializer

_TRUTHY = {"1", "true", "yes"}


@extend_schema_view(
    list=extend_schema(
        tags=["Catalog"],
        parameters=[
            OpenApiParameter(name="q", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="category", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="in_stock", type=bool, location=OpenApiParameter.QUERY, required=False),
        ],
        description="Browse the bakery catalog.",
    ),
    retrieve=extend_schema(tags=["Catalog"], description="Get a single product."),
)
class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = ProductSerializer
    permission_classes = [AllowAny]
    authentication_classes = []

    def get_queryset(self):
        qs = Product.objects.all()
        params = self.request.query_params

        q = (params.get("q") or "").strip()
        if q:
            qs = qs.filter(name__icontains=q)

        category = (params.get("category") or "").strip()
        if category:
            qs = qs.filter(category__iexact=category)

        if (params.get("in_stock") or "").strip().lower() in _TRUTHY:
            qs = qs.filter(in_stock=True, stock_quantity__gt=0)

        return qs.order_by("name")
