"""API views for the product catalog and clients."""
from __future__ import annotations

from django.db.models import Count
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.response import Response

from accounts.permissions import HasAccount, IsAdminRole
from quotes.models import CustomerQuote
from quotes.serializers import CustomerQuoteSerializer

from .importer import BulkImportError, import_products
from .models import Client, Product
from .serializers import BulkImportSerializer, ClientSerializer, ProductSerializer


class ProductViewSet(viewsets.ModelViewSet):
    queryset = Product.objects.all()
    serializer_class = ProductSerializer
    permission_classes = [IsAdminRole]
    filter_backends = [SearchFilter, OrderingFilter]
    search_fields = ["name", "category"]
    ordering_fields = ["name", "price", "created_at"]
    ordering = ["-created_at"]

    @action(detail=False, methods=["post"], url_path="bulk-import")
    def bulk_import(self, request, *args, **kwargs):  # type: ignore[override]
        """Insert every pasted row, or none of them when any row is invalid."""

        payload = BulkImportSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        try:
            products = import_products(payload.validated_data["data"])
        except BulkImportError as exc:
            return Response({"errors": exc.errors}, status=status.HTTP_400_BAD_REQUEST)
        serializer = self.get_serializer(products, many=True)
        return Response(serializer.data, status=status.HTTP_201_CREATED)


class ClientViewSet(viewsets.ModelViewSet):
    queryset = Client.objects.annotate(quote_count=Count("forms__quotes"))
    serializer_class = ClientSerializer
    permission_classes = [HasAccount]
    filter_backends = [SearchFilter, OrderingFilter]
    search_fields = ["name", "email", "company_name"]
    ordering_fields = ["company_name", "created_at"]
    ordering = ["-created_at"]

    def retrieve(self, request, *args, **kwargs):  # type: ignore[override]
        client = self.get_object()
        quotes = (
            CustomerQuote.objects.filter(form__client=client)
            .select_related("form")
            .order_by("-created_at")
        )
        data = dict(self.get_serializer(client).data)
        data["quotes"] = CustomerQuoteSerializer(quotes, many=True).data
        return Response(data)
