"""Serializers for products and clients."""
from __future__ import annotations

from django.db.models import Count
from rest_framework import serializers

from .models import Client, Product


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "price",
            "currency",
            "category",
            "created_at",
        ]
        extra_kwargs = {
            "name": {"error_messages": {"blank": "Product name is required"}},
            "currency": {"required": True, "error_messages": {"required": "Currency is required"}},
            "category": {"required": True, "error_messages": {"required": "Category is required"}},
        }


class BulkImportSerializer(serializers.Serializer):
    data = serializers.CharField(trim_whitespace=False)


class ClientSerializer(serializers.ModelSerializer):
    quote_count = serializers.SerializerMethodField()

    class Meta:
        model = Client
        fields = [
            "id",
            "name",
            "email",
            "company_name",
            "phone",
            "street_address_1",
            "street_address_2",
            "country",
            "zipcode",
            "place",
            "website",
            "internal_notes",
            "created_at",
            "quote_count",
        ]
        extra_kwargs = {
            "name": {"error_messages": {"blank": "Name is required"}},
            "email": {"error_messages": {"blank": "Email is required"}},
            "company_name": {"error_messages": {"blank": "Company name is required"}},
        }

    def get_quote_count(self, obj: Client) -> int:
        annotated = getattr(obj, "quote_count", None)
        if annotated is not None:
            return annotated
        return obj.forms.aggregate(total=Count("quotes"))["total"] or 0
