"""Serializers for customer quotes and public submissions."""
from __future__ import annotations

from rest_framework import serializers

from .models import CustomerQuote, QuoteResponse


class QuoteResponseSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuoteResponse
        fields = ["id", "field_id", "value"]
        read_only_fields = fields


class CustomerQuoteSerializer(serializers.ModelSerializer):
    form_title = serializers.CharField(source="form.title", read_only=True)
    responses = QuoteResponseSerializer(many=True, read_only=True)

    class Meta:
        model = CustomerQuote
        fields = [
            "id",
            "form",
            "form_title",
            "customer_email",
            "company_name",
            "status",
            "total_price",
            "created_at",
            "updated_at",
            "responses",
        ]
        read_only_fields = [
            "form",
            "customer_email",
            "company_name",
            "total_price",
            "created_at",
            "updated_at",
        ]


class ResponseValueField(serializers.Field):
    """Accepts strings, numbers and booleans; booleans become ``"true"``/``"false"``."""

    default_error_messages = {"invalid": "Answers must be text, numbers or booleans."}

    def to_internal_value(self, data):
        if isinstance(data, bool):
            return "true" if data else "false"
        if isinstance(data, (str, int, float)):
            return str(data)
        if data is None:
            return ""
        self.fail("invalid")

    def to_representation(self, value):
        return value


class SubmissionSerializer(serializers.Serializer):
    company_name = serializers.CharField(
        max_length=255, error_messages={"blank": "Company name is required", "required": "Company name is required"}
    )
    customer_email = serializers.EmailField(
        error_messages={"blank": "Email is required", "required": "Email is required"}
    )
    responses = serializers.DictField(child=ResponseValueField(), required=False, default=dict)
