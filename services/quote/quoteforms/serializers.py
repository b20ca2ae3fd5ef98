"""Serializers for quote forms and the builder endpoints."""
from __future__ import annotations

from typing import Any, Dict

from rest_framework import serializers

from .builder import FieldCollection, FieldDescriptor, FormBuilderSession
from .models import FormField, QuoteForm
from .publishing import normalize_slug


class FieldOptionSerializer(serializers.Serializer):
    label = serializers.CharField(allow_blank=True)
    value = serializers.CharField(allow_blank=True)


class FormFieldSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(required=False)
    options = FieldOptionSerializer(many=True, required=False)
    product_id = serializers.UUIDField(required=False, allow_null=True)

    class Meta:
        model = FormField
        fields = [
            "id",
            "label",
            "field_type",
            "required",
            "price",
            "order",
            "options",
            "content",
            "image_url",
            "product_id",
            "quantity_field",
        ]
        extra_kwargs = {"order": {"read_only": True}}


class QuoteFormSerializer(serializers.ModelSerializer):
    fields = FormFieldSerializer(many=True, required=False)
    client_name = serializers.CharField(source="client.company_name", read_only=True, default=None)
    quote_count = serializers.SerializerMethodField()
    public_path = serializers.CharField(read_only=True)
    slug = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)

    class Meta:
        model = QuoteForm
        fields = [
            "id",
            "title",
            "description",
            "slug",
            "show_prices",
            "published",
            "client",
            "client_name",
            "quote_count",
            "public_path",
            "created_at",
            "updated_at",
            "fields",
        ]
        read_only_fields = ["published"]
        extra_kwargs = {
            "title": {"error_messages": {"blank": "Title is required"}},
        }

    def get_quote_count(self, obj: QuoteForm) -> int:
        annotated = getattr(obj, "quote_count", None)
        if annotated is not None:
            return annotated
        return obj.quotes.count()

    def validate_slug(self, value):
        return normalize_slug(value) if value else None

    def _save_draft(self, session: FormBuilderSession, validated_data: Dict[str, Any]) -> QuoteForm:
        fields = validated_data.pop("fields", None)
        client = validated_data.pop("client", session.client_id)
        session.update_settings(
            client_id=getattr(client, "pk", client),
            **validated_data,
        )
        if fields is not None:
            session.replace_fields(fields)
        form_id = session.save()
        return QuoteForm.objects.get(pk=form_id)

    def create(self, validated_data):  # type: ignore[override]
        session = FormBuilderSession.open(autosave=False)
        return self._save_draft(session, validated_data)

    def update(self, instance, validated_data):  # type: ignore[override]
        session = FormBuilderSession.open(instance.pk, autosave=False)
        return self._save_draft(session, validated_data)


class PublishSerializer(serializers.Serializer):
    slug = serializers.CharField(required=False, allow_blank=True, default="")


class AddFieldSerializer(serializers.Serializer):
    field_type = serializers.ChoiceField(choices=FormField.FIELD_TYPES)


class MoveFieldSerializer(serializers.Serializer):
    from_position = serializers.IntegerField(min_value=0)
    to_position = serializers.IntegerField(min_value=0)


class UpdateFieldSerializer(serializers.ModelSerializer):
    options = FieldOptionSerializer(many=True, required=False)
    product_id = serializers.UUIDField(required=False, allow_null=True)

    class Meta:
        model = FormField
        fields = [
            "label",
            "required",
            "price",
            "options",
            "content",
            "image_url",
            "product_id",
            "quantity_field",
        ]


class AutosaveSerializer(serializers.Serializer):
    title = serializers.CharField(allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    show_prices = serializers.BooleanField(required=False)
    slug = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    fields = FormFieldSerializer(many=True)

    def to_snapshot(self) -> Dict[str, Any]:
        """Draft snapshot for the autosave task; settings the client left out are not touched."""

        data = self.validated_data
        collection = FieldCollection(FieldDescriptor.from_record(record) for record in data["fields"])
        metadata: Dict[str, Any] = {"title": data["title"].strip()}
        for name in ("description", "show_prices"):
            if name in data:
                metadata[name] = data[name]
        if "slug" in data:
            metadata["slug"] = normalize_slug(data["slug"]) if data["slug"] else None
        return {"metadata": metadata, "fields": collection.snapshot()}
