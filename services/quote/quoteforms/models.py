"""Database models for quote forms and their fields."""
from __future__ import annotations

import uuid

from django.db import models


class QuoteForm(models.Model):
    """A configurable quote request form."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    slug = models.SlugField(max_length=255, unique=True, null=True, blank=True)
    show_prices = models.BooleanField(default=False)
    published = models.BooleanField(default=False)
    client = models.ForeignKey(
        "catalog.Client",
        related_name="forms",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "quote_forms"
        ordering = ["-created_at", "title"]

    def __str__(self) -> str:
        return self.title

    @property
    def public_path(self) -> str | None:
        if self.published and self.slug:
            return f"/forms/{self.slug}"
        return None


class FormField(models.Model):
    """A field that belongs to a quote form."""

    TEXT = "text"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    SELECT = "select"
    TEXTAREA = "textarea"
    HEADER = "header"
    CONTENT = "content"
    IMAGE = "image"
    PRODUCT = "product"

    FIELD_TYPES = [
        (TEXT, "Text"),
        (NUMBER, "Number"),
        (CHECKBOX, "Checkbox"),
        (SELECT, "Select"),
        (TEXTAREA, "Text Area"),
        (HEADER, "Header"),
        (CONTENT, "Content"),
        (IMAGE, "Image"),
        (PRODUCT, "Product"),
    ]

    # Only these kinds collect an answer, so only they can be required.
    INPUT_TYPES = (TEXT, NUMBER, CHECKBOX, SELECT, TEXTAREA)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    form = models.ForeignKey(QuoteForm, related_name="fields", on_delete=models.CASCADE)
    label = models.CharField(max_length=255, blank=True)
    field_type = models.CharField(max_length=32, choices=FIELD_TYPES)
    required = models.BooleanField(default=False)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    order = models.PositiveIntegerField(default=0)
    options = models.JSONField(default=list, blank=True)
    content = models.TextField(blank=True)
    image_url = models.CharField(max_length=500, blank=True)
    product_id = models.UUIDField(null=True, blank=True)
    quantity_field = models.BooleanField(default=False)

    class Meta:
        db_table = "form_fields"
        ordering = ["order", "id"]

    def __str__(self) -> str:
        return f"{self.label} ({self.field_type})"
