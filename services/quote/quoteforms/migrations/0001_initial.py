# Generated manually for initial schema.
from __future__ import annotations

import uuid

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="QuoteForm",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("slug", models.SlugField(blank=True, max_length=255, null=True, unique=True)),
                ("show_prices", models.BooleanField(default=False)),
                ("published", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "client",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="forms",
                        to="catalog.client",
                    ),
                ),
            ],
            options={"db_table": "quote_forms", "ordering": ["-created_at", "title"]},
        ),
        migrations.CreateModel(
            name="FormField",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, primary_key=True, serialize=False)),
                ("label", models.CharField(blank=True, max_length=255)),
                (
                    "field_type",
                    models.CharField(
                        choices=[
                            ("text", "Text"),
                            ("number", "Number"),
                            ("checkbox", "Checkbox"),
                            ("select", "Select"),
                            ("textarea", "Text Area"),
                            ("header", "Header"),
                            ("content", "Content"),
                            ("image", "Image"),
                            ("product", "Product"),
                        ],
                        max_length=32,
                    ),
                ),
                ("required", models.BooleanField(default=False)),
                ("price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("order", models.PositiveIntegerField(default=0)),
                ("options", models.JSONField(blank=True, default=list)),
                ("content", models.TextField(blank=True)),
                ("image_url", models.CharField(blank=True, max_length=500)),
                ("product_id", models.UUIDField(blank=True, null=True)),
                ("quantity_field", models.BooleanField(default=False)),
                (
                    "form",
                    models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="fields", to="quoteforms.quoteform"),
                ),
            ],
            options={"db_table": "form_fields", "ordering": ["order", "id"]},
        ),
    ]
