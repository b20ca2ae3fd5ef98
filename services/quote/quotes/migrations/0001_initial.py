# Generated manually for initial schema.
from __future__ import annotations

import uuid

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("quoteforms", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="CustomerQuote",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("customer_email", models.EmailField(max_length=254)),
                ("company_name", models.CharField(max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("sent", "Sent"),
                            ("accepted", "Accepted"),
                            ("rejected", "Rejected"),
                        ],
                        default="draft",
                        max_length=16,
                    ),
                ),
                ("total_price", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "form",
                    models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="quotes", to="quoteforms.quoteform"),
                ),
            ],
            options={"db_table": "customer_quotes", "ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="QuoteResponse",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("field_id", models.UUIDField()),
                ("value", models.TextField(blank=True)),
                (
                    "quote",
                    models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="responses", to="quotes.customerquote"),
                ),
            ],
            options={"db_table": "quote_responses", "ordering": ["field_id"]},
        ),
    ]
