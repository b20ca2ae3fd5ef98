# Generated manually for initial schema.
from __future__ import annotations

import uuid

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=2,
                        default=0,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        choices=[
                            ("USD", "US Dollar"),
                            ("EUR", "Euro"),
                            ("GBP", "British Pound"),
                            ("JPY", "Japanese Yen"),
                            ("AUD", "Australian Dollar"),
                            ("NOK", "Norwegian Krone"),
                        ],
                        default="USD",
                        max_length=3,
                    ),
                ),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("Brand Awareness", "Brand Awareness"),
                            ("Business Development", "Business Development"),
                            ("Marketing Services", "Marketing Services"),
                            ("Web Services", "Web Services"),
                        ],
                        default="Marketing Services",
                        max_length=64,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"db_table": "products", "ordering": ["-created_at", "name"]},
        ),
        migrations.CreateModel(
            name="Client",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("email", models.EmailField(max_length=254)),
                ("company_name", models.CharField(max_length=255)),
                ("phone", models.CharField(blank=True, max_length=64)),
                ("street_address_1", models.CharField(blank=True, max_length=255)),
                ("street_address_2", models.CharField(blank=True, max_length=255)),
                ("country", models.CharField(blank=True, max_length=128)),
                ("zipcode", models.CharField(blank=True, max_length=32)),
                ("place", models.CharField(blank=True, max_length=128)),
                ("website", models.CharField(blank=True, max_length=255)),
                ("internal_notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"db_table": "clients", "ordering": ["-created_at", "company_name"]},
        ),
    ]
