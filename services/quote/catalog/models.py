"""Database models for the product catalog and clients."""
from __future__ import annotations

import uuid

from django.core.validators import MinValueValidator
from django.db import models

from .currencies import CURRENCY_CHOICES


class Product(models.Model):
    """A priced item that product fields can snapshot."""

    BRAND_AWARENESS = "Brand Awareness"
    BUSINESS_DEVELOPMENT = "Business Development"
    MARKETING_SERVICES = "Marketing Services"
    WEB_SERVICES = "Web Services"

    CATEGORY_CHOICES = [
        (BRAND_AWARENESS, "Brand Awareness"),
        (BUSINESS_DEVELOPMENT, "Business Development"),
        (MARKETING_SERVICES, "Marketing Services"),
        (WEB_SERVICES, "Web Services"),
    ]
    CATEGORIES = [value for value, _ in CATEGORY_CHOICES]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)],
    )
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default="USD")
    category = models.CharField(max_length=64, choices=CATEGORY_CHOICES, default=MARKETING_SERVICES)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "products"
        ordering = ["-created_at", "name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.currency} {self.price})"


class Client(models.Model):
    """A customer company that owns quote forms."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    email = models.EmailField()
    company_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=64, blank=True)
    street_address_1 = models.CharField(max_length=255, blank=True)
    street_address_2 = models.CharField(max_length=255, blank=True)
    country = models.CharField(max_length=128, blank=True)
    zipcode = models.CharField(max_length=32, blank=True)
    place = models.CharField(max_length=128, blank=True)
    website = models.CharField(max_length=255, blank=True)
    internal_notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "clients"
        ordering = ["-created_at", "company_name"]

    def __str__(self) -> str:
        return f"{self.company_name} ({self.name})"
