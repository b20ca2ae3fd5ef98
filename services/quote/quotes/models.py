"""Database models for customer quotes."""
from __future__ import annotations

import uuid

from django.db import models


class CustomerQuote(models.Model):
    """A quote request submitted through a form."""

    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    STATUS_CHOICES = [
        (DRAFT, "Draft"),
        (SENT, "Sent"),
        (ACCEPTED, "Accepted"),
        (REJECTED, "Rejected"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    form = models.ForeignKey("quoteforms.QuoteForm", related_name="quotes", on_delete=models.CASCADE)
    customer_email = models.EmailField()
    company_name = models.CharField(max_length=255)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=DRAFT)
    total_price = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "customer_quotes"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.company_name} ({self.status})"


class QuoteResponse(models.Model):
    """The raw answer given for one field of a quote."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    quote = models.ForeignKey(CustomerQuote, related_name="responses", on_delete=models.CASCADE)
    field_id = models.UUIDField()
    value = models.TextField(blank=True)

    class Meta:
        db_table = "quote_responses"
        ordering = ["field_id"]

    def __str__(self) -> str:
        return f"{self.field_id}: {self.value}"
