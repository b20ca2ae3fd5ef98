"""Rendering a form for customers and turning their answers into a quote."""
from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from django.db import transaction

from catalog.currencies import format_price
from quoteforms.models import FormField, QuoteForm

from .models import CustomerQuote, QuoteResponse

logger = logging.getLogger(__name__)

DISPLAY_CURRENCY = "USD"

_LEADING_INTEGER = re.compile(r"\s*([+-]?\d+)")


class SubmissionError(Exception):
    """The submission was refused before anything was written."""


class MissingRequiredFields(SubmissionError):
    def __init__(self, labels: List[str]) -> None:
        super().__init__("Please fill in all required fields")
        self.labels = labels


class UnknownField(SubmissionError):
    pass


def parse_quantity(value: Optional[str]) -> int:
    """Leading integer of ``value``; anything unparseable counts as zero."""

    match = _LEADING_INTEGER.match(value or "")
    return int(match.group(1)) if match else 0


def calculate_total(fields: Iterable[Any], responses: Mapping[str, str]) -> Decimal:
    """Sum checked checkbox prices and priced quantities.

    A checkbox adds its price when answered ``"true"``; a number field marked
    as a quantity field adds ``price * quantity``. Every other field adds
    nothing.
    """

    total = Decimal("0")
    for field in fields:
        answer = responses.get(str(field.id))
        price = Decimal(str(field.price or 0))
        if field.field_type == FormField.CHECKBOX and answer == "true":
            total += price
        elif field.field_type == FormField.NUMBER and field.quantity_field:
            total += price * parse_quantity(answer)
    return total


def render_field(field: Any, show_prices: bool) -> Dict[str, Any]:
    rendered: Dict[str, Any] = {
        "id": str(field.id),
        "field_type": field.field_type,
        "label": field.label,
        "required": field.required and field.field_type in FormField.INPUT_TYPES,
        "order": field.order,
    }
    if field.field_type == FormField.SELECT:
        rendered["options"] = list(field.options or [])
    elif field.field_type in (FormField.HEADER, FormField.CONTENT):
        rendered["content"] = field.content
    elif field.field_type == FormField.IMAGE:
        rendered["image_url"] = field.image_url
    elif field.field_type == FormField.PRODUCT:
        rendered["product_id"] = str(field.product_id) if field.product_id else None
        rendered["quantity_field"] = field.quantity_field
    if show_prices and field.price and field.price > 0:
        rendered["price"] = format_price(field.price, DISPLAY_CURRENCY)
    return rendered


class QuoteSubmission:
    """Answers collected for one rendered form.

    After a successful :meth:`submit` the answers are cleared so the same
    object can take another submission.
    """

    def __init__(self, form: QuoteForm, fields: Optional[Iterable[FormField]] = None) -> None:
        self.form = form
        self.fields: List[FormField] = list(
            fields if fields is not None else form.fields.order_by("order", "id")
        )
        self._field_ids = {str(field.id) for field in self.fields}
        self.reset()

    def reset(self) -> None:
        self.responses: Dict[str, str] = {}
        self.company_name = ""
        self.customer_email = ""

    def answer(self, field_id: Any, value: Any) -> None:
        key = str(field_id)
        if key not in self._field_ids:
            raise UnknownField(f"Field {key} is not part of this form")
        if isinstance(value, bool):
            value = "true" if value else "false"
        self.responses[key] = str(value)

    def answer_all(self, responses: Mapping[str, Any]) -> None:
        for field_id, value in responses.items():
            self.answer(field_id, value)

    def missing_required(self) -> List[FormField]:
        return [
            field
            for field in self.fields
            if field.required
            and field.field_type in FormField.INPUT_TYPES
            and not self.responses.get(str(field.id))
        ]

    @property
    def total(self) -> Decimal:
        return calculate_total(self.fields, self.responses)

    def render(self) -> Dict[str, Any]:
        rendered = {
            "id": str(self.form.pk),
            "title": self.form.title,
            "description": self.form.description,
            "show_prices": self.form.show_prices,
            "fields": [render_field(field, self.form.show_prices) for field in self.fields],
        }
        if self.form.show_prices:
            rendered["total"] = format_price(self.total, DISPLAY_CURRENCY)
        return rendered

    def submit(self) -> CustomerQuote:
        if not self.company_name.strip():
            raise SubmissionError("Company name is required")
        if not self.customer_email.strip():
            raise SubmissionError("Email is required")
        missing = self.missing_required()
        if missing:
            raise MissingRequiredFields([field.label for field in missing])

        with transaction.atomic():
            quote = CustomerQuote.objects.create(
                form=self.form,
                customer_email=self.customer_email.strip(),
                company_name=self.company_name.strip(),
                total_price=self.total,
                status=CustomerQuote.DRAFT,
            )
            QuoteResponse.objects.bulk_create(
                QuoteResponse(quote=quote, field_id=field_id, value=value)
                for field_id, value in self.responses.items()
            )
        logger.info(
            "Quote %s submitted for form %s with %d responses",
            quote.pk,
            self.form.pk,
            len(self.responses),
        )
        self.reset()
        return quote
