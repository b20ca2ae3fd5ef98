"""Bulk product import from pasted comma separated text.

Every row is checked before anything is written: the import either inserts all
rows or none, and reports every bad line at once.
"""
from __future__ import annotations

import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Tuple

from django.core.exceptions import ValidationError
from django.core.validators import DecimalValidator
from django.db import transaction

from .currencies import CURRENCIES
from .models import Product

logger = logging.getLogger(__name__)

HEADER_MARKERS = ("name", "description")
COLUMNS = ("name", "description", "price", "currency", "category")

_PRICE_FIELD = Product._meta.get_field("price")
PRICE_DIGITS = DecimalValidator(_PRICE_FIELD.max_digits, _PRICE_FIELD.decimal_places)


class BulkImportError(Exception):
    def __init__(self, errors: List[str]) -> None:
        super().__init__("Validation errors:\n" + "\n".join(errors))
        self.errors = errors


def _split_lines(text: str) -> List[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def _has_header(first_line: str) -> bool:
    lowered = first_line.lower()
    return any(marker in lowered for marker in HEADER_MARKERS)


def _parse_price(raw: str) -> Decimal | None:
    try:
        price = Decimal(raw)
    except InvalidOperation:
        return None
    if not price.is_finite() or price < 0:
        return None
    return price


def validate_rows(text: str) -> Tuple[List[Dict[str, Any]], List[str]]:
    """Return the product rows that passed and the messages for those that did not."""

    lines = _split_lines(text)
    if not lines:
        raise BulkImportError(["No data found. Please check the format."])

    start = 1 if _has_header(lines[0]) else 0
    rows = list(csv.reader(lines[start:], skipinitialspace=True))
    if not rows:
        raise BulkImportError(["No valid data found. Please check the format."])

    valid: List[Dict[str, Any]] = []
    errors: List[str] = []
    for index, row in enumerate(rows):
        line_number = start + index + 1
        cells = [cell.strip() for cell in row]
        if len(cells) < len(COLUMNS):
            errors.append(
                f"Line {line_number}: Missing fields. Expected: {', '.join(COLUMNS)}"
            )
            continue

        name, description, raw_price, currency, category = cells[: len(COLUMNS)]
        if not name:
            errors.append(f"Line {line_number}: Product name is required")
            continue

        price = _parse_price(raw_price)
        if price is None:
            errors.append(
                f'Line {line_number}: Invalid price "{raw_price}". Must be a non-negative number'
            )
            continue

        try:
            PRICE_DIGITS(price)
        except ValidationError as exc:
            errors.append(f'Line {line_number}: Invalid price "{raw_price}". {" ".join(exc.messages)}')
            continue

        if currency not in CURRENCIES:
            errors.append(
                f'Line {line_number}: Invalid currency "{currency}". '
                f"Must be one of: {', '.join(CURRENCIES)}"
            )
            continue

        if category not in Product.CATEGORIES:
            errors.append(
                f'Line {line_number}: Invalid category "{category}". '
                f"Must be one of: {', '.join(Product.CATEGORIES)}"
            )
            continue

        valid.append(
            {
                "name": name,
                "description": description,
                "price": price,
                "currency": currency,
                "category": category,
            }
        )
    return valid, errors


def import_products(text: str) -> List[Product]:
    rows, errors = validate_rows(text)
    if errors:
        logger.info("Rejected product import with %d invalid rows", len(errors))
        raise BulkImportError(errors)

    with transaction.atomic():
        products = Product.objects.bulk_create(Product(**row) for row in rows)
    logger.info("Imported %d products", len(products))
    return products
