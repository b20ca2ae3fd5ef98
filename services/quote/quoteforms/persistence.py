"""Persistence gateway for the form builder.

Field rows are written in fixed-size batches, one batch at a time, with a
short pause in between so a large form does not hammer the database.
"""
from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from catalog.models import Product

from .exceptions import FormNotFound, FormPersistenceError
from .models import FormField, QuoteForm

logger = logging.getLogger(__name__)

FIELD_COLUMNS = (
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
)
METADATA_COLUMNS = ("title", "description", "show_prices", "slug", "client_id")


def chunked(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def _field_values(record: Mapping[str, Any]) -> Dict[str, Any]:
    values = {name: record[name] for name in FIELD_COLUMNS if name in record}
    if "price" in values:
        values["price"] = Decimal(str(values["price"] or 0))
    if not values.get("product_id"):
        values["product_id"] = None
    return values


def _metadata_values(metadata: Mapping[str, Any]) -> Dict[str, Any]:
    return {name: metadata[name] for name in METADATA_COLUMNS if name in metadata}


class FormStore:
    def __init__(
        self,
        batch_size: Optional[int] = None,
        batch_pause: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        config = settings.QUOTE_FORMS
        self.batch_size = batch_size or config["FIELD_BATCH_SIZE"]
        self.batch_pause = config["FIELD_BATCH_PAUSE"] if batch_pause is None else batch_pause
        self._sleep = sleep

    @contextmanager
    def _writing(self, action: str) -> Iterator[None]:
        try:
            yield
        except DatabaseError as exc:
            logger.warning("Failed to %s: %s", action, exc)
            raise FormPersistenceError(f"Failed to {action}: {exc}") from exc

    def _batches(self, records: Sequence[Mapping[str, Any]]) -> Iterator[Tuple[int, Sequence[Mapping[str, Any]]]]:
        for index, batch in enumerate(chunked(records, self.batch_size)):
            if index:
                self._sleep(self.batch_pause)
            yield index * self.batch_size, batch

    def load_catalog(self) -> Dict[str, Product]:
        return {str(product.pk): product for product in Product.objects.order_by("name")}

    def load_form(self, form_id: str) -> Tuple[QuoteForm, List[FormField]]:
        try:
            form = QuoteForm.objects.get(pk=form_id)
        except (QuoteForm.DoesNotExist, ValidationError) as exc:
            raise FormNotFound(f"Form {form_id} does not exist") from exc
        return form, list(form.fields.order_by("order", "id"))

    def update_metadata(self, form_id: str, metadata: Mapping[str, Any]) -> None:
        values = _metadata_values(metadata)
        if "slug" in values and not values["slug"]:
            # A published form keeps its public slug.
            if QuoteForm.objects.filter(pk=form_id, published=True).exists():
                del values["slug"]
        updated = QuoteForm.objects.filter(pk=form_id).update(updated_at=timezone.now(), **values)
        if not updated:
            raise FormNotFound(f"Form {form_id} does not exist")

    def upsert_fields(self, form_id: str, records: Sequence[Mapping[str, Any]]) -> None:
        """Update rows whose id exists for the form, insert the others."""

        for _, batch in self._batches(records):
            with transaction.atomic():
                for record in batch:
                    values = _field_values(record)
                    updated = FormField.objects.filter(pk=record["id"], form_id=form_id).update(**values)
                    if not updated:
                        FormField.objects.create(id=record["id"], form_id=form_id, **values)

    def insert_fields(self, form_id: str, records: Sequence[Mapping[str, Any]]) -> None:
        """Insert every record, numbering ``order`` by its index in ``records``."""

        for start, batch in self._batches(records):
            FormField.objects.bulk_create(
                FormField(
                    id=record.get("id") or uuid.uuid4(),
                    form_id=form_id,
                    **{**_field_values(record), "order": start + offset},
                )
                for offset, record in enumerate(batch)
            )

    def autosave(self, form_id: str, metadata: Mapping[str, Any], records: Sequence[Mapping[str, Any]]) -> None:
        with self._writing("autosave form"):
            with transaction.atomic():
                self.update_metadata(form_id, metadata)
            self.upsert_fields(form_id, records)

    def replace_form(self, form_id: str, metadata: Mapping[str, Any], records: Sequence[Mapping[str, Any]]) -> None:
        with self._writing("save form"), transaction.atomic():
            self.update_metadata(form_id, metadata)
            FormField.objects.filter(form_id=form_id).delete()
            self.insert_fields(form_id, records)

    def create_form(self, metadata: Mapping[str, Any], records: Sequence[Mapping[str, Any]]) -> str:
        with self._writing("create form"), transaction.atomic():
            form = QuoteForm.objects.create(**_metadata_values(metadata))
            self.insert_fields(form.pk, records)
        return str(form.pk)

    def sync_fields(self, form_id: str, records: Sequence[Mapping[str, Any]]) -> None:
        with self._writing("save fields"), transaction.atomic():
            keep = [record["id"] for record in records]
            FormField.objects.filter(form_id=form_id).exclude(pk__in=keep).delete()
            self.upsert_fields(form_id, records)

    def duplicate_form(self, form_id: str) -> str:
        """Copy a form and its fields; the copy is an unpublished draft without a slug."""

        form, rows = self.load_form(form_id)
        with self._writing("duplicate form"), transaction.atomic():
            copy = QuoteForm.objects.create(
                title=f"{form.title} (Copy)",
                description=form.description,
                show_prices=form.show_prices,
                client_id=form.client_id,
            )
            FormField.objects.bulk_create(
                FormField(
                    form=copy,
                    **{name: getattr(row, name) for name in FIELD_COLUMNS},
                )
                for row in rows
            )
        logger.info("Duplicated form %s as %s", form_id, copy.pk)
        return str(copy.pk)
