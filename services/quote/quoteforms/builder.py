"""In-memory form builder: the field collection and the editing session.

A :class:`FormBuilderSession` owns one draft form. Edits go through the
session so that every change reschedules the debounced autosave; an explicit
:meth:`FormBuilderSession.save` validates the draft and rewrites the stored
form in one go.

Session states::

    loading -> editing <-> saving
               editing -> submitting -> navigated-away
                          submitting -> editing   (validation or write failure)
"""
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import asdict, dataclass, field, fields
from decimal import Decimal
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from django.conf import settings
from django.utils import timezone

from .autosave import Debouncer
from .exceptions import (
    BuilderStateError,
    BuilderValidationError,
    FieldPositionError,
    FormPersistenceError,
    PreviewUnavailable,
)
from .models import FormField
from .persistence import FormStore
from .publishing import normalize_slug

logger = logging.getLogger(__name__)

LOADING = "loading"
EDITING = "editing"
SAVING = "saving"
SUBMITTING = "submitting"
NAVIGATED_AWAY = "navigated-away"

FIELD_KINDS = [value for value, _ in FormField.FIELD_TYPES]

KIND_DEFAULTS: Dict[str, Dict[str, Any]] = {
    FormField.HEADER: {"label": "Section Header", "content": ""},
    FormField.CONTENT: {"label": "Text Block", "content": ""},
    FormField.IMAGE: {"label": "Image", "image_url": ""},
    FormField.PRODUCT: {"label": "Product Selection", "quantity_field": True},
}

SETTINGS_ATTRIBUTES = ("title", "description", "show_prices", "slug", "client_id")


@dataclass
class FieldDescriptor:
    """One configurable unit of a form."""

    id: str
    field_type: str
    label: str = ""
    required: bool = False
    price: Decimal = Decimal("0")
    order: int = 0
    options: List[Dict[str, str]] = field(default_factory=list)
    content: str = ""
    image_url: str = ""
    product_id: Optional[str] = None
    quantity_field: bool = False

    @classmethod
    def new(cls, kind: str, order: int) -> "FieldDescriptor":
        if kind not in FIELD_KINDS:
            raise ValueError(f"Unknown field type {kind!r}")
        return cls(id=str(uuid.uuid4()), field_type=kind, order=order, **KIND_DEFAULTS.get(kind, {}))

    @classmethod
    def from_record(cls, record: Any) -> "FieldDescriptor":
        """Build a descriptor from a ``FormField`` row or a plain mapping."""

        if not isinstance(record, Mapping):
            record = {name: getattr(record, name) for name in DESCRIPTOR_ATTRIBUTES}
        product_id = record.get("product_id")
        return cls(
            id=str(record.get("id") or uuid.uuid4()),
            field_type=record["field_type"],
            label=record.get("label") or "",
            required=bool(record.get("required", False)),
            price=Decimal(str(record.get("price") or 0)),
            order=int(record.get("order") or 0),
            options=[dict(option) for option in record.get("options") or []],
            content=record.get("content") or "",
            image_url=record.get("image_url") or "",
            product_id=str(product_id) if product_id else None,
            quantity_field=bool(record.get("quantity_field", False)),
        )

    def as_payload(self) -> Dict[str, Any]:
        """JSON friendly copy, safe to hand to a worker or a response."""

        payload = asdict(self)
        payload["price"] = str(self.price)
        return payload


DESCRIPTOR_ATTRIBUTES = [item.name for item in fields(FieldDescriptor)]
UPDATABLE_ATTRIBUTES = frozenset(DESCRIPTOR_ATTRIBUTES) - {"id", "order", "field_type"}


class FieldCollection:
    """Ordered field descriptors whose ``order`` always matches list position."""

    def __init__(
        self,
        descriptors: Iterable[FieldDescriptor] = (),
        catalog: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._items: List[FieldDescriptor] = list(descriptors)
        self.catalog: Dict[str, Any] = dict(catalog or {})
        self._renumber()

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, position: int) -> FieldDescriptor:
        return self._at(position)

    def _at(self, position: int) -> FieldDescriptor:
        if not 0 <= position < len(self._items):
            raise FieldPositionError(f"No field at position {position}")
        return self._items[position]

    def _renumber(self) -> None:
        for index, descriptor in enumerate(self._items):
            descriptor.order = index

    def add(self, kind: str) -> FieldDescriptor:
        descriptor = FieldDescriptor.new(kind, order=len(self._items))
        self._items.append(descriptor)
        return descriptor

    def remove(self, position: int) -> FieldDescriptor:
        self._at(position)
        descriptor = self._items.pop(position)
        self._renumber()
        return descriptor

    def update(self, position: int, **changes: Any) -> FieldDescriptor:
        """Merge ``changes`` into the field at ``position``.

        Choosing a product copies the product's current name and price into
        the field. The copy is a snapshot; later catalog edits do not reach
        the field. A product missing from the loaded catalog leaves label and
        price alone.
        """

        descriptor = self._at(position)
        unknown = set(changes) - UPDATABLE_ATTRIBUTES
        if unknown:
            raise ValueError(f"Cannot update field attributes: {', '.join(sorted(unknown))}")

        for name, value in changes.items():
            if name == "price":
                value = Decimal(str(value or 0))
            elif name == "product_id":
                value = str(value) if value else None
            elif name == "options":
                value = [dict(option) for option in value or []]
            setattr(descriptor, name, value)

        if changes.get("product_id"):
            product = self.catalog.get(descriptor.product_id)
            if product is None:
                logger.warning(
                    "Product %s is not in the loaded catalog; keeping label and price",
                    descriptor.product_id,
                )
            else:
                descriptor.label = product.name
                descriptor.price = Decimal(str(product.price))
        return descriptor

    def move(self, from_position: int, to_position: int) -> None:
        self._at(from_position)
        self._at(to_position)
        if from_position == to_position:
            return
        descriptor = self._items.pop(from_position)
        self._items.insert(to_position, descriptor)
        self._renumber()

    def snapshot(self) -> List[Dict[str, Any]]:
        return [descriptor.as_payload() for descriptor in self._items]


class FormBuilderSession:
    """Editing session over a single quote form.

    ``store`` is the persistence gateway; ``autosave`` turns the debounced
    background save on or off (request handlers that persist immediately
    switch it off).

    HTTP requests always open sessions with ``autosave=False``; their
    debounced saves go through :data:`quoteforms.autosave.scheduler` instead.
    The session's own debouncer serves long-lived in-process editors.
    """

    def __init__(
        self,
        form_id: Optional[str] = None,
        *,
        store: Optional[FormStore] = None,
        autosave: bool = True,
        quiet_period: Optional[float] = None,
    ) -> None:
        self.form_id = str(form_id) if form_id else None
        self.store = store or FormStore()
        self.state = LOADING
        self.title = ""
        self.description = ""
        self.show_prices = False
        self.slug = ""
        self.client_id: Optional[str] = None
        self.published = False
        self.fields = FieldCollection()
        self.error: Optional[str] = None
        self.last_saved_at = None
        self._save_lock = threading.Lock()
        self._debouncer: Optional[Debouncer] = None
        if autosave:
            if quiet_period is None:
                quiet_period = settings.QUOTE_FORMS["AUTOSAVE_QUIET_PERIOD"]
            self._debouncer = Debouncer(quiet_period, self.autosave)

    @classmethod
    def open(cls, form_id: Optional[str] = None, **kwargs: Any) -> "FormBuilderSession":
        session = cls(form_id, **kwargs)
        session.load()
        return session

    def load(self) -> None:
        catalog = self.store.load_catalog()
        if self.form_id is None:
            self.fields = FieldCollection(catalog=catalog)
        else:
            form, rows = self.store.load_form(self.form_id)
            self.title = form.title
            self.description = form.description
            self.show_prices = form.show_prices
            self.slug = form.slug or ""
            self.client_id = str(form.client_id) if form.client_id else None
            self.published = form.published
            self.fields = FieldCollection((FieldDescriptor.from_record(row) for row in rows), catalog)
        self.state = EDITING

    @property
    def autosave_pending(self) -> bool:
        return self._debouncer is not None and self._debouncer.pending

    def metadata(self) -> Dict[str, Any]:
        return {
            "title": self.title.strip(),
            "description": self.description,
            "show_prices": self.show_prices,
            "slug": self.slug or None,
            "client_id": self.client_id,
        }

    def _require_editable(self) -> None:
        if self.state in (LOADING, NAVIGATED_AWAY):
            raise BuilderStateError(f"Session is {self.state}")

    def _changed(self) -> None:
        if self._debouncer is not None and self.form_id is not None and self.title.strip():
            self._debouncer.trigger()

    def update_settings(self, **changes: Any) -> None:
        self._require_editable()
        unknown = set(changes) - set(SETTINGS_ATTRIBUTES)
        if unknown:
            raise ValueError(f"Unknown form settings: {', '.join(sorted(unknown))}")
        if "slug" in changes:
            changes["slug"] = normalize_slug(changes["slug"] or "")
        if changes.get("client_id"):
            changes["client_id"] = str(changes["client_id"])
        for name, value in changes.items():
            setattr(self, name, value)
        self._changed()

    def add_field(self, kind: str) -> FieldDescriptor:
        self._require_editable()
        descriptor = self.fields.add(kind)
        self._changed()
        return descriptor

    def remove_field(self, position: int) -> FieldDescriptor:
        self._require_editable()
        descriptor = self.fields.remove(position)
        self._changed()
        return descriptor

    def update_field(self, position: int, **changes: Any) -> FieldDescriptor:
        self._require_editable()
        descriptor = self.fields.update(position, **changes)
        self._changed()
        return descriptor

    def move_field(self, from_position: int, to_position: int) -> None:
        self._require_editable()
        self.fields.move(from_position, to_position)
        self._changed()

    def replace_fields(self, records: Iterable[Any]) -> None:
        self._require_editable()
        self.fields = FieldCollection(
            (FieldDescriptor.from_record(record) for record in records),
            self.fields.catalog,
        )
        self._changed()

    def autosave(self) -> bool:
        """Push the current draft with the batched upsert protocol.

        Failures are logged and dropped; the next debounce cycle tries again
        with whatever the draft looks like then.
        """

        if self.form_id is None or not self.title.strip():
            return False
        with self._save_lock:
            if self.state == EDITING:
                self.state = SAVING
            try:
                self.store.autosave(self.form_id, self.metadata(), self.fields.snapshot())
            except Exception:
                logger.exception("Autosave of form %s failed", self.form_id)
                return False
            finally:
                if self.state == SAVING:
                    self.state = EDITING
            self.last_saved_at = timezone.now()
        logger.debug("Autosaved form %s", self.form_id)
        return True

    def _reject(self, message: str) -> None:
        self.error = message
        self.state = EDITING
        raise BuilderValidationError(message)

    def save(self) -> str:
        """Validate and persist the whole draft, then end the session.

        Returns the id of the saved form. Raises
        :class:`BuilderValidationError` or :class:`FormPersistenceError`; in
        both cases the session stays open with the draft intact.
        """

        self._require_editable()
        self.state = SUBMITTING
        self.error = None
        if not self.title.strip():
            self._reject("Title is required")
        if not len(self.fields):
            self._reject("At least one field is required")

        if self._debouncer is not None:
            self._debouncer.cancel()
        with self._save_lock:
            try:
                if self.form_id is None:
                    self.form_id = self.store.create_form(self.metadata(), self.fields.snapshot())
                else:
                    self.store.replace_form(self.form_id, self.metadata(), self.fields.snapshot())
            except FormPersistenceError as exc:
                self.error = str(exc)
                self.state = EDITING
                raise
            self.last_saved_at = timezone.now()
        self.state = NAVIGATED_AWAY
        logger.info("Saved form %s with %d fields", self.form_id, len(self.fields))
        return self.form_id

    def sync(self) -> None:
        """Write the field collection straight away, dropping removed fields."""

        self._require_editable()
        if self.form_id is None:
            raise BuilderValidationError("Save the form before editing its fields")
        with self._save_lock:
            self.store.sync_fields(self.form_id, self.fields.snapshot())
            self.last_saved_at = timezone.now()

    def preview_path(self) -> str:
        if not (self.published and self.slug):
            raise PreviewUnavailable("Please publish the form first to preview it.")
        return f"/forms/{self.slug}"

    def close(self) -> None:
        """Leave the builder. A pending autosave is dropped; one in flight finishes."""

        if self._debouncer is not None:
            self._debouncer.cancel()
        self.state = NAVIGATED_AWAY
