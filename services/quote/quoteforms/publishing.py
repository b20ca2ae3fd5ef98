"""Slug handling and publishing for quote forms."""
from __future__ import annotations

import logging
import re
from typing import Optional

from django.db import IntegrityError, transaction

from .exceptions import FormPersistenceError, SlugRequired
from .models import QuoteForm

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[^a-z0-9]+")


def normalize_slug(value: str) -> str:
    """Lowercase, collapse non alphanumeric runs into ``-`` and trim hyphens."""

    return _SEPARATORS.sub("-", value.lower()).strip("-")


def publish_form(form: QuoteForm, slug: Optional[str] = None) -> QuoteForm:
    """Mark ``form`` published, first giving it a slug if it has none."""

    previous_slug = form.slug
    if not form.slug:
        normalized = normalize_slug(slug or "")
        if not normalized:
            raise SlugRequired("Enter a URL-friendly slug for this form.")
        form.slug = normalized

    form.published = True
    try:
        with transaction.atomic():
            form.save(update_fields=["slug", "published", "updated_at"])
    except IntegrityError as exc:
        taken = form.slug
        form.slug, form.published = previous_slug, False
        raise FormPersistenceError(f'The slug "{taken}" is already in use.') from exc
    logger.info("Published form %s at /forms/%s", form.pk, form.slug)
    return form
