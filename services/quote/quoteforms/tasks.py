"""Background tasks for the form builder."""
from __future__ import annotations

import logging
from typing import Any, Dict

from celery import shared_task

from .exceptions import FormNotFound
from .persistence import FormStore

logger = logging.getLogger(__name__)


@shared_task(ignore_result=True)
def autosave_form(form_id: str, snapshot: Dict[str, Any]) -> bool:
    """Persist a debounced builder snapshot.

    Errors stop here: they are logged and the next autosave cycle carries a
    fresh snapshot, so nothing is retried from the queue.
    """

    try:
        FormStore().autosave(form_id, snapshot["metadata"], snapshot["fields"])
    except FormNotFound:
        logger.warning("Autosave skipped, form %s no longer exists", form_id)
        return False
    except Exception:  # pragma: no cover - depends on database failures
        logger.exception("Autosave of form %s failed", form_id)
        return False
    logger.info("Autosaved form %s with %d fields", form_id, len(snapshot["fields"]))
    return True
