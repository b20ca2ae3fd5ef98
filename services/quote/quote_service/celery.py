"""Celery application for the quote microservice."""
from __future__ import annotations

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "quote_service.settings")

app = Celery("quote_service")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
