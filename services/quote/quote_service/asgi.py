"""ASGI config for the quote service."""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "quote_service.settings")

application = get_asgi_application()
