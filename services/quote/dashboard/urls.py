"""Route registration for dashboard endpoints."""
from __future__ import annotations

from django.urls import path

from .views import dashboard, health, overview

urlpatterns = [
    path("healthz/", health, name="quote-health"),
    path("dashboard/", dashboard, name="dashboard"),
    path("admin/overview/", overview, name="admin-overview"),
]
