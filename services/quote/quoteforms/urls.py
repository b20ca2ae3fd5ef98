"""Route registration for the form builder."""
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import QuoteFormViewSet

router = DefaultRouter()
router.register("forms", QuoteFormViewSet, basename="quoteform")

urlpatterns = [
    path("", include(router.urls)),
]
