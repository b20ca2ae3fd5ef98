"""Route registration for quote endpoints."""
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import CustomerQuoteViewSet, FormQuoteView, PublicFormView

router = DefaultRouter()
router.register("quotes", CustomerQuoteViewSet, basename="quote")

urlpatterns = [
    path(
        "public/forms/<slug:slug>/",
        PublicFormView.as_view(http_method_names=["get", "options"]),
        name="public-form",
    ),
    path(
        "public/forms/<slug:slug>/quotes/",
        PublicFormView.as_view(http_method_names=["post", "options"]),
        name="public-form-quotes",
    ),
    path("forms/<uuid:form_id>/quotes/", FormQuoteView.as_view(), name="form-quotes"),
    path("", include(router.urls)),
]
