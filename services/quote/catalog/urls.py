"""Route registration for catalog endpoints."""
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ClientViewSet, ProductViewSet

router = DefaultRouter()
router.register("products", ProductViewSet, basename="product")
router.register("clients", ClientViewSet, basename="client")

urlpatterns = [
    path("", include(router.urls)),
]
