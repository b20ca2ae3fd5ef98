"""Route registration for identity endpoints."""
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import UserViewSet, session, sign_in, sign_out, sign_up

router = DefaultRouter()
router.register("users", UserViewSet, basename="user")

urlpatterns = [
    path("auth/sign-up/", sign_up, name="auth-sign-up"),
    path("auth/sign-in/", sign_in, name="auth-sign-in"),
    path("auth/sign-out/", sign_out, name="auth-sign-out"),
    path("auth/session/", session, name="auth-session"),
    path("", include(router.urls)),
]
