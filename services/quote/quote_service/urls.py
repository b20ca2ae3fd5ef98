"""URL configuration for the quote service."""
from django.urls import include, path

urlpatterns = [
    path("api/", include("accounts.urls")),
    path("api/", include("catalog.urls")),
    path("api/", include("quoteforms.urls")),
    path("api/", include("quotes.urls")),
    path("api/", include("dashboard.urls")),
]
