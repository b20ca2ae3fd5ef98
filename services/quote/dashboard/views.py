"""Summary endpoints for the signed-in dashboard and the admin overview."""
from __future__ import annotations

from typing import Any, Dict, List

from django.db.models import Count, Sum
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response

from accounts.models import User
from accounts.permissions import HasAccount, IsAdminRole
from accounts.serializers import UserSerializer
from quoteforms.models import QuoteForm
from quotes.models import CustomerQuote
from quotes.serializers import CustomerQuoteSerializer


@api_view(["GET"])
@permission_classes([HasAccount])
def dashboard(request: Request) -> Response:
    """Every quote, newest first, with its form, plus per-status totals."""

    quotes = (
        CustomerQuote.objects.select_related("form")
        .prefetch_related("responses")
        .order_by("-created_at")
    )

    by_status: Dict[str, int] = {value: 0 for value, _ in CustomerQuote.STATUS_CHOICES}
    for entry in CustomerQuote.objects.values("status").order_by().annotate(total=Count("id")):
        by_status[entry["status"]] = int(entry["total"])

    return Response(
        {
            "quotes": CustomerQuoteSerializer(quotes, many=True).data,
            "byStatus": by_status,
        }
    )


@api_view(["GET"])
@permission_classes([IsAdminRole])
def overview(_: Request) -> Response:
    """Forms with their quote counts, registered users and running totals."""

    forms = QuoteForm.objects.annotate(quote_count=Count("quotes")).order_by("-created_at")
    form_rows: List[Dict[str, Any]] = [
        {
            "id": str(form.pk),
            "title": form.title,
            "published": form.published,
            "slug": form.slug,
            "quote_count": form.quote_count,
            "created_at": form.created_at,
        }
        for form in forms
    ]
    users = User.objects.order_by("-created_at")
    quoted_value = CustomerQuote.objects.aggregate(total=Sum("total_price"))["total"] or 0

    return Response(
        {
            "forms": form_rows,
            "users": UserSerializer(users, many=True).data,
            "totals": {
                "forms": len(form_rows),
                "published": sum(1 for row in form_rows if row["published"]),
                "users": len(users),
                "quotes": sum(row["quote_count"] for row in form_rows),
                "quotedValue": str(quoted_value),
            },
        }
    )


@api_view(["GET"])
@permission_classes([AllowAny])
def health(request: Request):  # type: ignore[override]
    """Readiness endpoint for orchestration tooling."""

    return Response({"status": "ok"})
