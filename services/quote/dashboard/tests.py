"""Tests for the dashboard endpoints."""
from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from accounts.models import User
from quoteforms.models import QuoteForm
from quotes.models import CustomerQuote


def _account(email: str, role: str):
    identity = get_user_model().objects.create_user(username=email, email=email, password="secret123")
    User.objects.create(identity=identity, email=email, role=role)
    return identity


class DashboardApiTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()
        self.form = QuoteForm.objects.create(title="Website quote", slug="website", published=True)
        QuoteForm.objects.create(title="Draft form")
        CustomerQuote.objects.create(
            form=self.form, company_name="Acme", customer_email="a@acme.test", total_price=Decimal("25.00")
        )
        CustomerQuote.objects.create(
            form=self.form,
            company_name="Globex",
            customer_email="h@globex.test",
            total_price=Decimal("75.00"),
            status=CustomerQuote.ACCEPTED,
        )

    def test_health(self) -> None:
        response = self.client.get(reverse("quote-health"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "ok")

    def test_dashboard(self) -> None:
        self.assertIn(self.client.get(reverse("dashboard")).status_code, (401, 403))

        self.client.force_authenticate(user=_account("member@example.com", User.USER))
        response = self.client.get(reverse("dashboard"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data["quotes"]), 2)
        self.assertEqual(response.data["byStatus"][CustomerQuote.DRAFT], 1)
        self.assertEqual(response.data["byStatus"][CustomerQuote.ACCEPTED], 1)
        self.assertEqual(response.data["byStatus"][CustomerQuote.SENT], 0)

    def test_overview(self) -> None:
        self.client.force_authenticate(user=_account("member@example.com", User.USER))
        denied = self.client.get(reverse("admin-overview"))
        self.assertEqual(denied.status_code, 403)
        self.assertEqual(denied.data["redirect"], "/dashboard")

        self.client.force_authenticate(user=_account("admin@example.com", User.ADMIN))
        response = self.client.get(reverse("admin-overview"))
        self.assertEqual(response.status_code, 200)
        counts = {row["title"]: row["quote_count"] for row in response.data["forms"]}
        self.assertEqual(counts, {"Website quote": 2, "Draft form": 0})
        self.assertEqual(response.data["totals"]["forms"], 2)
        self.assertEqual(response.data["totals"]["published"], 1)
        self.assertEqual(response.data["totals"]["users"], 2)
        self.assertEqual(response.data["totals"]["quotes"], 2)
        self.assertEqual(Decimal(response.data["totals"]["quotedValue"]), Decimal("100.00"))
