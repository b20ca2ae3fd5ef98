"""Tests for totals, submissions and the quote endpoints."""
from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import User
from catalog.models import Client
from quoteforms.models import FormField, QuoteForm

from .models import CustomerQuote, QuoteResponse
from .submission import (
    MissingRequiredFields,
    QuoteSubmission,
    SubmissionError,
    calculate_total,
    parse_quantity,
)


def _account(email: str, role: str = User.USER):
    identity = get_user_model().objects.create_user(username=email, email=email, password="secret123")
    User.objects.create(identity=identity, email=email, role=role)
    return identity


def _field(field_id: str, field_type: str, price: str = "0", quantity_field: bool = False):
    return SimpleNamespace(id=field_id, field_type=field_type, price=Decimal(price), quantity_field=quantity_field)


class TotalTests(TestCase):
    def test_calculate_total(self) -> None:
        fields = [
            _field("a", "checkbox", "10"),
            _field("b", "number", "5", quantity_field=True),
            _field("c", "text"),
        ]
        responses = {"a": "true", "b": "3", "c": "hello"}
        self.assertEqual(calculate_total(fields, responses), Decimal("25"))

    def test_unchecked_and_plain_numbers_add_nothing(self) -> None:
        fields = [
            _field("a", "checkbox", "10"),
            _field("b", "number", "5"),
            _field("c", "product", "99"),
        ]
        self.assertEqual(calculate_total(fields, {"a": "false", "b": "4", "c": "1"}), Decimal("0"))

    def test_parse_quantity(self) -> None:
        self.assertEqual(parse_quantity("3"), 3)
        self.assertEqual(parse_quantity("12 units"), 12)
        self.assertEqual(parse_quantity("2.7"), 2)
        self.assertEqual(parse_quantity("abc"), 0)
        self.assertEqual(parse_quantity(""), 0)
        self.assertEqual(parse_quantity(None), 0)


class QuoteSubmissionTests(TestCase):
    def setUp(self) -> None:
        self.form = QuoteForm.objects.create(title="Website quote", show_prices=True, slug="website", published=True)
        self.name = FormField.objects.create(form=self.form, field_type="text", label="Name", required=True, order=0)
        self.hosting = FormField.objects.create(
            form=self.form, field_type="checkbox", label="Hosting", price=Decimal("10.00"), order=1
        )
        self.pages = FormField.objects.create(
            form=self.form,
            field_type="number",
            label="Pages",
            price=Decimal("5.00"),
            quantity_field=True,
            order=2,
        )
        FormField.objects.create(form=self.form, field_type="header", label="Extras", required=True, order=3)

    def _submission(self) -> QuoteSubmission:
        submission = QuoteSubmission(self.form)
        submission.company_name = "Acme"
        submission.customer_email = "buyer@acme.test"
        return submission

    def test_missing_required_field_writes_nothing(self) -> None:
        submission = self._submission()
        submission.answer(self.hosting.id, True)
        with self.assertRaises(MissingRequiredFields) as caught:
            submission.submit()
        self.assertEqual(str(caught.exception), "Please fill in all required fields")
        self.assertEqual(caught.exception.labels, ["Name"])
        self.assertFalse(CustomerQuote.objects.exists())
        self.assertFalse(QuoteResponse.objects.exists())

    def test_company_and_email_are_required(self) -> None:
        submission = QuoteSubmission(self.form)
        submission.answer(self.name.id, "Ada")
        with self.assertRaisesMessage(SubmissionError, "Company name is required"):
            submission.submit()

    def test_submit_persists_quote_and_clears_state(self) -> None:
        submission = self._submission()
        submission.answer(self.name.id, "Ada")
        submission.answer(self.hosting.id, True)
        submission.answer(self.pages.id, "3")

        quote = submission.submit()

        self.assertEqual(quote.status, CustomerQuote.DRAFT)
        self.assertEqual(quote.total_price, Decimal("25.00"))
        self.assertEqual(
            dict(quote.responses.values_list("field_id", "value")),
            {self.name.id: "Ada", self.hosting.id: "true", self.pages.id: "3"},
        )
        self.assertEqual(submission.responses, {})
        self.assertEqual((submission.company_name, submission.customer_email), ("", ""))

    def test_unknown_field_is_rejected(self) -> None:
        submission = self._submission()
        with self.assertRaises(SubmissionError):
            submission.answer("00000000-0000-0000-0000-000000000000", "x")

    def test_render_formats_prices(self) -> None:
        submission = self._submission()
        submission.answer(self.hosting.id, True)
        rendered = submission.render()
        self.assertEqual(rendered["title"], "Website quote")
        self.assertEqual([field["label"] for field in rendered["fields"]], ["Name", "Hosting", "Pages", "Extras"])
        self.assertNotIn("price", rendered["fields"][0])
        self.assertEqual(rendered["fields"][1]["price"], "$10.00")
        self.assertFalse(rendered["fields"][3]["required"])
        self.assertEqual(rendered["total"], "$10.00")


class PublicFormApiTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()
        self.form = QuoteForm.objects.create(title="Branding", slug="branding", published=True)
        self.logo = FormField.objects.create(
            form=self.form, field_type="checkbox", label="Logo", price=Decimal("200.00"), required=True, order=0
        )

    def test_unpublished_form_is_not_found(self) -> None:
        QuoteForm.objects.create(title="Draft", slug="draft")
        for slug in ["draft", "missing"]:
            response = self.client.get(reverse("public-form", args=[slug]))
            self.assertEqual(response.status_code, 404)
            self.assertEqual(response.data, {"detail": "Form not found"})

    def test_render_published_form(self) -> None:
        response = self.client.get(reverse("public-form", args=["branding"]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["fields"][0]["id"], str(self.logo.id))
        self.assertNotIn("total", response.data)

    def test_submit_quote(self) -> None:
        payload = {
            "company_name": "Globex",
            "customer_email": "hank@globex.test",
            "responses": {str(self.logo.id): True},
        }
        response = self.client.post(reverse("public-form-quotes", args=["branding"]), payload, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["total_price"], "200.00")
        self.assertEqual(response.data["responses"][0]["value"], "true")

    def test_submit_rejects_missing_answers(self) -> None:
        payload = {"company_name": "Globex", "customer_email": "hank@globex.test", "responses": {}}
        response = self.client.post(reverse("public-form-quotes", args=["branding"]), payload, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["detail"], "Please fill in all required fields")
        self.assertEqual(response.data["missing"], ["Logo"])
        self.assertFalse(CustomerQuote.objects.exists())

    def test_submit_requires_email(self) -> None:
        payload = {"company_name": "Globex", "customer_email": "", "responses": {str(self.logo.id): True}}
        response = self.client.post(reverse("public-form-quotes", args=["branding"]), payload, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("customer_email", response.data)


class CustomerQuoteApiTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()
        self.client.force_authenticate(user=_account("rep@example.com"))
        self.owner = Client.objects.create(name="Wile", email="wile@acme.test", company_name="Acme")
        self.form = QuoteForm.objects.create(title="Unpublished", client=self.owner)
        self.field = FormField.objects.create(form=self.form, field_type="text", label="Notes", order=0)

    def test_fill_form_by_id(self) -> None:
        rendered = self.client.get(reverse("form-quotes", args=[self.form.pk]))
        self.assertEqual(rendered.status_code, 200)
        self.assertEqual(rendered.data["title"], "Unpublished")

        payload = {
            "company_name": "Acme",
            "customer_email": "wile@acme.test",
            "responses": {str(self.field.id): "Rush order"},
        }
        response = self.client.post(reverse("form-quotes", args=[self.form.pk]), payload, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["form_title"], "Unpublished")

    def test_fill_form_requires_account(self) -> None:
        response = APIClient().get(reverse("form-quotes", args=[self.form.pk]))
        self.assertIn(response.status_code, (401, 403))

    def test_update_status(self) -> None:
        quote = CustomerQuote.objects.create(
            form=self.form, company_name="Acme", customer_email="wile@acme.test", total_price=Decimal("40.00")
        )
        response = self.client.patch(
            reverse("quote-detail", args=[quote.pk]),
            {"status": CustomerQuote.SENT, "total_price": "1.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        quote.refresh_from_db()
        self.assertEqual(quote.status, CustomerQuote.SENT)
        self.assertEqual(quote.total_price, Decimal("40.00"))

        invalid = self.client.patch(reverse("quote-detail", args=[quote.pk]), {"status": "lost"}, format="json")
        self.assertEqual(invalid.status_code, 400)

    def test_list_newest_first(self) -> None:
        first = CustomerQuote.objects.create(form=self.form, company_name="A", customer_email="a@a.test")
        second = CustomerQuote.objects.create(form=self.form, company_name="B", customer_email="b@b.test")
        CustomerQuote.objects.filter(pk=first.pk).update(created_at=timezone.now() - timedelta(hours=1))
        response = self.client.get(reverse("quote-list"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["id"] for row in response.data], [str(second.pk), str(first.pk)])
        self.assertEqual(response.data[0]["form_title"], "Unpublished")
