"""Tests for products, bulk import and clients."""
from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from accounts.models import User
from quoteforms.models import QuoteForm
from quotes.models import CustomerQuote

from .currencies import format_price
from .importer import BulkImportError, import_products, validate_rows
from .models import Client, Product


def _account(email: str, role: str = User.ADMIN):
    identity = get_user_model().objects.create_user(username=email, email=email, password="secret123")
    User.objects.create(identity=identity, email=email, role=role)
    return identity


class CurrencyTests(TestCase):
    def test_format_price(self) -> None:
        self.assertEqual(format_price(Decimal("1250")), "$1,250.00")
        self.assertEqual(format_price("19.999", "EUR"), "€20.00")
        self.assertEqual(format_price(1500, "JPY"), "¥1,500")


class BulkImportTests(TestCase):
    def test_negative_price_imports_nothing(self) -> None:
        text = "Widget,desc,-5,USD,Marketing Services\nGadget,desc,10,USD,Web Services"
        with self.assertRaises(BulkImportError) as caught:
            import_products(text)
        self.assertEqual(
            caught.exception.errors,
            ['Line 1: Invalid price "-5". Must be a non-negative number'],
        )
        self.assertFalse(Product.objects.exists())

    def test_price_must_fit_the_column(self) -> None:
        text = "Widget,desc,12345678901234567,USD,Marketing Services\nGadget,desc,1.999,USD,Web Services"
        with self.assertRaises(BulkImportError) as caught:
            import_products(text)
        self.assertEqual(len(caught.exception.errors), 2)
        self.assertTrue(caught.exception.errors[0].startswith('Line 1: Invalid price "12345678901234567"'))
        self.assertTrue(caught.exception.errors[1].startswith('Line 2: Invalid price "1.999"'))
        self.assertFalse(Product.objects.exists())

    def test_header_is_skipped_and_lines_are_numbered(self) -> None:
        text = "\n".join(
            [
                "Name, Description, Price, Currency, Category",
                "Logo, Vector logo, 450, USD, Brand Awareness",
                "",
                "Audit, , 100, XYZ, Web Services",
                "Broken, only two",
                ", nameless, 5, USD, Web Services",
                "Pitch deck, Slides, 80, GBP, Sales",
            ]
        )
        valid, errors = validate_rows(text)
        self.assertEqual([row["name"] for row in valid], ["Logo"])
        self.assertEqual(len(errors), 4)
        self.assertTrue(errors[0].startswith('Line 3: Invalid currency "XYZ"'))
        self.assertTrue(errors[1].startswith("Line 4: Missing fields"))
        self.assertEqual(errors[2], "Line 5: Product name is required")
        self.assertTrue(errors[3].startswith('Line 6: Invalid category "Sales"'))

    def test_empty_input(self) -> None:
        with self.assertRaises(BulkImportError):
            validate_rows("  \n ")

    def test_valid_import(self) -> None:
        products = import_products(
            "Logo,Vector logo,450,USD,Brand Awareness\nHosting,Yearly,120.50,EUR,Web Services"
        )
        self.assertEqual(len(products), 2)
        self.assertEqual(Product.objects.get(name="Hosting").price, Decimal("120.50"))


class ProductApiTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()
        self.client.force_authenticate(user=_account("admin@example.com"))

    def test_create_product(self) -> None:
        payload = {"name": "SEO audit", "price": "300.00", "currency": "USD", "category": "Web Services"}
        response = self.client.post(reverse("product-list"), payload, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["price"], "300.00")

    def test_product_validation(self) -> None:
        payload = {"name": "", "price": "-1", "currency": "XYZ", "category": "Sales"}
        response = self.client.post(reverse("product-list"), payload, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(set(response.data), {"name", "price", "currency", "category"})

    def test_bulk_import_endpoint(self) -> None:
        url = reverse("product-bulk-import")
        rejected = self.client.post(url, {"data": "Widget,desc,-5,USD,Marketing Services"}, format="json")
        self.assertEqual(rejected.status_code, 400)
        self.assertEqual(len(rejected.data["errors"]), 1)

        accepted = self.client.post(url, {"data": "Widget,desc,5,USD,Marketing Services"}, format="json")
        self.assertEqual(accepted.status_code, 201)
        self.assertEqual(accepted.data[0]["name"], "Widget")

    def test_products_are_admin_only(self) -> None:
        member = APIClient()
        member.force_authenticate(user=_account("member@example.com", role=User.USER))
        response = member.get(reverse("product-list"))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["redirect"], "/dashboard")


class ClientApiTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()
        self.client.force_authenticate(user=_account("member@example.com", role=User.USER))

    def test_required_fields(self) -> None:
        response = self.client.post(reverse("client-list"), {"name": "", "email": "", "company_name": ""}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["name"], ["Name is required"])
        self.assertEqual(response.data["email"], ["Email is required"])
        self.assertEqual(response.data["company_name"], ["Company name is required"])

    def test_detail_lists_quotes_through_forms(self) -> None:
        owner = Client.objects.create(name="Wile", email="wile@acme.test", company_name="Acme")
        form = QuoteForm.objects.create(title="Anvils", client=owner)
        CustomerQuote.objects.create(form=form, company_name="Acme", customer_email="wile@acme.test")
        QuoteForm.objects.create(title="Unrelated")

        listing = self.client.get(reverse("client-list"))
        self.assertEqual(listing.data[0]["quote_count"], 1)

        detail = self.client.get(reverse("client-detail", args=[owner.pk]))
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(len(detail.data["quotes"]), 1)
        self.assertEqual(detail.data["quotes"][0]["form_title"], "Anvils")

    def test_missing_client(self) -> None:
        response = self.client.get(reverse("client-detail", args=["00000000-0000-0000-0000-000000000000"]))
        self.assertEqual(response.status_code, 404)
        self.assertIn("detail", response.data)
