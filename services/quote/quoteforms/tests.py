"""Tests for the form builder, autosave and the forms API."""
from __future__ import annotations

import threading
from decimal import Decimal
from types import SimpleNamespace
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APIClient

from accounts.models import User
from catalog.models import Product

from .autosave import AutosaveScheduler, Debouncer, scheduler
from .builder import EDITING, NAVIGATED_AWAY, FieldCollection, FormBuilderSession
from .exceptions import (
    BuilderValidationError,
    FieldPositionError,
    FormPersistenceError,
    PreviewUnavailable,
    SlugRequired,
)
from .models import FormField, QuoteForm
from .persistence import FormStore
from .publishing import normalize_slug, publish_form
from .tasks import autosave_form

BUILDER_SETTINGS = {
    "AUTOSAVE_QUIET_PERIOD": 60.0,
    "FIELD_BATCH_SIZE": 5,
    "FIELD_BATCH_PAUSE": 0,
}


def _account(email: str, role: str = User.ADMIN):
    identity = get_user_model().objects.create_user(username=email, email=email, password="secret123")
    User.objects.create(identity=identity, email=email, role=role)
    return identity


class FieldCollectionTests(TestCase):
    def _orders(self, collection: FieldCollection):
        return [descriptor.order for descriptor in collection]

    def test_orders_stay_dense(self) -> None:
        collection = FieldCollection()
        for kind in ["text", "number", "checkbox", "header", "select", "product"]:
            collection.add(kind)
        collection.move(0, 5)
        collection.remove(2)
        collection.move(4, 1)
        collection.add("textarea")
        collection.remove(0)
        self.assertEqual(self._orders(collection), list(range(len(collection))))
        self.assertEqual(len(collection), 5)

    def test_move_to_same_position_is_noop(self) -> None:
        collection = FieldCollection()
        ids = [collection.add(kind).id for kind in ["text", "number", "checkbox"]]
        collection.move(1, 1)
        self.assertEqual([descriptor.id for descriptor in collection], ids)

    def test_move_reorders(self) -> None:
        collection = FieldCollection()
        first, second, third = (collection.add(kind) for kind in ["text", "number", "checkbox"])
        collection.move(0, 2)
        self.assertEqual([descriptor.id for descriptor in collection], [second.id, third.id, first.id])
        self.assertEqual(self._orders(collection), [0, 1, 2])

    def test_out_of_range_positions(self) -> None:
        collection = FieldCollection()
        collection.add("text")
        with self.assertRaises(FieldPositionError):
            collection.remove(3)
        with self.assertRaises(FieldPositionError):
            collection.move(0, 1)

    def test_kind_defaults(self) -> None:
        collection = FieldCollection()
        header = collection.add("header")
        product = collection.add("product")
        self.assertEqual(header.label, "Section Header")
        self.assertEqual(product.label, "Product Selection")
        self.assertTrue(product.quantity_field)
        with self.assertRaises(ValueError):
            collection.add("signature")

    def test_product_selection_is_a_snapshot(self) -> None:
        product = SimpleNamespace(name="Logo design", price=Decimal("450.00"))
        collection = FieldCollection(catalog={"p-1": product})
        collection.add("product")
        descriptor = collection.update(0, product_id="p-1")
        self.assertEqual(descriptor.label, "Logo design")
        self.assertEqual(descriptor.price, Decimal("450.00"))

        product.name = "Logo design v2"
        product.price = Decimal("999.00")
        self.assertEqual(collection[0].label, "Logo design")
        self.assertEqual(collection[0].price, Decimal("450.00"))

    def test_unknown_product_keeps_label(self) -> None:
        collection = FieldCollection()
        collection.add("product")
        descriptor = collection.update(0, product_id="missing")
        self.assertEqual(descriptor.label, "Product Selection")
        self.assertEqual(descriptor.product_id, "missing")

    def test_field_kind_cannot_change(self) -> None:
        collection = FieldCollection()
        collection.add("text")
        with self.assertRaises(ValueError):
            collection.update(0, field_type="number")


class SlugTests(TestCase):
    def test_normalize_slug(self) -> None:
        self.assertEqual(normalize_slug("My Great Form!!"), "my-great-form")
        self.assertEqual(normalize_slug("  --Spring  Sale 2024-- "), "spring-sale-2024")
        self.assertEqual(normalize_slug("!!!"), "")

    def test_publish_requires_a_slug(self) -> None:
        form = QuoteForm.objects.create(title="Untitled")
        with self.assertRaises(SlugRequired):
            publish_form(form, "***")
        form.refresh_from_db()
        self.assertFalse(form.published)

    def test_publish_rejects_taken_slug(self) -> None:
        QuoteForm.objects.create(title="First", slug="offer", published=True)
        form = QuoteForm.objects.create(title="Second")
        with self.assertRaises(FormPersistenceError):
            publish_form(form, "Offer")
        self.assertIsNone(form.slug)
        self.assertFalse(form.published)


@override_settings(QUOTE_FORMS=BUILDER_SETTINGS)
class FormBuilderSessionTests(TestCase):
    def test_save_validates_title_and_fields(self) -> None:
        session = FormBuilderSession.open(autosave=False)
        with self.assertRaisesMessage(BuilderValidationError, "Title is required"):
            session.save()
        self.assertEqual(session.state, EDITING)

        session.update_settings(title="Website quote")
        with self.assertRaisesMessage(BuilderValidationError, "At least one field is required"):
            session.save()
        self.assertEqual(session.error, "At least one field is required")
        self.assertFalse(QuoteForm.objects.exists())

    def test_save_creates_form_and_fields(self) -> None:
        session = FormBuilderSession.open(autosave=False)
        session.update_settings(title="  Website quote ", slug="Website Quote!", show_prices=True)
        session.add_field("text")
        session.add_field("checkbox")
        session.update_field(1, label="Hosting", price="25.50")

        form_id = session.save()

        self.assertEqual(session.state, NAVIGATED_AWAY)
        form = QuoteForm.objects.get(pk=form_id)
        self.assertEqual(form.title, "Website quote")
        self.assertEqual(form.slug, "website-quote")
        rows = list(form.fields.order_by("order"))
        self.assertEqual([row.field_type for row in rows], ["text", "checkbox"])
        self.assertEqual(rows[1].price, Decimal("25.50"))

    def test_save_replaces_removed_fields(self) -> None:
        form = QuoteForm.objects.create(title="Existing")
        FormField.objects.create(form=form, field_type="text", order=0)
        FormField.objects.create(form=form, field_type="number", order=1)

        session = FormBuilderSession.open(form.pk, autosave=False)
        session.remove_field(0)
        session.save()

        self.assertEqual(list(form.fields.values_list("field_type", "order")), [("number", 0)])

    def test_failed_save_keeps_the_draft(self) -> None:
        store = FormStore()
        session = FormBuilderSession.open(store=store, autosave=False)
        session.update_settings(title="Draft")
        session.add_field("text")
        with mock.patch.object(store, "create_form", side_effect=FormPersistenceError("Failed to create form: boom")):
            with self.assertRaises(FormPersistenceError):
                session.save()
        self.assertEqual(session.state, EDITING)
        self.assertEqual(session.error, "Failed to create form: boom")
        self.assertEqual(len(session.fields), 1)
        self.assertIsNone(session.form_id)

    def test_autosave_writes_fields_in_batches(self) -> None:
        form = QuoteForm.objects.create(title="Large form")
        sleep = mock.Mock()
        store = FormStore(batch_size=5, batch_pause=0.1, sleep=sleep)
        session = FormBuilderSession.open(form.pk, store=store, autosave=False)
        for _ in range(12):
            session.add_field("text")

        self.assertTrue(session.autosave())

        self.assertEqual(sleep.call_args_list, [mock.call(0.1), mock.call(0.1)])
        self.assertEqual(form.fields.count(), 12)
        self.assertEqual(sorted(form.fields.values_list("order", flat=True)), list(range(12)))
        self.assertEqual(session.state, EDITING)

    def test_autosave_needs_a_title(self) -> None:
        form = QuoteForm.objects.create(title="Titled")
        session = FormBuilderSession.open(form.pk, autosave=False)
        session.update_settings(title="   ")
        self.assertFalse(session.autosave())

    def test_autosave_failure_is_logged(self) -> None:
        form = QuoteForm.objects.create(title="Flaky")
        store = FormStore()
        session = FormBuilderSession.open(form.pk, store=store, autosave=False)
        with mock.patch.object(store, "autosave", side_effect=FormPersistenceError("down")):
            with self.assertLogs("quoteforms.builder", level="ERROR"):
                self.assertFalse(session.autosave())
        self.assertEqual(session.state, EDITING)

    def test_edits_reschedule_autosave(self) -> None:
        form = QuoteForm.objects.create(title="Debounced")
        session = FormBuilderSession.open(form.pk)
        try:
            session.add_field("text")
            self.assertTrue(session.autosave_pending)
        finally:
            session.close()
        self.assertFalse(session.autosave_pending)

    def test_preview_requires_publishing(self) -> None:
        form = QuoteForm.objects.create(title="Hidden", slug="hidden")
        session = FormBuilderSession.open(form.pk, autosave=False)
        with self.assertRaises(PreviewUnavailable):
            session.preview_path()
        publish_form(form)
        session = FormBuilderSession.open(form.pk, autosave=False)
        self.assertEqual(session.preview_path(), "/forms/hidden")


class DebouncerTests(TestCase):
    def test_flush_runs_latest_call_once(self) -> None:
        callback = mock.Mock()
        debouncer = Debouncer(60, callback)
        debouncer.trigger(1)
        debouncer.trigger(2)
        self.assertTrue(debouncer.pending)

        self.assertTrue(debouncer.flush())

        callback.assert_called_once_with(2)
        self.assertFalse(debouncer.pending)
        self.assertFalse(debouncer.flush())

    def test_cancel_drops_pending_call(self) -> None:
        callback = mock.Mock()
        debouncer = Debouncer(60, callback)
        debouncer.trigger()
        self.assertTrue(debouncer.cancel())
        self.assertFalse(debouncer.cancel())
        callback.assert_not_called()

    def test_timer_fires_after_quiet_period(self) -> None:
        fired = threading.Event()
        debouncer = Debouncer(0.01, fired.set)
        debouncer.trigger()
        self.assertTrue(fired.wait(2))
        self.assertFalse(debouncer.pending)

    def test_scheduler_keeps_last_snapshot_per_form(self) -> None:
        dispatch = mock.Mock()
        autosaves = AutosaveScheduler(wait=60, dispatch=dispatch)
        autosaves.schedule("a", {"n": 1})
        autosaves.schedule("a", {"n": 2})
        autosaves.schedule("b", {"n": 3})

        self.assertTrue(autosaves.flush("a"))
        dispatch.assert_called_once_with("a", {"n": 2})
        self.assertFalse(autosaves.pending("a"))
        self.assertTrue(autosaves.cancel("b"))
        self.assertFalse(autosaves.pending("b"))


@override_settings(QUOTE_FORMS=BUILDER_SETTINGS)
class QuoteFormApiTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()
        self.client.force_authenticate(user=_account("admin@example.com"))

    def _create_form(self, **extra) -> QuoteForm:
        form = QuoteForm.objects.create(title="Website quote", **extra)
        FormField.objects.create(form=form, field_type="text", label="Name", order=0)
        FormField.objects.create(form=form, field_type="checkbox", label="Hosting", price=10, order=1)
        return form

    def test_create_form_with_fields(self) -> None:
        payload = {
            "title": "Branding package",
            "description": "Pick what you need",
            "slug": "Branding Package",
            "show_prices": True,
            "fields": [
                {"field_type": "header", "label": "Basics", "content": "Tell us about you"},
                {"field_type": "number", "label": "Pages", "price": "100.00", "quantity_field": True},
            ],
        }
        response = self.client.post(reverse("quoteform-list"), payload, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["slug"], "branding-package")
        self.assertFalse(response.data["published"])
        self.assertEqual([field["order"] for field in response.data["fields"]], [0, 1])

    def test_create_form_requires_fields(self) -> None:
        response = self.client.post(reverse("quoteform-list"), {"title": "Empty", "fields": []}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["detail"], "At least one field is required")

    def test_list_includes_quote_count(self) -> None:
        self._create_form()
        response = self.client.get(reverse("quoteform-list"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data[0]["quote_count"], 0)

    def test_publish_and_preview(self) -> None:
        form = self._create_form()
        preview = self.client.get(reverse("quoteform-preview", args=[form.pk]))
        self.assertEqual(preview.status_code, 409)
        self.assertEqual(preview.data["detail"], "Please publish the form first to preview it.")

        response = self.client.post(
            reverse("quoteform-publish", args=[form.pk]), {"slug": "My Great Form!!"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["published"])
        self.assertEqual(response.data["slug"], "my-great-form")

        preview = self.client.get(reverse("quoteform-preview", args=[form.pk]))
        self.assertEqual(preview.data["path"], "/forms/my-great-form")

    def test_publish_without_slug(self) -> None:
        form = self._create_form()
        response = self.client.post(reverse("quoteform-publish", args=[form.pk]), {}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_duplicate(self) -> None:
        form = self._create_form(slug="original", published=True)
        response = self.client.post(reverse("quoteform-duplicate", args=[form.pk]))
        self.assertEqual(response.status_code, 201)

        copy = QuoteForm.objects.get(pk=response.data["id"])
        self.assertEqual(copy.title, "Website quote (Copy)")
        self.assertIsNone(copy.slug)
        self.assertFalse(copy.published)
        original_fields = list(form.fields.values_list("id", "label", "order"))
        copied_fields = list(copy.fields.values_list("id", "label", "order"))
        self.assertEqual([row[1:] for row in copied_fields], [row[1:] for row in original_fields])
        self.assertFalse({row[0] for row in copied_fields} & {row[0] for row in original_fields})

    def test_field_endpoints(self) -> None:
        form = self._create_form()

        added = self.client.post(
            reverse("quoteform-add-field", args=[form.pk]), {"field_type": "select"}, format="json"
        )
        self.assertEqual(added.status_code, 201)
        self.assertEqual(added.data["order"], 2)

        updated = self.client.patch(
            reverse("quoteform-field-detail", args=[form.pk, 2]),
            {"label": "Package", "options": [{"label": "Basic", "value": "basic"}]},
            format="json",
        )
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.data["label"], "Package")

        moved = self.client.post(
            reverse("quoteform-move-field", args=[form.pk]),
            {"from_position": 2, "to_position": 0},
            format="json",
        )
        self.assertEqual(moved.status_code, 200)
        self.assertEqual([field["label"] for field in moved.data], ["Package", "Name", "Hosting"])

        removed = self.client.delete(reverse("quoteform-field-detail", args=[form.pk, 1]))
        self.assertEqual(removed.status_code, 204)
        self.assertEqual(
            list(form.fields.order_by("order").values_list("label", "order")),
            [("Package", 0), ("Hosting", 1)],
        )

        missing = self.client.delete(reverse("quoteform-field-detail", args=[form.pk, 9]))
        self.assertEqual(missing.status_code, 404)

    def test_autosave_endpoint(self) -> None:
        form = self._create_form()
        field = form.fields.get(order=1)
        payload = {
            "title": "Renamed while editing",
            "fields": [
                {"id": str(field.id), "field_type": "checkbox", "label": "Managed hosting", "price": "12.00"},
                {"field_type": "textarea", "label": "Notes"},
            ],
        }
        with mock.patch.object(autosave_form, "delay", side_effect=autosave_form) as delay:
            response = self.client.post(reverse("quoteform-autosave", args=[form.pk]), payload, format="json")
            self.assertEqual(response.status_code, 202)
            self.assertTrue(response.data["scheduled"])
            self.assertTrue(scheduler.pending(form.pk))
            scheduler.flush(form.pk)

        delay.assert_called_once()
        form.refresh_from_db()
        self.assertEqual(form.title, "Renamed while editing")
        field.refresh_from_db()
        self.assertEqual((field.label, field.order), ("Managed hosting", 0))
        # Autosave upserts; the untouched text field is only dropped by an explicit save.
        self.assertEqual(form.fields.count(), 3)

    def test_autosave_can_be_cancelled(self) -> None:
        form = self._create_form()
        payload = {"title": "Pending", "fields": []}
        with mock.patch.object(autosave_form, "delay") as delay:
            self.client.post(reverse("quoteform-autosave", args=[form.pk]), payload, format="json")
            response = self.client.delete(reverse("quoteform-autosave", args=[form.pk]))
        self.assertTrue(response.data["cancelled"])
        delay.assert_not_called()

    def test_explicit_save_discards_pending_autosave(self) -> None:
        form = self._create_form()
        kept = form.fields.get(order=0)
        stale = {
            "title": "Stale",
            "fields": [
                {"id": str(kept.id), "field_type": "text", "label": "A"},
                {"field_type": "text", "label": "Removed later"},
            ],
        }
        with mock.patch.object(autosave_form, "delay", side_effect=autosave_form) as delay:
            self.client.post(reverse("quoteform-autosave", args=[form.pk]), stale, format="json")
            response = self.client.put(
                reverse("quoteform-detail", args=[form.pk]),
                {"title": "Final", "fields": [{"field_type": "text", "label": "Only"}]},
                format="json",
            )
            self.assertEqual(response.status_code, 200)
            self.assertFalse(scheduler.pending(form.pk))
            self.assertFalse(scheduler.flush(form.pk))

        delay.assert_not_called()
        form.refresh_from_db()
        self.assertEqual(form.title, "Final")
        self.assertEqual(list(form.fields.values_list("label", flat=True)), ["Only"])

    def test_field_edit_discards_pending_autosave(self) -> None:
        form = self._create_form()
        with mock.patch.object(autosave_form, "delay") as delay:
            self.client.post(
                reverse("quoteform-autosave", args=[form.pk]), {"title": "Stale", "fields": []}, format="json"
            )
            self.client.post(reverse("quoteform-add-field", args=[form.pk]), {"field_type": "text"}, format="json")
            self.assertFalse(scheduler.pending(form.pk))
        delay.assert_not_called()

    def test_autosave_keeps_settings_left_out(self) -> None:
        form = self._create_form(slug="live", published=True, show_prices=True)
        with mock.patch.object(autosave_form, "delay", side_effect=autosave_form):
            self.client.post(
                reverse("quoteform-autosave", args=[form.pk]), {"title": "Edited", "fields": []}, format="json"
            )
            scheduler.flush(form.pk)
        form.refresh_from_db()
        self.assertEqual((form.title, form.slug, form.show_prices), ("Edited", "live", True))

        public = APIClient().get(reverse("public-form", args=["live"]))
        self.assertEqual(public.status_code, 200)

    def test_published_form_keeps_slug_when_cleared(self) -> None:
        form = self._create_form(slug="live", published=True)
        FormStore().update_metadata(form.pk, {"title": "Edited", "slug": None})
        form.refresh_from_db()
        self.assertEqual((form.title, form.slug), ("Edited", "live"))

    def test_autosave_task_skips_deleted_form(self) -> None:
        snapshot = {"metadata": {"title": "Gone"}, "fields": []}
        self.assertFalse(autosave_form("00000000-0000-0000-0000-000000000000", snapshot))

    def test_admin_only(self) -> None:
        self._create_form()
        member = APIClient()
        member.force_authenticate(user=_account("member@example.com", role=User.USER))
        response = member.get(reverse("quoteform-list"))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["redirect"], "/dashboard")

        anonymous = APIClient().get(reverse("quoteform-list"))
        self.assertIn(anonymous.status_code, (401, 403))

    def test_unknown_form(self) -> None:
        response = self.client.get(reverse("quoteform-detail", args=["00000000-0000-0000-0000-000000000000"]))
        self.assertEqual(response.status_code, 404)


class ProductSnapshotPersistenceTests(TestCase):
    def test_selected_product_is_copied_into_the_field(self) -> None:
        product = Product.objects.create(name="SEO audit", price=Decimal("300.00"), currency="USD")
        form = QuoteForm.objects.create(title="Audit")
        FormField.objects.create(form=form, field_type="product", label="Product Selection", order=0)

        session = FormBuilderSession.open(form.pk, autosave=False)
        session.update_field(0, product_id=product.pk)
        session.sync()

        product.price = Decimal("500.00")
        product.save()
        row = form.fields.get()
        self.assertEqual((row.label, row.price), ("SEO audit", Decimal("300.00")))
        self.assertEqual(row.product_id, product.pk)
