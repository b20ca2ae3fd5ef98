"""Tests for sign-up, sign-in and role checks."""
from __future__ import annotations

from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APIClient

from .models import User

FAST_LOOKUP = {"LOOKUP_ATTEMPTS": 3, "LOOKUP_DELAY": 0}


@override_settings(ACCOUNTS=FAST_LOOKUP)
class AuthApiTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()

    def _sign_up(self, email: str, password: str = "secret123"):
        return self.client.post(reverse("auth-sign-up"), {"email": email, "password": password}, format="json")

    def test_first_user_is_admin(self) -> None:
        first = self._sign_up("owner@example.com")
        second = self._sign_up("staff@example.com")
        self.assertEqual(first.status_code, 201)
        self.assertEqual(first.data["role"], User.ADMIN)
        self.assertEqual(second.data["role"], User.USER)

    def test_sign_up_leaves_caller_signed_out(self) -> None:
        self._sign_up("owner@example.com")
        response = self.client.get(reverse("auth-session"))
        self.assertIsNone(response.data["user"])

    def test_short_password(self) -> None:
        response = self._sign_up("owner@example.com", "12345")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["detail"], "Password must be at least 6 characters long.")
        self.assertFalse(get_user_model().objects.exists())

    def test_duplicate_email(self) -> None:
        self._sign_up("owner@example.com")
        response = self._sign_up("Owner@Example.com")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(User.objects.count(), 1)

    def test_failed_record_removes_identity(self) -> None:
        with mock.patch.object(User.objects, "create", side_effect=DatabaseError("insert failed")):
            with self.assertLogs("accounts.services", level="ERROR"):
                response = self._sign_up("owner@example.com")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["detail"], "Failed to create user account. Please try again.")
        self.assertFalse(get_user_model().objects.exists())

    def test_sign_in_and_session(self) -> None:
        self._sign_up("owner@example.com")

        wrong = self.client.post(
            reverse("auth-sign-in"), {"email": "owner@example.com", "password": "nope-nope"}, format="json"
        )
        self.assertEqual(wrong.status_code, 400)
        self.assertEqual(wrong.data["detail"], "Incorrect email or password.")

        response = self.client.post(
            reverse("auth-sign-in"), {"email": "owner@example.com", "password": "secret123"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["user"]["email"], "owner@example.com")

        session = self.client.get(reverse("auth-session"))
        self.assertEqual(session.data["user"]["role"], User.ADMIN)

        self.client.post(reverse("auth-sign-out"))
        self.assertIsNone(self.client.get(reverse("auth-session")).data["user"])

    def test_sign_in_without_record(self) -> None:
        get_user_model().objects.create_user(username="ghost@example.com", password="secret123")
        with mock.patch("accounts.services.time.sleep") as sleep:
            response = self.client.post(
                reverse("auth-sign-in"), {"email": "ghost@example.com", "password": "secret123"}, format="json"
            )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(sleep.call_count, 2)
        self.assertIsNone(self.client.get(reverse("auth-session")).data["user"])

    def test_user_list_is_admin_only(self) -> None:
        self._sign_up("owner@example.com")
        self._sign_up("staff@example.com")

        self.client.post(reverse("auth-sign-in"), {"email": "staff@example.com", "password": "secret123"}, format="json")
        denied = self.client.get(reverse("user-list"))
        self.assertEqual(denied.status_code, 403)
        self.assertEqual(denied.data["redirect"], "/dashboard")

        self.client.post(reverse("auth-sign-in"), {"email": "owner@example.com", "password": "secret123"}, format="json")
        allowed = self.client.get(reverse("user-list"))
        self.assertEqual(allowed.status_code, 200)
        self.assertEqual(len(allowed.data), 2)
