"""Database models for the identity side of the quote service."""
from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models


class User(models.Model):
    """Application user record attached to an auth identity."""

    ADMIN = "admin"
    USER = "user"

    ROLE_CHOICES = [
        (ADMIN, "Administrator"),
        (USER, "User"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    identity = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        related_name="record",
        on_delete=models.CASCADE,
    )
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=USER)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "users"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"

    @property
    def is_admin(self) -> bool:
        return self.role == self.ADMIN
