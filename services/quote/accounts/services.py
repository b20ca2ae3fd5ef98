"""Sign-up, sign-in and session lookups for the quote service."""
from __future__ import annotations

import logging
import time
from typing import Optional

from django.conf import settings
from django.contrib.auth import authenticate, get_user_model, login, logout
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from .models import User

logger = logging.getLogger(__name__)


class AuthenticationFailed(Exception):
    """Raised when a sign-in or sign-up cannot complete."""


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def lookup_record(identity) -> Optional[User]:
    """Fetch the user record for an identity, tolerating replication lag."""

    attempts = settings.ACCOUNTS["LOOKUP_ATTEMPTS"]
    delay = settings.ACCOUNTS["LOOKUP_DELAY"]
    for attempt in range(attempts):
        record = User.objects.filter(identity=identity).first()
        if record is not None:
            return record
        if attempt < attempts - 1:
            logger.info("User record for %s not found yet, retrying", identity.pk)
            time.sleep(delay)
    return None


def sign_out(request) -> None:
    logout(request)


def sign_up(request, email: str, password: str) -> User:
    """Create an auth identity and its user record.

    The very first account becomes an administrator. The caller is signed out
    afterwards so that registration never leaves a live session behind.
    """

    email = _normalize_email(email)
    identity_model = get_user_model()
    if identity_model.objects.filter(username=email).exists():
        raise AuthenticationFailed("An account with this email already exists.")

    try:
        validate_password(password)
    except ValidationError as exc:
        raise AuthenticationFailed("Password must be at least 6 characters long.") from exc

    is_first_user = not User.objects.exists()
    identity = identity_model.objects.create_user(username=email, email=email, password=password)

    try:
        with transaction.atomic():
            record = User.objects.create(
                identity=identity,
                email=email,
                role=User.ADMIN if is_first_user else User.USER,
            )
    except DatabaseError as exc:
        logger.exception("Creating user record for %s failed", email)
        identity.delete()
        sign_out(request)
        raise AuthenticationFailed("Failed to create user account. Please try again.") from exc

    sign_out(request)
    logger.info("Registered %s with role %s", email, record.role)
    return record


def sign_in(request, email: str, password: str) -> User:
    identity = authenticate(request, username=_normalize_email(email), password=password)
    if identity is None:
        raise AuthenticationFailed("Incorrect email or password.")

    login(request, identity)
    try:
        record = lookup_record(identity)
    except DatabaseError as exc:
        logger.exception("Looking up user record for %s failed", identity.pk)
        sign_out(request)
        raise AuthenticationFailed("Failed to retrieve user data") from exc

    if record is None:
        sign_out(request)
        raise AuthenticationFailed("User account not found. Please try again in a few moments.")
    return record


def current_user(request) -> Optional[User]:
    """Return the signed-in user's record, or ``None`` for anonymous callers."""

    identity = request.user
    if not identity.is_authenticated:
        return None
    record = lookup_record(identity)
    if record is None:
        sign_out(request)
    return record
