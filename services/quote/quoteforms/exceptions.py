"""Errors raised while building and publishing quote forms."""
from __future__ import annotations


class FormBuilderError(Exception):
    """Base class for form builder failures."""


class FormNotFound(FormBuilderError):
    pass


class BuilderValidationError(FormBuilderError):
    """A user-correctable problem that blocks the triggering action."""


class SlugRequired(BuilderValidationError):
    pass


class FormPersistenceError(FormBuilderError):
    """Writing the form failed; the in-memory draft is left untouched."""


class PreviewUnavailable(FormBuilderError):
    pass


class FieldPositionError(IndexError):
    """A field position outside the collection was addressed."""


class BuilderStateError(RuntimeError):
    """The session is not in a state that accepts edits."""
