"""Exception hierarchy for the brief engine.

Gating failures are never exceptions: the wizard reports them as data.  The
classes below cover the actions that can fail outright and that the caller is
expected to surface ("this one action did not take effect").
"""
from __future__ import annotations


class BriefError(Exception):
    """Base class for every error raised by brief_engine."""


class UnknownFieldError(BriefError, KeyError):
    """update_field() was called with a name that is not a Document field."""

    def __init__(self, field: str):
        super().__init__(field)
        self.field = field

    def __str__(self) -> str:
        return f"unknown document field: {self.field!r}"


class FieldValidationError(BriefError, ValueError):
    """A value did not validate against the Document model; nothing was written."""

    def __init__(self, field: str, errors: list[str]):
        super().__init__(f"invalid value for {field!r}: {'; '.join(errors)}")
        self.field = field
        self.errors = errors


class GenerationError(BriefError):
    """The generative-text collaborator returned nothing usable."""


class GenerationInFlightError(BriefError):
    """A generation for the same target field is still outstanding."""

    def __init__(self, target: str):
        super().__init__(f"generation already in flight for {target!r}")
        self.target = target


class ExportError(BriefError):
    """An export collaborator failed; the document was not touched."""


class UnsavedChangesError(BriefError):
    """Leaving the session was refused because it holds unsaved changes."""
