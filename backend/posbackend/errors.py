# Overview: Error hierarchy shared by services and routes.
"""
Domain errors.

Every error carries a short machine-readable ``kind`` plus a ``details`` dict
with enough context to act on (missing ids, available vs. required stock,
conflicting field). Routes render them with ``to_dict()`` and ``status_code``.
"""
from __future__ import annotations


class PosError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code = 400
    default_kind = "error"

    def __init__(self, message: str, *, kind: str | None = None, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "kind": self.kind,
            "details": self.details,
        }


class ValidationError(PosError):
    """400-level input problem (bad shape, insufficient stock, out of range)."""

    default_kind = "invalid input"


class NotFoundError(ValidationError):
    """Referenced entity is missing, or inactive for taxes and discounts."""

    status_code = 404
    default_kind = "not found"


class ConflictError(PosError):
    """409-level duplicate of a unique field (e.g., staff email)."""

    status_code = 409
    default_kind = "conflict"


class DependencyError(PosError):
    """Delete blocked because other rows still reference the target."""

    status_code = 409
    default_kind = "dependency"


class StorageError(PosError):
    """Underlying persistence failure, not otherwise classified."""

    status_code = 500
    default_kind = "storage failure"
