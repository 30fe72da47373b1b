"""
Shared exceptions.

Domain errors carry a human-readable message plus a ``details`` dict with the
identifiers involved, so the HTTP layer can render them without re-deriving
context.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class AppError(Exception):
    message: str = "Application error"
    details: Optional[dict[str, Any]] = None

    def __str__(self) -> str:
        return self.message


class NotFoundError(AppError):
    """A lookup by id or phone found nothing where a record is required."""


class ConflictError(AppError):
    """A write collided with an existing record (e.g. duplicate phone)."""
