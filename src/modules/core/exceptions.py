"""Root of the domain error taxonomy.

Every bounded context derives its failures from these classes so the
API layer can translate whole families of errors at once.  Each error
names the entity it concerns and the precondition that failed.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """A requested operation was rejected; nothing was changed."""

    def __init__(self, message: str, *, entity_id: Any = None) -> None:
        super().__init__(message)
        self.entity_id = entity_id


class NotFound(DomainError):
    """An order, stock item or freshness batch identity is unknown."""


class OperationNotAllowed(DomainError):
    """The entity exists but its current state forbids the operation."""


class Conflict(DomainError):
    """The operation collides with the current stock or catalog state."""
