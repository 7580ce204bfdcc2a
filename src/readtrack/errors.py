"""Domain errors raised by the reading-progress engine.

Pure calculators never raise these; the status policy, the services and
the repositories (ConflictError) do.
Callers translate them to user-facing responses.
"""

from typing import Optional


class DomainError(Exception):
    """Base class for all engine errors."""


class ValidationError(DomainError, ValueError):
    """A request was rejected; the entity is unchanged."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(DomainError, LookupError):
    """A referenced goal or book does not exist."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} with id {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class UnauthorizedError(DomainError, PermissionError):
    """The acting user does not own the referenced entity."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ConflictError(DomainError):
    """The entity changed since it was read; reload and try again."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} with id {entity_id} was modified concurrently")
        self.entity = entity
        self.entity_id = entity_id
