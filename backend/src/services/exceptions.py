"""
Domain errors raised by the service layer.

Services raise these and never catch them; the API layer maps each class to an
HTTP status in api/main.py.
"""


class RecipeShareError(Exception):
    """Base class for every error the core surfaces to its caller."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequestError(RecipeShareError):
    """A required field is missing or malformed. Nothing was written."""


class NotFoundError(RecipeShareError):
    """
    The referenced entity does not exist.

    Owner-scoped lookups also raise this for entities owned by someone else,
    so existence is never leaked across owners.
    """

    def __init__(self, entity: str, identifier: object) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.identifier = identifier


class ForbiddenError(RecipeShareError):
    """The entity exists but the caller does not own it."""

    def __init__(self, action: str, entity: str = "recipe") -> None:
        super().__init__(f"Not authorized to {action} this {entity}")
        self.action = action
        self.entity = entity


class ConflictError(RecipeShareError):
    """A uniqueness constraint (user subject or email) would be violated."""


class StorageError(RecipeShareError):
    """Persistence failed; the whole operation is safe to retry."""


class StorageTimeoutError(StorageError):
    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Storage did not respond within {timeout_seconds}s")
        self.timeout_seconds = timeout_seconds


class StorageUnavailableError(StorageError):
    def __init__(self, reason: str = "Storage is unreachable") -> None:
        super().__init__(reason)
        self.reason = reason
