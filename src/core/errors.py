"""Inventory exception types."""

class InventoryError(Exception):
    """Base exception for inventory errors surfaced to the user."""


class ValidationFailedError(InventoryError):
    """Raised before any write when required fields are missing."""

    def __init__(self, message: str, missing=None):
        super().__init__(message)
        self.missing = list(missing or [])


class RecordNotFoundError(InventoryError):
    """Raised when a record does not exist or belongs to another account."""


class DuplicateRecordError(InventoryError):
    """Raised when a natural key collides with an existing record."""


class AuthorizationError(InventoryError):
    """Raised when there is no signed-in account."""


class GatewayError(InventoryError):
    """Raised when the storage backend fails (I/O, corrupt data)."""
