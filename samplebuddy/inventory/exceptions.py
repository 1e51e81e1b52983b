"""
Exceptions raised by the inventory core.

Every error carries a stable ``code`` so that the UI layer can turn it into a
user-facing message without parsing text.
"""


class InventoryError(Exception):
    """Base exception for rejected inventory operations."""

    code = "InventoryError"

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def __str__(self):
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class MissingParentError(InventoryError):
    """Raised when the shelf/box context of an operation is absent."""
    code = "MissingParent"


class AlreadyExistsError(InventoryError):
    """Raised when a manual creation would reuse an existing shelf or box code."""
    code = "AlreadyExists"


class DuplicateSampleError(InventoryError):
    """Raised when a box already holds a sample with the same base code."""
    code = "DuplicateSample"


class NotFoundError(InventoryError):
    """Raised when a rename/move target id cannot be resolved."""
    code = "NotFound"


class AuthFailedError(InventoryError):
    """Raised when the delete password check fails."""
    code = "AuthFailed"


class SnapshotError(InventoryError):
    """Raised when a persisted or imported snapshot cannot be parsed."""
    code = "InvalidSnapshot"
