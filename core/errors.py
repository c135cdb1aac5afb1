"""
Portfolio Errors - Exception Taxonomy

Every failure a user action can produce maps onto one of these types:

- Validation errors are caught before any write is attempted.
- Store errors come back from the document store after a write or read.
- Access errors wrap a permission failure with the context needed to
  diagnose it later (path, operation, attempted payload).
- Missing-context errors mean a required route parameter was absent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


class PortfolioError(Exception):
    """Base class for all portfolio errors."""


# =============================================================================
# Store Errors
# =============================================================================


class StoreError(PortfolioError):
    """A failure reported by the document or object store."""


class PermissionDeniedError(StoreError):
    """The store refused the operation for the current principal."""


class DocumentNotFoundError(StoreError):
    """The referenced document does not exist."""


class TransientStoreError(StoreError):
    """Network or availability failure; the user may retry."""


class InvalidDocumentError(StoreError):
    """The payload contains a value the store does not accept."""


# =============================================================================
# Access Errors
# =============================================================================


@dataclass(frozen=True)
class AccessErrorContext:
    """Diagnostic context for a failed write."""

    path: str
    operation: str  # "create", "update", "delete"
    attempted_data: Optional[dict[str, Any]] = field(default=None)

    def to_dict(self) -> dict:
        """Convert to dictionary for reporting."""
        return {
            "path": self.path,
            "operation": self.operation,
            "attempted_data": self.attempted_data,
        }


class DocumentAccessError(PortfolioError):
    """
    Structured permission error emitted after a write is refused.

    Reported through the access-error channel, separate from user toasts.
    """

    def __init__(self, context: AccessErrorContext, cause: Optional[Exception] = None):
        self.context = context
        self.cause = cause
        super().__init__(
            f"Missing or insufficient permissions: {context.operation} on {context.path}"
        )


# =============================================================================
# Context & Identity
# =============================================================================


class MissingContextError(PortfolioError):
    """A required route or query parameter is missing or its document is absent."""

    def __init__(self, message: str, back_to: str = "/dashboard"):
        self.back_to = back_to
        super().__init__(message)


class NotAuthenticatedError(PortfolioError):
    """The owner identity is not (yet) known."""


# =============================================================================
# Domain Rules
# =============================================================================


class DuplicateRecordError(PortfolioError):
    """An active record with the same identifying details already exists."""


class DuplicatePropertyError(DuplicateRecordError):
    """An active property at the same street and postcode already exists."""

    def __init__(self, street: str, postcode: str):
        self.street = street
        self.postcode = postcode
        super().__init__("A property with this street and postcode already exists in your active portfolio.")


class DuplicateContractorError(DuplicateRecordError):
    """An active contractor with the same phone number already exists."""

    def __init__(self, phone: str):
        self.phone = phone
        super().__init__(f"A contractor with phone {phone} already exists in your records.")


class LifecycleError(PortfolioError):
    """An illegal status transition was requested."""
