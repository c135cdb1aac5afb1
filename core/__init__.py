"""
Landlord Portfolio - Core Business Logic

This package provides the record-keeping pipeline for a landlord's
portfolio:
1. Owner-scoped locators (every path starts at owners/{owner_id})
2. Document store with live subscriptions
3. Form validation (pydantic schemas, field-level messages)
4. Mutation pipeline (validate, write, toast, redirect)
5. Soft lifecycle (archive, restore, permanent delete)
6. Feature services (properties, tenants, contractors, checklists,
   inspections, maintenance) and dashboard aggregates
"""

from .errors import (
    PortfolioError,
    StoreError,
    PermissionDeniedError,
    DocumentNotFoundError,
    TransientStoreError,
    InvalidDocumentError,
    AccessErrorContext,
    DocumentAccessError,
    MissingContextError,
    NotAuthenticatedError,
    DuplicateRecordError,
    DuplicatePropertyError,
    DuplicateContractorError,
    LifecycleError,
)
from .dates import to_date, format_date
from .session import AuthState, GuardAction, Session, guard
from .validation import FieldError, Invalid, Valid, validate

# Mutation pipeline
from .mutation import (
    MutationCancelled,
    MutationFailed,
    MutationPipeline,
    MutationRejected,
    MutationSuccess,
    RecordingNavigator,
    RecordingNotifier,
    Toast,
    ToastVariant,
    strip_undefined,
)

# Soft lifecycle
from .lifecycle import (
    ConfirmationKind,
    ConfirmationRequest,
    ContractorStatus,
    InspectionStatus,
    MaintenanceStatus,
    PropertyStatus,
    TenantStatus,
    confirmed_for,
    never_confirm,
)

# Feature services
from .portfolio import PortfolioServices

__all__ = [
    # Errors
    "PortfolioError",
    "StoreError",
    "PermissionDeniedError",
    "DocumentNotFoundError",
    "TransientStoreError",
    "InvalidDocumentError",
    "AccessErrorContext",
    "DocumentAccessError",
    "MissingContextError",
    "NotAuthenticatedError",
    "DuplicateRecordError",
    "DuplicatePropertyError",
    "DuplicateContractorError",
    "LifecycleError",
    # Dates
    "to_date",
    "format_date",
    # Session
    "AuthState",
    "GuardAction",
    "Session",
    "guard",
    # Validation
    "FieldError",
    "Invalid",
    "Valid",
    "validate",
    # Mutation
    "MutationCancelled",
    "MutationFailed",
    "MutationPipeline",
    "MutationRejected",
    "MutationSuccess",
    "RecordingNavigator",
    "RecordingNotifier",
    "Toast",
    "ToastVariant",
    "strip_undefined",
    # Lifecycle
    "ConfirmationKind",
    "ConfirmationRequest",
    "ContractorStatus",
    "InspectionStatus",
    "MaintenanceStatus",
    "PropertyStatus",
    "TenantStatus",
    "confirmed_for",
    "never_confirm",
    # Services
    "PortfolioServices",
]
