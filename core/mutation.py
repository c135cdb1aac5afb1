"""
Mutation Pipeline - Validate, Write, Notify, Navigate

Every form submission follows the same path:

    validate (schema) -> strip unset fields -> write (create or update)
      success: confirmation toast + navigation to the follow-up view
      failure: error toast + structured access error for diagnostics

Validation failures stop before any store call. Permission failures are
reported through the injected ``report_access_error`` callback, separate
from the user-facing toast. Nothing is retried automatically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Final, Mapping, Optional, Protocol, Union

from pydantic import BaseModel

from core.errors import (
    AccessErrorContext,
    DocumentAccessError,
    DocumentNotFoundError,
    LifecycleError,
    PermissionDeniedError,
    PortfolioError,
    StoreError,
    TransientStoreError,
)
from core.store.backend import DocumentStore
from core.store.locator import CollectionRef, DocumentRef
from core.validation import FieldError, Invalid, validate

logger = logging.getLogger(__name__)

RETRY_SUGGESTION: Final[str] = "Please check your connection and try again."


# =============================================================================
# Notifications
# =============================================================================


class ToastVariant(Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Toast:
    """A short user-visible notification: title plus actionable description."""

    title: str
    description: str
    variant: ToastVariant = ToastVariant.DEFAULT

    def to_dict(self) -> dict:
        return {"title": self.title, "description": self.description, "variant": self.variant.value}


class Notifier(Protocol):
    def toast(self, toast: Toast) -> None: ...


class Navigator(Protocol):
    def navigate(self, url: str) -> None: ...


AccessErrorReporter = Callable[[DocumentAccessError], None]


class RecordingNotifier:
    """Collects toasts so a request handler can return them."""

    def __init__(self) -> None:
        self.toasts: list[Toast] = []

    def toast(self, toast: Toast) -> None:
        self.toasts.append(toast)


class RecordingNavigator:
    """Remembers the last navigation target."""

    def __init__(self) -> None:
        self.history: list[str] = []

    def navigate(self, url: str) -> None:
        self.history.append(url)

    @property
    def current(self) -> Optional[str]:
        return self.history[-1] if self.history else None


def log_access_error(error: DocumentAccessError) -> None:
    """Default reporter: log the structured context."""
    logger.error("Access error: %s", error.context.to_dict())


# =============================================================================
# Payload Cleaning
# =============================================================================


def strip_undefined(data: Any) -> Any:
    """
    Return a copy of ``data`` without None values.

    Dict keys whose value is None are dropped; None items are removed from
    lists. The input is not modified.
    """
    if isinstance(data, Mapping):
        return {k: strip_undefined(v) for k, v in data.items() if v is not None}
    if isinstance(data, (list, tuple)):
        return [strip_undefined(v) for v in data if v is not None]
    return data


# =============================================================================
# Outcomes
# =============================================================================


@dataclass(frozen=True)
class MutationSuccess:
    """The write went through."""

    ref: Optional[DocumentRef]
    data: dict[str, Any]
    redirect_to: Optional[str] = None
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class MutationRejected:
    """Rejected client-side; no write was attempted."""

    errors: tuple[FieldError, ...]
    toast: Optional[Toast] = None
    reason: Optional[PortfolioError] = None
    ok: bool = field(default=False, init=False)


@dataclass(frozen=True)
class MutationFailed:
    """The store refused or failed the write."""

    error: Exception
    toast: Toast
    ok: bool = field(default=False, init=False)

    @property
    def is_access_error(self) -> bool:
        return isinstance(self.error, DocumentAccessError)


@dataclass(frozen=True)
class MutationCancelled:
    """The user declined a confirmation; nothing was written."""

    reason: str = "cancelled"
    ok: bool = field(default=False, init=False)


MutationResult = Union[MutationSuccess, MutationRejected, MutationFailed, MutationCancelled]


@dataclass(frozen=True)
class SuccessMessage:
    """What to show, and where to go, after a successful write."""

    title: str
    description: str
    redirect_to: Optional[Union[str, Callable[[Optional[DocumentRef]], str]]] = None

    def target(self, ref: Optional[DocumentRef]) -> Optional[str]:
        if callable(self.redirect_to):
            return self.redirect_to(ref)
        return self.redirect_to


# =============================================================================
# Pipeline
# =============================================================================


class MutationPipeline:
    """Runs writes with uniform notification and error reporting."""

    def __init__(
        self,
        store: DocumentStore,
        notifier: Notifier,
        navigator: Optional[Navigator] = None,
        report_access_error: AccessErrorReporter = log_access_error,
    ):
        self.store = store
        self.notifier = notifier
        self.navigator = navigator
        self.report_access_error = report_access_error

    def reject(
        self,
        errors: tuple[FieldError, ...],
        toast: Optional[Toast] = None,
        reason: Optional[PortfolioError] = None,
    ) -> MutationRejected:
        """Reject client-side with an optional toast (e.g. duplicate records)."""
        if toast:
            self.notifier.toast(toast)
        return MutationRejected(errors=errors, toast=toast, reason=reason)

    def run_write(
        self,
        operation: str,
        path: str,
        payload: Optional[dict[str, Any]],
        write: Callable[[], Optional[DocumentRef]],
        success: SuccessMessage,
        failure_title: str = "Save Failed",
    ) -> Union[MutationSuccess, MutationFailed]:
        """
        Execute one write and report its outcome.

        Args:
            operation: "create", "update" or "delete" (used in error context)
            path: Locator path the write targets
            payload: Data being written, recorded on access errors
            write: Performs the store call; may return the written ref
            success: Toast and redirect on success
            failure_title: Toast title on failure
        """
        try:
            ref = write()
        except PermissionDeniedError as e:
            access_error = DocumentAccessError(
                AccessErrorContext(path=path, operation=operation, attempted_data=payload),
                cause=e,
            )
            logger.warning("%s refused on %s: %s", operation, path, e)
            self.report_access_error(access_error)
            toast = Toast(
                failure_title,
                "You do not have permission to make this change.",
                ToastVariant.DESTRUCTIVE,
            )
            self.notifier.toast(toast)
            return MutationFailed(error=access_error, toast=toast)
        except DocumentNotFoundError as e:
            logger.warning("%s on missing document %s", operation, path)
            toast = Toast(failure_title, "This record no longer exists.", ToastVariant.DESTRUCTIVE)
            self.notifier.toast(toast)
            return MutationFailed(error=e, toast=toast)
        except LifecycleError as e:
            logger.info("%s refused on %s: %s", operation, path, e)
            toast = Toast(failure_title, str(e), ToastVariant.DESTRUCTIVE)
            self.notifier.toast(toast)
            return MutationFailed(error=e, toast=toast)
        except TransientStoreError as e:
            logger.warning("%s failed on %s: %s", operation, path, e)
            toast = Toast(failure_title, RETRY_SUGGESTION, ToastVariant.DESTRUCTIVE)
            self.notifier.toast(toast)
            return MutationFailed(error=e, toast=toast)
        except StoreError as e:
            logger.warning("%s failed on %s: %s", operation, path, e)
            toast = Toast(
                failure_title,
                str(e) or "An unexpected error occurred.",
                ToastVariant.DESTRUCTIVE,
            )
            self.notifier.toast(toast)
            return MutationFailed(error=e, toast=toast)

        self.notifier.toast(Toast(success.title, success.description))
        redirect_to = success.target(ref)
        if redirect_to and self.navigator is not None:
            self.navigator.navigate(redirect_to)
        return MutationSuccess(ref=ref, data=payload or {}, redirect_to=redirect_to)

    def prepare(
        self,
        schema: type[BaseModel],
        values: Mapping[str, Any],
        extra: Optional[Mapping[str, Any]] = None,
        submitted_only: bool = False,
    ) -> Union[dict[str, Any], MutationRejected]:
        """Validate, merge server-side fields and strip unset values."""
        result = validate(schema, values, submitted_only)
        if isinstance(result, Invalid):
            return MutationRejected(errors=result.errors)
        return strip_undefined({**result.value, **(extra or {})})

    def create(
        self,
        collection: CollectionRef,
        schema: type[BaseModel],
        values: Mapping[str, Any],
        success: SuccessMessage,
        extra: Optional[Mapping[str, Any]] = None,
        failure_title: str = "Save Failed",
    ) -> MutationResult:
        """Validate ``values`` and add them as a new document."""
        payload = self.prepare(schema, values, extra)
        if isinstance(payload, MutationRejected):
            return payload
        return self.run_write(
            "create",
            collection.path,
            payload,
            lambda: self.store.create(collection, payload),
            success,
            failure_title,
        )

    def update(
        self,
        ref: DocumentRef,
        schema: type[BaseModel],
        values: Mapping[str, Any],
        success: SuccessMessage,
        extra: Optional[Mapping[str, Any]] = None,
        failure_title: str = "Update Failed",
        precondition: Optional[Callable[[], None]] = None,
    ) -> MutationResult:
        """
        Validate ``values`` and merge them into an existing document.

        Only submitted fields are written; schema defaults never replace
        stored values. ``precondition`` runs just before the write and may
        raise to refuse it (e.g. the record was archived).
        """
        payload = self.prepare(schema, values, extra, submitted_only=True)
        if isinstance(payload, MutationRejected):
            return payload

        def write() -> DocumentRef:
            if precondition is not None:
                precondition()
            self.store.update(ref, payload)
            return ref

        return self.run_write("update", ref.path, payload, write, success, failure_title)
