"""
Soft Lifecycle - Status-Based Archive, Restore and Permanent Delete

Records are not removed when a user clicks "delete". The status flips to
the entity's archived state and the record moves to an archive listing.
From there it can be restored, or removed for good behind a second,
separate confirmation.

    live --archive--> archived --restore--> live
                         |
                         +--delete permanently--> (gone)

Each entity has its own closed status enum; they are deliberately not a
shared string type.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Final, Optional

from core.errors import DocumentNotFoundError, LifecycleError
from core.mutation import (
    MutationCancelled,
    MutationPipeline,
    MutationResult,
    SuccessMessage,
)
from core.store.backend import DELETE_FIELD
from core.store.locator import DocumentRef

PREVIOUS_STATUS_FIELD: Final[str] = "previousStatus"


# =============================================================================
# Status Enums
# =============================================================================


class PropertyStatus(Enum):
    VACANT = "Vacant"
    OCCUPIED = "Occupied"
    UNDER_MAINTENANCE = "Under Maintenance"
    DELETED = "Deleted"


class TenantStatus(Enum):
    ACTIVE = "Active"
    ARCHIVED = "Archived"


class ContractorStatus(Enum):
    ACTIVE = "Active"
    ARCHIVED = "Archived"


class InspectionStatus(Enum):
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    DELETED = "Deleted"


class MaintenanceStatus(Enum):
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


# =============================================================================
# Policies
# =============================================================================


@dataclass(frozen=True)
class LifecyclePolicy:
    """How one entity moves between live and archived states."""

    entity: str  # human label, e.g. "Property"
    status_type: type[Enum]
    archived: Enum
    restore_default: Enum

    @property
    def live_states(self) -> tuple[Enum, ...]:
        return tuple(s for s in self.status_type if s != self.archived)

    @property
    def live_values(self) -> tuple[str, ...]:
        return tuple(s.value for s in self.live_states)

    def parse(self, value: Optional[str]) -> Optional[Enum]:
        try:
            return self.status_type(value)
        except ValueError:
            return None


PROPERTY_LIFECYCLE: Final = LifecyclePolicy(
    "Property", PropertyStatus, PropertyStatus.DELETED, PropertyStatus.VACANT
)
TENANT_LIFECYCLE: Final = LifecyclePolicy(
    "Tenant", TenantStatus, TenantStatus.ARCHIVED, TenantStatus.ACTIVE
)
CONTRACTOR_LIFECYCLE: Final = LifecyclePolicy(
    "Contractor", ContractorStatus, ContractorStatus.ARCHIVED, ContractorStatus.ACTIVE
)
INSPECTION_LIFECYCLE: Final = LifecyclePolicy(
    "Inspection", InspectionStatus, InspectionStatus.DELETED, InspectionStatus.SCHEDULED
)


# =============================================================================
# Confirmations
# =============================================================================


class ConfirmationKind(Enum):
    ARCHIVE = "archive"
    RESTORE = "restore"
    PERMANENT_DELETE = "permanent-delete"
    SAVE_INCOMPLETE = "save-incomplete"


@dataclass(frozen=True)
class ConfirmationRequest:
    """The dialog shown before an explicit user action goes ahead."""

    kind: ConfirmationKind
    title: str
    description: str


ConfirmPrompt = Callable[[ConfirmationRequest], bool]


def confirmed_for(*kinds: ConfirmationKind) -> ConfirmPrompt:
    """A prompt that accepts only the given kinds of confirmation."""
    allowed = frozenset(kinds)
    return lambda request: request.kind in allowed


def never_confirm(request: ConfirmationRequest) -> bool:
    return False


# =============================================================================
# Transitions
# =============================================================================


class SoftLifecycle:
    """Archive / restore / permanent delete through the mutation pipeline."""

    def __init__(self, pipeline: MutationPipeline):
        self.pipeline = pipeline
        self.store = pipeline.store

    def _load_status(self, ref: DocumentRef, policy: LifecyclePolicy):
        snapshot = self.store.get(ref)
        if snapshot is None:
            raise DocumentNotFoundError(f"{policy.entity} not found: {ref.path}")
        return policy.parse(snapshot.get("status")), snapshot

    def require_live(self, ref: DocumentRef, policy: LifecyclePolicy) -> None:
        """
        Refuse edits to an archived record; it has to be restored first.

        Raises:
            DocumentNotFoundError: If the record is gone
            LifecycleError: If the record is archived
        """
        current, _ = self._load_status(ref, policy)
        if current == policy.archived:
            raise LifecycleError(
                f"This {policy.entity.lower()} is in the archive. Restore it before making changes."
            )

    def archive(
        self,
        ref: DocumentRef,
        policy: LifecyclePolicy,
        confirm: ConfirmPrompt,
        label: str,
        redirect_to: Optional[str] = None,
    ) -> MutationResult:
        """
        Move a live record to the archive, remembering its status.

        Archiving a record that is already archived fails with a
        LifecycleError on the returned MutationFailed.
        """
        request = ConfirmationRequest(
            ConfirmationKind.ARCHIVE,
            f"Archive {policy.entity.lower()}?",
            f"{label} will be moved to the archive. You can restore it later.",
        )
        if not confirm(request):
            return MutationCancelled()

        payload = {"status": policy.archived.value}

        def write() -> DocumentRef:
            current, _ = self._load_status(ref, policy)
            if current == policy.archived:
                raise LifecycleError(f"{policy.entity} is already archived")
            if current is not None:
                payload[PREVIOUS_STATUS_FIELD] = current.value
            self.store.update(ref, payload)
            return ref

        return self.pipeline.run_write(
            "update",
            ref.path,
            payload,
            write,
            SuccessMessage(
                f"{policy.entity} Archived",
                f"{label} has been moved to the archive.",
                redirect_to,
            ),
            failure_title="Error",
        )

    def restore(
        self,
        ref: DocumentRef,
        policy: LifecyclePolicy,
        label: str,
        confirm: Optional[ConfirmPrompt] = None,
        redirect_to: Optional[str] = None,
    ) -> MutationResult:
        """
        Return an archived record to the status it had before archiving.

        Falls back to the policy's default when no prior status was kept.
        Fails with a LifecycleError if the record is not archived.
        """
        if confirm is not None:
            request = ConfirmationRequest(
                ConfirmationKind.RESTORE,
                f"Restore {policy.entity.lower()}?",
                f"{label} will return to your active records.",
            )
            if not confirm(request):
                return MutationCancelled()

        payload: dict = {}

        def write() -> DocumentRef:
            current, snapshot = self._load_status(ref, policy)
            if current != policy.archived:
                raise LifecycleError(f"Only archived records can be restored ({policy.entity})")
            previous = policy.parse(snapshot.get(PREVIOUS_STATUS_FIELD))
            if previous is None or previous == policy.archived:
                previous = policy.restore_default
            payload["status"] = previous.value
            self.store.update(ref, {"status": previous.value, PREVIOUS_STATUS_FIELD: DELETE_FIELD})
            return ref

        return self.pipeline.run_write(
            "update",
            ref.path,
            payload,
            write,
            SuccessMessage(
                f"{policy.entity} Restored",
                f"{label} has been restored to your active records.",
                redirect_to,
            ),
            failure_title="Error",
        )

    def delete_permanently(
        self,
        ref: DocumentRef,
        policy: LifecyclePolicy,
        confirm: ConfirmPrompt,
        label: str,
        redirect_to: Optional[str] = None,
    ) -> MutationResult:
        """
        Remove an archived record for good.

        Requires its own PERMANENT_DELETE confirmation; an archive
        confirmation does not count. Fails with a LifecycleError if the
        record has not been archived first.
        """
        request = ConfirmationRequest(
            ConfirmationKind.PERMANENT_DELETE,
            "Are you absolutely sure?",
            f"This action cannot be undone. {label} will be permanently deleted.",
        )
        if not confirm(request):
            return MutationCancelled()

        def write() -> DocumentRef:
            current, _ = self._load_status(ref, policy)
            if current != policy.archived:
                raise LifecycleError(
                    f"{policy.entity} must be archived before it can be permanently deleted"
                )
            self.store.delete(ref)
            return ref

        return self.pipeline.run_write(
            "delete",
            ref.path,
            None,
            write,
            SuccessMessage(
                f"{policy.entity} Deleted Permanently",
                f"{label} has been removed from your records.",
                redirect_to,
            ),
            failure_title="Error",
        )
