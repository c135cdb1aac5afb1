"""
Contractors - Directory of Trades with Phone Uniqueness

Before a contractor is added, the owner's Active contractors are searched
for the same phone number. The check and the insert are separate calls, so
two simultaneous adds with one number can both succeed; there is no
transaction to close that window.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from core.errors import DuplicateContractorError
from core.lifecycle import CONTRACTOR_LIFECYCLE, ConfirmPrompt, ContractorStatus
from core.mutation import MutationRejected, MutationResult, SuccessMessage, Toast, ToastVariant
from core.portfolio.base import OwnerScopedService
from core.portfolio.schemas import ContractorForm
from core.store.locator import (
    CollectionRef,
    DocumentRef,
    Filter,
    Query,
    contractor_doc,
    contractors_collection,
    scoped_query,
)
from core.validation import FieldError

logger = logging.getLogger(__name__)

CONTRACTORS_URL = "/dashboard/contractors"
ARCHIVED_CONTRACTORS_URL = "/dashboard/contractors/archived"


class ContractorService(OwnerScopedService):
    """Contractors held directly under the owner."""

    @property
    def collection(self) -> CollectionRef:
        return contractors_collection(self.owner_id)

    def ref(self, contractor_id: Optional[str]) -> DocumentRef:
        return contractor_doc(self.owner_id, self.require(contractor_id, "contractorId", CONTRACTORS_URL))

    def active_query(self) -> Query:
        return self.live_status_query(self.collection, CONTRACTOR_LIFECYCLE)

    def archived_query(self) -> Query:
        return self.archived_status_query(self.collection, CONTRACTOR_LIFECYCLE)

    def duplicate_query(self, phone: str) -> Query:
        return scoped_query(
            self.collection,
            Filter("ownerId", "==", self.owner_id),
            Filter("phone", "==", phone),
            Filter("status", "==", ContractorStatus.ACTIVE.value),
            limit=1,
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, contractor_id: Optional[str]) -> dict[str, Any]:
        return self.fetch_required(self.ref(contractor_id), "Contractor", CONTRACTORS_URL)

    def list_active(self) -> list[dict[str, Any]]:
        return self.list_documents(self.active_query())

    def list_archived(self) -> list[dict[str, Any]]:
        return self.list_documents(self.archived_query())

    # =========================================================================
    # Writes
    # =========================================================================

    def create(self, values: Mapping[str, Any]) -> MutationResult:
        """
        Add a contractor unless an Active one already has this phone number.

        Returns:
            MutationRejected with a DuplicateContractorError reason when the
            phone number is taken; no write is attempted in that case.
        """
        payload = self.pipeline.prepare(
            ContractorForm,
            values,
            {"ownerId": self.owner_id, "status": ContractorStatus.ACTIVE.value},
        )
        if isinstance(payload, MutationRejected):
            return payload

        phone = payload["phone"]
        if self.list_documents(self.duplicate_query(phone)):
            duplicate = DuplicateContractorError(phone)
            logger.info("Duplicate contractor phone rejected for owner %s", self.owner_id)
            return self.pipeline.reject(
                (FieldError("phone", str(duplicate)),),
                Toast("Duplicate Contractor", str(duplicate), ToastVariant.DESTRUCTIVE),
                reason=duplicate,
            )

        return self.pipeline.run_write(
            "create",
            self.collection.path,
            payload,
            lambda: self.store.create(self.collection, payload),
            SuccessMessage(
                "Contractor Added",
                f"{payload['name']} has been added to your directory.",
                CONTRACTORS_URL,
            ),
        )

    def update(self, contractor_id: Optional[str], values: Mapping[str, Any]) -> MutationResult:
        ref = self.ref(contractor_id)
        return self.pipeline.update(
            ref,
            ContractorForm,
            values,
            SuccessMessage(
                "Contractor Updated",
                f"{values.get('name') or 'The contractor'} has been updated.",
                f"{CONTRACTORS_URL}/{ref.id}",
            ),
            precondition=lambda: self.lifecycle.require_live(ref, CONTRACTOR_LIFECYCLE),
        )

    def archive(self, contractor_id: Optional[str], confirm: ConfirmPrompt) -> MutationResult:
        return self.lifecycle.archive(
            self.ref(contractor_id), CONTRACTOR_LIFECYCLE, confirm, "The contractor", CONTRACTORS_URL
        )

    def restore(self, contractor_id: Optional[str], confirm: Optional[ConfirmPrompt] = None) -> MutationResult:
        return self.lifecycle.restore(
            self.ref(contractor_id), CONTRACTOR_LIFECYCLE, "The contractor", confirm, ARCHIVED_CONTRACTORS_URL
        )

    def delete_permanently(self, contractor_id: Optional[str], confirm: ConfirmPrompt) -> MutationResult:
        return self.lifecycle.delete_permanently(
            self.ref(contractor_id), CONTRACTOR_LIFECYCLE, confirm, "The contractor", ARCHIVED_CONTRACTORS_URL
        )
