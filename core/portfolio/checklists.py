"""
Pre-Tenancy Checklists

Completeness is advisory. When a required item is unticked the owner is
asked to confirm before the checklist is saved; declining writes nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from core.lifecycle import ConfirmationKind, ConfirmationRequest, ConfirmPrompt
from core.mutation import (
    MutationCancelled,
    MutationRejected,
    MutationResult,
    SuccessMessage,
)
from core.portfolio.base import OwnerScopedService
from core.portfolio.catalogues import CHECKLIST_SECTIONS
from core.portfolio.schemas import ChecklistForm
from core.portfolio.tenants import tenant_url
from core.store.locator import (
    CollectionRef,
    DocumentRef,
    Filter,
    checklist_doc,
    checklists_collection,
    scoped_query,
)

CHECKLISTS_URL = "/dashboard/checklists"


@dataclass(frozen=True)
class MissingItem:
    """A required checklist item that has not been ticked."""

    section: str
    key: str
    label: str

    @property
    def path(self) -> str:
        return f"{self.section}.{self.key}"


def incomplete_required_items(values: Mapping[str, Any]) -> list[MissingItem]:
    """Every item in a required section that is not exactly True."""
    missing = []
    for section in CHECKLIST_SECTIONS:
        if not section.required:
            continue
        data = values.get(section.key) or {}
        for item in section.items:
            if data.get(item.key) is not True:
                missing.append(MissingItem(section.key, item.key, item.label))
    return missing


def save_incomplete_request(missing: list[MissingItem]) -> ConfirmationRequest:
    labels = ", ".join(item.label for item in missing)
    noun = "item is" if len(missing) == 1 else "items are"
    return ConfirmationRequest(
        ConfirmationKind.SAVE_INCOMPLETE,
        "Checklist incomplete",
        f"{len(missing)} required {noun} not ticked: {labels}. Save anyway?",
    )


def checklist_url(checklist_id: str, property_id: str, tenant_id: str) -> str:
    return f"{CHECKLISTS_URL}/{checklist_id}?propertyId={property_id}&tenantId={tenant_id}"


class ChecklistService(OwnerScopedService):
    """Checklists stored under a property, one per tenancy."""

    def collection(self, property_id: Optional[str]) -> CollectionRef:
        return checklists_collection(self.owner_id, self.require(property_id, "propertyId", CHECKLISTS_URL))

    def ref(self, property_id: Optional[str], checklist_id: Optional[str]) -> DocumentRef:
        return checklist_doc(
            self.owner_id,
            self.require(property_id, "propertyId", CHECKLISTS_URL),
            self.require(checklist_id, "checklistId", CHECKLISTS_URL),
        )

    def get(self, property_id: Optional[str], checklist_id: Optional[str]) -> dict[str, Any]:
        return self.fetch_required(self.ref(property_id, checklist_id), "Checklist", CHECKLISTS_URL)

    def list_for_property(self, property_id: Optional[str]) -> list[dict[str, Any]]:
        return self.list_documents(self.collection(property_id))

    def list_for_tenant(self, property_id: Optional[str], tenant_id: Optional[str]) -> list[dict[str, Any]]:
        tenant_id = self.require(tenant_id, "tenantId", CHECKLISTS_URL)
        return self.list_documents(
            scoped_query(self.collection(property_id), Filter("tenantId", "==", tenant_id))
        )

    def _confirmed(self, payload: Mapping[str, Any], confirm: ConfirmPrompt) -> bool:
        missing = incomplete_required_items(payload)
        return not missing or confirm(save_incomplete_request(missing))

    def create(self, values: Mapping[str, Any], confirm: ConfirmPrompt) -> MutationResult:
        """Save a new checklist, asking first if required items are unticked."""
        payload = self.pipeline.prepare(ChecklistForm, values, {"ownerId": self.owner_id})
        if isinstance(payload, MutationRejected):
            return payload
        if not self._confirmed(payload, confirm):
            return MutationCancelled("incomplete checklist not confirmed")

        collection = self.collection(payload["propertyId"])
        return self.pipeline.run_write(
            "create",
            collection.path,
            payload,
            lambda: self.store.create(collection, payload),
            SuccessMessage(
                "Checklist Saved",
                "The pre-tenancy checklist has been saved.",
                tenant_url(payload["tenantId"], payload["propertyId"]),
            ),
        )

    def update(
        self,
        property_id: Optional[str],
        checklist_id: Optional[str],
        values: Mapping[str, Any],
        confirm: ConfirmPrompt,
    ) -> MutationResult:
        ref = self.ref(property_id, checklist_id)
        payload = self.pipeline.prepare(ChecklistForm, {**values, "propertyId": property_id})
        if isinstance(payload, MutationRejected):
            return payload
        if not self._confirmed(payload, confirm):
            return MutationCancelled("incomplete checklist not confirmed")

        def write() -> DocumentRef:
            self.store.update(ref, payload)
            return ref

        return self.pipeline.run_write(
            "update",
            ref.path,
            payload,
            write,
            SuccessMessage(
                "Checklist Updated",
                "Your changes have been saved.",
                checklist_url(ref.id, property_id, payload["tenantId"]),
            ),
            failure_title="Update Failed",
        )
