"""
Inspections - Single-Let and HMO Property Inspections

Each inspection type has its own section catalogue and form schema. The
stored ``type`` field decides which schema validates later edits and
which sections the PDF export renders.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from pydantic import BaseModel

from core.lifecycle import INSPECTION_LIFECYCLE, ConfirmPrompt, InspectionStatus
from core.mutation import MutationRejected, MutationResult, SuccessMessage
from core.portfolio.base import OwnerScopedService
from core.portfolio.catalogues import InspectionType
from core.portfolio.schemas import HmoInspectionForm, SingleLetInspectionForm
from core.store.locator import (
    INSPECTIONS,
    CollectionRef,
    DocumentRef,
    Query,
    inspection_doc,
    inspections_collection,
    portfolio_group,
    property_doc,
)
from core.validation import FieldError

logger = logging.getLogger(__name__)

INSPECTIONS_URL = "/dashboard/inspections"

INSPECTION_SCHEMAS: dict[InspectionType, type[BaseModel]] = {
    InspectionType.SINGLE_LET: SingleLetInspectionForm,
    InspectionType.HMO: HmoInspectionForm,
}


def inspection_url(inspection_id: str, property_id: str) -> str:
    return f"{INSPECTIONS_URL}/{inspection_id}?propertyId={property_id}"


def parse_inspection_type(value: Any) -> Optional[InspectionType]:
    if isinstance(value, InspectionType):
        return value
    try:
        return InspectionType(value)
    except ValueError:
        return None


class InspectionService(OwnerScopedService):
    """Inspections stored under each property."""

    def collection(self, property_id: Optional[str]) -> CollectionRef:
        return inspections_collection(self.owner_id, self.require(property_id, "propertyId", INSPECTIONS_URL))

    def ref(self, property_id: Optional[str], inspection_id: Optional[str]) -> DocumentRef:
        return inspection_doc(
            self.owner_id,
            self.require(property_id, "propertyId", INSPECTIONS_URL),
            self.require(inspection_id, "inspectionId", INSPECTIONS_URL),
        )

    def live_query(self, property_id: Optional[str] = None) -> Query:
        """Inspections that are not Deleted, for one property or all of them."""
        if property_id is None:
            return self.live_status_query(
                portfolio_group(self.owner_id, INSPECTIONS), INSPECTION_LIFECYCLE, group=True
            )
        return self.live_status_query(self.collection(property_id), INSPECTION_LIFECYCLE)

    def deleted_query(self, property_id: Optional[str] = None) -> Query:
        if property_id is None:
            return self.archived_status_query(
                portfolio_group(self.owner_id, INSPECTIONS), INSPECTION_LIFECYCLE, group=True
            )
        return self.archived_status_query(self.collection(property_id), INSPECTION_LIFECYCLE)

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, property_id: Optional[str], inspection_id: Optional[str]) -> dict[str, Any]:
        return self.fetch_required(self.ref(property_id, inspection_id), "Inspection", INSPECTIONS_URL)

    def list_live(self, property_id: Optional[str] = None) -> list[dict[str, Any]]:
        return self.list_documents(self.live_query(property_id))

    def list_deleted(self, property_id: Optional[str] = None) -> list[dict[str, Any]]:
        return self.list_documents(self.deleted_query(property_id))

    def report_inputs(
        self, property_id: Optional[str], inspection_id: Optional[str]
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        """The inspection and its property, as needed by the PDF export."""
        inspection = self.get(property_id, inspection_id)
        prop = self.fetch_required(property_doc(self.owner_id, property_id), "Property", INSPECTIONS_URL)
        return inspection, prop

    # =========================================================================
    # Writes
    # =========================================================================

    def create(self, inspection_type: Any, values: Mapping[str, Any]) -> MutationResult:
        """
        Record a new inspection of the given type.

        HMO inspections are always saved as Completed.
        """
        kind = parse_inspection_type(inspection_type)
        if kind is None:
            return self.pipeline.reject((FieldError("type", "Please select an inspection type."),))

        extra: dict[str, Any] = {
            "ownerId": self.owner_id,
            "type": kind.value,
            "createdDate": datetime.now(timezone.utc).isoformat(),
        }
        if kind == InspectionType.HMO:
            extra["status"] = InspectionStatus.COMPLETED.value

        payload = self.pipeline.prepare(INSPECTION_SCHEMAS[kind], values, extra)
        if isinstance(payload, MutationRejected):
            return payload

        collection = self.collection(payload["propertyId"])
        title = "HMO Inspection Saved" if kind == InspectionType.HMO else "Inspection Saved"
        return self.pipeline.run_write(
            "create",
            collection.path,
            payload,
            lambda: self.store.create(collection, payload),
            SuccessMessage(title, "The inspection has been recorded.", INSPECTIONS_URL),
        )

    def update(
        self, property_id: Optional[str], inspection_id: Optional[str], values: Mapping[str, Any]
    ) -> MutationResult:
        """Save edits using the schema of the inspection's stored type."""
        ref = self.ref(property_id, inspection_id)
        existing = self.get(property_id, inspection_id)
        kind = parse_inspection_type(existing.get("type"))
        if kind is None:
            return self.pipeline.reject((FieldError("type", "This inspection has an unknown type."),))
        return self.pipeline.update(
            ref,
            INSPECTION_SCHEMAS[kind],
            {**values, "propertyId": property_id},
            SuccessMessage(
                "Inspection Updated",
                "Your changes have been saved successfully.",
                inspection_url(ref.id, property_id),
            ),
            precondition=lambda: self.lifecycle.require_live(ref, INSPECTION_LIFECYCLE),
        )

    def soft_delete(
        self, property_id: Optional[str], inspection_id: Optional[str], confirm: ConfirmPrompt
    ) -> MutationResult:
        """Mark an inspection Deleted; it drops out of every live listing."""
        return self.lifecycle.archive(
            self.ref(property_id, inspection_id), INSPECTION_LIFECYCLE, confirm, "The inspection", INSPECTIONS_URL
        )

    def restore(
        self,
        property_id: Optional[str],
        inspection_id: Optional[str],
        confirm: Optional[ConfirmPrompt] = None,
    ) -> MutationResult:
        ref = self.ref(property_id, inspection_id)
        return self.lifecycle.restore(
            ref, INSPECTION_LIFECYCLE, "The inspection", confirm, inspection_url(ref.id, property_id)
        )

    def delete_permanently(
        self, property_id: Optional[str], inspection_id: Optional[str], confirm: ConfirmPrompt
    ) -> MutationResult:
        return self.lifecycle.delete_permanently(
            self.ref(property_id, inspection_id), INSPECTION_LIFECYCLE, confirm, "The inspection", INSPECTIONS_URL
        )
