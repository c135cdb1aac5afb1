"""
Maintenance Logs - Reported Issues per Property
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from core.lifecycle import MaintenanceStatus
from core.mutation import MutationRejected, MutationResult, SuccessMessage
from core.portfolio.base import OwnerScopedService
from core.portfolio.schemas import MaintenanceForm, MaintenanceUpdateForm
from core.store.locator import (
    MAINTENANCE_LOGS,
    CollectionRef,
    DocumentRef,
    Filter,
    Query,
    contractor_doc,
    maintenance_collection,
    maintenance_doc,
    portfolio_group,
    scoped_query,
)
from core.validation import FieldError

logger = logging.getLogger(__name__)

MAINTENANCE_URL = "/dashboard/maintenance"

OPEN_STATUSES: tuple[str, ...] = (MaintenanceStatus.OPEN.value, MaintenanceStatus.IN_PROGRESS.value)


def maintenance_url(log_id: str, property_id: str) -> str:
    return f"{MAINTENANCE_URL}/{log_id}?propertyId={property_id}"


class MaintenanceService(OwnerScopedService):
    """Maintenance logs stored under each property."""

    def collection(self, property_id: Optional[str]) -> CollectionRef:
        return maintenance_collection(self.owner_id, self.require(property_id, "propertyId", MAINTENANCE_URL))

    def ref(self, property_id: Optional[str], log_id: Optional[str]) -> DocumentRef:
        return maintenance_doc(
            self.owner_id,
            self.require(property_id, "propertyId", MAINTENANCE_URL),
            self.require(log_id, "logId", MAINTENANCE_URL),
        )

    def portfolio_query(self) -> Query:
        """Every log across the portfolio, newest report first."""
        return scoped_query(
            portfolio_group(self.owner_id, MAINTENANCE_LOGS),
            order_by="reportedDate",
            descending=True,
            group=True,
        )

    def open_query(self, property_id: Optional[str] = None) -> Query:
        collection = (
            portfolio_group(self.owner_id, MAINTENANCE_LOGS)
            if property_id is None
            else self.collection(property_id)
        )
        return scoped_query(collection, Filter("status", "in", OPEN_STATUSES), group=property_id is None)

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, property_id: Optional[str], log_id: Optional[str]) -> dict[str, Any]:
        return self.fetch_required(self.ref(property_id, log_id), "Maintenance log", MAINTENANCE_URL)

    def list_for_property(self, property_id: Optional[str]) -> list[dict[str, Any]]:
        return self.list_documents(
            scoped_query(self.collection(property_id), order_by="reportedDate", descending=True)
        )

    def list_all(self) -> list[dict[str, Any]]:
        return self.list_documents(self.portfolio_query())

    def list_open(self, property_id: Optional[str] = None) -> list[dict[str, Any]]:
        return self.list_documents(self.open_query(property_id))

    # =========================================================================
    # Writes
    # =========================================================================

    def _with_contractor(self, payload: dict[str, Any]) -> Optional[MutationRejected]:
        """Copy name and phone from a linked contractor when not given."""
        contractor_id = payload.get("contractorId")
        if not contractor_id:
            return None
        contractor = self.fetch(contractor_doc(self.owner_id, contractor_id))
        if contractor is None:
            return self.pipeline.reject((FieldError("contractorId", "Contractor not found."),))
        payload.setdefault("contractorName", contractor.get("name"))
        if contractor.get("phone"):
            payload.setdefault("contractorPhone", contractor["phone"])
        return None

    def create(self, values: Mapping[str, Any]) -> MutationResult:
        """Log a new issue as Open."""
        payload = self.pipeline.prepare(
            MaintenanceForm,
            values,
            {
                "ownerId": self.owner_id,
                "status": MaintenanceStatus.OPEN.value,
                "createdDate": datetime.now(timezone.utc).isoformat(),
            },
        )
        if isinstance(payload, MutationRejected):
            return payload
        rejected = self._with_contractor(payload)
        if rejected:
            return rejected

        property_id = payload["propertyId"]
        collection = self.collection(property_id)
        return self.pipeline.run_write(
            "create",
            collection.path,
            payload,
            lambda: self.store.create(collection, payload),
            SuccessMessage(
                "Issue Logged",
                "Maintenance request successfully recorded.",
                lambda ref: maintenance_url(ref.id, property_id),
            ),
        )

    def update(
        self, property_id: Optional[str], log_id: Optional[str], values: Mapping[str, Any]
    ) -> MutationResult:
        ref = self.ref(property_id, log_id)
        payload = self.pipeline.prepare(MaintenanceUpdateForm, {**values, "propertyId": property_id})
        if isinstance(payload, MutationRejected):
            return payload
        rejected = self._with_contractor(payload)
        if rejected:
            return rejected

        def write() -> DocumentRef:
            self.store.update(ref, payload)
            return ref

        return self.pipeline.run_write(
            "update",
            ref.path,
            payload,
            write,
            SuccessMessage(
                "Maintenance Log Updated",
                "The changes have been saved.",
                maintenance_url(ref.id, property_id),
            ),
            failure_title="Update Failed",
        )

    def set_status(
        self, property_id: Optional[str], log_id: Optional[str], status: MaintenanceStatus
    ) -> MutationResult:
        ref = self.ref(property_id, log_id)
        payload = {"status": status.value}

        def write() -> DocumentRef:
            self.store.update(ref, payload)
            return ref

        return self.pipeline.run_write(
            "update",
            ref.path,
            payload,
            write,
            SuccessMessage("Status Updated", f"The issue is now {status.value}.", maintenance_url(ref.id, property_id)),
            failure_title="Update Failed",
        )
