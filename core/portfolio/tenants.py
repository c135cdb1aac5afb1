"""
Tenants - Assignment, Editing and the Archive

Assigning an Active tenant marks the parent property Occupied. Nothing
moves the property back to Vacant when a tenant is archived or deleted.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from core.lifecycle import (
    PROPERTY_LIFECYCLE,
    TENANT_LIFECYCLE,
    ConfirmPrompt,
    PropertyStatus,
    TenantStatus,
)
from core.mutation import MutationRejected, MutationResult, SuccessMessage
from core.portfolio.base import OwnerScopedService
from core.portfolio.properties import property_url
from core.portfolio.schemas import TenantForm
from core.store.locator import (
    TENANTS,
    CollectionRef,
    DocumentRef,
    Query,
    portfolio_group,
    property_doc,
    tenant_doc,
    tenants_collection,
)
from core.validation import FieldError

logger = logging.getLogger(__name__)

TENANTS_URL = "/dashboard/tenants"
ARCHIVED_TENANTS_URL = "/dashboard/tenants/archived"


def tenant_url(tenant_id: str, property_id: str) -> str:
    return f"{TENANTS_URL}/{tenant_id}?propertyId={property_id}"


class TenantService(OwnerScopedService):
    """Tenants nested under an owner's properties."""

    # =========================================================================
    # Locators
    # =========================================================================

    def collection(self, property_id: Optional[str]) -> CollectionRef:
        return tenants_collection(self.owner_id, self.require(property_id, "propertyId", TENANTS_URL))

    def ref(self, property_id: Optional[str], tenant_id: Optional[str]) -> DocumentRef:
        return tenant_doc(
            self.owner_id,
            self.require(property_id, "propertyId", TENANTS_URL),
            self.require(tenant_id, "tenantId", TENANTS_URL),
        )

    def active_query(self, property_id: Optional[str] = None) -> Query:
        """Active tenants of one property, or across the portfolio."""
        if property_id is None:
            return self.live_status_query(portfolio_group(self.owner_id, TENANTS), TENANT_LIFECYCLE, group=True)
        return self.live_status_query(self.collection(property_id), TENANT_LIFECYCLE)

    def archived_query(self, property_id: Optional[str] = None) -> Query:
        if property_id is None:
            return self.archived_status_query(
                portfolio_group(self.owner_id, TENANTS), TENANT_LIFECYCLE, group=True
            )
        return self.archived_status_query(self.collection(property_id), TENANT_LIFECYCLE)

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, property_id: Optional[str], tenant_id: Optional[str]) -> dict[str, Any]:
        return self.fetch_required(self.ref(property_id, tenant_id), "Tenant", TENANTS_URL)

    def list_active(self, property_id: Optional[str] = None) -> list[dict[str, Any]]:
        return self.list_documents(self.active_query(property_id))

    def list_archived(self, property_id: Optional[str] = None) -> list[dict[str, Any]]:
        return self.list_documents(self.archived_query(property_id))

    # =========================================================================
    # Writes
    # =========================================================================

    def assign(self, values: Mapping[str, Any]) -> MutationResult:
        """
        Create an Active tenant and mark the property Occupied.

        The two writes are not atomic: if the property update fails the
        tenant record still exists.
        """
        payload = self.pipeline.prepare(
            TenantForm,
            values,
            {
                "ownerId": self.owner_id,
                "status": TenantStatus.ACTIVE.value,
                "createdDate": datetime.now(timezone.utc).isoformat(),
            },
        )
        if isinstance(payload, MutationRejected):
            return payload

        property_id = payload["propertyId"]
        prop_ref = property_doc(self.owner_id, property_id)
        prop = self.fetch(prop_ref)
        if prop is None or prop.get("status") not in PROPERTY_LIFECYCLE.live_values:
            return self.pipeline.reject((FieldError("propertyId", "Please select an active property."),))

        collection = self.collection(property_id)

        def write() -> DocumentRef:
            ref = self.store.create(collection, payload)
            self.store.update(prop_ref, {"status": PropertyStatus.OCCUPIED.value})
            return ref

        return self.pipeline.run_write(
            "create",
            collection.path,
            payload,
            write,
            SuccessMessage(
                "Tenant Assigned",
                f"{payload['name']} has been assigned successfully.",
                property_url(property_id),
            ),
        )

    def update(
        self, property_id: Optional[str], tenant_id: Optional[str], values: Mapping[str, Any]
    ) -> MutationResult:
        """Save tenant edits; the tenant stays under its current property."""
        ref = self.ref(property_id, tenant_id)
        return self.pipeline.update(
            ref,
            TenantForm,
            {**values, "propertyId": property_id},
            SuccessMessage(
                "Tenant Updated",
                f"{values.get('name') or 'The tenant'}'s details have been successfully updated.",
                tenant_url(ref.id, property_id),
            ),
            precondition=lambda: self.lifecycle.require_live(ref, TENANT_LIFECYCLE),
        )

    def archive(
        self, property_id: Optional[str], tenant_id: Optional[str], confirm: ConfirmPrompt
    ) -> MutationResult:
        return self.lifecycle.archive(
            self.ref(property_id, tenant_id), TENANT_LIFECYCLE, confirm, "The tenant", TENANTS_URL
        )

    def restore(
        self,
        property_id: Optional[str],
        tenant_id: Optional[str],
        confirm: Optional[ConfirmPrompt] = None,
    ) -> MutationResult:
        """Return an archived tenant to the active list; the property is not touched."""
        return self.lifecycle.restore(
            self.ref(property_id, tenant_id), TENANT_LIFECYCLE, "The tenant", confirm, ARCHIVED_TENANTS_URL
        )

    def delete_permanently(
        self, property_id: Optional[str], tenant_id: Optional[str], confirm: ConfirmPrompt
    ) -> MutationResult:
        return self.lifecycle.delete_permanently(
            self.ref(property_id, tenant_id), TENANT_LIFECYCLE, confirm, "The tenant", ARCHIVED_TENANTS_URL
        )
