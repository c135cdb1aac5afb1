"""
Tenant Screening - Pre-Tenancy Checks per Tenant

A screening record holds the right-to-rent, identity, credit, income,
reference and guarantor checks made for one tenant. Records are stored
beneath the tenant and can be edited after saving.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from core.mutation import MutationRejected, MutationResult, SuccessMessage
from core.portfolio.base import OwnerScopedService
from core.portfolio.schemas import ScreeningForm
from core.portfolio.tenants import TENANTS_URL, tenant_url
from core.store.locator import (
    CollectionRef,
    DocumentRef,
    screening_doc,
    screenings_collection,
    scoped_query,
    tenant_doc,
)
from core.validation import FieldError

logger = logging.getLogger(__name__)

# Rent above this share of monthly income is flagged
AFFORDABILITY_THRESHOLD = 40.0


@dataclass(frozen=True)
class Affordability:
    """Rent as a percentage of the applicant's monthly income."""

    ratio: float
    risky: bool

    def to_dict(self) -> dict:
        return {"ratio": f"{self.ratio:.1f}", "risky": self.risky}


def affordability(monthly_rent: Optional[float], monthly_income: Optional[float]) -> Optional[Affordability]:
    """None until both rent and income are known and non-zero."""
    if not monthly_rent or not monthly_income:
        return None
    ratio = monthly_rent / monthly_income * 100
    return Affordability(ratio=ratio, risky=ratio > AFFORDABILITY_THRESHOLD)


class ScreeningService(OwnerScopedService):
    """Screening records nested under each tenant."""

    def collection(self, property_id: Optional[str], tenant_id: Optional[str]) -> CollectionRef:
        return screenings_collection(
            self.owner_id,
            self.require(property_id, "propertyId", TENANTS_URL),
            self.require(tenant_id, "tenantId", TENANTS_URL),
        )

    def ref(
        self, property_id: Optional[str], tenant_id: Optional[str], screening_id: Optional[str]
    ) -> DocumentRef:
        return screening_doc(
            self.owner_id,
            self.require(property_id, "propertyId", TENANTS_URL),
            self.require(tenant_id, "tenantId", TENANTS_URL),
            self.require(screening_id, "screeningId", TENANTS_URL),
        )

    def get(
        self, property_id: Optional[str], tenant_id: Optional[str], screening_id: Optional[str]
    ) -> dict[str, Any]:
        return self.fetch_required(self.ref(property_id, tenant_id, screening_id), "Screening record", TENANTS_URL)

    def list_for_tenant(self, property_id: Optional[str], tenant_id: Optional[str]) -> list[dict[str, Any]]:
        return self.list_documents(
            scoped_query(self.collection(property_id, tenant_id), order_by="screeningDate", descending=True)
        )

    def affordability_for(
        self, property_id: Optional[str], tenant_id: Optional[str], screening_id: Optional[str]
    ) -> Optional[Affordability]:
        """The tenant's rent against the income recorded on one screening."""
        screening = self.get(property_id, tenant_id, screening_id)
        tenant = self.fetch(tenant_doc(self.owner_id, property_id, tenant_id)) or {}
        return affordability(tenant.get("monthlyRent"), screening.get("monthlyIncome"))

    # =========================================================================
    # Writes
    # =========================================================================

    def create(self, values: Mapping[str, Any]) -> MutationResult:
        payload = self.pipeline.prepare(ScreeningForm, values, {"ownerId": self.owner_id})
        if isinstance(payload, MutationRejected):
            return payload

        property_id, tenant_id = payload["propertyId"], payload["tenantId"]
        if self.fetch(tenant_doc(self.owner_id, property_id, tenant_id)) is None:
            return self.pipeline.reject((FieldError("tenantId", "Tenant not found for this property."),))

        collection = self.collection(property_id, tenant_id)
        return self.pipeline.run_write(
            "create",
            collection.path,
            payload,
            lambda: self.store.create(collection, payload),
            SuccessMessage(
                "Screening Record Saved",
                "The tenant screening checklist has been successfully saved.",
                tenant_url(tenant_id, property_id),
            ),
        )

    def update(
        self,
        property_id: Optional[str],
        tenant_id: Optional[str],
        screening_id: Optional[str],
        values: Mapping[str, Any],
    ) -> MutationResult:
        """Merge edited checks; sections that were not sent keep their stored answers."""
        return self.pipeline.update(
            self.ref(property_id, tenant_id, screening_id),
            ScreeningForm,
            {**values, "propertyId": property_id, "tenantId": tenant_id},
            SuccessMessage(
                "Screening Record Updated",
                "The screening checklist has been successfully updated.",
                tenant_url(tenant_id, property_id),
            ),
        )
