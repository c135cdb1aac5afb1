"""
Portfolio feature services.

Each service is bound to one owner and reads and writes that owner's
records through the shared mutation pipeline.

Usage:
    from core.portfolio import PortfolioServices

    services = PortfolioServices.build(store, pipeline, owner_id)
    result = services.contractors.create({"name": "Ann", ...})
"""

from dataclasses import dataclass
from typing import Optional

from core.mutation import MutationPipeline
from core.store.backend import DocumentStore
from core.store.objects import MAX_IMAGE_BYTES, ObjectStore

from .checklists import ChecklistService, incomplete_required_items
from .contractors import ContractorService
from .dashboard import PortfolioSummary, portfolio_summary, recent_activity, upcoming_inspections
from .documents import DocumentService, Reminder, reminders
from .finances import FinanceService, FinancialSummary, annual_summary, tax_categories
from .inspections import InspectionService
from .maintenance import MaintenanceService
from .properties import PropertyService
from .screenings import ScreeningService
from .tenants import TenantService


@dataclass(frozen=True)
class PortfolioServices:
    """Every feature service for one owner."""

    properties: PropertyService
    tenants: TenantService
    contractors: ContractorService
    checklists: ChecklistService
    inspections: InspectionService
    maintenance: MaintenanceService
    finances: FinanceService
    documents: DocumentService
    screenings: ScreeningService

    @classmethod
    def build(
        cls,
        store: DocumentStore,
        pipeline: MutationPipeline,
        owner_id: Optional[str],
        objects: Optional[ObjectStore] = None,
        max_image_bytes: int = MAX_IMAGE_BYTES,
    ) -> "PortfolioServices":
        return cls(
            properties=PropertyService(store, pipeline, owner_id, objects, max_image_bytes),
            tenants=TenantService(store, pipeline, owner_id),
            contractors=ContractorService(store, pipeline, owner_id),
            checklists=ChecklistService(store, pipeline, owner_id),
            inspections=InspectionService(store, pipeline, owner_id),
            maintenance=MaintenanceService(store, pipeline, owner_id),
            finances=FinanceService(store, pipeline, owner_id),
            documents=DocumentService(store, pipeline, owner_id),
            screenings=ScreeningService(store, pipeline, owner_id),
        )


__all__ = [
    "PortfolioServices",
    "PropertyService",
    "TenantService",
    "ContractorService",
    "ChecklistService",
    "InspectionService",
    "MaintenanceService",
    "FinanceService",
    "DocumentService",
    "ScreeningService",
    "FinancialSummary",
    "Reminder",
    "annual_summary",
    "reminders",
    "tax_categories",
    "PortfolioSummary",
    "incomplete_required_items",
    "portfolio_summary",
    "recent_activity",
    "upcoming_inspections",
]
