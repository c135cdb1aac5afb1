"""
Compliance Documents and Reminders

Documents (certificates, agreements, invoices) are logged per property with
an issue and an expiry date. A document's status is derived from its expiry
date on every read and never stored.

Reminders combine documents that need attention with inspections still to
come, soonest first.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from core.dates import format_date, to_date
from core.lifecycle import PROPERTY_LIFECYCLE, InspectionStatus
from core.mutation import MutationRejected, MutationResult, MutationSuccess, SuccessMessage, Toast
from core.portfolio.base import OwnerScopedService
from core.portfolio.dashboard import upcoming_inspections
from core.portfolio.schemas import DocumentForm, DocumentType
from core.store.locator import (
    DOCUMENTS,
    INSPECTIONS,
    CollectionRef,
    DocumentRef,
    Query,
    document_doc,
    documents_collection,
    portfolio_group,
    properties_collection,
    scoped_query,
)

logger = logging.getLogger(__name__)

DOCUMENTS_URL = "/dashboard/documents"
INSPECTIONS_URL = "/dashboard/inspections"

EXPIRY_WARNING_DAYS = 90
GAS_SAFETY_MONTHS = 12
UNKNOWN_PROPERTY = "Unknown"


class DocumentStatus(Enum):
    VALID = "Valid"
    EXPIRING_SOON = "Expiring Soon"
    EXPIRED = "Expired"


def _as_date(value: Any) -> Optional[date]:
    parsed = to_date(value)
    return parsed.date() if parsed is not None else None


def document_status(expiry: Any, today: date) -> Optional[DocumentStatus]:
    """Expired before today, Expiring Soon within 90 days, otherwise Valid."""
    expires = _as_date(expiry)
    if expires is None:
        return None
    if expires < today:
        return DocumentStatus.EXPIRED
    if expires < today + timedelta(days=EXPIRY_WARNING_DAYS):
        return DocumentStatus.EXPIRING_SOON
    return DocumentStatus.VALID


def whole_months_between(start: date, end: date) -> int:
    months = (end.year - start.year) * 12 + end.month - start.month
    if end.day < start.day:
        months -= 1
    return months


def gas_safety_warning(values: Mapping[str, Any]) -> Optional[str]:
    """Advice shown, but not enforced, when a gas certificate runs past a year."""
    if values.get("documentType") != DocumentType.GAS_SAFETY.value:
        return None
    issued, expires = _as_date(values.get("issueDate")), _as_date(values.get("expiryDate"))
    if issued is None or expires is None:
        return None
    if whole_months_between(issued, expires) > GAS_SAFETY_MONTHS:
        return (
            "Gas Safety Certificates typically require annual renewal (12 months). "
            "Please verify the validity period."
        )
    return None


def with_status(documents: Iterable[Mapping[str, Any]], today: date) -> list[dict[str, Any]]:
    """Documents with their derived ``status`` added."""
    rows = []
    for document in documents:
        status = document_status(document.get("expiryDate"), today)
        rows.append({**document, "status": status.value if status else None})
    return rows


# =============================================================================
# Reminders
# =============================================================================


@dataclass(frozen=True)
class Reminder:
    """One row of the reminders list."""

    id: str
    type: str
    description: str
    category: str
    property: str
    due_date: date
    status: str
    href: str

    def to_dict(self) -> dict:
        row = asdict(self)
        row["due_date"] = format_date(self.due_date, "%d/%m/%Y")
        return row


def reminder_property_lookup(properties: Iterable[Mapping[str, Any]]) -> dict[str, str]:
    """Short labels (number, street, city) keyed by property id."""
    lookup = {}
    for prop in properties:
        address = prop.get("address") or {}
        parts = [address.get(key) for key in ("nameOrNumber", "street", "city")]
        lookup[prop.get("id")] = ", ".join(p for p in parts if p) or UNKNOWN_PROPERTY
    return lookup


def reminders(
    documents: Iterable[Mapping[str, Any]],
    inspections: Iterable[Mapping[str, Any]],
    properties: Iterable[Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> list[Reminder]:
    """
    Compliance and task reminders for active properties, earliest due first.

    Documents appear once they are expiring soon or expired; inspections
    appear while they are scheduled for a future date.
    """
    current = now or datetime.now(timezone.utc)
    today = current.date()
    labels = reminder_property_lookup(properties)
    items = []

    for document in documents:
        property_id = document.get("propertyId")
        if property_id not in labels:
            continue
        expires = _as_date(document.get("expiryDate"))
        status = document_status(expires, today)
        if status is None or status == DocumentStatus.VALID:
            continue
        items.append(Reminder(
            id=f"doc-{document.get('id')}",
            type="Compliance",
            description=document.get("title") or "",
            category=document.get("documentType") or "",
            property=labels[property_id],
            due_date=expires,
            status=status.value,
            href=f"{DOCUMENTS_URL}?propertyId={property_id}",
        ))

    for inspection in upcoming_inspections(inspections, current):
        property_id = inspection.get("propertyId")
        if property_id not in labels:
            continue
        items.append(Reminder(
            id=f"insp-{inspection.get('id')}",
            type="Task",
            description=inspection.get("type") or "Inspection",
            category="Routine Check",
            property=labels[property_id],
            due_date=to_date(inspection["scheduledDate"]).date(),
            status=InspectionStatus.SCHEDULED.value,
            href=f"{INSPECTIONS_URL}/{inspection.get('id')}?propertyId={property_id}",
        ))

    return sorted(items, key=lambda item: item.due_date)


# =============================================================================
# Service
# =============================================================================


class DocumentService(OwnerScopedService):
    """Compliance documents stored under each property."""

    def collection(self, property_id: Optional[str]) -> CollectionRef:
        return documents_collection(self.owner_id, self.require(property_id, "propertyId", DOCUMENTS_URL))

    def ref(self, property_id: Optional[str], document_id: Optional[str]) -> DocumentRef:
        return document_doc(
            self.owner_id,
            self.require(property_id, "propertyId", DOCUMENTS_URL),
            self.require(document_id, "documentId", DOCUMENTS_URL),
        )

    def portfolio_query(self) -> Query:
        return scoped_query(
            portfolio_group(self.owner_id, DOCUMENTS), order_by="expiryDate", group=True
        )

    def get(self, property_id: Optional[str], document_id: Optional[str]) -> dict[str, Any]:
        return self.fetch_required(self.ref(property_id, document_id), "Document", DOCUMENTS_URL)

    def list_with_status(
        self, property_id: Optional[str] = None, today: Optional[date] = None
    ) -> list[dict[str, Any]]:
        """Documents with their current status, soonest expiry first."""
        if property_id is None:
            documents = self.list_documents(self.portfolio_query())
        else:
            documents = self.list_documents(scoped_query(self.collection(property_id), order_by="expiryDate"))
        return with_status(documents, today or date.today())

    def reminders(self, now: Optional[datetime] = None) -> list[Reminder]:
        properties = self.list_documents(
            self.live_status_query(properties_collection(self.owner_id), PROPERTY_LIFECYCLE)
        )
        inspections = self.list_documents(
            scoped_query(portfolio_group(self.owner_id, INSPECTIONS), group=True)
        )
        return reminders(self.list_documents(self.portfolio_query()), inspections, properties, now)

    def create(self, values: Mapping[str, Any]) -> MutationResult:
        """Log a document. A gas certificate valid for over a year is saved with an advisory toast."""
        payload = self.pipeline.prepare(DocumentForm, values, {"ownerId": self.owner_id})
        if isinstance(payload, MutationRejected):
            return payload
        collection = self.collection(payload["propertyId"])
        result = self.pipeline.run_write(
            "create",
            collection.path,
            payload,
            lambda: self.store.create(collection, payload),
            SuccessMessage("Document Logged", "The record has been saved successfully.", DOCUMENTS_URL),
        )

        warning = gas_safety_warning(payload)
        if warning and isinstance(result, MutationSuccess):
            logger.info("Gas safety certificate over %d months on %s", GAS_SAFETY_MONTHS, result.ref.path)
            self.pipeline.notifier.toast(Toast("Check Validity Period", warning))
        return result
