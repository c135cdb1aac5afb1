"""
Locators - Owner-Scoped Document and Collection References

Every document lives under the owner's namespace:

    owners/{owner_id}/properties/{property_id}
    owners/{owner_id}/properties/{property_id}/tenants/{tenant_id}
    owners/{owner_id}/properties/{property_id}/checklists/{checklist_id}
    owners/{owner_id}/properties/{property_id}/inspections/{inspection_id}
    owners/{owner_id}/properties/{property_id}/maintenanceLogs/{log_id}
    owners/{owner_id}/properties/{property_id}/expenses/{expense_id}
    owners/{owner_id}/properties/{property_id}/rentPayments/{year}-{month}
    owners/{owner_id}/properties/{property_id}/documents/{document_id}
    owners/{owner_id}/properties/{property_id}/tenants/{tenant_id}/screenings/{screening_id}
    owners/{owner_id}/contractors/{contractor_id}

Builders return None (never raise) while the owner id or any path segment is
still unknown, so a read binding can tell "not ready" apart from "ready but
empty". Builders are memoised: the same inputs give back the same object.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any, Final, Iterable, Optional, Union

OWNERS_ROOT: Final[str] = "owners"

PROPERTIES: Final[str] = "properties"
TENANTS: Final[str] = "tenants"
CHECKLISTS: Final[str] = "checklists"
INSPECTIONS: Final[str] = "inspections"
MAINTENANCE_LOGS: Final[str] = "maintenanceLogs"
CONTRACTORS: Final[str] = "contractors"
EXPENSES: Final[str] = "expenses"
RENT_PAYMENTS: Final[str] = "rentPayments"
DOCUMENTS: Final[str] = "documents"
SCREENINGS: Final[str] = "screenings"

FILTER_OPERATORS: Final[tuple[str, ...]] = ("==", "!=", "in", "not-in", "<", "<=", ">", ">=")

_CACHE_SIZE: Final[int] = 4096


# =============================================================================
# Reference Types
# =============================================================================


@dataclass(frozen=True)
class DocumentRef:
    """Reference to a single document."""

    path: str

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def parent(self) -> "CollectionRef":
        return CollectionRef(self.path.rsplit("/", 1)[0])

    @property
    def owner_id(self) -> str:
        return self.path.split("/")[1]

    def collection(self, name: str) -> "CollectionRef":
        """Sub-collection beneath this document."""
        _check_segment(name)
        return CollectionRef(f"{self.path}/{name}")


@dataclass(frozen=True)
class CollectionRef:
    """Reference to a collection of documents."""

    path: str

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def owner_id(self) -> str:
        return self.path.split("/")[1]

    def doc(self, doc_id: str) -> DocumentRef:
        _check_segment(doc_id)
        return DocumentRef(f"{self.path}/{doc_id}")


@dataclass(frozen=True)
class Filter:
    """A single field comparison applied to query results."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")
        if self.op in ("in", "not-in") and isinstance(self.value, list):
            # Lists are not hashable; queries must stay usable as cache keys
            object.__setattr__(self, "value", tuple(self.value))


@dataclass(frozen=True)
class Query:
    """
    A filtered view over a collection.

    With ``group=True`` the query matches every collection named
    ``collection.name`` anywhere under the same owner (a collection-group
    query); otherwise only the exact collection path.
    """

    collection: CollectionRef
    filters: tuple[Filter, ...] = ()
    order_by: Optional[str] = None
    descending: bool = False
    limit: Optional[int] = None
    group: bool = False

    @property
    def path(self) -> str:
        return self.collection.path

    def where(self, field: str, op: str, value: Any) -> "Query":
        return replace(self, filters=self.filters + (Filter(field, op, value),))

    def ordered(self, field: str, descending: bool = False) -> "Query":
        return replace(self, order_by=field, descending=descending)

    def limited(self, count: int) -> "Query":
        return replace(self, limit=count)


Locator = Union[DocumentRef, CollectionRef, Query]


# =============================================================================
# Scoped Builders
# =============================================================================


def _check_segment(segment: str) -> None:
    if "/" in segment:
        raise ValueError(f"Path segment must not contain '/': {segment!r}")


def _ready(owner_id: Optional[str], segments: Iterable[Optional[str]]) -> bool:
    return bool(owner_id) and all(bool(s) for s in segments)


@lru_cache(maxsize=_CACHE_SIZE)
def _collection(owner_id: str, segments: tuple[str, ...]) -> CollectionRef:
    if len(segments) % 2 != 1:
        raise ValueError("A collection path needs an odd number of segments")
    for segment in (owner_id,) + segments:
        _check_segment(segment)
    return CollectionRef("/".join((OWNERS_ROOT, owner_id) + segments))


@lru_cache(maxsize=_CACHE_SIZE)
def _document(owner_id: str, segments: tuple[str, ...]) -> DocumentRef:
    if not segments or len(segments) % 2 != 0:
        raise ValueError("A document path needs an even number of segments")
    for segment in (owner_id,) + segments:
        _check_segment(segment)
    return DocumentRef("/".join((OWNERS_ROOT, owner_id) + segments))


def scoped_collection(owner_id: Optional[str], *segments: Optional[str]) -> Optional[CollectionRef]:
    """
    Build ``owners/{owner_id}/{entity}[/{id}/{sub_entity}...]``.

    Returns None until the owner id and every segment are known.
    """
    if not _ready(owner_id, segments):
        return None
    return _collection(owner_id, tuple(segments))


def scoped_document(owner_id: Optional[str], *segments: Optional[str]) -> Optional[DocumentRef]:
    """
    Build ``owners/{owner_id}/{entity}/{id}[/{sub_entity}/{id}...]``.

    Returns None until the owner id and every segment are known.
    """
    if not _ready(owner_id, segments):
        return None
    return _document(owner_id, tuple(segments))


@lru_cache(maxsize=_CACHE_SIZE)
def _query(
    collection: CollectionRef,
    filters: tuple[Filter, ...],
    order_by: Optional[str],
    descending: bool,
    limit: Optional[int],
    group: bool,
) -> Query:
    return Query(collection, filters, order_by, descending, limit, group)


def scoped_query(
    collection: Optional[CollectionRef],
    *filters: Filter,
    order_by: Optional[str] = None,
    descending: bool = False,
    limit: Optional[int] = None,
    group: bool = False,
) -> Optional[Query]:
    """Memoised query over a scoped collection; None while the collection is."""
    if collection is None:
        return None
    return _query(collection, tuple(filters), order_by, descending, limit, group)


# =============================================================================
# Entity Locators
# =============================================================================


def properties_collection(owner_id: Optional[str]) -> Optional[CollectionRef]:
    return scoped_collection(owner_id, PROPERTIES)


def property_doc(owner_id: Optional[str], property_id: Optional[str]) -> Optional[DocumentRef]:
    return scoped_document(owner_id, PROPERTIES, property_id)


def tenants_collection(owner_id: Optional[str], property_id: Optional[str]) -> Optional[CollectionRef]:
    return scoped_collection(owner_id, PROPERTIES, property_id, TENANTS)


def tenant_doc(
    owner_id: Optional[str], property_id: Optional[str], tenant_id: Optional[str]
) -> Optional[DocumentRef]:
    return scoped_document(owner_id, PROPERTIES, property_id, TENANTS, tenant_id)


def checklists_collection(owner_id: Optional[str], property_id: Optional[str]) -> Optional[CollectionRef]:
    return scoped_collection(owner_id, PROPERTIES, property_id, CHECKLISTS)


def checklist_doc(
    owner_id: Optional[str], property_id: Optional[str], checklist_id: Optional[str]
) -> Optional[DocumentRef]:
    return scoped_document(owner_id, PROPERTIES, property_id, CHECKLISTS, checklist_id)


def inspections_collection(owner_id: Optional[str], property_id: Optional[str]) -> Optional[CollectionRef]:
    return scoped_collection(owner_id, PROPERTIES, property_id, INSPECTIONS)


def inspection_doc(
    owner_id: Optional[str], property_id: Optional[str], inspection_id: Optional[str]
) -> Optional[DocumentRef]:
    return scoped_document(owner_id, PROPERTIES, property_id, INSPECTIONS, inspection_id)


def maintenance_collection(owner_id: Optional[str], property_id: Optional[str]) -> Optional[CollectionRef]:
    return scoped_collection(owner_id, PROPERTIES, property_id, MAINTENANCE_LOGS)


def maintenance_doc(
    owner_id: Optional[str], property_id: Optional[str], log_id: Optional[str]
) -> Optional[DocumentRef]:
    return scoped_document(owner_id, PROPERTIES, property_id, MAINTENANCE_LOGS, log_id)


def expenses_collection(owner_id: Optional[str], property_id: Optional[str]) -> Optional[CollectionRef]:
    return scoped_collection(owner_id, PROPERTIES, property_id, EXPENSES)


def expense_doc(
    owner_id: Optional[str], property_id: Optional[str], expense_id: Optional[str]
) -> Optional[DocumentRef]:
    return scoped_document(owner_id, PROPERTIES, property_id, EXPENSES, expense_id)


def rent_payments_collection(owner_id: Optional[str], property_id: Optional[str]) -> Optional[CollectionRef]:
    return scoped_collection(owner_id, PROPERTIES, property_id, RENT_PAYMENTS)


def rent_payment_doc(
    owner_id: Optional[str], property_id: Optional[str], year: Optional[int], month: Optional[str]
) -> Optional[DocumentRef]:
    """One month of the rent ledger, keyed ``{year}-{month}`` (e.g. ``2026-March``)."""
    if year is None or not month:
        return None
    return scoped_document(owner_id, PROPERTIES, property_id, RENT_PAYMENTS, f"{year}-{month}")


def documents_collection(owner_id: Optional[str], property_id: Optional[str]) -> Optional[CollectionRef]:
    return scoped_collection(owner_id, PROPERTIES, property_id, DOCUMENTS)


def document_doc(
    owner_id: Optional[str], property_id: Optional[str], document_id: Optional[str]
) -> Optional[DocumentRef]:
    return scoped_document(owner_id, PROPERTIES, property_id, DOCUMENTS, document_id)


def screenings_collection(
    owner_id: Optional[str], property_id: Optional[str], tenant_id: Optional[str]
) -> Optional[CollectionRef]:
    return scoped_collection(owner_id, PROPERTIES, property_id, TENANTS, tenant_id, SCREENINGS)


def screening_doc(
    owner_id: Optional[str], property_id: Optional[str], tenant_id: Optional[str], screening_id: Optional[str]
) -> Optional[DocumentRef]:
    return scoped_document(owner_id, PROPERTIES, property_id, TENANTS, tenant_id, SCREENINGS, screening_id)


def contractors_collection(owner_id: Optional[str]) -> Optional[CollectionRef]:
    return scoped_collection(owner_id, CONTRACTORS)


def contractor_doc(owner_id: Optional[str], contractor_id: Optional[str]) -> Optional[DocumentRef]:
    return scoped_document(owner_id, CONTRACTORS, contractor_id)


# =============================================================================
# Listing Queries
# =============================================================================


def status_query(collection: Optional[CollectionRef], *statuses: str, group: bool = False) -> Optional[Query]:
    """Documents in ``collection`` whose status is one of ``statuses``."""
    if len(statuses) == 1:
        return scoped_query(collection, Filter("status", "==", statuses[0]), group=group)
    return scoped_query(collection, Filter("status", "in", tuple(statuses)), group=group)


def portfolio_group(owner_id: Optional[str], entity: str) -> Optional[CollectionRef]:
    """
    Collection-group anchor for an entity nested under properties.

    Used with ``group=True`` to read e.g. every tenant across the portfolio.
    """
    return scoped_collection(owner_id, entity)
