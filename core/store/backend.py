"""
Document Store - Hierarchical Document Storage with Live Subscriptions

Defines the store interface the application consumes (get, query, create,
set, partial update, delete, live subscribe) and an in-memory
implementation with optional JSON file persistence.

Consistency model:
- No transactions and no version tokens; the last write to a document wins.
- Writes are rejected if any value is None (unset form fields must be
  stripped before submission).
- Subscribers receive an initial snapshot on subscribe and a full
  replacement snapshot after every write that touches their locator.
"""

from __future__ import annotations

import copy
import json
import logging
import secrets
import string
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Final, Optional, Protocol, Union

from core.dates import sort_key
from core.errors import (
    DocumentNotFoundError,
    InvalidDocumentError,
    PermissionDeniedError,
    StoreError,
)
from core.store.locator import (
    OWNERS_ROOT,
    CollectionRef,
    DocumentRef,
    Filter,
    Locator,
    Query,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

AUTO_ID_LENGTH: Final[int] = 20
_AUTO_ID_ALPHABET: Final[str] = string.ascii_letters + string.digits


class _DeleteField:
    """Sentinel: remove this key in a partial update."""

    _instance: Optional["_DeleteField"] = None

    def __new__(cls) -> "_DeleteField":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DELETE_FIELD"


DELETE_FIELD: Final = _DeleteField()


# =============================================================================
# Snapshots & Callbacks
# =============================================================================


@dataclass(frozen=True)
class DocumentSnapshot:
    """Point-in-time copy of one document."""

    id: str
    path: str
    data: dict[str, Any]

    def get(self, field: str, default: Any = None) -> Any:
        return _get_field(self.data, field, default)

    def to_dict(self) -> dict[str, Any]:
        """Document data with its id merged in, as views consume it."""
        return {"id": self.id, **copy.deepcopy(self.data)}


Snapshot = Union[Optional[DocumentSnapshot], list[DocumentSnapshot]]
SnapshotCallback = Callable[[Snapshot], None]
ErrorCallback = Callable[[StoreError], None]
Unsubscribe = Callable[[], None]


class AccessRules(Protocol):
    """Server-side rules hook: return False to refuse an operation."""

    def __call__(self, path: str, operation: str) -> bool: ...


def allow_all(path: str, operation: str) -> bool:
    return True


def generate_document_id() -> str:
    """Generate a 20-character alphanumeric document id."""
    return "".join(secrets.choice(_AUTO_ID_ALPHABET) for _ in range(AUTO_ID_LENGTH))


# =============================================================================
# Field Helpers
# =============================================================================


def _get_field(data: dict[str, Any], field: str, default: Any = None) -> Any:
    current: Any = data
    for part in field.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def _find_none(value: Any, path: str = "") -> Optional[str]:
    if value is None:
        return path or "<root>"
    if isinstance(value, dict):
        for key, item in value.items():
            found = _find_none(item, f"{path}.{key}" if path else str(key))
            if found:
                return found
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            found = _find_none(item, f"{path}[{index}]")
            if found:
                return found
    return None


def _matches(data: dict[str, Any], flt: Filter) -> bool:
    missing = object()
    actual = _get_field(data, flt.field, missing)
    if actual is missing:
        # Documents without the field never match, whatever the operator
        return False
    if flt.op == "==":
        return actual == flt.value
    if flt.op == "!=":
        return actual != flt.value
    if flt.op == "in":
        return actual in flt.value
    if flt.op == "not-in":
        return actual not in flt.value
    try:
        if flt.op == "<":
            return actual < flt.value
        if flt.op == "<=":
            return actual <= flt.value
        if flt.op == ">":
            return actual > flt.value
        if flt.op == ">=":
            return actual >= flt.value
    except TypeError:
        return False
    return False


def _order_value(value: Any) -> tuple:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value)
    if isinstance(value, str):
        return (1, value)
    if isinstance(value, dict) and "seconds" in value:
        return (0, sort_key(value))
    return (2, str(value))


# =============================================================================
# Store Interface
# =============================================================================


class DocumentStore(ABC):
    """Interface to the hosted document database."""

    @abstractmethod
    def get(self, ref: DocumentRef) -> Optional[DocumentSnapshot]:
        """Fetch one document, or None if it does not exist."""

    @abstractmethod
    def query(self, locator: Union[CollectionRef, Query]) -> list[DocumentSnapshot]:
        """Fetch every document matching a collection or query."""

    @abstractmethod
    def create(self, collection: CollectionRef, data: dict[str, Any]) -> DocumentRef:
        """Add a document with a generated id."""

    @abstractmethod
    def set(self, ref: DocumentRef, data: dict[str, Any]) -> None:
        """Create or overwrite a document."""

    @abstractmethod
    def update(self, ref: DocumentRef, data: dict[str, Any]) -> None:
        """Merge fields into an existing document (dotted keys allowed)."""

    @abstractmethod
    def delete(self, ref: DocumentRef) -> None:
        """Remove a document. Sub-collections are left in place."""

    @abstractmethod
    def subscribe(
        self,
        locator: Locator,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        """Listen to a document or query; returns the disposer."""


# =============================================================================
# In-Memory Implementation
# =============================================================================


@dataclass
class _Subscription:
    locator: Locator
    on_snapshot: SnapshotCallback
    on_error: Optional[ErrorCallback]
    active: bool = True


class InMemoryDocumentStore(DocumentStore):
    """
    Dict-backed document store.

    Documents are keyed by full path. Optionally persists to a JSON file
    after every write and reloads it on construction.
    """

    def __init__(
        self,
        persist_path: Optional[str] = None,
        rules: AccessRules = allow_all,
    ):
        """
        Initialise the store.

        Args:
            persist_path: Optional path to persist documents to a JSON file
            rules: Access rules evaluated for every operation
        """
        self._docs: dict[str, dict[str, Any]] = {}
        self._subscriptions: list[_Subscription] = []
        self._persist_path = Path(persist_path) if persist_path else None
        self.rules = rules

        if self._persist_path and self._persist_path.exists():
            self._load_from_file()

    # =========================================================================
    # Persistence
    # =========================================================================

    def _save_to_file(self) -> None:
        if not self._persist_path:
            return

        data = {
            "documents": self._docs,
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }
        self._persist_path.parent.mkdir(parents=True, exist_ok=True)
        self._persist_path.write_text(json.dumps(data, indent=2, default=str))

    def _load_from_file(self) -> None:
        try:
            data = json.loads(self._persist_path.read_text())
            self._docs = dict(data.get("documents", {}))
        except (json.JSONDecodeError, AttributeError, ValueError) as e:
            logger.warning("Could not load document store from %s: %s", self._persist_path, e)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _authorise(self, path: str, operation: str) -> None:
        if not self.rules(path, operation):
            raise PermissionDeniedError(
                f"Missing or insufficient permissions for {operation} on {path}"
            )

    @staticmethod
    def _check_payload(data: dict[str, Any]) -> None:
        if not isinstance(data, dict):
            raise InvalidDocumentError("Document data must be a mapping")
        bad = _find_none(data)
        if bad:
            raise InvalidDocumentError(f"Unsupported field value: None (found in field {bad})")

    def _snapshot(self, path: str) -> Optional[DocumentSnapshot]:
        data = self._docs.get(path)
        if data is None:
            return None
        return DocumentSnapshot(
            id=path.rsplit("/", 1)[-1],
            path=path,
            data=copy.deepcopy(data),
        )

    def _in_scope(self, query: Query, path: str) -> bool:
        parent = path.rsplit("/", 1)[0]
        if not query.group:
            return parent == query.path
        # Group queries match any same-named collection below the owner root
        owner_root = f"{OWNERS_ROOT}/{query.collection.owner_id}/"
        return path.startswith(owner_root) and parent.rsplit("/", 1)[-1] == query.collection.name

    def _run_query(self, query: Query) -> list[DocumentSnapshot]:
        results = [
            self._snapshot(path)
            for path, data in self._docs.items()
            if self._in_scope(query, path) and all(_matches(data, f) for f in query.filters)
        ]
        if query.order_by:
            results.sort(
                key=lambda s: _order_value(s.get(query.order_by)),
                reverse=query.descending,
            )
        else:
            results.sort(key=lambda s: s.path)
        if query.limit is not None:
            results = results[: query.limit]
        return results

    @staticmethod
    def _as_query(locator: Union[CollectionRef, Query]) -> Query:
        return locator if isinstance(locator, Query) else Query(locator)

    def _current(self, locator: Locator) -> Snapshot:
        if isinstance(locator, DocumentRef):
            return self._snapshot(locator.path)
        return self._run_query(self._as_query(locator))

    def _affects(self, locator: Locator, path: str) -> bool:
        if isinstance(locator, DocumentRef):
            return locator.path == path
        return self._in_scope(self._as_query(locator), path)

    def _notify(self, path: str) -> None:
        for sub in list(self._subscriptions):
            if sub.active and self._affects(sub.locator, path):
                sub.on_snapshot(self._current(sub.locator))

    def _written(self, path: str) -> None:
        self._save_to_file()
        self._notify(path)

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, ref: DocumentRef) -> Optional[DocumentSnapshot]:
        self._authorise(ref.path, "get")
        return self._snapshot(ref.path)

    def query(self, locator: Union[CollectionRef, Query]) -> list[DocumentSnapshot]:
        query = self._as_query(locator)
        self._authorise(query.path, "list")
        return self._run_query(query)

    # =========================================================================
    # Writes
    # =========================================================================

    def create(self, collection: CollectionRef, data: dict[str, Any]) -> DocumentRef:
        ref = collection.doc(generate_document_id())
        self._authorise(ref.path, "create")
        self._check_payload(data)
        self._docs[ref.path] = copy.deepcopy(data)
        self._written(ref.path)
        return ref

    def set(self, ref: DocumentRef, data: dict[str, Any]) -> None:
        operation = "update" if ref.path in self._docs else "create"
        self._authorise(ref.path, operation)
        self._check_payload(data)
        self._docs[ref.path] = copy.deepcopy(data)
        self._written(ref.path)

    def update(self, ref: DocumentRef, data: dict[str, Any]) -> None:
        self._authorise(ref.path, "update")
        if ref.path not in self._docs:
            raise DocumentNotFoundError(f"No document to update: {ref.path}")
        self._check_payload(data)

        merged = copy.deepcopy(self._docs[ref.path])
        for key, value in data.items():
            parts = key.split(".")
            target = merged
            for part in parts[:-1]:
                if not isinstance(target.get(part), dict):
                    target[part] = {}
                target = target[part]
            if value is DELETE_FIELD:
                target.pop(parts[-1], None)
            else:
                target[parts[-1]] = copy.deepcopy(value)

        self._docs[ref.path] = merged
        self._written(ref.path)

    def delete(self, ref: DocumentRef) -> None:
        self._authorise(ref.path, "delete")
        if self._docs.pop(ref.path, None) is not None:
            self._written(ref.path)

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(
        self,
        locator: Locator,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        sub = _Subscription(locator=locator, on_snapshot=on_snapshot, on_error=on_error)

        try:
            self._authorise(locator.path, "get" if isinstance(locator, DocumentRef) else "list")
        except PermissionDeniedError as e:
            if on_error:
                on_error(e)
            return lambda: None

        self._subscriptions.append(sub)
        logger.debug("Subscription opened: %s", locator.path)
        on_snapshot(self._current(locator))

        def unsubscribe() -> None:
            if sub.active:
                sub.active = False
                self._subscriptions.remove(sub)
                logger.debug("Subscription closed: %s", locator.path)

        return unsubscribe

    @property
    def subscription_count(self) -> int:
        """Number of open subscriptions."""
        return len(self._subscriptions)

    def count(self) -> int:
        """Total number of stored documents."""
        return len(self._docs)


# =============================================================================
# Singleton Instance
# =============================================================================

_store_instance: Optional[InMemoryDocumentStore] = None


def get_document_store(persist_path: Optional[str] = None) -> InMemoryDocumentStore:
    """
    Get the document store singleton.

    Args:
        persist_path: Optional path for persistence (only used on first call)
    """
    global _store_instance
    if _store_instance is None:
        _store_instance = InMemoryDocumentStore(persist_path)
    return _store_instance


def reset_document_store() -> None:
    """Drop the singleton (used by tests)."""
    global _store_instance
    _store_instance = None
