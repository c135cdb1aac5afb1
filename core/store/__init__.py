"""
Data access layer: owner-scoped locators, the document store, live read
bindings and object storage.
"""

from core.store.locator import (
    CollectionRef,
    DocumentRef,
    Filter,
    Locator,
    Query,
    scoped_collection,
    scoped_document,
    scoped_query,
)
from core.store.backend import (
    DELETE_FIELD,
    DocumentSnapshot,
    DocumentStore,
    InMemoryDocumentStore,
    Unsubscribe,
    get_document_store,
    reset_document_store,
)
from core.store.binding import LiveReadBinding, ReadGroup, ReadState
from core.store.objects import (
    ImageFile,
    LocalObjectStore,
    ObjectStore,
    build_image_path,
    upload_image,
    validate_image,
)

__all__ = [
    "CollectionRef",
    "DocumentRef",
    "Filter",
    "Locator",
    "Query",
    "scoped_collection",
    "scoped_document",
    "scoped_query",
    "DELETE_FIELD",
    "DocumentSnapshot",
    "DocumentStore",
    "InMemoryDocumentStore",
    "Unsubscribe",
    "get_document_store",
    "reset_document_store",
    "LiveReadBinding",
    "ReadGroup",
    "ReadState",
    "ImageFile",
    "LocalObjectStore",
    "ObjectStore",
    "build_image_path",
    "upload_image",
    "validate_image",
]
