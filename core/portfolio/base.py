"""
Owner-scoped service base.

Every feature service is constructed for one owner. The owner id must be
known up front; route parameters are checked as they are used.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from core.errors import MissingContextError, NotAuthenticatedError
from core.lifecycle import LifecyclePolicy, SoftLifecycle
from core.mutation import MutationPipeline
from core.store.backend import DocumentStore
from core.store.locator import CollectionRef, DocumentRef, Query, status_query

logger = logging.getLogger(__name__)


class OwnerScopedService:
    """Shared plumbing for services that read and write one owner's records."""

    def __init__(self, store: DocumentStore, pipeline: MutationPipeline, owner_id: Optional[str]):
        if not owner_id:
            raise NotAuthenticatedError("You must be logged in.")
        self.store = store
        self.pipeline = pipeline
        self.owner_id = owner_id
        self.lifecycle = SoftLifecycle(pipeline)

    @staticmethod
    def require(value: Optional[str], name: str, back_to: str = "/dashboard") -> str:
        """
        Return a route parameter, or fail into the invalid-context state.

        Raises:
            MissingContextError: If the parameter is missing or blank
        """
        if not value:
            raise MissingContextError(f"Missing {name}.", back_to=back_to)
        return value

    def fetch(self, ref: Optional[DocumentRef]) -> Optional[dict[str, Any]]:
        """One document as a dict with its id, or None if absent."""
        if ref is None:
            return None
        snapshot = self.store.get(ref)
        return snapshot.to_dict() if snapshot else None

    def fetch_required(self, ref: DocumentRef, entity: str, back_to: str) -> dict[str, Any]:
        document = self.fetch(ref)
        if document is None:
            raise MissingContextError(f"{entity} not found.", back_to=back_to)
        return document

    def list_documents(self, locator: Optional[Union[CollectionRef, Query]]) -> list[dict[str, Any]]:
        if locator is None:
            return []
        return [snapshot.to_dict() for snapshot in self.store.query(locator)]

    @staticmethod
    def live_status_query(
        collection: Optional[CollectionRef], policy: LifecyclePolicy, group: bool = False
    ) -> Optional[Query]:
        return status_query(collection, *policy.live_values, group=group)

    @staticmethod
    def archived_status_query(
        collection: Optional[CollectionRef], policy: LifecyclePolicy, group: bool = False
    ) -> Optional[Query]:
        return status_query(collection, policy.archived.value, group=group)
