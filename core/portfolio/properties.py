"""
Properties - Onboarding, Editing and the Deleted List

Deleting a property only flips its status to Deleted. Deleted properties
are listed separately, from where they can be restored or removed for
good. Child records (tenants, inspections, ...) are left in place.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from core.errors import DuplicatePropertyError, StoreError
from core.lifecycle import PROPERTY_LIFECYCLE, ConfirmPrompt, PropertyStatus
from core.mutation import (
    MutationPipeline,
    MutationRejected,
    MutationResult,
    SuccessMessage,
    Toast,
    ToastVariant,
)
from core.portfolio.base import OwnerScopedService
from core.portfolio.schemas import PropertyForm
from core.store.backend import DocumentStore
from core.store.locator import (
    CollectionRef,
    DocumentRef,
    Filter,
    Query,
    properties_collection,
    property_doc,
    scoped_query,
)
from core.store.objects import MAX_IMAGE_BYTES, ImageFile, ObjectStore, upload_image
from core.validation import FieldError

logger = logging.getLogger(__name__)

PROPERTIES_URL = "/dashboard/properties"
DELETED_PROPERTIES_URL = "/dashboard/properties/deleted"


def property_url(property_id: str) -> str:
    return f"{PROPERTIES_URL}/{property_id}"


class PropertyService(OwnerScopedService):
    """Property records for one owner."""

    def __init__(
        self,
        store: DocumentStore,
        pipeline: MutationPipeline,
        owner_id: Optional[str],
        objects: Optional[ObjectStore] = None,
        max_image_bytes: int = MAX_IMAGE_BYTES,
    ):
        super().__init__(store, pipeline, owner_id)
        self.objects = objects
        self.max_image_bytes = max_image_bytes

    # =========================================================================
    # Locators
    # =========================================================================

    @property
    def collection(self) -> CollectionRef:
        return properties_collection(self.owner_id)

    def ref(self, property_id: Optional[str]) -> DocumentRef:
        return property_doc(self.owner_id, self.require(property_id, "propertyId", PROPERTIES_URL))

    def active_query(self) -> Query:
        return self.live_status_query(self.collection, PROPERTY_LIFECYCLE)

    def deleted_query(self) -> Query:
        return self.archived_status_query(self.collection, PROPERTY_LIFECYCLE)

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, property_id: Optional[str]) -> dict[str, Any]:
        return self.fetch_required(self.ref(property_id), "Property", PROPERTIES_URL)

    def list_active(self) -> list[dict[str, Any]]:
        return self.list_documents(self.active_query())

    def list_deleted(self) -> list[dict[str, Any]]:
        return self.list_documents(self.deleted_query())

    def find_duplicate(self, street: str, postcode: str) -> Optional[dict[str, Any]]:
        """An active property at the same street and postcode, if any."""
        query = scoped_query(
            self.collection,
            Filter("address.street", "==", street),
            Filter("address.postcode", "==", postcode),
            Filter("status", "in", PROPERTY_LIFECYCLE.live_values),
            limit=1,
        )
        matches = self.list_documents(query)
        return matches[0] if matches else None

    # =========================================================================
    # Writes
    # =========================================================================

    def _check_images(self, images: Sequence[ImageFile]) -> Optional[MutationRejected]:
        if images and self.objects is None:
            return self.pipeline.reject((FieldError("imageUrl", "Image uploads are not available."),))
        for image in images:
            is_valid, error = image.validate(self.max_image_bytes)
            if not is_valid:
                return self.pipeline.reject((FieldError("imageUrl", error or "Invalid image"),))
        return None

    def _upload(self, property_id: str, images: Sequence[ImageFile]) -> list[str]:
        return [
            upload_image(
                self.objects, self.owner_id, property_id, image.filename, image.content, self.max_image_bytes
            )
            for image in images
        ]

    def create(self, values: Mapping[str, Any], images: Sequence[ImageFile] = ()) -> MutationResult:
        """
        Onboard a property.

        The first image becomes the main photo, the rest the gallery. Images
        are uploaded after the record exists so they can be keyed by its id;
        if that upload fails the property is still saved and a separate
        "Images Not Uploaded" toast is shown.
        """
        payload = self.pipeline.prepare(
            PropertyForm,
            values,
            {"ownerId": self.owner_id, "createdDate": datetime.now(timezone.utc).isoformat()},
        )
        if isinstance(payload, MutationRejected):
            return payload
        rejected = self._check_images(images)
        if rejected:
            return rejected

        address = payload["address"]
        if self.find_duplicate(address["street"], address["postcode"]):
            duplicate = DuplicatePropertyError(address["street"], address["postcode"])
            logger.info("Duplicate property rejected for owner %s", self.owner_id)
            return self.pipeline.reject(
                (FieldError("address.street", str(duplicate)),),
                Toast("Duplicate Property", str(duplicate), ToastVariant.DESTRUCTIVE),
                reason=duplicate,
            )

        upload_failures: list[StoreError] = []

        def write() -> DocumentRef:
            ref = self.store.create(self.collection, payload)
            if images:
                try:
                    urls = self._upload(ref.id, images)
                except StoreError as e:
                    logger.warning("Image upload failed for property %s: %s", ref.path, e)
                    upload_failures.append(e)
                    return ref
                payload["imageUrl"] = urls[0]
                payload["additionalImageUrls"] = urls[1:]
                self.store.update(ref, {"imageUrl": urls[0], "additionalImageUrls": urls[1:]})
            return ref

        result = self.pipeline.run_write(
            "create",
            self.collection.path,
            payload,
            write,
            SuccessMessage("Property Onboarded", "The property has been added to your portfolio.", PROPERTIES_URL),
        )
        if upload_failures:
            self.pipeline.notifier.toast(
                Toast(
                    "Images Not Uploaded",
                    "The property was saved without its photos. Edit the property to add them again.",
                    ToastVariant.DESTRUCTIVE,
                )
            )
        return result

    def update(
        self,
        property_id: Optional[str],
        values: Mapping[str, Any],
        images: Sequence[ImageFile] = (),
    ) -> MutationResult:
        """
        Save edits to a property.

        Only submitted fields change; the stored status is kept unless the
        form sends one. Deleted properties must be restored before they can
        be edited. New images fill the main photo if there is none and are
        otherwise appended to the gallery.
        """
        ref = self.ref(property_id)
        rejected = self._check_images(images)
        if rejected:
            return rejected
        success = SuccessMessage("Property Updated", "Your changes have been saved.", property_url(ref.id))
        if not images:
            return self.pipeline.update(
                ref,
                PropertyForm,
                values,
                success,
                precondition=lambda: self.lifecycle.require_live(ref, PROPERTY_LIFECYCLE),
            )

        payload = self.pipeline.prepare(PropertyForm, values, submitted_only=True)
        if isinstance(payload, MutationRejected):
            return payload

        def write() -> DocumentRef:
            self.lifecycle.require_live(ref, PROPERTY_LIFECYCLE)
            stored = self.store.get(ref)
            urls = self._upload(ref.id, images)
            if not (payload.get("imageUrl") or stored.get("imageUrl")):
                payload["imageUrl"] = urls.pop(0)
            if urls:
                gallery = payload.get("additionalImageUrls", stored.get("additionalImageUrls") or [])
                payload["additionalImageUrls"] = list(gallery) + urls
            self.store.update(ref, payload)
            return ref

        return self.pipeline.run_write("update", ref.path, payload, write, success, failure_title="Update Failed")

    def soft_delete(self, property_id: Optional[str], confirm: ConfirmPrompt) -> MutationResult:
        """Move a property to the deleted list (status Deleted)."""
        return self.lifecycle.archive(
            self.ref(property_id), PROPERTY_LIFECYCLE, confirm, "The property", PROPERTIES_URL
        )

    def restore(self, property_id: Optional[str], confirm: Optional[ConfirmPrompt] = None) -> MutationResult:
        ref = self.ref(property_id)
        return self.lifecycle.restore(ref, PROPERTY_LIFECYCLE, "The property", confirm, property_url(ref.id))

    def delete_permanently(self, property_id: Optional[str], confirm: ConfirmPrompt) -> MutationResult:
        return self.lifecycle.delete_permanently(
            self.ref(property_id), PROPERTY_LIFECYCLE, confirm, "The property", DELETED_PROPERTIES_URL
        )

    def set_status(self, property_id: Optional[str], status: PropertyStatus) -> MutationResult:
        """Direct status change between live states (e.g. Under Maintenance); deleted properties are refused."""
        if status == PROPERTY_LIFECYCLE.archived:
            raise ValueError("Use soft_delete to delete a property")
        ref = self.ref(property_id)
        payload = {"status": status.value}

        def write() -> DocumentRef:
            self.lifecycle.require_live(ref, PROPERTY_LIFECYCLE)
            self.store.update(ref, payload)
            return ref

        return self.pipeline.run_write(
            "update",
            ref.path,
            payload,
            write,
            SuccessMessage("Status Updated", f"The property is now {status.value}.", None),
            failure_title="Update Failed",
        )
