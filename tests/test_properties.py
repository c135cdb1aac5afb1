"""
Tests for the property service.

Tests covering:
1. Onboarding writes an owner-scoped Vacant property
2. Active duplicates (street + postcode) are rejected with no write
3. Images are validated first and uploaded after the record exists
4. A failed image upload never loses or duplicates the property
5. Edits change only submitted fields and skip deleted properties
6. Delete / restore / permanent delete through the deleted list
7. Missing route context fails loudly
"""

import pytest

from core.errors import (
    DuplicatePropertyError,
    LifecycleError,
    MissingContextError,
    NotAuthenticatedError,
    TransientStoreError,
)
from core.lifecycle import ConfirmationKind, PropertyStatus, confirmed_for
from core.mutation import RETRY_SUGGESTION, MutationFailed, MutationRejected, MutationSuccess, ToastVariant
from core.portfolio.properties import DELETED_PROPERTIES_URL, PROPERTIES_URL, PropertyService, property_url
from core.store.objects import ImageFile, ObjectStore

from conftest import OWNER_ID

ARCHIVE_OK = confirmed_for(ConfirmationKind.ARCHIVE)
DELETE_OK = confirmed_for(ConfirmationKind.PERMANENT_DELETE)


class UnavailableObjects(ObjectStore):
    """Object storage that is offline."""

    def put(self, content: bytes, path: str) -> str:
        raise TransientStoreError("object storage offline")


# =============================================================================
# Onboarding
# =============================================================================


class TestCreateProperty:
    """Tests for PropertyService.create."""

    def test_creates_vacant_property(self, services, store, navigator, property_values):
        """A new property is Vacant and belongs to the owner."""
        result = services.properties.create(property_values)
        assert isinstance(result, MutationSuccess)

        data = store.get(result.ref).data
        assert data["status"] == "Vacant"
        assert data["ownerId"] == OWNER_ID
        assert data["address"]["postcode"] == "LS1 4AB"
        assert "notes" not in data
        assert result.ref.path.startswith(f"owners/{OWNER_ID}/properties/")
        assert navigator.current == PROPERTIES_URL

    def test_duplicate_rejected_without_write(self, services, store, notifier, property_values):
        """Same street and postcode as an active property is refused."""
        services.properties.create(property_values)
        property_values["address"]["postcode"] = "LS1 4AB"

        result = services.properties.create(property_values)

        assert isinstance(result, MutationRejected)
        assert isinstance(result.reason, DuplicatePropertyError)
        assert store.count() == 1
        assert notifier.toasts[-1].title == "Duplicate Property"

    def test_deleted_property_does_not_block(self, services, property_values):
        """A deleted property at the same address is not a duplicate."""
        first = services.properties.create(property_values)
        services.properties.soft_delete(first.ref.id, ARCHIVE_OK)
        assert services.properties.create(property_values).ok

    def test_invalid_values(self, services, store, property_values):
        property_values["address"]["postcode"] = "nope"
        result = services.properties.create(property_values)
        assert not result.ok
        assert store.count() == 0


class TestPropertyImages:
    """Tests for image upload on create and update."""

    def test_first_image_is_main_photo(self, services, store, objects, property_values):
        images = [ImageFile("front.png", b"front"), ImageFile("back.jpg", b"back")]
        result = services.properties.create(property_values, images)

        data = store.get(result.ref).data
        assert data["imageUrl"].startswith(f"/files/images/{OWNER_ID}/{result.ref.id}/")
        assert len(data["additionalImageUrls"]) == 1
        assert objects.read(data["imageUrl"][len("/files/"):]) == b"front"

    def test_invalid_image_rejected_before_write(self, services, store, property_values):
        result = services.properties.create(property_values, [ImageFile("plan.pdf", b"pdf")])
        assert isinstance(result, MutationRejected)
        assert result.errors[0].path == "imageUrl"
        assert store.count() == 0

    def test_uploads_unavailable(self, store, pipeline, property_values):
        service = PropertyService(store, pipeline, OWNER_ID)
        result = service.create(property_values, [ImageFile("front.png", b"front")])
        assert result.errors[0].message == "Image uploads are not available."

    def test_update_adds_main_photo_then_gallery(self, services, store, created_property, property_values):
        services.properties.update(created_property, property_values, [ImageFile("a.png", b"a")])
        first = store.get(services.properties.ref(created_property)).data
        assert first["imageUrl"]

        property_values["imageUrl"] = first["imageUrl"]
        services.properties.update(created_property, property_values, [ImageFile("b.png", b"b")])
        second = store.get(services.properties.ref(created_property)).data
        assert second["imageUrl"] == first["imageUrl"]
        assert len(second["additionalImageUrls"]) == 1

    def test_update_keeps_stored_main_photo(self, services, store, created_property, property_values):
        """A stored main photo is kept even when the form does not resend it."""
        services.properties.update(created_property, property_values, [ImageFile("a.png", b"a")])
        main = store.get(services.properties.ref(created_property)).get("imageUrl")

        services.properties.update(created_property, property_values, [ImageFile("b.png", b"b")])
        data = store.get(services.properties.ref(created_property)).data
        assert data["imageUrl"] == main
        assert len(data["additionalImageUrls"]) == 1


class TestImageUploadFailures:
    """Tests for object storage failing during a property write."""

    def test_create_saved_when_upload_fails(self, store, pipeline, notifier, property_values):
        """The property exists, so the create is reported as a success plus a warning."""
        service = PropertyService(store, pipeline, OWNER_ID, UnavailableObjects())
        result = service.create(property_values, [ImageFile("front.png", b"front")])

        assert isinstance(result, MutationSuccess)
        assert store.count() == 1
        assert "imageUrl" not in store.get(result.ref).data
        assert [t.title for t in notifier.toasts] == ["Property Onboarded", "Images Not Uploaded"]
        assert notifier.toasts[-1].variant == ToastVariant.DESTRUCTIVE

    def test_retry_after_failed_upload_is_an_edit(self, store, pipeline, objects, property_values):
        """The saved property takes its photos through an edit."""
        failing = PropertyService(store, pipeline, OWNER_ID, UnavailableObjects())
        created = failing.create(property_values, [ImageFile("front.png", b"front")])

        service = PropertyService(store, pipeline, OWNER_ID, objects)
        result = service.update(created.ref.id, property_values, [ImageFile("front.png", b"front")])
        assert result.ok
        assert store.get(created.ref).get("imageUrl")

    def test_filesystem_error_becomes_transient(self, objects):
        (objects.root / "images").write_bytes(b"")
        with pytest.raises(TransientStoreError):
            objects.put(b"front", "images/owner-1/p1/front.png")

    def test_filesystem_error_on_create(self, services, store, objects, notifier, property_values):
        (objects.root / "images").write_bytes(b"")
        result = services.properties.create(property_values, [ImageFile("front.png", b"front")])
        assert result.ok
        assert store.count() == 1
        assert notifier.toasts[-1].title == "Images Not Uploaded"

    def test_filesystem_error_on_update(self, services, store, objects, notifier, created_property, property_values):
        """A failed upload during an edit writes nothing and suggests a retry."""
        (objects.root / "images").write_bytes(b"")
        result = services.properties.update(
            created_property, {**property_values, "notes": "Repainted"}, [ImageFile("a.png", b"a")]
        )
        assert isinstance(result, MutationFailed)
        assert isinstance(result.error, TransientStoreError)
        assert notifier.toasts[-1].description == RETRY_SUGGESTION
        assert "notes" not in services.properties.get(created_property)


# =============================================================================
# Edits
# =============================================================================


class TestPropertyEdits:
    """Tests for PropertyService.update without images."""

    def test_edit_keeps_occupied_status(self, services, created_property, property_values, tenant_values):
        """Only tenant assignment and explicit status changes move the status."""
        services.tenants.assign({**tenant_values, "propertyId": created_property})
        result = services.properties.update(created_property, {**property_values, "notes": "New boiler"})

        assert result.ok
        prop = services.properties.get(created_property)
        assert prop["status"] == "Occupied"
        assert prop["notes"] == "New boiler"

    def test_edit_keeps_unsent_fields(self, services, created_property, property_values):
        """Schema defaults are not written over stored values."""
        del property_values["bedrooms"]
        del property_values["bathrooms"]
        assert services.properties.update(created_property, property_values).ok
        prop = services.properties.get(created_property)
        assert prop["bedrooms"] == 3
        assert prop["bathrooms"] == 1

    def test_explicit_status_is_written(self, services, created_property, property_values):
        property_values["status"] = "Under Maintenance"
        assert services.properties.update(created_property, property_values).ok
        assert services.properties.get(created_property)["status"] == "Under Maintenance"

    def test_deleted_property_cannot_be_edited(self, services, created_property, property_values, notifier):
        """A deleted property comes back only through restore."""
        services.properties.soft_delete(created_property, ARCHIVE_OK)
        result = services.properties.update(created_property, {**property_values, "notes": "Sneaky"})

        assert isinstance(result, MutationFailed)
        assert isinstance(result.error, LifecycleError)
        assert notifier.toasts[-1].title == "Update Failed"
        assert [p["id"] for p in services.properties.list_deleted()] == [created_property]
        assert services.properties.get(created_property)["status"] == "Deleted"

    def test_deleted_property_cannot_take_images(self, services, store, created_property, property_values):
        services.properties.soft_delete(created_property, ARCHIVE_OK)
        result = services.properties.update(created_property, property_values, [ImageFile("a.png", b"a")])
        assert isinstance(result.error, LifecycleError)
        assert "imageUrl" not in services.properties.get(created_property)


# =============================================================================
# Lifecycle
# =============================================================================


class TestPropertyLifecycle:
    """Tests for delete, restore and permanent delete."""

    def test_soft_delete_moves_to_deleted_list(self, services, created_property):
        services.properties.soft_delete(created_property, ARCHIVE_OK)
        assert services.properties.list_active() == []
        assert [p["id"] for p in services.properties.list_deleted()] == [created_property]

    def test_restore_returns_previous_status(self, services, created_property, navigator):
        services.properties.set_status(created_property, PropertyStatus.UNDER_MAINTENANCE)
        services.properties.soft_delete(created_property, ARCHIVE_OK)
        services.properties.restore(created_property)
        assert services.properties.get(created_property)["status"] == "Under Maintenance"
        assert navigator.current == property_url(created_property)

    def test_permanent_delete(self, services, store, created_property, navigator):
        services.properties.soft_delete(created_property, ARCHIVE_OK)
        result = services.properties.delete_permanently(created_property, DELETE_OK)
        assert result.ok
        assert store.count() == 0
        assert navigator.current == DELETED_PROPERTIES_URL

    def test_set_status_cannot_delete(self, services, created_property):
        with pytest.raises(ValueError):
            services.properties.set_status(created_property, PropertyStatus.DELETED)

    def test_set_status_refused_while_deleted(self, services, created_property):
        """Only restore brings a deleted property back."""
        services.properties.soft_delete(created_property, ARCHIVE_OK)
        result = services.properties.set_status(created_property, PropertyStatus.VACANT)
        assert isinstance(result.error, LifecycleError)
        assert services.properties.get(created_property)["status"] == "Deleted"


# =============================================================================
# Context
# =============================================================================


class TestPropertyContext:
    """Tests for missing owner and route parameters."""

    def test_missing_owner(self, store, pipeline):
        with pytest.raises(NotAuthenticatedError):
            PropertyService(store, pipeline, None)

    def test_missing_property_id(self, services):
        with pytest.raises(MissingContextError) as exc_info:
            services.properties.get(None)
        assert exc_info.value.back_to == PROPERTIES_URL

    def test_unknown_property(self, services):
        with pytest.raises(MissingContextError, match="Property not found"):
            services.properties.get("nope")
