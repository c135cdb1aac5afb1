"""
Tests for the tenant service.

Tests covering:
1. Assigning a tenant marks the property Occupied
2. Tenants can only be assigned to live properties
3. Portfolio-wide listings use a collection-group query
4. Archiving a tenant leaves the property alone
5. Archived tenants cannot be edited
"""

import pytest

from core.errors import LifecycleError, MissingContextError
from core.lifecycle import ConfirmationKind, confirmed_for
from core.mutation import MutationFailed, MutationRejected, MutationSuccess
from core.portfolio.properties import property_url

ARCHIVE_OK = confirmed_for(ConfirmationKind.ARCHIVE)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def assigned(services, created_property, tenant_values):
    """(property_id, tenant_id) of an assigned tenant."""
    result = services.tenants.assign({**tenant_values, "propertyId": created_property})
    assert result.ok
    return created_property, result.ref.id


# =============================================================================
# Assignment
# =============================================================================


class TestAssignTenant:
    """Tests for TenantService.assign."""

    def test_assign_marks_property_occupied(self, services, created_property, tenant_values, navigator):
        result = services.tenants.assign({**tenant_values, "propertyId": created_property})
        assert isinstance(result, MutationSuccess)
        assert services.properties.get(created_property)["status"] == "Occupied"
        assert navigator.current == property_url(created_property)

    def test_tenant_stored_active_under_property(self, services, assigned):
        property_id, tenant_id = assigned
        tenant = services.tenants.get(property_id, tenant_id)
        assert tenant["status"] == "Active"

    def test_archived_tenant_cannot_be_edited(self, services, assigned, tenant_values, notifier):
        property_id, tenant_id = assigned
        services.tenants.archive(property_id, tenant_id, ARCHIVE_OK)
        result = services.tenants.update(property_id, tenant_id, {**tenant_values, "monthlyRent": 1000})

        assert isinstance(result, MutationFailed)
        assert isinstance(result.error, LifecycleError)
        assert "Restore it" in notifier.toasts[-1].description
        assert services.tenants.get(property_id, tenant_id)["monthlyRent"] == 950
        assert tenant["email"] == "priya.shah@example.com"
        assert tenant["propertyId"] == property_id

    def test_deleted_property_rejected(self, services, store, created_property, tenant_values):
        services.properties.soft_delete(created_property, ARCHIVE_OK)
        result = services.tenants.assign({**tenant_values, "propertyId": created_property})
        assert isinstance(result, MutationRejected)
        assert result.errors[0].path == "propertyId"
        assert services.tenants.list_active() == []

    def test_unknown_property_rejected(self, services, tenant_values):
        result = services.tenants.assign({**tenant_values, "propertyId": "missing"})
        assert not result.ok

    def test_success_toast_names_tenant(self, services, assigned, notifier):
        assert notifier.toasts[-1].description == "Priya Shah has been assigned successfully."


# =============================================================================
# Listings
# =============================================================================


class TestTenantListings:
    """Tests for active and archived listings."""

    def test_portfolio_wide_listing(self, services, property_values, tenant_values):
        """Tenants under different properties are listed together."""
        first = services.properties.create(property_values).ref.id
        property_values["address"]["street"] = "High Street"
        second = services.properties.create(property_values).ref.id
        services.tenants.assign({**tenant_values, "propertyId": first})
        services.tenants.assign({**tenant_values, "name": "Tom Reed", "propertyId": second})

        assert len(services.tenants.list_active()) == 2
        assert [t["name"] for t in services.tenants.list_active(second)] == ["Tom Reed"]
        assert services.tenants.active_query().group

    def test_archive_keeps_property_occupied(self, services, assigned):
        property_id, tenant_id = assigned
        services.tenants.archive(property_id, tenant_id, ARCHIVE_OK)

        assert services.tenants.list_active() == []
        assert [t["id"] for t in services.tenants.list_archived()] == [tenant_id]
        assert services.properties.get(property_id)["status"] == "Occupied"

    def test_restore_tenant(self, services, assigned):
        property_id, tenant_id = assigned
        services.tenants.archive(property_id, tenant_id, ARCHIVE_OK)
        services.tenants.restore(property_id, tenant_id)
        assert services.tenants.get(property_id, tenant_id)["status"] == "Active"


# =============================================================================
# Editing
# =============================================================================


class TestUpdateTenant:
    def test_update_keeps_property(self, services, assigned, tenant_values):
        property_id, tenant_id = assigned
        result = services.tenants.update(
            property_id, tenant_id, {**tenant_values, "propertyId": "elsewhere", "monthlyRent": 1000}
        )
        assert result.ok
        tenant = services.tenants.get(property_id, tenant_id)
        assert tenant["monthlyRent"] == 1000
        assert tenant["propertyId"] == property_id
        assert tenant["status"] == "Active"

    def test_missing_tenant_id(self, services, created_property):
        with pytest.raises(MissingContextError):
            services.tenants.get(created_property, "")
