"""
Tests for the inspection service.

Tests covering:
1. Single-let and HMO inspections validate against their own schema
2. HMO inspections are always saved Completed
3. Soft delete hides an inspection from every live listing
4. Edits use the schema of the stored type and keep unsent fields
5. Deleted inspections must be restored before they can be edited
"""

import pytest

from core.errors import LifecycleError
from core.lifecycle import ConfirmationKind, confirmed_for
from core.mutation import MutationFailed, MutationRejected
from core.portfolio.catalogues import InspectionType

ARCHIVE_OK = confirmed_for(ConfirmationKind.ARCHIVE)
DELETE_OK = confirmed_for(ConfirmationKind.PERMANENT_DELETE)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def single_let_values(created_property):
    return {
        "propertyId": created_property,
        "status": "Scheduled",
        "scheduledDate": "2026-11-01T10:00:00+00:00",
        "inspectorName": "Sam Cole",
        "exterior": {"roofCondition": True, "walls": False, "notes": "Gutter loose"},
    }


@pytest.fixture
def hmo_values(created_property):
    return {
        "propertyId": created_property,
        "status": "Scheduled",
        "scheduledDate": "2026-11-01T10:00:00+00:00",
        "inspectorName": "Sam Cole",
        "occupantCount": 5,
        "fireSafety": {"interlinkedAlarms": True},
    }


@pytest.fixture
def inspection_id(services, single_let_values):
    return services.inspections.create(InspectionType.SINGLE_LET, single_let_values).ref.id


# =============================================================================
# Create
# =============================================================================


class TestCreateInspection:
    """Tests for InspectionService.create."""

    def test_single_let_keeps_status(self, services, created_property, inspection_id):
        inspection = services.inspections.get(created_property, inspection_id)
        assert inspection["type"] == "Single-Let"
        assert inspection["status"] == "Scheduled"
        assert inspection["exterior"]["notes"] == "Gutter loose"
        assert "safety" not in inspection

    def test_hmo_forced_completed(self, services, created_property, hmo_values, notifier):
        result = services.inspections.create("HMO", hmo_values)
        assert result.ok
        assert services.inspections.get(created_property, result.ref.id)["status"] == "Completed"
        assert notifier.toasts[-1].title == "HMO Inspection Saved"

    def test_hmo_requires_occupants(self, services, hmo_values):
        del hmo_values["occupantCount"]
        result = services.inspections.create("HMO", hmo_values)
        assert isinstance(result, MutationRejected)
        assert [e.path for e in result.errors] == ["occupantCount"]

    def test_unknown_type(self, services, single_let_values):
        result = services.inspections.create("Commercial", single_let_values)
        assert result.errors[0].path == "type"


# =============================================================================
# Listings & Lifecycle
# =============================================================================


class TestInspectionListings:
    """Tests for live and deleted listings."""

    def test_live_listing_is_portfolio_wide(self, services, inspection_id):
        assert [i["id"] for i in services.inspections.list_live()] == [inspection_id]

    def test_soft_delete_hides_everywhere(self, services, created_property, inspection_id):
        services.inspections.soft_delete(created_property, inspection_id, ARCHIVE_OK)
        assert services.inspections.list_live() == []
        assert services.inspections.list_live(created_property) == []
        assert [i["id"] for i in services.inspections.list_deleted()] == [inspection_id]

    def test_restore_previous_status(self, services, created_property, inspection_id):
        services.inspections.soft_delete(created_property, inspection_id, ARCHIVE_OK)
        services.inspections.restore(created_property, inspection_id)
        assert services.inspections.get(created_property, inspection_id)["status"] == "Scheduled"

    def test_permanent_delete(self, services, created_property, inspection_id):
        services.inspections.soft_delete(created_property, inspection_id, ARCHIVE_OK)
        assert services.inspections.delete_permanently(created_property, inspection_id, DELETE_OK).ok
        assert services.inspections.list_deleted() == []


# =============================================================================
# Update
# =============================================================================


class TestUpdateInspection:
    def test_update_uses_stored_type(self, services, created_property, hmo_values):
        created = services.inspections.create("HMO", hmo_values)
        del hmo_values["inspectorName"]
        result = services.inspections.update(created_property, created.ref.id, hmo_values)
        assert isinstance(result, MutationRejected)
        assert result.errors[0].path == "inspectorName"

    def test_update_single_let(self, services, created_property, inspection_id, single_let_values):
        single_let_values["status"] = "Completed"
        single_let_values["completedDate"] = "2026-11-01T12:00:00+00:00"
        assert services.inspections.update(created_property, inspection_id, single_let_values).ok
        assert services.inspections.get(created_property, inspection_id)["status"] == "Completed"

    def test_report_inputs(self, services, created_property, inspection_id):
        inspection, prop = services.inspections.report_inputs(created_property, inspection_id)
        assert inspection["id"] == inspection_id
        assert prop["id"] == created_property

    def test_update_without_status_keeps_scheduled(self, services, created_property, inspection_id, single_let_values):
        """Leaving status out of an edit does not mark the inspection Completed."""
        del single_let_values["status"]
        single_let_values["inspectorName"] = "Alex Kerr"
        assert services.inspections.update(created_property, inspection_id, single_let_values).ok
        inspection = services.inspections.get(created_property, inspection_id)
        assert inspection["status"] == "Scheduled"
        assert inspection["inspectorName"] == "Alex Kerr"

    def test_deleted_inspection_cannot_be_edited(self, services, created_property, inspection_id, single_let_values):
        services.inspections.soft_delete(created_property, inspection_id, ARCHIVE_OK)
        result = services.inspections.update(created_property, inspection_id, single_let_values)
        assert isinstance(result, MutationFailed)
        assert isinstance(result.error, LifecycleError)
        assert [i["id"] for i in services.inspections.list_deleted()] == [inspection_id]
