"""
Tests for the contractor directory.

Tests covering:
1. Contractors are created Active under the owner
2. An Active contractor with the same phone blocks a new one (no write)
3. Archived contractors do not block, and can be restored
4. Archived contractors cannot be edited
"""

import pytest

from core.errors import DuplicateContractorError, LifecycleError
from core.lifecycle import ConfirmationKind, confirmed_for
from core.mutation import MutationFailed, MutationRejected
from core.portfolio.contractors import CONTRACTORS_URL, ContractorService

from conftest import OWNER_ID

ARCHIVE_OK = confirmed_for(ConfirmationKind.ARCHIVE)
DELETE_OK = confirmed_for(ConfirmationKind.PERMANENT_DELETE)


@pytest.fixture
def contractor_id(services, contractor_values):
    return services.contractors.create(contractor_values).ref.id


class TestCreateContractor:
    """Tests for ContractorService.create."""

    def test_created_active(self, services, contractor_id, navigator):
        contractor = services.contractors.get(contractor_id)
        assert contractor["status"] == "Active"
        assert contractor["ownerId"] == OWNER_ID
        assert navigator.current == CONTRACTORS_URL

    def test_duplicate_phone_rejected_with_zero_writes(self, services, store, contractor_id, contractor_values, notifier):
        """A second contractor with 07123456789 is refused before any write."""
        before = store.count()
        result = services.contractors.create({**contractor_values, "name": "Someone Else"})

        assert isinstance(result, MutationRejected)
        assert isinstance(result.reason, DuplicateContractorError)
        assert result.errors[0].path == "phone"
        assert store.count() == before
        assert notifier.toasts[-1].title == "Duplicate Contractor"

    def test_archived_contractor_does_not_block(self, services, contractor_id, contractor_values):
        services.contractors.archive(contractor_id, ARCHIVE_OK)
        assert services.contractors.create(contractor_values).ok

    def test_other_owner_does_not_block(self, store, pipeline, contractor_id, contractor_values):
        other = ContractorService(store, pipeline, "owner-2")
        assert other.create(contractor_values).ok


class TestContractorLifecycle:
    """Tests for archive, restore and permanent delete."""

    def test_archive_and_restore(self, services, contractor_id):
        services.contractors.archive(contractor_id, ARCHIVE_OK)
        assert services.contractors.list_active() == []
        assert len(services.contractors.list_archived()) == 1

        services.contractors.restore(contractor_id)
        assert [c["id"] for c in services.contractors.list_active()] == [contractor_id]

    def test_permanent_delete(self, services, store, contractor_id):
        services.contractors.archive(contractor_id, ARCHIVE_OK)
        services.contractors.delete_permanently(contractor_id, DELETE_OK)
        assert store.count() == 0

    def test_update(self, services, contractor_id, contractor_values):
        result = services.contractors.update(contractor_id, {**contractor_values, "trade": "Heating Engineer"})
        assert result.ok
        assert services.contractors.get(contractor_id)["trade"] == "Heating Engineer"

    def test_archived_contractor_cannot_be_edited(self, services, contractor_id, contractor_values):
        services.contractors.archive(contractor_id, ARCHIVE_OK)
        result = services.contractors.update(contractor_id, {**contractor_values, "trade": "Roofer"})
        assert isinstance(result, MutationFailed)
        assert isinstance(result.error, LifecycleError)
        assert services.contractors.get(contractor_id)["trade"] == "Plumber"
