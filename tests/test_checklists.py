"""
Tests for pre-tenancy checklists.

Tests covering:
1. Required-item completeness check
2. Complete checklists save without asking
3. Incomplete checklists ask first; declining writes nothing
"""

import pytest

from core.lifecycle import ConfirmationKind, confirmed_for, never_confirm
from core.mutation import MutationCancelled, MutationSuccess
from core.portfolio.catalogues import CHECKLIST_SECTIONS
from core.portfolio.checklists import incomplete_required_items
from core.portfolio.tenants import tenant_url


# =============================================================================
# Fixtures
# =============================================================================


class RecordingPrompt:
    """Confirmation prompt that remembers what it was asked."""

    def __init__(self, answer: bool):
        self.answer = answer
        self.asked = []

    def __call__(self, request):
        self.asked.append(request)
        return self.answer


@pytest.fixture
def tenancy(services, created_property, tenant_values):
    result = services.tenants.assign({**tenant_values, "propertyId": created_property})
    return created_property, result.ref.id


@pytest.fixture
def complete_values(tenancy):
    property_id, tenant_id = tenancy
    values = {"propertyId": property_id, "tenantId": tenant_id}
    for section in CHECKLIST_SECTIONS:
        if section.required:
            values[section.key] = {key: True for key in section.item_keys}
    return values


# =============================================================================
# Completeness
# =============================================================================


class TestIncompleteItems:
    def test_everything_missing_when_empty(self):
        required = sum(len(s.items) for s in CHECKLIST_SECTIONS if s.required)
        assert len(incomplete_required_items({})) == required

    def test_optional_section_ignored(self, complete_values):
        assert incomplete_required_items(complete_values) == []

    def test_missing_item_path(self, complete_values):
        complete_values["deposit"]["schemeLeaflet"] = False
        missing = incomplete_required_items(complete_values)
        assert [m.path for m in missing] == ["deposit.schemeLeaflet"]
        assert missing[0].label == "Deposit Scheme Leaflet"


# =============================================================================
# Saving
# =============================================================================


class TestSaveChecklist:
    """Tests for ChecklistService.create and update."""

    def test_complete_saves_without_prompt(self, services, complete_values, navigator):
        prompt = RecordingPrompt(False)
        result = services.checklists.create(complete_values, prompt)
        assert isinstance(result, MutationSuccess)
        assert prompt.asked == []
        assert navigator.current == tenant_url(complete_values["tenantId"], complete_values["propertyId"])

    def test_incomplete_declined_writes_nothing(self, services, store, complete_values):
        complete_values["beforeTenancy"]["epc"] = False
        before = store.count()
        prompt = RecordingPrompt(False)

        result = services.checklists.create(complete_values, prompt)

        assert isinstance(result, MutationCancelled)
        assert store.count() == before
        assert prompt.asked[0].kind == ConfirmationKind.SAVE_INCOMPLETE
        assert "Energy Performance Certificate" in prompt.asked[0].description

    def test_incomplete_confirmed_saves(self, services, complete_values):
        complete_values["beforeTenancy"]["epc"] = False
        result = services.checklists.create(complete_values, confirmed_for(ConfirmationKind.SAVE_INCOMPLETE))
        assert result.ok
        stored = services.checklists.get(complete_values["propertyId"], result.ref.id)
        assert stored["beforeTenancy"]["epc"] is False

    def test_listed_for_tenant(self, services, complete_values):
        services.checklists.create(complete_values, never_confirm)
        property_id, tenant_id = complete_values["propertyId"], complete_values["tenantId"]
        assert len(services.checklists.list_for_tenant(property_id, tenant_id)) == 1
        assert services.checklists.list_for_tenant(property_id, "other") == []

    def test_update_asks_again(self, services, complete_values):
        created = services.checklists.create(complete_values, never_confirm)
        complete_values["atMoveIn"]["inventory"] = False
        result = services.checklists.update(
            complete_values["propertyId"], created.ref.id, complete_values, never_confirm
        )
        assert isinstance(result, MutationCancelled)
        stored = services.checklists.get(complete_values["propertyId"], created.ref.id)
        assert stored["atMoveIn"]["inventory"] is True
