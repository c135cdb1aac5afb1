"""
Tests for tenant screening records.

Tests covering:
1. Screenings are stored beneath an existing tenant
2. Unsent sections default to unchecked; field errors use stored keys
3. Edits keep sections that were not sent
4. Rent above 40% of income is flagged
"""

import pytest

from core.mutation import MutationRejected
from core.portfolio.screenings import affordability
from core.portfolio.tenants import tenant_url


@pytest.fixture
def assigned(services, created_property, tenant_values):
    """(property_id, tenant_id) of a tenant paying 950 a month."""
    result = services.tenants.assign({**tenant_values, "propertyId": created_property})
    assert result.ok
    return created_property, result.ref.id


@pytest.fixture
def screening_values(assigned):
    property_id, tenant_id = assigned
    return {
        "propertyId": property_id,
        "tenantId": tenant_id,
        "screeningDate": "2026-01-05",
        "monthlyIncome": 3000,
        "rightToRent": {"ukPassport": True, "checkDate": "2026-01-04"},
        "creditCheck": {"agencyUsed": "Experian", "reportReceived": True, "passed": True},
        "landlordReference": {"name": "J. Evans", "email": "", "rentOnTime": True},
    }


@pytest.fixture
def screening_id(services, screening_values):
    result = services.screenings.create(screening_values)
    assert result.ok
    return result.ref.id


# =============================================================================
# Saving
# =============================================================================


class TestCreateScreening:
    """Tests for ScreeningService.create."""

    def test_saved_under_tenant(self, services, assigned, screening_id, notifier, navigator):
        property_id, tenant_id = assigned
        screening = services.screenings.get(property_id, tenant_id, screening_id)
        assert screening["rightToRent"]["ukPassport"] is True
        assert screening["rightToRent"]["checkDate"] == "2026-01-04"
        assert screening["creditCheck"]["agencyUsed"] == "Experian"
        assert "email" not in screening["landlordReference"]
        assert notifier.toasts[-1].title == "Screening Record Saved"
        assert navigator.current == tenant_url(tenant_id, property_id)

    def test_unsent_sections_unchecked(self, services, assigned, screening_id):
        screening = services.screenings.get(*assigned, screening_id)
        assert screening["guarantor"] == {
            "required": False,
            "idCheck": False,
            "creditCheck": False,
            "incomeVerified": False,
        }

    def test_unknown_tenant(self, services, store, screening_values):
        before = store.count()
        result = services.screenings.create({**screening_values, "tenantId": "nobody"})
        assert isinstance(result, MutationRejected)
        assert result.errors[0].path == "tenantId"
        assert store.count() == before

    def test_negative_income(self, services, screening_values):
        result = services.screenings.create({**screening_values, "monthlyIncome": -1})
        assert result.errors[0].path == "monthlyIncome"
        assert result.errors[0].message == "Income cannot be negative"

    def test_bad_reference_email(self, services, screening_values):
        values = {**screening_values, "landlordReference": {"email": "not-an-email"}}
        result = services.screenings.create(values)
        assert result.errors[0].path == "landlordReference.email"
        assert result.errors[0].message == "Invalid email address."

    def test_listed_newest_first(self, services, assigned, screening_values):
        older = services.screenings.create({**screening_values, "screeningDate": "2025-11-01"}).ref.id
        newer = services.screenings.create(screening_values).ref.id
        assert [s["id"] for s in services.screenings.list_for_tenant(*assigned)] == [newer, older]


# =============================================================================
# Editing
# =============================================================================


class TestUpdateScreening:
    def test_unsent_sections_kept(self, services, assigned, screening_id, notifier):
        property_id, tenant_id = assigned
        result = services.screenings.update(
            property_id,
            tenant_id,
            screening_id,
            {"screeningDate": "2026-01-05", "guarantor": {"required": True}},
        )
        assert result.ok
        screening = services.screenings.get(property_id, tenant_id, screening_id)
        assert screening["guarantor"]["required"] is True
        assert screening["creditCheck"]["passed"] is True
        assert screening["monthlyIncome"] == 3000
        assert notifier.toasts[-1].title == "Screening Record Updated"


# =============================================================================
# Affordability
# =============================================================================


class TestAffordability:
    def test_ratio(self):
        result = affordability(950, 3000)
        assert round(result.ratio, 1) == 31.7
        assert not result.risky
        assert result.to_dict() == {"ratio": "31.7", "risky": False}

    def test_risky_above_forty_percent(self):
        assert affordability(1300, 3000).risky
        assert not affordability(1200, 3000).risky

    def test_needs_rent_and_income(self):
        assert affordability(None, 3000) is None
        assert affordability(950, 0) is None

    def test_for_stored_screening(self, services, assigned, screening_id):
        result = services.screenings.affordability_for(*assigned, screening_id)
        assert result.to_dict()["ratio"] == "31.7"
