"""
Tests for expenses, the rent ledger and the annual summary.

Tests covering:
1. Expenses are logged, listed by year and deleted only when confirmed
2. The rent ledger expects the monthly rent and records what was paid
3. Annual totals count active properties only
4. HMRC categories group expense types and format amounts
5. The tax export renders as a PDF
"""

import pytest

from conftest import OWNER_ID
from core.lifecycle import ConfirmationKind, confirmed_for, never_confirm
from core.mutation import MutationCancelled, MutationFailed, MutationRejected
from core.portfolio.finances import (
    EXPENSES_URL,
    RENT_RECEIVED,
    annual_summary,
    expenses_in_year,
    rent_statement,
    tax_categories,
)
from core.store.locator import rent_payment_doc
from reporting.tax_pdf import TaxReportGenerator


@pytest.fixture
def let_property(services, property_values):
    """Id of a property let at 950 a month."""
    result = services.properties.create({**property_values, "tenancy": {"monthlyRent": 950}})
    assert result.ok
    return result.ref.id


@pytest.fixture
def expense_values(let_property):
    return {
        "propertyId": let_property,
        "date": "2026-03-04",
        "expenseType": "Repairs and Maintenance",
        "amount": 120.5,
        "notes": "",
    }


@pytest.fixture
def expense_id(services, expense_values):
    return services.finances.log_expense(expense_values).ref.id


# =============================================================================
# Expenses
# =============================================================================


class TestExpenses:
    """Tests for FinanceService expense writes and listings."""

    def test_logged(self, services, let_property, expense_id, notifier, navigator):
        expense = services.finances.get(let_property, expense_id)
        assert expense["date"] == "2026-03-04"
        assert expense["paidBy"] == "Landlord"
        assert expense["ownerId"] == OWNER_ID
        assert "notes" not in expense
        assert notifier.toasts[-1].title == "Expense Logged"
        assert navigator.current == EXPENSES_URL

    def test_amount_must_be_positive(self, services, expense_values):
        result = services.finances.log_expense({**expense_values, "amount": 0})
        assert isinstance(result, MutationRejected)
        assert result.errors[0].path == "amount"
        assert result.errors[0].message == "Amount must be greater than zero."

    def test_unknown_type(self, services, expense_values):
        result = services.finances.log_expense({**expense_values, "expenseType": "Holiday"})
        assert [e.path for e in result.errors] == ["expenseType"]

    def test_listed_by_year_newest_first(self, services, let_property, expense_values):
        ids = {
            day: services.finances.log_expense({**expense_values, "date": day}).ref.id
            for day in ("2025-12-30", "2026-02-01", "2026-05-01")
        }
        assert [e["id"] for e in services.finances.list_expenses(year=2026)] == [
            ids["2026-05-01"],
            ids["2026-02-01"],
        ]
        assert len(services.finances.list_expenses(let_property)) == 3

    def test_update(self, services, let_property, expense_id, expense_values, notifier):
        result = services.finances.update_expense(let_property, expense_id, {**expense_values, "amount": 80})
        assert result.ok
        assert services.finances.get(let_property, expense_id)["amount"] == 80
        assert notifier.toasts[-1].description == "Expense record saved successfully."

    def test_delete_needs_confirmation(self, services, let_property, expense_id):
        result = services.finances.delete_expense(let_property, expense_id, never_confirm)
        assert isinstance(result, MutationCancelled)
        assert services.finances.list_expenses(let_property)

    def test_delete(self, services, let_property, expense_id, notifier):
        result = services.finances.delete_expense(
            let_property, expense_id, confirmed_for(ConfirmationKind.PERMANENT_DELETE)
        )
        assert result.ok
        assert services.finances.list_expenses(let_property) == []
        assert notifier.toasts[-1].title == "Record Deleted"

    def test_delete_missing(self, services, let_property):
        result = services.finances.delete_expense(
            let_property, "gone", confirmed_for(ConfirmationKind.PERMANENT_DELETE)
        )
        assert isinstance(result, MutationFailed)
        assert result.toast.title == "Delete Failed"


# =============================================================================
# Rent Ledger
# =============================================================================


class TestRentLedger:
    """Tests for the monthly rent ledger."""

    def test_months_default_to_pending(self, services, let_property):
        rows = services.finances.statement(let_property, 2026)
        assert [row["month"] for row in rows][:3] == ["January", "February", "March"]
        assert len(rows) == 12
        assert rows[0] == {"month": "January", "rent": 950, "status": "Pending", "amountPaid": 0}

    def test_paid_records_expected_rent(self, services, store, let_property, notifier):
        result = services.finances.record_rent(let_property, 2026, "March", "Paid")
        assert result.ok
        stored = store.get(rent_payment_doc(OWNER_ID, let_property, 2026, "March")).data
        assert stored["amountPaid"] == 950
        assert stored["expectedAmount"] == 950
        assert notifier.toasts[-1].title == "Ledger Updated"
        assert services.finances.statement(let_property, 2026)[2]["status"] == "Paid"

    def test_changing_status_rewrites_the_month(self, services, store, let_property):
        services.finances.record_rent(let_property, 2026, "March", "Paid")
        before = store.count()
        services.finances.record_rent(let_property, 2026, "March", "Unpaid")
        assert store.count() == before
        assert store.get(rent_payment_doc(OWNER_ID, let_property, 2026, "March")).data["amountPaid"] == 0

    def test_partial_payment_needs_amount(self, services, store, let_property):
        result = services.finances.record_rent(let_property, 2026, "April", "Partially Paid")
        assert [e.path for e in result.errors] == ["amountPaid"]

        assert services.finances.record_rent(let_property, 2026, "April", "Partially Paid", 400).ok
        assert store.get(rent_payment_doc(OWNER_ID, let_property, 2026, "April")).data["amountPaid"] == 400

    def test_unknown_month(self, services, let_property):
        result = services.finances.record_rent(let_property, 2026, "Smarch", "Paid")
        assert [e.path for e in result.errors] == ["month"]

    def test_recorded_expected_amount_wins(self):
        rows = rent_statement([{"month": "March", "expectedAmount": 900, "status": "Paid", "amountPaid": 900}], 950)
        assert rows[2]["rent"] == 900
        assert rows[3]["rent"] == 950


# =============================================================================
# Annual Summary
# =============================================================================


@pytest.fixture
def properties():
    return [{"id": "p1", "tenancy": {"monthlyRent": 1000}}, {"id": "p2"}]


@pytest.fixture
def expenses():
    return [
        {"propertyId": "p1", "date": "2026-01-10", "expenseType": "Insurance", "amount": 300},
        {"propertyId": "p1", "date": "2026-02-10", "expenseType": "Repairs and Maintenance", "amount": 200},
        {"propertyId": "p1", "date": "2026-03-10", "expenseType": "Cleaning", "amount": 50},
        {"propertyId": "p2", "date": "2026-04-10", "expenseType": "Mortgage Interest", "amount": 400},
        {"propertyId": "p1", "date": "2025-12-10", "expenseType": "Other", "amount": 999},
        {"propertyId": "gone", "date": "2026-05-10", "expenseType": "Other", "amount": 10},
    ]


@pytest.fixture
def payments():
    return [
        {"propertyId": "p1", "year": 2026, "month": "January", "amountPaid": 1000},
        {"propertyId": "p1", "year": 2026, "month": "February", "amountPaid": 500},
        {"propertyId": "p1", "year": 2025, "month": "December", "amountPaid": 1000},
        {"propertyId": "gone", "year": 2026, "month": "January", "amountPaid": 1000},
    ]


class TestAnnualSummary:
    """Tests for annual_summary and tax_categories."""

    def test_portfolio_totals(self, properties, expenses, payments):
        summary = annual_summary(properties, expenses, payments, 2026)
        assert summary.projected_income == 12000
        assert summary.rent_received == 1500
        assert summary.total_expenses == 950
        assert summary.net_income == 550
        assert summary.by_category == [
            ("Mortgage Interest", 400),
            ("Insurance", 300),
            ("Repairs and Maintenance", 200),
            ("Cleaning", 50),
        ]

    def test_one_property(self, properties, expenses, payments):
        summary = annual_summary(properties, expenses, payments, 2026, property_id="p2")
        assert summary.projected_income == 0
        assert summary.rent_received == 0
        assert summary.total_expenses == 400

    def test_display_amounts(self, properties, expenses, payments):
        display = annual_summary(properties, expenses, payments, 2026).to_dict()["display"]
        assert display["rent_received"] == "£1,500"
        assert display["net_income"] == "£550"

    def test_tax_categories(self, properties, expenses, payments):
        rows = tax_categories(annual_summary(properties, expenses, payments, 2026))
        assert rows[0] == (RENT_RECEIVED, "£1,500")
        assert dict(rows) == {
            RENT_RECEIVED: "£1,500",
            "Rates, council tax, insurance, ground rents etc.": "£300",
            "Property repairs and maintenance": "£250",
            "Management fees and other professional fees": "£0",
            "Other allowable property expenses": "£0",
            "Residential finance costs (for reference)": "£400",
        }

    def test_undated_expenses_skipped(self):
        assert expenses_in_year([{"amount": 5}, {"date": "not a date", "amount": 5}], 2026) == []

    def test_archived_property_left_out(self, services, let_property, expense_id):
        services.finances.record_rent(let_property, 2026, "January", "Paid")
        summary = services.finances.summary(2026)
        assert summary.projected_income == 950 * 12
        assert summary.rent_received == 950
        assert summary.total_expenses == 120.5

        services.properties.soft_delete(let_property, confirmed_for(ConfirmationKind.ARCHIVE))
        summary = services.finances.summary(2026)
        assert (summary.projected_income, summary.rent_received, summary.total_expenses) == (0, 0, 0)


class TestTaxReport:
    def test_renders_pdf(self, properties, expenses, payments):
        summary = annual_summary(properties, expenses, payments, 2026)
        result = TaxReportGenerator().generate(summary, "owner@example.com")
        assert result.content.startswith(b"%PDF")
        assert result.filename == "HMRC-Tax-Report-2026.pdf"
