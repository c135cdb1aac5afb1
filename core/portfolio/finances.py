"""
Finances - Expenses, the Rent Ledger and the Annual Summary

Expenses are stored per property. The rent ledger keeps one document per
property and month, keyed ``{year}-{month}``, rewritten whole whenever the
month's status changes.

The summary and the tax categories are pure functions over loaded records.
Only active properties count towards them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from core.dates import to_date
from core.errors import DocumentNotFoundError
from core.lifecycle import PROPERTY_LIFECYCLE, ConfirmationKind, ConfirmationRequest, ConfirmPrompt
from core.mutation import MutationCancelled, MutationRejected, MutationResult, SuccessMessage
from core.portfolio.base import OwnerScopedService
from core.portfolio.schemas import MONTHS, ExpenseForm, ExpenseType, PaymentStatus, RentPaymentForm
from core.store.locator import (
    EXPENSES,
    RENT_PAYMENTS,
    CollectionRef,
    DocumentRef,
    Filter,
    Query,
    expense_doc,
    expenses_collection,
    portfolio_group,
    properties_collection,
    property_doc,
    rent_payment_doc,
    rent_payments_collection,
    scoped_query,
)
from utils.formatting import format_currency

logger = logging.getLogger(__name__)

EXPENSES_URL = "/dashboard/expenses"

RENT_RECEIVED = "Rent received (total for period)"

# HMRC self-assessment groupings, in the order they are printed
TAX_CATEGORIES: tuple[tuple[str, tuple[ExpenseType, ...]], ...] = (
    ("Rates, council tax, insurance, ground rents etc.", (ExpenseType.INSURANCE, ExpenseType.UTILITIES)),
    (
        "Property repairs and maintenance",
        (ExpenseType.REPAIRS, ExpenseType.CLEANING, ExpenseType.GARDENING),
    ),
    ("Management fees and other professional fees", (ExpenseType.LETTING_AGENT_FEES,)),
    ("Other allowable property expenses", (ExpenseType.OTHER,)),
    ("Residential finance costs (for reference)", (ExpenseType.MORTGAGE_INTEREST,)),
)

FINANCE_COSTS_NOTE = (
    "Residential finance costs (Mortgage Interest) are listed for reference. Under UK law "
    "(Section 24), these are typically claimed as a 20% basic rate tax reduction on your "
    "overall return rather than as a direct expense against rental profit."
)


def _amount(record: Mapping[str, Any], key: str) -> float:
    try:
        return float(record.get(key) or 0)
    except (TypeError, ValueError):
        return 0.0


def _monthly_rent(prop: Optional[Mapping[str, Any]]) -> float:
    return _amount((prop or {}).get("tenancy") or {}, "monthlyRent")


def expenses_in_year(expenses: Iterable[Mapping[str, Any]], year: int) -> list[Mapping[str, Any]]:
    """Expenses dated within ``year``; undated expenses are left out."""
    kept = []
    for expense in expenses:
        spent = to_date(expense.get("date"))
        if spent is not None and spent.year == year:
            kept.append(expense)
    return kept


def amount_paid_for(status: PaymentStatus, expected: float, partial: Optional[float] = None) -> float:
    """What a ledger month records as received."""
    if status == PaymentStatus.PAID:
        return expected
    if status == PaymentStatus.PARTIALLY_PAID:
        return partial or 0.0
    return 0.0


# =============================================================================
# Rent Statement
# =============================================================================


def rent_statement(payments: Iterable[Mapping[str, Any]], monthly_rent: float) -> list[dict[str, Any]]:
    """
    Twelve ledger rows, January first.

    A month without a payment record expects the property's monthly rent
    and shows as Pending.
    """
    by_month = {payment.get("month"): payment for payment in payments}
    rows = []
    for month in MONTHS:
        payment = by_month.get(month) or {}
        expected = payment.get("expectedAmount")
        rows.append({
            "month": month,
            "rent": monthly_rent if expected is None else expected,
            "status": payment.get("status") or PaymentStatus.PENDING.value,
            "amountPaid": _amount(payment, "amountPaid"),
        })
    return rows


# =============================================================================
# Annual Summary
# =============================================================================


@dataclass(frozen=True)
class FinancialSummary:
    """Income and spending for one year, for one property or the portfolio."""

    year: int
    projected_income: float
    rent_received: float
    total_expenses: float
    by_category: list[tuple[str, float]] = field(default_factory=list)

    @property
    def net_income(self) -> float:
        return self.rent_received - self.total_expenses

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "projected_income": self.projected_income,
            "rent_received": self.rent_received,
            "total_expenses": self.total_expenses,
            "net_income": self.net_income,
            "by_category": [{"category": name, "amount": amount} for name, amount in self.by_category],
            "display": {
                "projected_income": format_currency(self.projected_income),
                "rent_received": format_currency(self.rent_received),
                "total_expenses": format_currency(self.total_expenses),
                "net_income": format_currency(self.net_income),
            },
        }


def annual_summary(
    properties: Iterable[Mapping[str, Any]],
    expenses: Iterable[Mapping[str, Any]],
    payments: Iterable[Mapping[str, Any]],
    year: int,
    property_id: Optional[str] = None,
) -> FinancialSummary:
    """
    Summarise a year of income and expenses.

    Args:
        properties: Active properties; records for any other property are ignored
        expenses: Expense records from any year
        payments: Rent ledger records from any year
        year: Calendar year to summarise
        property_id: Narrow the summary to one property
    """
    in_scope = [p for p in properties if property_id is None or p.get("id") == property_id]
    ids = {p.get("id") for p in in_scope}

    spent = [e for e in expenses_in_year(expenses, year) if e.get("propertyId") in ids]
    received = [p for p in payments if p.get("year") == year and p.get("propertyId") in ids]

    totals: dict[str, float] = {}
    for expense in spent:
        category = expense.get("expenseType") or ExpenseType.OTHER.value
        totals[category] = totals.get(category, 0.0) + _amount(expense, "amount")

    return FinancialSummary(
        year=year,
        projected_income=sum(_monthly_rent(p) * 12 for p in in_scope),
        rent_received=sum(_amount(p, "amountPaid") for p in received),
        total_expenses=sum(totals.values()),
        by_category=sorted(totals.items(), key=lambda item: item[1], reverse=True),
    )


def tax_categories(summary: FinancialSummary) -> list[tuple[str, str]]:
    """Rows of the HMRC self-assessment export, amounts formatted as currency."""
    totals = dict(summary.by_category)
    rows = [(RENT_RECEIVED, format_currency(summary.rent_received))]
    for label, types in TAX_CATEGORIES:
        rows.append((label, format_currency(sum(totals.get(t.value, 0.0) for t in types))))
    return rows


# =============================================================================
# Service
# =============================================================================


class FinanceService(OwnerScopedService):
    """Expenses and the monthly rent ledger for one owner's properties."""

    def collection(self, property_id: Optional[str]) -> CollectionRef:
        return expenses_collection(self.owner_id, self.require(property_id, "propertyId", EXPENSES_URL))

    def ref(self, property_id: Optional[str], expense_id: Optional[str]) -> DocumentRef:
        return expense_doc(
            self.owner_id,
            self.require(property_id, "propertyId", EXPENSES_URL),
            self.require(expense_id, "expenseId", EXPENSES_URL),
        )

    def portfolio_query(self) -> Query:
        """Every expense across the portfolio, most recent first."""
        return scoped_query(
            portfolio_group(self.owner_id, EXPENSES), order_by="date", descending=True, group=True
        )

    def ledger_query(self, year: int, property_id: Optional[str] = None) -> Query:
        collection = (
            portfolio_group(self.owner_id, RENT_PAYMENTS)
            if property_id is None
            else rent_payments_collection(self.owner_id, self.require(property_id, "propertyId", EXPENSES_URL))
        )
        return scoped_query(collection, Filter("year", "==", year), group=property_id is None)

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, property_id: Optional[str], expense_id: Optional[str]) -> dict[str, Any]:
        return self.fetch_required(self.ref(property_id, expense_id), "Expense", EXPENSES_URL)

    def list_expenses(self, property_id: Optional[str] = None, year: Optional[int] = None) -> list[dict[str, Any]]:
        if property_id is None:
            expenses = self.list_documents(self.portfolio_query())
        else:
            expenses = self.list_documents(
                scoped_query(self.collection(property_id), order_by="date", descending=True)
            )
        return expenses if year is None else expenses_in_year(expenses, year)

    def list_payments(self, year: int, property_id: Optional[str] = None) -> list[dict[str, Any]]:
        return self.list_documents(self.ledger_query(year, property_id))

    def statement(self, property_id: Optional[str], year: int) -> list[dict[str, Any]]:
        """The property's twelve-month rent ledger for ``year``."""
        prop = self.fetch_required(
            property_doc(self.owner_id, self.require(property_id, "propertyId", EXPENSES_URL)),
            "Property",
            EXPENSES_URL,
        )
        return rent_statement(self.list_payments(year, property_id), _monthly_rent(prop))

    def summary(self, year: int, property_id: Optional[str] = None) -> FinancialSummary:
        properties = self.list_documents(
            self.live_status_query(properties_collection(self.owner_id), PROPERTY_LIFECYCLE)
        )
        return annual_summary(
            properties,
            self.list_expenses(),
            self.list_payments(year),
            year,
            property_id,
        )

    # =========================================================================
    # Expenses
    # =========================================================================

    def log_expense(self, values: Mapping[str, Any]) -> MutationResult:
        payload = self.pipeline.prepare(ExpenseForm, values, {"ownerId": self.owner_id})
        if isinstance(payload, MutationRejected):
            return payload
        collection = self.collection(payload["propertyId"])
        return self.pipeline.run_write(
            "create",
            collection.path,
            payload,
            lambda: self.store.create(collection, payload),
            SuccessMessage("Expense Logged", "The expense has been recorded.", EXPENSES_URL),
        )

    def update_expense(
        self, property_id: Optional[str], expense_id: Optional[str], values: Mapping[str, Any]
    ) -> MutationResult:
        return self.pipeline.update(
            self.ref(property_id, expense_id),
            ExpenseForm,
            {**values, "propertyId": property_id},
            SuccessMessage("Record Updated", "Expense record saved successfully.", EXPENSES_URL),
        )

    def delete_expense(
        self, property_id: Optional[str], expense_id: Optional[str], confirm: ConfirmPrompt
    ) -> MutationResult:
        """Remove an expense for good; expenses have no archive."""
        ref = self.ref(property_id, expense_id)
        request = ConfirmationRequest(
            ConfirmationKind.PERMANENT_DELETE,
            "Delete this expense?",
            "This action cannot be undone. The expense will be removed from your records.",
        )
        if not confirm(request):
            return MutationCancelled()

        def write() -> DocumentRef:
            if self.store.get(ref) is None:
                raise DocumentNotFoundError(f"Expense not found: {ref.path}")
            self.store.delete(ref)
            return ref

        return self.pipeline.run_write(
            "delete",
            ref.path,
            None,
            write,
            SuccessMessage("Record Deleted", "The expense has been removed.", EXPENSES_URL),
            failure_title="Delete Failed",
        )

    # =========================================================================
    # Rent Ledger
    # =========================================================================

    def record_rent(
        self,
        property_id: Optional[str],
        year: int,
        month: str,
        status: Any,
        amount_paid: Optional[float] = None,
    ) -> MutationResult:
        """
        Set one month's ledger status.

        The expected amount is the month's existing figure or the property's
        monthly rent. Paid months record the full expected amount; partially
        paid months record ``amount_paid``; anything else records nothing.
        """
        rows = {row["month"]: row for row in self.statement(property_id, year)}
        expected = rows[month]["rent"] if month in rows else 0.0
        form = self.pipeline.prepare(
            RentPaymentForm,
            {
                "year": year,
                "month": month,
                "status": status,
                "expectedAmount": expected,
                "amountPaid": amount_paid,
            },
        )
        if isinstance(form, MutationRejected):
            return form

        paid_status = PaymentStatus(form["status"])
        payload = {
            "ownerId": self.owner_id,
            "propertyId": property_id,
            "year": form["year"],
            "month": form["month"],
            "status": paid_status.value,
            "expectedAmount": form["expectedAmount"],
            "amountPaid": amount_paid_for(paid_status, form["expectedAmount"], form.get("amountPaid")),
        }
        ref = rent_payment_doc(self.owner_id, property_id, form["year"], form["month"])

        def write() -> DocumentRef:
            self.store.set(ref, payload)
            return ref

        return self.pipeline.run_write(
            "update",
            ref.path,
            payload,
            write,
            SuccessMessage("Ledger Updated", f"{month} {year} marked as {paid_status.value}.", EXPENSES_URL),
            failure_title="Update Failed",
        )
