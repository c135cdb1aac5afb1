"""
Form Schemas - Pydantic Models for Every Portfolio Form

Python attributes are snake_case; stored documents use the camelCase keys
produced by the alias generator, so ``monthly_rent`` is written as
``monthlyRent``. Submitted values may use either spelling.

Messages are written for inline display next to the field.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Callable, Final, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    create_model,
    field_validator,
)
from pydantic.alias_generators import to_camel

from core.lifecycle import InspectionStatus, MaintenanceStatus, PropertyStatus
from core.portfolio.catalogues import (
    CHECKLIST_SECTIONS,
    HMO_SECTIONS,
    SINGLE_LET_SECTIONS,
    CatalogueSection,
)

UK_POSTCODE_PATTERN: Final = re.compile(r"^[A-Z]{1,2}[0-9][A-Z0-9]? ?[0-9][A-Z]{2}$", re.IGNORECASE)

# Mobile and landline, optional +44 prefix and extension
UK_PHONE_PATTERN: Final = re.compile(
    r"^(((\+44\s?\d{4}|\(?0\d{4}\)?)\s?\d{3}\s?\d{3})"
    r"|((\+44\s?\d{3}|\(?0\d{3}\)?)\s?\d{3}\s?\d{4})"
    r"|((\+44\s?\d{2}|\(?0\d{2}\)?)\s?\d{4}\s?\d{4}))"
    r"(\s?\#(\d{4}|\d{3}))?$"
)

EMAIL_PATTERN: Final = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# =============================================================================
# Building Blocks
# =============================================================================


class FormModel(BaseModel):
    """Base for top-level forms: camelCase keys, trimmed strings."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


class SectionModel(BaseModel):
    """Base for catalogue sections; field names are already camelCase."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


def min_chars(length: int, message: str) -> AfterValidator:
    def check(value: str) -> str:
        if len(value) < length:
            raise ValueError(message)
        return value

    return AfterValidator(check)


def at_least(minimum: float, message: str) -> AfterValidator:
    def check(value: Optional[float]) -> Optional[float]:
        if value is not None and value < minimum:
            raise ValueError(message)
        return value

    return AfterValidator(check)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _live_status(archived: Enum) -> Callable[[Any], Any]:
    def check(value: Any) -> Any:
        if value == archived:
            raise ValueError(f"Status cannot be set to {archived.value} from a form.")
        return value

    return check


# =============================================================================
# Properties
# =============================================================================


class PropertyType(Enum):
    HOUSE = "House"
    FLAT = "Flat"
    HMO = "HMO"
    BUNGALOW = "Bungalow"
    MAISONETTE = "Maisonette"
    STUDIO = "Studio"


class AddressForm(FormModel):
    name_or_number: Optional[str] = None
    street: Annotated[str, min_chars(3, "Please enter a valid street address.")]
    city: Annotated[str, min_chars(2, "Please enter a valid city or town.")]
    county: Annotated[str, min_chars(2, "Please enter a county.")]
    postcode: str

    @field_validator("postcode")
    @classmethod
    def check_postcode(cls, value: str) -> str:
        if not UK_POSTCODE_PATTERN.match(value):
            raise ValueError("Please enter a valid UK postcode (e.g. SW1A 1AA).")
        return value.upper()


class TenancyTerms(FormModel):
    monthly_rent: Annotated[Optional[float], at_least(0, "Rent cannot be negative")] = None
    deposit_amount: Annotated[Optional[float], at_least(0, "Deposit cannot be negative")] = None
    deposit_scheme: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("deposit_scheme")
    @classmethod
    def scheme_required_with_deposit(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        amount = info.data.get("deposit_amount")
        if amount and amount > 0 and not (value or "").strip():
            raise ValueError("Deposit scheme is required if a deposit amount is entered.")
        return value or None


class PropertyForm(FormModel):
    address: AddressForm
    property_type: PropertyType
    status: Annotated[PropertyStatus, AfterValidator(_live_status(PropertyStatus.DELETED))] = (
        PropertyStatus.VACANT
    )
    bedrooms: Annotated[int, at_least(0, "Bedrooms cannot be negative")] = 0
    bathrooms: Annotated[int, at_least(0, "Bathrooms cannot be negative")] = 0
    notes: Optional[str] = None
    image_url: Optional[str] = None
    additional_image_urls: Optional[list[str]] = None
    purchase_price: Annotated[Optional[float], at_least(0, "Price cannot be negative")] = None
    current_valuation: Annotated[Optional[float], at_least(0, "Valuation cannot be negative")] = None
    tenancy: Optional[TenancyTerms] = None

    @field_validator("image_url", "notes", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)


# =============================================================================
# Tenants
# =============================================================================


class TenantForm(FormModel):
    name: Annotated[str, min_chars(2, "Name is too short")]
    email: str
    telephone: str
    property_id: Annotated[str, min_chars(1, "Please select a property.")]
    monthly_rent: Annotated[Optional[float], at_least(0, "Rent cannot be negative")] = None
    tenancy_start_date: date
    tenancy_end_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("tenancy_end_date", "monthly_rent", "notes", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Please enter a valid email address.")
        return value.lower()

    @field_validator("telephone")
    @classmethod
    def check_telephone(cls, value: str) -> str:
        if not UK_PHONE_PATTERN.match(value):
            raise ValueError("Please enter a valid UK phone number.")
        return value

    @field_validator("tenancy_end_date")
    @classmethod
    def end_after_start(cls, value: Optional[date], info: ValidationInfo) -> Optional[date]:
        start = info.data.get("tenancy_start_date")
        if value is not None and start is not None and value < start:
            raise ValueError("Tenancy end date must be after the start date.")
        return value


# =============================================================================
# Contractors
# =============================================================================


class ContractorForm(FormModel):
    name: Annotated[str, min_chars(2, "Name is too short")]
    trade: Annotated[str, min_chars(2, "Trade is too short")]
    phone: Annotated[str, min_chars(10, "Phone number seems too short")]
    email: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("email", "notes", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address")
        return value


# =============================================================================
# Catalogue Sections
# =============================================================================


def section_model(section: CatalogueSection, prefix: str) -> type[SectionModel]:
    """Build the pydantic model for one catalogue section."""
    fields: dict[str, Any] = {key: (bool, False) for key in section.item_keys}
    fields[section.notes_key] = (Optional[str], None)
    if section.concerns_key:
        fields[section.concerns_key] = (Optional[str], None)
    for key in section.date_keys:
        fields[key] = (Optional[datetime], None)
    name = f"{prefix}{section.key[0].upper()}{section.key[1:]}Section"
    return create_model(name, __base__=SectionModel, **fields)


def _section_fields(
    sections: tuple[CatalogueSection, ...], prefix: str, always_present: bool
) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for section in sections:
        model = section_model(section, prefix)
        if always_present:
            fields[section.key] = (model, Field(default_factory=model, alias=section.key))
        else:
            fields[section.key] = (Optional[model], Field(default=None, alias=section.key))
    return fields


# =============================================================================
# Checklists
# =============================================================================


class ChecklistBase(FormModel):
    property_id: Annotated[str, min_chars(1, "A property must be selected.")]
    tenant_id: Annotated[str, min_chars(1, "A tenant must be selected.")]


ChecklistForm = create_model(
    "ChecklistForm",
    __base__=ChecklistBase,
    **_section_fields(CHECKLIST_SECTIONS, "Checklist", always_present=True),
)


# =============================================================================
# Inspections
# =============================================================================


class InspectionBase(FormModel):
    property_id: Annotated[str, min_chars(1, "Please select a property.")]
    status: Annotated[InspectionStatus, AfterValidator(_live_status(InspectionStatus.DELETED))] = (
        InspectionStatus.COMPLETED
    )
    scheduled_date: datetime
    completed_date: Optional[datetime] = None
    inspector_name: Optional[str] = None
    tenant_present_name: Optional[str] = None

    @field_validator("completed_date", "tenant_present_name", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)


class HmoInspectionBase(InspectionBase):
    inspector_name: Annotated[str, min_chars(1, "Inspector name is required")]
    occupant_count: Annotated[int, at_least(1, "Occupant count must be at least 1")]
    licence_expiry_date: Optional[datetime] = None


SingleLetInspectionForm = create_model(
    "SingleLetInspectionForm",
    __base__=InspectionBase,
    **_section_fields(SINGLE_LET_SECTIONS, "SingleLet", always_present=False),
)

HmoInspectionForm = create_model(
    "HmoInspectionForm",
    __base__=HmoInspectionBase,
    **_section_fields(HMO_SECTIONS, "Hmo", always_present=False),
)


# =============================================================================
# Maintenance
# =============================================================================


class MaintenanceCategory(Enum):
    PLUMBING = "Plumbing"
    ELECTRICAL = "Electrical"
    HEATING = "Heating"
    STRUCTURAL = "Structural"
    APPLIANCES = "Appliances"
    GARDEN = "Garden"
    CLEANING = "Cleaning"
    PEST_CONTROL = "Pest Control"
    OTHER = "Other"


class MaintenancePriority(Enum):
    EMERGENCY = "Emergency"
    URGENT = "Urgent"
    ROUTINE = "Routine"
    LOW = "Low"


class MaintenanceForm(FormModel):
    property_id: Annotated[str, min_chars(1, "Please select a property.")]
    title: Annotated[str, min_chars(3, "Title is too short")]
    description: Optional[str] = None
    category: MaintenanceCategory
    other_category_details: Optional[str] = None
    priority: MaintenancePriority
    reported_by: Optional[str] = None
    reported_date: datetime
    contractor_id: Optional[str] = None
    contractor_name: Optional[str] = None
    contractor_phone: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    estimated_cost: Annotated[Optional[float], at_least(0, "Cost cannot be negative")] = None
    notes: Optional[str] = None

    @field_validator("scheduled_date", "estimated_cost", "contractor_id", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)


class MaintenanceUpdateForm(MaintenanceForm):
    status: MaintenanceStatus


# =============================================================================
# Finances
# =============================================================================

MONTHS: Final[tuple[str, ...]] = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


class ExpenseType(Enum):
    REPAIRS = "Repairs and Maintenance"
    UTILITIES = "Utilities"
    INSURANCE = "Insurance"
    MORTGAGE_INTEREST = "Mortgage Interest"
    CLEANING = "Cleaning"
    GARDENING = "Gardening"
    LETTING_AGENT_FEES = "Letting Agent Fees"
    OTHER = "Other"


class PaymentStatus(Enum):
    PAID = "Paid"
    PARTIALLY_PAID = "Partially Paid"
    UNPAID = "Unpaid"
    PENDING = "Pending"


class ExpenseForm(FormModel):
    property_id: Annotated[str, min_chars(1, "Please select a property.")]
    spent_on: date = Field(alias="date")
    expense_type: ExpenseType
    amount: Annotated[float, at_least(0.01, "Amount must be greater than zero.")]
    paid_by: Annotated[str, min_chars(1, "This field is required.")] = "Landlord"
    notes: Optional[str] = None

    @field_validator("notes", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)


class RentPaymentForm(FormModel):
    year: Annotated[int, at_least(2000, "Please choose a valid year.")]
    month: str
    status: PaymentStatus
    expected_amount: Annotated[float, at_least(0, "Rent cannot be negative")] = 0
    amount_paid: Annotated[Optional[float], at_least(0, "Amount cannot be negative")] = Field(
        default=None, validate_default=True
    )

    @field_validator("month")
    @classmethod
    def check_month(cls, value: str) -> str:
        if value not in MONTHS:
            raise ValueError("Please choose a month.")
        return value

    @field_validator("amount_paid")
    @classmethod
    def partial_needs_amount(cls, value: Optional[float], info: ValidationInfo) -> Optional[float]:
        if info.data.get("status") == PaymentStatus.PARTIALLY_PAID and not value:
            raise ValueError("Enter the amount received.")
        return value


# =============================================================================
# Documents
# =============================================================================


class DocumentType(Enum):
    TENANCY_AGREEMENT = "Tenancy Agreement"
    INVENTORY = "Inventory"
    GAS_SAFETY = "Gas Safety Certificate"
    ELECTRICAL = "Electrical Certificate"
    EPC = "EPC"
    INSURANCE = "Insurance"
    DEPOSIT_PROTECTION = "Deposit Protection"
    LICENCE = "Licence"
    CORRESPONDENCE = "Correspondence"
    INVOICE = "Invoice"


class DocumentForm(FormModel):
    title: Annotated[str, min_chars(3, "Title is too short")]
    property_id: Annotated[str, min_chars(1, "Please select a property.")]
    document_type: DocumentType
    issue_date: date
    expiry_date: date
    notes: Optional[str] = None

    @field_validator("notes", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("expiry_date")
    @classmethod
    def expiry_after_issue(cls, value: date, info: ValidationInfo) -> date:
        issued = info.data.get("issue_date")
        if issued is not None and value <= issued:
            raise ValueError("Expiry date must be after the issue date.")
        return value


# =============================================================================
# Tenant Screening
# =============================================================================


class ScreeningSection(FormModel):
    notes: Optional[str] = None


class RightToRentCheck(ScreeningSection):
    check_date: Optional[date] = None
    uk_passport: bool = False
    share_code: bool = False
    visa_permit: bool = False

    @field_validator("check_date", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)


class IdVerificationCheck(ScreeningSection):
    photo_match: bool = False
    name_match: bool = False
    dob_consistent: bool = False


class CreditCheck(ScreeningSection):
    agency_used: Optional[str] = None
    report_received: bool = False
    passed: bool = False


class EmploymentIncomeCheck(ScreeningSection):
    bank_statements: bool = False
    payslips: bool = False
    employment_contract: bool = False
    employer_reference: bool = False
    sa302: bool = False
    accountant_reference: bool = False


class LandlordReferenceCheck(ScreeningSection):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    rent_on_time: bool = False
    any_arrears: bool = False
    property_condition_good: bool = False
    would_rent_again: bool = False

    @field_validator("name", "email", "phone", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address.")
        return value


class AddressHistoryCheck(ScreeningSection):
    verified: bool = False


class AffordabilityCheck(ScreeningSection):
    passed: bool = False
    guarantor_considered: bool = False


class GuarantorCheck(ScreeningSection):
    required: bool = False
    id_check: bool = False
    credit_check: bool = False
    income_verified: bool = False


class ScreeningForm(FormModel):
    tenant_id: Annotated[str, min_chars(1, "Please select a tenant.")]
    property_id: Annotated[str, min_chars(1, "Please select a property.")]
    screening_date: date
    monthly_income: Annotated[Optional[float], at_least(0, "Income cannot be negative")] = None
    right_to_rent: RightToRentCheck = Field(default_factory=RightToRentCheck)
    id_verification: IdVerificationCheck = Field(default_factory=IdVerificationCheck)
    credit_check: CreditCheck = Field(default_factory=CreditCheck)
    employment_income: EmploymentIncomeCheck = Field(default_factory=EmploymentIncomeCheck)
    landlord_reference: LandlordReferenceCheck = Field(default_factory=LandlordReferenceCheck)
    address_history: AddressHistoryCheck = Field(default_factory=AddressHistoryCheck)
    affordability: AffordabilityCheck = Field(default_factory=AffordabilityCheck)
    guarantor: GuarantorCheck = Field(default_factory=GuarantorCheck)
    overall_notes: Optional[str] = None

    @field_validator("monthly_income", "overall_notes", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)
