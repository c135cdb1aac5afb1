"""
Catalogues - Checklist and Inspection Sections

Each section is a fixed list of yes/no items plus free-text notes. The
same catalogue drives the form schema, the completeness check and the
PDF export, so a key added here shows up everywhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final, Optional


@dataclass(frozen=True)
class CatalogueItem:
    key: str
    label: str


@dataclass(frozen=True)
class CatalogueSection:
    """One group of boolean items stored as a nested object."""

    key: str
    title: str
    items: tuple[CatalogueItem, ...]
    required: bool = False
    notes_key: str = "notes"
    concerns_key: Optional[str] = None
    date_keys: tuple[str, ...] = ()

    @property
    def item_keys(self) -> tuple[str, ...]:
        return tuple(item.key for item in self.items)

    def label_for(self, key: str) -> str:
        for item in self.items:
            if item.key == key:
                return item.label
        return key


def _section(key: str, title: str, *items: tuple[str, str], **options) -> CatalogueSection:
    return CatalogueSection(
        key=key,
        title=title,
        items=tuple(CatalogueItem(k, label) for k, label in items),
        **options,
    )


# =============================================================================
# Pre-Tenancy Checklist
# =============================================================================


CHECKLIST_SECTIONS: Final[tuple[CatalogueSection, ...]] = (
    _section(
        "beforeTenancy",
        "Before Tenancy Starts (Legal)",
        ("howToRentGuide", "How to Rent Guide"),
        ("epc", "Energy Performance Certificate"),
        ("gasSafety", "Gas Safety Certificate"),
        ("eicr", "Electrical Safety Report"),
        ("tenancyAgreement", "Signed Tenancy Agreement"),
        ("rightToRent", "Right to Rent check"),
        required=True,
    ),
    _section(
        "deposit",
        "If Taking a Deposit",
        ("prescribedInfo", "Deposit Prescribed Information"),
        ("schemeLeaflet", "Deposit Scheme Leaflet"),
        ("protectionCertificate", "Deposit protection certificate"),
        required=True,
    ),
    _section(
        "atMoveIn",
        "At / Just After Move-In",
        ("inventory", "Inventory & Schedule of Condition"),
        ("keysRecord", "Keys issued record"),
        ("emergencyContacts", "Emergency & repairs contact details"),
        ("privacyNotice", "Privacy Notice (GDPR)"),
        required=True,
    ),
    _section(
        "optional",
        "Optional but Smart",
        ("welcomeLetter", "Welcome letter"),
        ("applianceManuals", "Appliance manuals"),
        ("binInfo", "Bin & recycling info"),
        ("parkingInfo", "Parking / permit info"),
    ),
)


# =============================================================================
# Inspections
# =============================================================================


class InspectionType(Enum):
    SINGLE_LET = "Single-Let"
    HMO = "HMO"


SINGLE_LET_SECTIONS: Final[tuple[CatalogueSection, ...]] = (
    _section(
        "exterior",
        "Exterior",
        ("roofCondition", "Roof condition"),
        ("walls", "Walls, brickwork"),
        ("windowsAndDoors", "Windows and external doors"),
        ("garden", "Garden maintained"),
        ("pathways", "Pathways safe and clear"),
        ("bins", "Bins accessible"),
    ),
    _section(
        "safety",
        "Safety & Compliance",
        ("smokeAlarms", "Smoke alarms tested"),
        ("coAlarm", "CO alarm tested"),
        ("electricalSockets", "Electrical sockets safe"),
        ("gasCert", "Gas safety certificate valid"),
        ("eicr", "EICR valid"),
        ("patCert", "PAT Certificate valid"),
        ("noTampering", "No tampering with safety equipment"),
    ),
    _section(
        "interior",
        "Interior General Condition",
        ("wallsCeilingsFloors", "Walls, ceilings, floors"),
        ("noDamp", "No signs of damp or mould"),
        ("windows", "Windows open and close"),
        ("doors", "Internal doors and locks"),
        ("ventilation", "Adequate ventilation"),
        ("cleanliness", "General cleanliness acceptable"),
    ),
    _section(
        "kitchen",
        "Kitchen",
        ("worktops", "Worktops, cupboards, flooring"),
        ("sink", "Sink and taps"),
        ("oven", "Oven and hob"),
        ("fridge", "Fridge freezer"),
        ("washingMachine", "Washing machine (if supplied)"),
        ("ventilation", "Adequate ventilation"),
    ),
    _section(
        "bathrooms",
        "Bathrooms",
        ("toilet", "Toilet flushing"),
        ("shower", "Shower/bath working"),
        ("noLeaks", "No leaks from taps/pipes"),
        ("extractor", "Extractor fan working"),
        ("sealant", "Sealant and grout intact"),
        ("noMould", "No mould or damp"),
    ),
    _section(
        "heating",
        "Heating",
        ("boiler", "Boiler functioning"),
        ("radiators", "Radiators heating"),
        ("thermostat", "Thermostat working"),
        ("hotWater", "Hot water supply"),
    ),
    _section(
        "bedrooms",
        "Bedrooms",
        ("windows", "Windows and locks"),
        ("heating", "Heating operational"),
        ("noDamp", "No damp or mould"),
        ("flooring", "Flooring and walls"),
        ("furniture", "Furniture condition (if provided)"),
    ),
    _section(
        "tenantResponsibilities",
        "Tenant Responsibilities",
        ("clean", "Property kept clean"),
        ("noOccupants", "No unauthorised occupants"),
        ("noPets", "No unauthorised pets"),
        ("noSmoking", "No evidence of smoking"),
        ("noAlterations", "No unauthorised alterations"),
        concerns_key="concerns",
    ),
    _section(
        "followUpActions",
        "Follow-Up Actions",
        ("repairsRequired", "Repairs Required"),
        ("urgentSafetyIssues", "Urgent Safety Issues"),
        ("maintenanceScheduled", "Maintenance Scheduled"),
    ),
)

HMO_SECTIONS: Final[tuple[CatalogueSection, ...]] = (
    _section(
        "fireSafety",
        "Fire Safety (HMO Specific)",
        ("interlinkedAlarms", "Interlinked smoke alarms"),
        ("heatDetector", "Heat detector in kitchen"),
        ("fireDoors", "Fire doors self-closing"),
        ("doorSeals", "Door intumescent strips intact"),
        ("extinguishers", "Fire extinguishers serviced"),
        ("fireBlanket", "Fire blanket in kitchen"),
        ("emergencyLighting", "Emergency lighting operational"),
        ("clearRoutes", "Fire escape routes clear"),
        ("signage", "Fire safety signage displayed"),
    ),
    _section(
        "communal",
        "Communal Areas",
        ("clean", "Clean and free from hazards"),
        ("lighting", "Adequate lighting"),
        ("flooring", "Flooring in good condition"),
        ("noDamp", "No damp or mould"),
        ("windows", "Windows and locks functioning"),
        ("wasteDisposal", "Waste disposal area tidy"),
    ),
    _section(
        "bedrooms",
        "Bedrooms (Per Room)",
        ("doorLock", "Door lock functioning"),
        ("ventilation", "Adequate ventilation"),
        ("heating", "Heating working"),
        ("noDamp", "No signs of damp or mould"),
        ("furniture", "Furniture in good condition"),
        ("sockets", "Electrical sockets safe"),
        ("occupancy", "Tenant occupancy confirmed"),
    ),
    _section(
        "kitchen",
        "Kitchen",
        ("appliances", "Cooking appliances working"),
        ("extractor", "Extractor fan operational"),
        ("sink", "Sinks and taps leak-free"),
        ("cupboards", "Worktops & cupboards good"),
        ("fridge", "Fridge/freezer functional"),
        ("storage", "Adequate food storage"),
        ("fireBlanket", "Fire blanket present"),
        ("pat", "PAT-tested appliances"),
    ),
    _section(
        "bathrooms",
        "Bathrooms",
        ("toilet", "Toilet flushing correctly"),
        ("shower", "Shower/bath working"),
        ("extractor", "Extractor fan functioning"),
        ("noLeaks", "No leaks or damp"),
        ("sealant", "Sealant and grout intact"),
        ("hotWater", "Adequate hot water supply"),
    ),
    _section(
        "utilities",
        "Utilities",
        ("boiler", "Boiler functioning and serviced"),
        ("radiators", "Radiators heating properly"),
        ("thermostats", "Thermostats working"),
        ("consumerUnit", "Consumer unit safe/labelled"),
        ("gasCert", "Gas safety certificate up to date"),
        ("eicr", "EICR valid"),
    ),
    _section(
        "exterior",
        "Exterior",
        ("roof", "Roof and gutters good"),
        ("pathways", "Pathways safe and clear"),
        ("garden", "Garden/yard maintained"),
        ("bins", "Bins accessible"),
        ("securityLighting", "Security lighting working"),
    ),
    _section(
        "tenantResponsibilities",
        "Tenant Responsibilities",
        ("clean", "Room kept clean"),
        ("noSmoking", "No evidence of smoking"),
        ("noPets", "No unauthorised pets"),
        ("noTampering", "No tampering with fire equipment"),
        concerns_key="concerns",
    ),
    _section(
        "followUp",
        "Follow-Up Actions",
        ("repairsRequired", "Repairs Required"),
        ("urgentSafetyIssues", "Urgent Safety Issues"),
        ("maintenanceScheduled", "Maintenance Scheduled"),
        date_keys=("nextInspectionDate",),
    ),
)

INSPECTION_SECTIONS: Final[dict[InspectionType, tuple[CatalogueSection, ...]]] = {
    InspectionType.SINGLE_LET: SINGLE_LET_SECTIONS,
    InspectionType.HMO: HMO_SECTIONS,
}


def sections_for(inspection_type: Optional[str]) -> tuple[CatalogueSection, ...]:
    """Sections for a stored inspection type; empty for unknown types."""
    try:
        return INSPECTION_SECTIONS[InspectionType(inspection_type)]
    except ValueError:
        return ()


def follow_up_section(inspection_type: Optional[str]) -> Optional[CatalogueSection]:
    for section in sections_for(inspection_type):
        if section.date_keys:
            return section
    return None
