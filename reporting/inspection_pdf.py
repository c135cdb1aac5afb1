"""
Inspection Report PDF Generator

Builds a downloadable report from one inspection snapshot and its parent
property snapshot. The output is a pure function of those two inputs plus
the generation date printed in the footer.

Output Structure:
1. Title and property address
2. Summary table (date, inspector, type, status)
3. One Pass/Fail table per section with anything recorded
4. Section notes and recorded tenant concerns
5. Next inspection date (HMO)
6. Footer on every page: generation date and "Page i of n"

Library Choice: ReportLab (same as the rest of the reporting package)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from typing import Any, Final, Mapping, Optional, Union
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from core.dates import format_date, to_date
from core.portfolio.catalogues import CatalogueSection, InspectionType, follow_up_section, sections_for
from utils.formatting import REPORT_ADDRESS_PARTS, address_slug, format_address

FILENAME_PREFIX: Final[str] = "Inspection-Report"
NOT_AVAILABLE: Final[str] = "N/A"
FOOTER_DATE_FORMAT: Final[str] = "%d %B %Y"


# =============================================================================
# Color Palette
# =============================================================================


class ReportPalette:
    """Print-friendly colours for inspection reports."""

    CHARCOAL = colors.Color(0.2, 0.2, 0.22)
    SLATE = colors.Color(0.35, 0.38, 0.42)
    GRAY = colors.Color(0.5, 0.5, 0.5)
    LIGHT_GRAY = colors.Color(0.85, 0.85, 0.85)
    WHITE = colors.white

    # Table header (slate blue)
    HEADER = colors.Color(0.16, 0.5, 0.73)

    PASS = colors.Color(0.15, 0.4, 0.25)
    FAIL = colors.Color(0.6, 0.15, 0.15)


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class InspectionReportSuccess:
    """Returned when PDF generation succeeds."""

    content: bytes
    filename: str


@dataclass
class InspectionReportValidationError:
    """Returned when the snapshots cannot produce a report."""

    errors: list[str]


InspectionReportResult = Union[InspectionReportSuccess, InspectionReportValidationError]


# =============================================================================
# Styles
# =============================================================================


def get_report_styles() -> dict:
    """Create paragraph styles for the inspection report."""
    styles = getSampleStyleSheet()

    styles.add(ParagraphStyle(
        name="ReportTitle",
        parent=styles["Normal"],
        fontSize=20,
        leading=24,
        textColor=ReportPalette.CHARCOAL,
        fontName="Helvetica-Bold",
        spaceAfter=4 * mm,
    ))

    styles.add(ParagraphStyle(
        name="ReportSubtitle",
        parent=styles["Normal"],
        fontSize=11,
        leading=14,
        textColor=ReportPalette.SLATE,
        fontName="Helvetica",
        spaceAfter=6 * mm,
    ))

    styles.add(ParagraphStyle(
        name="ReportSectionTitle",
        parent=styles["Normal"],
        fontSize=13,
        leading=16,
        textColor=ReportPalette.CHARCOAL,
        fontName="Helvetica-Bold",
        spaceBefore=8 * mm,
        spaceAfter=3 * mm,
    ))

    styles.add(ParagraphStyle(
        name="ReportLabel",
        parent=styles["Normal"],
        fontSize=9.5,
        leading=13,
        textColor=ReportPalette.CHARCOAL,
        fontName="Helvetica-Bold",
        spaceBefore=3 * mm,
    ))

    styles.add(ParagraphStyle(
        name="ReportBody",
        parent=styles["Normal"],
        fontSize=9.5,
        leading=13,
        textColor=ReportPalette.CHARCOAL,
        fontName="Helvetica",
        spaceAfter=2 * mm,
    ))

    return styles


def numbered_canvas(generated_on: str):
    """Canvas class that stamps "Page i of n" once the page count is known."""

    class NumberedCanvas(canvas.Canvas):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self._saved_page_states: list[dict] = []

        def showPage(self):
            self._saved_page_states.append(dict(self.__dict__))
            self._startPage()

        def save(self):
            total = len(self._saved_page_states)
            for state in self._saved_page_states:
                self.__dict__.update(state)
                self._draw_footer(total)
                super().showPage()
            super().save()

        def _draw_footer(self, total: int) -> None:
            width, _ = self._pagesize
            self.saveState()
            self.setFont("Helvetica", 8)
            self.setFillColor(ReportPalette.GRAY)
            self.drawString(InspectionReportGenerator.MARGIN_LEFT, 10 * mm, f"Report generated on: {generated_on}")
            self.drawRightString(
                width - InspectionReportGenerator.MARGIN_RIGHT,
                10 * mm,
                f"Page {self._pageNumber} of {total}",
            )
            self.restoreState()

    return NumberedCanvas


# =============================================================================
# Section Helpers
# =============================================================================


def section_rows(section: CatalogueSection, data: Mapping[str, Any]) -> list[list[str]]:
    """Pass/Fail rows for the items that were actually answered."""
    rows = []
    for item in section.items:
        value = data.get(item.key)
        if value is True:
            rows.append([item.label, "Pass"])
        elif value is False:
            rows.append([item.label, "Fail"])
    return rows


def section_has_content(section: CatalogueSection, data: Mapping[str, Any]) -> bool:
    """A section is printed if any item passed or it carries notes or concerns."""
    if any(data.get(key) is True for key in section.item_keys):
        return True
    if data.get(section.notes_key):
        return True
    return bool(section.concerns_key and data.get(section.concerns_key))


def report_filename(prop: Mapping[str, Any]) -> str:
    address = format_address(prop.get("address"), REPORT_ADDRESS_PARTS)
    return f"{FILENAME_PREFIX}-{address_slug(address)}.pdf"


def next_inspection_date(inspection: Mapping[str, Any]) -> Optional[str]:
    """The recommended next inspection date, for HMO inspections only."""
    if inspection.get("type") != InspectionType.HMO.value:
        return None
    section = follow_up_section(inspection.get("type"))
    data = inspection.get(section.key) or {}
    value = data.get("nextInspectionDate")
    if to_date(value) is None:
        return None
    return format_date(value)


# =============================================================================
# Generator
# =============================================================================


class InspectionReportGenerator:
    """
    Generates inspection report PDFs.

    Usage:
        generator = InspectionReportGenerator()
        result = generator.generate(inspection, property)
    """

    PAGE_WIDTH, PAGE_HEIGHT = A4
    MARGIN_LEFT = 18 * mm
    MARGIN_RIGHT = 18 * mm
    MARGIN_TOP = 18 * mm
    MARGIN_BOTTOM = 22 * mm

    def __init__(self):
        """Initialize the generator with styles."""
        self.styles = get_report_styles()

    def validate(self, inspection: Optional[Mapping[str, Any]], prop: Optional[Mapping[str, Any]]) -> list[str]:
        errors = []
        if not inspection:
            errors.append("Inspection record is missing")
        elif not sections_for(inspection.get("type")):
            errors.append(f"Unknown inspection type: {inspection.get('type')}")
        if not prop:
            errors.append("Property record is missing")
        return errors

    def generate(
        self,
        inspection: Optional[Mapping[str, Any]],
        prop: Optional[Mapping[str, Any]],
        generated_at: Optional[datetime] = None,
    ) -> InspectionReportResult:
        """
        Render an inspection as a PDF.

        Args:
            inspection: Inspection snapshot (as stored, with its id)
            prop: Parent property snapshot
            generated_at: Date printed in the footer; defaults to now

        Returns:
            InspectionReportSuccess or InspectionReportValidationError
        """
        errors = self.validate(inspection, prop)
        if errors:
            return InspectionReportValidationError(errors=errors)

        buffer = BytesIO()
        self._build_document(inspection, prop, buffer, generated_at or datetime.now())
        return InspectionReportSuccess(content=buffer.getvalue(), filename=report_filename(prop))

    def _build_document(
        self,
        inspection: Mapping[str, Any],
        prop: Mapping[str, Any],
        buffer: BytesIO,
        generated_at: datetime,
    ) -> None:
        address = format_address(prop.get("address"), REPORT_ADDRESS_PARTS)
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=self.MARGIN_LEFT,
            rightMargin=self.MARGIN_RIGHT,
            topMargin=self.MARGIN_TOP,
            bottomMargin=self.MARGIN_BOTTOM,
            title=f"Inspection Report - {address}",
            subject="Property Inspection",
        )

        story = []
        story.extend(self._build_header(address))
        story.extend(self._build_summary(inspection))
        for section in sections_for(inspection.get("type")):
            story.extend(self._build_section(section, inspection.get(section.key) or {}))

        next_date = next_inspection_date(inspection)
        if next_date:
            story.append(Spacer(1, 6 * mm))
            story.append(Paragraph(
                f"Next inspection recommended for: {escape(next_date)}",
                self.styles["ReportLabel"],
            ))

        doc.build(story, canvasmaker=numbered_canvas(generated_at.strftime(FOOTER_DATE_FORMAT)))

    # =========================================================================
    # Blocks
    # =========================================================================

    def _build_header(self, address: str) -> list:
        return [
            Paragraph("Inspection Report", self.styles["ReportTitle"]),
            Paragraph(f"Property: {escape(address)}", self.styles["ReportSubtitle"]),
        ]

    def _table(self, rows: list[list[str]], col_widths: list[float]) -> Table:
        table = Table(rows, colWidths=col_widths, repeatRows=1)
        table.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("BACKGROUND", (0, 0), (-1, 0), ReportPalette.HEADER),
            ("TEXTCOLOR", (0, 0), (-1, 0), ReportPalette.WHITE),
            ("TEXTCOLOR", (0, 1), (-1, -1), ReportPalette.CHARCOAL),
            ("ALIGN", (0, 0), (-1, -1), "LEFT"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("GRID", (0, 0), (-1, -1), 0.5, ReportPalette.LIGHT_GRAY),
            ("TOPPADDING", (0, 0), (-1, -1), 2 * mm),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 2 * mm),
        ]))
        return table

    def _build_summary(self, inspection: Mapping[str, Any]) -> list:
        rows = [
            ["Date", "Inspector", "Type", "Status"],
            [
                format_date(inspection.get("scheduledDate")),
                inspection.get("inspectorName") or NOT_AVAILABLE,
                inspection.get("type") or NOT_AVAILABLE,
                inspection.get("status") or NOT_AVAILABLE,
            ],
        ]
        usable = self.PAGE_WIDTH - self.MARGIN_LEFT - self.MARGIN_RIGHT
        return [self._table(rows, [usable / 4] * 4)]

    def _build_section(self, section: CatalogueSection, data: Mapping[str, Any]) -> list:
        if not section_has_content(section, data):
            return []

        elements = [Paragraph(escape(section.title), self.styles["ReportSectionTitle"])]

        rows = section_rows(section, data)
        if rows:
            usable = self.PAGE_WIDTH - self.MARGIN_LEFT - self.MARGIN_RIGHT
            table = self._table([["Checklist Item", "Status"]] + rows, [usable * 0.75, usable * 0.25])
            table.setStyle(TableStyle([
                ("TEXTCOLOR", (1, i), (1, i), ReportPalette.PASS if status == "Pass" else ReportPalette.FAIL)
                for i, (_, status) in enumerate(rows, start=1)
            ]))
            elements.append(table)

        notes = data.get(section.notes_key)
        if notes:
            elements.append(Paragraph("Notes:", self.styles["ReportLabel"]))
            elements.append(Paragraph(escape(str(notes)), self.styles["ReportBody"]))

        concerns = data.get(section.concerns_key) if section.concerns_key else None
        if concerns:
            elements.append(Paragraph("Tenant's Concerns Recorded:", self.styles["ReportLabel"]))
            elements.append(Paragraph(escape(str(concerns)), self.styles["ReportBody"]))

        return elements
