"""
HMRC Self-Assessment Export PDF

One page summarising a year of rental income and allowable expenses,
grouped the way the UK property pages of a self-assessment return ask for
them.

Output Structure:
1. Title with the tax year, owner and scope
2. Category table (rent received, then each expense grouping)
3. Note on residential finance costs
4. Footer on every page: generation date and "Page i of n"
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from typing import Final, Optional
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from core.portfolio.finances import FINANCE_COSTS_NOTE, FinancialSummary, tax_categories

from .inspection_pdf import (
    FOOTER_DATE_FORMAT,
    InspectionReportGenerator,
    ReportPalette,
    get_report_styles,
    numbered_canvas,
)

FILENAME_PREFIX: Final[str] = "HMRC-Tax-Report"
PORTFOLIO_SCOPE: Final[str] = "Entire Active Portfolio"


@dataclass
class TaxReportSuccess:
    """Returned when the export renders."""

    content: bytes
    filename: str


def tax_report_filename(year: int) -> str:
    return f"{FILENAME_PREFIX}-{year}.pdf"


class TaxReportGenerator:
    """
    Generates the yearly HMRC export.

    Usage:
        generator = TaxReportGenerator()
        result = generator.generate(summary, owner_email)
    """

    PAGE_WIDTH, _ = A4
    MARGIN_LEFT = InspectionReportGenerator.MARGIN_LEFT
    MARGIN_RIGHT = InspectionReportGenerator.MARGIN_RIGHT

    def __init__(self):
        self.styles = get_report_styles()

    def generate(
        self,
        summary: FinancialSummary,
        generated_for: str,
        scope: Optional[str] = None,
        generated_at: Optional[datetime] = None,
    ) -> TaxReportSuccess:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=self.MARGIN_LEFT,
            rightMargin=self.MARGIN_RIGHT,
            topMargin=InspectionReportGenerator.MARGIN_TOP,
            bottomMargin=InspectionReportGenerator.MARGIN_BOTTOM,
            title=f"HMRC Self-Assessment Export - {summary.year}",
            subject="Rental Income and Expenses",
        )

        story = [
            Paragraph(f"HMRC Self-Assessment Export - {summary.year}", self.styles["ReportTitle"]),
            Paragraph(f"Generated for: {escape(generated_for)}", self.styles["ReportBody"]),
            Paragraph(f"Portfolio Scope: {escape(scope or PORTFOLIO_SCOPE)}", self.styles["ReportSubtitle"]),
            self._category_table(summary),
            Spacer(1, 8 * mm),
            Paragraph(f"Note: {escape(FINANCE_COSTS_NOTE)}", self.styles["ReportBody"]),
        ]

        stamp = (generated_at or datetime.now()).strftime(FOOTER_DATE_FORMAT)
        doc.build(story, canvasmaker=numbered_canvas(stamp))
        return TaxReportSuccess(content=buffer.getvalue(), filename=tax_report_filename(summary.year))

    def _category_table(self, summary: FinancialSummary) -> Table:
        usable = self.PAGE_WIDTH - self.MARGIN_LEFT - self.MARGIN_RIGHT
        rows = [["Standard HMRC Category Grouping", "Total Amount"]]
        rows.extend([label, amount] for label, amount in tax_categories(summary))

        table = Table(rows, colWidths=[usable * 0.7, usable * 0.3], repeatRows=1)
        table.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("BACKGROUND", (0, 0), (-1, 0), ReportPalette.HEADER),
            ("TEXTCOLOR", (0, 0), (-1, 0), ReportPalette.WHITE),
            ("TEXTCOLOR", (0, 1), (-1, -1), ReportPalette.CHARCOAL),
            ("ALIGN", (1, 0), (1, -1), "RIGHT"),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [ReportPalette.WHITE, ReportPalette.LIGHT_GRAY]),
            ("GRID", (0, 0), (-1, -1), 0.5, ReportPalette.LIGHT_GRAY),
            ("TOPPADDING", (0, 0), (-1, -1), 2 * mm),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 2 * mm),
        ]))
        return table
