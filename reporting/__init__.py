"""
Reporting module for the landlord portfolio.

Generates inspection report PDFs from stored inspection and property
snapshots, and the yearly HMRC self-assessment export.

Usage:
    from reporting import InspectionReportGenerator

    generator = InspectionReportGenerator()
    result = generator.generate(inspection, property)
    if isinstance(result, InspectionReportSuccess):
        Path(result.filename).write_bytes(result.content)
"""

from .inspection_pdf import (
    InspectionReportGenerator,
    InspectionReportResult,
    InspectionReportSuccess,
    InspectionReportValidationError,
    report_filename,
)
from .tax_pdf import TaxReportGenerator, TaxReportSuccess, tax_report_filename

__all__ = [
    "InspectionReportGenerator",
    "InspectionReportResult",
    "InspectionReportSuccess",
    "InspectionReportValidationError",
    "report_filename",
    "TaxReportGenerator",
    "TaxReportSuccess",
    "tax_report_filename",
]
