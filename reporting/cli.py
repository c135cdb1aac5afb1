#!/usr/bin/env python3
"""
CLI for generating inspection report PDFs.

Usage:
    python -m reporting.cli sample
    python -m reporting.cli generate <inspection_json> <property_json>

Examples:
    # Generate a sample HMO report for checking the layout
    python -m reporting.cli sample

    # Generate from exported snapshots
    python -m reporting.cli generate exports/inspection.json exports/property.json -o reports
"""

import argparse
import json
import sys
from pathlib import Path

from .inspection_pdf import InspectionReportGenerator, InspectionReportValidationError

DEFAULT_OUTPUT_DIR = "reports/inspections"


def create_sample_inspection() -> tuple[dict, dict]:
    """A completed HMO inspection and its property, for layout checks."""
    prop = {
        "id": "sample-property",
        "address": {
            "nameOrNumber": "12",
            "street": "Harbour Road",
            "city": "Bristol",
            "postcode": "BS1 5TT",
        },
        "propertyType": "HMO",
        "status": "Occupied",
    }
    inspection = {
        "id": "sample-inspection",
        "propertyId": "sample-property",
        "type": "HMO",
        "status": "Completed",
        "scheduledDate": "2026-03-14T10:00:00+00:00",
        "inspectorName": "J. Okafor",
        "fireSafety": {
            "interlinkedAlarms": True,
            "heatDetector": True,
            "fireDoors": False,
            "notes": "Door to room 3 does not close fully.",
        },
        "kitchen": {"appliances": True, "extractor": True, "pat": False},
        "tenantResponsibilities": {"clean": True, "concerns": "Noise from room 2 after midnight."},
        "followUp": {"repairsRequired": True, "nextInspectionDate": "2026-06-14"},
    }
    return inspection, prop


def _write(result, output_dir: Path) -> int:
    if isinstance(result, InspectionReportValidationError):
        for error in result.errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / result.filename
    path.write_bytes(result.content)
    print(f"Report generated: {path}")
    return 0


def _load_json(path: Path):
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return None
    try:
        with open(path, "r") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in {path}: {e}", file=sys.stderr)
        return None


def cmd_sample(args):
    """Generate a sample inspection report."""
    print("Generating sample inspection report...")
    inspection, prop = create_sample_inspection()
    return _write(InspectionReportGenerator().generate(inspection, prop), Path(args.output))


def cmd_generate(args):
    """Generate a report from inspection and property JSON snapshots."""
    inspection = _load_json(Path(args.inspection_file))
    prop = _load_json(Path(args.property_file))
    if inspection is None or prop is None:
        return 1
    return _write(InspectionReportGenerator().generate(inspection, prop), Path(args.output))


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Landlord Portfolio - Inspection Report Generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m reporting.cli sample
    python -m reporting.cli generate inspection.json property.json

Output:
    Reports are saved as Inspection-Report-<address>.pdf
        """,
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    sample_parser = subparsers.add_parser("sample", help="Generate a sample report with mock data")
    sample_parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT_DIR, help="Output directory")
    sample_parser.set_defaults(func=cmd_sample)

    gen_parser = subparsers.add_parser("generate", help="Generate a report from JSON snapshots")
    gen_parser.add_argument("inspection_file", help="Path to inspection JSON")
    gen_parser.add_argument("property_file", help="Path to property JSON")
    gen_parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT_DIR, help="Output directory")
    gen_parser.set_defaults(func=cmd_generate)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
