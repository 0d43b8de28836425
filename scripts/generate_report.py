#!/usr/bin/env python3
"""
Standalone Windows 11 readiness report generator

Reads an RMM export and a ScalePad export (CSV), builds the readiness
report and writes the requested files.

Usage:
    python3 scripts/generate_report.py --rmm rmm.csv --scalepad scalepad.csv \\
        --company "Acme" --tenant acme.onmicrosoft.com --formats csv,pdf,excel --save
"""
import argparse
import csv
import os
import sys
from pathlib import Path
from typing import Any, Dict, List

# Add the parent directory to the path
sys.path.append(str(Path(__file__).parent.parent))

from common.config import config
from common.logging import setup_logging, get_logger
from common.util import isoformat_utc
from api.exports import build_pdf, build_workbook, report_filename
from api.report_assembler import (
    CompanyInfo, ReportValidationError, build_report, build_results, encode_csv,
)
from collectors.rmm.mapping import RMM_EXPECTED_COLUMNS, detect_report_type, has_expected_columns
from collectors.scalepad.mapping import SCALEPAD_EXPECTED_COLUMNS
from storage.report_store import make_stored_report, open_report_stores, save_report

logger = get_logger(__name__)

EXPORT_FORMATS = ('csv', 'pdf', 'excel')


def read_csv_rows(path: str) -> List[Dict[str, Any]]:
    """Read an export as a list of header-keyed rows."""
    with open(path, 'r', encoding='utf-8-sig', newline='') as f:
        return list(csv.DictReader(f))


def parse_formats(value: str) -> List[str]:
    formats = [item.strip().lower() for item in value.split(',') if item.strip()]
    unknown = [item for item in formats if item not in EXPORT_FORMATS]
    if unknown:
        raise argparse.ArgumentTypeError(
            f"Unknown format(s): {', '.join(unknown)}. Use {', '.join(EXPORT_FORMATS)}"
        )
    return formats


def validate_exports(rmm_path: str, rmm_rows: List[Dict[str, Any]],
                     scalepad_path: str, scalepad_rows: List[Dict[str, Any]]) -> List[str]:
    """
    Check that each file looks like the export it was passed as.

    Returns:
        list: Problem descriptions, empty when both files look right
    """
    problems = []
    checks = (
        (rmm_path, rmm_rows, 'rmm', RMM_EXPECTED_COLUMNS, 'RMM'),
        (scalepad_path, scalepad_rows, 'scalepad', SCALEPAD_EXPECTED_COLUMNS, 'ScalePad'),
    )
    for path, rows, report_type, expected, label in checks:
        detected = detect_report_type(os.path.basename(path))
        if detected and detected != report_type:
            problems.append(f"{path} looks like a {detected} export, expected {label}")
        if not rows:
            problems.append(f"{label} export {path} has no rows")
        elif not has_expected_columns(rows, expected):
            problems.append(f"{label} export {path} is missing expected columns: {', '.join(expected)}")
    return problems


def write_outputs(report, output_dir: str, formats: List[str]) -> List[str]:
    """Write the report files and return their paths."""
    os.makedirs(output_dir, exist_ok=True)
    written = []

    for fmt in formats:
        if fmt == 'csv':
            path = os.path.join(output_dir, report_filename(report.company.name, 'csv'))
            with open(path, 'w', encoding='utf-8', newline='') as f:
                f.write(encode_csv(report.records))
        elif fmt == 'pdf':
            path = os.path.join(output_dir, report_filename(report.company.name, 'pdf'))
            with open(path, 'wb') as f:
                f.write(build_pdf(report))
        else:
            path = os.path.join(output_dir, report_filename(report.company.name, 'xlsx'))
            with open(path, 'wb') as f:
                f.write(build_workbook(report))
        written.append(path)
        logger.info("Report file written", format=fmt, path=path)

    return written


def persist_report(report):
    """Store the report in history; returns the id or None."""
    results = build_results(report)
    stored = make_stored_report(
        report.company.to_dict(),
        results['summary'],
        results,
        timestamp=isoformat_utc(report.generated_at),
    )
    primary, fallback = open_report_stores()
    return save_report(stored, primary, fallback)


def main():
    """Main entry point for standalone report generation"""
    parser = argparse.ArgumentParser(description='Generate a Windows 11 readiness report from RMM and ScalePad exports')
    parser.add_argument('--rmm', required=True, help='RMM export (CSV)')
    parser.add_argument('--scalepad', required=True, help='ScalePad warranty export (CSV)')
    parser.add_argument('--company', required=True, help='Company name')
    parser.add_argument('--tenant', required=True, help='Microsoft 365 tenant')
    parser.add_argument('--site', default='', help='Site name')
    parser.add_argument('--output-dir', default='.', help='Directory for the report files')
    parser.add_argument('--formats', type=parse_formats, default=list(EXPORT_FORMATS),
                        help='Comma-separated list of csv, pdf, excel (default: all)')
    parser.add_argument('--save', action='store_true', help='Store the report in report history')
    args = parser.parse_args()

    # Setup logging
    setup_logging()

    # Validate configuration
    try:
        config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    try:
        rmm_rows = read_csv_rows(args.rmm)
        scalepad_rows = read_csv_rows(args.scalepad)
    except OSError as e:
        logger.error(f"Could not read export: {e}")
        sys.exit(1)

    problems = validate_exports(args.rmm, rmm_rows, args.scalepad, scalepad_rows)
    for problem in problems:
        logger.error(problem)
    if problems:
        sys.exit(1)

    company = CompanyInfo(name=args.company.strip(), site=args.site.strip(), tenant=args.tenant.strip())
    if not company.name or not company.tenant:
        logger.error("Company name and tenant are required")
        sys.exit(1)

    try:
        report = build_report(rmm_rows, scalepad_rows, company)
        written = write_outputs(report, args.output_dir, args.formats)
    except (ReportValidationError, OSError) as e:
        logger.error(f"Report generation failed: {e}")
        sys.exit(1)

    summary = report.summary
    print(f"Windows 11 readiness for {company.name}: "
          f"{summary.compatible}/{summary.total} ready ({summary.compatible_percentage}%)")
    for path in written:
        print(f"  {path}")

    if args.save:
        report_id = persist_report(report)
        if report_id:
            print(f"Saved to report history: {report_id}")
        else:
            print("Report could not be saved to history")


if __name__ == "__main__":
    main()
