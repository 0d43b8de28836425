#!/usr/bin/env python3
"""
CLI tool for browsing the Windows 11 readiness report history.

Lists, shows and deletes stored reports from the database store and the
JSON fallback file.
"""

import argparse
import sys
from typing import Any, Dict, List

from tabulate import tabulate

# Add the project root to the Python path
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from storage.report_store import ReportStoreError, list_all_reports, open_report_stores


def format_reports_table(reports: List[Dict[str, Any]]) -> str:
    """
    Format report-history entries as a table for display.

    Args:
        reports: Entries as returned by list_all_reports()

    Returns:
        Formatted table string
    """
    if not reports:
        return "No reports found."

    table_data = []
    for report in reports:
        company = report.get('companyInfo') or {}
        summary = report.get('summary') or {}
        table_data.append([
            report.get('id'),
            report.get('timestamp'),
            company.get('name', ''),
            company.get('site', ''),
            summary.get('total', 0),
            f"{summary.get('compatiblePercentage', 0)}%",
        ])

    headers = ['id', 'timestamp', 'company', 'site', 'devices', 'compatible']
    return tabulate(table_data, headers=headers, tablefmt='grid')


def format_report_detail(report: Dict[str, Any]) -> str:
    """Summary, per-site counts and recommendations of one stored report."""
    company = report.get('companyInfo') or {}
    summary = report.get('summary') or {}
    results = report.get('results') or {}

    lines = [
        f"Report:    {report.get('id')}",
        f"Company:   {company.get('name', '')}",
        f"Site:      {company.get('site', '')}",
        f"Tenant:    {company.get('tenant', '')}",
        f"Generated: {report.get('timestamp')}",
        "",
    ]

    summary_rows = [
        ['Compatible', summary.get('compatible', 0), f"{summary.get('compatiblePercentage', 0)}%"],
        ['Not Compatible', summary.get('notCompatible', 0), f"{summary.get('notCompatiblePercentage', 0)}%"],
        ['Unsupported', summary.get('unsupported', 0), f"{summary.get('unsupportedPercentage', 0)}%"],
        ['Offline', summary.get('offline', 0), f"{summary.get('offlinePercentage', 0)}%"],
        ['Total', summary.get('total', 0), ''],
    ]
    lines.append(tabulate(summary_rows, headers=['status', 'devices', 'share'], tablefmt='grid'))

    sites = (results.get('charts') or {}).get('siteBreakdown') or []
    if sites:
        lines.append("")
        lines.append(tabulate(
            [[s.get('site'), s.get('compatible', 0), s.get('notCompatible', 0),
              s.get('unsupported', 0), s.get('offline', 0)] for s in sites],
            headers=['site', 'compatible', 'not compatible', 'unsupported', 'offline'],
            tablefmt='grid'
        ))

    recommendations = results.get('recommendations') or []
    if recommendations:
        lines.append("")
        lines.append("Recommendations:")
        for item in recommendations:
            lines.append(f"  - [{item.get('priority', '')}] {item.get('title', '')}: {item.get('description', '')}")

    return "\n".join(lines)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Browse the Windows 11 readiness report history',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s list                 # List stored reports, newest first
  %(prog)s show 3f2a...         # Show one report
  %(prog)s delete 3f2a...       # Delete one report
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    subparsers.add_parser('list', help='List stored reports')

    show_parser = subparsers.add_parser('show', help='Show a stored report')
    show_parser.add_argument('id', help='Report id')

    delete_parser = subparsers.add_parser('delete', help='Delete a stored report')
    delete_parser.add_argument('id', help='Report id')

    args = parser.parse_args()

    # If no command specified, default to list
    if args.command is None:
        args.command = 'list'

    try:
        primary, fallback = open_report_stores()

        if args.command == 'list':
            print(format_reports_table(list_all_reports(primary, fallback)))

        elif args.command == 'show':
            report = primary.get_report(args.id) or fallback.get_report(args.id)
            if report is None:
                print(f"No report found: {args.id}")
                sys.exit(1)
            print(format_report_detail(report))

        elif args.command == 'delete':
            deleted = primary.delete_report(args.id)
            deleted = fallback.delete_report(args.id) or deleted
            if deleted:
                print(f"Deleted report: {args.id}")
                sys.exit(0)
            else:
                print(f"No report found: {args.id}")
                sys.exit(1)

    except ReportStoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
