"""
Tests for the report generator script and the report history CLI
"""
import argparse
import csv
import os
import sys
from unittest.mock import patch

import pytest

from scripts.generate_report import parse_formats, read_csv_rows, validate_exports, main as generate_main
from tools.reports_cli import format_reports_table, format_report_detail


def write_csv(path, rows):
    with open(path, 'w', encoding='utf-8-sig', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)
    return str(path)


class TestGenerateReport:
    """scripts/generate_report.py"""

    def test_parse_formats(self):
        assert parse_formats('csv, PDF') == ['csv', 'pdf']
        with pytest.raises(argparse.ArgumentTypeError):
            parse_formats('csv,docx')

    def test_read_csv_rows_strips_bom(self, tmp_path, rmm_rows):
        path = write_csv(tmp_path / 'rmm.csv', rmm_rows)
        rows = read_csv_rows(path)

        assert rows[0]['Machine name'] == 'WS-001'
        assert len(rows) == 4

    def test_validate_exports(self, rmm_rows, scalepad_rows):
        assert validate_exports('rmm.csv', rmm_rows, 'scalepad.csv', scalepad_rows) == []

        problems = validate_exports('scalepad.csv', rmm_rows, 'rmm.csv', [])
        assert len(problems) == 3
        assert 'looks like a scalepad export' in problems[0]
        assert 'has no rows' in problems[2]

    def test_writes_requested_files(self, tmp_path, rmm_rows, scalepad_rows, capsys):
        rmm_path = write_csv(tmp_path / 'rmm.csv', rmm_rows)
        scalepad_path = write_csv(tmp_path / 'scalepad.csv', scalepad_rows)
        output_dir = tmp_path / 'out'

        argv = [
            'generate_report.py', '--rmm', rmm_path, '--scalepad', scalepad_path,
            '--company', 'Acme', '--tenant', 'acme.onmicrosoft.com',
            '--output-dir', str(output_dir), '--formats', 'csv,excel',
        ]
        with patch.object(sys, 'argv', argv):
            generate_main()

        assert sorted(os.listdir(output_dir)) == [
            'Acme_Windows11_Readiness_Report.csv',
            'Acme_Windows11_Readiness_Report.xlsx',
        ]
        assert '1/4 ready (25%)' in capsys.readouterr().out

    def test_missing_input_exits(self, tmp_path):
        argv = [
            'generate_report.py', '--rmm', str(tmp_path / 'missing.csv'), '--scalepad', str(tmp_path / 'missing.csv'),
            '--company', 'Acme', '--tenant', 't',
        ]
        with patch.object(sys, 'argv', argv), pytest.raises(SystemExit) as exc:
            generate_main()
        assert exc.value.code == 1


class TestReportsCli:
    """tools/reports_cli.py"""

    REPORT = {
        'id': 'abc123',
        'timestamp': '2026-10-19T09:00:00Z',
        'companyInfo': {'name': 'Acme', 'site': 'HQ', 'tenant': 't'},
        'summary': {'total': 4, 'compatible': 1, 'compatiblePercentage': 25},
        'results': {
            'charts': {'siteBreakdown': [{'site': 'HQ', 'compatible': 1, 'notCompatible': 0,
                                          'unsupported': 1, 'offline': 0}]},
            'recommendations': [{'title': 'Offline Systems', 'description': '1 offline', 'priority': 'medium'}],
        },
    }

    def test_empty_table(self):
        assert format_reports_table([]) == "No reports found."

    def test_table(self):
        table = format_reports_table([self.REPORT])
        assert 'abc123' in table
        assert 'Acme' in table
        assert '25%' in table

    def test_detail(self):
        detail = format_report_detail(self.REPORT)
        assert 'Company:   Acme' in detail
        assert '[medium] Offline Systems: 1 offline' in detail
        assert 'HQ' in detail
