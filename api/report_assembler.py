"""
Windows 11 readiness report assembly

Runs the readiness pipeline over the two uploaded exports and shapes the
result into the processing-endpoint response, the CSV export and the
payload kept in report history.
"""

import base64
import csv
import io
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Any, Optional, Iterable

from common.logging import get_logger
from common.util import utcnow, isoformat_utc, clean_text
from collectors.rmm.mapping import normalize_rmm_rows
from collectors.scalepad.mapping import normalize_warranty_rows, is_warranty_expired
from collectors.checks.warranty_match import (
    ClassifiedRecord, EXPORT_COLUMNS, classify_devices, join_warranty,
)
from storage.rollups import ReadinessRollup, ReportSummary, calculate_rollup

logger = get_logger(__name__)

CSV_DATA_URI_PREFIX = 'data:text/csv;base64,'

READY_COLOR = '#4CAF50'
NOT_READY_COLOR = '#F44336'
WARNING_COLOR = '#FF9800'
OFFLINE_COLOR = '#9E9E9E'


class ReportValidationError(ValueError):
    """Raised when a processing request is missing required input."""


@dataclass(frozen=True)
class CompanyInfo:
    name: str
    site: str = ''
    tenant: str = ''

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'CompanyInfo':
        data = data or {}
        return cls(
            name=clean_text(data.get('name')),
            site=clean_text(data.get('site')),
            tenant=clean_text(data.get('tenant')),
        )

    def to_dict(self) -> Dict[str, str]:
        return {'name': self.name, 'site': self.site, 'tenant': self.tenant}


@dataclass
class ReadinessReport:
    """One generated report: records plus everything derived from them."""
    company: CompanyInfo
    records: List[ClassifiedRecord]
    rollup: ReadinessRollup
    recommendations: List[Dict[str, str]] = field(default_factory=list)
    generated_at: datetime = field(default_factory=utcnow)

    @property
    def summary(self) -> ReportSummary:
        return self.rollup.summary


def validate_request(payload: Any) -> Dict[str, Any]:
    """
    Validate a processing request and pick out the two datasets.

    Args:
        payload: Decoded JSON request body

    Returns:
        dict: {'rmm': rows, 'scalepad': rows, 'company': CompanyInfo}

    Raises:
        ReportValidationError: With the message shown to the user
    """
    if not isinstance(payload, dict) or not isinstance(payload.get('files'), list) or not payload['files']:
        raise ReportValidationError('Two files are required: RMM Report and ScalePad Report')

    company = CompanyInfo.from_dict(payload.get('companyInfo') if isinstance(payload.get('companyInfo'), dict) else None)
    if not company.name:
        raise ReportValidationError('Company name is required')
    if not company.tenant:
        raise ReportValidationError('Tenant slug is required')

    datasets = {}
    for upload in payload['files']:
        if not isinstance(upload, dict):
            continue
        report_type = upload.get('type')
        if report_type in ('rmm', 'scalepad') and report_type not in datasets:
            rows = upload.get('data')
            if isinstance(rows, list):
                datasets[report_type] = rows

    if 'rmm' not in datasets or 'scalepad' not in datasets:
        raise ReportValidationError('Both RMM and ScalePad files are required')

    return {'rmm': datasets['rmm'], 'scalepad': datasets['scalepad'], 'company': company}


def build_report(rmm_rows: Iterable[Dict[str, Any]], scalepad_rows: Iterable[Dict[str, Any]],
                 company: CompanyInfo, generated_at: Optional[datetime] = None) -> ReadinessReport:
    """
    Run the readiness pipeline: normalize, classify, join warranty, roll up.

    Args:
        rmm_rows: RMM export rows keyed by column header
        scalepad_rows: ScalePad export rows keyed by column header
        company: Company the report is generated for
        generated_at: Report timestamp (defaults to now, UTC)

    Returns:
        ReadinessReport
    """
    generated_at = generated_at or utcnow()

    devices = normalize_rmm_rows(rmm_rows)
    warranty = normalize_warranty_rows(scalepad_rows)

    records = join_warranty(classify_devices(devices), warranty)
    rollup = calculate_rollup(records)
    recommendations = build_recommendations(records, rollup.summary, generated_at)

    logger.info(
        "Readiness report built",
        company=company.name,
        devices=len(devices),
        warranty_rows=len(warranty),
        **rollup.summary.to_dict()
    )

    return ReadinessReport(
        company=company,
        records=records,
        rollup=rollup,
        recommendations=recommendations,
        generated_at=generated_at,
    )


def report_from_rows(rows: Iterable[Dict[str, Any]], company: CompanyInfo,
                     generated_at: Optional[datetime] = None) -> ReadinessReport:
    """Rebuild a report from stored export rows (used by history exports)."""
    generated_at = generated_at or utcnow()
    records = [ClassifiedRecord.from_row(row) for row in rows if isinstance(row, dict)]
    rollup = calculate_rollup(records)
    return ReadinessReport(
        company=company,
        records=records,
        rollup=rollup,
        recommendations=build_recommendations(records, rollup.summary, generated_at),
        generated_at=generated_at,
    )


def build_recommendations(records: List[ClassifiedRecord], summary: ReportSummary,
                          as_of: datetime) -> List[Dict[str, str]]:
    """
    Turn the counts into follow-up actions, most important first.

    Args:
        records: Classified records
        summary: Summary counts for the same records
        as_of: Report date, for warranty expiry

    Returns:
        list: {type, title, description, priority} dicts
    """
    recommendations = []

    if summary.not_compatible > 0:
        recommendations.append({
            'type': 'warning',
            'title': 'Hardware Upgrades Needed',
            'description': f"{summary.not_compatible} workstations need hardware upgrades to support Windows 11",
            'priority': 'high',
        })

    if summary.unsupported > 0:
        recommendations.append({
            'type': 'info',
            'title': 'SecureBoot Configuration',
            'description': f"{summary.unsupported} workstations are Windows 11 ready but have SecureBoot disabled",
            'priority': 'medium',
        })

    if summary.offline > 0:
        recommendations.append({
            'type': 'warning',
            'title': 'Offline Systems',
            'description': f"{summary.offline} workstations are offline and need to be checked for Windows 11 readiness",
            'priority': 'medium',
        })

    report_date = as_of.date()
    expired = sum(1 for record in records if is_warranty_expired(record.warranty_expires, report_date))
    if expired > 0:
        recommendations.append({
            'type': 'error',
            'title': 'Warranty Expired',
            'description': f"{expired} workstations have expired warranties",
            'priority': 'high',
        })

    not_in_scalepad = sum(1 for record in records if not record.in_scalepad)
    if not_in_scalepad > 0:
        recommendations.append({
            'type': 'warning',
            'title': 'Missing from ScalePad',
            'description': f"{not_in_scalepad} workstations are not tracked in ScalePad",
            'priority': 'medium',
        })

    return recommendations


def build_charts(rollup: ReadinessRollup) -> Dict[str, Any]:
    """Chart-ready series for the dashboard."""
    summary = rollup.summary
    secure_boot = rollup.secure_boot

    return {
        'readiness': [
            {'name': 'Windows 11 Ready', 'value': summary.compatible, 'color': READY_COLOR},
            {'name': 'Not Windows 11 Ready', 'value': summary.not_compatible, 'color': NOT_READY_COLOR},
            {'name': 'Unsupported', 'value': summary.unsupported, 'color': WARNING_COLOR},
            {'name': 'Offline', 'value': summary.offline, 'color': OFFLINE_COLOR},
        ],
        'siteBreakdown': rollup.site_breakdown(),
        'secureBoot': [
            {'name': 'Enabled', 'value': secure_boot.capable_enabled, 'color': READY_COLOR},
            {'name': 'Disabled', 'value': secure_boot.capable_disabled, 'color': NOT_READY_COLOR},
            {'name': 'Not Present', 'value': secure_boot.not_capable, 'color': WARNING_COLOR},
            {'name': 'Offline', 'value': secure_boot.offline, 'color': OFFLINE_COLOR},
        ],
        'osVersions': frequency_series(rollup.os_counts),
        'cpuGenerations': frequency_series(rollup.cpu_counts),
        'ramSizes': frequency_series(rollup.ram_counts),
    }


def frequency_series(counts: Dict[str, int]) -> List[Dict[str, Any]]:
    return [{'name': label, 'value': count} for label, count in counts.items()]


def build_results(report: ReadinessReport) -> Dict[str, Any]:
    """The report body shared by the API response and report history."""
    return {
        'summary': report.summary.to_dict(),
        'secureBootStats': report.rollup.secure_boot.to_dict(),
        'charts': build_charts(report.rollup),
        'data': [record.to_row() for record in report.records],
        'companyInfo': report.company.to_dict(),
        'recommendations': report.recommendations,
        'generatedAt': isoformat_utc(report.generated_at),
    }


def build_response(report: ReadinessReport, excel_uri: Optional[str],
                   report_id: Optional[str] = None) -> Dict[str, Any]:
    """Processing-endpoint response."""
    response = {'success': True}
    response.update(build_results(report))
    response['files'] = {'excel': excel_uri}
    response['reportId'] = report_id
    return response


def build_export_rows(records: Iterable[ClassifiedRecord]) -> List[List[str]]:
    """One row per record, in EXPORT_COLUMNS order, all values as strings."""
    rows = []
    for record in records:
        row = record.to_row()
        rows.append([clean_export_value(row.get(column)) for column in EXPORT_COLUMNS])
    return rows


def clean_export_value(value: Any) -> str:
    if value is None:
        return ''
    return str(value)


def encode_csv(records: Iterable[ClassifiedRecord]) -> str:
    """
    Render records as the CSV export.

    The header row is written bare; every record value is quoted with inner
    quotes doubled. Rows end with '\\n'.
    """
    output = io.StringIO()
    output.write(','.join(EXPORT_COLUMNS) + '\n')
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerows(build_export_rows(records))
    csv_content = output.getvalue()
    output.close()
    return csv_content


def csv_data_uri(csv_content: str) -> str:
    encoded = base64.b64encode(csv_content.encode('utf-8')).decode('ascii')
    return CSV_DATA_URI_PREFIX + encoded


def decode_csv_export(payload: str) -> List[List[str]]:
    """
    Parse a CSV export back into rows (header first).

    Accepts the data URI, bare base64, or the CSV text itself.
    """
    if payload.startswith(CSV_DATA_URI_PREFIX):
        payload = base64.b64decode(payload[len(CSV_DATA_URI_PREFIX):]).decode('utf-8')
    elif ',' not in payload:
        payload = base64.b64decode(payload).decode('utf-8')
    return list(csv.reader(io.StringIO(payload, newline='')))
