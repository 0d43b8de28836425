"""
Report History API Endpoints

Provides REST API endpoints for:
1. Listing, saving and deleting stored readiness reports
2. Downloading a stored report as CSV, PDF or Excel
"""

from typing import Tuple

from flask import Blueprint, Response, current_app, jsonify, request

from common.logging import get_logger
from api.exports import (
    build_pdf, build_workbook, report_filename,
    PDF_MIMETYPE, EXCEL_MIMETYPE, CSV_MIMETYPE,
)
from api.report_assembler import CompanyInfo, encode_csv, report_from_rows
from storage.report_store import (
    JsonFileReportStore, ReportStoreError, list_all_reports,
    make_stored_report, open_report_stores, parse_timestamp,
)

logger = get_logger(__name__)

# Create Blueprint for report history
reports_api = Blueprint('reports_api', __name__)

EXPORT_FORMATS = ('csv', 'pdf', 'excel')


def get_report_stores() -> Tuple[object, object]:
    """
    Return (primary, fallback) report stores for the current app.

    Stores passed to create_app() are used as given; otherwise the SQL store
    and the JSON fallback are built on first use. If the SQL store cannot be
    set up, the fallback serves as primary too.
    """
    stores = current_app.extensions.setdefault('report_stores', {})

    if stores.get('primary') is None:
        primary, fallback = open_report_stores()
        stores['primary'] = primary
        if stores.get('fallback') is None:
            stores['fallback'] = fallback
    elif stores.get('fallback') is None:
        stores['fallback'] = JsonFileReportStore()

    return stores['primary'], stores['fallback']


def find_report(report_id: str):
    """Look a report up in the primary store, then the fallback."""
    primary, fallback = get_report_stores()
    for store in (primary, fallback):
        try:
            report = store.get_report(report_id)
        except ReportStoreError as e:
            logger.warning("Report lookup failed", report_id=report_id, error=str(e))
            continue
        if report is not None:
            return report
    return None


# ============================================================================
# GET /api/reports
# ============================================================================

@reports_api.route('/api/reports', methods=['GET'])
def list_reports():
    """List stored reports, newest first."""
    primary, fallback = get_report_stores()
    try:
        reports = list_all_reports(primary, fallback if fallback is not primary else None)
    except ReportStoreError as e:
        logger.error("Error loading reports", error=str(e))
        return jsonify({'error': 'Failed to load reports'}), 500
    return jsonify(reports)


# ============================================================================
# POST /api/reports
# ============================================================================

@reports_api.route('/api/reports', methods=['POST'])
def save_report():
    """
    Save a report to history.

    Request body:
    {
        "id": "optional, generated when absent",
        "timestamp": "optional ISO 8601",
        "companyInfo": {"name": "...", "site": "...", "tenant": "..."},
        "summary": {...},
        "results": {...}
    }
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Report body is required'}), 400

    company_info = data.get('companyInfo') if isinstance(data.get('companyInfo'), dict) else {}
    if not str(company_info.get('name') or '').strip():
        return jsonify({'error': 'Company name is required'}), 400

    report = make_stored_report(
        company_info,
        data.get('summary') if isinstance(data.get('summary'), dict) else {},
        data.get('results') if isinstance(data.get('results'), dict) else {},
        report_id=data.get('id') or None,
        timestamp=data.get('timestamp') or None,
    )

    primary, _ = get_report_stores()
    try:
        report_id = primary.add_report(report)
    except ReportStoreError as e:
        logger.error("Error saving report", report_id=report['id'], error=str(e))
        return jsonify({'error': 'Failed to save report'}), 500

    return jsonify({'success': True, 'id': report_id})


# ============================================================================
# DELETE /api/reports?id=<id>  and  DELETE /api/reports/<id>
# ============================================================================

@reports_api.route('/api/reports', methods=['DELETE'])
@reports_api.route('/api/reports/<report_id>', methods=['DELETE'])
def delete_report(report_id=None):
    """Delete a stored report from every store that holds it."""
    report_id = report_id or request.args.get('id')
    if not report_id:
        return jsonify({'error': 'Report ID required'}), 400

    primary, fallback = get_report_stores()
    deleted = False
    failures = 0
    stores = [primary] if fallback is primary else [primary, fallback]
    for store in stores:
        try:
            deleted = store.delete_report(report_id) or deleted
        except ReportStoreError as e:
            logger.error("Error deleting report", report_id=report_id, error=str(e))
            failures += 1

    if failures == len(stores):
        return jsonify({'error': 'Failed to delete report'}), 500
    if not deleted:
        return jsonify({'error': 'Report not found'}), 404
    return jsonify({'success': True})


# ============================================================================
# GET /api/reports/<id>
# ============================================================================

@reports_api.route('/api/reports/<report_id>', methods=['GET'])
def get_report(report_id: str):
    report = find_report(report_id)
    if report is None:
        return jsonify({'error': 'Report not found'}), 404
    return jsonify(report)


# ============================================================================
# GET /api/reports/<id>/export/<fmt>
# ============================================================================

@reports_api.route('/api/reports/<report_id>/export/<fmt>', methods=['GET'])
def export_report(report_id: str, fmt: str):
    """
    Download a stored report.

    Formats: csv, pdf, excel
    """
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        return jsonify({'error': f"Unsupported export format: {fmt}. Use one of {', '.join(EXPORT_FORMATS)}"}), 400

    stored = find_report(report_id)
    if stored is None:
        return jsonify({'error': 'Report not found'}), 404

    results = stored.get('results') or {}
    company = CompanyInfo.from_dict(stored.get('companyInfo'))
    report = report_from_rows(
        results.get('data') or [],
        company,
        generated_at=parse_timestamp(stored.get('timestamp')),
    )

    if fmt == 'csv':
        content, mimetype, extension = encode_csv(report.records).encode('utf-8'), CSV_MIMETYPE, 'csv'
    elif fmt == 'pdf':
        content, mimetype, extension = build_pdf(report), PDF_MIMETYPE, 'pdf'
    else:
        content, mimetype, extension = build_workbook(report), EXCEL_MIMETYPE, 'xlsx'

    filename = report_filename(company.name, extension)
    return Response(
        content,
        mimetype=mimetype,
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )
