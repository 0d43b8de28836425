#!/usr/bin/env python3
"""
Windows 11 Readiness API Server

Provides REST API endpoints for:
1. Processing an RMM export and a ScalePad export into a readiness report
2. Report history (see api/reports_api.py)
3. Health checks

Usage:
    python3 -m api.api_server
    # Server runs on http://localhost:5400
"""

from datetime import datetime

from flask import Flask, jsonify, request
from flask_cors import CORS

from common.config import config
from common.logging import get_logger, setup_logging
from common.util import isoformat_utc
from api.report_assembler import (
    ReportValidationError, build_report, build_response, build_results,
    csv_data_uri, encode_csv, validate_request,
)
from api.reports_api import reports_api, get_report_stores
from storage.report_store import make_stored_report, save_report

logger = get_logger(__name__)

API_VERSION = "1.0.0"


def create_app(primary_store=None, fallback_store=None) -> Flask:
    """
    Build the Flask application.

    Args:
        primary_store: Report-history store (defaults to the SQL store)
        fallback_store: Store used when the primary fails (defaults to the JSON file)
    """
    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = 2 * config.reports.max_upload_mb * 1024 * 1024
    app.extensions['report_stores'] = {'primary': primary_store, 'fallback': fallback_store}

    # Enable CORS for the report frontend
    CORS(app,
         origins=config.app.cors_origins,
         methods=['GET', 'POST', 'DELETE', 'OPTIONS'],
         allow_headers=['Content-Type', 'Authorization', 'X-Requested-With'],
         max_age=86400)

    app.register_blueprint(reports_api)

    app.add_url_rule('/api/health', 'health_check', health_check, methods=['GET'])
    app.add_url_rule('/api/process-reports', 'process_reports', process_reports, methods=['POST'])
    app.register_error_handler(413, payload_too_large)

    return app


def health_check():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": API_VERSION
    })


def payload_too_large(error):
    return jsonify({'error': f'Upload exceeds {config.reports.max_upload_mb} MB per file'}), 413


def process_reports():
    """
    Build a readiness report from two uploaded exports.

    Request body:
    {
        "files": [
            {"type": "rmm", "data": [{...row...}, ...]},
            {"type": "scalepad", "data": [{...row...}, ...]}
        ],
        "companyInfo": {"name": "Acme", "site": "HQ", "tenant": "acme.onmicrosoft.com"}
    }

    The response carries the report body, a CSV data URI in files.excel
    (null when encoding failed) and the history id in reportId (null when
    the report could not be stored).
    """
    payload = request.get_json(silent=True)

    try:
        validated = validate_request(payload)
    except ReportValidationError as e:
        logger.info("Rejected report request", error=str(e))
        return jsonify({'error': str(e)}), 400

    try:
        company = validated['company']
        logger.info(
            "Processing readiness report",
            company=company.name,
            rmm_rows=len(validated['rmm']),
            scalepad_rows=len(validated['scalepad'])
        )
        report = build_report(validated['rmm'], validated['scalepad'], company)

        try:
            excel_uri = csv_data_uri(encode_csv(report.records))
        except Exception as e:
            logger.error("CSV export failed", company=company.name, error=str(e))
            excel_uri = None

        results = build_results(report)
        stored = make_stored_report(
            company.to_dict(),
            results['summary'],
            results,
            timestamp=isoformat_utc(report.generated_at),
        )
        primary, fallback = get_report_stores()
        report_id = save_report(stored, primary, fallback)

        return jsonify(build_response(report, excel_uri, report_id))

    except Exception as e:
        logger.exception("Error processing reports", error=str(e))
        return jsonify({'error': 'Internal server error'}), 500


app = create_app()


if __name__ == '__main__':
    setup_logging()
    config.validate()

    print("Starting Windows 11 Readiness API Server...")
    print("Available endpoints:")
    print("  GET    /api/health - Health check")
    print("  POST   /api/process-reports - Build a readiness report from RMM and ScalePad exports")
    print("  GET    /api/reports - List stored reports")
    print("  POST   /api/reports - Save a report")
    print("  GET    /api/reports/{id} - Get a stored report")
    print("  DELETE /api/reports/{id} - Delete a stored report (also ?id=)")
    print("  GET    /api/reports/{id}/export/{csv|pdf|excel} - Download a stored report")
    print()
    print(f"Server will run on http://{config.app.api_host}:{config.app.api_port}")

    app.run(host=config.app.api_host, port=config.app.api_port, debug=config.app.debug)
