"""
Report history storage

A report-history store keeps generated reports newest first and supports
list, add, get and delete. SqlReportStore is the primary store;
JsonFileReportStore is the fallback used when the database is unavailable.
"""

import json
import os
import threading
from typing import Dict, List, Any, Optional

from dateutil import parser as date_parser
import pytz
from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError

from common.config import config
from common.logging import get_logger
from common.util import utcnow, isoformat_utc, new_report_id, clean_text
from storage.database import get_session_factory, session_scope, init_database
from storage.schema import StoredReport

logger = get_logger(__name__)


class ReportStoreError(RuntimeError):
    """Raised when a report-history store cannot be read or written."""


def make_stored_report(company_info: Dict[str, Any], summary: Dict[str, Any], results: Dict[str, Any],
                       report_id: Optional[str] = None, timestamp: Optional[str] = None) -> Dict[str, Any]:
    """
    Build a report-history entry.

    Args:
        company_info: {name, site, tenant}
        summary: Summary counts
        results: Full report body
        report_id: Existing id, generated when absent
        timestamp: ISO 8601 creation time, now when absent

    Returns:
        dict: {id, timestamp, companyInfo, summary, results}
    """
    return {
        'id': clean_text(report_id) or new_report_id(),
        'timestamp': isoformat_utc(parse_timestamp(timestamp)),
        'companyInfo': {
            'name': clean_text(company_info.get('name')),
            'site': clean_text(company_info.get('site')),
            'tenant': clean_text(company_info.get('tenant')),
        },
        'summary': summary or {},
        'results': results or {},
    }


def parse_timestamp(value: Optional[str]):
    """Aware UTC datetime for an ISO 8601 string; naive values are taken as UTC, unparseable ones as now."""
    if not value:
        return utcnow()
    try:
        parsed = date_parser.isoparse(value)
    except (ValueError, TypeError):
        return utcnow()
    if parsed.tzinfo is None:
        return pytz.UTC.localize(parsed)
    return parsed.astimezone(pytz.UTC)


class SqlReportStore:
    """Report history in the stored_report table"""

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or get_session_factory()

    def create_tables(self) -> None:
        try:
            init_database(self.session_factory.kw['bind'])
        except SQLAlchemyError as e:
            raise ReportStoreError(f"Failed to create report tables: {e}") from e

    def list_reports(self) -> List[Dict[str, Any]]:
        try:
            with session_scope(self.session_factory) as session:
                rows = session.query(StoredReport).order_by(
                    desc(StoredReport.created_at), desc(StoredReport.id)
                ).all()
                return [row.to_dict() for row in rows]
        except SQLAlchemyError as e:
            raise ReportStoreError(f"Failed to list reports: {e}") from e

    def add_report(self, report: Dict[str, Any]) -> str:
        company = report.get('companyInfo') or {}
        try:
            with session_scope(self.session_factory) as session:
                session.add(StoredReport(
                    report_id=report['id'],
                    created_at=parse_timestamp(report.get('timestamp')),
                    company_name=clean_text(company.get('name')),
                    company_site=clean_text(company.get('site')),
                    tenant=clean_text(company.get('tenant')),
                    summary=report.get('summary') or {},
                    payload=report.get('results') or {},
                ))
        except SQLAlchemyError as e:
            raise ReportStoreError(f"Failed to save report {report.get('id')}: {e}") from e
        return report['id']

    def get_report(self, report_id: str) -> Optional[Dict[str, Any]]:
        try:
            with session_scope(self.session_factory) as session:
                row = session.query(StoredReport).filter_by(report_id=report_id).first()
                return row.to_dict() if row else None
        except SQLAlchemyError as e:
            raise ReportStoreError(f"Failed to load report {report_id}: {e}") from e

    def delete_report(self, report_id: str) -> bool:
        try:
            with session_scope(self.session_factory) as session:
                deleted = session.query(StoredReport).filter_by(report_id=report_id).delete()
                return deleted > 0
        except SQLAlchemyError as e:
            raise ReportStoreError(f"Failed to delete report {report_id}: {e}") from e


class JsonFileReportStore:
    """Report history kept as a JSON array in one file, newest first"""

    def __init__(self, path: Optional[str] = None):
        self.path = path or config.reports.fallback_path
        self._lock = threading.Lock()

    def _read(self) -> List[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                reports = json.load(f)
        except (OSError, ValueError) as e:
            raise ReportStoreError(f"Failed to read {self.path}: {e}") from e
        return reports if isinstance(reports, list) else []

    def _write(self, reports: List[Dict[str, Any]]) -> None:
        directory = os.path.dirname(self.path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            tmp_path = f"{self.path}.tmp"
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(reports, f, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            raise ReportStoreError(f"Failed to write {self.path}: {e}") from e

    def list_reports(self) -> List[Dict[str, Any]]:
        with self._lock:
            return self._read()

    def add_report(self, report: Dict[str, Any]) -> str:
        with self._lock:
            reports = self._read()
            reports.insert(0, report)
            self._write(reports)
        return report['id']

    def get_report(self, report_id: str) -> Optional[Dict[str, Any]]:
        for report in self.list_reports():
            if report.get('id') == report_id:
                return report
        return None

    def delete_report(self, report_id: str) -> bool:
        with self._lock:
            reports = self._read()
            remaining = [report for report in reports if report.get('id') != report_id]
            if len(remaining) == len(reports):
                return False
            self._write(remaining)
        return True


def save_report(report: Dict[str, Any], primary, fallback) -> Optional[str]:
    """
    Store a report, falling back to the secondary store on failure.

    Persistence problems are logged, never raised.

    Returns:
        str: The stored report id, or None when neither store accepted it
    """
    try:
        return primary.add_report(report)
    except ReportStoreError as e:
        logger.warning("Primary report store failed, using fallback", report_id=report.get('id'), error=str(e))

    try:
        return fallback.add_report(report)
    except ReportStoreError as e:
        logger.error("Fallback report store failed, report not persisted", report_id=report.get('id'), error=str(e))
        return None


def list_all_reports(primary, fallback) -> List[Dict[str, Any]]:
    """
    List reports from both stores, newest first.

    Reports written to the fallback while the primary store was down are
    included unless the primary holds the same id.

    Raises:
        ReportStoreError: When neither store can be read
    """
    errors = []
    reports: List[Dict[str, Any]] = []
    seen = set()

    for store in (primary, fallback):
        if store is None:
            continue
        try:
            entries = store.list_reports()
        except ReportStoreError as e:
            logger.warning("Report store unavailable for listing", store=type(store).__name__, error=str(e))
            errors.append(e)
            continue
        for entry in entries:
            if entry.get('id') in seen:
                continue
            seen.add(entry.get('id'))
            reports.append(entry)

    if errors and len(errors) == len([store for store in (primary, fallback) if store is not None]):
        raise ReportStoreError("No report store could be read")

    reports.sort(key=lambda entry: entry.get('timestamp') or '', reverse=True)
    return reports


def open_report_stores(fallback_path: Optional[str] = None):
    """
    Return (primary, fallback) stores from configuration.

    When the SQL store cannot be set up the JSON file serves as both.
    """
    fallback = JsonFileReportStore(fallback_path)
    try:
        primary = SqlReportStore()
        primary.create_tables()
    except (ReportStoreError, SQLAlchemyError, ImportError) as e:
        logger.error("SQL report store unavailable, using fallback store", error=str(e))
        primary = fallback
    return primary, fallback
