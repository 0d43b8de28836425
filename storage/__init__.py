"""
Report history storage for win11-readiness-hub
"""

from .schema import Base, StoredReport
from .report_store import (
    ReportStoreError,
    SqlReportStore,
    JsonFileReportStore,
    save_report,
    list_all_reports,
)

__all__ = [
    'Base',
    'StoredReport',
    'ReportStoreError',
    'SqlReportStore',
    'JsonFileReportStore',
    'save_report',
    'list_all_reports',
]
