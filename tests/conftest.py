"""
Shared fixtures for win11-readiness-hub tests
"""
import pytest

from storage.database import create_db_engine, get_session_factory
from storage.report_store import JsonFileReportStore, SqlReportStore
from tests.samples import READY_OUTPUT, SECURE_BOOT_OFF_OUTPUT, OLD_HARDWARE_OUTPUT


@pytest.fixture
def rmm_rows():
    """RMM export rows: one ready, one with Secure Boot off, one old, one offline"""
    return [
        {'Machine name': 'WS-001', 'Friendly name': 'Reception', 'Site name': 'HQ', 'Output': READY_OUTPUT},
        {'Machine name': 'WS-002', 'Friendly name': 'Accounts', 'Site name': 'HQ', 'Output': SECURE_BOOT_OFF_OUTPUT},
        {'Machine name': 'WS-003', 'Friendly name': 'Warehouse PC', 'Site name': 'Depot', 'Output': OLD_HARDWARE_OUTPUT},
        {'Machine name': 'WS-004', 'Friendly name': 'Spare', 'Site name': '', 'Output': 'Machine was offline'},
    ]


@pytest.fixture
def scalepad_rows():
    """ScalePad warranty rows; WS-004 is not tracked"""
    return [
        {'Name': 'ws-001 ', 'Serial': 'SN-1001', 'Warranty Expires': '2030-06-30'},
        {'Name': 'WS-002', 'Serial': 'SN-1002', 'Warranty Expires': 'Expired'},
        {'Name': 'WS-003', 'Serial': 'SN-1003', 'Warranty Expires': '2020-01-15'},
    ]


@pytest.fixture
def company_info():
    return {'name': 'Acme Corp', 'site': 'HQ', 'tenant': 'acme.onmicrosoft.com'}


@pytest.fixture
def process_payload(rmm_rows, scalepad_rows, company_info):
    return {
        'files': [
            {'type': 'rmm', 'data': rmm_rows},
            {'type': 'scalepad', 'data': scalepad_rows},
        ],
        'companyInfo': company_info,
    }


@pytest.fixture
def sql_store():
    """Report store on a private in-memory SQLite database"""
    engine = create_db_engine('sqlite:///:memory:')
    store = SqlReportStore(get_session_factory(engine))
    store.create_tables()
    yield store
    engine.dispose()


@pytest.fixture
def json_store(tmp_path):
    return JsonFileReportStore(str(tmp_path / 'reports.json'))
