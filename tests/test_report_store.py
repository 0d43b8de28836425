"""
Tests for report history stores
"""
import json
from unittest.mock import Mock

import pytest

from storage.report_store import (
    ReportStoreError, JsonFileReportStore,
    make_stored_report, parse_timestamp, save_report, list_all_reports,
)


def stored(report_id, timestamp='2026-10-19T09:00:00Z', name='Acme'):
    return make_stored_report(
        {'name': name, 'site': 'HQ', 'tenant': 'acme.onmicrosoft.com'},
        {'total': 1, 'compatible': 1},
        {'data': [{'Workstation': 'WS-001'}]},
        report_id=report_id,
        timestamp=timestamp,
    )


def failing_store():
    store = Mock()
    store.add_report.side_effect = ReportStoreError("down")
    store.list_reports.side_effect = ReportStoreError("down")
    return store


class TestMakeStoredReport:
    """History entries"""

    def test_generates_id_and_timestamp(self):
        report = make_stored_report({'name': ' Acme '}, {}, {})

        assert len(report['id']) == 32
        assert report['timestamp'].endswith('Z')
        assert report['companyInfo'] == {'name': 'Acme', 'site': '', 'tenant': ''}

    def test_parse_timestamp(self):
        parsed = parse_timestamp('2026-10-19T09:00:00Z')
        assert (parsed.year, parsed.month, parsed.day, parsed.hour) == (2026, 10, 19, 9)
        assert parse_timestamp('not a date').tzinfo is not None
        assert parse_timestamp(None).tzinfo is not None

    def test_parse_timestamp_converts_offsets_to_utc(self):
        parsed = parse_timestamp('2026-01-01T10:00:00+02:00')
        assert (parsed.hour, parsed.utcoffset().total_seconds()) == (8, 0)
        assert parse_timestamp('2026-01-01T10:00:00').hour == 10

    def test_timestamp_normalized_to_utc(self):
        assert stored('x', timestamp='2026-01-01T10:00:00+02:00')['timestamp'] == '2026-01-01T08:00:00Z'

    def test_id_coerced_to_string(self):
        assert stored(123)['id'] == '123'


class TestSqlReportStore:
    """Database store"""

    def test_add_and_get(self, sql_store):
        report = stored('r1')
        assert sql_store.add_report(report) == 'r1'

        loaded = sql_store.get_report('r1')
        assert loaded == report

    def test_offset_timestamp_round_trip(self, sql_store, json_store):
        report = stored('x', timestamp='2026-01-01T10:00:00+02:00')
        sql_store.add_report(report)
        json_store.add_report(report)

        assert sql_store.get_report('x')['timestamp'] == '2026-01-01T08:00:00Z'
        assert json_store.get_report('x')['timestamp'] == '2026-01-01T08:00:00Z'

    def test_list_newest_first(self, sql_store):
        sql_store.add_report(stored('old', timestamp='2026-10-01T09:00:00Z'))
        sql_store.add_report(stored('new', timestamp='2026-10-19T09:00:00Z'))
        sql_store.add_report(stored('mid', timestamp='2026-10-10T09:00:00Z'))

        assert [r['id'] for r in sql_store.list_reports()] == ['new', 'mid', 'old']

    def test_delete(self, sql_store):
        sql_store.add_report(stored('r1'))

        assert sql_store.delete_report('r1') is True
        assert sql_store.delete_report('r1') is False
        assert sql_store.get_report('r1') is None

    def test_duplicate_id_raises_store_error(self, sql_store):
        sql_store.add_report(stored('r1'))
        with pytest.raises(ReportStoreError):
            sql_store.add_report(stored('r1'))


class TestJsonFileReportStore:
    """Fallback file store"""

    def test_missing_file_is_empty(self, json_store):
        assert json_store.list_reports() == []

    def test_add_prepends(self, json_store):
        json_store.add_report(stored('first'))
        json_store.add_report(stored('second'))

        assert [r['id'] for r in json_store.list_reports()] == ['second', 'first']
        with open(json_store.path) as f:
            assert len(json.load(f)) == 2

    def test_get_and_delete(self, json_store):
        json_store.add_report(stored('r1'))

        assert json_store.get_report('r1')['companyInfo']['name'] == 'Acme'
        assert json_store.delete_report('r1') is True
        assert json_store.delete_report('r1') is False
        assert json_store.get_report('r1') is None

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / 'reports.json'
        path.write_text('{not json')
        with pytest.raises(ReportStoreError):
            JsonFileReportStore(str(path)).list_reports()

    def test_creates_directory(self, tmp_path):
        store = JsonFileReportStore(str(tmp_path / 'nested' / 'reports.json'))
        store.add_report(stored('r1'))
        assert store.get_report('r1') is not None


class TestSaveReport:
    """Persistence with fallback"""

    def test_primary(self, sql_store, json_store):
        assert save_report(stored('r1'), sql_store, json_store) == 'r1'
        assert json_store.list_reports() == []

    def test_falls_back(self, json_store):
        assert save_report(stored('r1'), failing_store(), json_store) == 'r1'
        assert json_store.get_report('r1') is not None

    def test_both_fail(self):
        assert save_report(stored('r1'), failing_store(), failing_store()) is None


class TestListAllReports:
    """Merged listing"""

    def test_merges_and_sorts(self, sql_store, json_store):
        sql_store.add_report(stored('a', timestamp='2026-10-01T09:00:00Z'))
        json_store.add_report(stored('b', timestamp='2026-10-05T09:00:00Z'))
        json_store.add_report(stored('a', timestamp='2026-10-01T09:00:00Z'))

        assert [r['id'] for r in list_all_reports(sql_store, json_store)] == ['b', 'a']

    def test_one_store_down(self, json_store):
        json_store.add_report(stored('b'))
        assert [r['id'] for r in list_all_reports(failing_store(), json_store)] == ['b']

    def test_all_stores_down(self):
        with pytest.raises(ReportStoreError):
            list_all_reports(failing_store(), failing_store())
