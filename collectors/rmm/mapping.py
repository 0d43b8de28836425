"""RMM device-inventory report normalization and mapping."""

from dataclasses import dataclass
from typing import Dict, Any, Iterable, List, Optional

from common.util import clean_text


# Accepted header spellings for each field, compared case/whitespace-insensitively
MACHINE_NAME_HEADERS = ('Machine name', 'Machine', 'Workstation', 'Hostname', 'Device name')
FRIENDLY_NAME_HEADERS = ('Friendly name', 'Display name')
SITE_NAME_HEADERS = ('Site name', 'Site', 'Location')
OUTPUT_HEADERS = ('Output', 'Script output', 'Result')
STATUS_HEADERS = ('Status',)

# Headers the upload validator looks for in an RMM export
RMM_EXPECTED_COLUMNS = ('Machine name', 'Workstation', 'Output', 'Site name', 'Friendly name')


@dataclass(frozen=True)
class RmmDevice:
    """One workstation row from the RMM export."""
    machine_name: str = ''
    friendly_name: str = ''
    site_name: str = ''
    output: str = ''
    status: str = ''


def normalize_header(header: Any) -> str:
    """
    Reduce a column header to a comparison key.

    Args:
        header: Raw header (may carry a BOM, odd spacing or casing)

    Returns:
        str: Lowercased header with whitespace collapsed
    """
    if header is None:
        return ''
    return ' '.join(str(header).replace('\ufeff', '').split()).lower()


def lookup_column(row: Dict[str, Any], headers: Iterable[str]) -> str:
    """
    Return the first non-empty value for any of the given header spellings.

    Args:
        row: Raw row keyed by column header
        headers: Candidate header spellings, in priority order

    Returns:
        str: Cell value as a stripped string, empty when no header matches
    """
    keyed = {normalize_header(key): value for key, value in row.items()}
    for header in headers:
        value = clean_text(keyed.get(normalize_header(header)))
        if value:
            return value
    return ''


def normalize_rmm_row(row: Dict[str, Any]) -> RmmDevice:
    """
    Map a raw RMM row to an RmmDevice.

    The Output column keeps its internal whitespace; only the outer
    whitespace is trimmed.
    """
    return RmmDevice(
        machine_name=lookup_column(row, MACHINE_NAME_HEADERS),
        friendly_name=lookup_column(row, FRIENDLY_NAME_HEADERS),
        site_name=lookup_column(row, SITE_NAME_HEADERS),
        output=lookup_column(row, OUTPUT_HEADERS),
        status=lookup_column(row, STATUS_HEADERS),
    )


def normalize_rmm_rows(rows: Optional[Iterable[Dict[str, Any]]]) -> List[RmmDevice]:
    """Normalize every dict row of an RMM export, skipping anything that is not a row."""
    if not rows:
        return []
    return [normalize_rmm_row(row) for row in rows if isinstance(row, dict)]


def detect_report_type(filename: str) -> Optional[str]:
    """
    Determine which export a file holds from its name.

    Args:
        filename: Uploaded file name

    Returns:
        str: 'rmm', 'scalepad', or None when the name matches neither
    """
    name = (filename or '').lower()
    if 'rmm' in name:
        return 'rmm'
    if 'scalepad' in name or 'scale pad' in name:
        return 'scalepad'
    return None


def has_expected_columns(rows: List[Dict[str, Any]], expected: Iterable[str]) -> bool:
    """
    Check that the first row carries at least one of the expected headers.

    Matching is loose in both directions (a header containing the expected
    name, or the expected name containing the header).
    """
    if not rows or not isinstance(rows[0], dict):
        return False

    headers = [normalize_header(header) for header in rows[0].keys()]
    headers = [header for header in headers if header]
    for column in expected:
        wanted = normalize_header(column)
        if any(wanted in header or header in wanted for header in headers):
            return True
    return False
